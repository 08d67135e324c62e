"""
Reference IDs - Stable, provider-independent identifiers for tasks.

A reference id is derived only from the local ids, so it survives renames and
can be used to rediscover a remote ticket when the stored link was lost:

    task 1            -> US001
    subtask 1.2       -> T001-02
    task 1234         -> US1234   (wider ids are never truncated)

Titles sent to a ticketing system embed the id as a prefix ("US001-Title").
Older versions embedded it in brackets ("[US-001] Title"); both forms are
recognised when reading titles back.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, TypeVar


if TYPE_CHECKING:
    from .entities import Subtask, Task, TaskTree, WorkItem


ItemT = TypeVar("ItemT", bound="WorkItem")

TASK_PREFIX = "US"
SUBTASK_PREFIX = "T"

_TITLE_PREFIX_PATTERN = re.compile(r"^((?:US\d{3,})|(?:T\d{3,}-\d{2,}))-")
_LEGACY_BRACKET_PATTERN = re.compile(r"\[((?:US-?\d{3,})|(?:T-?\d{3,}-\d{2,}))\]")


class ReferenceIdGenerator:
    """
    Generates and reads reference ids.

    When built with ``enabled=False`` (ticketing integration switched off)
    every generate call returns None, which callers treat as "do not sync
    this entity".
    """

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self.logger = logging.getLogger("ReferenceIdGenerator")

    # -------------------------------------------------------------------------
    # Generation
    # -------------------------------------------------------------------------

    def generate_task_ref_id(self, task_id: int) -> str | None:
        if not self.enabled:
            return None
        return f"{TASK_PREFIX}{int(task_id):03d}"

    def generate_subtask_ref_id(self, parent_id: int, subtask_id: int) -> str | None:
        if not self.enabled:
            return None
        return f"{SUBTASK_PREFIX}{int(parent_id):03d}-{int(subtask_id):02d}"

    def ensure_ref_id(self, item: WorkItem, parent_id: int | None = None) -> str | None:
        """
        Return the item's ref id, generating and storing one if missing.

        Args:
            item: Task or subtask.
            parent_id: Parent task id when ``item`` is a subtask.
        """
        existing = self.get_ref_id(item)
        if existing:
            return existing

        if parent_id is None:
            ref_id = self.generate_task_ref_id(item.id)
        else:
            ref_id = self.generate_subtask_ref_id(parent_id, item.id)

        if ref_id:
            self.store_ref_id(item, ref_id)
            self.logger.debug(f"Backfilled reference id {ref_id}")
        return ref_id

    # -------------------------------------------------------------------------
    # Storage
    # -------------------------------------------------------------------------

    @staticmethod
    def store_ref_id(item: ItemT, ref_id: str) -> ItemT:
        item.metadata.ref_id = ref_id
        return item

    @staticmethod
    def get_ref_id(item: WorkItem | None) -> str | None:
        if item is None:
            return None
        return item.metadata.ref_id or None

    # -------------------------------------------------------------------------
    # Titles
    # -------------------------------------------------------------------------

    @staticmethod
    def extract_ref_id(title: str | None) -> str | None:
        """
        Recover a ref id embedded in a ticket or task title.

        Understands the prefix form ("US001-Title") and the legacy bracket
        form ("[US-001] Title"), normalising the latter to "US001".
        """
        if not title:
            return None

        match = _TITLE_PREFIX_PATTERN.match(title)
        if match:
            return match.group(1)

        match = _LEGACY_BRACKET_PATTERN.search(title)
        if match:
            return from_legacy_ref_id(match.group(1))

        return None

    @staticmethod
    def format_title_for_ticket(ref_id: str | None, title: str) -> str:
        if not ref_id:
            return title
        return f"{ref_id}-{title}"

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def find_entity_by_ref_id(self, tree: TaskTree, ref_id: str) -> Task | Subtask | None:
        """
        Find the local task or subtask carrying ``ref_id``.

        Matches stored metadata first, then falls back to legacy bracket ids
        embedded in titles.
        """
        for task in tree.tasks:
            if task.metadata.ref_id == ref_id:
                return task
            for subtask in task.subtasks:
                if subtask.metadata.ref_id == ref_id:
                    return subtask

        legacy = f"[{to_legacy_ref_id(ref_id)}]"
        for task in tree.tasks:
            if legacy in task.title:
                return task
            for subtask in task.subtasks:
                if legacy in subtask.title:
                    return subtask

        return None


def title_matches_ref_id(title: str | None, ref_id: str) -> bool:
    """
    Check whether a remote ticket title carries ``ref_id``.

    Accepts every title convention the providers write ("US001-Title",
    "[US001] Title", "US001: Title") and the legacy "[US-001] Title".
    """
    if not title or not ref_id:
        return False
    if ReferenceIdGenerator.extract_ref_id(title) == ref_id:
        return True
    return (
        f"[{ref_id}]" in title
        or f"[{to_legacy_ref_id(ref_id)}]" in title
        or title.startswith(f"{ref_id}:")
    )


def to_legacy_ref_id(ref_id: str) -> str:
    """US001 -> US-001, T001-02 -> T-001-02 (bracket title format)."""
    match = re.match(r"^(US|T)(\d.*)$", ref_id)
    if not match:
        return ref_id
    return f"{match.group(1)}-{match.group(2)}"


def from_legacy_ref_id(legacy_id: str) -> str:
    """US-001 -> US001, T-001-02 -> T001-02."""
    match = re.match(r"^(US|T)-(\d.*)$", legacy_id)
    if not match:
        return legacy_id
    return f"{match.group(1)}{match.group(2)}"
