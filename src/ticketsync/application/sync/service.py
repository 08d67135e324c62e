"""
Ticketing Sync Service - Reconciles local tasks with a remote ticketing system.

This is the single entry point task lifecycle operations and the CLI use to
talk to a provider. For each entity it:

1. Checks that integration is enabled and the provider configured
2. Backfills the entity's reference id if it has none
3. Resolves the ticket link (stored key, then reference-id search)
4. Creates the ticket when no link could be resolved
5. Persists the link to the task store

Expected conditions (integration disabled, no link, ticket already gone)
and provider errors come back as SyncOutcome values. Task store and data
errors are raised by single-entity operations; batch syncs record them
against the entity and move on.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import TypeVar

from ticketsync.core.domain.entities import Subtask, Task, WorkItem
from ticketsync.core.domain.enums import Priority, TaskStatus
from ticketsync.core.domain.reference_ids import ReferenceIdGenerator
from ticketsync.core.exceptions import TaskNotFoundError, TrackerError
from ticketsync.core.ports.config_provider import TicketingConfig
from ticketsync.core.ports.task_store import TaskStorePort
from ticketsync.core.ports.ticketing import CreatedTicket, TicketData, TicketingProviderPort
from ticketsync.core.result import Err, Ok, OperationError, Result

from .results import PARENT_HAS_NO_TICKET, ConversionOutcome, SyncOutcome, TicketSyncSummary


T = TypeVar("T")

# (current, total, label)
ProgressCallback = Callable[[int, int, str], None]


class TicketingSyncService:
    """
    Keeps tasks.json and the remote ticketing system in agreement.

    Constructed once per process with the active provider (or None when
    integration is off) and passed to every operation that needs it.
    """

    def __init__(
        self,
        config: TicketingConfig,
        provider: TicketingProviderPort | None,
        store: TaskStorePort,
        ref_ids: ReferenceIdGenerator | None = None,
        dry_run: bool = False,
    ):
        """
        Initialize the sync service.

        Args:
            config: Ticketing configuration
            provider: Active provider, or None when integration is disabled
            store: Local task store the links are persisted to
            ref_ids: Reference id generator (enabled when integration is)
            dry_run: If True, nothing is written to the task store
        """
        self.config = config
        self.provider = provider
        self.store = store
        self.ref_ids = ref_ids or ReferenceIdGenerator(enabled=config.enabled)
        self.dry_run = dry_run
        self.logger = logging.getLogger("TicketingSyncService")

    @property
    def is_available(self) -> bool:
        """Integration enabled and a configured provider attached."""
        return (
            self.config.enabled
            and self.provider is not None
            and bool(self.provider.is_configured())
        )

    # -------------------------------------------------------------------------
    # Single Entity
    # -------------------------------------------------------------------------

    def sync_task(self, task: Task) -> SyncOutcome:
        """
        Ensure a task has a remote ticket.

        Returns:
            Outcome with action "reused" (stored link), "linked" (found by
            reference id) or "created".
        """
        return self._sync_task(task, use_stored_link=True)

    def sync_subtask(self, subtask: Subtask, parent_task: Task) -> SyncOutcome:
        """
        Ensure a subtask has a remote ticket under its parent's ticket.

        The parent must already be linked; otherwise the outcome carries
        "Parent task has no ticket".
        """
        return self._sync_subtask(subtask, parent_task, use_stored_link=True)

    def update_task_status(
        self,
        task_id: str | int,
        status: TaskStatus | str,
        ticket_key: str | None = None,
    ) -> SyncOutcome:
        """
        Move the ticket of a task or subtask ("3" or "3.1") to ``status``.

        An entity without a ticket link is a success with no provider call.

        Args:
            task_id: Task or compound subtask id
            status: Target status
            ticket_key: Known ticket key. Skips the task store lookup, for
                entities already removed locally.
        """
        if not self.is_available:
            return SyncOutcome.not_available()

        new_status = status if isinstance(status, TaskStatus) else TaskStatus.from_string(status)

        if ticket_key is None:
            try:
                task, subtask = self.store.read().resolve(task_id)
            except TaskNotFoundError as e:
                self.logger.info(f"Skipping status update: {e}")
                return SyncOutcome.failed(str(e))

            item: WorkItem = subtask or task
            ticket_key = self.provider.get_ticket_id(item)

        if not ticket_key:
            self.logger.debug(f"Task {task_id} has no ticket, skipping status update")
            return SyncOutcome(success=True, action="skipped")

        result = self._call(lambda: self.provider.update_ticket_status(ticket_key, new_status))
        if result.is_err():
            return self._failure(f"update status of {ticket_key}", result.unwrap_err(), ticket_key)
        if not result.unwrap():
            return SyncOutcome.failed(
                f"Could not move {ticket_key} to {new_status.value}", ticket_key=ticket_key
            )

        self.logger.debug(f"Updated ticket {ticket_key} status to {new_status.value}")
        return SyncOutcome(success=True, ticket_key=ticket_key, action="updated")

    def update_ticket_content(self, task_id: str | int) -> SyncOutcome:
        """
        Push the current title, description and priority of a task or
        subtask to its ticket.

        An entity without a ticket link is a success with no provider call.
        """
        if not self.is_available:
            return SyncOutcome.not_available()

        try:
            task, subtask = self.store.read().resolve(task_id)
        except TaskNotFoundError as e:
            self.logger.info(f"Skipping content update: {e}")
            return SyncOutcome.failed(str(e))

        item: WorkItem = subtask or task
        ticket_key = self.provider.get_ticket_id(item)
        if not ticket_key:
            self.logger.debug(f"Task {task_id} has no ticket, skipping content update")
            return SyncOutcome(success=True, action="skipped")

        parent = task if subtask is not None else None
        ref_id = self._ensure_ref_id(item, parent=parent)
        if parent is None:
            ticket = self._ticket_data(item, ref_id or "")
        else:
            ticket = self._ticket_data(
                item, ref_id or "", parent=parent, parent_key=self.provider.get_ticket_id(parent)
            )

        result = self._call(lambda: self.provider.update_ticket(ticket_key, ticket))
        if result.is_err():
            return self._failure(f"update {ticket_key}", result.unwrap_err(), ticket_key)
        if not result.unwrap():
            return SyncOutcome.failed(f"Could not update {ticket_key}", ticket_key=ticket_key)

        self.logger.info(f"Updated ticket {ticket_key} for task {task_id}")
        return SyncOutcome(success=True, ticket_key=ticket_key, action="updated")

    def delete_ticket(self, ticket_key: str) -> SyncOutcome:
        """
        Delete a remote ticket.

        A ticket that no longer exists counts as deleted, with no delete call.
        """
        if not self.is_available:
            return SyncOutcome.not_available()

        exists = self._call(lambda: self.provider.ticket_exists(ticket_key))
        if exists.is_err():
            return self._failure(f"check {ticket_key}", exists.unwrap_err(), ticket_key)
        if not exists.unwrap():
            self.logger.info(f"Ticket {ticket_key} does not exist, considering deletion successful")
            return SyncOutcome(success=True, ticket_key=ticket_key, action="skipped")

        deleted = self._call(lambda: self.provider.delete_ticket(ticket_key))
        if deleted.is_err():
            return self._failure(f"delete {ticket_key}", deleted.unwrap_err(), ticket_key)
        if not deleted.unwrap():
            return SyncOutcome.failed("Failed to delete ticket", ticket_key=ticket_key)

        self.logger.info(f"Deleted ticket {ticket_key}")
        return SyncOutcome(success=True, ticket_key=ticket_key, action="deleted")

    def convert_subtask_to_task(
        self,
        old_subtask_key: str | None,
        new_task: Task,
    ) -> ConversionOutcome:
        """
        Retire a subtask's ticket and create one for the task it became.

        Steps run in order and independently: the old ticket is moved to
        cancelled, then a top-level ticket is created for ``new_task``.
        """
        if not self.is_available:
            return ConversionOutcome(
                cancelled=SyncOutcome.not_available(),
                created=SyncOutcome.not_available(),
            )

        warnings: list[str] = []

        if old_subtask_key:
            result = self._call(
                lambda: self.provider.update_ticket_status(old_subtask_key, TaskStatus.CANCELLED)
            )
            if result.is_err():
                cancelled = self._failure(
                    f"cancel {old_subtask_key}", result.unwrap_err(), old_subtask_key
                )
            elif not result.unwrap():
                cancelled = SyncOutcome.failed(
                    f"Could not cancel {old_subtask_key}", ticket_key=old_subtask_key
                )
            else:
                cancelled = SyncOutcome(True, ticket_key=old_subtask_key, action="updated")
        else:
            cancelled = SyncOutcome(success=True, action="skipped")

        if not cancelled.success:
            warnings.append(f"Old subtask ticket not cancelled: {cancelled.error}")

        created = self.sync_task(new_task)
        if not created.success:
            warnings.append(f"Ticket for task {new_task.id} not created: {created.error}")

        return ConversionOutcome(cancelled=cancelled, created=created, warnings=warnings)

    # -------------------------------------------------------------------------
    # Batch
    # -------------------------------------------------------------------------

    def sync_all_tasks(self, progress: ProgressCallback | None = None) -> TicketSyncSummary:
        """Reconcile every task and subtask in the store."""
        if not self.is_available:
            summary = TicketSyncSummary()
            summary.errors.append(SyncOutcome.not_available().error or "")
            return summary
        return self.sync_multiple_tasks(self.store.read().tasks, progress=progress)

    def sync_multiple_tasks(
        self,
        tasks: Iterable[Task],
        progress: ProgressCallback | None = None,
    ) -> TicketSyncSummary:
        """
        Reconcile the given tasks and all of their subtasks, in order.

        Linked entities whose ticket still exists are skipped; linked
        entities whose ticket vanished are recreated; unlinked entities are
        created or re-linked. One entity's failure never stops the loop.
        """
        summary = TicketSyncSummary()
        if not self.is_available:
            summary.errors.append(SyncOutcome.not_available().error or "")
            return summary

        tasks = list(tasks)
        total = sum(1 + len(task.subtasks) for task in tasks)
        current = 0

        for task in tasks:
            current += 1
            label = f"Task {task.id}"
            if progress:
                progress(current, total, label)
            self._reconcile(
                task,
                label,
                summary,
                is_subtask=False,
                sync=lambda use_link, t=task: self._sync_task(t, use_stored_link=use_link),
            )

            for subtask in task.subtasks:
                current += 1
                label = f"Subtask {task.id}.{subtask.id}"
                if progress:
                    progress(current, total, label)
                self._reconcile(
                    subtask,
                    label,
                    summary,
                    is_subtask=True,
                    sync=lambda use_link, s=subtask, t=task: self._sync_subtask(
                        s, t, use_stored_link=use_link
                    ),
                )

        self.logger.info(
            f"Sync completed: {summary.created} tickets created, "
            f"{summary.updated} linked, {summary.error_count} errors"
        )
        return summary

    def _reconcile(
        self,
        item: WorkItem,
        label: str,
        summary: TicketSyncSummary,
        is_subtask: bool,
        sync: Callable[[bool], SyncOutcome],
    ) -> None:
        summary.processed += 1
        try:
            self._reconcile_entity(item, label, summary, is_subtask, sync)
        except Exception as e:
            self.logger.error(f"Failed to sync {label}: {e}")
            summary.errors.append(f"{label}: {e}")

    def _reconcile_entity(
        self,
        item: WorkItem,
        label: str,
        summary: TicketSyncSummary,
        is_subtask: bool,
        sync: Callable[[bool], SyncOutcome],
    ) -> None:
        ticket_key = item.ticket_key

        if not ticket_key:
            summary.record(sync(True), label, is_subtask)
            return

        exists = self._call(lambda: self.provider.ticket_exists(ticket_key))
        if exists.is_err():
            summary.errors.append(f"{label}: {exists.unwrap_err().message}")
            return
        if exists.unwrap():
            self.logger.debug(f"Ticket {ticket_key} for {label} exists, skipping")
            summary.skipped += 1
            return

        self.logger.info(f"Ticket {ticket_key} for {label} not found remotely, recreating")
        summary.record(sync(False), label, is_subtask)

    # -------------------------------------------------------------------------
    # Reconciliation Steps
    # -------------------------------------------------------------------------

    def _sync_task(self, task: Task, use_stored_link: bool) -> SyncOutcome:
        if not self.is_available:
            return SyncOutcome.not_available()

        ref_id = self._ensure_ref_id(task, parent=None)
        if ref_id is None:
            return SyncOutcome.not_available()

        if use_stored_link and task.ticket_key:
            self.logger.debug(f"Task {task.id} already linked to {task.ticket_key}")
            return SyncOutcome(success=True, ticket_key=task.ticket_key, action="reused")

        found = self._call(lambda: self.provider.find_ticket_by_ref_id(ref_id))
        if found.is_err():
            return self._failure(f"search for {ref_id}", found.unwrap_err())
        if found.unwrap():
            key = found.unwrap()
            self._store_link(task, None, key)
            self.logger.info(f"Linked task {task.id} to existing ticket {key}")
            return SyncOutcome(success=True, ticket_key=key, action="linked")

        ticket = self._ticket_data(task, ref_id)
        created = self._call(lambda: self.provider.create_story(ticket))
        return self._finish_create(task, None, created, f"task {task.id}")

    def _sync_subtask(self, subtask: Subtask, parent: Task, use_stored_link: bool) -> SyncOutcome:
        if not self.is_available:
            return SyncOutcome.not_available()

        ref_id = self._ensure_ref_id(subtask, parent=parent)
        if ref_id is None:
            return SyncOutcome.not_available()

        if use_stored_link and subtask.ticket_key:
            return SyncOutcome(success=True, ticket_key=subtask.ticket_key, action="reused")

        found = self._call(lambda: self.provider.find_ticket_by_ref_id(ref_id))
        if found.is_err():
            return self._failure(f"search for {ref_id}", found.unwrap_err())
        if found.unwrap():
            key = found.unwrap()
            self._store_link(subtask, parent, key)
            self.logger.info(f"Linked subtask {parent.id}.{subtask.id} to existing ticket {key}")
            return SyncOutcome(success=True, ticket_key=key, action="linked")

        parent_key = self.provider.get_ticket_id(parent)
        if not parent_key:
            self.logger.info(f"Subtask {parent.id}.{subtask.id} skipped: {PARENT_HAS_NO_TICKET}")
            return SyncOutcome.failed(PARENT_HAS_NO_TICKET)

        ticket = self._ticket_data(subtask, ref_id, parent=parent, parent_key=parent_key)
        created = self._call(lambda: self.provider.create_task(ticket, parent_key))
        return self._finish_create(subtask, parent, created, f"subtask {parent.id}.{subtask.id}")

    def _finish_create(
        self,
        item: WorkItem,
        parent: Task | None,
        created: Result[CreatedTicket, OperationError],
        label: str,
    ) -> SyncOutcome:
        if created.is_err():
            return self._failure(f"create ticket for {label}", created.unwrap_err())

        ticket = created.unwrap()
        if not ticket or not ticket.key:
            self.logger.warning(f"Failed to create ticket for {label}")
            return SyncOutcome.failed("Failed to create ticket")

        self._store_link(item, parent, ticket.key)
        self.logger.info(f"Created ticket {ticket.key} for {label}")
        return SyncOutcome(success=True, ticket_key=ticket.key, action="created")

    def _ticket_data(
        self,
        item: WorkItem,
        ref_id: str,
        parent: Task | None = None,
        parent_key: str | None = None,
    ) -> TicketData:
        priority = item.priority or (parent.priority if parent else None) or Priority.MEDIUM
        if parent is None:
            return TicketData(
                title=item.title,
                ref_id=ref_id,
                description=item.description,
                details=item.details,
                test_strategy=getattr(item, "test_strategy", ""),
                status=item.status,
                priority=priority,
                local_id=str(item.id),
            )

        return TicketData(
            title=f"[Subtask] {item.title}",
            ref_id=ref_id,
            description=f"{item.description}\n\nParent Task: {parent.title} ({parent_key})",
            details=item.details,
            status=item.status,
            priority=priority,
            local_id=f"{parent.id}.{item.id}",
            is_subtask=True,
        )

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def _ensure_ref_id(self, item: WorkItem, parent: Task | None) -> str | None:
        existing = self.ref_ids.get_ref_id(item)
        if existing:
            return existing

        ref_id = self.ref_ids.ensure_ref_id(item, parent_id=parent.id if parent else None)
        if ref_id:
            self._persist(item, parent, lambda stored: self.ref_ids.store_ref_id(stored, ref_id))
        return ref_id

    def _store_link(self, item: WorkItem, parent: Task | None, ticket_key: str) -> None:
        self.provider.store_ticket_id(item, ticket_key)
        self._persist(item, parent, lambda stored: self.provider.store_ticket_id(stored, ticket_key))

    def _persist(
        self,
        item: WorkItem,
        parent: Task | None,
        mutate: Callable[[WorkItem], object],
    ) -> None:
        """Re-read the store, apply ``mutate`` to the stored copy, write it back."""
        if self.dry_run:
            self.logger.debug("[DRY-RUN] Not writing task store")
            return

        tree = self.store.read()
        if parent is None:
            stored: WorkItem | None = tree.find_task(item.id)
            label = f"Task {item.id}"
        else:
            stored = tree.find_subtask(parent.id, item.id)
            label = f"Subtask {parent.id}.{item.id}"

        if stored is None:
            raise TaskNotFoundError(f"{label} not found in {self.store.path}", task_id=item.id)

        mutate(stored)
        self.store.write(tree)

    # -------------------------------------------------------------------------
    # Provider Calls
    # -------------------------------------------------------------------------

    @staticmethod
    def _call(fn: Callable[[], T]) -> Result[T, OperationError]:
        """Run a provider call, mapping TrackerError to Err(OperationError)."""
        try:
            return Ok(fn())
        except TrackerError as e:
            return Err(OperationError.from_exception(e))

    def _failure(
        self,
        action: str,
        error: OperationError,
        ticket_key: str | None = None,
    ) -> SyncOutcome:
        self.logger.warning(f"Failed to {action}: {error}")
        return SyncOutcome.failed(error.message, ticket_key=ticket_key)
