"""
Update Task - Edit the content of a task or subtask and push it to its ticket.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ticketsync.application.sync.results import SyncOutcome
from ticketsync.core.domain.entities import Subtask, Task
from ticketsync.core.domain.enums import Priority
from ticketsync.core.exceptions import TaskOperationError
from ticketsync.core.ports.task_store import TaskStorePort

from .hooks import run_ticketing


if TYPE_CHECKING:
    from ticketsync.application.sync.service import TicketingSyncService


logger = logging.getLogger("UpdateTask")

# tasks.json key -> attribute
TASK_FIELDS = {
    "title": "title",
    "description": "description",
    "details": "details",
    "priority": "priority",
    "testStrategy": "test_strategy",
}
SUBTASK_FIELDS = {k: v for k, v in TASK_FIELDS.items() if k != "testStrategy"}


@dataclass
class UpdateTaskResult:
    """The edited entity, the fields that changed, and the ticketing outcome."""

    task_id: str
    item: Task | Subtask
    changed_fields: list[str] = field(default_factory=list)
    ticketing: SyncOutcome | None = None

    @property
    def changed(self) -> bool:
        return bool(self.changed_fields)


def update_task(
    store: TaskStorePort,
    task_id: str | int,
    fields: dict[str, Any],
    sync_service: TicketingSyncService | None = None,
) -> UpdateTaskResult:
    """
    Change the title, description, details, priority or test strategy of a
    task ("3") or subtask ("3.1").

    Status is not editable here; use set_task_status. When nothing changes
    the store is not written and no ticket update is sent.

    Args:
        store: Task store to read and write
        task_id: Task or compound subtask id
        fields: New values keyed by tasks.json name ("testStrategy", not
            "test_strategy")
        sync_service: Ticketing sync service, if integration is wired up

    Raises:
        TaskNotFoundError: If the id does not exist.
        TaskOperationError: If no fields are given, a field is not editable
            on this kind of entity, or the title would be empty.
    """
    if not fields:
        raise TaskOperationError("No fields to update")

    tree = store.read()
    task, subtask = tree.resolve(task_id)
    item: Task | Subtask = subtask or task
    editable = SUBTASK_FIELDS if subtask is not None else TASK_FIELDS

    unknown = sorted(set(fields) - set(editable))
    if unknown:
        raise TaskOperationError(
            f"Cannot update {', '.join(unknown)} on task {task_id}. "
            f"Editable fields: {', '.join(editable)}"
        )

    result = UpdateTaskResult(task_id=str(task_id), item=item)
    for key, value in fields.items():
        attribute = editable[key]
        if key == "priority":
            if value and not isinstance(value, Priority):
                value = Priority.from_string(value)
            value = value or None
        elif key == "title":
            value = (value or "").strip()
            if not value:
                raise TaskOperationError("Task title cannot be empty")
        else:
            value = value or ""

        if getattr(item, attribute) != value:
            setattr(item, attribute, value)
            result.changed_fields.append(key)

    if not result.changed:
        logger.info(f"Task {task_id} unchanged, nothing to update")
        return result

    store.write(tree)
    logger.info(f"Updated task {task_id}: {', '.join(result.changed_fields)}")

    if sync_service is not None:
        result.ticketing = run_ticketing(
            f"sync content changes to ticket for task {task_id}",
            lambda: sync_service.update_ticket_content(task_id),
        )
    return result
