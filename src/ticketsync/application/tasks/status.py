"""
Set Task Status - Change the status of tasks and subtasks.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ticketsync.application.sync.results import SyncOutcome
from ticketsync.core.domain.enums import TaskStatus
from ticketsync.core.ports.task_store import TaskStorePort

from .hooks import run_ticketing
from .lookup import split_ids


if TYPE_CHECKING:
    from ticketsync.application.sync.service import TicketingSyncService


logger = logging.getLogger("SetTaskStatus")


@dataclass
class StatusChangeResult:
    """
    Local outcome of a status change.

    Attributes:
        status: The status that was applied.
        updated_ids: Ids given by the caller, in order.
        cascaded_ids: Subtasks moved to done because their task was.
        ticketing: One sync outcome per remote update attempted.
    """

    status: TaskStatus
    updated_ids: list[str] = field(default_factory=list)
    cascaded_ids: list[str] = field(default_factory=list)
    ticketing: list[SyncOutcome] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return bool(self.updated_ids)


def set_task_status(
    store: TaskStorePort,
    ids: str | int | list[str | int],
    new_status: TaskStatus | str,
    sync_service: TicketingSyncService | None = None,
) -> StatusChangeResult:
    """
    Set the status of one or more tasks or subtasks.

    Args:
        store: Task store to read and write
        ids: "3", "3.1" or a comma-separated list of them
        new_status: Status to apply ("completed" is accepted for done)
        sync_service: Ticketing sync service, if integration is wired up

    Raises:
        InvalidStatusError: If the status is unknown.
        TaskNotFoundError: If any id does not exist (nothing is written).
    """
    status = new_status if isinstance(new_status, TaskStatus) else TaskStatus.from_string(new_status)
    result = StatusChangeResult(status=status)

    tree = store.read()
    for task_id in split_ids(ids):
        task, subtask = tree.resolve(task_id)
        item = subtask or task
        old_status = item.status
        item.status = status
        item.metadata.touch_status()
        result.updated_ids.append(task_id)
        logger.info(f"Updated task {task_id} status from '{old_status.value}' to '{status.value}'")

        if subtask is None and status is TaskStatus.DONE:
            pending = [s for s in task.subtasks if not s.status.is_complete()]
            if pending:
                logger.info(f"Also marking {len(pending)} subtasks as '{status.value}'")
            for child in pending:
                child.status = status
                child.metadata.touch_status()
                result.cascaded_ids.append(child.compound_id(task.id))

    store.write(tree)

    if sync_service is not None:
        for task_id in result.updated_ids + result.cascaded_ids:
            outcome = run_ticketing(
                f"update ticket status for task {task_id}",
                lambda task_id=task_id: sync_service.update_task_status(task_id, status),
            )
            if outcome is not None:
                result.ticketing.append(outcome)

    return result
