"""
Remove Task - Delete tasks and subtasks, and their tickets.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ticketsync.application.sync.results import SyncOutcome
from ticketsync.core.domain.entities import Subtask, Task
from ticketsync.core.exceptions import TaskOperationError
from ticketsync.core.ports.task_store import TaskStorePort

from .hooks import run_ticketing
from .lookup import split_ids


if TYPE_CHECKING:
    from ticketsync.application.sync.service import TicketingSyncService


logger = logging.getLogger("RemoveTask")


@dataclass
class RemovalResult:
    """
    Outcome of a remove-task call.

    ``success`` is False as soon as any id failed; the other ids are still
    removed.
    """

    success: bool = True
    messages: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    removed_tasks: list[Task | Subtask] = field(default_factory=list)
    ticketing: list[SyncOutcome] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "messages": list(self.messages),
            "errors": list(self.errors),
            "removedTasks": [item.to_dict() for item in self.removed_tasks],
            "ticketing": [outcome.to_dict() for outcome in self.ticketing],
        }


def remove_task(
    store: TaskStorePort,
    ids: str | int | list[str | int],
    sync_service: TicketingSyncService | None = None,
) -> RemovalResult:
    """
    Remove tasks ("3") and subtasks ("3.1").

    Per-id problems are collected in ``errors`` without stopping the loop.
    The store is written once, then the tickets of every removed entity
    (including a removed task's subtasks) are deleted.
    """
    result = RemovalResult()
    task_ids = split_ids(ids)
    if not task_ids:
        result.success = False
        result.errors.append("No valid task IDs provided.")
        return result

    tree = store.read()
    # (label, ticket key) of everything removed, in removal order
    tickets: list[tuple[str, str | None]] = []

    for task_id in task_ids:
        try:
            task, subtask = tree.resolve(task_id)
        except TaskOperationError as e:
            message = f"Error processing ID {task_id}: {e}"
            result.errors.append(message)
            result.success = False
            logger.warning(message)
            continue

        if subtask is not None:
            task.subtasks.remove(subtask)
            subtask.parent_task_id = task.id
            result.removed_tasks.append(subtask)
            tickets.append((f"subtask {task_id}", subtask.ticket_key))
            result.messages.append(f"Successfully removed subtask {task_id}")
        else:
            tree.tasks.remove(task)
            result.removed_tasks.append(task)
            tickets.append((f"task {task_id}", task.ticket_key))
            tickets.extend(
                (f"subtask {child.compound_id(task.id)}", child.ticket_key)
                for child in task.subtasks
            )
            result.messages.append(f"Successfully removed task {task_id}")

    if result.messages:
        store.write(tree)

    if sync_service is not None:
        for label, ticket_key in tickets:
            if not ticket_key:
                logger.debug(f"{label.capitalize()} has no ticket, skipping deletion")
                continue
            outcome = run_ticketing(
                f"delete ticket {ticket_key} for removed {label}",
                lambda key=ticket_key: sync_service.delete_ticket(key),
            )
            if outcome is not None:
                result.ticketing.append(outcome)

    return result
