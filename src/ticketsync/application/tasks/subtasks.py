"""
Subtask Operations - Add subtasks, detach them back into tasks, and clear
them.

All operations write the task store before touching the ticketing system.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ticketsync.application.sync.results import ConversionOutcome, SyncOutcome
from ticketsync.core.domain.entities import Subtask, Task, TaskMetadata, TaskTree, parse_task_id
from ticketsync.core.domain.enums import Priority, TaskStatus
from ticketsync.core.domain.reference_ids import ReferenceIdGenerator
from ticketsync.core.exceptions import TaskNotFoundError, TaskOperationError
from ticketsync.core.ports.task_store import TaskStorePort

from .hooks import run_ticketing
from .lookup import split_ids


if TYPE_CHECKING:
    from ticketsync.application.sync.service import TicketingSyncService


logger = logging.getLogger("SubtaskOperations")


@dataclass
class AddSubtaskResult:
    """The subtask that was added, and its ticketing outcome."""

    parent_id: int
    subtask: Subtask
    converted_from: int | None = None
    ticketing: SyncOutcome | None = None

    @property
    def compound_id(self) -> str:
        return self.subtask.compound_id(self.parent_id)


@dataclass
class RemoveSubtaskResult:
    """The removed subtask, and the task it became when converted."""

    removed: Subtask
    converted_task: Task | None = None
    ticketing: SyncOutcome | ConversionOutcome | None = None


@dataclass
class ClearSubtasksResult:
    """
    Subtasks removed by clear_subtasks.

    Attributes:
        cleared_ids: Compound ids of every removed subtask, in order.
        skipped_ids: Tasks that had no subtasks to clear.
        ticketing: One outcome per linked subtask whose ticket was cancelled.
    """

    cleared_ids: list[str] = field(default_factory=list)
    skipped_ids: list[int] = field(default_factory=list)
    ticketing: list[SyncOutcome] = field(default_factory=list)

    @property
    def cleared_count(self) -> int:
        return len(self.cleared_ids)


def _ref_ids(sync_service: TicketingSyncService | None) -> ReferenceIdGenerator:
    # Ref ids are always generated locally, so a later sync can find them
    if sync_service is not None and sync_service.ref_ids.enabled:
        return sync_service.ref_ids
    return ReferenceIdGenerator(enabled=True)


def _depends_on(tree: TaskTree, task: Task, target_id: int, seen: set[int] | None = None) -> bool:
    """True if ``task`` depends on ``target_id``, directly or transitively."""
    seen = seen if seen is not None else set()
    if task.id in seen:
        return False
    seen.add(task.id)

    for dependency in task.dependencies:
        try:
            dep_id, _ = parse_task_id(dependency)
        except TaskNotFoundError:
            continue
        if dep_id == target_id:
            return True
        dep_task = tree.find_task(dep_id)
        if dep_task is not None and _depends_on(tree, dep_task, target_id, seen):
            return True
    return False


def add_subtask(
    store: TaskStorePort,
    parent_id: int | str,
    existing_task_id: int | str | None = None,
    data: dict[str, Any] | None = None,
    sync_service: TicketingSyncService | None = None,
) -> AddSubtaskResult:
    """
    Add a subtask to a task, either new or converted from an existing task.

    Args:
        store: Task store to read and write
        parent_id: Id of the parent task
        existing_task_id: Task to convert into a subtask of ``parent_id``
        data: Fields of a new subtask (title, description, details,
            status, dependencies), used when ``existing_task_id`` is None
        sync_service: Ticketing sync service, if integration is wired up

    Raises:
        TaskNotFoundError: If the parent or existing task does not exist.
        TaskOperationError: If the conversion would be invalid.
    """
    tree = store.read()
    parent_num = int(parent_id)
    parent = tree.get_task(parent_num)
    new_id = parent.next_subtask_id()
    converted_from: int | None = None

    if existing_task_id is not None:
        existing_num = int(existing_task_id)
        existing = tree.get_task(existing_num)

        parent_of_existing = existing.extra_fields.get("parentTaskId")
        if parent_of_existing is not None:
            raise TaskOperationError(
                f"Task {existing_num} is already a subtask of task {parent_of_existing}"
            )
        if existing_num == parent_num:
            raise TaskOperationError("Cannot make a task a subtask of itself")
        if _depends_on(tree, parent, existing_num):
            raise TaskOperationError(
                f"Cannot create circular dependency: task {parent_num} is already "
                f"a subtask or dependent of task {existing_num}"
            )

        subtask = Subtask(
            id=new_id,
            title=existing.title,
            description=existing.description,
            details=existing.details,
            status=existing.status,
            priority=existing.priority,
            dependencies=list(existing.dependencies),
            metadata=TaskMetadata(
                remote_ticket_key=existing.metadata.remote_ticket_key,
                last_status_update=existing.metadata.last_status_update,
                extra=dict(existing.metadata.extra),
            ),
            parent_task_id=parent_num,
        )
        tree.tasks.remove(existing)
        converted_from = existing_num
        logger.info(f"Converted task {existing_num} to subtask {parent_num}.{new_id}")

    elif data:
        subtask = Subtask(
            id=new_id,
            title=data.get("title", ""),
            description=data.get("description") or "",
            details=data.get("details") or "",
            status=TaskStatus.from_string(data.get("status") or "pending"),
            dependencies=list(data.get("dependencies") or []),
            parent_task_id=parent_num,
        )
        logger.info(f"Created new subtask {parent_num}.{new_id}")

    else:
        raise TaskOperationError("Either existingTaskId or newSubtaskData must be provided")

    ref_id = _ref_ids(sync_service).generate_subtask_ref_id(parent_num, new_id)
    if ref_id:
        ReferenceIdGenerator.store_ref_id(subtask, ref_id)
        logger.info(f"Generated reference ID {ref_id} for subtask {parent_num}.{new_id}")

    parent.subtasks.append(subtask)
    store.write(tree)

    result = AddSubtaskResult(parent_id=parent_num, subtask=subtask, converted_from=converted_from)
    if sync_service is not None:
        result.ticketing = run_ticketing(
            f"create ticket for subtask {parent_num}.{new_id}",
            lambda: sync_service.sync_subtask(subtask, parent),
        )
    return result


def remove_subtask(
    store: TaskStorePort,
    compound_id: str,
    convert_to_task: bool = False,
    sync_service: TicketingSyncService | None = None,
) -> RemoveSubtaskResult:
    """
    Remove a subtask ("3.2"), optionally turning it into a standalone task.

    Without conversion the subtask's ticket is deleted. With conversion the
    new task gets the next free id, the parent's priority and a dependency
    on the parent; its old ticket is cancelled and a new one is created.

    Raises:
        TaskOperationError: If the id is not a compound subtask id.
        TaskNotFoundError: If the parent or subtask does not exist.
    """
    if "." not in str(compound_id):
        raise TaskOperationError(
            f'Invalid subtask ID format: {compound_id}. Expected format: "parentId.subtaskId"'
        )

    tree = store.read()
    parent, subtask = tree.resolve(compound_id)
    if subtask is None:
        raise TaskOperationError(f"{compound_id} does not name a subtask")
    parent.subtasks.remove(subtask)

    converted: Task | None = None
    if convert_to_task:
        new_id = tree.next_task_id()
        dependencies = list(subtask.dependencies)
        if parent.id not in dependencies:
            dependencies.append(parent.id)

        converted = Task(
            id=new_id,
            title=subtask.title,
            description=subtask.description,
            details=subtask.details,
            status=subtask.status,
            priority=parent.priority or Priority.MEDIUM,
            dependencies=dependencies,
        )
        ref_id = _ref_ids(sync_service).generate_task_ref_id(new_id)
        if ref_id:
            ReferenceIdGenerator.store_ref_id(converted, ref_id)
        tree.tasks.append(converted)
        logger.info(f"Created new task {new_id} from subtask {compound_id}")
    else:
        logger.info(f"Subtask {compound_id} deleted")

    store.write(tree)

    result = RemoveSubtaskResult(removed=subtask, converted_task=converted)
    if sync_service is None:
        return result

    old_key = subtask.ticket_key
    if converted is not None:
        result.ticketing = run_ticketing(
            f"move ticket of subtask {compound_id} to task {converted.id}",
            lambda: sync_service.convert_subtask_to_task(old_key, converted),
        )
    elif old_key:
        result.ticketing = run_ticketing(
            f"delete ticket {old_key} for removed subtask {compound_id}",
            lambda: sync_service.delete_ticket(old_key),
        )
    else:
        logger.debug(f"Subtask {compound_id} does not have an associated ticket, skipping deletion")
    return result


def clear_subtasks(
    store: TaskStorePort,
    task_ids: str | int | list[str | int],
    sync_service: TicketingSyncService | None = None,
) -> ClearSubtasksResult:
    """
    Remove every subtask of one or more tasks ("1" or "1,3").

    The emptied tasks are written first; then each cleared subtask that had
    a ticket has it moved to cancelled.

    Raises:
        TaskNotFoundError: If any task does not exist (nothing is written).
        TaskOperationError: If a compound subtask id is given.
    """
    tree = store.read()
    result = ClearSubtasksResult()
    linked: list[tuple[str, str]] = []

    tasks: list[Task] = []
    for task_id in split_ids(task_ids):
        task_num, subtask_num = parse_task_id(task_id)
        if subtask_num is not None:
            raise TaskOperationError(f"{task_id} is a subtask id; give the parent task id")
        tasks.append(tree.get_task(task_num))

    for task in tasks:
        if not task.subtasks:
            logger.info(f"Task {task.id} has no subtasks to clear")
            result.skipped_ids.append(task.id)
            continue

        for subtask in task.subtasks:
            compound_id = subtask.compound_id(task.id)
            result.cleared_ids.append(compound_id)
            if subtask.ticket_key:
                linked.append((compound_id, subtask.ticket_key))
        logger.info(f"Cleared {len(task.subtasks)} subtasks from task {task.id}")
        task.subtasks = []

    if result.cleared_ids:
        store.write(tree)

    if sync_service is None:
        return result

    for compound_id, ticket_key in linked:
        outcome = run_ticketing(
            f"update ticket status for subtask {compound_id}",
            lambda cid=compound_id, key=ticket_key: sync_service.update_task_status(
                cid, TaskStatus.CANCELLED, ticket_key=key
            ),
        )
        if outcome is not None:
            result.ticketing.append(outcome)
    return result
