"""
Domain layer - Tasks, statuses and reference ids.
"""

from .entities import (
    LEGACY_TICKET_KEYS,
    Subtask,
    Task,
    TaskMetadata,
    TaskTree,
    WorkItem,
    parse_task_id,
)
from .enums import Priority, TaskStatus, TicketingSystem
from .reference_ids import (
    ReferenceIdGenerator,
    from_legacy_ref_id,
    title_matches_ref_id,
    to_legacy_ref_id,
)


__all__ = [
    "LEGACY_TICKET_KEYS",
    "Priority",
    "ReferenceIdGenerator",
    "Subtask",
    "Task",
    "TaskMetadata",
    "TaskStatus",
    "TaskTree",
    "TicketingSystem",
    "WorkItem",
    "from_legacy_ref_id",
    "parse_task_id",
    "title_matches_ref_id",
    "to_legacy_ref_id",
]
