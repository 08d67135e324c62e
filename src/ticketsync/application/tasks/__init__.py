"""
Task Lifecycle Operations - Local task mutations with ticketing side effects.
"""

from .content import UpdateTaskResult, update_task
from .lookup import split_ids, task_exists
from .removal import RemovalResult, remove_task
from .status import StatusChangeResult, set_task_status
from .subtasks import (
    AddSubtaskResult,
    ClearSubtasksResult,
    RemoveSubtaskResult,
    add_subtask,
    clear_subtasks,
    remove_subtask,
)


__all__ = [
    "AddSubtaskResult",
    "ClearSubtasksResult",
    "RemovalResult",
    "RemoveSubtaskResult",
    "StatusChangeResult",
    "UpdateTaskResult",
    "add_subtask",
    "clear_subtasks",
    "remove_subtask",
    "remove_task",
    "set_task_status",
    "split_ids",
    "task_exists",
    "update_task",
]
