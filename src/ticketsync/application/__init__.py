"""
Application layer - Sync service and task lifecycle operations.
"""

from .sync import SyncOutcome, TicketingSyncService, TicketSyncSummary
from .tasks import add_subtask, remove_subtask, remove_task, set_task_status, task_exists


__all__ = [
    "SyncOutcome",
    "TicketSyncSummary",
    "TicketingSyncService",
    "add_subtask",
    "remove_subtask",
    "remove_task",
    "set_task_status",
    "task_exists",
]
