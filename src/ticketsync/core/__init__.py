"""
Core - Domain model, ports, result type and exceptions.

Nothing in this package performs I/O; adapters provide that.
"""

from .exceptions import (
    ConfigError,
    TaskNotFoundError,
    TaskStoreError,
    TicketSyncError,
    TrackerError,
)
from .result import Err, Ok, OperationError, Result


__all__ = [
    "ConfigError",
    "Err",
    "Ok",
    "OperationError",
    "Result",
    "TaskNotFoundError",
    "TaskStoreError",
    "TicketSyncError",
    "TrackerError",
]
