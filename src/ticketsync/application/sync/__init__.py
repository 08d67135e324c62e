"""
Sync Module - Reconciliation between tasks.json and a ticketing system.
"""

from .results import (
    NOT_AVAILABLE,
    PARENT_HAS_NO_TICKET,
    ConversionOutcome,
    SyncOutcome,
    TicketSyncSummary,
)
from .service import ProgressCallback, TicketingSyncService


__all__ = [
    "NOT_AVAILABLE",
    "PARENT_HAS_NO_TICKET",
    "ConversionOutcome",
    "ProgressCallback",
    "SyncOutcome",
    "TicketSyncSummary",
    "TicketingSyncService",
]
