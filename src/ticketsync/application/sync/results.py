"""
Sync Results - Outcome types returned by the ticketing sync service.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


NOT_AVAILABLE = "Ticketing service not available"
PARENT_HAS_NO_TICKET = "Parent task has no ticket"


@dataclass
class SyncOutcome:
    """
    Result of one reconciliation call.

    Attributes:
        success: Whether the remote side now reflects the request.
        ticket_key: Remote ticket key, when one is known.
        error: Reason for a non-success outcome.
        action: What happened: created, linked, reused, updated, deleted
            or skipped.
    """

    success: bool
    ticket_key: str | None = None
    error: str | None = None
    action: str | None = None

    @classmethod
    def not_available(cls) -> SyncOutcome:
        return cls(success=False, error=NOT_AVAILABLE)

    @classmethod
    def failed(cls, error: str, ticket_key: str | None = None) -> SyncOutcome:
        return cls(success=False, ticket_key=ticket_key, error=error)

    @property
    def is_not_available(self) -> bool:
        return not self.success and self.error == NOT_AVAILABLE

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"success": self.success}
        if self.ticket_key:
            data["ticketKey"] = self.ticket_key
        if self.error:
            data["error"] = self.error
        return data


@dataclass
class ConversionOutcome:
    """
    Result of moving a subtask's ticket to a new standalone task.

    The two steps are reported independently; one failing never prevents
    the other from being attempted.
    """

    cancelled: SyncOutcome
    created: SyncOutcome
    warnings: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.cancelled.success and self.created.success

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "cancelled": self.cancelled.to_dict(),
            "created": self.created.to_dict(),
            "warnings": list(self.warnings),
        }


@dataclass
class TicketSyncSummary:
    """
    Aggregate result of a batch reconciliation.

    Every entity the batch visited is counted in ``processed``; failures
    are listed in ``errors`` as "Task 3: <reason>" / "Subtask 3.1: <reason>".
    """

    tasks_created: int = 0
    subtasks_created: int = 0
    tasks_updated: int = 0
    subtasks_updated: int = 0
    skipped: int = 0
    processed: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def created(self) -> int:
        return self.tasks_created + self.subtasks_created

    @property
    def updated(self) -> int:
        return self.tasks_updated + self.subtasks_updated

    @property
    def success(self) -> bool:
        return not self.errors

    @property
    def partial_success(self) -> bool:
        return bool(self.errors) and (self.created + self.updated + self.skipped) > 0

    def record(self, outcome: SyncOutcome, label: str, is_subtask: bool) -> None:
        """Count one entity's outcome."""
        if not outcome.success:
            self.errors.append(f"{label}: {outcome.error}")
        elif outcome.action == "created":
            if is_subtask:
                self.subtasks_created += 1
            else:
                self.tasks_created += 1
        elif outcome.action == "linked":
            if is_subtask:
                self.subtasks_updated += 1
            else:
                self.tasks_updated += 1
        else:
            self.skipped += 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "tasksCreated": self.tasks_created,
            "subtasksCreated": self.subtasks_created,
            "tasksUpdated": self.tasks_updated,
            "subtasksUpdated": self.subtasks_updated,
            "skipped": self.skipped,
            "processed": self.processed,
            "errorCount": self.error_count,
            "errors": list(self.errors),
        }
