"""
Ticketing Provider Port - Abstract interface for remote ticketing systems.

Implementations:
- JiraAdapter: Atlassian Jira Cloud
- GitHubAdapter: GitHub Issues
- AzureDevOpsAdapter: Azure DevOps work items

Providers do no deduplication of their own: calling create_story twice
creates two tickets. Deciding whether a ticket must be created, found,
updated or deleted is the sync service's job.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from ticketsync.core.domain.entities import WorkItem
from ticketsync.core.domain.enums import Priority, TaskStatus
from ticketsync.core.exceptions import (
    AccessDeniedError,
    AuthenticationError,
    RateLimitError,
    ResourceNotFoundError,
    TrackerError,
    TransientError,
    TransitionError,
)


# Re-export with short aliases
IssueTrackerError = TrackerError
NotFoundError = ResourceNotFoundError
PermissionError = AccessDeniedError

__all__ = [
    "AccessDeniedError",
    "AuthenticationError",
    "CreatedTicket",
    "IssueTrackerError",
    "NotFoundError",
    "PermissionError",
    "RateLimitError",
    "ResourceNotFoundError",
    "TicketData",
    "TicketingProviderPort",
    "TrackerError",
    "TransientError",
    "TransitionError",
]


@dataclass
class TicketData:
    """
    Provider-neutral content of a ticket to create.

    Built by the sync service from a task or subtask; each provider renders
    the title and body in its own conventions.
    """

    title: str
    ref_id: str | None = None
    description: str = ""
    details: str = ""
    test_strategy: str = ""
    status: TaskStatus = TaskStatus.PENDING
    priority: Priority = Priority.MEDIUM
    local_id: str = ""
    is_subtask: bool = False
    labels: list[str] = field(default_factory=list)

    def body_text(self) -> str:
        """Plain-text body combining description, details and test strategy."""
        parts = [self.description.strip()]
        if self.details.strip():
            parts.append(f"Implementation Details:\n{self.details.strip()}")
        if self.test_strategy.strip():
            parts.append(f"Test Strategy:\n{self.test_strategy.strip()}")
        return "\n\n".join(p for p in parts if p)


@dataclass
class CreatedTicket:
    """Identifiers of a newly created remote ticket."""

    key: str
    id: str | None = None
    url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"key": self.key, "id": self.id, "url": self.url}


class TicketingProviderPort(ABC):
    """
    Abstract interface for ticketing providers.

    Network, authentication and server failures raise TrackerError
    subclasses. "Not found" answers from searches and existence checks are
    returned as None / False instead.
    """

    # -------------------------------------------------------------------------
    # Identity & Configuration
    # -------------------------------------------------------------------------

    @property
    @abstractmethod
    def name(self) -> str:
        """Get the provider name (e.g., 'Jira', 'GitHub Issues')."""
        ...

    @abstractmethod
    def is_configured(self) -> bool:
        """Check that credentials and settings are present and well-formed."""
        ...

    @abstractmethod
    def test_connection(self) -> bool:
        """Check that the provider is reachable with the configured credentials."""
        ...

    def close(self) -> None:  # noqa: B027
        """Release network resources. Default: nothing to release."""

    # -------------------------------------------------------------------------
    # Ticket Link (stored in local metadata)
    # -------------------------------------------------------------------------

    def get_ticket_id(self, item: WorkItem) -> str | None:
        """Read the stored remote ticket key of a task or subtask."""
        return item.metadata.remote_ticket_key or None

    def store_ticket_id(self, item: WorkItem, ticket_key: str) -> WorkItem:
        """Record the remote ticket key on a task or subtask."""
        item.metadata.remote_ticket_key = ticket_key
        return item

    # -------------------------------------------------------------------------
    # Write Operations
    # -------------------------------------------------------------------------

    @abstractmethod
    def create_story(self, ticket: TicketData) -> CreatedTicket:
        """
        Create a top-level ticket.

        Args:
            ticket: Content of the ticket.

        Returns:
            Identifiers of the created ticket.
        """
        ...

    @abstractmethod
    def create_task(self, ticket: TicketData, parent_key: str) -> CreatedTicket:
        """
        Create a ticket linked under ``parent_key``.

        Providers without native nesting create a standalone ticket that
        references the parent in its body.
        """
        ...

    @abstractmethod
    def update_ticket_status(self, ticket_key: str, status: TaskStatus) -> bool:
        """
        Move a ticket to the remote equivalent of ``status``.

        Returns:
            True if the ticket now reflects the status.
        """
        ...

    @abstractmethod
    def update_ticket(self, ticket_key: str, ticket: TicketData) -> bool:
        """
        Overwrite the title, body and priority of an existing ticket.

        Status is left alone; use update_ticket_status for that.

        Returns:
            True if the ticket was updated.
        """
        ...

    @abstractmethod
    def delete_ticket(self, ticket_key: str) -> bool:
        """
        Delete (or the closest equivalent, e.g. close) a ticket.

        Returns:
            True if the ticket is gone.
        """
        ...

    # -------------------------------------------------------------------------
    # Read Operations
    # -------------------------------------------------------------------------

    @abstractmethod
    def find_ticket_by_ref_id(self, ref_id: str) -> str | None:
        """
        Search for a ticket whose title embeds ``ref_id``.

        Both the current prefix form and the legacy bracket form are matched.

        Returns:
            Ticket key, or None if nothing matched.
        """
        ...

    @abstractmethod
    def ticket_exists(self, ticket_key: str) -> bool:
        """Existence check. False (not an exception) when the ticket was deleted."""
        ...

    # -------------------------------------------------------------------------
    # Mapping
    # -------------------------------------------------------------------------

    @abstractmethod
    def map_status_to_ticket(self, status: TaskStatus) -> str:
        """Translate a local status to the provider's status name."""
        ...

    @abstractmethod
    def map_priority_to_ticket(self, priority: Priority) -> str:
        """Translate a local priority to the provider's priority value."""
        ...

    # -------------------------------------------------------------------------
    # Context Manager
    # -------------------------------------------------------------------------

    def __enter__(self) -> TicketingProviderPort:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
