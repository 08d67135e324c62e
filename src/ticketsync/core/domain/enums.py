"""
Domain enums - Task status, priority and ticketing system selection.
"""

from __future__ import annotations

from enum import Enum

from ticketsync.core.exceptions import InvalidStatusError


class TaskStatus(Enum):
    """Status of a task or subtask in the local store."""

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    REVIEW = "review"
    DONE = "done"
    DEFERRED = "deferred"
    CANCELLED = "cancelled"

    @classmethod
    def from_string(cls, value: str) -> TaskStatus:
        """
        Parse a status value.

        Accepts the canonical values plus a few spellings seen in older task
        files ("completed", "in_progress", "in progress", "canceled").

        Raises:
            InvalidStatusError: If the value is not a known status.
        """
        normalized = value.strip().lower().replace("_", "-").replace(" ", "-")
        aliases = {
            "completed": cls.DONE,
            "complete": cls.DONE,
            "canceled": cls.CANCELLED,
            "todo": cls.PENDING,
            "to-do": cls.PENDING,
        }
        if normalized in aliases:
            return aliases[normalized]
        for status in cls:
            if status.value == normalized:
                return status
        raise InvalidStatusError(value, allowed=cls.values())

    @classmethod
    def values(cls) -> list[str]:
        return [status.value for status in cls]

    def is_complete(self) -> bool:
        """Check if this represents a finished state."""
        return self is TaskStatus.DONE

    def is_closed(self) -> bool:
        """Check if no more work is expected (done or cancelled)."""
        return self in (TaskStatus.DONE, TaskStatus.CANCELLED)


class Priority(Enum):
    """Priority level for tasks."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @classmethod
    def from_string(cls, value: str | None) -> Priority:
        """Parse priority from string, defaulting to medium."""
        if not value:
            return cls.MEDIUM
        value = value.strip().lower()

        if any(x in value for x in ["highest", "critical", "blocker", "high"]):
            return cls.HIGH
        if any(x in value for x in ["low", "minor", "trivial"]):
            return cls.LOW
        return cls.MEDIUM


class TicketingSystem(Enum):
    """Supported ticketing backends. Exactly one is active at a time."""

    JIRA = "jira"
    GITHUB = "github"
    AZURE_DEVOPS = "azdevops"

    @classmethod
    def from_string(cls, value: str) -> TicketingSystem:
        """
        Parse the ``ticketingSystem`` configuration value.

        Raises:
            ValueError: If the value names an unsupported system.
        """
        normalized = value.strip().lower().replace("-", "").replace(" ", "")
        aliases = {
            "jira": cls.JIRA,
            "github": cls.GITHUB,
            "githubprojects": cls.GITHUB,
            "githubissues": cls.GITHUB,
            "azdevops": cls.AZURE_DEVOPS,
            "azure": cls.AZURE_DEVOPS,
            "azuredevops": cls.AZURE_DEVOPS,
            "azure_devops": cls.AZURE_DEVOPS,
        }
        if normalized not in aliases:
            raise ValueError(f"Unknown ticketing system: {value}")
        return aliases[normalized]

    @property
    def display_name(self) -> str:
        return {
            TicketingSystem.JIRA: "Jira",
            TicketingSystem.GITHUB: "GitHub Issues",
            TicketingSystem.AZURE_DEVOPS: "Azure DevOps",
        }[self]
