"""
Exceptions - Centralized exception hierarchy for ticketsync.

All errors raised by ticketsync derive from TicketSyncError so callers can
catch everything with a single handler, while still being able to react to
specific categories:

- TrackerError: failures talking to the remote ticketing system
- ConfigError: missing or malformed configuration
- TaskStoreError: the local tasks file could not be read or written
- TaskOperationError: invalid mutation requested on the local task tree

Tracker errors are environmental and get degraded into soft failures by the
sync service. Task store and task operation errors indicate a problem in the
calling layer and are always propagated.
"""

from __future__ import annotations


class TicketSyncError(Exception):
    """Base class for all ticketsync errors."""

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.message = message
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return self.message


# =============================================================================
# Tracker Errors
# =============================================================================


class TrackerError(TicketSyncError):
    """Error communicating with a ticketing provider."""

    def __init__(
        self,
        message: str,
        issue_key: str | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message, cause=cause)
        self.issue_key = issue_key

    def __str__(self) -> str:
        if self.issue_key:
            return f"{self.message} (ticket: {self.issue_key})"
        return self.message


class AuthenticationError(TrackerError):
    """Credentials were rejected (HTTP 401)."""


class AccessDeniedError(TrackerError):
    """Authenticated, but not allowed to perform the operation (HTTP 403)."""


class ResourceNotFoundError(TrackerError):
    """The requested ticket or resource does not exist (HTTP 404)."""


class RateLimitError(TrackerError):
    """The provider throttled the request (HTTP 429)."""

    def __init__(
        self,
        message: str,
        retry_after: int | None = None,
        issue_key: str | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message, issue_key=issue_key, cause=cause)
        self.retry_after = retry_after


class TransientError(TrackerError):
    """Server-side failure that may succeed on retry (HTTP 5xx)."""


class TransitionError(TrackerError):
    """A workflow transition to the requested status is not available."""


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigError(TicketSyncError):
    """Configuration is missing or invalid."""


class ConfigFileError(ConfigError):
    """A configuration file exists but could not be parsed."""

    def __init__(self, message: str, path: str | None = None, cause: BaseException | None = None):
        super().__init__(message, cause=cause)
        self.path = path


class MissingConfigError(ConfigError):
    """A required configuration value is absent."""

    def __init__(self, key: str):
        super().__init__(f"Missing required configuration value: {key}")
        self.key = key


# =============================================================================
# Local Task Errors
# =============================================================================


class TaskStoreError(TicketSyncError):
    """The tasks file is missing, unreadable or malformed."""

    def __init__(self, message: str, path: str | None = None, cause: BaseException | None = None):
        super().__init__(message, cause=cause)
        self.path = path


class TaskOperationError(TicketSyncError):
    """An invalid operation was requested on the task tree."""


class TaskNotFoundError(TaskOperationError):
    """A task or subtask id does not exist in the tree."""

    def __init__(self, message: str, task_id: str | int | None = None):
        super().__init__(message)
        self.task_id = task_id


class InvalidStatusError(TaskOperationError):
    """An unknown task status value was supplied."""

    def __init__(self, status: str, allowed: list[str] | None = None):
        allowed_text = f". Use one of: {', '.join(allowed)}" if allowed else ""
        super().__init__(f"Invalid status value: {status}{allowed_text}")
        self.status = status


__all__ = [
    "AccessDeniedError",
    "AuthenticationError",
    "ConfigError",
    "ConfigFileError",
    "InvalidStatusError",
    "MissingConfigError",
    "RateLimitError",
    "ResourceNotFoundError",
    "TaskNotFoundError",
    "TaskOperationError",
    "TaskStoreError",
    "TicketSyncError",
    "TrackerError",
    "TransientError",
    "TransitionError",
]
