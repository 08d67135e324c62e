"""
Exit Codes - Process exit codes for the ticketsync CLI.

Scripts and CI jobs can branch on these values:

    ticketsync sync-tickets || case $? in 5) echo "partial";; esac
"""

from enum import IntEnum


class ExitCode(IntEnum):
    """Exit codes returned by ``ticketsync`` commands."""

    SUCCESS = 0
    ERROR = 1
    CONFIG_ERROR = 2
    FILE_NOT_FOUND = 3
    CONNECTION_ERROR = 4
    PARTIAL_SUCCESS = 5
    CANCELLED = 6
    SIGINT = 130

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]

    @classmethod
    def from_exception(cls, exc: BaseException) -> "ExitCode":
        """
        Pick the exit code that best describes an unhandled exception.

        Args:
            exc: The exception that aborted the command.

        Returns:
            Matching exit code, ERROR when nothing more specific applies.
        """
        from ticketsync.core.exceptions import ConfigError, TaskStoreError, TrackerError

        if isinstance(exc, KeyboardInterrupt):
            return cls.SIGINT
        if isinstance(exc, ConfigError):
            return cls.CONFIG_ERROR
        if isinstance(exc, (TaskStoreError, FileNotFoundError)):
            return cls.FILE_NOT_FOUND
        if isinstance(exc, (TrackerError, ConnectionError)):
            return cls.CONNECTION_ERROR
        return cls.ERROR


_DESCRIPTIONS = {
    ExitCode.SUCCESS: "Command completed successfully",
    ExitCode.ERROR: "Command failed",
    ExitCode.CONFIG_ERROR: "Invalid or incomplete configuration",
    ExitCode.FILE_NOT_FOUND: "Tasks file or config file not found",
    ExitCode.CONNECTION_ERROR: "Could not reach the ticketing system",
    ExitCode.PARTIAL_SUCCESS: "Some items failed to sync",
    ExitCode.CANCELLED: "Cancelled by user",
    ExitCode.SIGINT: "Interrupted",
}
