"""
Logging - Structured logging setup for the ticketsync CLI.

Two output formats are supported:
- text: human readable, optionally coloured, for terminals
- json: one JSON object per line, for log aggregation

Credentials (API tokens, PATs) are scrubbed from every record by a
RedactingFilter attached to the handlers.
"""

import json
import logging
import sys
import traceback
from datetime import datetime, timezone
from typing import Any


REDACTED = "[REDACTED]"

SENSITIVE_KEYS = frozenset(
    {
        "api_token",
        "apitoken",
        "token",
        "pat",
        "password",
        "secret",
        "authorization",
        "jira_api_token",
        "github_token",
        "azure_pat",
    }
)

NOISY_LOGGERS = ("urllib3", "requests")

# Attributes every LogRecord carries; anything else came in via ``extra``.
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "asctime", "taskName"}


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _RECORD_ATTRS and not key.startswith("_")
    }


class JSONFormatter(logging.Formatter):
    """
    Format log records as single-line JSON objects.

    Output looks like:
        {"timestamp": "2024-01-15T10:30:00.123Z", "level": "INFO",
         "logger": "TicketingSyncService", "message": "Created PROJ-1"}
    """

    def __init__(
        self,
        static_fields: dict[str, Any] | None = None,
        include_timestamp: bool = True,
        include_level: bool = True,
        include_logger: bool = True,
        include_location: bool = False,
    ):
        """
        Initialize the formatter.

        Args:
            static_fields: Fields added to every record (service name, version).
            include_timestamp: Emit an ISO8601 UTC timestamp.
            include_level: Emit the level name.
            include_logger: Emit the logger name.
            include_location: Emit file, line and function.
        """
        super().__init__()
        self.static_fields = static_fields or {}
        self.include_timestamp = include_timestamp
        self.include_level = include_level
        self.include_logger = include_logger
        self.include_location = include_location

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {}

        if self.include_timestamp:
            created = datetime.fromtimestamp(record.created, tz=timezone.utc)
            data["timestamp"] = created.strftime("%Y-%m-%dT%H:%M:%S.") + (
                f"{int(record.msecs):03d}Z"
            )
        if self.include_level:
            data["level"] = record.levelname
        if self.include_logger:
            data["logger"] = record.name

        data["message"] = record.getMessage()
        data.update(self.static_fields)

        if self.include_location:
            data["location"] = {
                "file": record.filename,
                "line": record.lineno,
                "function": record.funcName,
            }

        context = _extra_fields(record)
        if context:
            data["context"] = context

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, exc_tb = record.exc_info
            data["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc_value),
                "traceback": "".join(traceback.format_exception(exc_type, exc_value, exc_tb)),
            }

        return json.dumps(data, default=str)


class TextFormatter(logging.Formatter):
    """Human readable formatter with optional level colours."""

    LEVEL_COLORS = {
        logging.DEBUG: "\033[2m",
        logging.INFO: "\033[36m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[1;31m",
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True, include_context: bool = False):
        super().__init__(fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        self.use_colors = use_colors
        self.include_context = include_context

    def format(self, record: logging.LogRecord) -> str:
        output = super().format(record)

        if self.include_context:
            context = _extra_fields(record)
            if context:
                pairs = " ".join(f"{key}={value!r}" for key, value in context.items())
                output = f"{output} [{pairs}]"

        if self.use_colors:
            color = self.LEVEL_COLORS.get(record.levelno)
            if color:
                output = f"{color}{output}{self.RESET}"
        return output


class RedactingFilter(logging.Filter):
    """
    Mask registered secrets and sensitive keys in log records.

    The filter never drops a record; it rewrites ``msg`` and ``args`` in place.
    """

    def __init__(self, secrets: list[str] | None = None):
        super().__init__()
        self._secrets: set[str] = set()
        self.register_secrets(*(secrets or []))

    @property
    def registered_count(self) -> int:
        return len(self._secrets)

    def register_secret(self, secret: str | None) -> None:
        # Very short values would mask unrelated text
        if secret and len(secret) >= 4:
            self._secrets.add(secret)

    def register_secrets(self, *secrets: str | None) -> None:
        for secret in secrets:
            self.register_secret(secret)

    def redact(self, value: Any) -> Any:
        if isinstance(value, str):
            for secret in sorted(self._secrets, key=len, reverse=True):
                value = value.replace(secret, REDACTED)
            return value
        if isinstance(value, dict):
            return {
                key: REDACTED if str(key).lower() in SENSITIVE_KEYS else self.redact(item)
                for key, item in value.items()
            }
        if isinstance(value, (list, tuple)):
            return type(value)(self.redact(item) for item in value)
        return value

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = self.redact(record.msg)
        if isinstance(record.args, dict):
            record.args = self.redact(record.args)
        elif record.args:
            record.args = tuple(self.redact(arg) for arg in record.args)
        return True


def setup_logging(
    level: int = logging.INFO,
    log_format: str = "text",
    log_file: str | None = None,
    static_fields: dict[str, Any] | None = None,
    secrets: list[str] | None = None,
) -> RedactingFilter:
    """
    Configure root logging for a CLI run.

    Existing root handlers are replaced, so calling this twice is safe.

    Args:
        level: Root log level.
        log_format: "text" or "json".
        log_file: Optional file that receives the same records (never coloured).
        static_fields: Extra fields for every JSON record.
        secrets: Credential values to mask.

    Returns:
        The RedactingFilter attached to every handler, so callers can
        register more secrets once configuration is loaded.
    """
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    root.setLevel(level)

    redacting_filter = RedactingFilter(secrets)

    def make_formatter(colors: bool) -> logging.Formatter:
        if log_format == "json":
            return JSONFormatter(static_fields=static_fields)
        return TextFormatter(use_colors=colors)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(make_formatter(sys.stderr.isatty()))
    console_handler.addFilter(redacting_filter)
    root.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(make_formatter(False))
        file_handler.addFilter(redacting_filter)
        root.addHandler(file_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return redacting_filter
