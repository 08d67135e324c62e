"""
Result - Explicit success/failure values for fallible operations.

Provider calls inside the sync service return a Result instead of raising,
so a failed call is a value the caller inspects. Two variants exist:

    Ok(value)   - the operation succeeded
    Err(error)  - the operation failed

Both support pattern matching:

    match provider_call():
        case Ok(ticket):
            ...
        case Err(error):
            ...
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, NoReturn, TypeVar


T = TypeVar("T")
E = TypeVar("E")


class ResultError(Exception):
    """Raised when a Result is unwrapped on the wrong variant."""


class Result(Generic[T, E]):
    """
    Base type for Ok and Err.

    Never instantiated directly; use Ok(...) or Err(...).
    """

    __slots__ = ()

    def is_ok(self) -> bool:
        raise NotImplementedError

    def is_err(self) -> bool:
        return not self.is_ok()

    def __bool__(self) -> bool:
        return self.is_ok()


class Ok(Result[T, Any]):
    """Successful result carrying a value."""

    __slots__ = ("value",)
    __match_args__ = ("value",)

    def __init__(self, value: T):
        self.value = value

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Ok) and self.value == other.value

    def __hash__(self) -> int:
        return hash(("Ok", self.value))

    def is_ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value

    def unwrap_err(self) -> NoReturn:
        raise ResultError(f"Called unwrap_err on Ok: {self.value!r}")


class Err(Result[Any, E]):
    """Failed result carrying an error."""

    __slots__ = ("error",)
    __match_args__ = ("error",)

    def __init__(self, error: E):
        self.error = error

    def __repr__(self) -> str:
        return f"Err({self.error!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Err) and self.error == other.error

    def __hash__(self) -> int:
        return hash(("Err", repr(self.error)))

    def is_ok(self) -> bool:
        return False

    def unwrap(self) -> NoReturn:
        raise ResultError(f"Called unwrap on Err: {self.error}")

    def unwrap_err(self) -> E:
        return self.error


# =============================================================================
# Structured Errors
# =============================================================================


@dataclass
class OperationError:
    """
    Error value carried by Err for ticketing operations.

    Attributes:
        code: Short machine-readable category (PROVIDER by default)
        message: Human-readable description
        details: Extra context (exception type, ticket key)
        cause: Original exception, if any
    """

    code: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)
    cause: BaseException | None = None

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    @classmethod
    def from_exception(cls, exc: BaseException, code: str = "PROVIDER") -> OperationError:
        details: dict[str, Any] = {"type": type(exc).__name__}
        issue_key = getattr(exc, "issue_key", None)
        if issue_key:
            details["key"] = issue_key
        return cls(code=code, message=str(exc), details=details, cause=exc)


__all__ = [
    "Err",
    "Ok",
    "OperationError",
    "Result",
    "ResultError",
]
