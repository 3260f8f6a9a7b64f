"""Error Types

Validation failures are data (``ValidationResult``) and never appear here.
These types cover the other outcomes: a rule description that cannot be
compiled, a registry name nobody registered, a request body that is not
JSON, and internal faults. They travel as ``Result`` values or, across
boundaries that cannot return one, as ``AppErrorException``.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Generic, NoReturn, TypeVar, Union, final
from uuid import uuid4

T = TypeVar("T")
E = TypeVar("E", bound="AppError")


class ErrorCode(Enum):
    """Error code taxonomy; the thousands digit is the family.

    E2xxx: request-level validation (HTTP 400)
    E7xxx: configuration - rule descriptions, schemas, registry lookups
    E9xxx: internal
    """
    # Validation (E2xxx)
    E2000_VALIDATION_GENERIC = 2000
    E2021_INVALID_JSON = 2021

    # Configuration (E7xxx)
    E7000_CONFIGURATION_GENERIC = 7000
    E7001_UNKNOWN_RULE = 7001
    E7002_NAMED_FUNCTION_NOT_FOUND = 7002
    E7003_MALFORMED_RULE = 7003
    E7004_INVALID_SCHEMA = 7004
    E7005_UNKNOWN_DATA_TYPE = 7005

    # Internal (E9xxx)
    E9001_UNEXPECTED_ERROR = 9001

    @property
    def category(self) -> str:
        return {2: "validation", 7: "configuration"}.get(self.value // 1000, "internal")

    @property
    def http_status(self) -> int:
        """Bad input is the caller's fault (400); misconfiguration is the server's (500)."""
        return 400 if self.category == "validation" else 500


@dataclass(frozen=True, slots=True)
class ErrorContext:
    """Where and when an error was produced."""
    correlation_id: str = field(default_factory=lambda: uuid4().hex[:8])
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    origin: str = ""
    request_id: str | None = None


@dataclass(frozen=True, slots=True)
class AppError:
    """A typed, immutable error.

    ``metadata`` holds structured detail (offending keys, the rule that
    failed to compile, serialized validation errors); ``cause`` keeps the
    original exception when one was wrapped.
    """
    code: ErrorCode
    message: str
    context: ErrorContext = field(default_factory=ErrorContext)
    metadata: dict[str, Any] = field(default_factory=dict)
    cause: Exception | None = None

    @property
    def error_id(self) -> str:
        return f"{self.code.name}:{self.context.correlation_id}"

    def with_context(self, *, origin: str | None = None, correlation_id: str | None = None,
                     request_id: str | None = None) -> AppError:
        """Copy with context fields replaced; None keeps the current value."""
        ctx = self.context
        return replace(self, context=replace(
            ctx,
            origin=ctx.origin if origin is None else origin,
            correlation_id=correlation_id or ctx.correlation_id,
            request_id=ctx.request_id if request_id is None else request_id,
        ))

    def to_dict(self) -> dict[str, Any]:
        """API response body."""
        return {
            "error": {
                "code": self.code.name,
                "code_num": self.code.value,
                "message": self.message,
                "category": self.code.category,
                "correlation_id": self.context.correlation_id,
                "timestamp": self.context.timestamp.isoformat(),
                "metadata": self.metadata,
            }
        }

    def __str__(self) -> str:
        return f"[{self.code.name}] {self.message} (correlation_id={self.context.correlation_id})"


class AppErrorException(Exception):
    """Carries an AppError through code that raises instead of returning Result."""

    def __init__(self, error: AppError):
        self.error = error
        super().__init__(str(error))

    @property
    def code(self) -> ErrorCode:
        return self.error.code


class RuleConfigurationError(AppErrorException):
    """A rule description, schema or registry lookup is misconfigured.

    Raised at compile/lookup time. Never produced for invalid input data.
    """


# ============================================================================
# Result
# ============================================================================

@final
@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    value: T

    def is_ok(self) -> bool: return True

    def is_err(self) -> bool: return False

    def unwrap(self) -> T: return self.value

    def unwrap_or(self, default: T) -> T: return self.value


@final
@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    error: E

    def is_ok(self) -> bool: return False

    def is_err(self) -> bool: return True

    def unwrap(self) -> NoReturn:
        raise AppErrorException(self.error)

    def unwrap_or(self, default: T) -> T: return default

    def unwrap_err(self) -> E: return self.error


Result = Union[Ok[T], Err[E]]


def try_result(f: Callable[[], T], origin: str = "") -> Result[T, AppError]:
    """Run ``f``; an AppErrorException keeps its AppError, anything else becomes E9001."""
    try:
        return Ok(f())
    except AppErrorException as e:
        return Err(e.error.with_context(origin=origin) if origin else e.error)
    except Exception as e:
        return Err(AppError(ErrorCode.E9001_UNEXPECTED_ERROR, str(e), ErrorContext(origin=origin), cause=e))
