"""Core Validation Types

Results, error details, the rule protocol and the schema containers that
every other validation module builds on. Everything here is immutable;
"modifying" an error or result returns a new instance.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Awaitable, Callable, Iterable, Mapping, Sequence, TypedDict, Union


# ============================================================================
# Errors & Results
# ============================================================================

@dataclass(frozen=True, slots=True)
class ValidationErrorDetail:
    """One validation failure.

    - message: human-readable text (possibly overridden by message id)
    - path: root-relative location; array indices are stored as strings
    - field: top-level field the failure belongs to, stamped by the schema validator
    - message_ids: i18n keys, most specific first
    - expected / received: parameter and offending value for parameterized rules
    """
    message: str
    path: tuple[str, ...] = ()
    field: str | None = None
    message_ids: tuple[str, ...] = ()
    expected: Any = None
    received: Any = None

    def with_prefix(self, *segments: str | int) -> ValidationErrorDetail:
        return replace(self, path=(*(str(s) for s in segments), *self.path))

    def with_field(self, name: str) -> ValidationErrorDetail: return replace(self, field=name)

    def with_message(self, text: str) -> ValidationErrorDetail: return replace(self, message=text)

    def terse(self) -> ValidationErrorDetail:
        """Strip everything but path and message."""
        return ValidationErrorDetail(message=self.message, path=self.path)

    def to_dict(self, verbose: bool = True) -> dict[str, Any]:
        """Serialize using the wire key names (camelCase ``messageIds``)."""
        result: dict[str, Any] = {"path": list(self.path), "message": self.message}
        if not verbose: return result
        if self.field is not None: result["field"] = self.field
        if self.message_ids: result["messageIds"] = list(self.message_ids)
        if self.expected is not None: result["expected"] = self.expected
        if self.received is not None: result["received"] = self.received
        return result


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Outcome of running a rule or schema.

    A failed result always carries at least one error.
    """
    passed: bool
    errors: tuple[ValidationErrorDetail, ...] | None = None

    def __post_init__(self):
        if not self.passed and not self.errors:
            object.__setattr__(self, "errors", (ValidationErrorDetail(message="Validation failed"),))

    @classmethod
    def valid(cls) -> ValidationResult: return cls(passed=True)

    @classmethod
    def invalid(cls, errors: Iterable[ValidationErrorDetail]) -> ValidationResult:
        return cls(passed=False, errors=tuple(errors))

    @classmethod
    def failure(cls, message: str, *, message_id: str | None = None, path: Sequence[str] = (),
                expected: Any = None, received: Any = None) -> ValidationResult:
        """Single-error failure."""
        return cls(passed=False, errors=(ValidationErrorDetail(
            message=message, path=tuple(path), message_ids=(message_id,) if message_id else (),
            expected=expected, received=received),))

    def map_errors(self, fn: Callable[[ValidationErrorDetail], ValidationErrorDetail]) -> ValidationResult:
        if not self.errors: return self
        return replace(self, errors=tuple(fn(e) for e in self.errors))

    def to_dict(self, verbose: bool = True) -> dict[str, Any]:
        """Serialize as ``{"pass": bool, "errors": [...]}``; errors omitted when absent."""
        result: dict[str, Any] = {"pass": self.passed}
        if self.errors is not None: result["errors"] = [e.to_dict(verbose) for e in self.errors]
        return result


# ============================================================================
# Rules
# ============================================================================

class AbsentPolicy(str, Enum):
    """How a rule treats an absent (None) value."""
    FAIL = "fail"          # fail without consulting the predicate
    PASS = "pass"          # pass without consulting the predicate
    EVALUATE = "evaluate"  # let the predicate decide


class ValidationRule(ABC):
    """Base class for rules.

    ``validate`` may return a ValidationResult or an awaitable of one; the
    engine awaits when needed. Any object with a callable ``validate`` is
    accepted wherever a rule is expected.

    Rules compose with ``&`` into an all-of rule.
    """

    @abstractmethod
    def validate(self, value: Any, context: Any = None) -> ValidationResult | Awaitable[ValidationResult]:
        """Validate a value in an optional context."""

    def __and__(self, other: Any) -> ValidationRule:
        from .rules import all_of
        return all_of(self, other)


def is_rule(obj: Any) -> bool:
    return isinstance(obj, ValidationRule) or callable(getattr(obj, "validate", None))


# ============================================================================
# Conditions & Schemas
# ============================================================================

ConditionFunction = Callable[..., Union[bool, Awaitable[bool]]]

# {"all": [...]} AND, {"any": [...]} OR, {"not": ref} NOT
ConditionExpression = TypedDict("ConditionExpression", {"all": list, "any": list, "not": Any}, total=False)

ConditionReference = Union[str, ConditionFunction, ConditionExpression, Mapping[str, Any]]


@dataclass(frozen=True, slots=True)
class ConditionalRule:
    """A rule applied only when its condition holds. ``when=None`` applies unconditionally."""
    rule: Any
    when: ConditionReference | None = None


@dataclass(frozen=True, slots=True)
class ValidationSchema:
    """Field rules plus the named conditions they may reference.

    ``conditions`` is private to this schema: string condition names are
    resolved only against it.
    """
    fields: Mapping[str, Any] = field(default_factory=dict)
    conditions: Mapping[str, ConditionFunction] = field(default_factory=dict)


def as_schema(schema: ValidationSchema | Mapping[str, Any] | None) -> ValidationSchema | None:
    """Accept a ValidationSchema or a ``{"fields": ..., "conditions": ...}`` mapping."""
    if schema is None or isinstance(schema, ValidationSchema): return schema
    if isinstance(schema, Mapping):
        return ValidationSchema(fields=schema.get("fields") or {}, conditions=schema.get("conditions") or {})
    raise TypeError(f"Expected ValidationSchema or mapping, got {type(schema).__name__}")


@dataclass(frozen=True, slots=True)
class ValidateOptions:
    collect_errors: bool = True
    verbose_errors: bool = True
    overridden_error_messages: Mapping[str, str] | None = None
