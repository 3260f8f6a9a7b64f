"""Rule Primitives & Built-in Catalog

``rule()`` turns a boolean predicate into a ValidationRule; the catalog
below is built entirely on it. Every constructor accepts ``message`` and
``message_id`` overrides.

Usage:
    name_rule = required() & min_length(2) & max_length(50)
    result = await name_rule.validate("Al")
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Sequence

from fieldcheck.logging import validation_logger

from .callables import call_adapted, run_rule
from .types import AbsentPolicy, ValidationErrorDetail, ValidationResult, ValidationRule

log = validation_logger()

EMAIL_PATTERN = re.compile(r"^[^@]+@[^@]+\.[^@]+$")

_UNSET: Any = object()


# ============================================================================
# Rule Adapters
# ============================================================================

@dataclass(frozen=True, slots=True, eq=False)
class PredicateRule(ValidationRule):
    """Rule backed by a ``(value, context) -> bool`` predicate (sync or async)."""
    predicate: Callable[..., Any]
    message: str = "Validation failed"
    message_id: str | None = None
    absent: AbsentPolicy = AbsentPolicy.EVALUATE
    expected: Any = _UNSET

    def _fail(self, value: Any, message: str | None = None) -> ValidationResult:
        has_expected = self.expected is not _UNSET
        return ValidationResult.failure(
            message or self.message,
            message_id=self.message_id,
            expected=self.expected if has_expected else None,
            received=value if has_expected else None,
        )

    async def validate(self, value: Any, context: Any = None) -> ValidationResult:
        if value is None and self.absent is not AbsentPolicy.EVALUATE:
            return ValidationResult.valid() if self.absent is AbsentPolicy.PASS else self._fail(value)
        try:
            passed = await call_adapted(self.predicate, value, context)
        except Exception as e:
            log.debug("rule_evaluation_failed", message_id=self.message_id, error=str(e), error_type=type(e).__name__)
            return self._fail(value, "Validation error occurred")
        return ValidationResult.valid() if passed else self._fail(value)


def rule(
    predicate: Callable[..., Any],
    *,
    message: str | None = None,
    message_id: str | None = None,
    absent: AbsentPolicy = AbsentPolicy.EVALUATE,
    expected: Any = _UNSET,
) -> ValidationRule:
    """Adapt a predicate into a rule.

    Exceptions raised by the predicate become a failed result with the
    message "Validation error occurred"; they never propagate.
    """
    return PredicateRule(predicate, message or "Validation failed", message_id, absent, expected)


@dataclass(frozen=True, slots=True, eq=False)
class AllOf(ValidationRule):
    """Every child must pass. Errors of all failing children are collected."""
    rules: tuple[Any, ...]
    stop_on_first_error: bool = False

    async def validate(self, value: Any, context: Any = None) -> ValidationResult:
        errors: list[ValidationErrorDetail] = []
        for child in self.rules:
            result = await run_rule(child, value, context)
            if result.passed: continue
            errors.extend(result.errors)
            if self.stop_on_first_error: break
        return ValidationResult.invalid(errors) if errors else ValidationResult.valid()


def all_of(*rules: Any, stop_on_first_error: bool = False) -> ValidationRule:
    """Combine rules; nested sequences of rules are flattened."""
    return AllOf(tuple(_flatten(rules)), stop_on_first_error)


def _flatten(rules: Iterable[Any]) -> Iterable[Any]:
    for r in rules:
        if isinstance(r, (list, tuple)): yield from _flatten(r)
        elif isinstance(r, AllOf) and not r.stop_on_first_error: yield from r.rules
        else: yield r


# ============================================================================
# Presence & Length
# ============================================================================

def required(*, message: str | None = None, message_id: str | None = None) -> ValidationRule:
    return rule(lambda v: not (isinstance(v, str) and not v.strip()), message=message or "Field is required",
                message_id=message_id or "validation.required", absent=AbsentPolicy.FAIL)


def _length(value: Any) -> int | None:
    try:
        return len(value)
    except TypeError:
        return None


def min_length(length: int, *, message: str | None = None, message_id: str | None = None) -> ValidationRule:
    return rule(lambda v: (n := _length(v)) is not None and n >= length,
                message=message or f"Must be at least {length} characters",
                message_id=message_id or "validation.minLength", absent=AbsentPolicy.FAIL, expected=length)


def max_length(length: int, *, message: str | None = None, message_id: str | None = None) -> ValidationRule:
    return rule(lambda v: (n := _length(v)) is not None and n <= length,
                message=message or f"Must be at most {length} characters",
                message_id=message_id or "validation.maxLength", absent=AbsentPolicy.FAIL, expected=length)


# ============================================================================
# Patterns
# ============================================================================

def matches(pattern: str | re.Pattern, *, message: str | None = None, message_id: str | None = None) -> ValidationRule:
    """String must contain a match for ``pattern`` (search semantics; anchor explicitly)."""
    compiled = re.compile(pattern) if isinstance(pattern, str) else pattern
    return rule(lambda v: isinstance(v, str) and compiled.search(v) is not None,
                message=message or "Must match the required pattern",
                message_id=message_id or "validation.pattern", absent=AbsentPolicy.FAIL, expected=compiled.pattern)


def email(*, message: str | None = None, message_id: str | None = None) -> ValidationRule:
    return rule(lambda v: isinstance(v, str) and EMAIL_PATTERN.match(v) is not None,
                message=message or "Must be a valid email",
                message_id=message_id or "validation.email", absent=AbsentPolicy.FAIL)


# ============================================================================
# Equality & Membership
# ============================================================================

def equals(expected: Any, *, message: str | None = None, message_id: str | None = None) -> ValidationRule:
    return rule(lambda v: v == expected, message=message or f"Must equal {expected}",
                message_id=message_id or "validation.equals", absent=AbsentPolicy.FAIL,
                expected=expected)


def not_equals(disallowed: Any, *, message: str | None = None, message_id: str | None = None) -> ValidationRule:
    return rule(lambda v: v != disallowed, message=message or f"Must not equal {disallowed}",
                message_id=message_id or "validation.notEquals", absent=AbsentPolicy.FAIL,
                expected=disallowed)


def one_of(values: Sequence[Any], *, message: str | None = None, message_id: str | None = None) -> ValidationRule:
    allowed = tuple(values)
    return rule(lambda v: v in allowed, message=message or f"Must be one of: {', '.join(map(str, allowed))}",
                message_id=message_id or "validation.oneOf", absent=AbsentPolicy.FAIL,
                expected=list(allowed))


def not_one_of(values: Sequence[Any], *, message: str | None = None, message_id: str | None = None) -> ValidationRule:
    disallowed = tuple(values)
    return rule(lambda v: v not in disallowed,
                message=message or f"Must not be one of: {', '.join(map(str, disallowed))}",
                message_id=message_id or "validation.notOneOf", absent=AbsentPolicy.FAIL,
                expected=list(disallowed))


# ============================================================================
# Numeric Ranges (inclusive)
# ============================================================================

def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def min_value(minimum: int | float, *, message: str | None = None, message_id: str | None = None) -> ValidationRule:
    return rule(lambda v: is_number(v) and v >= minimum, message=message or f"Must be at least {minimum}",
                message_id=message_id or "validation.min", absent=AbsentPolicy.FAIL, expected=minimum)


def max_value(maximum: int | float, *, message: str | None = None, message_id: str | None = None) -> ValidationRule:
    return rule(lambda v: is_number(v) and v <= maximum, message=message or f"Must be at most {maximum}",
                message_id=message_id or "validation.max", absent=AbsentPolicy.FAIL, expected=maximum)


# ============================================================================
# Custom
# ============================================================================

def custom(fn: Callable[..., Any], *, message: str | None = None, message_id: str | None = None) -> ValidationRule:
    """User predicate ``(value, context) -> bool`` (sync or async)."""
    return rule(fn, message=message or "Failed custom validation", message_id=message_id or "validation.custom",
                absent=AbsentPolicy.FAIL)
