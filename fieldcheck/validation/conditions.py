"""Conditional Composition

A condition is a name (looked up in the schema's own ``conditions``), a
callable ``(data, context) -> bool`` (sync or async), or a data expression
``{"all": [...]}`` / ``{"any": [...]}`` / ``{"not": ref}`` nesting freely.

Usage:
    schema = ValidationSchema(
        fields={"company": when("isBusiness", required())},
        conditions={"isBusiness": condition_equals("type", "business")},
    )
"""
from __future__ import annotations

from typing import Any, Callable, Mapping, Sequence

from fieldcheck.errors import RuleConfigurationError
from fieldcheck.logging import validation_logger

from .callables import call_adapted
from .paths import get_nested_property, read_field
from .rules import is_number
from .types import ConditionalRule, ConditionReference

log = validation_logger()


# ============================================================================
# Evaluation
# ============================================================================

async def evaluate_condition(
    condition: ConditionReference | None,
    data: Any,
    named_conditions: Mapping[str, Callable] | None = None,
    context: Any = None,
) -> bool:
    """Evaluate a condition reference against ``data``.

    An unknown name logs a warning and evaluates to False. Exceptions raised
    by condition functions evaluate to False; configuration errors propagate.
    Mapping precedence is ``all``, then ``any``, then ``not``; a mapping with
    none of them is False.
    """
    if condition is None: return True

    if isinstance(condition, str):
        fn = (named_conditions or {}).get(condition)
        if fn is None:
            log.warning("named_condition_not_found", condition=condition, available=sorted(named_conditions or {}))
            return False
        return await _call_condition(fn, data, context, condition)

    if isinstance(condition, Mapping):
        if "all" in condition:
            for sub in condition["all"]:
                if not await evaluate_condition(sub, data, named_conditions, context): return False
            return True
        if "any" in condition:
            for sub in condition["any"]:
                if await evaluate_condition(sub, data, named_conditions, context): return True
            return False
        if "not" in condition:
            return not await evaluate_condition(condition["not"], data, named_conditions, context)
        return False

    if callable(condition):
        return await _call_condition(condition, data, context, getattr(condition, "__name__", "<condition>"))

    log.warning("invalid_condition", condition_type=type(condition).__name__)
    return False


async def _call_condition(fn: Callable, data: Any, context: Any, name: str) -> bool:
    try:
        return bool(await call_adapted(fn, data, context))
    except RuleConfigurationError:
        raise
    except Exception as e:
        log.warning("condition_evaluation_failed", condition=name, error=str(e), error_type=type(e).__name__)
        return False


# ============================================================================
# Builders
# ============================================================================

def when(condition: ConditionReference, rule: Any) -> ConditionalRule:
    return ConditionalRule(rule=rule, when=condition)


def when_all(conditions: Sequence[ConditionReference], rule: Any) -> ConditionalRule:
    return ConditionalRule(rule=rule, when={"all": list(conditions)})


def when_any(conditions: Sequence[ConditionReference], rule: Any) -> ConditionalRule:
    return ConditionalRule(rule=rule, when={"any": list(conditions)})


def when_not(condition: ConditionReference, rule: Any) -> ConditionalRule:
    return ConditionalRule(rule=rule, when={"not": condition})


# ============================================================================
# Condition Helpers
# ============================================================================

def condition_equals(key: str, value: Any) -> Callable[[Any], bool]:
    return lambda data: data is not None and get_nested_property(data, key) == value


def condition_not_equals(key: str, value: Any) -> Callable[[Any], bool]:
    return lambda data: data is not None and get_nested_property(data, key) != value


def condition_one_of(key: str, values: Sequence[Any]) -> Callable[[Any], bool]:
    allowed = tuple(values)
    return lambda data: data is not None and get_nested_property(data, key) in allowed


def condition_exists(key: str) -> Callable[[Any], bool]:
    """Truthy value at ``key``."""
    return lambda data: bool(get_nested_property(data, key))


def condition_greater_than(key: str, value: int | float) -> Callable[[Any], bool]:
    return lambda data: is_number(v := get_nested_property(data, key)) and v > value


def condition_less_than(key: str, value: int | float) -> Callable[[Any], bool]:
    return lambda data: is_number(v := get_nested_property(data, key)) and v < value


def condition_context(key: str, expected: Any) -> Callable[[Any, Any], bool]:
    """Compare a context entry (not the data) with ``expected``."""
    return lambda data, context: context is not None and read_field(context, key) == expected
