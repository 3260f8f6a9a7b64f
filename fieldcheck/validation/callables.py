"""Calling user-supplied functions uniformly.

Predicates, conditions and rules may be sync or async and may take fewer
positional arguments than the engine offers.
"""
from __future__ import annotations

import inspect
from typing import Any, Callable

from .types import ValidationResult


async def maybe_await(value: Any) -> Any:
    return await value if inspect.isawaitable(value) else value


def positional_arity(fn: Callable) -> int | None:
    """Number of positional parameters ``fn`` accepts; None when unbounded or unknown."""
    try:
        params = inspect.signature(fn).parameters.values()
    except (TypeError, ValueError):
        return None
    count = 0
    for p in params:
        if p.kind is inspect.Parameter.VAR_POSITIONAL: return None
        if p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD): count += 1
    return count


async def call_adapted(fn: Callable, *args: Any) -> Any:
    """Call ``fn`` with as many leading ``args`` as it accepts, awaiting the result if needed."""
    arity = positional_arity(fn)
    return await maybe_await(fn(*(args if arity is None else args[:arity])))


async def run_rule(rule: Any, value: Any, context: Any = None) -> ValidationResult:
    """Invoke any rule-like object and normalize its outcome to a ValidationResult."""
    result = await maybe_await(rule.validate(value, context))
    if isinstance(result, ValidationResult): return result
    # bare booleans from duck-typed rules
    return ValidationResult.valid() if result else ValidationResult(passed=False)
