"""Nested & Collection Validators

Rules that descend into structure: a sub-object validated by its own
schema, every item of an array, every value of a mapping, and fields whose
validity depends on a sibling.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Sequence

from fieldcheck.logging import validation_logger

from .callables import call_adapted, run_rule
from .paths import get_nested_property, split_path
from .types import (
    ValidateOptions,
    ValidationErrorDetail,
    ValidationResult,
    ValidationRule,
    ValidationSchema,
    as_schema,
)
from .validator import Validator

log = validation_logger()


@dataclass(frozen=True, slots=True, eq=False)
class NestedRule(ValidationRule):
    path: tuple[str, ...]
    schema: ValidationSchema | None
    required: bool = True
    message: str | None = None
    message_id: str | None = None
    options: ValidateOptions | None = None

    async def validate(self, value: Any, context: Any = None) -> ValidationResult:
        nested_value = get_nested_property(value, self.path) if self.path else value
        if nested_value is None:
            if not self.required: return ValidationResult.valid()
            return ValidationResult.failure(self.message or "Nested value is required",
                                            message_id=self.message_id or "validation.nested.required", path=self.path)
        result = await Validator().validate(nested_value, self.schema, context, self.options)
        return result.map_errors(lambda e: e.with_prefix(*self.path))


def nested(
    path: str | Sequence[str],
    schema: ValidationSchema | Mapping[str, Any],
    *,
    required: bool = True,
    message: str | None = None,
    message_id: str | None = None,
    options: ValidateOptions | None = None,
) -> ValidationRule:
    """Validate the sub-value at ``path`` (``""`` for the value itself) against ``schema``."""
    return NestedRule(split_path(path), as_schema(schema), required, message, message_id, options)


async def _collect(items: Iterable[tuple[str, Any]], item_rule: Any, context: Any,
                   stop_on_first_error: bool) -> ValidationResult:
    errors: list[ValidationErrorDetail] = []
    for key, item in items:
        result = await run_rule(item_rule, item, context)
        if result.passed: continue
        errors.extend(e.with_prefix(key) for e in result.errors)
        if stop_on_first_error: break
    return ValidationResult.invalid(errors) if errors else ValidationResult.valid()


@dataclass(frozen=True, slots=True, eq=False)
class EachItemRule(ValidationRule):
    item_rule: Any
    required: bool = False
    stop_on_first_error: bool = False
    message: str | None = None
    message_id: str | None = None

    async def validate(self, value: Any, context: Any = None) -> ValidationResult:
        if not isinstance(value, (list, tuple)):
            if value is None and not self.required: return ValidationResult.valid()
            return ValidationResult.failure(self.message or "Expected an array",
                                            message_id=self.message_id or "validation.array.required")
        return await _collect(((str(i), item) for i, item in enumerate(value)), self.item_rule, context,
                              self.stop_on_first_error)


def each_item(
    item_rule: Any,
    *,
    required: bool = False,
    stop_on_first_error: bool = False,
    message: str | None = None,
    message_id: str | None = None,
) -> ValidationRule:
    """Apply ``item_rule`` to every element; errors are prefixed with the index."""
    return EachItemRule(item_rule, required, stop_on_first_error, message, message_id)


@dataclass(frozen=True, slots=True, eq=False)
class ObjectValuesRule(ValidationRule):
    value_rule: Any
    required: bool = False
    stop_on_first_error: bool = False
    message: str | None = None
    message_id: str | None = None

    async def validate(self, value: Any, context: Any = None) -> ValidationResult:
        if not isinstance(value, Mapping):
            if value is None and not self.required: return ValidationResult.valid()
            return ValidationResult.failure(self.message or "Expected an object",
                                            message_id=self.message_id or "validation.object.required")
        return await _collect(((str(k), v) for k, v in value.items()), self.value_rule, context,
                              self.stop_on_first_error)


def object_values(
    value_rule: Any,
    *,
    required: bool = False,
    stop_on_first_error: bool = False,
    message: str | None = None,
    message_id: str | None = None,
) -> ValidationRule:
    """Apply ``value_rule`` to every value of a mapping; errors are prefixed with the key."""
    return ObjectValuesRule(value_rule, required, stop_on_first_error, message, message_id)


@dataclass(frozen=True, slots=True, eq=False)
class DependsOnRule(ValidationRule):
    dependency_path: tuple[str, ...]
    predicate: Callable[..., Any]
    message: str | None = None
    message_id: str | None = None

    def _source(self, value: Any, context: Any) -> Any:
        if isinstance(context, Mapping): return context.get("parent", context)
        return context if context is not None else value

    async def validate(self, value: Any, context: Any = None) -> ValidationResult:
        dependency = get_nested_property(self._source(value, context), self.dependency_path)
        try:
            passed = await call_adapted(self.predicate, dependency, value, context)
        except Exception as e:
            log.debug("dependency_check_failed", dependency=".".join(self.dependency_path), error=str(e),
                      error_type=type(e).__name__)
            passed = False
        if passed: return ValidationResult.valid()
        return ValidationResult.failure(self.message or f"Field is dependent on {'.'.join(self.dependency_path)}",
                                        message_id=self.message_id or "validation.dependsOn")


def depends_on(
    dependency_path: str | Sequence[str],
    predicate: Callable[..., Any],
    *,
    message: str | None = None,
    message_id: str | None = None,
) -> ValidationRule:
    """Validate against a sibling: ``predicate(dependency_value, value, context)``.

    The dependency is looked up in ``context["parent"]`` (set by the schema
    validator), else in the context itself, else in the value.
    """
    return DependsOnRule(split_path(dependency_path), predicate, message, message_id)
