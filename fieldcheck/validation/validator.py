"""Schema Validator

Runs a ValidationSchema over an object, field by field in declaration
order, and aggregates errors with root-relative paths.

Usage:
    result = await validate({"age": 16}, ValidationSchema(fields={"age": min_value(18)}))
    result.errors[0].path  # ("age",)
"""
from __future__ import annotations

import asyncio
from typing import Any, Mapping

from fieldcheck.logging import validation_logger

from .callables import run_rule
from .conditions import evaluate_condition
from .paths import read_field
from .types import (
    ConditionalRule,
    ValidateOptions,
    ValidationErrorDetail,
    ValidationResult,
    ValidationSchema,
    as_schema,
    is_rule,
)

log = validation_logger()

DEFAULT_OPTIONS = ValidateOptions()


def augment_context(context: Any, data: Any) -> dict[str, Any]:
    """Context handed to field rules: the caller's context plus ``parent``."""
    if context is None: return {"parent": data}
    if isinstance(context, Mapping): return {**context, "parent": data}
    return {"parent": data, "context": context}


def override_message(error: ValidationErrorDetail, overrides: Mapping[str, str] | None) -> ValidationErrorDetail:
    """First message id (in order) with an override wins."""
    if not overrides: return error
    for message_id in error.message_ids:
        if message_id in overrides: return error.with_message(overrides[message_id])
    return error


def finalize(errors: list[ValidationErrorDetail], options: ValidateOptions) -> ValidationResult:
    """Apply message overrides, then strip to path/message unless verbose."""
    if not errors: return ValidationResult.valid()
    finished = [override_message(e, options.overridden_error_messages) for e in errors]
    if not options.verbose_errors: finished = [e.terse() for e in finished]
    return ValidationResult.invalid(finished)


def _as_conditional(field_rule: Any) -> ConditionalRule | None:
    if isinstance(field_rule, ConditionalRule): return field_rule
    if isinstance(field_rule, Mapping) and "rule" in field_rule:
        return ConditionalRule(rule=field_rule["rule"], when=field_rule.get("when"))
    return None


class Validator:
    """Stateless schema validator.

    Each field's rule receives ``(value, augmented_context)`` where the
    augmented context carries the whole object as ``parent`` so cross-field
    rules can reach siblings.
    """

    async def validate(
        self,
        data: Any,
        schema: ValidationSchema | Mapping[str, Any] | None,
        context: Any = None,
        options: ValidateOptions | None = None,
    ) -> ValidationResult:
        options = options or DEFAULT_OPTIONS
        if (schema := as_schema(schema)) is None or not schema.fields: return ValidationResult.valid()

        errors: list[ValidationErrorDetail] = []
        augmented = augment_context(context, data)

        for field_name, field_rule in schema.fields.items():
            if conditional := _as_conditional(field_rule):
                if not await evaluate_condition(conditional.when, data, schema.conditions, augmented): continue
                field_rule = conditional.rule

            if not is_rule(field_rule):
                log.warning("invalid_field_rule", field=field_name, rule_type=type(field_rule).__name__)
                continue

            result = await run_rule(field_rule, read_field(data, field_name), augmented)
            if result.passed: continue

            errors.extend(e.with_prefix(field_name).with_field(field_name) for e in result.errors)
            if not options.collect_errors: break

        return finalize(errors, options)


_validator = Validator()


async def validate(
    data: Any,
    schema: ValidationSchema | Mapping[str, Any] | None,
    context: Any = None,
    options: ValidateOptions | None = None,
) -> ValidationResult:
    """Validate ``data`` against ``schema``."""
    return await _validator.validate(data, schema, context, options)


def validate_sync(
    data: Any,
    schema: ValidationSchema | Mapping[str, Any] | None,
    context: Any = None,
    options: ValidateOptions | None = None,
) -> ValidationResult:
    """Blocking variant for callers without an event loop.

    Raises RuntimeError when called from inside a running loop; await
    ``validate`` there instead.
    """
    return asyncio.run(validate(data, schema, context, options))
