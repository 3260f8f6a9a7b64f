"""Entity Validation Facade

Validates the three sections of a business operation independently:
``actor`` (who is acting), ``input`` (the payload) and ``record`` (the
persisted state being acted on). Each section maps field names to rule
descriptions, compiled on the fly.

Every failing rule part yields one error at ``(section, field)`` whose
first message id is ``validation.entity.<entity>.<field>.<ruleType>``,
so message tables can be keyed per entity and field.

``validate_http_request`` applies the same rule descriptions to the legacy
request sections ``body``, ``param``, ``query`` and ``header``; its ids
read ``validation.http.<section>.<field>.<ruleType>``.

Usage:
    result = await validate_entity(
        operation_name="update",
        entity_name="user",
        entity_validations={"input": {"firstName": {"minLength": 2}}},
        input={"firstName": "A"},
    )
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from fieldcheck.logging import validation_logger, validation_scope

from .compiler import RuleCompiler
from .http import HttpRequest
from .registry import FunctionRegistry
from .types import ValidateOptions, ValidationErrorDetail, ValidationResult, ValidationSchema
from .validator import Validator, finalize

log = validation_logger()

SECTIONS = ("actor", "input", "record")

# legacy section name -> HttpRequest attribute, in evaluation order
HTTP_SECTIONS = {"body": "body", "param": "params", "query": "query", "header": "headers"}


@dataclass(frozen=True, slots=True)
class EntityValidationRequest:
    operation_name: str
    entity_name: str
    entity_validations: Mapping[str, Mapping[str, Any]]
    actor: Mapping[str, Any] | None = None
    input: Mapping[str, Any] | None = None
    record: Mapping[str, Any] | None = None
    collect_errors: bool = True
    verbose_errors: bool = True
    overridden_error_messages: Mapping[str, str] | None = None


@dataclass(frozen=True, slots=True)
class InputValidationResult:
    passed: bool
    errors: dict[str, list[str]] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]: return {"pass": self.passed, "errors": self.errors}


class EntityValidator:
    """Runs rule descriptions over actor/input/record sections."""

    def __init__(self, registry: FunctionRegistry | None = None, validator: Validator | None = None):
        self.compiler = RuleCompiler(registry)
        self.validator = validator or Validator()

    async def validate_entity(self, request: EntityValidationRequest) -> ValidationResult:
        errors: list[ValidationErrorDetail] = []
        context = {
            "operation_name": request.operation_name,
            "entity_name": request.entity_name,
            **{section: getattr(request, section) or {} for section in SECTIONS},
        }

        with validation_scope(operation=request.operation_name, entity=request.entity_name):
            conditions = self._conditions(request.entity_validations.get("conditions"))

            id_prefix = f"validation.entity.{request.entity_name}"
            for section in SECTIONS:
                if not (rules := request.entity_validations.get(section)): continue
                section_errors = await self._validate_section(
                    section, rules, getattr(request, section) or {}, id_prefix, context, conditions,
                    request.collect_errors)
                errors.extend(section_errors)
                if section_errors and not request.collect_errors: break

            if errors: log.debug("entity_validation_failed", error_count=len(errors))
        result = finalize(errors, ValidateOptions(verbose_errors=request.verbose_errors,
                                                  overridden_error_messages=request.overridden_error_messages))
        return ValidationResult(passed=result.passed, errors=result.errors or ())

    async def validate_http_request(
        self,
        request: HttpRequest,
        validations: Mapping[str, Mapping[str, Any]],
        *,
        collect_errors: bool = True,
        verbose_errors: bool = True,
        overridden_error_messages: Mapping[str, str] | None = None,
    ) -> ValidationResult:
        """Validate ``body``, ``param``, ``query`` and ``header`` sections, in that order.

        Rules see the context ``{"request": request}``; a section without
        rules is not validated.
        """
        errors: list[ValidationErrorDetail] = []
        context = {"request": request}

        for section, attr in HTTP_SECTIONS.items():
            if not (rules := validations.get(section)): continue
            section_errors = await self._validate_section(
                section, rules, getattr(request, attr) or {}, f"validation.http.{section}", context, {}, collect_errors)
            errors.extend(section_errors)
            if section_errors and not collect_errors: break

        if errors: log.debug("http_request_validation_failed", error_count=len(errors))
        result = finalize(errors, ValidateOptions(verbose_errors=verbose_errors,
                                                  overridden_error_messages=overridden_error_messages))
        return ValidationResult(passed=result.passed, errors=result.errors or ())

    def _conditions(self, described: Mapping[str, str] | None) -> Mapping[str, Any]:
        """Named conditions shared by all sections, resolved from the registry."""
        if not described: return {}
        return self.compiler.schema({"fields": {}, "conditions": described}).conditions

    async def _validate_section(
        self,
        section: str,
        rules: Mapping[str, Any],
        data: Mapping[str, Any],
        id_prefix: str,
        context: Mapping[str, Any],
        conditions: Mapping[str, Any],
        collect_errors: bool,
    ) -> list[ValidationErrorDetail]:
        errors: list[ValidationErrorDetail] = []
        for field_name, description in rules.items():
            for rule_type, part in self.compiler.rule_parts(description):
                schema = ValidationSchema(fields={field_name: part}, conditions=conditions)
                result = await self.validator.validate(data, schema, context)
                if result.passed: continue
                first = result.errors[0]
                scoped_id = f"{id_prefix}.{field_name.lower()}.{rule_type}"
                errors.append(ValidationErrorDetail(
                    message=first.message,
                    path=(section, field_name),
                    field=field_name,
                    message_ids=(scoped_id, *first.message_ids),
                    expected=first.expected,
                    received=first.received,
                ))
            if errors and not collect_errors: break
        return errors

    async def validate_input(self, input: Mapping[str, Any], rules: Mapping[str, Any],
                             collect_errors: bool = True) -> InputValidationResult:
        """Validate a flat payload; errors are messages grouped by field."""
        errors: dict[str, list[str]] = {}
        for field_name, description in rules.items():
            schema = ValidationSchema(fields={field_name: self.compiler.rule(description)})
            result = await self.validator.validate(input, schema)
            if result.passed: continue
            if not collect_errors: return InputValidationResult(passed=False)
            errors[field_name] = [e.message for e in result.errors]
        return InputValidationResult(passed=not errors, errors=errors)


async def validate_entity(
    *,
    operation_name: str,
    entity_name: str,
    entity_validations: Mapping[str, Mapping[str, Any]],
    actor: Mapping[str, Any] | None = None,
    input: Mapping[str, Any] | None = None,
    record: Mapping[str, Any] | None = None,
    collect_errors: bool = True,
    verbose_errors: bool = True,
    overridden_error_messages: Mapping[str, str] | None = None,
    registry: FunctionRegistry | None = None,
) -> ValidationResult:
    """Validate actor/input/record sections; ``errors`` is always a tuple (empty on success)."""
    return await EntityValidator(registry).validate_entity(EntityValidationRequest(
        operation_name=operation_name,
        entity_name=entity_name,
        entity_validations=entity_validations,
        actor=actor,
        input=input,
        record=record,
        collect_errors=collect_errors,
        verbose_errors=verbose_errors,
        overridden_error_messages=overridden_error_messages,
    ))


async def validate_input(
    input: Mapping[str, Any],
    rules: Mapping[str, Any],
    collect_errors: bool = True,
    registry: FunctionRegistry | None = None,
) -> InputValidationResult:
    return await EntityValidator(registry).validate_input(input, rules, collect_errors)


async def validate_http_request(
    request: HttpRequest | Mapping[str, Any],
    validations: Mapping[str, Mapping[str, Any]],
    *,
    collect_errors: bool = True,
    verbose_errors: bool = True,
    overridden_error_messages: Mapping[str, str] | None = None,
    registry: FunctionRegistry | None = None,
) -> ValidationResult:
    """Rule descriptions keyed by legacy request section; see ``EntityValidator.validate_http_request``."""
    if not isinstance(request, HttpRequest): request = HttpRequest.from_mapping(request)
    return await EntityValidator(registry).validate_http_request(
        request, validations,
        collect_errors=collect_errors,
        verbose_errors=verbose_errors,
        overridden_error_messages=overridden_error_messages,
    )
