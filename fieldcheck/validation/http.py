"""HTTP Request Validation

Applies up to four schemas (headers, params, query, body) to the matching
segments of a request and merges the results. Errors are prefixed with the
segment name. Transport framing is not handled here; see ``boundaries``
for the FastAPI adapter.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from fieldcheck.logging import http_logger

from .types import ValidateOptions, ValidationErrorDetail, ValidationResult, ValidationSchema, as_schema
from .validator import Validator, finalize

log = http_logger()

SEGMENTS = ("headers", "params", "query", "body")


@dataclass(frozen=True, slots=True)
class HttpRequest:
    headers: Mapping[str, Any] = field(default_factory=dict)
    params: Mapping[str, Any] = field(default_factory=dict)
    query: Mapping[str, Any] = field(default_factory=dict)
    body: Any = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> HttpRequest:
        return cls(**{name: data[name] for name in SEGMENTS if data.get(name) is not None})


@dataclass(frozen=True, slots=True)
class HttpValidationSchema:
    headers: ValidationSchema | Mapping[str, Any] | None = None
    params: ValidationSchema | Mapping[str, Any] | None = None
    query: ValidationSchema | Mapping[str, Any] | None = None
    body: ValidationSchema | Mapping[str, Any] | None = None


@dataclass(frozen=True, slots=True)
class HttpValidateOptions(ValidateOptions):
    stop_on_first_section_failure: bool = False


class HttpValidator:
    """Validates the segments of an HttpRequest in order: headers, params, query, body.

    Every segment rule sees the context ``{"request": request}``. A segment
    without a schema is not validated; a missing segment value is treated
    as ``{}``.
    """

    def __init__(self, validator: Validator | None = None):
        self.validator = validator or Validator()

    async def validate(
        self,
        request: HttpRequest | Mapping[str, Any],
        schema: HttpValidationSchema | Mapping[str, Any],
        options: ValidateOptions | None = None,
    ) -> ValidationResult:
        options = options or HttpValidateOptions()
        if isinstance(request, Mapping): request = HttpRequest.from_mapping(request)
        if isinstance(schema, Mapping): schema = HttpValidationSchema(**schema)
        stop_early = getattr(options, "stop_on_first_section_failure", False) and not options.collect_errors

        context = {"request": request}
        segment_options = ValidateOptions(collect_errors=options.collect_errors)
        errors: list[ValidationErrorDetail] = []

        for segment in SEGMENTS:
            if (segment_schema := as_schema(getattr(schema, segment))) is None: continue
            value = getattr(request, segment)
            result = await self.validator.validate(value if value is not None else {}, segment_schema, context,
                                                   segment_options)
            if result.passed: continue

            errors.extend(e.with_prefix(segment) for e in result.errors)
            if stop_early:
                log.debug("http_validation_stopped", segment=segment, error_count=len(errors))
                break

        return finalize(errors, options)


_http_validator = HttpValidator()


async def http_validate(
    request: HttpRequest | Mapping[str, Any],
    schema: HttpValidationSchema | Mapping[str, Any],
    options: ValidateOptions | None = None,
) -> ValidationResult:
    """Validate an HTTP request against per-segment schemas."""
    return await _http_validator.validate(request, schema, options)
