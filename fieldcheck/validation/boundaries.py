"""Validation at the FastAPI Boundary

Adapts Starlette requests to HttpRequest and exposes an HTTP schema as a
FastAPI dependency. The core engine never imports this module.

Usage:
    signup = ValidatedRequest(HttpValidationSchema(body=compile_schema(SIGNUP)))

    @router.post("/signup")
    async def create(request: HttpRequest = Depends(signup)):
        ...

Failures raise AppErrorException (E2000, HTTP 400) rendered by
``fieldcheck.errors.register_error_handlers``.
"""
from __future__ import annotations

import json
from typing import Any, Mapping

from fastapi import Request

from fieldcheck.errors import AppErrorException, invalid_json, raise_error, validation_failed
from fieldcheck.logging import http_logger

from .http import HttpRequest, HttpValidateOptions, HttpValidationSchema, HttpValidator
from .types import ValidateOptions

log = http_logger()


def _multi_dict(items) -> dict[str, Any]:
    """Collapse repeated keys into lists; single values stay scalars."""
    result: dict[str, Any] = {}
    for key, value in items:
        if key not in result: result[key] = value
        elif isinstance(result[key], list): result[key].append(value)
        else: result[key] = [result[key], value]
    return result


async def request_from_starlette(request: Request) -> HttpRequest:
    """Build an HttpRequest from a Starlette request. An empty body becomes ``{}``."""
    raw = await request.body()
    if raw:
        try:
            body = json.loads(raw)
        except ValueError as e:
            raise AppErrorException(invalid_json(str(e), origin="request_from_starlette").unwrap_err()) from e
    else:
        body = {}
    return HttpRequest(
        headers=_multi_dict(request.headers.items()),
        params=dict(request.path_params),
        query=_multi_dict(request.query_params.multi_items()),
        body=body,
    )


class ValidatedRequest:
    """FastAPI dependency validating the incoming request against an HTTP schema.

    Returns the adapted HttpRequest on success.
    """

    def __init__(self, schema: HttpValidationSchema | Mapping[str, Any], options: ValidateOptions | None = None):
        self.schema = schema
        self.options = options or HttpValidateOptions()
        self.validator = HttpValidator()

    async def __call__(self, request: Request) -> HttpRequest:
        http_request = await request_from_starlette(request)
        result = await self.validator.validate(http_request, self.schema, self.options)
        if not result.passed:
            errors = [e.to_dict(self.options.verbose_errors) for e in result.errors]
            log.info("request_validation_failed", path=request.url.path, error_count=len(errors))
            raise_error(validation_failed(errors, message="Request validation failed",
                                          origin="validated_request").unwrap_err())
        return http_request
