"""FastAPI Exception Handlers

Renders AppErrorException (request validation failures, invalid JSON,
and configuration errors surfacing at request time) and unexpected
exceptions as ``AppError.to_dict()`` JSON bodies.
"""
from __future__ import annotations

from typing import NoReturn

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from fieldcheck.logging import http_logger

from .types import AppError, AppErrorException, ErrorCode, ErrorContext, Result

log = http_logger()


def result_to_response(error: AppError) -> JSONResponse:
    status_code = error.code.http_status
    # client mistakes are warnings; a misconfigured schema is the server's problem
    emit = log.warning if status_code < 500 else log.error
    emit(
        "error_response",
        error_code=error.code.name,
        category=error.code.category,
        status_code=status_code,
        message=error.message,
        correlation_id=error.context.correlation_id,
        origin=error.context.origin,
    )
    return JSONResponse(status_code=status_code, content=error.to_dict())


async def app_error_handler(request: Request, exc: AppErrorException) -> JSONResponse:
    """Tag the error with the caller's request/correlation ids before rendering."""
    return result_to_response(exc.error.with_context(
        request_id=request.headers.get("X-Request-ID"),
        correlation_id=request.headers.get("X-Correlation-ID"),
    ))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    error = AppError(
        code=ErrorCode.E9001_UNEXPECTED_ERROR,
        message="An unexpected error occurred",
        context=ErrorContext(origin="unhandled", request_id=request.headers.get("X-Request-ID")),
        cause=exc,
    )
    log.exception("unhandled_exception", path=request.url.path, error_type=type(exc).__name__,
                  correlation_id=error.context.correlation_id)
    return result_to_response(error)


def register_error_handlers(app: FastAPI) -> None:
    """Install the handlers on ``app``; call once at startup."""
    app.add_exception_handler(AppErrorException, app_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


def raise_error(error: AppError) -> NoReturn:
    raise AppErrorException(error)


def raise_result(result: Result) -> None:
    """Raise the error of an Err; Ok passes through silently."""
    if result.is_err(): raise_error(result.unwrap_err())
