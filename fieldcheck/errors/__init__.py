"""Errors outside the validation result

Invalid input is reported in ``ValidationResult.errors`` and never raised.
This package covers what remains:

- RuleConfigurationError: a rule description, schema or registry name is wrong
- AppError / ErrorCode: typed errors with a code family and HTTP status
- Result (Ok / Err): for callers that prefer values to exceptions
- FastAPI handlers rendering AppErrorException as JSON

Usage:
    from fieldcheck.errors import RuleConfigurationError

    try:
        schema = compile_schema(description)
    except RuleConfigurationError as exc:
        log.error("schema_rejected", code=exc.code.name)
"""
from .types import (
    AppError,
    AppErrorException,
    Err,
    ErrorCode,
    ErrorContext,
    Ok,
    Result,
    RuleConfigurationError,
    try_result,
)
from .builders import (
    configuration_error,
    invalid_json,
    invalid_schema,
    malformed_rule,
    named_function_not_found,
    raise_configuration_error,
    unknown_data_type,
    unknown_rule,
    validation_failed,
)
from .handlers import (
    raise_error,
    raise_result,
    register_error_handlers,
    result_to_response,
)

__all__ = [
    "AppError",
    "AppErrorException",
    "Err",
    "ErrorCode",
    "ErrorContext",
    "Ok",
    "Result",
    "RuleConfigurationError",
    "try_result",
    # builders
    "configuration_error",
    "invalid_json",
    "invalid_schema",
    "malformed_rule",
    "named_function_not_found",
    "raise_configuration_error",
    "unknown_data_type",
    "unknown_rule",
    "validation_failed",
    # FastAPI
    "raise_error",
    "raise_result",
    "register_error_handlers",
    "result_to_response",
]
