"""Domain-Specific Error Builders

Ergonomic constructors for typed errors. Each builder creates an AppError
with the appropriate code and context, wrapped in Err.
"""
from typing import Any, NoReturn

from .types import AppError, ErrorCode, ErrorContext, Err, RuleConfigurationError


# =============================================================================
# Validation Errors (E2xxx)
# =============================================================================

def validation_failed(
    errors: list[dict[str, Any]],
    *,
    message: str = "Validation failed",
    origin: str = "",
) -> Err[AppError]:
    """Wrap serialized validation errors for transport to an API consumer."""
    return Err(AppError(
        code=ErrorCode.E2000_VALIDATION_GENERIC,
        message=message,
        context=ErrorContext(origin=origin),
        metadata={"error_count": len(errors), "errors": errors},
    ))


def invalid_json(reason: str, origin: str = "") -> Err[AppError]:
    return Err(AppError(
        code=ErrorCode.E2021_INVALID_JSON,
        message=f"Invalid JSON in request body: {reason}",
        context=ErrorContext(origin=origin),
    ))


# =============================================================================
# Configuration Errors (E7xxx)
# =============================================================================

def configuration_error(
    message: str,
    *,
    code: ErrorCode = ErrorCode.E7000_CONFIGURATION_GENERIC,
    origin: str = "",
    **metadata,
) -> Err[AppError]:
    """Create configuration error."""
    return Err(AppError(
        code=code,
        message=message,
        context=ErrorContext(origin=origin),
        metadata={k: v for k, v in metadata.items() if v is not None},
    ))


def unknown_rule(keys: list[str], origin: str = "") -> Err[AppError]:
    return configuration_error(
        f"Unknown rule key(s): {', '.join(keys)}",
        code=ErrorCode.E7001_UNKNOWN_RULE,
        origin=origin,
        keys=keys,
    )


def named_function_not_found(name: str, origin: str = "") -> Err[AppError]:
    return configuration_error(
        f"Named function not found in registry: {name}",
        code=ErrorCode.E7002_NAMED_FUNCTION_NOT_FOUND,
        origin=origin,
        name=name,
    )


def malformed_rule(reason: str, *, rule: Any = None, origin: str = "") -> Err[AppError]:
    return configuration_error(
        f"Malformed rule description: {reason}",
        code=ErrorCode.E7003_MALFORMED_RULE,
        origin=origin,
        rule=repr(rule) if rule is not None else None,
    )


def invalid_schema(reason: str, origin: str = "") -> Err[AppError]:
    return configuration_error(
        f"Invalid schema description: {reason}",
        code=ErrorCode.E7004_INVALID_SCHEMA,
        origin=origin,
    )


def unknown_data_type(kind: Any, allowed: list[str], origin: str = "") -> Err[AppError]:
    return configuration_error(
        f"Unknown data type '{kind}'; expected one of: {', '.join(allowed)}",
        code=ErrorCode.E7005_UNKNOWN_DATA_TYPE,
        origin=origin,
        kind=str(kind),
    )


def raise_configuration_error(error: Err[AppError]) -> NoReturn:
    """Raise a built configuration error as RuleConfigurationError."""
    raise RuleConfigurationError(error.unwrap_err())
