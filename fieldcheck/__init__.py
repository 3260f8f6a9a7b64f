"""fieldcheck: schema-driven data validation."""
from fieldcheck.validation import (
    ValidateOptions,
    ValidationErrorDetail,
    ValidationResult,
    ValidationRule,
    ValidationSchema,
    clear_named_functions,
    compile_rule,
    compile_schema,
    http_validate,
    register_named_function,
    validate,
    validate_entity,
    validate_sync,
)
from fieldcheck.errors import RuleConfigurationError

__version__ = "0.1.0"

__all__ = [
    "ValidateOptions",
    "ValidationErrorDetail",
    "ValidationResult",
    "ValidationRule",
    "ValidationSchema",
    "RuleConfigurationError",
    "clear_named_functions",
    "compile_rule",
    "compile_schema",
    "http_validate",
    "register_named_function",
    "validate",
    "validate_entity",
    "validate_sync",
]
