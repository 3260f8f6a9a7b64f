"""Validation Engine

Composable rules, conditional composition, nested/collection validators,
an HTTP request layer, a data-described rule compiler and an entity facade.

Usage:
    from fieldcheck.validation import ValidationSchema, required, min_length, validate

    schema = ValidationSchema(fields={"name": required() & min_length(2)})
    result = await validate({"name": "A"}, schema)
    result.to_dict()
    # {"pass": False, "errors": [{"path": ["name"], "message": "Must be at least 2 characters", ...}]}
"""
from .types import (
    AbsentPolicy,
    ConditionalRule,
    ConditionExpression,
    ConditionReference,
    ValidateOptions,
    ValidationErrorDetail,
    ValidationResult,
    ValidationRule,
    ValidationSchema,
)

from .rules import (
    all_of,
    custom,
    email,
    equals,
    matches,
    max_length,
    max_value,
    min_length,
    min_value,
    not_equals,
    not_one_of,
    one_of,
    required,
    rule,
)

from .data_types import (
    DataType,
    is_date,
    is_email,
    is_ip,
    is_ipv4,
    is_ipv6,
    is_json,
    is_numeric,
    is_type,
    is_url,
    is_uuid,
    unique,
)

from .performance import (
    safe_depth,
    safe_size_array,
    safe_size_json,
    safe_size_object,
    safe_size_string,
)

from .conditions import (
    condition_context,
    condition_equals,
    condition_exists,
    condition_greater_than,
    condition_less_than,
    condition_not_equals,
    condition_one_of,
    evaluate_condition,
    when,
    when_all,
    when_any,
    when_not,
)

from .paths import get_nested_property
from .validator import Validator, validate, validate_sync
from .nested import depends_on, each_item, nested, object_values

from .http import (
    HttpRequest,
    HttpValidateOptions,
    HttpValidationSchema,
    HttpValidator,
    http_validate,
)

from .registry import (
    FunctionRegistry,
    clear_named_functions,
    default_registry,
    register_named_function,
)

from .compiler import (
    RuleCompiler,
    compile_rule,
    compile_schema,
    describe_rule_parts,
    load_schema_description,
    try_compile_rule,
    try_compile_schema,
)

from .entity import (
    EntityValidationRequest,
    EntityValidator,
    InputValidationResult,
    validate_entity,
    validate_http_request,
    validate_input,
)

from .boundaries import ValidatedRequest, request_from_starlette

__all__ = [
    # Types
    "AbsentPolicy",
    "ConditionalRule",
    "ConditionExpression",
    "ConditionReference",
    "ValidateOptions",
    "ValidationErrorDetail",
    "ValidationResult",
    "ValidationRule",
    "ValidationSchema",
    # Rules
    "all_of",
    "custom",
    "email",
    "equals",
    "matches",
    "max_length",
    "max_value",
    "min_length",
    "min_value",
    "not_equals",
    "not_one_of",
    "one_of",
    "required",
    "rule",
    # Data types
    "DataType",
    "is_date",
    "is_email",
    "is_ip",
    "is_ipv4",
    "is_ipv6",
    "is_json",
    "is_numeric",
    "is_type",
    "is_url",
    "is_uuid",
    "unique",
    # Performance guards
    "safe_depth",
    "safe_size_array",
    "safe_size_json",
    "safe_size_object",
    "safe_size_string",
    # Conditions
    "condition_context",
    "condition_equals",
    "condition_exists",
    "condition_greater_than",
    "condition_less_than",
    "condition_not_equals",
    "condition_one_of",
    "evaluate_condition",
    "when",
    "when_all",
    "when_any",
    "when_not",
    # Schema validation
    "get_nested_property",
    "Validator",
    "validate",
    "validate_sync",
    "depends_on",
    "each_item",
    "nested",
    "object_values",
    # HTTP
    "HttpRequest",
    "HttpValidateOptions",
    "HttpValidationSchema",
    "HttpValidator",
    "http_validate",
    # Registry & compiler
    "FunctionRegistry",
    "clear_named_functions",
    "default_registry",
    "register_named_function",
    "RuleCompiler",
    "compile_rule",
    "compile_schema",
    "describe_rule_parts",
    "load_schema_description",
    "try_compile_rule",
    "try_compile_schema",
    # Entity
    "EntityValidationRequest",
    "EntityValidator",
    "InputValidationResult",
    "validate_entity",
    "validate_http_request",
    "validate_input",
    # FastAPI boundary
    "ValidatedRequest",
    "request_from_starlette",
]
