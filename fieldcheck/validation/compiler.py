"""Data-Described Rule Compiler

Turns plain data (dicts loaded from JSON/YAML or a database) into rules.
Functions cannot be serialized, so custom predicates, named conditions and
dependency checks are referenced by name and resolved against a
FunctionRegistry at compile time.

Every leaf key is parsed into a tagged spec model (discriminated on
``kind``) and then built by one exhaustive match. Anything the compiler
does not understand raises RuleConfigurationError; nothing degrades to an
always-pass rule.

Usage:
    schema = compile_schema({
        "fields": {
            "email": {"required": True, "email": True},
            "age": {"min": 18, "message": "Adults only"},
            "company": {"when": "isBusiness", "rule": {"required": True}},
        },
        "conditions": {"isBusiness": "isBusinessAccount"},
    })
"""
from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Annotated, Any, Callable, Literal, Mapping, Union, assert_never, get_args

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    TypeAdapter,
    ValidationError,
    field_validator,
)

from fieldcheck.errors import (
    AppError,
    Result,
    invalid_schema,
    malformed_rule,
    raise_configuration_error,
    try_result,
    unknown_rule,
)
from fieldcheck.logging import compiler_logger

from . import data_types, performance
from .conditions import when
from .data_types import DataType, is_type
from .nested import depends_on, each_item, nested, object_values
from .registry import FunctionRegistry, default_registry
from .rules import (
    all_of,
    custom,
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
)
from .types import ConditionalRule, ValidateOptions, ValidationRule, ValidationSchema, is_rule

log = compiler_logger()

Number = Union[StrictInt, StrictFloat]


# ============================================================================
# Leaf Specs (tagged variants)
# ============================================================================

class _LeafSpec(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")
    message: str | None = None
    message_id: str | None = None


class RequiredSpec(_LeafSpec):
    kind: Literal["required"]
    value: StrictBool = True


class FormatSpec(_LeafSpec):
    kind: Literal["email", "uuid", "ip", "ipv4", "ipv6", "url", "date", "json", "numeric", "unique"]
    value: StrictBool = True


class LengthSpec(_LeafSpec):
    kind: Literal["minLength", "maxLength"]
    value: StrictInt = Field(ge=0)


class BoundSpec(_LeafSpec):
    kind: Literal["min", "max", "gt", "lt", "gte", "lte"]
    value: Number


class EqualitySpec(_LeafSpec):
    kind: Literal["equals", "eq", "notEquals", "neq"]
    value: Any


class MembershipSpec(_LeafSpec):
    kind: Literal["oneOf", "inList", "notOneOf", "notInList"]
    value: list[Any]


class PatternSpec(_LeafSpec):
    kind: Literal["matches", "pattern"]
    value: str

    @field_validator("value")
    @classmethod
    def _compiles(cls, v: str) -> str:
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"invalid regular expression: {e}") from e
        return v


class DataTypeSpec(_LeafSpec):
    kind: Literal["datatype"]
    value: DataType


class GuardSpec(_LeafSpec):
    kind: Literal["safeSizeString", "safeSizeArray", "safeSizeObject", "safeSizeJSON", "safeDepth"]
    value: StrictInt | None = Field(default=None, ge=0)


class CustomSpec(_LeafSpec):
    kind: Literal["custom"]
    value: str


LEAF_SPECS = (RequiredSpec, FormatSpec, LengthSpec, BoundSpec, EqualitySpec, MembershipSpec, PatternSpec,
              DataTypeSpec, GuardSpec, CustomSpec)

LeafSpec = Annotated[
    Union[RequiredSpec, FormatSpec, LengthSpec, BoundSpec, EqualitySpec, MembershipSpec, PatternSpec,
          DataTypeSpec, GuardSpec, CustomSpec],
    Field(discriminator="kind"),
]

_leaf_adapter: TypeAdapter[LeafSpec] = TypeAdapter(LeafSpec)

LEAF_KEYS: frozenset[str] = frozenset(k for spec in LEAF_SPECS for k in get_args(spec.model_fields["kind"].annotation))
SHARED_KEYS = frozenset({"message", "messageId"})
OPTION_FORM_KEYS = frozenset({"value", "message", "messageId"})

FORMAT_RULES: dict[str, Callable[..., ValidationRule]] = {
    "email": data_types.is_email,
    "uuid": data_types.is_uuid,
    "ip": data_types.is_ip,
    "ipv4": data_types.is_ipv4,
    "ipv6": data_types.is_ipv6,
    "url": data_types.is_url,
    "date": data_types.is_date,
    "json": data_types.is_json,
    "numeric": data_types.is_numeric,
    "unique": data_types.unique,
}

GUARD_RULES: dict[str, Callable[..., ValidationRule]] = {
    "safeSizeString": performance.safe_size_string,
    "safeSizeArray": performance.safe_size_array,
    "safeSizeObject": performance.safe_size_object,
    "safeSizeJSON": performance.safe_size_json,
    "safeDepth": performance.safe_depth,
}

# Vocabulary used in entity message ids
RULE_TYPE_ALIASES = {
    "equals": "eq", "eq": "eq",
    "notEquals": "neq", "neq": "neq",
    "oneOf": "oneOf", "inList": "oneOf",
    "notOneOf": "notOneOf", "notInList": "notOneOf",
    "matches": "matches", "pattern": "matches",
}


# ============================================================================
# Composite Options
# ============================================================================

class _Options(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)
    message: str | None = None
    message_id: str | None = Field(default=None, alias="messageId")


class NestedOptions(_Options):
    required: StrictBool = True
    collect_errors: StrictBool = Field(default=True, alias="collectErrors")


class CollectionOptions(_Options):
    required: StrictBool = False
    stop_on_first_error: StrictBool = Field(default=False, alias="stopOnFirstError")


class DependsOnOptions(_Options):
    pass


# Composite key -> sibling keys it accepts
COMPOSITE_SHAPES: dict[str, frozenset[str]] = {
    "when": frozenset({"rule"}),
    "whenAll": frozenset({"rule"}),
    "whenAny": frozenset({"rule"}),
    "whenNot": frozenset({"rule"}),
    "nested": frozenset({"schema", "options"}),
    "eachItem": frozenset({"options"}),
    "objectValues": frozenset({"options"}),
    "dependsOn": frozenset({"condition", "options"}),
}


def _fail(reason: str, rule: Any = None) -> Any:
    log.error("rule_compilation_failed", reason=reason)
    raise_configuration_error(malformed_rule(reason, rule=rule, origin="compiler"))


def _is_option_form(raw: Any) -> bool:
    """``{"value": ..., "message": ..., "messageId": ...}`` rather than a raw parameter."""
    return isinstance(raw, Mapping) and bool(raw) and set(raw) <= OPTION_FORM_KEYS


# ============================================================================
# Compiler
# ============================================================================

class RuleCompiler:
    """Compiles rule and schema descriptions against one registry."""

    def __init__(self, registry: FunctionRegistry | None = None):
        self.registry = registry if registry is not None else default_registry

    # -- leaves ---------------------------------------------------------------

    def parse_leaf(self, key: str, raw: Any, message: str | None = None, message_id: str | None = None) -> LeafSpec:
        payload: dict[str, Any] = {"kind": key, "message": message, "message_id": message_id}
        if _is_option_form(raw):
            if "value" in raw: payload["value"] = raw["value"]
            payload["message"] = raw.get("message", message)
            payload["message_id"] = raw.get("messageId", message_id)
        else:
            payload["value"] = raw
        try:
            return _leaf_adapter.validate_python(payload)
        except ValidationError as e:
            first = e.errors()[0]
            return _fail(f"'{key}': {first['msg']}", {key: raw})

    def build_leaf(self, spec: LeafSpec) -> ValidationRule | None:
        """Build the rule for one parsed leaf; disabled flags build nothing."""
        opts = {"message": spec.message, "message_id": spec.message_id}
        match spec:
            case RequiredSpec(value=False) | FormatSpec(value=False):
                return None
            case RequiredSpec():
                return required(**opts)
            case FormatSpec(kind=kind):
                return FORMAT_RULES[kind](**opts)
            case LengthSpec(kind="minLength", value=n):
                return min_length(n, **opts)
            case LengthSpec(value=n):
                return max_length(n, **opts)
            case BoundSpec(kind="min" | "gte", value=n):
                return min_value(n, **opts)
            case BoundSpec(kind="gt", value=n):
                return min_value(n + 1, **opts)
            case BoundSpec(kind="max" | "lte", value=n):
                return max_value(n, **opts)
            case BoundSpec(value=n):
                return max_value(n - 1, **opts)
            case EqualitySpec(kind="equals" | "eq", value=v):
                return equals(v, **opts)
            case EqualitySpec(value=v):
                return not_equals(v, **opts)
            case MembershipSpec(kind="oneOf" | "inList", value=v):
                return one_of(v, **opts)
            case MembershipSpec(value=v):
                return not_one_of(v, **opts)
            case PatternSpec(value=pattern):
                return matches(pattern, **opts)
            case DataTypeSpec(value=data_type):
                return is_type(data_type, **opts)
            case GuardSpec(kind=kind, value=limit):
                return GUARD_RULES[kind](limit, **opts)
            case CustomSpec(value=name):
                return custom(self.registry.get(name), **opts)
            case _:
                assert_never(spec)

    def leaf_parts(self, description: Mapping[str, Any]) -> list[tuple[str, ValidationRule]]:
        """``(key, rule)`` for every enabled leaf key, in key order."""
        if unknown := [k for k in description if k not in LEAF_KEYS and k not in SHARED_KEYS]:
            log.error("unknown_rule_keys", keys=unknown)
            raise_configuration_error(unknown_rule(unknown, origin="compiler"))
        message, message_id = description.get("message"), description.get("messageId")
        parts = []
        for key, raw in description.items():
            if key in SHARED_KEYS: continue
            if (built := self.build_leaf(self.parse_leaf(key, raw, message, message_id))) is not None:
                parts.append((key, built))
        return parts

    # -- composites -----------------------------------------------------------

    def composite_key(self, description: Mapping[str, Any]) -> str | None:
        """The composite key of a description, validating its sibling keys."""
        found = [k for k in description if k in COMPOSITE_SHAPES]
        if not found: return None
        if len(found) > 1: _fail(f"conflicting composite keys {found}", description)
        key = found[0]
        if extra := set(description) - COMPOSITE_SHAPES[key] - {key}:
            _fail(f"'{key}' does not accept sibling keys {sorted(extra)}", description)
        return key

    def _options(self, model: type[_Options], raw: Any) -> Any:
        if raw is None: return model()
        if not isinstance(raw, Mapping): _fail("'options' must be an object", raw)
        try:
            return model.model_validate(raw)
        except ValidationError as e:
            return _fail(f"options: {e.errors()[0]['msg']}", raw)

    def condition(self, condition: Any) -> Any:
        """Check a data condition: a name or an ``all``/``any``/``not`` expression."""
        if isinstance(condition, str): return condition
        if isinstance(condition, Mapping) and len(condition) == 1:
            op, operand = next(iter(condition.items()))
            if op in ("all", "any") and isinstance(operand, list):
                return {op: [self.condition(c) for c in operand]}
            if op == "not":
                return {"not": self.condition(operand)}
        return _fail("conditions must be names or {all|any|not} expressions", condition)

    def build_composite(self, key: str, description: Mapping[str, Any]) -> ValidationRule | ConditionalRule:
        if key in ("when", "whenAll", "whenAny", "whenNot"):
            if "rule" not in description: _fail(f"'{key}' requires a 'rule'", description)
            inner = self.rule(description["rule"])
            if isinstance(inner, ConditionalRule): _fail("conditional rules cannot be nested", description)
            raw = description[key]
            if key == "when": return when(self.condition(raw), inner)
            if key == "whenNot": return when({"not": self.condition(raw)}, inner)
            if not isinstance(raw, list): _fail(f"'{key}' expects a list of conditions", description)
            op = "all" if key == "whenAll" else "any"
            return when({op: [self.condition(c) for c in raw]}, inner)

        if key == "nested":
            path = description["nested"]
            if not isinstance(path, (str, list)): _fail("'nested' expects a path string or list", description)
            if "schema" not in description: _fail("'nested' requires a 'schema'", description)
            opts = self._options(NestedOptions, description.get("options"))
            return nested(path, self.schema(description["schema"]), required=opts.required, message=opts.message,
                          message_id=opts.message_id, options=ValidateOptions(collect_errors=opts.collect_errors))

        if key in ("eachItem", "objectValues"):
            inner = self.rule(description[key])
            if isinstance(inner, ConditionalRule): _fail(f"'{key}' cannot wrap a conditional rule", description)
            opts = self._options(CollectionOptions, description.get("options"))
            factory = each_item if key == "eachItem" else object_values
            return factory(inner, required=opts.required, stop_on_first_error=opts.stop_on_first_error,
                           message=opts.message, message_id=opts.message_id)

        # dependsOn
        path, name = description["dependsOn"], description.get("condition")
        if not isinstance(path, (str, list)): _fail("'dependsOn' expects a path string or list", description)
        if not isinstance(name, str): _fail("'dependsOn' requires a 'condition' naming a registered function", description)
        opts = self._options(DependsOnOptions, description.get("options"))
        return depends_on(path, self.registry.get(name), message=opts.message, message_id=opts.message_id)

    # -- entry points ---------------------------------------------------------

    def rule(self, description: Any) -> ValidationRule | ConditionalRule:
        """Compile one description (mapping, list of mappings, or an already-built rule)."""
        if isinstance(description, ConditionalRule) or is_rule(description): return description
        if isinstance(description, list):
            compiled = [self.rule(d) for d in description]
            if any(isinstance(c, ConditionalRule) for c in compiled):
                _fail("conditional rules cannot be combined in a list", description)
            return compiled[0] if len(compiled) == 1 else all_of(*compiled)
        if not isinstance(description, Mapping): _fail("rule description must be an object or list", description)
        if not description: _fail("empty rule description", description)
        if key := self.composite_key(description): return self.build_composite(key, description)
        parts = [r for _, r in self.leaf_parts(description)]
        return parts[0] if len(parts) == 1 else all_of(*parts)

    def schema(self, description: Any) -> ValidationSchema:
        if isinstance(description, ValidationSchema): return description
        if not isinstance(description, Mapping) or not isinstance(description.get("fields"), Mapping):
            raise_configuration_error(invalid_schema("expected an object with a 'fields' object", origin="compiler"))
        if extra := set(description) - {"fields", "conditions"}:
            raise_configuration_error(invalid_schema(f"unexpected keys {sorted(extra)}", origin="compiler"))

        fields = {name: self.rule(d) for name, d in description["fields"].items()}
        conditions: dict[str, Callable] = {}
        for name, ref in (description.get("conditions") or {}).items():
            if not isinstance(ref, str):
                raise_configuration_error(invalid_schema(
                    f"condition '{name}' must name a registered function", origin="compiler"))
            conditions[name] = self.registry.get(ref)

        log.debug("schema_compiled", fields=list(fields), conditions=list(conditions))
        return ValidationSchema(fields=fields, conditions=conditions)

    def rule_parts(self, description: Any) -> list[tuple[str, ValidationRule | ConditionalRule]]:
        """Split a description into ``(rule_type, rule)`` parts, one per leaf key.

        Conditional descriptions yield one conditional part per inner leaf,
        typed after the inner rule.
        """
        if isinstance(description, list):
            return [part for d in description for part in self.rule_parts(d)]
        if not isinstance(description, Mapping) or not description:
            return [("", self.rule(description))]
        if key := self.composite_key(description):
            compiled = self.build_composite(key, description)
            if isinstance(compiled, ConditionalRule):
                return [(rule_type, ConditionalRule(rule=inner, when=compiled.when))
                        for rule_type, inner in self.rule_parts(description["rule"])]
            return [(key, compiled)]
        return [(self.rule_type(key, description[key]), built) for key, built in self.leaf_parts(description)]

    @staticmethod
    def rule_type(key: str, raw: Any) -> str:
        if key == "datatype": return str(raw["value"] if _is_option_form(raw) else raw)
        return RULE_TYPE_ALIASES.get(key, key)


# ============================================================================
# Module API
# ============================================================================

def compile_rule(description: Any, registry: FunctionRegistry | None = None) -> ValidationRule | ConditionalRule:
    """Compile a rule description; misconfiguration raises RuleConfigurationError."""
    return RuleCompiler(registry).rule(description)


def compile_schema(description: Any, registry: FunctionRegistry | None = None) -> ValidationSchema:
    """Compile ``{"fields": {...}, "conditions": {...}}`` into a ValidationSchema."""
    return RuleCompiler(registry).schema(description)


def try_compile_rule(description: Any, registry: FunctionRegistry | None = None
                     ) -> Result[ValidationRule | ConditionalRule, AppError]:
    return try_result(lambda: compile_rule(description, registry), origin="compile_rule")


def try_compile_schema(description: Any, registry: FunctionRegistry | None = None
                       ) -> Result[ValidationSchema, AppError]:
    return try_result(lambda: compile_schema(description, registry), origin="compile_schema")


def describe_rule_parts(description: Any, registry: FunctionRegistry | None = None
                        ) -> list[tuple[str, ValidationRule | ConditionalRule]]:
    return RuleCompiler(registry).rule_parts(description)


DESCRIPTION_LOADERS: dict[str, Callable[[str], Any]] = {
    ".json": json.loads,
    ".yaml": yaml.safe_load,
    ".yml": yaml.safe_load,
}


def load_schema_description(path: str | Path) -> dict[str, Any]:
    """Read a schema description from a ``.json``, ``.yaml`` or ``.yml`` file."""
    path = Path(path)
    if (loader := DESCRIPTION_LOADERS.get(path.suffix.lower())) is None:
        raise_configuration_error(invalid_schema(f"unsupported file type '{path.suffix}'",
                                                 origin="load_schema_description"))
    try:
        data = loader(path.read_text(encoding="utf-8"))
    except (yaml.YAMLError, ValueError) as e:
        raise_configuration_error(invalid_schema(f"{path.name}: {e}", origin="load_schema_description"))
    if not isinstance(data, dict):
        raise_configuration_error(invalid_schema(f"{path.name}: top level must be an object",
                                                 origin="load_schema_description"))
    return data
