"""Data-described rule compiler and the named-function registry."""

import json

import pytest

from fieldcheck.errors import ErrorCode, RuleConfigurationError
from fieldcheck.validation import (
    ConditionalRule,
    FunctionRegistry,
    ValidateOptions,
    ValidationSchema,
    compile_rule,
    compile_schema,
    describe_rule_parts,
    load_schema_description,
    register_named_function,
    try_compile_rule,
    try_compile_schema,
    validate,
)


async def _errors(description, value):
    result = await compile_rule(description).validate(value)
    return [] if result.passed else list(result.errors)


class TestLeafKeys:
    @pytest.mark.parametrize("description,good,bad,message_id", [
        ({"required": True}, "x", "", "validation.required"),
        ({"minLength": 3}, "abc", "ab", "validation.minLength"),
        ({"maxLength": 3}, "abc", "abcd", "validation.maxLength"),
        ({"min": 18}, 18, 17, "validation.min"),
        ({"max": 5}, 5, 6, "validation.max"),
        ({"gte": 18}, 18, 17, "validation.min"),
        ({"lte": 5}, 5, 6, "validation.max"),
        ({"equals": "a"}, "a", "b", "validation.equals"),
        ({"eq": "a"}, "a", "b", "validation.equals"),
        ({"neq": "a"}, "b", "a", "validation.notEquals"),
        ({"inList": ["a", "b"]}, "a", "c", "validation.oneOf"),
        ({"notInList": ["a", "b"]}, "c", "a", "validation.notOneOf"),
        ({"pattern": "^[a-z]+$"}, "abc", "ABC", "validation.pattern"),
        ({"email": True}, "a@b.co", "ab", "validation.email"),
        ({"uuid": True}, "123e4567-e89b-12d3-a456-426614174000", "nope", "validation.uuid"),
        ({"ipv4": True}, "10.0.0.1", "::1", "validation.ipv4"),
        ({"url": True}, "https://example.com", "example", "validation.url"),
        ({"numeric": True}, "42", "4.2", "validation.numeric"),
        ({"unique": True}, [1, 2], [1, 1], "validation.unique"),
        ({"datatype": "boolean"}, True, "true", "validation.type"),
        ({"safeSizeArray": 2}, [1, 2], [1, 2, 3], "validation.performance.array"),
        ({"safeDepth": 1}, {"a": 1}, {"a": {"b": 1}}, "validation.performance.depth"),
    ])
    async def test_leaf(self, description, good, bad, message_id):
        assert await _errors(description, good) == []
        errors = await _errors(description, bad)
        assert errors[0].message_ids == (message_id,)

    async def test_gt_and_lt_are_exclusive(self):
        assert await _errors({"gt": 5}, 5)
        assert not await _errors({"gt": 5}, 6)
        assert await _errors({"lt": 5}, 5)
        assert not await _errors({"lt": 5}, 4)

    async def test_value_form_with_message(self):
        errors = await _errors({"minLength": {"value": 3, "message": "Too short", "messageId": "name.short"}}, "a")
        assert errors[0].message == "Too short"
        assert errors[0].message_ids == ("name.short",)

    async def test_sibling_message_applies_to_every_leaf(self):
        errors = await _errors({"required": True, "minLength": 3, "message": "Bad name"}, "")
        assert [e.message for e in errors] == ["Bad name", "Bad name"]

    async def test_multiple_leaves_keep_key_order(self):
        errors = await _errors({"minLength": 5, "pattern": "^\\d+$"}, "abc")
        assert [e.message_ids[0] for e in errors] == ["validation.minLength", "validation.pattern"]

    async def test_false_flag_adds_no_rule(self):
        assert await _errors({"required": False}, None) == []
        assert await _errors({"required": False, "minLength": 2}, "a")

    async def test_equals_accepts_object_values(self):
        assert not await _errors({"equals": {"a": 1}}, {"a": 1})

    async def test_list_compiles_to_all_of(self):
        errors = await _errors([{"required": True}, {"minLength": 2}], "")
        assert len(errors) == 2

    async def test_custom_resolves_from_registry(self):
        register_named_function("isEven", lambda v: v % 2 == 0)
        errors = await _errors({"custom": "isEven"}, 3)
        assert errors[0].message_ids == ("validation.custom",)


class TestCompositeShapes:
    async def test_when_with_schema_condition(self):
        register_named_function("isBusiness", lambda data: data.get("type") == "business")
        schema = compile_schema({
            "fields": {"company": {"when": "isBusiness", "rule": {"required": True}}},
            "conditions": {"isBusiness": "isBusiness"},
        })
        assert isinstance(schema.fields["company"], ConditionalRule)
        assert (await validate({"type": "personal"}, schema)).passed
        assert not (await validate({"type": "business"}, schema)).passed

    def test_when_all_any_not_shapes(self):
        assert compile_rule({"whenAll": ["a", "b"], "rule": {"required": True}}).when == {"all": ["a", "b"]}
        assert compile_rule({"whenAny": ["a", "b"], "rule": {"required": True}}).when == {"any": ["a", "b"]}
        assert compile_rule({"whenNot": "a", "rule": {"required": True}}).when == {"not": "a"}
        nested_expr = {"all": ["a", {"not": {"any": ["b", "c"]}}]}
        assert compile_rule({"when": nested_expr, "rule": {"required": True}}).when == nested_expr

    async def test_nested_schema(self):
        rule = compile_rule({"nested": "address", "schema": {"fields": {"city": {"minLength": 3}}}})
        result = await rule.validate({"address": {"city": "LA"}})
        assert result.errors[0].path == ("address", "city")

    async def test_nested_options(self):
        rule = compile_rule({"nested": "address", "schema": {"fields": {}}, "options": {"required": False}})
        assert (await rule.validate({})).passed

    async def test_each_item_with_options(self):
        rule = compile_rule({"eachItem": {"min": 0}, "options": {"stopOnFirstError": True}})
        result = await rule.validate([-1, -2])
        assert [e.path for e in result.errors] == [("0",)]

    async def test_object_values(self):
        result = await compile_rule({"objectValues": {"datatype": "number"}}).validate({"a": 1, "b": "x"})
        assert [e.path for e in result.errors] == [("b",)]

    async def test_depends_on(self):
        register_named_function("matchesPassword", lambda password, confirm: password == confirm)
        schema = compile_schema({"fields": {
            "confirmPassword": {"dependsOn": "password", "condition": "matchesPassword",
                                "options": {"message": "Passwords differ"}},
        }})
        result = await validate({"password": "a", "confirmPassword": "b"}, schema)
        assert result.errors[0].message == "Passwords differ"
        assert result.errors[0].message_ids == ("validation.dependsOn",)

    async def test_compiled_schema_validates_like_built_one(self, user_data):
        compiled = compile_schema({"fields": {
            "name": {"required": True, "minLength": 2},
            "alternateAddresses": {"eachItem": {"nested": "", "schema": {"fields": {"city": {"minLength": 6}}}}},
        }})
        result = await validate(user_data, compiled, options=ValidateOptions(verbose_errors=False))
        assert [e.path for e in result.errors] == [("alternateAddresses", "0", "city"),
                                                  ("alternateAddresses", "1", "city")]


class TestConfigurationErrors:
    @pytest.mark.parametrize("description,code", [
        ({"minLenght": 3}, ErrorCode.E7001_UNKNOWN_RULE),
        ({"minLength": "three"}, ErrorCode.E7003_MALFORMED_RULE),
        ({"minLength": -1}, ErrorCode.E7003_MALFORMED_RULE),
        ({"min": True}, ErrorCode.E7003_MALFORMED_RULE),
        ({"oneOf": "abc"}, ErrorCode.E7003_MALFORMED_RULE),
        ({"pattern": "(unclosed"}, ErrorCode.E7003_MALFORMED_RULE),
        ({"required": "yes"}, ErrorCode.E7003_MALFORMED_RULE),
        ({"datatype": "integer"}, ErrorCode.E7003_MALFORMED_RULE),
        ({}, ErrorCode.E7003_MALFORMED_RULE),
        ("required", ErrorCode.E7003_MALFORMED_RULE),
        ({"when": "x", "rule": {"required": True}, "minLength": 2}, ErrorCode.E7003_MALFORMED_RULE),
        ({"when": "x"}, ErrorCode.E7003_MALFORMED_RULE),
        ({"when": 42, "rule": {"required": True}}, ErrorCode.E7003_MALFORMED_RULE),
        ({"eachItem": {"when": "x", "rule": {"required": True}}}, ErrorCode.E7003_MALFORMED_RULE),
        ({"eachItem": {"min": 0}, "options": {"stopOnFirst": True}}, ErrorCode.E7003_MALFORMED_RULE),
        ({"custom": "notRegistered"}, ErrorCode.E7002_NAMED_FUNCTION_NOT_FOUND),
        ({"dependsOn": "password", "condition": "missing"}, ErrorCode.E7002_NAMED_FUNCTION_NOT_FOUND),
        ({"dependsOn": "password"}, ErrorCode.E7003_MALFORMED_RULE),
    ])
    def test_rule_errors(self, description, code):
        with pytest.raises(RuleConfigurationError) as exc:
            compile_rule(description)
        assert exc.value.code is code
        assert exc.value.code.category == "configuration"

    @pytest.mark.parametrize("description", [
        {"name": {"required": True}},
        {"fields": [], "conditions": {}},
        {"fields": {}, "extra": 1},
        {"fields": {}, "conditions": {"isX": {"fn": "x"}}},
    ])
    def test_schema_errors(self, description):
        with pytest.raises(RuleConfigurationError) as exc:
            compile_schema(description)
        assert exc.value.code is ErrorCode.E7004_INVALID_SCHEMA

    def test_unregistered_condition_name(self):
        with pytest.raises(RuleConfigurationError) as exc:
            compile_schema({"fields": {}, "conditions": {"isX": "neverRegistered"}})
        assert exc.value.code is ErrorCode.E7002_NAMED_FUNCTION_NOT_FOUND

    def test_try_compile_returns_result(self):
        assert try_compile_rule({"required": True}).is_ok()
        failed = try_compile_rule({"bogus": 1})
        assert failed.is_err()
        assert failed.unwrap_err().code is ErrorCode.E7001_UNKNOWN_RULE
        assert try_compile_schema({"fields": {"a": {"min": 1}}}).unwrap().fields


class TestInjectedRegistry:
    async def test_uses_injected_registry_only(self, registry):
        registry.register("isOdd", lambda v: v % 2 == 1)
        rule = compile_rule({"custom": "isOdd"}, registry)
        assert (await rule.validate(3)).passed
        with pytest.raises(RuleConfigurationError):
            compile_rule({"custom": "isOdd"})


class TestRegistry:
    def test_register_and_lookup(self, registry):
        fn = lambda v: True  # noqa: E731
        registry.register("always", fn)
        assert registry.get("always") is fn
        assert registry.contains("always")
        assert "always" in registry
        assert registry.names() == ["always"]

    def test_unknown_name_raises(self, registry):
        with pytest.raises(RuleConfigurationError) as exc:
            registry.get("missing")
        assert exc.value.code is ErrorCode.E7002_NAMED_FUNCTION_NOT_FOUND

    def test_clear(self, registry):
        registry.register("a", print)
        registry.clear()
        assert len(registry) == 0

    def test_rejects_non_callables(self, registry):
        with pytest.raises(TypeError):
            registry.register("x", 42)


class TestRuleParts:
    def test_types_follow_entity_vocabulary(self):
        parts = describe_rule_parts({"eq": "admin", "minLength": 2, "inList": ["a"], "pattern": "x",
                                     "datatype": "email", "notEquals": 1})
        assert [t for t, _ in parts] == ["eq", "minLength", "oneOf", "matches", "email", "neq"]

    def test_conditional_parts_take_inner_type(self):
        parts = describe_rule_parts({"when": "isAdmin", "rule": {"required": True, "minLength": 3}})
        assert [t for t, _ in parts] == ["required", "minLength"]
        assert all(isinstance(r, ConditionalRule) and r.when == "isAdmin" for _, r in parts)

    def test_lists_flatten(self):
        parts = describe_rule_parts([{"required": True}, {"eachItem": {"min": 1}}])
        assert [t for t, _ in parts] == ["required", "eachItem"]


class TestLoadSchemaDescription:
    def test_json(self, tmp_path):
        path = tmp_path / "user.json"
        path.write_text(json.dumps({"fields": {"name": {"required": True}}}))
        assert isinstance(compile_schema(load_schema_description(path)), ValidationSchema)

    def test_yaml(self, tmp_path):
        path = tmp_path / "user.yaml"
        path.write_text("fields:\n  age:\n    min: 18\n    message: Adults only\n")
        assert load_schema_description(path) == {"fields": {"age": {"min": 18, "message": "Adults only"}}}

    @pytest.mark.parametrize("name,content", [
        ("bad.json", "{not json"),
        ("list.yaml", "- a\n- b\n"),
        ("schema.toml", "fields = 1"),
    ])
    def test_rejects_bad_files(self, tmp_path, name, content):
        path = tmp_path / name
        path.write_text(content)
        with pytest.raises(RuleConfigurationError) as exc:
            load_schema_description(path)
        assert exc.value.code is ErrorCode.E7004_INVALID_SCHEMA
