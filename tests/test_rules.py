"""Rule primitives and the built-in catalog."""

import asyncio

import pytest

from fieldcheck.validation import (
    AbsentPolicy,
    ValidationResult,
    ValidationRule,
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


class TestRuleAdapter:
    async def test_true_predicate_passes(self):
        result = await rule(lambda v: v > 1).validate(2)
        assert result.passed
        assert result.errors is None

    async def test_false_predicate_uses_default_message(self):
        result = await rule(lambda v: False).validate("x")
        assert not result.passed
        assert result.errors[0].message == "Validation failed"

    async def test_message_and_id_overrides(self):
        result = await rule(lambda v: False, message="Nope", message_id="custom.nope").validate(1)
        assert result.errors[0].message == "Nope"
        assert result.errors[0].message_ids == ("custom.nope",)

    async def test_exception_becomes_failure(self):
        def boom(value):
            raise RuntimeError("kaboom")

        result = await rule(boom, message="ignored").validate(1)
        assert not result.passed
        assert result.errors[0].message == "Validation error occurred"

    async def test_async_predicate(self):
        async def positive(value):
            await asyncio.sleep(0)
            return value > 0

        assert (await rule(positive).validate(3)).passed
        assert not (await rule(positive).validate(-3)).passed

    async def test_predicate_receives_context(self):
        r = rule(lambda v, ctx: v == ctx["expected"])
        assert (await r.validate(5, {"expected": 5})).passed
        assert not (await r.validate(5, {"expected": 6})).passed

    @pytest.mark.parametrize("policy,expected", [
        (AbsentPolicy.FAIL, False),
        (AbsentPolicy.PASS, True),
        (AbsentPolicy.EVALUATE, True),
    ])
    async def test_absent_policy(self, policy, expected):
        r = rule(lambda v: v is None, absent=policy)
        assert (await r.validate(None)).passed is expected

    async def test_and_operator_composes(self):
        combined = required() & min_length(3)
        assert isinstance(combined, ValidationRule)
        result = await combined.validate("ab")
        assert [e.message_ids[0] for e in result.errors] == ["validation.minLength"]


class TestAllOf:
    async def test_collects_every_failure(self):
        result = await all_of(min_length(5), matches(r"^\d+$")).validate("abc")
        assert [e.message_ids for e in result.errors] == [("validation.minLength",), ("validation.pattern",)]

    async def test_stop_on_first_error(self):
        result = await all_of(min_length(5), matches(r"^\d+$"), stop_on_first_error=True).validate("abc")
        assert len(result.errors) == 1

    async def test_empty_passes(self):
        assert (await all_of().validate("anything")).passed

    async def test_accepts_duck_typed_rules(self):
        class AlwaysFails:
            def validate(self, value, context=None):
                return ValidationResult.failure("duck says no")

        result = await all_of(AlwaysFails()).validate(1)
        assert result.errors[0].message == "duck says no"


class TestRequired:
    @pytest.mark.parametrize("value", [None, "", "   ", "\t\n"])
    async def test_missing_values_fail(self, value):
        result = await required().validate(value)
        assert not result.passed
        assert result.errors[0].message == "Field is required"
        assert result.errors[0].message_ids == ("validation.required",)

    @pytest.mark.parametrize("value", ["x", 0, False, [], {}])
    async def test_present_values_pass(self, value):
        assert (await required().validate(value)).passed


class TestLength:
    async def test_min_length(self):
        assert (await min_length(3).validate("abc")).passed
        result = await min_length(3).validate("ab")
        assert result.errors[0].message == "Must be at least 3 characters"
        assert result.errors[0].expected == 3
        assert result.errors[0].received == "ab"

    async def test_max_length(self):
        assert (await max_length(2).validate([1, 2])).passed
        result = await max_length(2).validate("abc")
        assert result.errors[0].message == "Must be at most 2 characters"
        assert result.errors[0].message_ids == ("validation.maxLength",)

    async def test_absent_or_unsized_fails(self):
        assert not (await min_length(1).validate(None)).passed
        assert not (await min_length(1).validate(42)).passed


class TestPatterns:
    async def test_matches_uses_search(self):
        assert (await matches(r"\d").validate("abc1")).passed
        result = await matches(r"^\d+$").validate("12a")
        assert result.errors[0].message == "Must match the required pattern"
        assert result.errors[0].message_ids == ("validation.pattern",)

    async def test_email(self):
        assert (await email().validate("a@b.co")).passed
        result = await email().validate("not-an-email")
        assert result.errors[0].message == "Must be a valid email"
        assert not (await email().validate(None)).passed


class TestEqualityAndMembership:
    async def test_equals(self):
        assert (await equals("admin").validate("admin")).passed
        result = await equals("admin").validate("user")
        assert result.errors[0].message == "Must equal admin"
        assert result.errors[0].message_ids == ("validation.equals",)

    async def test_not_equals(self):
        result = await not_equals("root").validate("root")
        assert result.errors[0].message == "Must not equal root"
        assert result.errors[0].message_ids == ("validation.notEquals",)

    async def test_one_of(self):
        assert (await one_of(["a", "b"]).validate("a")).passed
        result = await one_of(["a", "b"]).validate("c")
        assert result.errors[0].message == "Must be one of: a, b"

    async def test_not_one_of(self):
        result = await not_one_of(["a", "b"]).validate("b")
        assert result.errors[0].message == "Must not be one of: a, b"
        assert result.errors[0].message_ids == ("validation.notOneOf",)


class TestRanges:
    async def test_min_value_inclusive(self):
        assert (await min_value(18).validate(18)).passed
        result = await min_value(18).validate(16)
        assert result.errors[0].message == "Must be at least 18"
        assert result.errors[0].message_ids == ("validation.min",)

    async def test_max_value_inclusive(self):
        assert (await max_value(10).validate(10.0)).passed
        assert (await max_value(10).validate(11)).errors[0].message == "Must be at most 10"

    @pytest.mark.parametrize("value", [None, "20", True])
    async def test_non_numbers_fail(self, value):
        assert not (await min_value(0).validate(value)).passed


class TestCustom:
    async def test_custom_defaults(self):
        result = await custom(lambda v: v % 2 == 0).validate(3)
        assert result.errors[0].message == "Failed custom validation"
        assert result.errors[0].message_ids == ("validation.custom",)

    async def test_custom_sees_context(self):
        r = custom(lambda v, ctx: v != ctx["parent"]["username"])
        assert not (await r.validate("ada", {"parent": {"username": "ada"}})).passed


@pytest.mark.parametrize("catalog_rule", [
    required(),
    min_length(0),
    max_length(10),
    matches(r".*"),
    email(),
    equals(None),
    not_equals(5),
    min_value(0),
    max_value(10),
    one_of([None, 1]),
    not_one_of([1]),
    custom(lambda v: True),
], ids=lambda r: r.message_id)
async def test_catalog_rules_fail_on_absent_value(catalog_rule):
    result = await catalog_rule.validate(None)
    assert not result.passed
    assert result.errors[0].message_ids == (catalog_rule.message_id,)
