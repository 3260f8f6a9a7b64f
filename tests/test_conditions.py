"""Condition evaluation, conditional builders and helper factories."""

import pytest

from fieldcheck.validation import (
    ConditionalRule,
    condition_context,
    condition_equals,
    condition_exists,
    condition_greater_than,
    condition_less_than,
    condition_not_equals,
    condition_one_of,
    evaluate_condition,
    required,
    when,
    when_all,
    when_any,
    when_not,
)

NAMED = {
    "isBusiness": lambda data: data.get("type") == "business",
    "isLarge": lambda data: data.get("employees", 0) > 100,
}


class TestEvaluateCondition:
    async def test_none_is_true(self):
        assert await evaluate_condition(None, {}, NAMED)

    async def test_named_lookup(self):
        assert await evaluate_condition("isBusiness", {"type": "business"}, NAMED)
        assert not await evaluate_condition("isBusiness", {"type": "personal"}, NAMED)

    async def test_missing_name_is_false_not_error(self):
        assert await evaluate_condition("doesNotExist", {}, NAMED) is False

    async def test_callable_gets_context(self):
        cond = lambda data, ctx: ctx["role"] == "admin"  # noqa: E731
        assert await evaluate_condition(cond, {}, None, {"role": "admin"})

    async def test_async_callable(self):
        async def is_set(data):
            return bool(data.get("flag"))

        assert await evaluate_condition(is_set, {"flag": 1})

    async def test_raising_condition_is_false(self):
        def broken(data):
            raise KeyError("nope")

        assert await evaluate_condition(broken, {}) is False

    @pytest.mark.parametrize("expression,data,expected", [
        ({"all": ["isBusiness", "isLarge"]}, {"type": "business", "employees": 500}, True),
        ({"all": ["isBusiness", "isLarge"]}, {"type": "business", "employees": 5}, False),
        ({"any": ["isBusiness", "isLarge"]}, {"type": "personal", "employees": 500}, True),
        ({"any": []}, {}, False),
        ({"all": []}, {}, True),
        ({"not": "isBusiness"}, {"type": "personal"}, True),
        ({"all": ["isBusiness", {"not": "isLarge"}]}, {"type": "business", "employees": 5}, True),
        ({"unknown": "isBusiness"}, {"type": "business"}, False),
    ])
    async def test_expressions(self, expression, data, expected):
        assert await evaluate_condition(expression, data, NAMED) is expected

    async def test_all_takes_precedence_over_any(self):
        expression = {"all": ["isBusiness"], "any": ["isLarge"]}
        assert await evaluate_condition(expression, {"type": "business", "employees": 0}, NAMED)

    async def test_short_circuit(self):
        calls = []

        def track(name, outcome):
            def fn(data):
                calls.append(name)
                return outcome
            return fn

        await evaluate_condition({"any": [track("first", True), track("second", True)]}, {})
        assert calls == ["first"]


class TestBuilders:
    def test_when(self):
        rule = required()
        assert when("isBusiness", rule) == ConditionalRule(rule=rule, when="isBusiness")

    def test_when_all_any_not(self):
        rule = required()
        assert when_all(["a", "b"], rule).when == {"all": ["a", "b"]}
        assert when_any(["a", "b"], rule).when == {"any": ["a", "b"]}
        assert when_not("a", rule).when == {"not": "a"}


class TestHelpers:
    def test_equality_helpers(self):
        assert condition_equals("type", "business")({"type": "business"})
        assert not condition_equals("type", "business")(None)
        assert condition_not_equals("type", "business")({"type": "personal"})
        assert condition_one_of("type", ["a", "b"])({"type": "b"})

    def test_exists(self):
        assert condition_exists("company")({"company": "Acme"})
        assert not condition_exists("company")({"company": ""})
        assert not condition_exists("company")({})

    def test_numeric_comparisons(self):
        assert condition_greater_than("age", 17)({"age": 18})
        assert not condition_greater_than("age", 17)({"age": "18"})
        assert condition_less_than("age", 18)({"age": 17})

    def test_nested_key(self):
        assert condition_equals("owner.role", "admin")({"owner": {"role": "admin"}})

    def test_context_helper(self):
        check = condition_context("tenant", "acme")
        assert check({}, {"tenant": "acme"})
        assert not check({}, None)
