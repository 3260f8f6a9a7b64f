"""Shared fixtures."""

import pytest

from fieldcheck.validation import FunctionRegistry, clear_named_functions


@pytest.fixture(autouse=True)
def _reset_default_registry():
    """Named functions registered by one test must not leak into the next."""
    clear_named_functions()
    yield
    clear_named_functions()


@pytest.fixture
def registry() -> FunctionRegistry:
    return FunctionRegistry()


@pytest.fixture
def user_data() -> dict:
    return {
        "name": "Ada",
        "email": "ada@example.com",
        "age": 36,
        "address": {"street": "1 Analytical Way", "city": "London"},
        "alternateAddresses": [
            {"street": "2 Engine Rd", "city": "Paris"},
            {"street": "3 Loom St", "city": "Lyon"},
        ],
    }
