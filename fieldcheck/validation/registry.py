"""Named-Function Registry

Data-described rules reference code by name (``{"custom": "isStrongPassword"}``).
Names resolve against a FunctionRegistry. Registration is a setup-time,
single-writer phase; lookups are read-only afterwards.
"""
from __future__ import annotations

from typing import Callable, Iterator

from fieldcheck.errors import named_function_not_found, raise_configuration_error
from fieldcheck.logging import registry_logger

log = registry_logger()


class FunctionRegistry:
    """Maps names to predicate/condition functions."""

    __slots__ = ("_functions",)

    def __init__(self, functions: dict[str, Callable] | None = None):
        self._functions: dict[str, Callable] = dict(functions or {})

    def register(self, name: str, fn: Callable) -> None:
        if not callable(fn): raise TypeError(f"Registered function '{name}' must be callable")
        if name in self._functions: log.info("named_function_replaced", name=name)
        self._functions[name] = fn
        log.debug("named_function_registered", name=name)

    def get(self, name: str) -> Callable:
        """Resolve ``name``; unknown names raise RuleConfigurationError."""
        if (fn := self._functions.get(name)) is None:
            log.error("named_function_not_found", name=name, registered=sorted(self._functions))
            raise_configuration_error(named_function_not_found(name, origin="registry"))
        return fn

    def contains(self, name: str) -> bool: return name in self._functions

    def names(self) -> list[str]: return sorted(self._functions)

    def clear(self) -> None:
        self._functions.clear()
        log.debug("named_functions_cleared")

    def __contains__(self, name: object) -> bool: return name in self._functions

    def __iter__(self) -> Iterator[str]: return iter(self._functions)

    def __len__(self) -> int: return len(self._functions)


# Process-wide default used when no registry is injected
default_registry = FunctionRegistry()


def register_named_function(name: str, fn: Callable) -> None:
    default_registry.register(name, fn)


def clear_named_functions() -> None:
    default_registry.clear()
