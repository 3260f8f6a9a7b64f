"""Performance Guards

Reject payloads that are too large or too deep to validate cheaply. Guards
pass on absent values; a present value must have the guarded shape (the
string guard rejects a number). Limits default to the FIELDCHECK_SAFE_* settings.
"""
from __future__ import annotations

import json
from typing import Any, Mapping

from fieldcheck.config import get_settings

from .rules import rule
from .types import AbsentPolicy, ValidationRule


def _is_array(value: Any) -> bool: return isinstance(value, (list, tuple))


def _guard(check, message: str, message_id: str, limit: int, override: str | None,
           override_id: str | None) -> ValidationRule:
    return rule(check, message=override or message, message_id=override_id or message_id,
                absent=AbsentPolicy.PASS, expected=limit)


def safe_size_string(max_chars: int | None = None, *, message: str | None = None,
                     message_id: str | None = None) -> ValidationRule:
    limit = max_chars if max_chars is not None else get_settings().SAFE_MAX_STRING_LENGTH
    return _guard(lambda v: isinstance(v, str) and len(v) <= limit,
                  f"String exceeds maximum safe length of {limit} characters",
                  "validation.performance.string", limit, message, message_id)


def safe_size_array(max_items: int | None = None, *, message: str | None = None,
                    message_id: str | None = None) -> ValidationRule:
    limit = max_items if max_items is not None else get_settings().SAFE_MAX_ARRAY_LENGTH
    return _guard(lambda v: _is_array(v) and len(v) <= limit,
                  f"Array exceeds maximum safe length of {limit} items",
                  "validation.performance.array", limit, message, message_id)


def safe_size_object(max_keys: int | None = None, *, message: str | None = None,
                     message_id: str | None = None) -> ValidationRule:
    limit = max_keys if max_keys is not None else get_settings().SAFE_MAX_OBJECT_KEYS
    return _guard(lambda v: isinstance(v, Mapping) and len(v) <= limit,
                  f"Object exceeds maximum safe number of {limit} properties",
                  "validation.performance.object", limit, message, message_id)


def json_size(value: Any) -> int | None:
    """Approximate in-memory size: serialized length * 2 bytes. None when unserializable."""
    try:
        return len(json.dumps(value)) * 2
    except (TypeError, ValueError):
        return None


def safe_size_json(max_bytes: int | None = None, *, message: str | None = None,
                   message_id: str | None = None) -> ValidationRule:
    limit = max_bytes if max_bytes is not None else get_settings().SAFE_MAX_JSON_BYTES
    return _guard(lambda v: (size := json_size(v)) is not None and size <= limit,
                  f"Data exceeds maximum safe size of {limit} bytes",
                  "validation.performance.json", limit, message, message_id)


def exceeds_depth(value: Any, max_depth: int) -> bool:
    """True when nesting is deeper than ``max_depth``.

    Depth is the number of container steps down to the deepest member:
    ``{"a": 1}`` has depth 1, ``{"a": {"b": 1}}`` depth 2, ``{}`` depth 0.
    Descent stops as soon as the limit is exceeded.
    """
    stack: list[tuple[Any, int]] = [(value, 0)]
    while stack:
        current, depth = stack.pop()
        if depth > max_depth: return True
        if isinstance(current, Mapping): stack.extend((child, depth + 1) for child in current.values())
        elif _is_array(current): stack.extend((child, depth + 1) for child in current)
    return False


def safe_depth(max_depth: int | None = None, *, message: str | None = None,
               message_id: str | None = None) -> ValidationRule:
    limit = max_depth if max_depth is not None else get_settings().SAFE_MAX_DEPTH
    return _guard(lambda v: not exceeds_depth(v, limit),
                  f"Object exceeds maximum safe nesting depth of {limit}",
                  "validation.performance.depth", limit, message, message_id)
