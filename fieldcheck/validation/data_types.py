"""Data-Type Rules

Format and type checks. All of them fail on absent values. ``is_type`` is
the single dispatcher behind ``{"datatype": "..."}`` descriptions.
"""
from __future__ import annotations

import json
import re
from datetime import date, datetime
from enum import Enum
from ipaddress import IPv4Address, IPv6Address, ip_address
from typing import Any, Callable, Mapping, Sequence

from fieldcheck.errors import raise_configuration_error, unknown_data_type

from .rules import EMAIL_PATTERN, is_number, rule
from .types import AbsentPolicy, ValidationRule

UUID_PATTERN = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$", re.IGNORECASE)
URL_PATTERN = re.compile(
    r"^https?://(?:www\.)?[-a-zA-Z0-9@:%._+~#=]{1,256}\.[a-zA-Z0-9()]{1,6}\b(?:[-a-zA-Z0-9()@:%_+.~#?&/=]*)$"
)
NUMERIC_PATTERN = re.compile(r"^[0-9]+$")


class DataType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    OBJECT = "object"
    ARRAY = "array"
    EMAIL = "email"
    IP = "ip"
    IPV4 = "ipv4"
    IPV6 = "ipv6"
    UUID = "uuid"
    DATE = "date"
    JSON = "json"
    URL = "url"
    NUMERIC = "numeric"


# ============================================================================
# Predicates
# ============================================================================

def _ip_of(value: Any, kind: type | None = None) -> bool:
    if not isinstance(value, str): return False
    try:
        parsed = ip_address(value)
    except ValueError:
        return False
    return kind is None or isinstance(parsed, kind)


def check_email(value: Any) -> bool: return isinstance(value, str) and EMAIL_PATTERN.match(value) is not None


def check_ip(value: Any) -> bool: return _ip_of(value)


def check_ipv4(value: Any) -> bool: return _ip_of(value, IPv4Address)


def check_ipv6(value: Any) -> bool: return _ip_of(value, IPv6Address)


def check_uuid(value: Any) -> bool: return isinstance(value, str) and UUID_PATTERN.match(value) is not None


def check_date(value: Any) -> bool:
    """date/datetime objects, or ISO-8601 strings."""
    if isinstance(value, (date, datetime)): return True
    if not isinstance(value, str): return False
    try:
        datetime.fromisoformat(value)
    except ValueError:
        return False
    return True


def check_json(value: Any) -> bool:
    if not isinstance(value, str): return False
    try:
        json.loads(value)
    except ValueError:
        return False
    return True


def check_url(value: Any) -> bool: return isinstance(value, str) and URL_PATTERN.match(value) is not None


def check_numeric(value: Any) -> bool: return isinstance(value, str) and NUMERIC_PATTERN.match(value) is not None


def check_unique(value: Any) -> bool:
    """No repeated items. Empty strings fail; empty sequences pass. Handles unhashable items."""
    if isinstance(value, str): return bool(value) and len(set(value)) == len(value)
    if not isinstance(value, Sequence): return False
    try:
        return len(set(value)) == len(value)
    except TypeError:
        seen: list[Any] = []
        for item in value:
            if item in seen: return False
            seen.append(item)
        return True


TYPE_CHECKS: dict[DataType, Callable[[Any], bool]] = {
    DataType.STRING: lambda v: isinstance(v, str),
    DataType.NUMBER: is_number,
    DataType.BOOLEAN: lambda v: isinstance(v, bool),
    DataType.OBJECT: lambda v: isinstance(v, Mapping),
    DataType.ARRAY: lambda v: isinstance(v, (list, tuple)),
    DataType.EMAIL: check_email,
    DataType.IP: check_ip,
    DataType.IPV4: check_ipv4,
    DataType.IPV6: check_ipv6,
    DataType.UUID: check_uuid,
    DataType.DATE: check_date,
    DataType.JSON: check_json,
    DataType.URL: check_url,
    DataType.NUMERIC: check_numeric,
}


# ============================================================================
# Rules
# ============================================================================

def _format_rule(check: Callable[[Any], bool], default_message: str, default_id: str,
                 message: str | None, message_id: str | None) -> ValidationRule:
    return rule(check, message=message or default_message, message_id=message_id or default_id,
                absent=AbsentPolicy.FAIL)


def is_email(*, message: str | None = None, message_id: str | None = None) -> ValidationRule:
    return _format_rule(check_email, "Must be a valid email address", "validation.email", message, message_id)


def is_ip(*, message: str | None = None, message_id: str | None = None) -> ValidationRule:
    return _format_rule(check_ip, "Must be a valid IP address", "validation.ip", message, message_id)


def is_ipv4(*, message: str | None = None, message_id: str | None = None) -> ValidationRule:
    return _format_rule(check_ipv4, "Must be a valid IPv4 address", "validation.ipv4", message, message_id)


def is_ipv6(*, message: str | None = None, message_id: str | None = None) -> ValidationRule:
    return _format_rule(check_ipv6, "Must be a valid IPv6 address", "validation.ipv6", message, message_id)


def is_uuid(*, message: str | None = None, message_id: str | None = None) -> ValidationRule:
    return _format_rule(check_uuid, "Must be a valid UUID", "validation.uuid", message, message_id)


def is_date(*, message: str | None = None, message_id: str | None = None) -> ValidationRule:
    return _format_rule(check_date, "Must be a valid date", "validation.date", message, message_id)


def is_json(*, message: str | None = None, message_id: str | None = None) -> ValidationRule:
    return _format_rule(check_json, "Must be valid JSON", "validation.json", message, message_id)


def is_url(*, message: str | None = None, message_id: str | None = None) -> ValidationRule:
    return _format_rule(check_url, "Must be a valid URL", "validation.url", message, message_id)


def is_numeric(*, message: str | None = None, message_id: str | None = None) -> ValidationRule:
    return _format_rule(check_numeric, "Must contain only numbers", "validation.numeric", message, message_id)


def unique(*, message: str | None = None, message_id: str | None = None) -> ValidationRule:
    return _format_rule(check_unique, "Must contain only unique values", "validation.unique", message, message_id)


def parse_data_type(kind: DataType | str) -> DataType:
    """Coerce to DataType; unknown names raise RuleConfigurationError."""
    try:
        return DataType(kind)
    except ValueError:
        raise_configuration_error(unknown_data_type(kind, [t.value for t in DataType], origin="is_type"))


def is_type(kind: DataType | str, *, message: str | None = None, message_id: str | None = None) -> ValidationRule:
    data_type = parse_data_type(kind)
    return _format_rule(TYPE_CHECKS[data_type], f"Must be of type {data_type.value}", "validation.type",
                        message, message_id)
