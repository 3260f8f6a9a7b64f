"""Dotted-path lookup through mappings, sequences and attributes."""
from __future__ import annotations

from typing import Any, Mapping, Sequence


def split_path(path: str | Sequence[str | int] | None) -> tuple[str, ...]:
    """``"a.b"`` -> ``("a", "b")``; ``""`` and None -> ``()``."""
    if path is None or path == "": return ()
    if isinstance(path, str): return tuple(path.split("."))
    return tuple(str(p) for p in path)


def read_field(data: Any, name: str) -> Any:
    """Read one segment; missing -> None."""
    if data is None: return None
    if isinstance(data, Mapping): return data.get(name)
    if isinstance(data, Sequence) and not isinstance(data, (str, bytes)):
        if not name.lstrip("-").isdigit(): return None
        index = int(name)
        return data[index] if -len(data) <= index < len(data) else None
    return getattr(data, name, None)


def get_nested_property(obj: Any, path: str | Sequence[str | int] | None) -> Any:
    """Resolve a dotted path; any missing segment yields None."""
    current = obj
    for segment in split_path(path):
        if (current := read_field(current, segment)) is None: return None
    return current
