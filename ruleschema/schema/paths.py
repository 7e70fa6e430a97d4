"""Dotted/bracketed value paths: ``a.b``, ``arr[0].x``, ``arr[]``."""

import re
from typing import Any

from ruleschema.domain.enums import MISSING

_SEGMENT = re.compile(r"\[(\d*)\]|([^.\[\]]+)")


def tokenize(path: str) -> list[tuple[str, bool]]:
    """Split `path` into ``(segment, is_index)`` pairs. ``arr[]`` yields ``("", True)``."""
    return [
        (index, True) if name is None or name == "" else (name, False)
        for index, name in (m.groups() for m in _SEGMENT.finditer(path or ""))
    ]


def split_path(path: str) -> list[str]:
    return [segment for segment, _ in tokenize(path)]


def join_path(parent: str | None, key: str) -> str:
    return f"{parent}.{key}" if parent else key


def index_path(parent: str | None, index: int) -> str:
    return f"{parent or ''}[{index}]"


def get_in(obj: Any, path: str, default: Any = MISSING) -> Any:
    """Read the value at `path`, or `default` when any segment is absent."""
    current = obj
    for segment in split_path(path):
        if isinstance(current, dict):
            if segment not in current:
                return default
            current = current[segment]
        elif isinstance(current, list) and segment.isdigit() and int(segment) < len(current):
            current = current[int(segment)]
        else:
            return default
    return current


def has_in(obj: Any, path: str) -> bool:
    return get_in(obj, path) is not MISSING


def set_in(obj: dict, path: str, value: Any) -> dict:
    """Return a copy of `obj` with `value` stored at the dotted `path`."""
    head, *rest = split_path(path)
    result = dict(obj)
    if rest:
        child = result.get(head)
        result[head] = set_in(child if isinstance(child, dict) else {}, ".".join(rest), value)
    else:
        result[head] = value
    return result


def without_path(obj: dict, path: str) -> dict:
    """Return a copy of `obj` with the key at the dotted `path` removed."""
    head, *rest = split_path(path)
    if head not in obj:
        return obj
    result = dict(obj)
    if rest:
        if isinstance(result[head], dict):
            result[head] = without_path(result[head], ".".join(rest))
    else:
        del result[head]
    return result
