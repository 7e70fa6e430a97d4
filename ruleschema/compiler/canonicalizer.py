"""
JSON Canonicalization for deterministic schema descriptions and cache keys.

Compiling the same rule list twice must yield schemas with identical
behaviour. Canonical JSON makes that checkable (``describe()`` output of two
compilations compares byte-for-byte) and gives serializable rule lists a
stable content key for the lazy-builder cache.
"""

import json
from typing import Any


def canonicalize_json(obj: Any) -> dict | list | Any:
    """
    Produce a deterministic, canonical representation of a JSON object.

    This function ensures:
    - All dictionary keys are sorted alphabetically
    - Nested structures are recursively canonicalized
    - Tuples become lists

    Args:
        obj: Python object (dict, list, tuple, or primitive) to canonicalize

    Returns:
        Canonicalized version with sorted keys at all levels

    Example:
        >>> canonicalize_json({"z": 1, "a": {"c": 2, "b": 3}})
        {'a': {'b': 3, 'c': 2}, 'z': 1}

    Note:
        Sequence order is preserved: the order of tuples in a rule list is
        significant.
    """
    if isinstance(obj, dict):
        return {k: canonicalize_json(v) for k, v in sorted(obj.items())}

    elif isinstance(obj, (list, tuple)):
        return [canonicalize_json(item) for item in obj]

    else:
        return obj


def to_canonical_json_string(obj: Any) -> str:
    """
    Convert a Python object to a canonical JSON string.

    Args:
        obj: Python object to serialize

    Returns:
        Canonical JSON string with sorted keys and no extra whitespace

    Raises:
        TypeError: If `obj` contains a value JSON cannot represent

    Example:
        >>> to_canonical_json_string([["string"], ["min", 3]])
        '[["string"],["min",3]]'
    """
    canonical = canonicalize_json(obj)
    return json.dumps(canonical, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def rule_list_key(rule_list: Any) -> str | None:
    """
    Content key of a fully serializable rule list.

    Returns:
        The canonical JSON string, or None when the rule list holds
        functions, schemas, refs or other non-JSON values
    """
    try:
        return to_canonical_json_string(rule_list)
    except (TypeError, ValueError):
        return None
