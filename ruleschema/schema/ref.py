"""References to sibling values, to the validated value, or to context."""

from typing import Any

from ruleschema.domain.enums import MISSING
from ruleschema.schema.paths import get_in, split_path

CONTEXT_PREFIX = "$"
VALUE_PREFIX = "."


class Ref:
    """
    A pointer resolved at cast/validate time.

    ``Ref("a.b")`` reads ``a.b`` from the parent (sibling) value,
    ``Ref("$x")`` reads ``x`` from the options context, ``Ref(".")`` (or
    ``Ref(".x")``) reads from the value itself.
    """

    def __init__(self, key: str, map_fn=None):
        if not isinstance(key, str) or not key.strip():
            raise TypeError(f"ref must be a non-empty string, got {key!r}")
        self.key = key.strip()
        self.map_fn = map_fn
        self.is_context = self.key.startswith(CONTEXT_PREFIX)
        self.is_value = self.key.startswith(VALUE_PREFIX)
        self.is_sibling = not (self.is_context or self.is_value)
        self.path = self.key[1:] if not self.is_sibling else self.key
        segments = split_path(self.path)
        self.root = segments[0] if segments else ""

    def get_value(self, value: Any = MISSING, parent: Any = None, context: dict | None = None) -> Any:
        if self.is_context:
            source = context or {}
        elif self.is_value:
            source = value
        else:
            source = parent
        result = get_in(source, self.path) if self.path else source
        if self.map_fn is not None and result is not MISSING:
            result = self.map_fn(result)
        return result

    def cast(self, value: Any = MISSING, parent: Any = None, context: dict | None = None) -> Any:
        return self.get_value(value, parent, context)

    def resolve(self, *args, **kwargs) -> "Ref":
        return self

    def describe(self) -> dict[str, Any]:
        return {"type": "ref", "key": self.key}

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Ref) and other.key == self.key

    def __hash__(self) -> int:
        return hash(("ref", self.key))

    def __repr__(self) -> str:
        return f"Ref({self.key!r})"
