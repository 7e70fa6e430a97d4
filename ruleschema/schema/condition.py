"""Conditional schema rules attached with `when`."""

from collections.abc import Callable, Mapping
from typing import Any

from ruleschema.domain.enums import MISSING
from ruleschema.schema.ref import Ref


def is_schema(obj: Any) -> bool:
    """True for schema objects (including lazy schemas), False for refs and data."""
    return getattr(obj, "_is_schema", False) is True


class Condition:
    """
    Picks the effective schema from the runtime values of `refs`.

    `builder` is either a mapping ``{"is": ..., "then": ..., "otherwise": ...}``
    or a callable ``fn(*values, schema)`` returning a schema or None.
    Branches may be schemas (concatenated onto the current one) or callables
    ``schema -> schema``.
    """

    def __init__(self, refs: tuple[Ref, ...], builder: Mapping[str, Any] | Callable):
        self.refs = refs

        if callable(builder):
            self._fn = builder
            return

        if not isinstance(builder, Mapping):
            raise TypeError("`when()` condition must be a mapping or a function")
        if "is" not in builder and "is_" not in builder:
            raise TypeError("`is:` is required for `when()` conditions")
        if "then" not in builder and "otherwise" not in builder:
            raise TypeError("either `then:` or `otherwise:` is required for `when()` conditions")

        expected = builder.get("is", builder.get("is_"))
        then = builder.get("then")
        otherwise = builder.get("otherwise")

        if callable(expected) and not is_schema(expected):
            matches = expected
        else:

            def matches(*values: Any) -> bool:
                return all(value == expected for value in values)

        def fn(*args: Any) -> Any:
            *values, schema = args
            branch = then if matches(*values) else otherwise
            if branch is None:
                return schema
            if is_schema(branch):
                return schema.concat(branch)
            return branch(schema)

        self._fn = fn

    def values(self, value: Any, parent: Any, context: dict | None) -> list[Any]:
        values = [ref.get_value(value, parent, context) for ref in self.refs]
        return [None if v is MISSING else v for v in values]

    def resolve(self, schema: Any, value: Any, parent: Any, context: dict | None) -> Any:
        result = self._fn(*self.values(value, parent, context), schema)
        if result is None:
            return schema
        if not is_schema(result):
            raise TypeError("conditions must return a schema object")
        return result
