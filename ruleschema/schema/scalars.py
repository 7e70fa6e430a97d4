"""
Scalar schemas: string, number, boolean, date.

Coercion is delegated to pydantic `TypeAdapter` in lax mode. A value that is
already of the target type is returned unchanged (same object); a value the
adapter rejects is returned as-is and left for the type check to report.
"""

import math
import re
from datetime import datetime
from typing import Any

from pydantic import ConfigDict, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from ruleschema.schema import messages
from ruleschema.schema.base import Check, MixedSchema
from ruleschema.schema.ref import Ref

_STRING = TypeAdapter(str, config=ConfigDict(coerce_numbers_to_str=True))
_NUMBER = TypeAdapter(int | float)
_BOOLEAN = TypeAdapter(bool)
_DATETIME = TypeAdapter(datetime)

# local@domain.tld, no whitespace
_EMAIL = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _lax(adapter: TypeAdapter, value: Any) -> Any:
    try:
        return adapter.validate_python(value)
    except PydanticValidationError:
        return value


class _RangeMixin:
    """`min` / `max` checks shared by string, number, date and array schemas."""

    _range_group = "number"

    def _measure(self, value: Any) -> Any:
        return value

    def _limit(self, name: str, bound: Any, message: Any, compare) -> "MixedSchema":
        if not isinstance(bound, Ref):
            bound = self._coerce_bound(bound)
        return self._with_check(
            Check(
                name,
                message or messages.message(self._range_group, name),
                lambda value, ctx: compare(self._measure(value), ctx.params[name]),
                params={name: bound},
                exclusive=True,
                skip_absent=True,
            )
        )

    def _coerce_bound(self, bound: Any) -> Any:
        return bound

    def min(self, minimum: Any, message: Any = None) -> "MixedSchema":
        return self._limit("min", minimum, message, lambda v, b: v >= b)

    def max(self, maximum: Any, message: Any = None) -> "MixedSchema":
        return self._limit("max", maximum, message, lambda v, b: v <= b)


class StringSchema(_RangeMixin, MixedSchema):
    type_name = "string"
    _range_group = "string"

    def _type_check(self, value: Any) -> bool:
        return isinstance(value, str)

    def _coerce(self, value: Any) -> Any:
        if value is None or isinstance(value, (str, list, dict, bool)):
            return value
        return _lax(_STRING, value)

    def _is_present(self, value: Any) -> bool:
        return super()._is_present(value) and len(value) > 0

    def _measure(self, value: Any) -> int:
        return len(value)

    def length(self, exact: int | Ref, message: Any = None) -> "StringSchema":
        return self._limit("length", exact, message, lambda v, b: v == b)

    def matches(
        self, regex: str | re.Pattern, message: Any = None, exclude_empty: bool = False
    ) -> "StringSchema":
        pattern = re.compile(regex) if isinstance(regex, str) else regex
        return self._with_check(
            Check(
                "matches",
                message or messages.message("string", "matches"),
                lambda value, ctx: (exclude_empty and value == "") or pattern.search(value) is not None,
                params={"regex": pattern.pattern},
                skip_absent=True,
            )
        )

    def email(self, message: Any = None) -> "StringSchema":
        return self._with_check(
            Check(
                "email",
                message or messages.message("string", "email"),
                lambda value, ctx: value == "" or _EMAIL.match(value) is not None,
                skip_absent=True,
            )
        )

    def _normalizer(self, name: str, fn, message: Any) -> "StringSchema":
        next_ = self._with_transform(lambda value, original, schema: fn(value) if isinstance(value, str) else value)
        return next_._with_check(
            Check(
                name,
                message or messages.message("string", name),
                lambda value, ctx: value == fn(value),
                exclusive=True,
                skip_absent=True,
            )
        )

    def trim(self, message: Any = None) -> "StringSchema":
        return self._normalizer("trim", str.strip, message)

    def lowercase(self, message: Any = None) -> "StringSchema":
        return self._normalizer("lowercase", str.lower, message)

    def uppercase(self, message: Any = None) -> "StringSchema":
        return self._normalizer("uppercase", str.upper, message)


class NumberSchema(_RangeMixin, MixedSchema):
    type_name = "number"

    def _type_check(self, value: Any) -> bool:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return False
        return not (isinstance(value, float) and math.isnan(value))

    def _coerce(self, value: Any) -> Any:
        if value is None or isinstance(value, bool) or self._type_check(value):
            return value
        if isinstance(value, str):
            stripped = value.strip()
            return _lax(_NUMBER, stripped) if stripped else value
        return _lax(_NUMBER, value)

    def less_than(self, bound: Any, message: Any = None) -> "NumberSchema":
        return self._limit("less", bound, message or messages.message("number", "lessThan"), lambda v, b: v < b)

    def more_than(self, bound: Any, message: Any = None) -> "NumberSchema":
        return self._limit("more", bound, message or messages.message("number", "moreThan"), lambda v, b: v > b)

    def positive(self, message: Any = None) -> "NumberSchema":
        return self.more_than(0, message or messages.message("number", "positive"))

    def negative(self, message: Any = None) -> "NumberSchema":
        return self.less_than(0, message or messages.message("number", "negative"))

    def integer(self, message: Any = None) -> "NumberSchema":
        return self._with_check(
            Check(
                "integer",
                message or messages.message("number", "integer"),
                lambda value, ctx: isinstance(value, int) or float(value).is_integer(),
                exclusive=True,
                skip_absent=True,
            )
        )

    def truncate(self) -> "NumberSchema":
        return self.round("trunc")

    def round(self, method: str = "round") -> "NumberSchema":
        methods = {"round": round, "floor": math.floor, "ceil": math.ceil, "trunc": math.trunc}
        if method not in methods:
            raise ValueError(f"Only valid options for round() are: {', '.join(methods)}")
        fn = methods[method]
        return self._with_transform(
            lambda value, original, schema: fn(value) if schema._type_check(value) else value
        )


class BooleanSchema(MixedSchema):
    type_name = "boolean"

    def _type_check(self, value: Any) -> bool:
        return isinstance(value, bool)

    def _coerce(self, value: Any) -> Any:
        if value is None or isinstance(value, bool):
            return value
        return _lax(_BOOLEAN, value)


class DateSchema(_RangeMixin, MixedSchema):
    type_name = "date"
    _range_group = "date"

    def _type_check(self, value: Any) -> bool:
        return isinstance(value, datetime)

    def _coerce(self, value: Any) -> Any:
        if value is None or isinstance(value, (datetime, bool)):
            return value
        return _lax(_DATETIME, value)

    def _coerce_bound(self, bound: Any) -> Any:
        result = self._coerce(bound)
        if not isinstance(result, datetime):
            raise TypeError(f"date bound must be a datetime or castable to one, got {bound!r}")
        return result


__all__ = ["BooleanSchema", "DateSchema", "NumberSchema", "StringSchema"]
