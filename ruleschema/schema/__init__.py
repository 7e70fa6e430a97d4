"""
Primitive schema provider.

Schema factories per kind plus refs, lazies and `reach`. Every schema is an
immutable value; fluent modifiers return clones.
"""

from collections.abc import Callable, Mapping
from typing import Any

from ruleschema.domain.enums import MISSING
from ruleschema.schema.array import ArraySchema
from ruleschema.schema.base import Check, CheckContext, MixedSchema
from ruleschema.schema.condition import is_schema
from ruleschema.schema.lazy import LazySchema
from ruleschema.schema.object import ObjectSchema, build_shape
from ruleschema.schema.reach import reach
from ruleschema.schema.ref import Ref
from ruleschema.schema.scalars import BooleanSchema, DateSchema, NumberSchema, StringSchema


def mixed() -> MixedSchema:
    return MixedSchema()


def string() -> StringSchema:
    return StringSchema()


def number() -> NumberSchema:
    return NumberSchema()


def boolean() -> BooleanSchema:
    return BooleanSchema()


def date() -> DateSchema:
    return DateSchema()


def array(inner: Any = None) -> ArraySchema:
    return ArraySchema(inner)


def object_(fields: Mapping[str, Any] | None = None) -> ObjectSchema:
    return ObjectSchema(fields)


def lazy(builder: Callable[[Any, Any], Any]) -> LazySchema:
    return LazySchema(builder)


def ref(key: str, map_fn: Callable[[Any], Any] | None = None) -> Ref:
    return Ref(key, map_fn)


__all__ = [
    "MISSING",
    "ArraySchema",
    "BooleanSchema",
    "Check",
    "CheckContext",
    "DateSchema",
    "LazySchema",
    "MixedSchema",
    "NumberSchema",
    "ObjectSchema",
    "Ref",
    "StringSchema",
    "array",
    "boolean",
    "build_shape",
    "date",
    "is_schema",
    "lazy",
    "mixed",
    "number",
    "object_",
    "reach",
    "ref",
    "string",
]
