"""
Domain enums for the rule DSL.

These enums give the tuple names of a rule list a closed, type-safe form:
the first tuple of every rule list names a `SchemaKind`, every following
tuple names a `Modifier`.
"""

from enum import Enum


class SchemaKind(str, Enum):
    """Kind named by the first tuple of a rule list."""

    OBJECT = "object"
    ARRAY = "array"
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    MIXED = "mixed"
    LAZY = "lazy"
    REF = "ref"
    REACH = "reach"

    @classmethod
    def _missing_(cls, value):
        if value == "bool":
            return cls.BOOLEAN
        return None


class Modifier(str, Enum):
    """
    Modifier named by a non-leading tuple of a rule list.

    Values are the camelCase names used in serialized rule lists. The
    snake_case spelling of each name is accepted as well.
    """

    # Common to every kind
    REQUIRED = "required"
    NOT_REQUIRED = "notRequired"
    NULLABLE = "nullable"
    DEFAULT = "default"
    STRICT = "strict"
    STRIP = "strip"
    LABEL = "label"
    TYPE_ERROR = "typeError"
    ONE_OF = "oneOf"
    NOT_ONE_OF = "notOneOf"
    TEST = "test"
    TRANSFORM = "transform"
    WHEN = "when"
    CONCAT = "concat"

    # Ranges (string, number, date, array)
    MIN = "min"
    MAX = "max"

    # String
    LENGTH = "length"
    MATCHES = "matches"
    EMAIL = "email"
    TRIM = "trim"
    LOWERCASE = "lowercase"
    UPPERCASE = "uppercase"

    # Number
    LESS_THAN = "lessThan"
    MORE_THAN = "moreThan"
    POSITIVE = "positive"
    NEGATIVE = "negative"
    INTEGER = "integer"
    TRUNCATE = "truncate"
    ROUND = "round"

    # Array
    OF = "of"
    COMPACT = "compact"

    # Object
    SHAPE = "shape"
    FROM = "from"
    CAMEL_CASE = "camelCase"
    CONSTANT_CASE = "constantCase"
    NO_UNKNOWN = "noUnknown"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            for member in cls:
                if member.name.lower() == value.lower():
                    return member
        return None


class _Missing(Enum):
    """Marker for an absent value, distinct from an explicit None."""

    MISSING = "MISSING"

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing.MISSING
