"""
ruleschema: compile declarative rule lists into validation schemas.

Example:
    >>> from ruleschema import compile_rules
    >>> schema = compile_rules([["object", {"age": [["number"], ["min", 18]]}]])
    >>> schema.cast({"age": "21"})
    {'age': 21}
"""

from ruleschema.compiler import Rules, compile_rules, compile_shape, validate_rule_list
from ruleschema.core.errors import (
    CastError,
    CompilationError,
    CyclicDependencyError,
    InvalidLazyResultError,
    InvalidRuleError,
    RuleSchemaError,
    ShapeCompilationError,
    UnknownKindError,
    UnknownModifierError,
    ValidationError,
)
from ruleschema.domain.enums import MISSING, Modifier, SchemaKind
from ruleschema.domain.options import CastOptions, ValidateOptions
from ruleschema.schema import (
    array,
    boolean,
    date,
    is_schema,
    lazy,
    mixed,
    number,
    object_,
    reach,
    ref,
    string,
)

__version__ = "0.1.0"

__all__ = [
    "MISSING",
    "CastError",
    "CastOptions",
    "CompilationError",
    "CyclicDependencyError",
    "InvalidLazyResultError",
    "InvalidRuleError",
    "Modifier",
    "RuleSchemaError",
    "Rules",
    "SchemaKind",
    "ShapeCompilationError",
    "UnknownKindError",
    "UnknownModifierError",
    "ValidateOptions",
    "ValidationError",
    "array",
    "boolean",
    "compile_rules",
    "compile_shape",
    "date",
    "is_schema",
    "lazy",
    "mixed",
    "number",
    "object_",
    "reach",
    "ref",
    "string",
    "validate_rule_list",
]
