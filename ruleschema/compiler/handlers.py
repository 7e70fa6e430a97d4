"""
Kind and modifier handler registries.

Each kind handler builds a base schema from the leading tuple's arguments.
Each modifier handler is a pure function ``(schema, *args) -> schema``;
schemas are clone-on-write, so handlers never mutate their input. Both
registries are populated at import time and are read-only afterwards.
"""

import functools
import inspect
import logging
from collections import OrderedDict
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from ruleschema.compiler.canonicalizer import rule_list_key
from ruleschema.compiler.shape import compile_shape
from ruleschema.core import config
from ruleschema.domain.enums import Modifier, SchemaKind
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

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Handler:
    """A modifier handler and the schema method it requires."""

    apply: Callable[..., Any]
    method: str

    def supports(self, schema: Any) -> bool:
        return callable(getattr(schema, self.method, None))


def _compile(entry: Any) -> Any:
    from ruleschema.compiler.compiler import compile_entry

    return compile_entry(entry)


def _compiling(fn: Callable[..., Any]) -> Callable[..., Any]:
    """Wrap `fn` so a returned rule list is compiled into a schema."""

    @functools.wraps(fn)
    def wrapper(*args: Any) -> Any:
        result = fn(*args)
        if isinstance(result, (list, tuple)):
            return _compile(result)
        return result

    return wrapper


def _positional_arity(fn: Callable[..., Any]) -> int:
    try:
        params = inspect.signature(fn).parameters.values()
    except (TypeError, ValueError):
        return 2
    if any(p.kind is inspect.Parameter.VAR_POSITIONAL for p in params):
        return 2
    return sum(
        1
        for p in params
        if p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
    )


class CompilingThunk:
    """
    Lazy builder that compiles rule lists returned by the wrapped thunk.

    The thunk is called with ``(value, options)``, or with fewer arguments if
    it accepts fewer. Serializable rule lists are compiled once per distinct
    content and reused, so repeated resolutions return the same schema
    instance. At most `lazy_cache_size` compiled lists are kept; the least
    recently used one is evicted first.
    """

    def __init__(self, thunk: Callable[..., Any]) -> None:
        if not callable(thunk):
            raise TypeError(f"lazy() requires a callable, got {type(thunk).__name__}")
        self.thunk = thunk
        self._arity = min(_positional_arity(thunk), 2)
        self._compiled: OrderedDict[str, Any] = OrderedDict()

    def __call__(self, value: Any, options: Any) -> Any:
        result = self.thunk(*(value, options)[: self._arity])
        if not isinstance(result, (list, tuple)):
            return result

        key = rule_list_key(result) if config.settings.lazy_cache_enabled else None
        if key is None:
            return _compile(result)
        if key in self._compiled:
            self._compiled.move_to_end(key)
            return self._compiled[key]

        schema = self._compiled[key] = _compile(result)
        while len(self._compiled) > config.settings.lazy_cache_size:
            self._compiled.popitem(last=False)
        return schema


# ============================================================================
# Kind handlers
# ============================================================================


def _object_kind(fields: Mapping[str, Any] | None = None, edges: Any = None) -> Any:
    schema = object_()
    if fields is None:
        return schema
    return schema.with_shape(compile_shape(fields, edges))


def _array_kind(of: Any = None) -> Any:
    schema = array()
    if of is None:
        return schema
    return schema.of(_compile(of))


def _reach_kind(target: Any, path: str, value: Any = None, context: Any = None) -> Any:
    return reach(_compile(target), path, value, context)


KIND_HANDLERS: Mapping[SchemaKind, Callable[..., Any]] = MappingProxyType(
    {
        SchemaKind.OBJECT: _object_kind,
        SchemaKind.ARRAY: _array_kind,
        SchemaKind.STRING: lambda: string(),
        SchemaKind.NUMBER: lambda: number(),
        SchemaKind.BOOLEAN: lambda: boolean(),
        SchemaKind.DATE: lambda: date(),
        SchemaKind.MIXED: lambda: mixed(),
        SchemaKind.LAZY: lambda thunk: lazy(CompilingThunk(thunk)),
        SchemaKind.REF: lambda key: ref(key),
        SchemaKind.REACH: _reach_kind,
    }
)


# ============================================================================
# Modifier handlers
# ============================================================================


def _method(name: str) -> Handler:
    """Handler forwarding the tuple arguments to ``schema.<name>(*args)``."""
    return Handler(lambda schema, *args: getattr(schema, name)(*args), name)


def _default(schema: Any, *args: Any) -> Any:
    if len(args) != 1:
        raise TypeError(f"default takes exactly one argument ({len(args)} given)")
    return schema.default(args[0])


def _compile_branch(branch: Any) -> Any:
    if branch is None or is_schema(branch):
        return branch
    if isinstance(branch, (list, tuple)):
        return _compile(branch)
    if callable(branch):
        return _compiling(branch)
    raise TypeError(f"when() branches must be rule lists, schemas or functions, got {branch!r}")


def _when(schema: Any, keys: Any, condition: Any) -> Any:
    if callable(condition):
        return schema.when(keys, _compiling(condition))
    if not isinstance(condition, Mapping):
        raise TypeError("when() condition must be a mapping or a function")

    compiled = dict(condition)
    for branch in ("then", "otherwise"):
        if branch in compiled:
            compiled[branch] = _compile_branch(compiled[branch])
    return schema.when(keys, compiled)


def _shape(schema: Any, fields: Mapping[str, Any], edges: Any = None) -> Any:
    return schema.with_shape(compile_shape(fields, edges))


MODIFIER_HANDLERS: Mapping[Modifier, Handler] = MappingProxyType(
    {
        # Common
        Modifier.REQUIRED: _method("required"),
        Modifier.NOT_REQUIRED: _method("not_required"),
        Modifier.NULLABLE: _method("nullable"),
        Modifier.DEFAULT: Handler(_default, "default"),
        Modifier.STRICT: _method("strict"),
        Modifier.STRIP: _method("strip"),
        Modifier.LABEL: _method("label"),
        Modifier.TYPE_ERROR: _method("type_error"),
        Modifier.ONE_OF: _method("one_of"),
        Modifier.NOT_ONE_OF: _method("not_one_of"),
        Modifier.TEST: _method("test"),
        Modifier.TRANSFORM: _method("transform"),
        Modifier.WHEN: Handler(_when, "when"),
        Modifier.CONCAT: Handler(lambda schema, other: schema.concat(_compile(other)), "concat"),
        # Ranges
        Modifier.MIN: _method("min"),
        Modifier.MAX: _method("max"),
        # String
        Modifier.LENGTH: _method("length"),
        Modifier.MATCHES: _method("matches"),
        Modifier.EMAIL: _method("email"),
        Modifier.TRIM: _method("trim"),
        Modifier.LOWERCASE: _method("lowercase"),
        Modifier.UPPERCASE: _method("uppercase"),
        # Number
        Modifier.LESS_THAN: _method("less_than"),
        Modifier.MORE_THAN: _method("more_than"),
        Modifier.POSITIVE: _method("positive"),
        Modifier.NEGATIVE: _method("negative"),
        Modifier.INTEGER: _method("integer"),
        Modifier.TRUNCATE: _method("truncate"),
        Modifier.ROUND: _method("round"),
        # Array
        Modifier.OF: Handler(lambda schema, inner: schema.of(_compile(inner)), "of"),
        Modifier.COMPACT: _method("compact"),
        # Object
        Modifier.SHAPE: Handler(_shape, "with_shape"),
        Modifier.FROM: _method("from_"),
        Modifier.CAMEL_CASE: _method("camel_case"),
        Modifier.CONSTANT_CASE: _method("constant_case"),
        Modifier.NO_UNKNOWN: _method("no_unknown"),
    }
)
