"""
Base schema of the primitive provider.

A schema is an immutable value: every fluent modifier returns a clone, so a
schema shared by several rule lists or fields never observes another
holder's changes.

Casting is synchronous and runs, per node:
1. `resolve` (conditions applied against the parent value)
2. `_coerce` (kind-specific type coercion)
3. transforms, in declaration order
4. the default, when the value is still MISSING

Validation is asynchronous. A node casts its value (unless strict), runs its
type/whitelist/blacklist checks, then its tests concurrently. Containers
validate their children with ``strict=True`` so nothing is cast twice.
"""

import asyncio
import copy
import inspect
import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field, replace
from typing import Any

from ruleschema.core.errors import CastError, ValidationError
from ruleschema.core.observability import record_validation
from ruleschema.domain.enums import MISSING
from ruleschema.domain.options import CastOptions, ValidateOptions, coerce_options
from ruleschema.schema import messages
from ruleschema.schema.condition import Condition, is_schema
from ruleschema.schema.ref import Ref

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Scope:
    """Per-node cast/validate state: options, position, and mode."""

    options: CastOptions | ValidateOptions
    path: str | None = None
    parent: Any = None
    validating: bool = False
    strict: bool | None = None

    @property
    def context(self) -> dict[str, Any]:
        return self.options.context

    @property
    def abort_early(self) -> bool:
        return getattr(self.options, "abort_early", True)

    @property
    def recursive(self) -> bool:
        return getattr(self.options, "recursive", True)

    def child(self, path: str, parent: Any, strict: bool | None = None) -> "Scope":
        return replace(self, path=path, parent=parent, strict=strict)


@dataclass
class CheckContext:
    """
    Second argument of every test predicate.

    Exposes the node's position (`path`, `parent`), the active `options`, the
    `schema` under test, and `create_error` for custom failure messages.
    """

    schema: "MixedSchema"
    value: Any
    original_value: Any
    scope: Scope
    check: "Check | None" = None
    params: dict[str, Any] = field(default_factory=dict)

    @property
    def path(self) -> str | None:
        return self.scope.path

    @property
    def parent(self) -> Any:
        return self.scope.parent

    @property
    def options(self) -> CastOptions | ValidateOptions:
        return self.scope.options

    @property
    def context(self) -> dict[str, Any]:
        return self.scope.context

    def create_error(
        self,
        message: Any = None,
        path: str | None = None,
        params: dict[str, Any] | None = None,
        type: str | None = None,
    ) -> ValidationError:
        path = self.path if path is None else path
        label = self.schema._flags.get("label")
        merged = {
            "value": self.value,
            "original_value": self.original_value,
            "label": label,
            **self.params,
            **(params or {}),
            "path": label or path or "this",
        }
        if message is None:
            message = self.check.message if self.check else messages.message("mixed", "default")
        return ValidationError(
            ValidationError.format_message(message, merged),
            value=self.value,
            path=path or "",
            type=type or (self.check.name if self.check else None),
            params=merged,
        )


@dataclass(frozen=True)
class Check:
    """
    A named assertion attached with `test`.

    `predicate(value, ctx)` returns a bool, a ValidationError, or an awaitable
    of either. Ref-valued params are resolved before the predicate runs and
    exposed as ``ctx.params``.
    """

    __test__ = False

    name: str | None
    message: Any
    predicate: Callable[[Any, CheckContext], Any]
    params: dict[str, Any] = field(default_factory=dict)
    exclusive: bool = False
    skip_absent: bool = False

    async def run(self, value: Any, ctx: CheckContext) -> ValidationError | None:
        if self.skip_absent and (value is MISSING or value is None):
            return None

        params = {
            key: param.get_value(ctx.value, ctx.parent, ctx.context) if isinstance(param, Ref) else param
            for key, param in self.params.items()
        }
        ctx = replace(ctx, check=self, params=params)

        try:
            result = self.predicate(None if value is MISSING else value, ctx)
            if inspect.isawaitable(result):
                result = await result
        except ValidationError as err:
            return err

        if isinstance(result, ValidationError):
            return result
        return None if result else ctx.create_error()


def _same(old: Any, new: Any) -> bool:
    if old is new:
        return True
    if isinstance(old, (dict, list)) or type(old) is not type(new):
        return False
    return old == new


def _contains(values: Sequence[Any], value: Any) -> bool:
    return any(value is item or value == item for item in values)


def collect_errors(
    results: Iterable[Any], own_errors: list[ValidationError], value: Any, scope: Scope
) -> None:
    """
    Raise the aggregated failure of a container node, if any.

    `results` are the per-child outcomes in field declaration (or element)
    order, as returned by ``asyncio.gather(..., return_exceptions=True)``.
    Child errors come first, the node's own deferred errors after them.
    Anything other than a ValidationError is re-raised unchanged.
    """
    nested: list[ValidationError] = []
    for result in results:
        if isinstance(result, ValidationError):
            nested.append(result)
        elif isinstance(result, BaseException):
            raise result

    if scope.abort_early and nested:
        error = nested[0]
        error.value = value
        raise error

    errors = nested + own_errors
    if errors:
        raise ValidationError(errors, value=value, path=scope.path or "")


class MixedSchema:
    """Schema accepting any value. Base class of every other kind."""

    type_name = "mixed"
    _is_schema = True

    def __init__(self) -> None:
        self._tests: tuple[Check, ...] = ()
        self._transforms: tuple[Callable[[Any, Any, "MixedSchema"], Any], ...] = ()
        self._conditions: tuple[Condition, ...] = ()
        self._deps: tuple[str, ...] = ()
        self._default: Any = MISSING
        self._has_default = False
        self._flags: dict[str, Any] = {}
        self._whitelist: tuple[Any, ...] = ()
        self._blacklist: tuple[Any, ...] = ()
        self._type_error: Any = None

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._flags!r})"

    # ------------------------------------------------------------------
    # Clone-on-write helpers
    # ------------------------------------------------------------------

    def clone(self) -> "MixedSchema":
        next_ = copy.copy(self)
        next_._flags = dict(self._flags)
        return next_

    def _with_flag(self, name: str, value: Any) -> "MixedSchema":
        next_ = self.clone()
        next_._flags[name] = value
        return next_

    def _with_check(self, check: Check) -> "MixedSchema":
        next_ = self.clone()
        tests = self._tests
        if check.exclusive and check.name:
            tests = tuple(t for t in tests if t.name != check.name)
        next_._tests = tests + (check,)
        return next_

    def _without_check(self, name: str) -> "MixedSchema":
        next_ = self.clone()
        next_._tests = tuple(t for t in self._tests if t.name != name)
        return next_

    def _with_transform(self, transform: Callable[[Any, Any, "MixedSchema"], Any]) -> "MixedSchema":
        next_ = self.clone()
        next_._transforms = self._transforms + (transform,)
        return next_

    # ------------------------------------------------------------------
    # Fluent modifiers
    # ------------------------------------------------------------------

    def required(self, message: Any = None) -> "MixedSchema":
        next_ = self._with_check(
            Check(
                "required",
                message or messages.message("mixed", "required"),
                lambda value, ctx: ctx.schema._is_present(value),
                exclusive=True,
            )
        )
        next_._flags["required"] = True
        return next_

    def not_required(self) -> "MixedSchema":
        next_ = self._without_check("required")
        next_._flags["required"] = False
        return next_

    def nullable(self, flag: bool = True) -> "MixedSchema":
        return self._with_flag("nullable", flag)

    def strict(self, flag: bool = True) -> "MixedSchema":
        return self._with_flag("strict", flag)

    def strip(self, flag: bool = True) -> "MixedSchema":
        return self._with_flag("strip", flag)

    def label(self, text: str) -> "MixedSchema":
        return self._with_flag("label", text)

    def type_error(self, message: Any) -> "MixedSchema":
        next_ = self.clone()
        next_._type_error = message
        return next_

    def default(self, *args: Any) -> Any:
        """
        Get or set the default.

        With no argument, returns the default value (a fresh copy) or MISSING.
        With one argument, returns a clone using it as the default; a callable
        is invoked each time the default is needed.
        """
        if not args:
            if not self._has_default:
                return self._implicit_default()
            if callable(self._default):
                return self._default()
            return copy.deepcopy(self._default)
        if len(args) != 1:
            raise TypeError(f"default() takes at most 1 argument ({len(args)} given)")
        next_ = self.clone()
        next_._default = args[0]
        next_._has_default = True
        return next_

    def _implicit_default(self) -> Any:
        return MISSING

    def one_of(self, values: Iterable[Any], message: Any = None) -> "MixedSchema":
        values = tuple(values)
        next_ = self.clone()
        next_._whitelist = self._whitelist + tuple(v for v in values if not _contains(self._whitelist, v))
        next_._blacklist = tuple(v for v in self._blacklist if not _contains(values, v))
        if message is not None:
            next_._flags["oneOfMessage"] = message
        return next_

    def not_one_of(self, values: Iterable[Any], message: Any = None) -> "MixedSchema":
        values = tuple(values)
        next_ = self.clone()
        next_._blacklist = self._blacklist + tuple(v for v in values if not _contains(self._blacklist, v))
        next_._whitelist = tuple(v for v in self._whitelist if not _contains(values, v))
        if message is not None:
            next_._flags["notOneOfMessage"] = message
        return next_

    def test(
        self,
        name: str | Callable | None,
        message: Any = None,
        predicate: Callable[[Any, CheckContext], Any] | None = None,
        exclusive: bool = False,
    ) -> "MixedSchema":
        """
        Attach a named assertion.

        Args:
            name: Test name (exclusive tests replace earlier ones of the same
                  name); a callable here is taken as the predicate
            message: Message template or callable; defaults to "${path} is invalid"
            predicate: ``predicate(value, ctx)`` returning bool, a
                       ValidationError, or an awaitable of either
            exclusive: Replace any existing test with the same name
        """
        if predicate is None and callable(name):
            name, predicate = None, name
        if not callable(predicate):
            raise TypeError("test() requires a callable predicate")
        return self._with_check(
            Check(
                name,
                message if message is not None else messages.message("mixed", "default"),
                predicate,
                exclusive=exclusive,
            )
        )

    def transform(self, fn: Callable[[Any, Any], Any]) -> "MixedSchema":
        """Append ``fn(value, original_value)`` to the cast pipeline."""
        return self._with_transform(lambda value, original, schema: fn(value, original))

    def when(self, keys: str | Ref | Sequence[str | Ref], condition: Any) -> "MixedSchema":
        """
        Make this schema depend on sibling or context values.

        Args:
            keys: Sibling path(s) (``a`` or ``a.b``), or ``$``-prefixed
                  context key(s)
            condition: ``{"is": ..., "then": ..., "otherwise": ...}`` or
                       ``fn(*values, schema)``
        """
        if isinstance(keys, (str, Ref)):
            keys = [keys]
        refs = tuple(key if isinstance(key, Ref) else Ref(key) for key in keys)

        next_ = self.clone()
        next_._conditions = self._conditions + (Condition(refs, condition),)
        deps = list(self._deps)
        for ref in refs:
            if ref.is_sibling and ref.root not in deps:
                deps.append(ref.root)
        next_._deps = tuple(deps)
        return next_

    def concat(self, other: "MixedSchema | None") -> "MixedSchema":
        """
        Merge `other` into this schema and return the result.

        `other`'s kind wins, so a mixed schema can be specialised. Flags and
        the default of `other` override ours; tests, transforms, conditions
        and dependencies are appended (exclusive tests replace same-named
        ones).
        """
        if other is None or other is self:
            return self
        if not isinstance(other, MixedSchema):
            raise TypeError(f"cannot concat {type(other).__name__} onto a schema")
        if other.type_name != self.type_name and self.type_name != "mixed":
            raise TypeError(
                f"You cannot `concat()` schema's of different types: "
                f"{self.type_name} and {other.type_name}"
            )

        next_ = other.clone()
        next_._flags = {**self._flags, **other._flags}
        next_._has_default = other._has_default or self._has_default
        next_._default = other._default if other._has_default else self._default
        next_._type_error = other._type_error or self._type_error

        tests = self._tests
        for check in other._tests:
            if check.exclusive and check.name:
                tests = tuple(t for t in tests if t.name != check.name)
            tests = tests + (check,)
        next_._tests = tests

        next_._whitelist = self._whitelist + tuple(
            v for v in other._whitelist if not _contains(self._whitelist, v)
        )
        next_._blacklist = self._blacklist + tuple(
            v for v in other._blacklist if not _contains(self._blacklist, v)
        )
        next_._transforms = self._transforms + other._transforms
        next_._conditions = self._conditions + other._conditions
        next_._deps = self._deps + tuple(d for d in other._deps if d not in self._deps)

        if isinstance(self, type(next_)):
            next_._merge_from(self)
        return next_

    def _merge_from(self, base: "MixedSchema") -> None:
        """Kind-specific part of `concat`; `self` is the merged clone."""

    # ------------------------------------------------------------------
    # Type handling
    # ------------------------------------------------------------------

    def _type_check(self, value: Any) -> bool:
        return True

    def is_type(self, value: Any) -> bool:
        if value is None and self._flags.get("nullable"):
            return True
        return self._type_check(value)

    def _coerce(self, value: Any) -> Any:
        return value

    def _is_present(self, value: Any) -> bool:
        return value is not MISSING and value is not None

    @property
    def is_strict(self) -> bool:
        return bool(self._flags.get("strict"))

    @property
    def is_stripped(self) -> bool:
        return bool(self._flags.get("strip"))

    @property
    def is_required(self) -> bool:
        return bool(self._flags.get("required"))

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve(
        self,
        value: Any = MISSING,
        parent: Any = None,
        context: dict[str, Any] | None = None,
        options: Any = None,
    ) -> "MixedSchema":
        """Apply `when` conditions; returns self when there are none."""
        if not self._conditions:
            return self
        schema = self.clone()
        schema._conditions = ()
        for condition in self._conditions:
            schema = condition.resolve(schema, value, parent, context or {})
        return schema

    # ------------------------------------------------------------------
    # Casting
    # ------------------------------------------------------------------

    def _apply_transforms(self, value: Any) -> Any:
        if value is MISSING:
            return MISSING
        result = self._coerce(value)
        for transform in self._transforms:
            result = transform(result, value, self)
        return result

    def _cast(self, value: Any, scope: Scope) -> Any:
        result = self._apply_transforms(value)
        if result is MISSING:
            return self.default()
        return result

    def _cast_checked(self, value: Any, scope: Scope) -> Any:
        result = self._cast(value, scope)
        if scope.validating or result is MISSING or self.is_type(result):
            return result

        assert_ = getattr(scope.options, "assert_", True)
        if assert_ == "ignore-optional" and result is None:
            return result
        if assert_ is False:
            return None

        raise CastError(
            f"The value of {scope.path or 'field'} could not be cast to a value "
            f"that satisfies the schema type: \"{self.type_name}\".",
            details={
                "path": scope.path or "",
                "value": value,
                "result": result,
                "type": self.type_name,
            },
        )

    def _cast_node(self, value: Any, scope: Scope) -> Any:
        schema = self.resolve(value, scope.parent, scope.context, scope.options)
        return schema._cast_checked(value, scope)

    def cast(self, value: Any = MISSING, options: Any = None) -> Any:
        """
        Coerce `value` to this schema's type.

        Args:
            value: Input value; omit for the schema default
            options: CastOptions or a mapping (``stripUnknown``, ``assert``,
                     ``context``)

        Returns:
            The cast value, None when nothing is present

        Raises:
            CastError: The value cannot be cast and ``assert`` is on
        """
        scope = Scope(coerce_options(options, CastOptions))
        result = self._cast_node(value, scope)
        return None if result is MISSING else result

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _is_strict(self, scope: Scope) -> bool:
        return scope.strict if scope.strict is not None else self.is_strict

    def _initial_errors(self, value: Any, ctx: CheckContext) -> list[ValidationError]:
        if value is not MISSING and not self.is_type(value):
            return [
                ctx.create_error(
                    self._type_error or messages.message("mixed", "notType"),
                    params={"type": self.type_name},
                    type="typeError",
                )
            ]

        errors = []
        if self._whitelist and value is not MISSING and not _contains(self._whitelist, value):
            errors.append(
                ctx.create_error(
                    self._flags.get("oneOfMessage") or messages.message("mixed", "oneOf"),
                    params={"values": list(self._whitelist)},
                    type="oneOf",
                )
            )
        if self._blacklist and _contains(self._blacklist, value):
            errors.append(
                ctx.create_error(
                    self._flags.get("notOneOfMessage") or messages.message("mixed", "notOneOf"),
                    params={"values": list(self._blacklist)},
                    type="notOneOf",
                )
            )
        return errors

    def _reject(self, errors: list[ValidationError], value: Any, scope: Scope) -> ValidationError:
        if scope.abort_early:
            return errors[0]
        return ValidationError(errors, value=value, path=scope.path or "")

    async def _run_checks(self, value: Any, scope: Scope) -> tuple[Any, list[ValidationError]]:
        """
        Cast (unless strict) and run this node's own checks.

        Returns:
            The cast value and the deferred errors (only non-empty when
            ``abort_early`` is off)

        Raises:
            ValidationError: On a type/whitelist/blacklist failure, or on a
                             failing test when ``abort_early`` is on
        """
        original = value
        if not self._is_strict(scope):
            value = self._cast(value, scope)

        ctx = CheckContext(self, value, original, scope)
        initial = self._initial_errors(value, ctx)
        if initial:
            raise self._reject(initial, value, scope)

        results = await asyncio.gather(
            *(check.run(value, ctx) for check in self._tests), return_exceptions=True
        )
        errors: list[ValidationError] = []
        for result in results:
            if isinstance(result, ValidationError):
                errors.append(result)
            elif isinstance(result, BaseException):
                raise result

        if errors and scope.abort_early:
            raise self._reject(errors, value, scope)
        return value, errors

    async def _validate(self, value: Any, scope: Scope) -> Any:
        value, errors = await self._run_checks(value, scope)
        if errors:
            raise self._reject(errors, value, scope)
        return value

    async def _validate_node(self, value: Any, scope: Scope) -> Any:
        schema = self.resolve(value, scope.parent, scope.context, scope.options)
        return await schema._validate(value, scope)

    async def validate(self, value: Any = MISSING, options: Any = None) -> Any:
        """
        Cast and validate `value`.

        Args:
            value: Input value
            options: ValidateOptions or a mapping (``abortEarly``,
                     ``recursive``, ``strict``, ``stripUnknown``, ``context``)

        Returns:
            The validated (cast) value

        Raises:
            ValidationError: With every failure (or the first, when
                             ``abortEarly`` is on)
        """
        opts = coerce_options(options, ValidateOptions)
        scope = Scope(opts, validating=True, strict=opts.strict)
        try:
            result = await self._validate_node(value, scope)
        except ValidationError:
            record_validation("invalid")
            raise
        record_validation("valid")
        return None if result is MISSING else result

    async def is_valid(self, value: Any = MISSING, options: Any = None) -> bool:
        try:
            await self.validate(value, options)
        except ValidationError:
            return False
        return True

    def validate_sync(self, value: Any = MISSING, options: Any = None) -> Any:
        """Run `validate` on a private event loop. Not usable inside a running loop."""
        return asyncio.run(self.validate(value, options))

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def describe(self) -> dict[str, Any]:
        """JSON-compatible description of the schema (conditions excluded)."""
        description: dict[str, Any] = {
            "type": self.type_name,
            "flags": {k: _describe_value(v) for k, v in self._flags.items()},
            "tests": [
                {"name": check.name, "params": {k: _describe_value(v) for k, v in check.params.items()}}
                for check in self._tests
            ],
        }
        if self._has_default and not callable(self._default):
            description["default"] = _describe_value(self._default)
        if self._whitelist:
            description["oneOf"] = [_describe_value(v) for v in self._whitelist]
        if self._blacklist:
            description["notOneOf"] = [_describe_value(v) for v in self._blacklist]
        if self._deps:
            description["dependencies"] = list(self._deps)
        return description


def _describe_value(value: Any) -> Any:
    if value is MISSING:
        return None
    if isinstance(value, (Ref, MixedSchema)):
        return value.describe()
    if hasattr(value, "pattern"):
        return value.pattern
    if hasattr(value, "isoformat"):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): _describe_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_describe_value(v) for v in value]
    if callable(value):
        return getattr(value, "__name__", "function")
    return value


__all__ = [
    "Check",
    "CheckContext",
    "MixedSchema",
    "Scope",
    "collect_errors",
    "is_schema",
]
