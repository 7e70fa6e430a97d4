"""Lazy schemas: built from the value being cast or validated."""

from collections.abc import Callable
from typing import Any

from ruleschema.core.errors import InvalidLazyResultError
from ruleschema.domain.enums import MISSING
from ruleschema.domain.options import CastOptions, ValidateOptions, coerce_options
from ruleschema.schema.base import Scope
from ruleschema.schema.condition import is_schema


class LazySchema:
    """
    Defers to ``builder(value, options)`` on every cast and validation.

    The builder may return another lazy schema; resolution continues until a
    concrete schema is reached. Nothing is cached here, so concurrent
    resolutions for different values never share state.
    """

    type_name = "lazy"
    _is_schema = True

    def __init__(self, builder: Callable[[Any, Any], Any]) -> None:
        if not callable(builder):
            raise TypeError("lazy() requires a callable builder")
        self.builder = builder

    def __repr__(self) -> str:
        return f"LazySchema({self.builder!r})"

    def resolve(
        self,
        value: Any = MISSING,
        parent: Any = None,
        context: dict[str, Any] | None = None,
        options: Any = None,
    ) -> Any:
        schema = self.builder(None if value is MISSING else value, options)
        if not is_schema(schema):
            raise InvalidLazyResultError(
                "lazy() functions must return a valid schema",
                details={"result_type": type(schema).__name__},
            )
        return schema.resolve(value, parent, context, options)

    def cast(self, value: Any = MISSING, options: Any = None) -> Any:
        opts = coerce_options(options, CastOptions)
        return self.resolve(value, None, opts.context, opts).cast(value, opts)

    async def validate(self, value: Any = MISSING, options: Any = None) -> Any:
        opts = coerce_options(options, ValidateOptions)
        return await self.resolve(value, None, opts.context, opts).validate(value, opts)

    async def is_valid(self, value: Any = MISSING, options: Any = None) -> bool:
        opts = coerce_options(options, ValidateOptions)
        return await self.resolve(value, None, opts.context, opts).is_valid(value, opts)

    def _cast_checked(self, value: Any, scope: Scope) -> Any:
        return self._cast_node(value, scope)

    def _cast_node(self, value: Any, scope: Scope) -> Any:
        schema = self.resolve(value, scope.parent, scope.context, scope.options)
        return schema._cast_checked(value, scope)

    async def _validate_node(self, value: Any, scope: Scope) -> Any:
        schema = self.resolve(value, scope.parent, scope.context, scope.options)
        return await schema._validate(value, scope)

    def default(self, *args: Any) -> Any:
        if args:
            raise TypeError("lazy schemas do not take a default")
        return MISSING

    @property
    def is_strict(self) -> bool:
        return False

    @property
    def is_stripped(self) -> bool:
        return False

    def describe(self) -> dict[str, Any]:
        return {"type": "lazy"}
