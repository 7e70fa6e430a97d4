"""Array schema: a list whose elements share one (possibly lazy) schema."""

import asyncio
import json
from typing import Any

from ruleschema.domain.enums import MISSING
from ruleschema.schema.base import MixedSchema, Scope, _same, collect_errors
from ruleschema.schema.condition import is_schema
from ruleschema.schema.paths import index_path
from ruleschema.schema.scalars import _RangeMixin


class ArraySchema(_RangeMixin, MixedSchema):
    type_name = "array"
    _range_group = "array"

    def __init__(self, inner: Any = None) -> None:
        super().__init__()
        self._inner = None
        if inner is not None:
            self._set_inner(inner)

    def _set_inner(self, inner: Any) -> None:
        if not is_schema(inner):
            raise TypeError(f"`array.of()` sub-schema must be a valid schema, got {type(inner).__name__}")
        self._inner = inner

    @property
    def inner(self) -> Any:
        return self._inner

    def of(self, inner: Any) -> "ArraySchema":
        next_ = self.clone()
        next_._set_inner(inner)
        return next_

    def _merge_from(self, base: MixedSchema) -> None:
        if self._inner is None:
            self._inner = getattr(base, "_inner", None)

    def _type_check(self, value: Any) -> bool:
        return isinstance(value, list)

    def _is_present(self, value: Any) -> bool:
        return super()._is_present(value) and len(value) > 0

    def _measure(self, value: Any) -> int:
        return len(value)

    def _coerce(self, value: Any) -> Any:
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except ValueError:
                return value
        if isinstance(value, tuple):
            return list(value)
        return value

    def compact(self, rejector=None) -> "ArraySchema":
        """Drop falsy elements (or those for which `rejector` is truthy)."""

        def transform(value: Any, original: Any, schema: MixedSchema) -> Any:
            if not isinstance(value, list):
                return value
            reject = rejector if rejector is not None else (lambda item: not item)
            kept = [item for item in value if not reject(item)]
            return value if len(kept) == len(value) else kept

        return self._with_transform(transform)

    def _cast(self, value: Any, scope: Scope) -> Any:
        result = super()._cast(value, scope)
        if self._inner is None or not isinstance(result, list):
            return result

        changed = result is not value
        items = []
        for index, item in enumerate(result):
            item_scope = scope.child(index_path(scope.path, index), parent=result)
            schema = self._inner.resolve(item, result, scope.context, scope.options)
            if scope.validating and schema.is_strict:
                cast_item = item
            else:
                cast_item = schema._cast_checked(item, item_scope)
            if not _same(item, cast_item):
                changed = True
            items.append(None if cast_item is MISSING else cast_item)

        return items if changed else result

    async def _validate(self, value: Any, scope: Scope) -> Any:
        value, errors = await self._run_checks(value, scope)

        if not scope.recursive or self._inner is None or not isinstance(value, list):
            collect_errors((), errors, value, scope)
            return value

        results = await asyncio.gather(
            *(
                self._inner._validate_node(
                    item, scope.child(index_path(scope.path, index), parent=value, strict=True)
                )
                for index, item in enumerate(value)
            ),
            return_exceptions=True,
        )
        collect_errors(results, errors, value, scope)
        return value

    def describe(self) -> dict[str, Any]:
        description = super().describe()
        if self._inner is not None:
            description["innerType"] = self._inner.describe()
        return description
