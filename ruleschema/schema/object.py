"""
Object schema.

An object schema holds a shape (field name -> schema or ref) together with
the evaluation order computed from the fields' dependencies. Fields are cast
in that order against the partially built result, so a conditional field
sees the already-cast values it depends on. The cast result is the original
mapping whenever no field changed.
"""

import asyncio
import json
import logging
from collections.abc import Mapping, Sequence
from typing import Any

from ruleschema.domain.enums import MISSING
from ruleschema.domain.graph import merge_edges, resolve_order
from ruleschema.domain.rules import FieldSpec, ShapeSpec
from ruleschema.schema import casing, messages
from ruleschema.schema.base import Check, MixedSchema, Scope, _same, collect_errors
from ruleschema.schema.condition import is_schema
from ruleschema.schema.paths import get_in, has_in, join_path, set_in, without_path
from ruleschema.schema.ref import Ref

logger = logging.getLogger(__name__)


def _field_dependencies(value: Any) -> tuple[str, ...]:
    if isinstance(value, Ref):
        return (value.root,) if value.is_sibling and value.root else ()
    return tuple(getattr(value, "_deps", ()))


def build_shape(
    fields: Mapping[str, Any], explicit_edges: Sequence[tuple[str, str]] = ()
) -> ShapeSpec:
    """
    Derive the dependency edges and evaluation order of a shape.

    Args:
        fields: Field name -> schema (or lazy schema, or Ref)
        explicit_edges: ``(dependent, dependency)`` pairs supplied with the
                        shape; they override inferred edges

    Returns:
        ShapeSpec with the order restricted to field names

    Raises:
        CyclicDependencyError: If the merged edges form a cycle
    """
    inferred = [
        (name, dependency)
        for name, value in fields.items()
        for dependency in _field_dependencies(value)
    ]
    explicit = tuple(tuple(edge) for edge in explicit_edges)
    edges = merge_edges(inferred, explicit)
    order = [node for node in resolve_order(list(fields), edges) if node in fields]

    return ShapeSpec(
        fields=dict(fields),
        specs={
            name: FieldSpec(name=name, schema=value, dependencies=_field_dependencies(value))
            for name, value in fields.items()
        },
        order=tuple(order),
        edges=tuple(edges),
        explicit_edges=explicit,
    )


class ObjectSchema(MixedSchema):
    type_name = "object"

    def __init__(self, fields: Mapping[str, Any] | None = None) -> None:
        super().__init__()
        self._fields: dict[str, Any] = {}
        self._order: tuple[str, ...] = ()
        self._edges: tuple[tuple[str, str], ...] = ()
        self._explicit_edges: tuple[tuple[str, str], ...] = ()
        self._aliases: tuple[tuple[str, str, bool], ...] = ()
        if fields:
            self._apply_shape(build_shape(fields))

    # ------------------------------------------------------------------
    # Shape
    # ------------------------------------------------------------------

    def _apply_shape(self, spec: ShapeSpec) -> None:
        for name, value in spec.fields.items():
            if not (is_schema(value) or isinstance(value, Ref)):
                raise TypeError(f"field '{name}' must be a schema or a ref, got {type(value).__name__}")
        self._fields = dict(spec.fields)
        self._order = spec.order
        self._edges = spec.edges
        self._explicit_edges = spec.explicit_edges

    def with_shape(self, spec: ShapeSpec) -> "ObjectSchema":
        """Return a clone using a prebuilt ShapeSpec (fields replace ours)."""
        next_ = self.clone()
        next_._apply_shape(
            spec
            if not self._fields
            else build_shape(
                {**self._fields, **spec.fields}, self._explicit_edges + spec.explicit_edges
            )
        )
        return next_

    def shape(
        self, fields: Mapping[str, Any], edges: Sequence[tuple[str, str]] = ()
    ) -> "ObjectSchema":
        """Return a clone with `fields` merged into the shape."""
        next_ = self.clone()
        next_._apply_shape(
            build_shape({**self._fields, **fields}, self._explicit_edges + tuple(map(tuple, edges)))
        )
        return next_

    def _merge_from(self, base: MixedSchema) -> None:
        base_fields = getattr(base, "_fields", {})
        if base_fields:
            self._apply_shape(
                build_shape(
                    {**base_fields, **self._fields},
                    getattr(base, "_explicit_edges", ()) + self._explicit_edges,
                )
            )
        self._aliases = getattr(base, "_aliases", ()) + self._aliases

    @property
    def fields(self) -> dict[str, Any]:
        return dict(self._fields)

    @property
    def field_order(self) -> tuple[str, ...]:
        return self._order

    @property
    def edges(self) -> tuple[tuple[str, str], ...]:
        return self._edges

    @property
    def field_specs(self) -> dict[str, FieldSpec]:
        aliases = {target: (source, keep) for source, target, keep in self._aliases}
        specs = {}
        for name, value in self._fields.items():
            source, keep = aliases.get(name, (None, False))
            specs[name] = FieldSpec(
                name=name,
                schema=value,
                dependencies=_field_dependencies(value),
                strip=bool(getattr(value, "is_stripped", False)),
                alias_from=source,
                alias_keep=keep,
            )
        return specs

    # ------------------------------------------------------------------
    # Key transforms
    # ------------------------------------------------------------------

    def from_(self, source: str, target: str, alias: bool = False) -> "ObjectSchema":
        """
        Copy (``alias=True``) or move the value at `source` to `target`.

        Runs at cast time before fields are cast. Dotted paths address nested
        mappings. Nothing happens when `source` is absent.
        """

        def transform(value: Any, original: Any, schema: MixedSchema) -> Any:
            if not isinstance(value, dict) or not has_in(value, source):
                return value
            moved = get_in(value, source)
            result = value if alias else without_path(value, source)
            return set_in(result, target, moved)

        next_ = self._with_transform(transform)
        next_._aliases = self._aliases + ((source, target, alias),)
        return next_

    def _rename_unknown_keys(self, convert) -> "ObjectSchema":
        def transform(value: Any, original: Any, schema: MixedSchema) -> Any:
            if not isinstance(value, dict):
                return value
            known = getattr(schema, "_fields", {})
            renamed = {(key if key in known else convert(key)): item for key, item in value.items()}
            return value if list(renamed) == list(value) else renamed

        return self._with_transform(transform)

    def camel_case(self) -> "ObjectSchema":
        return self._rename_unknown_keys(casing.camel_case)

    def constant_case(self) -> "ObjectSchema":
        return self._rename_unknown_keys(casing.constant_case)

    def no_unknown(self, flag: bool | str = True, message: Any = None) -> "ObjectSchema":
        """Reject undeclared keys. ``no_unknown("msg")`` is short for ``no_unknown(True, "msg")``."""
        if isinstance(flag, str):
            flag, message = True, flag
        if not flag:
            return self._without_check("noUnknown")

        def predicate(value: Any, ctx) -> Any:
            if not isinstance(value, dict):
                return True
            unknown = [key for key in value if key not in ctx.schema._fields]
            return not unknown or ctx.create_error(params={"unknown": ", ".join(map(str, unknown))})

        return self._with_check(
            Check(
                "noUnknown",
                message or messages.message("object", "noUnknown"),
                predicate,
                exclusive=True,
                skip_absent=True,
            )
        )

    # ------------------------------------------------------------------
    # Casting
    # ------------------------------------------------------------------

    def _type_check(self, value: Any) -> bool:
        return isinstance(value, dict)

    def _coerce(self, value: Any) -> Any:
        if isinstance(value, str):
            try:
                return json.loads(value)
            except ValueError:
                return value
        if isinstance(value, Mapping) and not isinstance(value, dict):
            return dict(value)
        return value

    def _implicit_default(self) -> Any:
        if not self._fields:
            return MISSING
        defaults = {}
        for name, value in self._fields.items():
            if not isinstance(value, MixedSchema):
                continue
            default = value.default()
            if default is not MISSING:
                defaults[name] = default
        return defaults

    def _cast(self, value: Any, scope: Scope) -> Any:
        result = self._apply_transforms(value)
        if result is MISSING:
            return self.default()
        if not isinstance(result, dict):
            return result
        return self._cast_fields(value, result, scope)

    def _cast_fields(self, original: Any, value: dict, scope: Scope) -> dict:
        strip_unknown = scope.options.strip_unknown
        out: dict[str, Any] = {}
        stripped = set()

        for name in self._order:
            field = self._fields[name]
            raw = value.get(name, MISSING)
            field_scope = scope.child(join_path(scope.path, name), parent=out)

            if isinstance(field, Ref):
                result = field.cast(raw, out, scope.context)
            else:
                schema = field.resolve(raw, out, scope.context, scope.options)
                if schema.is_stripped:
                    stripped.add(name)
                if scope.validating and schema.is_strict:
                    result = raw
                else:
                    result = schema._cast_checked(raw, field_scope)

            if result is not MISSING:
                out[name] = result

        # Stripped fields stay visible to later conditions but leave the result
        result = {name: out[name] for name in self._fields if name in out and name not in stripped}
        if not strip_unknown:
            result.update((key, item) for key, item in value.items() if key not in self._fields)

        if isinstance(original, dict) and result.keys() == original.keys():
            if all(_same(original[key], result[key]) for key in result):
                return original
        return result

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    async def _validate(self, value: Any, scope: Scope) -> Any:
        value, errors = await self._run_checks(value, scope)

        if not scope.recursive or not isinstance(value, dict):
            collect_errors((), errors, value, scope)
            return value

        resolved = {}
        for name in self._order:
            field = self._fields[name]
            if isinstance(field, Ref):
                continue
            resolved[name] = field.resolve(value.get(name, MISSING), value, scope.context, scope.options)

        results = await asyncio.gather(
            *(
                resolved[name]._validate(
                    value.get(name, MISSING),
                    scope.child(join_path(scope.path, name), parent=value, strict=True),
                )
                for name in self._fields
                if name in resolved
            ),
            return_exceptions=True,
        )
        collect_errors(results, errors, value, scope)
        return value

    def describe(self) -> dict[str, Any]:
        description = super().describe()
        description["fields"] = {name: value.describe() for name, value in self._fields.items()}
        description["order"] = list(self._order)
        if self._aliases:
            description["aliases"] = [
                {"from": source, "to": target, "keep": keep} for source, target, keep in self._aliases
            ]
        return description
