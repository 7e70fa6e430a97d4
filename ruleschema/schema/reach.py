"""Walk a schema tree to the schema at a value path."""

from typing import Any

from ruleschema.domain.enums import MISSING
from ruleschema.schema.array import ArraySchema
from ruleschema.schema.object import ObjectSchema
from ruleschema.schema.paths import tokenize
from ruleschema.schema.ref import Ref


def reach(schema: Any, path: str, value: Any = None, context: dict[str, Any] | None = None) -> Any:
    """
    Return the schema at `path` inside `schema`.

    Object fields are addressed by name (``a.b``), array elements by index or
    by ``[]`` (``arr[0].x``, ``arr[].x``). Lazy schemas and conditions along
    the way are resolved against `value` when it is given.

    Raises:
        ValueError: If a segment does not exist in the schema
    """
    parent = None
    current = MISSING if value is None else value

    for segment, is_index in tokenize(path):
        if isinstance(schema, Ref):
            raise ValueError(f"cannot reach past ref {schema.key!r} at segment {segment!r} of {path!r}")
        schema = schema.resolve(current, parent, context)

        if is_index:
            if not isinstance(schema, ArraySchema) or schema.inner is None:
                raise ValueError(f"path {path!r} indexes into a non-array schema")
            parent = current
            if isinstance(current, list) and segment and int(segment) < len(current):
                current = current[int(segment)]
            else:
                current = MISSING
            schema = schema.inner
        else:
            if not isinstance(schema, ObjectSchema) or segment not in schema.fields:
                raise ValueError(f"the schema does not contain the path {path!r} (failed at {segment!r})")
            parent = current
            current = current.get(segment, MISSING) if isinstance(current, dict) else MISSING
            schema = schema.fields[segment]

    if isinstance(schema, Ref):
        return schema
    return schema.resolve(current, parent, context)
