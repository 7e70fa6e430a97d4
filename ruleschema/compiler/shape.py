"""
Shape Compiler.

Compiles the field mapping of an object rule (``["object", {...}, edges]`` or
``["shape", {...}, edges]``) into a ShapeSpec: compiled field schemas, their
dependencies, and the evaluation order produced by the dependency resolver.
"""

import logging
from collections.abc import Mapping
from typing import Any

from ruleschema.core.errors import CompilationError, InvalidRuleError, ShapeCompilationError
from ruleschema.core.observability import record_shape
from ruleschema.domain.rules import ShapeSpec
from ruleschema.schema.object import build_shape

logger = logging.getLogger(__name__)


def compile_shape(
    fields: Mapping[str, Any], explicit_edges: Any = None, path: str = "$"
) -> ShapeSpec:
    """
    Compile a field mapping into a ShapeSpec.

    Each entry is compiled independently unless it already is a schema or a
    ref, in which case it is used unchanged.

    Args:
        fields: Field name -> RuleList, prebuilt schema, or ref
        explicit_edges: Optional ``[[dependent, dependency], ...]`` pairs that
                        override inferred dependency edges
        path: JSONPath of the shape (for error reporting)

    Returns:
        ShapeSpec with compiled fields, per-field specs, order and edges

    Raises:
        InvalidRuleError: If `fields` is not a mapping or an edge is malformed
        ShapeCompilationError: If a field fails to compile (chains the cause)
        CyclicDependencyError: If the field dependencies form a cycle
    """
    from ruleschema.compiler.compiler import compile_entry

    if not isinstance(fields, Mapping):
        raise InvalidRuleError(
            f"Shape fields must be a mapping, got {type(fields).__name__}",
            details={"path": path},
        )

    compiled = {}
    for name, entry in fields.items():
        if not isinstance(name, str):
            raise InvalidRuleError(
                f"Shape field names must be strings, got {name!r}", details={"path": path}
            )
        field_path = f"{path}.{name}"
        try:
            compiled[name] = compile_entry(entry, field_path)
        except CompilationError as e:
            raise ShapeCompilationError(
                f"Field '{name}' failed to compile: {e.message}",
                details={**e.details, "field": name, "path": field_path, "cause": type(e).__name__},
            ) from e

    spec = build_shape(compiled, _normalize_edges(explicit_edges, path))

    record_shape(len(spec))
    logger.debug(
        "Compiled shape at %s: %d fields, order=%s, edges=%s",
        path,
        len(spec),
        list(spec.order),
        list(spec.edges),
    )

    return spec


def _normalize_edges(edges: Any, path: str) -> tuple[tuple[str, str], ...]:
    """
    Validate explicit edges.

    Raises:
        InvalidRuleError: If `edges` is not a sequence of string pairs
    """
    if edges is None:
        return ()
    if not isinstance(edges, (list, tuple)):
        raise InvalidRuleError(
            "Shape edges must be a list of [dependent, dependency] pairs",
            details={"path": path, "type": type(edges).__name__},
        )

    normalized = []
    for index, edge in enumerate(edges):
        if (
            not isinstance(edge, (list, tuple))
            or len(edge) != 2
            or not all(isinstance(node, str) for node in edge)
        ):
            raise InvalidRuleError(
                f"Shape edge must be a pair of field names, got {edge!r}",
                details={"path": f"{path}.edges[{index}]"},
            )
        normalized.append((edge[0], edge[1]))
    return tuple(normalized)
