"""
Dependency resolution for object shapes.

Nodes are field names (plus any non-field names a field depends on); an edge
``(a, b)`` means "a's schema needs b's value first". The resolver produces a
deterministic topological order and rejects cycles.
"""

import logging
from collections.abc import Iterable, Sequence
from enum import Enum

from ruleschema.core.errors import CyclicDependencyError

logger = logging.getLogger(__name__)

Edge = tuple[str, str]


class _VisitState(Enum):
    VISITING = 1
    DONE = 2


def merge_edges(inferred: Iterable[Edge], explicit: Iterable[Edge] = ()) -> list[Edge]:
    """
    Combine inferred dependency edges with caller-supplied ones.

    An explicit edge ``(a, b)`` is authoritative: an inferred edge in the
    opposite direction ``(b, a)`` is dropped. Explicit edges that contradict
    each other are both kept, so they surface as a cycle.

    Args:
        inferred: Edges collected from `when` declarations and sibling refs,
                  in field declaration order
        explicit: Edges supplied with the shape

    Returns:
        De-duplicated edge list: surviving inferred edges first, then any
        explicit edge not already present
    """
    explicit = [tuple(edge) for edge in explicit]
    overridden = {(b, a) for a, b in explicit}

    merged: list[Edge] = []
    seen: set[Edge] = set()
    for edge in inferred:
        edge = tuple(edge)
        if edge in overridden and edge not in explicit:
            logger.debug("Dropping inferred edge %s -> %s (explicit override)", *edge)
            continue
        if edge not in seen:
            seen.add(edge)
            merged.append(edge)

    for edge in explicit:
        if edge not in seen:
            seen.add(edge)
            merged.append(edge)

    return merged


def resolve_order(nodes: Sequence[str], edges: Iterable[Edge]) -> list[str]:
    """
    Topologically sort `nodes` so every node follows the nodes it depends on.

    Depth-first, iterative (explicit stack), visiting roots in the order of
    `nodes` and children in edge order. Nodes with no path between them keep
    their relative declaration order.

    Args:
        nodes: Node names in declaration order
        edges: ``(dependent, dependency)`` pairs; endpoints missing from
               `nodes` are appended as extra nodes

    Returns:
        All nodes, dependencies first

    Raises:
        CyclicDependencyError: Naming the node being visited when an
                               in-progress node was reached again
    """
    adjacency: dict[str, list[str]] = {node: [] for node in nodes}
    for dependent, dependency in edges:
        adjacency.setdefault(dependent, [])
        adjacency.setdefault(dependency, [])
        if dependency not in adjacency[dependent]:
            adjacency[dependent].append(dependency)

    state: dict[str, _VisitState] = {}
    order: list[str] = []

    for root in adjacency:
        if root in state:
            continue

        state[root] = _VisitState.VISITING
        stack = [(root, iter(adjacency[root]))]

        while stack:
            node, children = stack[-1]
            child = next(children, None)

            if child is None:
                stack.pop()
                state[node] = _VisitState.DONE
                order.append(node)
                continue

            child_state = state.get(child)
            if child_state is _VisitState.DONE:
                continue
            if child_state is _VisitState.VISITING:
                raise CyclicDependencyError(node, details={"dependency": child})

            state[child] = _VisitState.VISITING
            stack.append((child, iter(adjacency[child])))

    return order
