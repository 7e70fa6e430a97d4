"""
Rule Interpreter for ruleschema.

Compiles a rule list (plain, serializable ``[name, *args]`` tuples) into an
executable schema.

The interpreter:
- Validates the rule list structure before any handler runs
- Builds the base schema from the leading kind tuple
- Applies every following modifier tuple in order through the read-only
  handler registry, recursing into nested rule lists (`shape`, `of`,
  `when` branches, `concat`, lazy results)

Compilation is synchronous and pure: the same rule list always yields a
schema with the same cast and validate behaviour.
"""

import logging
import time
from contextvars import ContextVar
from typing import Any

from ruleschema.compiler.handlers import KIND_HANDLERS, MODIFIER_HANDLERS
from ruleschema.compiler.validator import validate_rule_list
from ruleschema.core.errors import InvalidRuleError, RuleSchemaError, UnknownModifierError
from ruleschema.core.observability import record_compilation
from ruleschema.domain.rules import ParsedRuleList
from ruleschema.schema import Ref, is_schema

logger = logging.getLogger(__name__)

# Nesting depth of the current compilation (0 for a caller-supplied rule list)
_compile_depth: ContextVar[int] = ContextVar("compile_depth", default=0)


def compile_rules(rule_list: Any, path: str = "$") -> Any:
    """
    Compile a rule list into a schema.

    Args:
        rule_list: e.g. ``[["object", {"num": [["number"]]}], ["noUnknown"]]``
        path: JSONPath of the rule list (for error reporting)

    Returns:
        The compiled schema (a Ref for ``["ref", key]``)

    Raises:
        InvalidRuleError: If the rule list is malformed or a handler rejects
                          its arguments
        UnknownKindError: If the leading tuple names no schema kind
        UnknownModifierError: If a tuple names no modifier, or one the
                              current kind does not support
        ShapeCompilationError: If an object field fails to compile
        CyclicDependencyError: If object fields depend on each other cyclically

    Example:
        >>> schema = compile_rules([["object", {"num": [["number"]]}]])
        >>> schema.cast({"num": "5"})
        {'num': 5}
    """
    start_time = time.perf_counter()
    depth = _compile_depth.get()
    token = _compile_depth.set(depth + 1)
    kind = "unknown"

    try:
        parsed = validate_rule_list(rule_list, path)
        kind = parsed.name
        schema = _interpret(parsed, path)
    except Exception as e:
        duration = time.perf_counter() - start_time
        record_compilation("error", kind, duration)
        if depth == 0:
            logger.warning(
                "Failed to compile rule list (kind=%s): %s: %s",
                kind,
                type(e).__name__,
                e,
                extra={"kind": kind, "path": path},
            )
        raise
    finally:
        _compile_depth.reset(token)

    duration = time.perf_counter() - start_time
    record_compilation("success", kind, duration)
    logger.debug(
        "Compiled %s rule list at %s: %d modifiers, duration=%.6fs",
        kind,
        path,
        len(parsed.modifiers),
        duration,
    )

    return schema


def compile_entry(entry: Any, path: str = "$") -> Any:
    """
    Compile a nested entry: schemas and refs pass through unchanged.

    Raises:
        InvalidRuleError: If `entry` is neither a rule list, a schema nor a ref
    """
    if is_schema(entry) or isinstance(entry, Ref):
        return entry
    if isinstance(entry, (list, tuple)):
        return compile_rules(entry, path)
    raise InvalidRuleError(
        f"Expected a rule list, schema or ref, got {type(entry).__name__}",
        details={"path": path, "type": type(entry).__name__},
    )


def _interpret(parsed: ParsedRuleList, path: str) -> Any:
    """
    Apply the kind handler, then each modifier handler in order.

    Handler failures other than ruleschema errors (wrong arity, bad values)
    are reported as InvalidRuleError naming the tuple index.
    """
    name = parsed.name
    try:
        schema = KIND_HANDLERS[parsed.kind.kind](*parsed.kind.args)
    except RuleSchemaError:
        raise
    except (TypeError, ValueError) as e:
        raise InvalidRuleError(
            f"Invalid arguments for kind '{name}': {e}",
            details={"index": 0, "rule": name, "path": f"{path}[0]"},
        ) from e

    for rule in parsed.modifiers:
        handler = MODIFIER_HANDLERS[rule.modifier]
        if not handler.supports(schema):
            raise UnknownModifierError(
                f"Modifier '{rule.modifier.value}' at index {rule.index} is not supported "
                f"by kind '{name}'",
                details={
                    "modifier": rule.modifier.value,
                    "index": rule.index,
                    "kind": name,
                    "path": f"{path}[{rule.index}]",
                },
            )
        try:
            schema = handler.apply(schema, *rule.args)
        except RuleSchemaError:
            raise
        except (TypeError, ValueError) as e:
            raise InvalidRuleError(
                f"Invalid arguments for modifier '{rule.modifier.value}' at index "
                f"{rule.index}: {e}",
                details={
                    "index": rule.index,
                    "rule": rule.modifier.value,
                    "path": f"{path}[{rule.index}]",
                },
            ) from e

    return schema


class Rules:
    """
    A rule list awaiting compilation.

    Example:
        >>> schema = Rules([["string"], ["trim"], ["required"]]).to_schema()
    """

    def __init__(self, rules: Any):
        self.rules = rules

    def to_schema(self) -> Any:
        return compile_rules(self.rules)

    def __repr__(self) -> str:
        return f"Rules({self.rules!r})"
