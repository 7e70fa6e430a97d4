"""
Rule List Structural Validation.

Checks that a rule list is well formed and parses it into the typed
intermediate form before any handler runs:
- The rule list is a non-empty sequence of tuples
- Every tuple is a non-empty sequence whose first element is a string
- The first tuple names a known schema kind
- Every other tuple names a known modifier

Nested rule lists (shape fields, `of`, branches) are validated when they are
compiled.
"""

import logging
from typing import Any

from ruleschema.core.errors import InvalidRuleError, UnknownKindError, UnknownModifierError
from ruleschema.domain.enums import Modifier, SchemaKind
from ruleschema.domain.rules import KindRule, ModifierRule, ParsedRuleList

logger = logging.getLogger(__name__)


def validate_rule_list(rule_list: Any, path: str = "$") -> ParsedRuleList:
    """
    Validate a rule list and parse it into a ParsedRuleList.

    Args:
        rule_list: Caller-supplied rule list, e.g.
                   ``[["string"], ["min", 3], ["required"]]``
        path: JSONPath of the rule list (for error reporting)

    Returns:
        The parsed kind tuple and modifier tuples

    Raises:
        InvalidRuleError: If the list or one of its tuples is malformed
        UnknownKindError: If the first tuple does not name a schema kind
        UnknownModifierError: If a later tuple does not name a modifier

    Example:
        >>> parsed = validate_rule_list([["number"], ["min", 1]])
        >>> parsed.kind.kind, parsed.modifiers[0].modifier
        (<SchemaKind.NUMBER: 'number'>, <Modifier.MIN: 'min'>)
    """
    if not isinstance(rule_list, (list, tuple)) or not rule_list:
        raise InvalidRuleError(
            "Rule list must be a non-empty list of rule tuples",
            details={"path": path, "type": type(rule_list).__name__},
        )

    tuples = [_validate_tuple(entry, f"{path}[{index}]") for index, entry in enumerate(rule_list)]

    kind_name, kind_args = tuples[0]
    try:
        kind = SchemaKind(kind_name)
    except ValueError:
        raise UnknownKindError(
            f"Unknown schema kind '{kind_name}'",
            details={
                "kind": kind_name,
                "index": 0,
                "path": f"{path}[0]",
                "allowed_kinds": [k.value for k in SchemaKind],
            },
        ) from None

    modifiers = []
    for index, (name, args) in enumerate(tuples[1:], start=1):
        try:
            modifier = Modifier(name)
        except ValueError:
            raise UnknownModifierError(
                f"Unknown modifier '{name}' at index {index}",
                details={"modifier": name, "index": index, "path": f"{path}[{index}]"},
            ) from None
        modifiers.append(ModifierRule(modifier=modifier, args=args, index=index))

    return ParsedRuleList(kind=KindRule(kind=kind, args=kind_args), modifiers=tuple(modifiers))


def _validate_tuple(entry: Any, path: str) -> tuple[str, tuple[Any, ...]]:
    """
    Validate one rule tuple.

    Returns:
        The tuple's name and its remaining arguments
    """
    if not isinstance(entry, (list, tuple)) or not entry:
        raise InvalidRuleError(
            "Rule tuple must be a non-empty list whose first element is a name",
            details={"path": path, "type": type(entry).__name__},
        )

    name = entry[0]
    if not isinstance(name, str):
        raise InvalidRuleError(
            f"Rule tuple name must be a string, got {type(name).__name__}",
            details={"path": path},
        )

    return name, tuple(entry[1:])
