"""Typed intermediate form of a rule list and of a compiled shape.

Pure dataclasses, no schema behaviour. The structural validator parses a raw
rule list into `KindRule` + `ModifierRule` values; the shape compiler
describes each compiled field with a `FieldSpec`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ruleschema.domain.enums import Modifier, SchemaKind


@dataclass(frozen=True)
class KindRule:
    """Leading tuple of a rule list: selects the base schema."""

    kind: SchemaKind
    args: tuple[Any, ...] = ()
    index: int = 0


@dataclass(frozen=True)
class ModifierRule:
    """Non-leading tuple of a rule list: transforms the accumulated schema."""

    modifier: Modifier
    args: tuple[Any, ...]
    index: int


@dataclass(frozen=True)
class ParsedRuleList:
    """A structurally valid rule list."""

    kind: KindRule
    modifiers: tuple[ModifierRule, ...] = ()

    @property
    def name(self) -> str:
        return self.kind.kind.value


@dataclass(frozen=True)
class FieldSpec:
    """One compiled field of an object shape."""

    name: str
    schema: Any
    dependencies: tuple[str, ...] = ()
    strip: bool = False
    alias_from: str | None = None  # source path of a `from` directive
    alias_keep: bool = False  # keep the source key after aliasing


@dataclass(frozen=True)
class ShapeSpec:
    """Compiled shape: fields, their specs, and their evaluation order."""

    fields: dict[str, Any]
    specs: dict[str, FieldSpec] = field(default_factory=dict)
    order: tuple[str, ...] = ()
    edges: tuple[tuple[str, str], ...] = ()
    explicit_edges: tuple[tuple[str, str], ...] = ()

    def __len__(self) -> int:
        return len(self.fields)
