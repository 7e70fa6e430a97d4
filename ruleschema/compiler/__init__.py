"""
Rule list compiler for ruleschema.

This package turns declarative rule lists (plain ``[name, *args]`` tuples)
into executable schemas.

Key Components:
- validator: Checks rule list structure and parses it into typed tuples
- compiler: Applies the kind and modifier handlers in order
- handlers: Read-only kind and modifier registries
- shape: Compiles object shapes and orders their fields by dependency
- canonicalizer: Deterministic JSON for descriptions and cache keys

Design Principles:
- Determinism: The same rule list always compiles to equivalent schemas
- Fail fast: Structural errors are raised before any handler runs
- Purity: Handlers never mutate the schema they receive
"""

from ruleschema.compiler.canonicalizer import canonicalize_json
from ruleschema.compiler.compiler import Rules, compile_entry, compile_rules
from ruleschema.compiler.shape import compile_shape
from ruleschema.compiler.validator import validate_rule_list

__all__ = [
    "compile_rules",
    "compile_entry",
    "compile_shape",
    "validate_rule_list",
    "canonicalize_json",
    "Rules",
]
