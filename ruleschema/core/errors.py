"""
Domain-specific exceptions for ruleschema.

Compile-time errors signal a malformed declarative description and are never
retried. Cast and validation errors are per-value and expected by callers.
"""

from string import Template
from typing import Any


class RuleSchemaError(Exception):
    """Base exception for all ruleschema errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class CompilationError(RuleSchemaError):
    """
    Raised when a rule list cannot be compiled into a schema.

    Examples:
    - Malformed rule tuple
    - Unknown kind or modifier name
    - Cyclic field dependencies
    """

    pass


class InvalidRuleError(CompilationError):
    """
    Raised when a rule list or tuple is structurally invalid.

    Examples:
    - Rule list is not a list of tuples
    - Tuple name is not a string
    - Handler rejected its arguments (wrong arity, bad value)
    """

    pass


class UnknownKindError(CompilationError):
    """Raised when the first tuple of a rule list does not name a schema kind."""

    @property
    def kind(self) -> str | None:
        return self.details.get("kind")


class UnknownModifierError(CompilationError):
    """
    Raised when a modifier tuple names no registered handler, or names a
    handler the current schema kind does not support.
    """

    @property
    def index(self) -> int | None:
        return self.details.get("index")


class ShapeCompilationError(CompilationError):
    """Raised when one field of a shape fails to compile. Chains the cause."""

    @property
    def field(self) -> str | None:
        return self.details.get("field")


class CyclicDependencyError(CompilationError):
    """
    Raised when the `when`/ref dependencies of a shape form a cycle.

    Recompiling with an explicit edge between the offending fields breaks it.
    """

    def __init__(self, node: str, details: dict[str, Any] | None = None):
        self.node = node
        super().__init__(
            f'Cyclic dependency, node was: "{node}"', details={"node": node, **(details or {})}
        )


class CastError(RuleSchemaError, TypeError):
    """Raised when a value cannot be cast to the schema type and `assert` is on."""

    pass


class InvalidLazyResultError(RuleSchemaError, TypeError):
    """Raised when a lazy builder returns neither a schema nor a rule list."""

    pass


class ValidationError(RuleSchemaError):
    """
    Raised when a value fails validation.

    Aggregates nested failures: `errors` is the flat list of messages in
    report order, `inner` the leaf errors they came from.

    Attributes:
        errors: Flat list of error messages
        inner: Leaf ValidationError instances
        value: Value being validated at the point of rejection
        path: Dotted/bracketed path of the failure (empty string for root)
        type: Name of the failing test for leaf errors
        params: Template parameters of the failing test
    """

    def __init__(
        self,
        errors: "str | ValidationError | list[str | ValidationError]",
        value: Any = None,
        path: str | None = None,
        type: str | None = None,
        params: dict[str, Any] | None = None,
    ):
        self.value = value
        self.path = path
        self.type = type
        self.params = params or {}
        self.errors: list[str] = []
        self.inner: list[ValidationError] = []

        for err in errors if isinstance(errors, list) else [errors]:
            if isinstance(err, ValidationError):
                self.errors.extend(err.errors)
                self.inner.extend(err.inner or [err])
            else:
                self.errors.append(str(err))

        if len(self.errors) > 1:
            message = f"{len(self.errors)} errors occurred"
        else:
            message = self.errors[0] if self.errors else "Validation failed"

        super().__init__(
            message, details={"path": path, "type": type, "errors": list(self.errors)}
        )

    @staticmethod
    def format_message(message: Any, params: dict[str, Any]) -> str:
        """Render a message template (``${path}`` style) or message callable."""
        if callable(message):
            return str(message(params))
        return Template(str(message)).safe_substitute(
            {key: _print_param(value) for key, value in params.items()}
        )


def _print_param(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (list, tuple, set, frozenset)):
        return ", ".join(_print_param(v) for v in value)
    if hasattr(value, "isoformat"):
        return value.isoformat()
    if value is None:
        return "null"
    return str(value)


# Error category mapping
ERROR_CATEGORY_MAP = {
    CompilationError: "compile",
    CastError: "cast",
    InvalidLazyResultError: "resolve",
    ValidationError: "validation",
}


def get_error_category(error: Exception) -> str:
    """
    Get the category of a ruleschema exception.

    Args:
        error: The exception instance

    Returns:
        "compile", "cast", "resolve", "validation" (defaults to "internal")
    """
    for cls in type(error).__mro__:
        if cls in ERROR_CATEGORY_MAP:
            return ERROR_CATEGORY_MAP[cls]
    return "internal"
