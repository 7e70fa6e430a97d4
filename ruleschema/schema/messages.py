"""
Default error messages.

Templates use ``${name}`` placeholders filled from the failing check's
params; ``path`` is always available (the field label, its path, or
``this`` at the root). A message may also be a callable taking the params
mapping. `set_locale` replaces entries of the table in place.
"""

from collections.abc import Mapping
from typing import Any


def print_value(value: Any, quote_strings: bool = False) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return f'"{value}"' if quote_strings else value
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


def not_type(params: Mapping[str, Any]) -> str:
    value = params.get("value")
    original = params.get("original_value")
    is_cast = original is not None and original is not value
    message = (
        f"{params['path']} must be a `{params['type']}` type, "
        f"but the final value was: `{print_value(value, True)}`"
    )
    message += f" (cast from the value `{print_value(original, True)}`)." if is_cast else "."
    if value is None:
        message += (
            '\n If "null" is intended as an empty value be sure to mark the schema as'
            " `.nullable()`"
        )
    return message


LOCALE: dict[str, dict[str, Any]] = {
    "mixed": {
        "default": "${path} is invalid",
        "required": "${path} is a required field",
        "oneOf": "${path} must be one of the following values: ${values}",
        "notOneOf": "${path} must not be one of the following values: ${values}",
        "notType": not_type,
    },
    "string": {
        "length": "${path} must be exactly ${length} characters",
        "min": "${path} must be at least ${min} characters",
        "max": "${path} must be at most ${max} characters",
        "matches": '${path} must match the following: "${regex}"',
        "email": "${path} must be a valid email",
        "trim": "${path} must be a trimmed string",
        "lowercase": "${path} must be a lowercase string",
        "uppercase": "${path} must be a upper case string",
    },
    "number": {
        "min": "${path} must be greater than or equal to ${min}",
        "max": "${path} must be less than or equal to ${max}",
        "lessThan": "${path} must be less than ${less}",
        "moreThan": "${path} must be greater than ${more}",
        "positive": "${path} must be a positive number",
        "negative": "${path} must be a negative number",
        "integer": "${path} must be an integer",
    },
    "date": {
        "min": "${path} field must be later than ${min}",
        "max": "${path} field must be at earlier than ${max}",
    },
    "object": {
        "noUnknown": "${path} field has unspecified keys: ${unknown}",
    },
    "array": {
        "min": "${path} field must have at least ${min} items",
        "max": "${path} field must have less than or equal to ${max} items",
    },
}


def message(group: str, name: str) -> Any:
    return LOCALE[group][name]


def set_locale(overrides: Mapping[str, Mapping[str, Any]]) -> None:
    """Merge `overrides` (same nesting as LOCALE) into the message table."""
    for group, entries in overrides.items():
        LOCALE.setdefault(group, {}).update(entries)
