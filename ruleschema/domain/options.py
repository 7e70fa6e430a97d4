"""
Cast and validate options.

Callers may pass an options model or a plain mapping. Mapping keys may use
the serialized camelCase names (``stripUnknown``, ``abortEarly``) or the
snake_case field names.
"""

from collections.abc import Mapping
from typing import Any, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ruleschema.core import config


class _Options(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        extra="ignore",
        arbitrary_types_allowed=True,
    )


class CastOptions(_Options):
    """
    Options accepted by `cast`.

    Attributes:
        strip_unknown: Drop keys not declared in an object shape
        assert_: True raises CastError on an uncastable value, False returns
                 None instead, "ignore-optional" also lets None through
        context: External values addressed by ``$``-prefixed refs and keys
    """

    strip_unknown: bool = False
    assert_: bool | Literal["ignore-optional"] = Field(default=True, alias="assert")
    context: dict[str, Any] = Field(default_factory=dict)


class ValidateOptions(_Options):
    """
    Options accepted by `validate`.

    Attributes:
        abort_early: Stop at the first failure instead of collecting all
        recursive: Descend into object fields and array elements
        strict: Skip casting; None defers to the schema's own strict flag
        strip_unknown: Drop undeclared object keys while casting
        context: External values addressed by ``$``-prefixed refs and keys
    """

    abort_early: bool = Field(default_factory=lambda: config.settings.default_abort_early)
    recursive: bool = True
    strict: bool | None = None
    strip_unknown: bool = False
    context: dict[str, Any] = Field(default_factory=dict)


OptionsT = TypeVar("OptionsT", bound=_Options)


def coerce_options(options: "Mapping[str, Any] | _Options | None", model: type[OptionsT]) -> OptionsT:
    """
    Build `model` from `options`.

    An instance of `model` is returned unchanged. Another options model is
    converted through its field values, so validate options can drive a cast.
    """
    if options is None:
        return model()
    if isinstance(options, model):
        return options
    if isinstance(options, _Options):
        return model(**options.model_dump(include=set(model.model_fields)))
    if isinstance(options, Mapping):
        return model.model_validate(dict(options))
    raise TypeError(f"options must be a mapping or {model.__name__}, got {type(options).__name__}")
