"""
Tests for the primitive schema provider.

These tests verify:
- Scalar coercion and checks (string, number, boolean, date)
- Whitelists, blacklists, nullable and required
- Clone-on-write modifiers, concat and describe
- Value paths, refs, key casing and options
"""

from datetime import UTC, datetime

import pytest

from ruleschema.core.errors import CastError, ValidationError
from ruleschema.domain.options import CastOptions, ValidateOptions, coerce_options
from ruleschema.schema import MISSING, Ref, boolean, date, mixed, number, object_, string
from ruleschema.schema import casing, messages
from ruleschema.schema.paths import get_in, has_in, index_path, join_path, set_in, tokenize, without_path


async def _errors(schema, value, options=None):
    try:
        await schema.validate(value, options)
    except ValidationError as err:
        return err.errors
    return []


class TestStringSchema:
    """Test string coercion and checks."""

    @pytest.mark.anyio
    async def test_cast(self):
        """Test that numbers become strings and other types do not."""
        assert string().cast(5) == "5"
        assert string().cast("x") == "x"
        with pytest.raises(CastError):
            string().cast(True)

    @pytest.mark.anyio
    async def test_min_max_length(self):
        """Test length bounds."""
        assert await _errors(string().min(3), "ab") == ["this must be at least 3 characters"]
        assert await _errors(string().max(2), "abc") == ["this must be at most 2 characters"]
        assert await _errors(string().length(2), "abc") == ["this must be exactly 2 characters"]
        assert await string().min(3).is_valid("abc") is True

    @pytest.mark.anyio
    async def test_bounds_skip_absent_values(self):
        """Test that range checks ignore missing values."""
        assert await string().min(3).is_valid() is True

    @pytest.mark.anyio
    async def test_email(self):
        """Test the email check (empty strings pass)."""
        schema = string().email()

        assert await schema.is_valid("someone@example.com") is True
        assert await schema.is_valid("") is True
        assert await _errors(schema, "nope") == ["this must be a valid email"]

    @pytest.mark.anyio
    async def test_matches(self):
        """Test the regex check."""
        schema = string().matches(r"^\d+$")

        assert await schema.is_valid("123") is True
        assert await _errors(schema, "12a") == ['this must match the following: "^\\d+$"']
        assert await string().matches(r"^\d+$", exclude_empty=True).is_valid("") is True

    @pytest.mark.anyio
    async def test_trim_transforms_and_checks(self):
        """Test that trim normalises when casting and rejects when strict."""
        schema = string().trim()

        assert schema.cast("  x ") == "x"
        assert await _errors(schema.strict(), "  x ") == ["this must be a trimmed string"]

    @pytest.mark.anyio
    async def test_case_normalisers(self):
        """Test lowercase and uppercase."""
        assert string().lowercase().cast("ABC") == "abc"
        assert string().uppercase().cast("abc") == "ABC"
        assert await string().lowercase().strict().is_valid("ABC") is False

    @pytest.mark.anyio
    async def test_required_rejects_empty_string(self):
        """Test that an empty string is not present."""
        assert await _errors(string().required(), "") == ["this is a required field"]
        assert await string().required().not_required().is_valid("") is True


class TestNumberSchema:
    """Test number coercion and checks."""

    @pytest.mark.anyio
    async def test_cast(self):
        """Test numeric string coercion."""
        assert number().cast("  12 ") == 12
        assert number().cast("1.5") == 1.5
        assert number().cast(3) == 3

    @pytest.mark.anyio
    @pytest.mark.parametrize("value", ["abc", True, ""])
    async def test_cast_failures(self, value):
        """Test values that cannot become numbers."""
        with pytest.raises(CastError):
            number().cast(value)

    @pytest.mark.anyio
    async def test_nan_is_not_a_number(self):
        """Test that NaN fails the type check."""
        assert await number().is_valid(float("nan")) is False

    @pytest.mark.anyio
    async def test_comparisons(self):
        """Test exclusive and inclusive bounds."""
        assert await _errors(number().less_than(5), 5) == ["this must be less than 5"]
        assert await _errors(number().more_than(5), 5) == ["this must be greater than 5"]
        assert await _errors(number().min(5), 4) == ["this must be greater than or equal to 5"]
        assert await _errors(number().max(5), 6) == ["this must be less than or equal to 5"]
        assert await number().min(5).max(5).is_valid(5) is True

    @pytest.mark.anyio
    async def test_sign_checks(self):
        """Test positive and negative."""
        assert await _errors(number().positive(), 0) == ["this must be a positive number"]
        assert await _errors(number().negative(), 0) == ["this must be a negative number"]
        assert await number().positive().is_valid(0.1) is True

    @pytest.mark.anyio
    async def test_integer(self):
        """Test the integer check."""
        assert await number().integer().is_valid(2.0) is True
        assert await _errors(number().integer(), 1.5) == ["this must be an integer"]

    @pytest.mark.anyio
    async def test_rounding(self):
        """Test round and truncate transforms."""
        assert number().round("floor").cast(1.7) == 1
        assert number().round("ceil").cast(1.2) == 2
        assert number().round().cast(1.6) == 2
        assert number().truncate().cast(-1.7) == -1

    @pytest.mark.anyio
    async def test_unknown_round_method(self):
        """Test that an unknown rounding method is rejected."""
        with pytest.raises(ValueError, match="Only valid options"):
            number().round("bogus")

    @pytest.mark.anyio
    async def test_exclusive_bound_replaces_previous(self):
        """Test that a second min replaces the first."""
        schema = number().min(10).min(1)

        assert await schema.is_valid(5) is True
        assert [check["name"] for check in schema.describe()["tests"]] == ["min"]


class TestBooleanAndDate:
    """Test boolean and date schemas."""

    @pytest.mark.anyio
    async def test_boolean_cast(self):
        """Test boolean coercion of common spellings."""
        assert boolean().cast("true") is True
        assert boolean().cast(0) is False
        with pytest.raises(CastError):
            boolean().cast("maybe")

    @pytest.mark.anyio
    async def test_date_cast(self):
        """Test ISO 8601 parsing."""
        assert date().cast("2014-09-23T19:25:25Z") == datetime(2014, 9, 23, 19, 25, 25, tzinfo=UTC)

        value = datetime(2020, 5, 1)
        assert date().cast(value) is value

    @pytest.mark.anyio
    async def test_date_bounds(self):
        """Test min/max with datetime and string bounds."""
        schema = date().min("2020-01-01T00:00:00").max(datetime(2020, 12, 31))

        assert await schema.is_valid(datetime(2020, 6, 1)) is True
        assert await _errors(schema, datetime(2019, 6, 1)) == [
            "this field must be later than 2020-01-01T00:00:00"
        ]
        assert await schema.is_valid(datetime(2021, 6, 1)) is False

    @pytest.mark.anyio
    async def test_invalid_date_bound(self):
        """Test that an unparseable bound is rejected when declared."""
        with pytest.raises(TypeError):
            date().min("not a date")


class TestMixedSchema:
    """Test behaviour shared by every kind."""

    @pytest.mark.anyio
    async def test_one_of(self):
        """Test the whitelist and its message."""
        schema = mixed().one_of(["a", "b"])

        assert await schema.is_valid("a") is True
        assert await schema.is_valid() is True
        assert await _errors(schema, "c") == ["this must be one of the following values: a, b"]

    @pytest.mark.anyio
    async def test_not_one_of(self):
        """Test the blacklist and that it removes whitelisted values."""
        assert await _errors(mixed().not_one_of(["a"]), "a") == [
            "this must not be one of the following values: a"
        ]

        schema = mixed().one_of(["a", "b"]).not_one_of(["a"])

        assert schema.describe()["oneOf"] == ["b"]
        assert await schema.is_valid("a") is False
        assert await schema.is_valid("b") is True

    @pytest.mark.anyio
    async def test_custom_one_of_message(self):
        """Test a custom whitelist message."""
        schema = mixed().one_of([1], "${path} is not one")

        assert await _errors(schema, 2) == ["this is not one"]

    @pytest.mark.anyio
    async def test_nullable(self):
        """Test that None is only accepted when nullable."""
        assert await string().nullable().is_valid(None) is True
        assert await string().is_valid(None) is False
        assert await string().nullable().nullable(False).is_valid(None) is False

    @pytest.mark.anyio
    async def test_null_error_hint(self):
        """Test that a null type failure suggests nullable."""
        errors = await _errors(number(), None)

        assert "must be a `number` type" in errors[0]
        assert ".nullable()" in errors[0]

    @pytest.mark.anyio
    async def test_modifiers_do_not_mutate(self):
        """Test that every modifier returns a clone."""
        base = string()
        derived = base.min(3).required().nullable()

        assert base.describe() == {"type": "string", "flags": {}, "tests": []}
        assert derived is not base
        assert derived.is_required is True

    @pytest.mark.anyio
    async def test_concat_merges(self):
        """Test that concat appends tests and lets the other kind win."""
        merged = mixed().required().concat(string().min(2))

        assert merged.type_name == "string"
        assert [check["name"] for check in merged.describe()["tests"]] == ["required", "min"]
        assert await merged.is_valid("a") is False

    @pytest.mark.anyio
    async def test_concat_kind_mismatch(self):
        """Test that concat refuses different kinds."""
        with pytest.raises(TypeError, match="different types"):
            string().concat(number())

    @pytest.mark.anyio
    async def test_transform_receives_original(self):
        """Test that transforms see both the current and original value."""
        schema = number().transform(lambda value, original: value * 2 if original != "skip" else value)

        assert schema.cast("3") == 6

    @pytest.mark.anyio
    async def test_describe(self):
        """Test the JSON description of a schema."""
        description = string().min(3).required().label("Name").default("abc").describe()

        assert description == {
            "type": "string",
            "flags": {"required": True, "label": "Name"},
            "tests": [{"name": "min", "params": {"min": 3}}, {"name": "required", "params": {}}],
            "default": "abc",
        }

    @pytest.mark.anyio
    async def test_describe_object(self):
        """Test that object descriptions include fields and order."""
        description = object_({"a": string(), "b": number().when("a", lambda a, s: s)}).describe()

        assert description["fields"]["b"]["dependencies"] == ["a"]
        assert description["order"] == ["a", "b"]


class TestPaths:
    """Test value path helpers."""

    @pytest.mark.anyio
    async def test_tokenize(self):
        """Test splitting into names and indexes."""
        assert tokenize("a.b[0].c") == [("a", False), ("b", False), ("0", True), ("c", False)]
        assert tokenize("arr[]") == [("arr", False), ("", True)]

    @pytest.mark.anyio
    async def test_join(self):
        """Test building child paths."""
        assert join_path(None, "a") == "a"
        assert join_path("a", "b") == "a.b"
        assert index_path("arr", 2) == "arr[2]"
        assert index_path(None, 0) == "[0]"

    @pytest.mark.anyio
    async def test_get_in(self):
        """Test reading nested values."""
        data = {"a": [{"b": 1}], "n": None}

        assert get_in(data, "a[0].b") == 1
        assert get_in(data, "a[5].b") is MISSING
        assert get_in(data, "n") is None
        assert has_in(data, "n") is True
        assert has_in(data, "x") is False

    @pytest.mark.anyio
    async def test_set_and_remove(self):
        """Test copying writes and removals."""
        data = {"a": {"x": 1}}

        assert set_in(data, "a.b", 2) == {"a": {"x": 1, "b": 2}}
        assert without_path(data, "a.x") == {"a": {}}
        assert without_path(data, "missing") is data
        assert data == {"a": {"x": 1}}


class TestRef:
    """Test references."""

    @pytest.mark.anyio
    async def test_sibling_ref(self):
        """Test reading from the parent value."""
        ref = Ref("a.b")

        assert ref.is_sibling is True
        assert ref.root == "a"
        assert ref.get_value(parent={"a": {"b": 2}}) == 2

    @pytest.mark.anyio
    async def test_context_ref(self):
        """Test reading from the context."""
        ref = Ref("$x")

        assert ref.is_context is True
        assert ref.get_value(context={"x": 3}) == 3
        assert ref.get_value() is MISSING

    @pytest.mark.anyio
    async def test_value_ref(self):
        """Test reading from the value itself."""
        assert Ref(".a").get_value({"a": 4}) == 4

    @pytest.mark.anyio
    async def test_map_fn(self):
        """Test that map_fn applies to present values only."""
        ref = Ref("a", lambda v: v * 10)

        assert ref.get_value(parent={"a": 2}) == 20
        assert ref.get_value(parent={}) is MISSING

    @pytest.mark.anyio
    async def test_equality_and_validation(self):
        """Test key normalisation and rejection of empty keys."""
        assert Ref(" a ") == Ref("a")
        assert len({Ref("a"), Ref("a")}) == 1
        with pytest.raises(TypeError):
            Ref("")


class TestCasingAndMessages:
    """Test key casing and message tables."""

    @pytest.mark.anyio
    @pytest.mark.parametrize(
        "key,camel,constant",
        [
            ("CON_STAT", "conStat", "CON_STAT"),
            ("CaseStatus", "caseStatus", "CASE_STATUS"),
            ("hi john", "hiJohn", "HI_JOHN"),
            ("HTTPServer", "httpServer", "HTTP_SERVER"),
        ],
    )
    async def test_casing(self, key, camel, constant):
        """Test camelCase and CONSTANT_CASE conversion."""
        assert casing.camel_case(key) == camel
        assert casing.constant_case(key) == constant

    @pytest.mark.anyio
    async def test_set_locale(self, monkeypatch):
        """Test replacing a default message."""
        monkeypatch.setitem(messages.LOCALE, "mixed", dict(messages.LOCALE["mixed"]))
        messages.set_locale({"mixed": {"required": "${path} is needed"}})

        assert await _errors(mixed().required(), None) == ["this is needed"]

    @pytest.mark.anyio
    async def test_print_value(self):
        """Test value rendering used in messages."""
        assert messages.print_value(None) == "null"
        assert messages.print_value(True) == "true"
        assert messages.print_value("x", quote_strings=True) == '"x"'


class TestOptions:
    """Test cast/validate option models."""

    @pytest.mark.anyio
    async def test_camel_case_keys(self):
        """Test that serialized option names are accepted."""
        opts = coerce_options({"stripUnknown": True, "assert": False}, CastOptions)

        assert opts.strip_unknown is True
        assert opts.assert_ is False

    @pytest.mark.anyio
    async def test_snake_case_keys(self):
        """Test that field names are accepted too."""
        opts = coerce_options({"abort_early": False}, ValidateOptions)

        assert opts.abort_early is False
        assert opts.recursive is True

    @pytest.mark.anyio
    async def test_validate_options_drive_cast(self):
        """Test converting validate options to cast options."""
        opts = coerce_options(ValidateOptions(strip_unknown=True, context={"a": 1}), CastOptions)

        assert opts.strip_unknown is True
        assert opts.context == {"a": 1}

    @pytest.mark.anyio
    async def test_instance_returned_unchanged(self):
        """Test that an instance of the target model is reused."""
        opts = CastOptions()

        assert coerce_options(opts, CastOptions) is opts

    @pytest.mark.anyio
    async def test_rejects_other_types(self):
        """Test that non-mapping options are rejected."""
        with pytest.raises(TypeError):
            coerce_options(5, CastOptions)
