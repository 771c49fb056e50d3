"""
Tests for argument declarations and the built-in validators.
"""

import pytest

from action_args import validators as v
from action_args.declarations import (
    MISSING,
    Argument,
    Schema,
    required,
    optional,
    nested,
    argument_from_dict,
    arguments_from_dict,
    describe_argument,
)
from action_args.errors import ConfigError, ConfigErrorKind


class TestBuilders:
    """Test the explicit declaration builders."""

    def test_required(self):
        """Required arguments never carry a default."""
        arg = required("id", "int")
        assert arg == Argument("id", True, "int")
        assert arg.default is MISSING
        assert not arg.has_default

    def test_optional_with_default(self):
        """Optional arguments may carry a default."""
        arg = optional("page", "int", default="1")
        assert not arg.required
        assert arg.has_default
        assert arg.default == "1"

    def test_none_default_means_no_default(self):
        """A None default is the same as declaring none."""
        assert not optional("page", "int", default=None).has_default

    def test_nested(self):
        """Nested builders produce hash arguments."""
        arg = nested("filter", required("field"), optional("limit", "int"))
        assert arg.type == "hash"
        assert arg.is_nested
        assert [member.name for member in arg.schema] == ["field", "limit"]

    def test_schema_option_implies_hash(self):
        """Passing members through schema= makes a hash argument."""
        arg = optional("filter", schema=[required("field")])
        assert arg.type == "hash"

    @pytest.mark.parametrize("name", ["", None, 3, "a.b"])
    def test_invalid_names(self, name):
        """Names must be non-empty strings without dots."""
        with pytest.raises(ConfigError) as exc:
            required(name)
        assert exc.value.kind == ConfigErrorKind.INVALID_DECLARATION

    def test_non_callable_options(self):
        """Validators and munges must be callable."""
        with pytest.raises(ConfigError, match="validator"):
            optional("a", validator="nope")
        with pytest.raises(ConfigError, match="munge"):
            optional("a", munge=42)

    def test_invalid_type_tag(self):
        """Type tags must be strings."""
        with pytest.raises(ConfigError, match="type tag"):
            required("a", int)

    def test_hash_without_members(self):
        """A hash tag needs nested members."""
        with pytest.raises(ConfigError, match="nested members"):
            required("a", "hash")

    def test_nested_members_must_be_arguments(self):
        """Nested members are arguments, not raw mappings."""
        with pytest.raises(ConfigError, match="nested members"):
            optional("a", schema=[{"name": "b"}])

    def test_nested_with_scalar_type(self):
        """Nested arguments cannot also declare a scalar type."""
        with pytest.raises(ConfigError, match="hashes"):
            optional("a", "int", schema=[required("b")])

    def test_arguments_are_immutable(self):
        """Declarations are frozen once built."""
        arg = required("id")
        with pytest.raises(AttributeError):
            arg.name = "other"


class TestSchema:
    """Test the Schema model."""

    def test_names_and_lookup(self):
        """Schemas keep declaration order."""
        schema = Schema("show", (required("id", "int"), optional("format")))
        assert schema.names == ("id", "format")
        assert schema.argument("format").name == "format"
        assert schema.raise_on_error is True
        with pytest.raises(KeyError):
            schema.argument("missing")


class TestMappingDeclarations:
    """Test declarations written as plain mappings."""

    def test_basic_mapping(self):
        """Mapping keys map onto builder options."""
        arg = argument_from_dict("limit", {"type": "int", "default": 10, "min": 1, "max": 50})
        assert arg.type == "int"
        assert arg.default == 10
        assert arg.validator(10)
        assert not arg.validator(0)
        assert not arg.validator(51)

    def test_empty_mapping(self):
        """An empty declaration is an optional pass-through argument."""
        arg = argument_from_dict("q", None)
        assert arg == Argument("q")

    def test_choices_pattern_and_length(self):
        """Choices, patterns and length bounds become validators."""
        arg = argument_from_dict("code", {"choices": ["ab", "cd"], "pattern": "[a-z]+", "length": 2})
        assert arg.validator("ab")
        assert not arg.validator("xy")
        bounded = argument_from_dict("name", {"length": {"min": 2, "max": 3}})
        assert bounded.validator("abc")
        assert not bounded.validator("a")

    def test_nested_mapping(self):
        """A schema key declares nested members."""
        arg = argument_from_dict("filter", {"required": True, "schema": {"field": {"required": True}}})
        assert arg.required
        assert arg.is_nested
        assert arg.schema[0].required

    def test_unknown_keys_rejected(self):
        """Typos in declarations fail early."""
        with pytest.raises(ConfigError, match="unknown options: requird"):
            argument_from_dict("a", {"requird": True})

    def test_bad_length(self):
        """Length must be an integer or a bounds mapping."""
        with pytest.raises(ConfigError, match="length"):
            argument_from_dict("a", {"length": "long"})

    def test_arguments_from_dict_keeps_order(self):
        """Mapping order is declaration order."""
        args = arguments_from_dict({"b": {}, "a": {"required": True}})
        assert [arg.name for arg in args] == ["b", "a"]
        with pytest.raises(ConfigError):
            arguments_from_dict(["a", "b"])

    def test_describe_argument(self):
        """Descriptions include defaults and nested members."""
        arg = nested("filter", optional("limit", "int", default=5))
        described = describe_argument(arg)
        assert described["type"] == "hash"
        assert described["schema"][0]["default"] == 5


class TestValidators:
    """Test the validator factories."""

    def test_bounds(self):
        """Numeric bounds are inclusive."""
        assert v.min_value(0)(0)
        assert not v.min_value(0)(-1)
        assert v.max_value(5)(5)
        assert v.between(1, 3)(2)
        assert not v.between(1, 3)(4)

    def test_descriptions(self):
        """Descriptions are used in messages."""
        assert v.describe(v.min_value(0)) == "must be >= 0"
        assert v.describe(v.one_of(["a", "b"])) == "must be one of: a, b"
        assert v.describe(lambda value: True) == "is invalid"

        def is_even(value):
            return value % 2 == 0

        assert v.describe(is_even) == "must satisfy is_even"

    def test_matches_requires_full_match(self):
        """Patterns must match the whole string."""
        check = v.matches(r"\d+")
        assert check("123")
        assert not check("123a")
        assert not check(123)

    def test_length_needs_a_bound(self):
        """An unbounded length check is a programming error."""
        with pytest.raises(ValueError):
            v.length()

    def test_all_of(self):
        """Combined validators require every check to pass."""
        check = v.all_of(v.min_value(0), v.max_value(10))
        assert check(5)
        assert not check(11)
        assert v.describe(check) == "must be >= 0; must be <= 10"
        single = v.min_value(1)
        assert v.all_of(single) is single

    def test_passes_treats_errors_as_failures(self):
        """Comparisons that raise count as a failed check."""
        assert not v.passes(v.min_value(0), "abc")
        assert v.passes(v.min_value(0), 3)
