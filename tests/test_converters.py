"""Tests for key conversion."""

import pytest

from mox_py import Model, to_external, to_external_key, to_internal, to_internal_key
from mox_py.converters import convert_keys


class TestKeyConversion:
    """Tests for single-key conversion."""

    @pytest.mark.parametrize(
        ("external", "internal"),
        [
            ("first_name", "firstName"),
            ("id", "id"),
            ("created_at_utc", "createdAtUtc"),
            ("is_admin", "isAdmin"),
        ],
    )
    def test_to_internal_key(self, external, internal):
        """Test underscore + lowercase letter becomes an uppercase letter."""
        assert to_internal_key(external) == internal

    @pytest.mark.parametrize(
        ("internal", "external"),
        [
            ("firstName", "first_name"),
            ("id", "id"),
            ("createdAtUtc", "created_at_utc"),
            ("URL", "_u_r_l"),
        ],
    )
    def test_to_external_key(self, internal, external):
        """Test uppercase letters become underscore + lowercase letter."""
        assert to_external_key(internal) == external

    def test_digit_after_underscore_is_kept(self):
        """Test keys with digits after an underscore are left alone."""
        assert to_internal_key("line_1") == "line_1"

    @pytest.mark.parametrize(
        "key",
        ["first_name", "a__b", "line_1", "_private", "trailing_", "Mixed_case", "x_y_z"],
    )
    def test_round_trip_is_stable(self, key):
        """Test repeated round-trips settle on the same internal key."""
        internal = to_internal_key(key)
        assert to_internal_key(to_external_key(internal)) == internal


class TestStructuralConversion:
    """Tests for recursive conversion of plain data."""

    def test_nested_mappings_and_lists(self):
        """Test keys are converted at every depth."""
        value = {"user_info": {"first_name": "A", "tags": [{"tag_name": "x"}]}}
        assert to_internal(value) == {
            "userInfo": {"firstName": "A", "tags": [{"tagName": "x"}]}
        }

    def test_to_external_reverses(self):
        """Test converting back to external keys."""
        value = {"userInfo": [{"firstName": "A"}]}
        assert to_external(value) == {"user_info": [{"first_name": "A"}]}

    def test_scalars_unchanged(self):
        """Test scalars are returned as-is."""
        assert to_internal("first_name") == "first_name"
        assert to_internal(42) == 42
        assert to_internal(None) is None

    def test_tuples_stay_tuples(self):
        """Test tuples are walked and rebuilt as tuples."""
        assert to_internal(({"a_b": 1},)) == ({"aB": 1},)

    def test_non_string_keys_unchanged(self):
        """Test non-string mapping keys are kept."""
        assert to_internal({1: {"a_b": 2}}) == {1: {"aB": 2}}

    def test_model_instances_are_opaque(self):
        """Test model instances are never key-converted."""

        class Tag(Model):
            tagName: str = ""

        tag = Tag(tagName="x")
        result = to_external({"tag_list": [tag]})
        assert result["tag_list"][0] is tag

    def test_leaf_handler(self):
        """Test the leaf handler receives every non-container value."""
        seen = []
        convert_keys({"a": [1, 2], "b": "x"}, str.upper, seen.append)
        assert seen == [1, 2, "x"]

    def test_input_not_mutated(self):
        """Test conversion builds new containers."""
        value = {"first_name": "A"}
        to_internal(value)
        assert value == {"first_name": "A"}
