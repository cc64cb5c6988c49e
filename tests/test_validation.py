"""Tests for model validation."""

from typing import Annotated

import pydantic
import pytest

from mox_py import (
    Field,
    FieldError,
    Model,
    PydanticValidator,
    Validator,
    is_valid,
    validate,
)


class Strict(Model):
    count: int = 0


class Lenient(Model):
    __validator__ = PydanticValidator(strict=False)

    count: int = 0


class Scored(Model):
    score: Annotated[float, pydantic.Field(ge=0, le=1)] = 0.0


def _always_invalid(instance):
    return [FieldError("count", {"custom": "always invalid"})]


class Custom(Model):
    __validator__ = _always_invalid

    count: int = 0


def _by_field(errors):
    return {error.field: error for error in errors}


class TestPydanticValidator:
    """Tests for the default validator."""

    def test_valid_user(self, user):
        """Test a well-formed user validates."""
        assert user.validate() == []
        assert user.is_valid()

    def test_constraint_violation(self, user):
        """Test annotated constraints are enforced."""
        user.id = -1
        errors = _by_field(user.validate())
        assert "greater_than_equal" in errors["id"].constraints
        assert errors["id"].value == -1
        assert not user.is_valid()

    def test_pattern_violation(self, user):
        """Test string constraints are enforced."""
        user.email = "not-an-email"
        errors = _by_field(user.validate())
        assert "string_pattern_mismatch" in errors["email"].constraints

    def test_strict_types(self, user):
        """Test values are not coerced by default."""
        user.firstName = 5
        errors = _by_field(user.validate())
        assert "string_type" in errors["firstName"].constraints

    def test_nested_errors(self, user):
        """Test nested models report dotted field paths."""
        user.posts[0].title = 3
        user.profile.bio = None
        errors = _by_field(user.validate())
        assert set(errors) == {"posts.0.title", "profile.bio"}

    def test_nested_type_mismatch(self, user):
        """Test nested fields must hold instances of the declared class."""
        user.posts = ["not a post"]
        errors = _by_field(user.validate())
        assert "is_instance_of" in errors["posts.0"].constraints

    def test_missing_field(self):
        """Test unset fields are reported as missing."""

        class Named(Model):
            name: str

        errors = Named().validate()
        assert errors == [FieldError("name", {"missing": "Field required"})]

    def test_non_strict(self):
        """Test a lenient validator accepts coercible values."""
        assert not Strict(count="5").is_valid()
        assert Lenient(count="5").is_valid()

    def test_range(self):
        """Test both bounds of an annotated range."""
        assert Scored(score=0.5).is_valid()
        errors = Scored(score=1.5).validate()
        assert [error.field for error in errors] == ["score"]
        assert "less_than_equal" in errors[0].constraints

    def test_nested_model_declared_in_function(self):
        """Test annotations naming a model declared inside a function resolve."""

        class Label(Model):
            name: str = ""

        class Article(Model):
            tags: "list[Label]" = Field(default_factory=list, nested=Label)

        article = Article.from_external({"tags": [{"name": "python"}]})
        assert article.is_valid()

        article.tags.append("loose")
        errors = article.validate()
        assert [error.field for error in errors] == ["tags.1"]
        assert "is_instance_of" in errors[0].constraints

    def test_unresolvable_annotation_skips_type_checks(self):
        """Test annotations naming unknown types never make validation fail."""

        class Loose(Model):
            extra: "NoSuchType" = None  # noqa: F821

        assert Loose().is_valid()
        assert Loose(extra=object()).validate() == []

    def test_validator_protocol(self):
        """Test validators satisfy the Validator protocol."""
        assert isinstance(PydanticValidator(), Validator)


class TestValidationCollaborator:
    """Tests for the module-level validation functions."""

    def test_custom_validator(self):
        """Test a class can plug in its own validator."""
        custom = Custom()
        assert validate(custom) == [FieldError("count", {"custom": "always invalid"})]
        assert not is_valid(custom)
        assert not custom.is_valid()

    def test_module_functions_match_methods(self, user):
        """Test validate()/is_valid() agree with the model methods."""
        assert validate(user) == user.validate()
        assert is_valid(user) is user.is_valid()

    @pytest.mark.parametrize("value", [0, 10, 2**40])
    def test_valid_counts(self, value):
        """Test integer values validate."""
        assert Strict(count=value).is_valid()
