"""
Typed data models with snake_case <-> camelCase conversion.

Usage:
    from mox_py import Field, Model

    class Post(Model):
        title: str = ""

    class User(Model):
        firstName: str = ""
        password: str = Field("", exclude=True)
        posts: list[Post] = Field(default_factory=list, nested=Post)

    user = User.from_external({"first_name": "Ada", "posts": [{"title": "Hi"}]})
    user.firstName = "Grace"
    user.get_changes_since()  # {"firstName": "Grace"}
    user.to_external(only_changed=True)  # {"first_name": "Grace"}
"""

import logging

__version__ = "0.1.0"

from mox_py.converters import to_external, to_external_key, to_internal, to_internal_key
from mox_py.exceptions import FrozenModelError, ModelDefinitionError, MoxPyError
from mox_py.fields import Field, FieldDescriptor, FieldKind
from mox_py.forms import form_pairs
from mox_py.models import Model, ModelMeta
from mox_py.registry import FieldRegistry, field_registry, register_field
from mox_py.validation import (
    FieldError,
    PydanticValidator,
    Validator,
    default_validator,
    is_valid,
    validate,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Models
    "Model",
    "ModelMeta",
    "Field",
    "FieldDescriptor",
    "FieldKind",
    # Registry
    "FieldRegistry",
    "field_registry",
    "register_field",
    # Key conversion
    "to_internal_key",
    "to_external_key",
    "to_internal",
    "to_external",
    # Forms
    "form_pairs",
    # Validation
    "FieldError",
    "Validator",
    "PydanticValidator",
    "default_validator",
    "validate",
    "is_valid",
    # Exceptions
    "MoxPyError",
    "ModelDefinitionError",
    "FrozenModelError",
    # Version
    "__version__",
]
