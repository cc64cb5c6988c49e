"""Model base class with snake_case <-> camelCase conversion."""

from __future__ import annotations

import sys
from collections.abc import Mapping
from typing import Any, ClassVar, Self, get_origin

from mox_py import engine, tracking, validation
from mox_py.converters import to_external_key, to_internal_key
from mox_py.exceptions import FrozenModelError, ModelDefinitionError
from mox_py.fields import EMPTY, MISSING, FieldDescriptor, constant
from mox_py.forms import form_pairs
from mox_py.registry import field_registry
from mox_py.validation import FieldError, Validator, default_validator


def _own_annotations(cls: type) -> dict[str, Any]:
    """Annotations declared in the body of ``cls`` (unevaluated where possible)."""
    if sys.version_info >= (3, 14):
        import annotationlib

        return annotationlib.get_annotations(cls, format=annotationlib.Format.FORWARDREF)
    return dict(cls.__dict__.get("__annotations__", {}))


def _is_classvar(annotation: Any) -> bool:
    if isinstance(annotation, str):
        return annotation.startswith(("ClassVar", "typing.ClassVar"))
    return annotation is ClassVar or get_origin(annotation) is ClassVar


class ModelMeta(type):
    """
    Metaclass for Model that processes field definitions.

    Collects annotated attributes and Field() specs in declaration order,
    registers them with the field registry and removes their class-level
    defaults so unset fields stay unset on instances.
    """

    def __new__(
        mcs,
        name: str,
        bases: tuple[type, ...],
        namespace: dict[str, Any],
        **kwargs: Any,
    ) -> ModelMeta:
        cls = super().__new__(mcs, name, bases, namespace, **kwargs)

        if not any(isinstance(base, ModelMeta) for base in bases):
            # The Model base class itself
            return cls

        field_registry.register_model(cls)  # type: ignore[arg-type]

        declared: dict[str, FieldDescriptor] = {}
        for attr_name, annotation in _own_annotations(cls).items():
            if attr_name.startswith("_") or _is_classvar(annotation):
                continue
            value = namespace.get(attr_name, MISSING)
            if isinstance(value, FieldDescriptor):
                declared[attr_name] = value
            elif value is MISSING:
                declared[attr_name] = EMPTY
            else:
                declared[attr_name] = FieldDescriptor(default_factory=constant(value))

        # Field() specs without an annotation
        for attr_name, value in namespace.items():
            if isinstance(value, FieldDescriptor) and attr_name not in declared:
                if attr_name.startswith("_"):
                    raise ModelDefinitionError(
                        f"{name}.{attr_name}: underscore-prefixed names are internal"
                    )
                declared[attr_name] = value

        for attr_name, descriptor in declared.items():
            _check_field_name(name, attr_name)
            field_registry.declare(cls, attr_name, descriptor)
            if attr_name in namespace:
                delattr(cls, attr_name)

        return cls


def _check_field_name(model_name: str, name: str) -> None:
    if hasattr(Model, name):
        raise ModelDefinitionError(f"{model_name}.{name}: shadows a Model attribute")
    if to_internal_key(to_external_key(name)) != name:
        raise ModelDefinitionError(
            f"{model_name}.{name}: name does not survive key conversion "
            f"(external key {to_external_key(name)!r})"
        )


class Model(metaclass=ModelMeta):
    """
    Base class for models with camelCase fields and snake_case I/O.

    Subclass and declare fields with annotations, plain defaults or Field():

        class Post(Model):
            title: str = ""

        class User(Model):
            id: int = 0
            firstName: str = ""
            password: str = Field("", exclude=True)
            isAdmin: bool = Field(False, groups=["admin"])
            createdAt: str = Field(default_factory=now, read_only=True)
            posts: list[Post] = Field(default_factory=list, nested=Post)

    Build instances from external input and serialize them back:

        user = User.from_external({"first_name": "Ada", "posts": [{"title": "x"}]})
        user.firstName  # "Ada"
        user.to_external()  # {"id": 0, "first_name": "Ada", ...}
    """

    # Configuration
    __snapshot__: ClassVar[bool] = True
    __validator__: ClassVar[Validator] = default_validator

    _original_state: Model | None
    _frozen: bool

    def __init__(self, **values: Any) -> None:
        """Initialize with default providers, then internal-named values."""
        object.__setattr__(self, "_original_state", None)
        object.__setattr__(self, "_frozen", False)
        engine.apply_defaults(self)

        fields = self.model_fields()
        for name, value in values.items():
            if name not in fields:
                raise TypeError(f"{type(self).__name__} has no field {name!r}")
            setattr(self, name, value)

    def __setattr__(self, name: str, value: Any) -> None:
        if self.__dict__.get("_frozen", False):
            raise FrozenModelError(
                f"{type(self).__name__} instance is frozen; cannot set {name}"
            )
        super().__setattr__(name, value)

    def __delattr__(self, name: str) -> None:
        if self.__dict__.get("_frozen", False):
            raise FrozenModelError(
                f"{type(self).__name__} instance is frozen; cannot delete {name}"
            )
        super().__delattr__(name)

    # --- Construction and import ---

    @classmethod
    def from_external(
        cls,
        raw: Mapping[str, Any] | None,
        skip_snapshot: bool | None = None,
    ) -> Self:
        """
        Create a model instance from external (snake_case) input.

        Args:
            raw: The external mapping
            skip_snapshot: Don't capture the original state; defaults to
                the class's ``__snapshot__`` setting

        Returns:
            A new model instance

        """
        return engine.create_from_external(cls, raw, skip_snapshot=skip_snapshot)

    @classmethod
    def model_fields(cls) -> tuple[str, ...]:
        """Ordered field names, inherited first."""
        return field_registry.fields(cls)

    def before_apply_external(self) -> None:
        """Hook run by from_external() before the initial import."""

    def after_apply_external(self) -> None:
        """Hook run by from_external() after the initial import."""

    def apply_external(self, raw: Mapping[str, Any] | None) -> None:
        """Apply external input; read-only fields are left alone."""
        engine.import_into(self, raw)

    def merge(self, partial: Mapping[str, Any] | None) -> None:
        """Merge a partial update, same as apply_external()."""
        tracking.merge(self, partial)

    # --- Export ---

    def to_external(
        self,
        *,
        group: str | None = None,
        only_changed: bool = False,
    ) -> dict[str, Any]:
        """
        Convert to a plain dict with snake_case keys.

        Args:
            group: Only emit group-restricted fields exposed to this group
            only_changed: Only emit fields changed since the snapshot

        """
        return engine.export_from(self, group=group, only_changed=only_changed)

    def to_form_submission(self, *, group: str | None = None) -> list[tuple[str, Any]]:
        """Exported fields as ordered form pairs (``tags[0]``, ``profile[bio]``)."""
        return form_pairs(self.to_external(group=group))

    # --- Change tracking ---

    @property
    def original_state(self) -> Model | None:
        """Frozen copy taken right after from_external(), or None."""
        return self.__dict__.get("_original_state")

    def clone(self) -> Self:
        """Independent copy without a snapshot of its own."""
        return tracking.clone(self)

    def diff(self, other: Model) -> dict[str, Any]:
        """Fields of this instance whose values differ on ``other``."""
        return tracking.diff(self, other)

    def is_equal(self, other: Model) -> bool:
        """Whether both instances export to the same data."""
        return tracking.is_equal(self, other)

    def get_changes_since(self) -> dict[str, Any]:
        """Fields changed since the original state was captured."""
        return tracking.get_changes_since(self)

    def reset(self) -> None:
        """Restore the original state, read-only fields included."""
        tracking.reset(self)

    # --- Freezing ---

    def freeze(self) -> None:
        """Make the instance immutable. Nested models are not frozen."""
        object.__setattr__(self, "_frozen", True)

    @property
    def is_frozen(self) -> bool:
        """Whether freeze() has been called."""
        return self.__dict__.get("_frozen", False)

    # --- Validation ---

    def validate(self) -> list[FieldError]:
        """Field errors reported by the class's validator."""
        return validation.validate(self)

    def is_valid(self) -> bool:
        """Whether validate() reports no errors."""
        return validation.is_valid(self)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Model):
            return NotImplemented
        return self.is_equal(other)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        cls_name = self.__class__.__name__
        values = vars(self)
        descriptors = field_registry.lookup(type(self))
        fields = ", ".join(
            f"{name}={values[name]!r}"
            for name in self.model_fields()
            if name in values and not descriptors[name].excluded
        )
        return f"{cls_name}({fields})"
