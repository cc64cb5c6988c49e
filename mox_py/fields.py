"""Field descriptors and the ``Field()`` declaration helper."""

from __future__ import annotations

import copy
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from functools import partial
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from mox_py.models import Model

# Sentinel for "no default supplied"
MISSING: Any = object()


class FieldKind(Enum):
    """Kinds of descriptor fragments a field can carry."""

    NESTED = "nested"  # Model class (or its name) for nested values
    EXCLUDED = "excluded"  # Never exported
    TRANSFORM = "transform"  # Applied to raw values on import
    READ_ONLY = "read_only"  # Only set by the initial import
    EXPOSE = "expose"  # Exposure groups
    DEFAULT = "default"  # Zero-argument default provider


@dataclass(frozen=True, slots=True)
class FieldDescriptor:
    """
    Declared behavior of a single model field.

    Attributes:
        nested: Model class (or class name, for forward references) used to
            build nested values and arrays of nested values
        excluded: Suppress the field in every export
        transform: Function applied to the raw value on import
        read_only: Ignore the field on any import after the first one
        groups: Exposure groups; empty means always exposed
        default_factory: Zero-argument provider run at construction

    """

    nested: type[Model] | str | None = None
    excluded: bool = False
    transform: Callable[[Any], Any] | None = None
    read_only: bool = False
    groups: frozenset[str] = field(default_factory=frozenset)
    default_factory: Callable[[], Any] | None = None

    def fragments(self) -> list[tuple[FieldKind, Any]]:
        """Split into the registry fragments that differ from the defaults."""
        result: list[tuple[FieldKind, Any]] = []
        if self.nested is not None:
            result.append((FieldKind.NESTED, self.nested))
        if self.excluded:
            result.append((FieldKind.EXCLUDED, True))
        if self.transform is not None:
            result.append((FieldKind.TRANSFORM, self.transform))
        if self.read_only:
            result.append((FieldKind.READ_ONLY, True))
        if self.groups:
            result.append((FieldKind.EXPOSE, self.groups))
        if self.default_factory is not None:
            result.append((FieldKind.DEFAULT, self.default_factory))
        return result

    def is_exposed_to(self, group: str | None) -> bool:
        """Whether an export requested for ``group`` may emit this field."""
        return not self.groups or group in self.groups


# Shared descriptor for fields that carry no fragments
EMPTY = FieldDescriptor()


def constant(value: Any) -> Callable[[], Any]:
    """Default provider returning a fresh deep copy of ``value`` per call."""
    return partial(copy.deepcopy, value)


def Field(
    default: Any = MISSING,
    *,
    default_factory: Callable[[], Any] | None = None,
    nested: type[Model] | str | None = None,
    exclude: bool = False,
    transform: Callable[[Any], Any] | None = None,
    read_only: bool = False,
    groups: Iterable[str] = (),
) -> Any:
    """
    Declare a model field.

    Args:
        default: Default value, deep-copied for every new instance
        default_factory: Factory function for defaults
        nested: Model class, or its name for forward references
        exclude: Never include the field in exported output
        transform: Function applied to the raw value on import
        read_only: Only the initial import may set the field
        groups: Exposure groups the field is restricted to

    Returns:
        A FieldDescriptor (used at class definition time)

    Example:
        class User(Model):
            password: str = Field("", exclude=True)
            isAdmin: bool = Field(False, groups=["admin"])
            posts: list[Post] = Field(default_factory=list, nested=Post)

    """
    if default is not MISSING and default_factory is not None:
        raise ValueError("cannot specify both default and default_factory")
    if default is not MISSING:
        default_factory = constant(default)
    if isinstance(groups, str):
        groups = (groups,)
    return FieldDescriptor(
        nested=nested,
        excluded=exclude,
        transform=transform,
        read_only=read_only,
        groups=frozenset(groups),
        default_factory=default_factory,
    )
