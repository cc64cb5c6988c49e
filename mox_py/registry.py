"""Field registry for mox-py models."""

from __future__ import annotations

import dataclasses
import logging
from typing import TYPE_CHECKING, Any

from mox_py.exceptions import ModelDefinitionError
from mox_py.fields import EMPTY, FieldDescriptor, FieldKind

if TYPE_CHECKING:
    from mox_py.models import Model

logger = logging.getLogger(__name__)

Fragment = tuple[FieldKind, Any]


def _apply(descriptor: FieldDescriptor, kind: FieldKind, payload: Any) -> FieldDescriptor:
    """Merge one fragment into a descriptor."""
    if kind is FieldKind.NESTED:
        return dataclasses.replace(descriptor, nested=payload)
    if kind is FieldKind.EXCLUDED:
        return dataclasses.replace(descriptor, excluded=bool(payload))
    if kind is FieldKind.TRANSFORM:
        return dataclasses.replace(descriptor, transform=payload)
    if kind is FieldKind.READ_ONLY:
        return dataclasses.replace(descriptor, read_only=bool(payload))
    if kind is FieldKind.EXPOSE:
        groups = (payload,) if isinstance(payload, str) else payload
        return dataclasses.replace(descriptor, groups=descriptor.groups | frozenset(groups))
    if kind is FieldKind.DEFAULT:
        return dataclasses.replace(descriptor, default_factory=payload)
    raise ValueError(f"Unknown field kind: {kind!r}")


class FieldRegistry:
    """
    Registry of model classes and their field descriptors.

    Enables:
    - Per-class field declarations, inherited along the MRO
    - Accumulating descriptor fragments for a single field
    - Forward reference resolution for nested model names

    A field declared in a class body replaces the inherited descriptor of
    the same name. Fragments registered with ``register()`` accumulate on
    top of whatever the class already has.

    Example:
        registry = FieldRegistry()
        registry.register(User, "password", FieldKind.EXCLUDED, True)
        registry.lookup(User)["password"].excluded  # True

    """

    __slots__ = ("_models", "_classes", "_order", "_declared", "_fragments", "_cache")

    def __init__(self) -> None:
        self._models: dict[str, type[Model]] = {}
        self._classes: set[type] = set()
        self._order: dict[type, list[str]] = {}  # class -> field names, in order
        self._declared: dict[type, set[str]] = {}  # class -> names declared in its body
        self._fragments: dict[type, dict[str, list[Fragment]]] = {}
        self._cache: dict[type, tuple[tuple[str, ...], dict[str, FieldDescriptor]]] = {}

    # --- Models ---

    def register_model(self, model: type[Model]) -> None:
        """
        Register a model class.

        Args:
            model: The Model subclass to register

        """
        self._models[model.__name__] = model
        self._classes.add(model)
        self._cache.clear()
        logger.debug("Registered model %s", model.__qualname__)

    def get(self, name: str) -> type[Model] | None:
        """
        Get a model by class name.

        Args:
            name: The class name (e.g., "User")

        Returns:
            The model class or None

        """
        return self._models.get(name)

    def all_models(self) -> list[type[Model]]:
        """Get all registered models."""
        return list(self._models.values())

    def is_model(self, value: Any) -> bool:
        """Whether ``value`` is an instance of a registered model class."""
        return type(value) in self._classes

    def resolve(self, nested: type[Model] | str) -> type[Model]:
        """
        Resolve a nested type reference.

        Args:
            nested: A model class, or the name of a registered one

        Returns:
            The model class

        Raises:
            ModelDefinitionError: If the name is not registered

        """
        if not isinstance(nested, str):
            return nested
        model = self._models.get(nested)
        if model is None:
            raise ModelDefinitionError(f"Unknown nested model: {nested!r}")
        return model

    # --- Fields ---

    def _add_name(self, model: type, name: str) -> None:
        order = self._order.setdefault(model, [])
        if name not in order:
            order.append(name)

    def declare(self, model: type, name: str, descriptor: FieldDescriptor = EMPTY) -> None:
        """
        Declare a field in the body of ``model``.

        Args:
            model: The declaring class
            name: Internal field name
            descriptor: Behavior declared with the field

        """
        self._add_name(model, name)
        self._declared.setdefault(model, set()).add(name)
        self._fragments.setdefault(model, {})[name] = descriptor.fragments()
        self._cache.clear()

    def register(self, model: type, name: str, kind: FieldKind, payload: Any = True) -> None:
        """
        Attach a descriptor fragment to a field.

        Fragments for the same field accumulate. Registering a name the
        class does not have yet adds it as a field of that class.

        Args:
            model: The class the fragment belongs to
            name: Internal field name
            kind: Fragment kind
            payload: Fragment value (model, flag, function or groups)

        """
        self._add_name(model, name)
        self._fragments.setdefault(model, {}).setdefault(name, []).append((kind, payload))
        self._cache.clear()
        logger.debug("Registered %s fragment for %s.%s", kind.value, model.__qualname__, name)

    def _merged(self, model: type) -> tuple[tuple[str, ...], dict[str, FieldDescriptor]]:
        cached = self._cache.get(model)
        if cached is not None:
            return cached

        names: list[str] = []
        descriptors: dict[str, FieldDescriptor] = {}
        for cls in reversed(model.__mro__):
            declared = self._declared.get(cls, set())
            fragments = self._fragments.get(cls, {})
            for name in self._order.get(cls, ()):
                if name not in descriptors:
                    names.append(name)
                    descriptor = EMPTY
                elif name in declared:
                    descriptor = EMPTY
                else:
                    descriptor = descriptors[name]
                for kind, payload in fragments.get(name, ()):
                    descriptor = _apply(descriptor, kind, payload)
                descriptors[name] = descriptor

        result = (tuple(names), descriptors)
        self._cache[model] = result
        return result

    def lookup(self, model: type) -> dict[str, FieldDescriptor]:
        """
        Get the merged field descriptors of a model class.

        Args:
            model: The model class

        Returns:
            Mapping of field name to FieldDescriptor

        """
        return self._merged(model)[1]

    def fields(self, model: type) -> tuple[str, ...]:
        """Get the ordered field names of a model class, inherited first."""
        return self._merged(model)[0]

    def descriptor(self, model: type, name: str) -> FieldDescriptor:
        """Get the merged descriptor of one field (empty if unregistered)."""
        return self._merged(model)[1].get(name, EMPTY)


# Global field registry instance
field_registry = FieldRegistry()


def register_field(model: type, name: str, kind: FieldKind, payload: Any = True) -> None:
    """
    Attach a descriptor fragment with the global registry.

    Usage:
        register_field(User, "password", FieldKind.EXCLUDED)
        register_field(User, "email", FieldKind.TRANSFORM, str.lower)

    """
    field_registry.register(model, name, kind, payload)
