"""Import and export engine for mox-py models."""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, TypeVar

from mox_py.converters import convert_keys, to_external, to_external_key, to_internal
from mox_py.exceptions import FrozenModelError
from mox_py.fields import MISSING
from mox_py.registry import field_registry

if TYPE_CHECKING:
    from mox_py.models import Model

M = TypeVar("M", bound="Model")

logger = logging.getLogger(__name__)


def _same_key(key: str) -> str:
    return key


def check_mutable(instance: Model) -> None:
    """Raise FrozenModelError if the instance is frozen."""
    if instance.is_frozen:
        raise FrozenModelError(f"{type(instance).__name__} instance is frozen")


def _check_target(instance: Model, data: Any) -> None:
    """Reject writes to frozen instances and non-mapping input."""
    check_mutable(instance)
    if not isinstance(data, Mapping):
        raise TypeError(
            f"{type(instance).__name__} expects a mapping, got {type(data).__name__}"
        )


# --- Import ---


def apply_defaults(instance: Model) -> None:
    """Run every default provider declared for the instance's class."""
    for name, descriptor in field_registry.lookup(type(instance)).items():
        if descriptor.default_factory is not None:
            setattr(instance, name, descriptor.default_factory())


def import_into(
    instance: Model,
    raw: Mapping[str, Any] | None,
    *,
    initial: bool = False,
    skip_snapshot: bool | None = None,
) -> None:
    """
    Apply external input to a model instance.

    Keys are converted to internal form and unknown keys are ignored.
    Read-only fields are only assigned when ``initial`` is set. Transform
    and nested construction errors propagate unchanged.

    Args:
        instance: Target model instance
        raw: External (snake_case) input, or None for a no-op
        initial: Whether this is the instance's first hydration
        skip_snapshot: Passed on to nested model construction

    Raises:
        FrozenModelError: If the instance is frozen
        TypeError: If ``raw`` is not a mapping

    """
    check_mutable(instance)
    if raw is None:
        return
    _check_target(instance, raw)
    _assign(
        instance,
        to_internal(raw),
        external=True,
        respect_read_only=not initial,
        skip_snapshot=skip_snapshot,
    )


def load_state(instance: Model, state: Mapping[str, Any]) -> None:
    """
    Overwrite fields from an internal state export.

    State is keyed by internal field names and holds already transformed
    values, so no key conversion or transform runs. Read-only fields are
    assigned too.
    """
    _check_target(instance, state)
    _assign(instance, state, external=False, respect_read_only=False, skip_snapshot=True)


def _assign(
    instance: Model,
    data: Mapping[str, Any],
    *,
    external: bool,
    respect_read_only: bool,
    skip_snapshot: bool | None,
) -> None:
    model = type(instance)
    descriptors = field_registry.lookup(model)

    for name, value in data.items():
        descriptor = descriptors.get(name)
        if descriptor is None:
            logger.debug("Ignoring unknown key %r for %s", name, model.__name__)
            continue
        if descriptor.read_only and respect_read_only:
            logger.debug("Skipping read-only field %s.%s", model.__name__, name)
            continue

        if external and descriptor.transform is not None:
            value = descriptor.transform(value)

        if descriptor.nested is not None:
            nested = field_registry.resolve(descriptor.nested)
            if isinstance(value, (list, tuple)):
                value = [
                    _coerce(nested, v, external=external, skip_snapshot=skip_snapshot)
                    for v in value
                ]
            else:
                value = _coerce(nested, value, external=external, skip_snapshot=skip_snapshot)

        setattr(instance, name, value)


def _coerce(
    model: type[Model],
    value: Any,
    *,
    external: bool,
    skip_snapshot: bool | None,
) -> Any:
    """Turn one nested value into an instance of ``model``."""
    if isinstance(value, model):
        return value
    if external:
        return create_from_external(model, value, skip_snapshot=skip_snapshot)
    if value is None:
        return None
    return create_from_state(model, value)


def create_from_external(
    model: type[M],
    raw: Mapping[str, Any] | None,
    *,
    skip_snapshot: bool | None = None,
) -> M:
    """
    Build a model instance from external input.

    Runs the default providers, the ``before_apply_external`` hook, the
    initial import and the ``after_apply_external`` hook, then captures
    the original-state snapshot unless suppressed.

    Args:
        model: The model class to instantiate
        raw: External (snake_case) input
        skip_snapshot: Suppress snapshot capture; None defers to the
            class's ``__snapshot__`` setting

    Returns:
        A new model instance

    """
    instance = model()
    instance.before_apply_external()
    import_into(instance, raw, initial=True, skip_snapshot=skip_snapshot)
    instance.after_apply_external()

    snapshot = model.__snapshot__ if skip_snapshot is None else not skip_snapshot
    if snapshot:
        capture_snapshot(instance)
    return instance


def create_from_state(model: type[M], state: Mapping[str, Any]) -> M:
    """Build a model instance from an internal state export, without a snapshot."""
    instance = model()
    load_state(instance, state)
    return instance


# --- Export ---


def export_from(
    instance: Model,
    *,
    group: str | None = None,
    only_changed: bool = False,
) -> dict[str, Any]:
    """
    Export a model instance to a plain external (snake_case) mapping.

    Args:
        instance: Source model instance
        group: Exposure group; fields restricted to other groups are skipped
        only_changed: Skip fields equal to the original-state snapshot

    Returns:
        A new dict; the instance is never mutated

    """
    model = type(instance)
    descriptors = field_registry.lookup(model)
    values = vars(instance)
    original = instance.original_state

    def leaf(value: Any) -> Any:
        if field_registry.is_model(value):
            return export_from(value, group=group, only_changed=only_changed)
        return value

    result: dict[str, Any] = {}
    for name in field_registry.fields(model):
        if name not in values:
            continue
        descriptor = descriptors[name]
        if descriptor.excluded:
            continue
        if not descriptor.is_exposed_to(group):
            continue
        value = values[name]
        if (
            only_changed
            and original is not None
            and values_equal(value, vars(original).get(name, MISSING))
        ):
            continue
        result[to_external_key(name)] = to_external(value, leaf)
    return result


def export_state(instance: Model) -> dict[str, Any]:
    """
    Export every set field under its internal name.

    Excluded and group-restricted fields are included, nested models are
    exported the same way and opaque values are deep-copied, so the result
    shares nothing with the instance.
    """
    values = vars(instance)
    return {
        name: state_value(values[name])
        for name in field_registry.fields(type(instance))
        if name in values
    }


def state_value(value: Any) -> Any:
    """Independent plain copy of a field value (see ``export_state``)."""

    def leaf(item: Any) -> Any:
        if field_registry.is_model(item):
            return export_state(item)
        return copy.deepcopy(item)

    return convert_keys(value, _same_key, leaf)


def _comparable(value: Any) -> Any:
    """
    Plain structure of a field value for equality checks.

    Nested models become dicts of their set fields. Objects that compare by
    identity become ``(type, attributes)``, so a deep copy still matches.
    Nothing is copied.
    """

    def leaf(item: Any) -> Any:
        if field_registry.is_model(item):
            values = vars(item)
            return {
                name: _comparable(values[name])
                for name in field_registry.fields(type(item))
                if name in values
            }
        if type(item).__eq__ is object.__eq__ and hasattr(item, "__dict__"):
            return (type(item), _comparable(vars(item)))
        return item

    return convert_keys(value, _same_key, leaf)


def values_equal(a: Any, b: Any) -> bool:
    """Deep structural equality of two field values; MISSING only equals MISSING."""
    if a is b:
        return True
    if a is MISSING or b is MISSING:
        return False
    return _comparable(a) == _comparable(b)


# --- Snapshots ---


def copy_instance(instance: M) -> M:
    """Independent copy of an instance, with no snapshot of its own."""
    return create_from_state(type(instance), export_state(instance))


def capture_snapshot(instance: Model) -> None:
    """Store a frozen copy of the instance as its original state."""
    snapshot = copy_instance(instance)
    snapshot.freeze()
    instance._original_state = snapshot
    logger.debug("Captured original state for %s", type(instance).__name__)
