"""Change tracking against the original-state snapshot."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, TypeVar

from mox_py.engine import (
    check_mutable,
    copy_instance,
    export_from,
    export_state,
    import_into,
    load_state,
    values_equal,
)
from mox_py.fields import MISSING
from mox_py.registry import field_registry

if TYPE_CHECKING:
    from mox_py.models import Model

M = TypeVar("M", bound="Model")

logger = logging.getLogger(__name__)


def clone(instance: M) -> M:
    """Independent copy of ``instance``; the copy has no snapshot."""
    return copy_instance(instance)


def diff(a: Model, b: Model) -> dict[str, Any]:
    """
    Fields of ``a`` whose values differ from the same fields on ``b``.

    Every set field of ``a`` is compared, excluded ones included; fields
    missing from ``b`` always count as different.

    Returns:
        Mapping of internal field name to ``a``'s value

    """
    values = vars(a)
    other = vars(b)
    return {
        name: values[name]
        for name in field_registry.fields(type(a))
        if name in values and not values_equal(values[name], other.get(name, MISSING))
    }


def is_equal(a: Model, b: Model) -> bool:
    """Compare the exported forms; excluded fields never affect equality."""
    return export_from(a) == export_from(b)


def reset(instance: Model) -> None:
    """
    Restore every field captured by the snapshot, read-only ones included.

    Fields that were unset when the snapshot was taken are unset again.
    No-op when the instance has no snapshot.

    Raises:
        FrozenModelError: If the instance is frozen, snapshot or not

    """
    check_mutable(instance)
    original = instance.original_state
    if original is None:
        return
    state = export_state(original)
    load_state(instance, state)
    values = vars(instance)
    for name in field_registry.fields(type(instance)):
        if name in values and name not in state:
            delattr(instance, name)
    logger.debug("Reset %s to its original state", type(instance).__name__)


def get_changes_since(instance: Model) -> dict[str, Any]:
    """Fields changed since the snapshot; empty when there is none."""
    original = instance.original_state
    if original is None:
        return {}
    return diff(instance, original)


def merge(instance: Model, partial: Mapping[str, Any] | None) -> None:
    """Apply partial external input; read-only fields are left alone."""
    import_into(instance, partial)
