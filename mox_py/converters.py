"""Key conversion between external snake_case and internal camelCase."""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from functools import lru_cache
from typing import Any

# Type alias for leaf handlers
Leaf = Callable[[Any], Any]

_SNAKE_RE = re.compile(r"_([a-z])")
_UPPER_RE = re.compile(r"[A-Z]")


@lru_cache(maxsize=1024)
def to_internal_key(key: str) -> str:
    """
    Convert an external key to its internal form.

    Each underscore followed by a lowercase letter becomes the uppercased
    letter: ``first_name`` -> ``firstName``.

    Keys with digits after an underscore (``line_1``), consecutive
    underscores, or unusual mixed case are not guaranteed to round-trip
    through ``to_external_key``.
    """
    return _SNAKE_RE.sub(lambda m: m.group(1).upper(), key)


@lru_cache(maxsize=1024)
def to_external_key(key: str) -> str:
    """
    Convert an internal key to its external form.

    Each uppercase letter becomes an underscore followed by the lowercased
    letter: ``firstName`` -> ``first_name``.
    """
    return _UPPER_RE.sub(lambda m: "_" + m.group(0).lower(), key)


def convert_keys(
    value: Any,
    convert_key: Callable[[str], str],
    leaf: Leaf | None = None,
) -> Any:
    """Walk plain mappings, lists and tuples, rewriting string keys."""
    if isinstance(value, Mapping):
        return {
            convert_key(k) if isinstance(k, str) else k: convert_keys(v, convert_key, leaf)
            for k, v in value.items()
        }
    if isinstance(value, list):
        return [convert_keys(v, convert_key, leaf) for v in value]
    if isinstance(value, tuple):
        return tuple(convert_keys(v, convert_key, leaf) for v in value)
    if leaf is not None:
        return leaf(value)
    return value


def to_internal(value: Any, leaf: Leaf | None = None) -> Any:
    """
    Recursively convert mapping keys to internal form.

    Only plain mappings, lists and tuples are walked. Every other value,
    model instances included, is opaque: it is handed to ``leaf`` when one
    is given and returned unchanged otherwise.
    """
    return convert_keys(value, to_internal_key, leaf)


def to_external(value: Any, leaf: Leaf | None = None) -> Any:
    """Recursively convert mapping keys to external form. See ``to_internal``."""
    return convert_keys(value, to_external_key, leaf)
