"""Form submission flattening."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


def form_pairs(data: Mapping[str, Any]) -> list[tuple[str, Any]]:
    """
    Flatten an exported mapping into ordered form fields.

    Sequences become ``key[index]`` and nested mappings ``key[sub_key]``,
    recursively. Scalars are passed through untouched.

    Example:
        form_pairs({"name": "A", "tags": ["x", "y"], "profile": {"bio": "b"}})
        # -> [("name", "A"), ("tags[0]", "x"), ("tags[1]", "y"), ("profile[bio]", "b")]

    """
    pairs: list[tuple[str, Any]] = []
    for key, value in data.items():
        _flatten(str(key), value, pairs)
    return pairs


def _flatten(prefix: str, value: Any, pairs: list[tuple[str, Any]]) -> None:
    if isinstance(value, Mapping):
        for key, item in value.items():
            _flatten(f"{prefix}[{key}]", item, pairs)
    elif isinstance(value, (list, tuple)):
        for index, item in enumerate(value):
            _flatten(f"{prefix}[{index}]", item, pairs)
    else:
        pairs.append((prefix, value))
