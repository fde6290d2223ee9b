# Overview: Field-name mapping between storage (snake_case) and the JSON API (camelCase).

"""
Boundary mapping layer.

Models serialize with storage column names (``opening_stock``); the web
client speaks camelCase (``openingStock``). Every route passes outgoing
bodies through ``to_api`` and incoming bodies through ``from_api`` so the
translation happens in exactly one place.
"""
from __future__ import annotations

import re
from typing import Any

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])([A-Z])")


def snake_to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def camel_to_snake(name: str) -> str:
    return _CAMEL_BOUNDARY.sub(r"_\1", name).lower()


def _convert(obj: Any, key_fn, passthrough: frozenset[str]) -> Any:
    if isinstance(obj, dict):
        out = {}
        for key, value in obj.items():
            new_key = key_fn(key) if isinstance(key, str) else key
            if key in passthrough:
                # Keys of this mapping are data (e.g. grade labels), not field names
                out[new_key] = value
            else:
                out[new_key] = _convert(value, key_fn, passthrough)
        return out
    if isinstance(obj, (list, tuple)):
        return [_convert(item, key_fn, passthrough) for item in obj]
    return obj


def to_api(obj: Any, *, passthrough: set[str] | frozenset[str] = frozenset()) -> Any:
    """Convert storage-shaped dicts (recursively) to camelCase keys."""
    return _convert(obj, snake_to_camel, frozenset(passthrough))


def from_api(payload: Any, *, passthrough: set[str] | frozenset[str] = frozenset()) -> Any:
    """Convert an incoming camelCase payload (recursively) to snake_case keys."""
    return _convert(payload, camel_to_snake, frozenset(passthrough))
