"""Nested field access over loosely-typed JSON documents.

Catalogue responses are GeoJSON-like but the members we care about (assets,
hrefs, extension properties) are not guaranteed, so they are walked as plain
decoded JSON rather than validated models.
"""

from collections.abc import Mapping, Sequence
from typing import Union

# Anything `json.loads` can produce
JSONValue = Union[dict[str, "JSONValue"], list["JSONValue"], str, int, float, bool, None]

NOT_AVAILABLE = "N/A"


def extract(path: Sequence[str], root: JSONValue) -> JSONValue:
    """Walk `root` following `path`, one mapping key per segment.

    Descends while the current value is a mapping. As soon as a scalar or a list
    is reached it is returned, even if segments remain: a path running past a
    leaf stops there instead of failing.

    Args:
        path (Sequence[str]): keys to follow, e.g. ``["assets", "PRODUCT", "href"]``
        root (JSONValue): decoded document, or None

    Returns:
        JSONValue: the value found, None when the root is absent or a key is missing
    """
    current = root
    for segment in path:
        if current is None:
            return None
        if not isinstance(current, Mapping):
            break
        current = current.get(segment)
    return current


def stringify(value: JSONValue) -> str | None:
    """Render a JSON value for display.

    Scalars are converted directly, lists are joined with ``", "`` (recursively),
    objects and null become ``"N/A"``.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, list):
        return ", ".join(stringify(v) or NOT_AVAILABLE for v in value)
    return NOT_AVAILABLE


def extract_str(path: Sequence[str], root: JSONValue) -> str | None:
    """Shortcut for extracting a value that must be a string."""
    value = extract(path, root)
    return value if isinstance(value, str) else None
