"""Shared extraction helpers for the direct mappers.

Mappers never raise on malformed input. These helpers coerce loosely-typed
section content into strings and record a warning whenever a value has to
be dropped.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


def text_of(value: Any) -> str:
    """Coerce a scalar or list of scalars to a stripped string ("" otherwise)."""
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, list) and all(isinstance(v, (str, int, float)) for v in value):
        return "\n".join(str(v).strip() for v in value if str(v).strip())
    return ""


def first_text(source: Mapping[str, Any], *names: str) -> str:
    """Return the first non-empty text among the given alias field names."""
    for name in names:
        text = text_of(source.get(name))
        if text:
            return text
    return ""


def as_section(content: Any, section: str, warnings: list[str]) -> dict[str, Any]:
    """Return the section as a dict, warning when it has an unexpected shape."""
    if content is None:
        return {}
    if isinstance(content, Mapping):
        return dict(content)
    warnings.append(f"{section}: expected an object, got {type(content).__name__}")
    return {}


def as_entry(value: Any, field_id: str, warnings: list[str]) -> dict[str, Any] | None:
    """Return a slot entry as a dict, or None when absent or malformed."""
    if value is None or value == "":
        return None
    if isinstance(value, Mapping):
        return dict(value)
    warnings.append(f"{field_id}: expected an object, got {type(value).__name__}")
    return None
