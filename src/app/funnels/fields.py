"""Field Store ingestion -- parse raw field values into the tagged union.

Field values arrive in whatever shape their edit history left them: plain
strings, JSON-serialized arrays/objects, or already-decoded structures. This
module normalizes them exactly once so the mappers only ever see plain
Python values.
"""

from __future__ import annotations

import json
from typing import Any

import structlog

from src.app.funnels.schemas import (
    ArrayValue,
    FieldRecord,
    FieldType,
    FieldValue,
    ImageValue,
    ObjectValue,
    TextValue,
)

logger = structlog.get_logger(__name__)


def _decode_json(raw: Any) -> tuple[Any, bool]:
    """Decode a JSON string. Returns (value, ok); non-strings pass through."""
    if not isinstance(raw, str):
        return raw, True
    stripped = raw.strip()
    if not stripped or stripped[0] not in "[{":
        return raw, False
    try:
        return json.loads(stripped), True
    except ValueError:
        return raw, False


def _as_text(raw: Any) -> str:
    if raw is None:
        return ""
    if isinstance(raw, str):
        return raw
    if isinstance(raw, (dict, list)):
        return json.dumps(raw)
    return str(raw)


def parse_field(field_type: FieldType | str, raw: Any) -> tuple[FieldValue, list[str]]:
    """Parse a raw field value according to its declared type.

    Args:
        field_type: Declared field type (text, textarea, array, object, image, video_url).
        raw: Stored value -- string, JSON string, list, dict, or None.

    Returns:
        (FieldValue, warnings). Malformed JSON degrades to an opaque TextValue
        and a warning instead of raising.
    """
    try:
        ftype = FieldType(field_type)
    except ValueError:
        return TextValue(value=_as_text(raw)), [f"unknown field type {field_type!r}, treated as text"]

    warnings: list[str] = []

    if ftype in (FieldType.text, FieldType.textarea):
        return TextValue(value=_as_text(raw)), warnings

    if ftype in (FieldType.image, FieldType.video_url):
        if isinstance(raw, dict):
            url = raw.get("url") or raw.get("public_url") or ""
            return ImageValue(value=_as_text(url)), warnings
        return ImageValue(value=_as_text(raw)), warnings

    if raw is None or raw == "":
        return (ArrayValue() if ftype == FieldType.array else ObjectValue()), warnings

    decoded, ok = _decode_json(raw)
    if not ok:
        warnings.append(f"{ftype.value} field holds non-JSON text, kept as opaque string")
        return TextValue(value=_as_text(raw)), warnings

    if ftype == FieldType.array:
        if isinstance(decoded, list):
            return ArrayValue(value=decoded), warnings
        warnings.append(f"array field holds {type(decoded).__name__}, wrapped in a list")
        return ArrayValue(value=[decoded]), warnings

    if isinstance(decoded, dict):
        return ObjectValue(value=decoded), warnings
    warnings.append(f"object field holds {type(decoded).__name__}, kept as text")
    return TextValue(value=_as_text(decoded)), warnings


def to_field_record(row: dict[str, Any]) -> FieldRecord:
    """Build a FieldRecord from a field-table row dict."""
    field_type = row.get("field_type") or FieldType.text.value
    value, warnings = parse_field(field_type, row.get("field_value"))
    if warnings:
        logger.warning(
            "fields.degraded_value",
            section_id=row.get("section_id"),
            field_id=row.get("field_id"),
            warnings=warnings,
        )
    try:
        declared = FieldType(field_type)
    except ValueError:
        declared = FieldType.text
    return FieldRecord(
        section_id=row["section_id"],
        field_id=row["field_id"],
        field_type=declared,
        value=value,
        is_approved=bool(row.get("is_approved", False)),
        version=int(row.get("version") or 1),
        is_custom=bool(row.get("is_custom", False)),
        warnings=warnings,
    )
