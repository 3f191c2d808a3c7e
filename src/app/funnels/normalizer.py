"""Content normalizer -- overlays granular field overrides onto section blobs.

The denormalized section JSON (vault_content.content) is the substrate; rows
from the field table always win on key collision. Dotted field ids such as
``optinPage.headline_text`` address nested keys inside the blob.
"""

from __future__ import annotations

import copy
import json
from collections.abc import Iterable, Mapping
from typing import Any

import structlog

from src.app.funnels.schemas import FieldRecord

logger = structlog.get_logger(__name__)


def _maybe_json(value: Any) -> Any:
    """Decode JSON-serialized arrays/objects; anything else passes through unchanged."""
    if not isinstance(value, str):
        return value
    stripped = value.strip()
    if not stripped or stripped[0] not in "[{":
        return value
    try:
        return json.loads(stripped)
    except ValueError:
        return value


def _set_path(target: dict[str, Any], path: str, value: Any) -> None:
    parts = path.split(".")
    node = target
    for part in parts[:-1]:
        child = node.get(part)
        if not isinstance(child, dict):
            child = {}
            node[part] = child
        node = child
    node[parts[-1]] = value


def merge(section_blob: Mapping[str, Any] | str | None, overrides: Mapping[str, Any] | None) -> dict[str, Any]:
    """Shallow-merge field overrides onto a section blob.

    Override values win on collision; blob keys absent from the overrides
    pass through unchanged. JSON-string overrides are parsed first and fall
    back to the opaque string if they do not decode.

    Args:
        section_blob: Section JSON (dict, JSON string, or None).
        overrides: {field_id: value} from the field table.

    Returns:
        A new dict; neither input is mutated.
    """
    base = _maybe_json(section_blob) if section_blob is not None else {}
    if not isinstance(base, dict):
        logger.warning("normalizer.blob_not_object", blob_type=type(base).__name__)
        base = {}
    merged = copy.deepcopy(base)

    for field_id, value in (overrides or {}).items():
        parsed = _maybe_json(value)
        if "." in field_id:
            _set_path(merged, field_id, parsed)
        else:
            merged[field_id] = parsed

    return merged


def merge_funnel_content(
    blobs_by_section: Mapping[str, Any],
    records: Iterable[FieldRecord],
) -> dict[str, dict[str, Any]]:
    """Merge every section of a funnel.

    Args:
        blobs_by_section: {section_id: content JSON}.
        records: Parsed field rows for the funnel.

    Returns:
        {section_id: merged content}. Sections that only exist in the field
        table are included.
    """
    overrides: dict[str, dict[str, Any]] = {}
    for record in records:
        overrides.setdefault(record.section_id, {})[record.field_id] = record.value.value

    section_ids = list(blobs_by_section.keys())
    section_ids.extend(sid for sid in overrides if sid not in blobs_by_section)

    merged = {
        section_id: merge(blobs_by_section.get(section_id), overrides.get(section_id))
        for section_id in section_ids
    }

    logger.debug(
        "normalizer.merged",
        sections=len(merged),
        overridden_sections=len(overrides),
    )
    return merged
