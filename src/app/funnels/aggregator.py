"""Custom value aggregator -- merged funnel content to the complete desired remote state.

Precedence, lowest first:
1. Generic base: brand colors, generated images, company info
2. Direct mappers (authoritative for their sections): emails, sms,
   appointmentReminders, funnelCopy, media
3. Inference fallback, only for keys still missing after 1 and 2

Empty values are stripped last, so the push engine never sees blanks.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import Any

import structlog

from src.app.funnels.inference import KEY_REGISTRY, KeyKind, fill_missing
from src.app.funnels.mappers.appointment_reminders import map_appointment_reminders
from src.app.funnels.mappers.brand import (
    DEFAULT_PALETTE,
    brand_colors_input,
    extract_color_scheme,
    map_brand_colors,
    map_generated_images,
)
from src.app.funnels.mappers.email import map_emails
from src.app.funnels.mappers.funnel_copy import map_company_info, map_funnel_copy, map_media
from src.app.funnels.mappers.sms import map_sms
from src.app.funnels.schemas import AggregationResult, GeneratedImage, MapperResult

logger = structlog.get_logger(__name__)

INTAKE_SECTIONS = ("intake_form", "intakeForm")

# Content families a push can be scoped to; every output key belongs to one
PUSH_SECTIONS = (
    "colors",
    "images",
    "company",
    "emails",
    "sms",
    "appointmentReminders",
    "funnelCopy",
    "media",
)

_COMPANY_KEYS = frozenset({"company_name", "02_footer_company_name"})

# (section id, mapper) in override order
DIRECT_MAPPERS: tuple[tuple[str, Callable[[Any], MapperResult]], ...] = (
    ("emails", map_emails),
    ("sms", map_sms),
    ("appointmentReminders", map_appointment_reminders),
    ("funnelCopy", map_funnel_copy),
    ("media", map_media),
)


def _intake(merged: Mapping[str, Any]) -> Any:
    for name in INTAKE_SECTIONS:
        if merged.get(name) is not None:
            return merged[name]
    return None


def _apply(
    values: dict[str, str],
    sections: dict[str, str],
    warnings: list[str],
    source: str,
    section: str,
    result: MapperResult,
) -> None:
    # Empty strings never shadow a value set by a lower-precedence mapper
    for key, value in result.values.items():
        if value:
            values[key] = value
            sections[key] = section
    warnings.extend(f"{source}: {w}" for w in result.warnings)


def inferred_section(key: str) -> str:
    """Content family owning a key produced by the inference pass."""
    kind = KEY_REGISTRY[key].kind
    if kind == KeyKind.color:
        return "colors"
    if kind in (KeyKind.image, KeyKind.video, KeyKind.code):
        return "media"
    if key in _COMPANY_KEYS:
        return "company"
    return "funnelCopy"


def aggregate(
    merged_by_section: Mapping[str, Any],
    images: Iterable[GeneratedImage] | None = None,
) -> AggregationResult:
    """Build the flat {key: value} desired state for a funnel.

    Args:
        merged_by_section: Normalizer output, section id -> merged content.
        images: Completed generated images for the funnel.

    Returns:
        AggregationResult with non-empty values, the content family (one of
        PUSH_SECTIONS) of every key, mapper warnings, and the keys that came
        from inference or static defaults.
    """
    values: dict[str, str] = {}
    sections: dict[str, str] = {}
    warnings: list[str] = []

    intake = _intake(merged_by_section)
    _apply(values, sections, warnings, "brandColors", "colors", map_brand_colors(intake))
    if images:
        _apply(values, sections, warnings, "images", "images", map_generated_images(images))
    _apply(values, sections, warnings, "intake_form", "company", map_company_info(intake))

    for section_id, mapper in DIRECT_MAPPERS:
        content = merged_by_section.get(section_id)
        if content is None:
            continue
        _apply(values, sections, warnings, section_id, section_id, mapper(content))

    palette = DEFAULT_PALETTE
    brand_input = brand_colors_input(intake) if isinstance(intake, Mapping) else None
    if brand_input is not None:
        palette = extract_color_scheme(brand_input)

    inference_content = dict(merged_by_section)
    if intake is not None:
        inference_content.setdefault("intake_form", intake)
    values, sources = fill_missing(values, inference_content, palette)

    inferred_keys: list[str] = []
    defaulted_keys: list[str] = []
    for key, source in sources.items():
        inferred_keys.append(key)
        sections[key] = inferred_section(key)
        if source == "default" and KEY_REGISTRY[key].critical:
            defaulted_keys.append(key)
            warnings.append(f"{key}: critical value missing, default substituted")
            logger.warning("aggregate.critical_default", key=key, default=values[key])

    values = {k: v for k, v in values.items() if v}
    sections = {k: sections[k] for k in values}

    logger.info(
        "aggregate.complete",
        keys=len(values),
        inferred=len(inferred_keys),
        defaulted=len(defaulted_keys),
        warnings=len(warnings),
    )
    return AggregationResult(
        values=values,
        key_sections=sections,
        warnings=warnings,
        inferred_keys=inferred_keys,
        defaulted_keys=defaulted_keys,
    )
