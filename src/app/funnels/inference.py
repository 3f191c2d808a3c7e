"""Inference fallback for custom values the direct mappers did not produce.

Defines:
- KeyKind / KeySpec: metadata for every key the funnel templates consume
- KEY_REGISTRY: the master key list (colors, media, embed code, text)
- infer_value(): derive one key from the merged content or fall back to its
  static default
- fill_missing(): run inference only for keys absent from the mapped output

The brand palette is passed in explicitly; nothing is cached between pushes.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any

import structlog
from pydantic import BaseModel, Field

from src.app.funnels.mappers.base import text_of
from src.app.funnels.mappers.brand import DEFAULT_PALETTE, ColorPalette, palette_colors
from src.app.funnels.mappers.funnel_copy import MEDIA_MAP

logger = structlog.get_logger(__name__)


class KeyKind(str, Enum):
    text = "text"
    color = "color"
    image = "image"
    video = "video"
    url = "url"
    code = "code"


class KeySpec(BaseModel):
    """Metadata for one remote custom value key."""

    name: str
    kind: KeyKind = KeyKind.text
    default: str = ""
    critical: bool = False
    # Dotted paths into the merged content, tried in order
    sources: tuple[str, ...] = Field(default_factory=tuple)


CRITICAL_KEYS = (
    "company_name",
    "02_optin_headline_text",
    "02_vsl_hero_headline_text",
    "02_optin_cta_button_text",
    "primary_color",
)

# Fallback patterns for color keys outside the palette table; first match wins
STATIC_COLOR_PATTERNS: tuple[tuple[str, str], ...] = (
    ("cta_text", "#FFFFFF"),
    ("cta", "primary"),
    ("button", "primary"),
    ("subheadline", "secondary"),
    ("sub_headline", "secondary"),
    ("headline", "heading"),
    ("paragraph", "text"),
    ("text", "text"),
    ("border", "accent"),
    ("pill", "accent"),
    ("urgency", "#ef4444"),
    ("background", "background"),
    ("bg", "background"),
)


# ── Registry ───────────────────────────────────────────────────────────────


def _media_specs() -> list[KeySpec]:
    specs: list[KeySpec] = []
    for aliases, keys in MEDIA_MAP:
        for key in keys:
            if key.endswith("_embedded_code"):
                kind = KeyKind.code
                sources = tuple(f"media.{a}" for a in aliases) + (
                    "funnelCopy.calendarPage.calendar_embedded_code",
                )
            else:
                kind = KeyKind.video if "video" in key else KeyKind.image
                sources = tuple(f"media.{a}" for a in aliases)
            specs.append(KeySpec(name=key, kind=kind, sources=sources))
    return specs


_TEXT_SPECS: tuple[KeySpec, ...] = (
    KeySpec(
        name="company_name",
        default="Your Company",
        sources=("intake_form.company_name", "intake_form.companyName", "intake_form.businessName"),
    ),
    KeySpec(
        name="02_footer_company_name",
        sources=("intake_form.company_name", "intake_form.companyName", "intake_form.businessName"),
    ),
    KeySpec(
        name="02_optin_headline_text",
        default="Get Instant Access to Your Free Training",
        sources=(
            "leadMagnet.titleAndHook.mainTitle",
            "leadMagnet.title",
            "message.coreMessage",
            "message.oneLiner",
        ),
    ),
    KeySpec(
        name="02_optin_subheadline_text",
        sources=("leadMagnet.titleAndHook.subtitle", "message.uniqueMechanism"),
    ),
    KeySpec(
        name="02_optin_cta_button_text",
        default="Get Instant Access",
        sources=("leadMagnet.landingPageCopy.ctaButtonText",),
    ),
    KeySpec(
        name="02_vsl_hero_headline_text",
        default="Discover How to Get the Results You Want",
        sources=("message.coreMessage", "offer.headline", "offer.promise", "message.oneLiner"),
    ),
    KeySpec(
        name="02_vsl_cta_text",
        default="Book Your Call",
        sources=("offer.ctaText",),
    ),
    KeySpec(
        name="02_vsl_bio_paragraph_text",
        sources=("bio.shortBio", "story.shortVersion"),
    ),
    KeySpec(name="02_booking_headline_text", default="Pick a Time That Works Best for You"),
    KeySpec(name="02_thankyou_page_headline_text", default="You're All Set!"),
)


def _build_registry() -> dict[str, KeySpec]:
    registry: dict[str, KeySpec] = {}
    for name, value in palette_colors(DEFAULT_PALETTE).items():
        registry[name] = KeySpec(name=name, kind=KeyKind.color, default=value)
    for spec in _media_specs():
        registry.setdefault(spec.name, spec)
    for spec in _TEXT_SPECS:
        registry[spec.name] = spec
    for name in CRITICAL_KEYS:
        registry[name] = registry[name].model_copy(update={"critical": True})
    return registry


KEY_REGISTRY: dict[str, KeySpec] = _build_registry()


# ── Inference ──────────────────────────────────────────────────────────────


def get_path(content: Mapping[str, Any], path: str) -> str:
    """Resolve a dotted path (list indices allowed) to text, "" if absent."""
    node: Any = content
    for part in path.split("."):
        if isinstance(node, Mapping):
            node = node.get(part)
        elif isinstance(node, list) and part.isdigit() and int(part) < len(node):
            node = node[int(part)]
        else:
            return ""
    return text_of(node)


def _infer_color(spec: KeySpec, palette: ColorPalette) -> str:
    mapped = palette_colors(palette).get(spec.name)
    if mapped:
        return mapped
    lowered = spec.name.lower()
    for pattern, target in STATIC_COLOR_PATTERNS:
        if pattern in lowered:
            return target if target.startswith("#") else getattr(palette, target)
    return spec.default or palette.primary


def infer_value(
    spec: KeySpec,
    content: Mapping[str, Any],
    palette: ColorPalette = DEFAULT_PALETTE,
) -> tuple[str, str | None]:
    """Infer a value for one key.

    Returns:
        (value, source) where source is "derived", "default", or None when
        nothing could be inferred.
    """
    if spec.kind == KeyKind.color:
        return _infer_color(spec, palette), "derived"

    for path in spec.sources:
        value = get_path(content, path)
        if value:
            return value, "derived"

    if spec.default:
        return spec.default, "default"
    return "", None


def fill_missing(
    values: Mapping[str, str],
    content: Mapping[str, Any],
    palette: ColorPalette = DEFAULT_PALETTE,
    registry: Mapping[str, KeySpec] | None = None,
) -> tuple[dict[str, str], dict[str, str]]:
    """Fill registry keys the direct mappers left empty.

    Args:
        values: Mapped output so far (never overwritten when non-empty).
        content: Merged content by section, used for derivation.
        palette: Brand palette for color keys.
        registry: Key registry; defaults to KEY_REGISTRY.

    Returns:
        (completed values, {key: source}) for every key that was inferred.
    """
    complete = dict(values)
    sources: dict[str, str] = {}

    for name, spec in (registry or KEY_REGISTRY).items():
        if complete.get(name):
            continue
        value, source = infer_value(spec, content, palette)
        if value and source:
            complete[name] = value
            sources[name] = source

    logger.debug(
        "inference.complete",
        inferred=len(sources),
        defaulted=sum(1 for s in sources.values() if s == "default"),
    )
    return complete, sources
