"""Generic brand color and image mapper.

Provides:
- extract_color_scheme(): palette from free-text brand colors (explicit hex
  codes first, then color-family keywords, then the default cyan palette)
- map_brand_colors(): palette -> funnel color custom values with contrast-safe
  text colors
- map_generated_images(): AI image records -> literal {type}_image_url keys
  plus semantic aliases
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import Any

import structlog
from pydantic import BaseModel

from src.app.funnels.mappers.base import first_text, text_of
from src.app.funnels.schemas import GeneratedImage, MapperResult

logger = structlog.get_logger(__name__)

HEX_RE = re.compile(r"#[0-9A-Fa-f]{6}")


class ColorPalette(BaseModel):
    primary: str = "#0891b2"
    secondary: str = "#06b6d4"
    accent: str = "#22d3ee"
    background: str = "#FFFFFF"
    text: str = "#1F2937"
    heading: str = "#000000"

    @property
    def cta(self) -> str:
        return self.primary


DEFAULT_PALETTE = ColorPalette()

# keyword alternation -> (primary, secondary, accent); first match wins
COLOR_KEYWORDS: tuple[tuple[str, tuple[str, str, str]], ...] = (
    ("red|crimson|scarlet", ("#dc2626", "#991b1b", "#ef4444")),
    ("blue|navy|ocean", ("#2563eb", "#1e40af", "#3b82f6")),
    ("green|emerald|nature", ("#16a34a", "#15803d", "#22c55e")),
    ("purple|violet|royal", ("#9333ea", "#7c3aed", "#a855f7")),
    ("orange|amber|fire", ("#ea580c", "#c2410c", "#f97316")),
    ("pink|rose|magenta", ("#ec4899", "#db2777", "#f472b6")),
    ("gold|yellow|sunshine", ("#eab308", "#ca8a04", "#facc15")),
    ("teal|turquoise|cyan", ("#0891b2", "#0e7490", "#22d3ee")),
)

# image_type substring -> semantic alias key
IMAGE_ALIASES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("hero", "mockup"), "optin_mockup_image"),
    (("thankyou", "thank_you"), "thankyou_page_image"),
    (("vsl", "video"), "vsl_page_image"),
    (("testimonial",), "testimonial_image"),
)


# ── Color Extraction ───────────────────────────────────────────────────────


def extract_color_scheme(brand_colors: Any) -> ColorPalette:
    """Derive a brand palette from intake input.

    Args:
        brand_colors: Free text ("our brand is deep ocean blue", "#112233 and
            #445566"), a dict with primary/secondary/accent, or None.

    Returns:
        ColorPalette. Never raises; unknown input yields the default palette.
    """
    if isinstance(brand_colors, Mapping):
        overrides = {
            "primary": first_text(brand_colors, "primary", "primaryColor"),
            "secondary": first_text(brand_colors, "secondary", "secondaryColor"),
            "accent": first_text(brand_colors, "accent", "accentColor", "tertiary"),
            "background": first_text(brand_colors, "background", "backgroundColor"),
            "text": first_text(brand_colors, "text", "textColor"),
            "heading": first_text(brand_colors, "heading", "headingColor"),
        }
        return DEFAULT_PALETTE.model_copy(
            update={k: v for k, v in overrides.items() if HEX_RE.fullmatch(v)}
        )

    text = text_of(brand_colors)
    if not text:
        return DEFAULT_PALETTE

    found = HEX_RE.findall(text)
    if found:
        update = {"primary": found[0]}
        if len(found) > 1:
            update["secondary"] = found[1]
        if len(found) > 2:
            update["accent"] = found[2]
        return DEFAULT_PALETTE.model_copy(update=update)

    lowered = text.lower()
    for pattern, (primary, secondary, accent) in COLOR_KEYWORDS:
        if re.search(pattern, lowered):
            return DEFAULT_PALETTE.model_copy(
                update={"primary": primary, "secondary": secondary, "accent": accent}
            )

    return DEFAULT_PALETTE


def _luminance(hex_color: str) -> float:
    """WCAG relative luminance (0 = black, 1 = white)."""
    channels = []
    for i in (1, 3, 5):
        c = int(hex_color[i : i + 2], 16) / 255
        channels.append(c / 12.92 if c <= 0.03928 else ((c + 0.055) / 1.055) ** 2.4)
    r, g, b = channels
    return 0.2126 * r + 0.7152 * g + 0.0722 * b


def is_light(hex_color: str) -> bool:
    if not HEX_RE.fullmatch(hex_color or ""):
        return True
    return _luminance(hex_color) > 0.5


def contrasting_text(background: str) -> str:
    """Black or white, whichever reads better on the background."""
    if not HEX_RE.fullmatch(background or ""):
        return "#000000"
    return "#000000" if is_light(background) else "#FFFFFF"


def palette_colors(palette: ColorPalette) -> dict[str, str]:
    """Expand a palette to every funnel color key.

    Pages render on white, so body and heading colors that would be too
    light are forced dark.
    """
    text_on_white = "#1F2937" if is_light(palette.text) else palette.text
    heading_on_white = "#000000" if is_light(palette.heading) else palette.heading
    cta_bg = palette.cta
    cta_text = contrasting_text(cta_bg)
    pill_bg = palette.accent or palette.secondary
    pill_text = contrasting_text(pill_bg)
    card_bg = "#F9FAFB"

    colors = {
        "primary_color": palette.primary,
        "secondary_color": palette.secondary,
        "tertiary_color": palette.accent,
        "02_header_background_color": palette.background,
        # Optin
        "02_optin_healine_text_colour": heading_on_white,
        "02_optin_subhealine_text_colour": text_on_white,
        "02_optin_cta_background_colour": cta_bg,
        "02_optin_cta_text_colour": cta_text,
        # Thank you
        "02_thankyou_page_headline_text_colour": heading_on_white,
        "02_thankyou_page_subheadline_text_colour": text_on_white,
        # VSL hero and CTA
        "02_vsl_hero_headline_text_colour": heading_on_white,
        "02_vsl_hero_sub_headline_text_colour": text_on_white,
        "02_vsl_cta_background_colour": cta_bg,
        "02_vsl_cta_text_colour": cta_text,
        "02_vsl_acknowledge_pill_text_colour": pill_text,
        "02_vsl_acknowledge_pill_bg_colour": pill_bg,
        # VSL process
        "02_vsl_process_headline_text_colour": heading_on_white,
        "02_vsl_process_sub_headline_text_colour": text_on_white,
        "02_vsl_process_bullet_text_colour": text_on_white,
        "02_vsl_process_bullet_border_colour": palette.accent or palette.primary,
        # VSL audience callout
        "02_vsl_audience_callout_headline_text_colour": heading_on_white,
        "02_vsl_audience_callout_bullets_border_colour": palette.accent or palette.primary,
        "02_vsl_audience_callout_bullets_text_colour": text_on_white,
        "02_vsl_audience_callout_cta_text_colour": cta_text,
        "02_vsl_audience_callout_cta_background_colour": cta_bg,
        # VSL testimonials
        "02_vsl_testimonials_headline_text_colour": heading_on_white,
        "02_vsl_testimonial_card_background_colour": "#FFFFFF",
        # VSL call details
        "02_vsl_call_details_headline_text_colour": heading_on_white,
        "02_vsl_call_details_heading_colour": contrasting_text(card_bg),
        "02_vsl_call_details_card_background_colour": card_bg,
        "02_vsl_call_details_bullet_text_colour": contrasting_text(card_bg),
        # VSL bio and FAQ
        "02_vsl_bio_headline_text_colour": heading_on_white,
        "02_vsl_bio_paragraph_text_colour": text_on_white,
        "02_vsl_faq_headline_text_colour": heading_on_white,
        "02_vsl_faq_question_text_colour": text_on_white,
        "02_vsl_faq_answer_text_colour": text_on_white,
        # Booking
        "02_booking_pill_background_colour": pill_bg,
        "02_booking_pill_text_colour": pill_text,
        "02_booking_headline_text_colour": heading_on_white,
        # Footer
        "footer_bgcolor": palette.background,
        "footer_text_color": contrasting_text(palette.background),
    }
    for n in range(1, 5):
        colors[f"02_vsl_testimonial_review_{n}_headline_colour"] = heading_on_white
        colors[f"02_vsl_testimonial_review_{n}_paragraph_with_name_colour"] = text_on_white
    return colors


def brand_colors_input(intake: Mapping[str, Any]) -> Any:
    """Locate the brand colors answer in the intake form."""
    for name in ("brandColors", "brand_colors", "colorPalette"):
        value = intake.get(name)
        if value:
            return value
    return None


def map_brand_colors(intake_content: Any) -> MapperResult:
    """Map intake brand colors to color custom values.

    Produces nothing when the intake form has no brand colors; the
    inference pass fills color keys from the default palette instead.
    """
    warnings: list[str] = []
    intake = intake_content if isinstance(intake_content, Mapping) else {}
    raw = brand_colors_input(intake)
    if raw is None:
        return MapperResult(values={}, warnings=warnings)

    palette = extract_color_scheme(raw)
    if palette == DEFAULT_PALETTE:
        warnings.append("brandColors: no recognizable colors, default palette used")

    values = palette_colors(palette)
    logger.debug("mapper.brand_colors", keys=len(values), primary=palette.primary)
    return MapperResult(values=values, warnings=warnings)


# ── Images ─────────────────────────────────────────────────────────────────


def _image_slug(image_type: str) -> str:
    return re.sub(r"[^a-z0-9]+", "_", image_type.strip().lower()).strip("_")


def map_generated_images(images: Iterable[GeneratedImage | Mapping[str, Any]]) -> MapperResult:
    """Flatten generated image records into literal and semantic keys.

    Each record yields ``{type}_image_url``; records whose type mentions hero,
    mockup, thankyou, vsl/video, or testimonial also populate the matching
    semantic alias. Later records overwrite earlier ones.
    """
    warnings: list[str] = []
    values: dict[str, str] = {}

    for raw in images:
        if isinstance(raw, GeneratedImage):
            image_type, url = raw.image_type, raw.public_url
        else:
            image_type = text_of(raw.get("image_type"))
            url = text_of(raw.get("public_url"))
        slug = _image_slug(image_type or "")
        if not slug or not url:
            warnings.append(f"image record skipped: type={image_type!r} url={'set' if url else 'missing'}")
            continue

        values[f"{slug}_image_url"] = url
        for needles, alias in IMAGE_ALIASES:
            if any(needle in slug for needle in needles):
                values[alias] = url
                break

    logger.debug("mapper.images", keys=len(values), warnings=len(warnings))
    return MapperResult(values=values, warnings=warnings)
