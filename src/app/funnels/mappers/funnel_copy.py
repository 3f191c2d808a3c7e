"""Funnel page copy, media library, and company info mappings.

Defines:
- FUNNEL_COPY_MAP: page -> {field: remote keys} for the optin, sales (VSL),
  booking, and thank-you pages. Remote keys are prefixed by page
  (02_optin_*, 02_vsl_*, 02_booking_*, 02_thankyou_page_*).
- SHARED_COPY_MAP: page-independent funnelCopy fields.
- MEDIA_MAP: media library field aliases -> remote keys.
- COMPANY_INFO_MAP: intake form aliases -> remote keys.

Every mapping target is a tuple because one source field may populate
several remote keys (the logo appears on all four pages, the company name
in every footer). A missing source field produces no entry at all, so a
previously pushed value for a reused key is left untouched.
"""

from __future__ import annotations

from typing import Any

import structlog

from src.app.funnels.mappers.base import as_section, first_text, text_of
from src.app.funnels.schemas import MapperResult

logger = structlog.get_logger(__name__)


def _numbered(prefix: str, field: str, count: int, suffix: str = "_text") -> dict[str, tuple[str, ...]]:
    """Build {field_N: (prefix_field_N{suffix},)} for N in 1..count."""
    return {
        field.format(n=n): (f"{prefix}_{field.format(n=n)}{suffix}",)
        for n in range(1, count + 1)
    }


# ── Page Copy ──────────────────────────────────────────────────────────────

OPTIN_PAGE_MAP: dict[str, tuple[str, ...]] = {
    "headline_text": ("02_optin_headline_text",),
    "subheadline_text": ("02_optin_subheadline_text",),
    "cta_button_text": ("02_optin_cta_button_text",),
    "popup_form_headline": ("02_optin_popup_form_headline_text",),
}

SALES_PAGE_MAP: dict[str, tuple[str, ...]] = {
    # Hero
    "hero_headline_text": ("02_vsl_hero_headline_text",),
    "hero_subheadline_text": ("02_vsl_hero_subheadline_text",),
    "hero_below_cta_sub_text": ("02_vsl_hero_below_cta_sub_text",),
    # The same CTA label is rendered in the hero and the audience callout
    "cta_text": ("02_vsl_cta_text", "02_vsl_audience_callout_cta_text"),
    # Process overview
    "process_headline": ("02_vsl_process_headline_text",),
    "process_subheadline": ("02_vsl_process_subheadline_text",),
    **_numbered("02_vsl", "process_{n}_headline", 6),
    **_numbered("02_vsl", "process_{n}_subheadline", 6),
    # How it works
    "how_it_works_headline": ("02_vsl_how_it_works_headline_text",),
    "how_it_works_subheadline_above_cta": ("02_vsl_how_it_works_subheadline_above_cta_text",),
    **_numbered("02_vsl", "how_it_works_point_{n}", 3),
    # Audience callout
    "audience_callout_headline": ("02_vsl_audience_callout_headline_text",),
    "audience_callout_for_headline": ("02_vsl_audience_callout_for_headline_text",),
    **_numbered("02_vsl", "audience_callout_for_{n}", 3),
    "audience_callout_not_headline": ("02_vsl_audience_callout_not_headline_text",),
    **_numbered("02_vsl", "audience_callout_not_{n}", 3),
    "audience_callout_cta_sub_text": ("02_vsl_audience_callout_cta_sub_text",),
    "this_is_for_headline": ("02_vsl_this_is_for_headline_text",),
    # Call expectations
    "call_expectations_headline": ("02_vsl_call_expectations_headline_text",),
    "call_expectations_is_for_headline": ("02_vsl_call_expectations_is_for_headline_text",),
    **_numbered("02_vsl", "call_expectations_is_for_bullet_{n}", 3),
    "call_expectations_not_for_headline": ("02_vsl_call_expectations_not_for_headline_text",),
    **_numbered("02_vsl", "call_expectations_not_for_bullet_{n}", 3),
    # Bio
    "bio_headline_text": ("02_vsl_bio_headline_text",),
    "bio_paragraph_text": ("02_vsl_bio_paragraph_text",),
    # Testimonials
    "testimonial_headline_text": ("02_vsl_testimonial_headline_text",),
    "testimonial_subheadline_text": ("02_vsl_testimonial_subheadline_text",),
    **_numbered("02_vsl", "testimonial_review_{n}_headline", 4),
    **_numbered("02_vsl", "testimonial_review_{n}_subheadline_with_name", 4),
    # FAQ
    "faq_headline_text": ("02_vsl_faq_headline_text",),
    **_numbered("02_vsl", "faq_question_{n}", 4),
    **_numbered("02_vsl", "faq_answer_{n}", 4),
    # Final CTA
    "final_cta_headline": ("02_vsl_final_cta_headline_text",),
    "final_cta_subheadline": ("02_vsl_final_cta_subheadline_text",),
    "final_cta_subtext": ("02_vsl_final_cta_sub_text",),
}

BOOKING_PAGE_MAP: dict[str, tuple[str, ...]] = {
    "headline": ("02_booking_headline_text",),
    "calendar_embedded_code": ("02_booking_calendar_embedded_code",),
}

THANKYOU_PAGE_MAP: dict[str, tuple[str, ...]] = {
    "headline": ("02_thankyou_page_headline_text",),
    "subheadline": ("02_thankyou_page_subheadline_text",),
}

FUNNEL_COPY_MAP: dict[str, dict[str, tuple[str, ...]]] = {
    "optinPage": OPTIN_PAGE_MAP,
    "salesPage": SALES_PAGE_MAP,
    "calendarPage": BOOKING_PAGE_MAP,
    "thankYouPage": THANKYOU_PAGE_MAP,
}

SHARED_COPY_MAP: dict[str, tuple[str, ...]] = {
    "company_name": ("company_name", "02_footer_company_name"),
    "logo_image": (
        "02_optin_logo_image",
        "02_vsl_logo_image",
        "02_booking_logo_image",
        "02_thankyou_logo_image",
    ),
}


# ── Media Library ──────────────────────────────────────────────────────────
# (source aliases in priority order, remote keys)

MEDIA_MAP: tuple[tuple[tuple[str, ...], tuple[str, ...]], ...] = (
    (("logo", "logoImage", "logoUrl", "logo_url", "businessLogo", "business_logo"), SHARED_COPY_MAP["logo_image"]),
    (("mockup", "mockupImage", "optin_mockup", "product_mockup", "productMockup"), ("02_optin_mockup_image",)),
    (("vslVideo", "vsl_video", "mainVideo", "main_video", "main_vsl"), ("02_vsl_video",)),
    (("thankYouVideo", "thankyou_video", "thank_you_video", "confirmationVideo"), ("02_thankyou_page_video",)),
    (("bioPhoto", "bio_photo", "headshotImage", "headshot", "profilePhoto", "bio_author"), ("02_vsl_bio_photo_text",)),
    *(
        (
            (f"testimonial{n}Photo", f"testimonial_{n}_photo", f"testimonialPhoto{n}", f"testimonial_{n}"),
            (f"02_vsl_testimonials_profile_pic_{n}",),
        )
        for n in range(1, 5)
    ),
    (("booking_calendar_code", "calendar_embed"), ("02_booking_calendar_embedded_code",)),
)


# ── Company Info ───────────────────────────────────────────────────────────

COMPANY_INFO_MAP: tuple[tuple[tuple[str, ...], tuple[str, ...]], ...] = (
    (("company_name", "companyName", "businessName", "business_name"), SHARED_COPY_MAP["company_name"]),
    (("company_address", "companyAddress", "address", "businessAddress"), ("company_address",)),
    (
        ("company_support_email", "supportEmail", "support_email", "companyEmail", "email"),
        ("company_support_email",),
    ),
    (
        ("company_telephone", "companyPhone", "phone", "telephone", "businessPhone"),
        ("company_telephone",),
    ),
    (("footer_text", "footerText"), ("02_footer_text",)),
)


# ── Mappers ────────────────────────────────────────────────────────────────


def _emit(values: dict[str, str], keys: tuple[str, ...], text: str) -> None:
    for key in keys:
        values[key] = text


def map_funnel_copy(content: Any) -> MapperResult:
    """Map the funnelCopy section (4 pages + shared fields) to custom values."""
    warnings: list[str] = []
    copy_section = as_section(content, "funnelCopy", warnings)
    values: dict[str, str] = {}

    for page, field_map in FUNNEL_COPY_MAP.items():
        page_content = as_section(copy_section.get(page), page, warnings)
        for field, keys in field_map.items():
            raw = page_content.get(field)
            text = text_of(raw)
            if text:
                _emit(values, keys, text)
            elif isinstance(raw, (dict, list)) and raw:
                warnings.append(f"{page}.{field}: unsupported {type(raw).__name__} value")

    for field, keys in SHARED_COPY_MAP.items():
        text = text_of(copy_section.get(field))
        if text:
            _emit(values, keys, text)

    logger.debug("mapper.funnel_copy", keys=len(values), warnings=len(warnings))
    return MapperResult(values=values, warnings=warnings)


def _map_aliases(
    source: dict[str, Any],
    table: tuple[tuple[tuple[str, ...], tuple[str, ...]], ...],
) -> dict[str, str]:
    values: dict[str, str] = {}
    for aliases, keys in table:
        text = first_text(source, *aliases)
        if text:
            _emit(values, keys, text)
    return values


def map_media(content: Any) -> MapperResult:
    """Map the media library section (logos, mockups, videos, photos)."""
    warnings: list[str] = []
    media = as_section(content, "media", warnings)
    values = _map_aliases(media, MEDIA_MAP)
    logger.debug("mapper.media", keys=len(values))
    return MapperResult(values=values, warnings=warnings)


def map_company_info(content: Any) -> MapperResult:
    """Map company details from the intake form."""
    warnings: list[str] = []
    intake = as_section(content, "intake_form", warnings)
    values = _map_aliases(intake, COMPANY_INFO_MAP)
    logger.debug("mapper.company_info", keys=len(values))
    return MapperResult(values=values, warnings=warnings)

