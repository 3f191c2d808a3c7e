"""Email sequence mapper.

Maps the ``emails`` section to Optin_Email_* custom values. Fourteen
standard days plus Morning/Afternoon/Evening variants for days 8 and 15
give 19 slots; each populated slot emits exactly three keys (subject, body,
preheader). Bodies are converted to HTML unless they already are HTML.
"""

from __future__ import annotations

from typing import Any

import structlog

from src.app.funnels.email_html import ensure_html
from src.app.funnels.mappers.base import as_entry, as_section, first_text
from src.app.funnels.schemas import MapperResult

logger = structlog.get_logger(__name__)

TIME_VARIANTS = (("a", "Morning"), ("b", "Afternoon"), ("c", "Evening"))

# field_id -> slot label used in the remote key
EMAIL_SLOTS: dict[str, str] = {}
for _day in range(1, 16):
    if _day in (8, 15):
        for _suffix, _label in TIME_VARIANTS:
            EMAIL_SLOTS[f"email{_day}{_suffix}"] = f"{_day} {_label}"
    else:
        EMAIL_SLOTS[f"email{_day}"] = str(_day)

FREE_GIFT_FIELD = "freeGiftEmail"
FREE_GIFT_SUBJECT_KEY = "Free_Gift_Email Subject"
FREE_GIFT_BODY_KEY = "Free_Gift_Email Body"


def email_keys(label: str) -> tuple[str, str, str]:
    """Return the (subject, body, preheader) remote keys for a slot label."""
    return (
        f"Optin_Email_Subject {label}",
        f"Optin_Email_Body {label}",
        f"Optin_Email_Preheader {label}",
    )


def map_emails(content: Any, convert_to_html: bool = True) -> MapperResult:
    """Map the emails section to custom values.

    Args:
        content: Merged ``emails`` section content.
        convert_to_html: Convert markdown bodies to HTML.

    Returns:
        MapperResult with 3 keys per populated slot (plus the free gift email).
    """
    warnings: list[str] = []
    emails = as_section(content, "emails", warnings)
    values: dict[str, str] = {}

    for field_id, label in EMAIL_SLOTS.items():
        entry = as_entry(emails.get(field_id), field_id, warnings)
        if entry is None:
            continue

        subject = first_text(entry, "subject")
        body = first_text(entry, "body")
        preheader = first_text(entry, "preview", "preheader")
        if not (subject or body or preheader):
            continue

        if body and convert_to_html:
            body = ensure_html(body)

        subject_key, body_key, preheader_key = email_keys(label)
        values[subject_key] = subject
        values[body_key] = body
        values[preheader_key] = preheader

    gift = as_entry(emails.get(FREE_GIFT_FIELD), FREE_GIFT_FIELD, warnings)
    if gift is not None:
        subject = first_text(gift, "subject")
        body = first_text(gift, "body")
        if subject or body:
            values[FREE_GIFT_SUBJECT_KEY] = subject
            values[FREE_GIFT_BODY_KEY] = ensure_html(body) if convert_to_html else body

    logger.debug("mapper.emails", keys=len(values), warnings=len(warnings))
    return MapperResult(values=values, warnings=warnings)
