"""SMS sequence mapper -- same slot scheme as email, one plain-text key per slot."""

from __future__ import annotations

from typing import Any

import structlog

from src.app.funnels.mappers.base import as_section, first_text, text_of
from src.app.funnels.mappers.email import TIME_VARIANTS
from src.app.funnels.schemas import MapperResult

logger = structlog.get_logger(__name__)

SMS_SLOTS: dict[str, str] = {}
for _day in range(1, 16):
    if _day in (8, 15):
        for _suffix, _label in TIME_VARIANTS:
            SMS_SLOTS[f"sms{_day}{_suffix}"] = f"Optin_SMS_{_day}_{_label}"
    else:
        SMS_SLOTS[f"sms{_day}"] = f"Optin_SMS_{_day}"


def sms_message(entry: Any) -> str:
    """Extract the message text from an SMS entry (object or bare string)."""
    if isinstance(entry, dict):
        return first_text(entry, "message", "body")
    return text_of(entry)


def map_sms(content: Any) -> MapperResult:
    """Map the sms section to Optin_SMS_* custom values."""
    warnings: list[str] = []
    messages = as_section(content, "sms", warnings)
    values: dict[str, str] = {}

    for field_id, key in SMS_SLOTS.items():
        entry = messages.get(field_id)
        if entry is None:
            continue
        if not isinstance(entry, (dict, str)):
            warnings.append(f"{field_id}: expected an object or string, got {type(entry).__name__}")
            continue
        message = sms_message(entry)
        if message:
            values[key] = message

    logger.debug("mapper.sms", keys=len(values), warnings=len(warnings))
    return MapperResult(values=values, warnings=warnings)
