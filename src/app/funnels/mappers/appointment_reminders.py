"""Appointment reminder mapper.

Six lifecycle steps x two channels. Email steps emit subject, body and
preheader; SMS steps emit a single message. Up to 24 keys in total.
"""

from __future__ import annotations

from typing import Any

import structlog

from src.app.funnels.email_html import ensure_html
from src.app.funnels.mappers.base import as_entry, as_section, first_text
from src.app.funnels.mappers.sms import sms_message
from src.app.funnels.schemas import MapperResult

logger = structlog.get_logger(__name__)

# (vault field, remote label)
REMINDER_EMAILS: tuple[tuple[str, str], ...] = (
    ("emailWhenBooked", "When Call Booked"),
    ("email48HourBefore", "48 Hour before Call Time"),
    ("email24HourBefore", "24 Hour before Call Time"),
    ("email1HourBefore", "1 Hour before Call Time"),
    ("email10MinBefore", "10 min before Call Time"),
    ("emailAtCallTime", "at Call Time"),
)

REMINDER_SMS: tuple[tuple[str, str], ...] = (
    ("smsWhenBooked", "When Call Booked"),
    ("sms48HourBefore", "48 Hour before Call Time"),
    ("sms24HourBefore", "24 Hour before Call Time"),
    ("sms1HourBefore", "1 Hour before Call Time"),
    ("sms10MinBefore", "10 Min before Call Time"),
    ("smsAtCallTime", "at Call Time"),
)


def map_appointment_reminders(content: Any, convert_to_html: bool = True) -> MapperResult:
    """Map the appointmentReminders section to custom values."""
    warnings: list[str] = []
    reminders = as_section(content, "appointmentReminders", warnings)
    values: dict[str, str] = {}

    for field_id, label in REMINDER_EMAILS:
        entry = as_entry(reminders.get(field_id), field_id, warnings)
        if entry is None:
            continue
        subject = first_text(entry, "subject")
        body = first_text(entry, "body")
        preheader = first_text(entry, "preheader", "preview")
        if not (subject or body or preheader):
            continue
        values[f"Email Subject {label}"] = subject
        values[f"Email Body {label}"] = ensure_html(body) if convert_to_html else body
        values[f"Email PreHeader {label}"] = preheader

    for field_id, label in REMINDER_SMS:
        entry = reminders.get(field_id)
        if entry is None:
            continue
        message = sms_message(entry)
        if message:
            values[f"SMS {label}"] = message

    logger.debug("mapper.appointment_reminders", keys=len(values), warnings=len(warnings))
    return MapperResult(values=values, warnings=warnings)
