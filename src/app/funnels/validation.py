"""Content validation -- non-blocking statistics and warnings.

Every validator returns a ValidationReport; nothing here raises or blocks a
push. Content with gaps is still pushable.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from typing import Any

from src.app.funnels.inference import KEY_REGISTRY, KeyKind
from src.app.funnels.mappers.appointment_reminders import REMINDER_EMAILS, REMINDER_SMS
from src.app.funnels.mappers.base import first_text
from src.app.funnels.mappers.email import EMAIL_SLOTS
from src.app.funnels.mappers.sms import SMS_SLOTS, sms_message
from src.app.funnels.schemas import ValidationReport, ValidationWarning

SUBJECT_MAX_LENGTH = 100
SMS_SINGLE_SEGMENT = 160
SMS_MULTIPART_SEGMENT = 153

_HEX_COLOR_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")


def sms_segments(message: str) -> int:
    """Outgoing segment count: one up to 160 chars, else 153-char multipart."""
    if len(message) <= SMS_SINGLE_SEGMENT:
        return 1
    return math.ceil(len(message) / SMS_MULTIPART_SEGMENT)


def _check_email(field_id: str, entry: Any, stats: dict[str, int], warnings: list[ValidationWarning]) -> None:
    stats["total"] += 1
    if entry is None or entry == "":
        stats["empty"] += 1
        return
    if not isinstance(entry, Mapping):
        stats["malformed"] += 1
        warnings.append(ValidationWarning(field_id=field_id, issue=f"Expected object, got {type(entry).__name__}"))
        return

    subject = first_text(entry, "subject")
    body = first_text(entry, "body")
    if subject:
        stats["with_subject"] += 1
    if body:
        stats["with_body"] += 1

    if subject and body:
        stats["complete"] += 1
    elif subject:
        warnings.append(ValidationWarning(field_id=field_id, issue="Has subject but no body"))
    elif body:
        warnings.append(ValidationWarning(field_id=field_id, issue="Has body but no subject"))
    else:
        stats["empty"] += 1

    if len(subject) > SUBJECT_MAX_LENGTH:
        warnings.append(
            ValidationWarning(field_id=field_id, issue=f"Subject too long ({len(subject)} chars)")
        )


def _check_sms(field_id: str, entry: Any, stats: dict[str, int], warnings: list[ValidationWarning]) -> None:
    stats["total"] += 1
    if entry is None or entry == "":
        stats["empty"] += 1
        return
    if not isinstance(entry, (Mapping, str)):
        stats["malformed"] += 1
        warnings.append(ValidationWarning(field_id=field_id, issue=f"Expected object, got {type(entry).__name__}"))
        return

    message = sms_message(entry)
    if not message:
        stats["empty"] += 1
        return

    stats["complete"] += 1
    if len(message) > SMS_SINGLE_SEGMENT:
        segments = sms_segments(message)
        warnings.append(
            ValidationWarning(
                field_id=field_id,
                issue=f"SMS is {len(message)} chars and will send as {segments} segments",
                segments=segments,
            )
        )


def _new_stats(*extra: str) -> dict[str, int]:
    stats = {"total": 0, "complete": 0, "empty": 0, "malformed": 0}
    stats.update({name: 0 for name in extra})
    return stats


def _section(content: Any, name: str, warnings: list[ValidationWarning]) -> Mapping[str, Any]:
    if content is None:
        return {}
    if isinstance(content, Mapping):
        return content
    warnings.append(ValidationWarning(field_id=name, issue=f"Section is {type(content).__name__}, expected object"))
    return {}


def validate_email_content(content: Any) -> ValidationReport:
    """Validate the 19 email slots."""
    warnings: list[ValidationWarning] = []
    stats = _new_stats("with_subject", "with_body")
    emails = _section(content, "emails", warnings)
    for field_id in EMAIL_SLOTS:
        _check_email(field_id, emails.get(field_id), stats, warnings)
    return ValidationReport(stats=stats, warnings=warnings)


def validate_sms_content(content: Any) -> ValidationReport:
    """Validate the 19 SMS slots, reporting multipart segment counts."""
    warnings: list[ValidationWarning] = []
    stats = _new_stats()
    messages = _section(content, "sms", warnings)
    for field_id in SMS_SLOTS:
        _check_sms(field_id, messages.get(field_id), stats, warnings)
    return ValidationReport(stats=stats, warnings=warnings)


def validate_appointment_reminders(content: Any) -> ValidationReport:
    """Validate the 6 reminder emails and 6 reminder SMS."""
    warnings: list[ValidationWarning] = []
    stats = _new_stats("with_subject", "with_body")
    reminders = _section(content, "appointmentReminders", warnings)
    for field_id, _ in REMINDER_EMAILS:
        _check_email(field_id, reminders.get(field_id), stats, warnings)
    for field_id, _ in REMINDER_SMS:
        _check_sms(field_id, reminders.get(field_id), stats, warnings)
    return ValidationReport(stats=stats, warnings=warnings)


def validate_custom_values(values: Mapping[str, str]) -> ValidationReport:
    """Check the desired custom value map against the key registry.

    Flags invalid hex colors, non-http(s) media URLs, and empty critical keys.
    """
    warnings: list[ValidationWarning] = []
    stats = _new_stats()

    for spec in KEY_REGISTRY.values():
        stats["total"] += 1
        value = values.get(spec.name, "")
        if not value:
            stats["empty"] += 1
            if spec.critical:
                warnings.append(ValidationWarning(field_id=spec.name, issue="Critical value is empty"))
            continue

        if spec.kind == KeyKind.color and not _HEX_COLOR_RE.match(value):
            stats["malformed"] += 1
            warnings.append(ValidationWarning(field_id=spec.name, issue=f"Invalid color format: {value[:20]}"))
        elif spec.kind in (KeyKind.image, KeyKind.video, KeyKind.url) and not value.startswith(("http://", "https://")):
            stats["malformed"] += 1
            warnings.append(ValidationWarning(field_id=spec.name, issue=f"Invalid URL format: {value[:50]}"))
        else:
            stats["complete"] += 1

    return ValidationReport(stats=stats, warnings=warnings)
