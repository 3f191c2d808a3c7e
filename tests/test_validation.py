"""Tests for non-blocking content validation reports."""

from __future__ import annotations

from src.app.funnels.validation import (
    sms_segments,
    validate_appointment_reminders,
    validate_custom_values,
    validate_email_content,
    validate_sms_content,
)


class TestSmsSegments:
    def test_single_segment_up_to_160(self):
        assert sms_segments("x" * 160) == 1

    def test_multipart_uses_153_chars(self):
        assert sms_segments("x" * 161) == 2
        assert sms_segments("x" * 307) == 3


class TestValidateSms:
    def test_200_char_message_reports_two_segments(self):
        report = validate_sms_content({"sms1": {"message": "x" * 200}})

        assert report.stats["total"] == 19
        assert report.stats["complete"] == 1
        assert report.stats["empty"] == 18
        assert len(report.warnings) == 1
        assert report.warnings[0].field_id == "sms1"
        assert report.warnings[0].segments == 2

    def test_malformed_entry(self):
        report = validate_sms_content({"sms2": ["a", "b"]})
        assert report.stats["malformed"] == 1


class TestValidateEmail:
    def test_gaps_are_warnings_not_errors(self):
        report = validate_email_content(
            {
                "email1": {"subject": "Hi"},
                "email2": "plain string",
                "email3": {"subject": "Ok", "body": "Fine"},
                "email4": {"body": "No subject"},
            }
        )

        assert report.stats["total"] == 19
        assert report.stats["complete"] == 1
        assert report.stats["malformed"] == 1
        assert report.stats["with_subject"] == 2
        assert report.stats["with_body"] == 2
        issues = {w.field_id: w.issue for w in report.warnings}
        assert issues["email1"] == "Has subject but no body"
        assert issues["email4"] == "Has body but no subject"
        assert issues["email2"].startswith("Expected object")

    def test_long_subject(self):
        report = validate_email_content({"email1": {"subject": "s" * 101, "body": "b"}})
        assert any("Subject too long" in w.issue for w in report.warnings)

    def test_non_object_section(self):
        report = validate_email_content("oops")
        assert report.warnings[0].field_id == "emails"
        assert report.stats["empty"] == 19


class TestValidateReminders:
    def test_counts_both_channels(self):
        report = validate_appointment_reminders(
            {
                "emailWhenBooked": {"subject": "Booked", "body": "See you"},
                "smsAtCallTime": "Join now",
            }
        )
        assert report.stats["total"] == 12
        assert report.stats["complete"] == 2


class TestValidateCustomValues:
    def test_flags_colors_urls_and_critical_gaps(self):
        report = validate_custom_values(
            {
                "primary_color": "blue",
                "02_vsl_video": "ftp://cdn/vsl.mp4",
                "02_optin_headline_text": "Headline",
                "secondary_color": "#06b6d4",
            }
        )
        issues = {w.field_id: w.issue for w in report.warnings}

        assert issues["primary_color"].startswith("Invalid color format")
        assert issues["02_vsl_video"].startswith("Invalid URL format")
        assert issues["company_name"] == "Critical value is empty"
        assert "02_optin_headline_text" not in issues
        assert "secondary_color" not in issues
        assert report.stats["malformed"] == 2
