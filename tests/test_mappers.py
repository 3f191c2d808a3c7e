"""Tests for the direct mappers (email, SMS, reminders, funnel copy, brand, images)."""

from __future__ import annotations

from src.app.funnels.mappers.appointment_reminders import map_appointment_reminders
from src.app.funnels.mappers.brand import (
    DEFAULT_PALETTE,
    contrasting_text,
    extract_color_scheme,
    map_brand_colors,
    map_generated_images,
)
from src.app.funnels.mappers.email import EMAIL_SLOTS, map_emails
from src.app.funnels.mappers.funnel_copy import map_company_info, map_funnel_copy, map_media
from src.app.funnels.mappers.sms import SMS_SLOTS, map_sms
from src.app.funnels.schemas import GeneratedImage


# ── Email ─────────────────────────────────────────────────────────────────


class TestEmailMapper:
    def test_slot_scheme_has_nineteen_slots(self):
        assert len(EMAIL_SLOTS) == 19
        assert EMAIL_SLOTS["email8b"] == "8 Afternoon"
        assert EMAIL_SLOTS["email15c"] == "15 Evening"
        assert "email8" not in EMAIL_SLOTS

    def test_scenario_subject_body_preheader(self):
        result = map_emails({"email1": {"subject": "Hi", "body": "**Bold** text", "preview": "peek"}})

        assert set(result.values) == {
            "Optin_Email_Subject 1",
            "Optin_Email_Body 1",
            "Optin_Email_Preheader 1",
        }
        assert result.values["Optin_Email_Subject 1"] == "Hi"
        assert result.values["Optin_Email_Preheader 1"] == "peek"
        body = result.values["Optin_Email_Body 1"]
        assert body.startswith("<div")
        assert "<p" in body and "<strong>Bold</strong> text</p>" in body

    def test_sparse_output_three_keys_per_populated_slot(self):
        content = {
            "email1": {"subject": "One", "body": "Body one"},
            "email9": {"subject": "Nine", "body": "Body nine"},
        }
        result = map_emails(content)
        assert len(result.values) == 3 * 2

    def test_time_variant_keys(self):
        result = map_emails({"email15a": {"subject": "Morning push", "body": "x"}})
        assert result.values["Optin_Email_Subject 15 Morning"] == "Morning push"

    def test_existing_html_body_not_converted(self):
        result = map_emails({"email2": {"subject": "S", "body": "<p>Hand written</p>"}})
        assert result.values["Optin_Email_Body 2"] == "<p>Hand written</p>"

    def test_html_conversion_can_be_disabled(self):
        result = map_emails({"email2": {"subject": "S", "body": "**raw**"}}, convert_to_html=False)
        assert result.values["Optin_Email_Body 2"] == "**raw**"

    def test_free_gift_email(self):
        result = map_emails({"freeGiftEmail": {"subject": "Your gift", "body": "Download it"}})
        assert result.values["Free_Gift_Email Subject"] == "Your gift"
        assert result.values["Free_Gift_Email Body"].startswith("<div")

    def test_malformed_input_never_raises(self):
        result = map_emails({"email1": "just a string", "email2": None})
        assert result.values == {}
        assert result.warnings == ["email1: expected an object, got str"]

        result = map_emails(["not", "a", "section"])
        assert result.values == {}
        assert len(result.warnings) == 1


# ── SMS ───────────────────────────────────────────────────────────────────


class TestSmsMapper:
    def test_one_key_per_slot(self):
        result = map_sms(
            {
                "sms1": {"message": "Hi"},
                "sms8b": "Afternoon text",
                "sms15c": {"body": "Evening"},
            }
        )
        assert result.values == {
            "Optin_SMS_1": "Hi",
            "Optin_SMS_8_Afternoon": "Afternoon text",
            "Optin_SMS_15_Evening": "Evening",
        }

    def test_sms_stays_plain_text(self):
        result = map_sms({"sms2": {"message": "**not bold**"}})
        assert result.values["Optin_SMS_2"] == "**not bold**"

    def test_unexpected_entry_type_is_warned(self):
        result = map_sms({"sms3": 42})
        assert result.values == {}
        assert "sms3" in result.warnings[0]

    def test_slot_count(self):
        assert len(SMS_SLOTS) == 19


# ── Appointment Reminders ─────────────────────────────────────────────────


class TestAppointmentRemindersMapper:
    def test_email_and_sms_steps(self):
        result = map_appointment_reminders(
            {
                "emailWhenBooked": {"subject": "Booked", "body": "See you", "preheader": "p"},
                "sms10MinBefore": {"message": "10 minutes"},
            }
        )
        assert len(result.values) == 4
        assert result.values["Email Subject When Call Booked"] == "Booked"
        assert result.values["Email Body When Call Booked"].startswith("<div")
        assert result.values["Email PreHeader When Call Booked"] == "p"
        assert result.values["SMS 10 Min before Call Time"] == "10 minutes"

    def test_absent_steps_emit_nothing(self):
        assert map_appointment_reminders({}).values == {}


# ── Funnel Copy / Media / Company ─────────────────────────────────────────


class TestFunnelCopyMapper:
    def test_page_prefixed_keys(self):
        result = map_funnel_copy(
            {
                "optinPage": {"headline_text": "Free Guide"},
                "salesPage": {"faq_question_2": "How long?"},
                "calendarPage": {"headline": "Pick a time"},
                "thankYouPage": {"headline": "Thanks!"},
            }
        )
        assert result.values == {
            "02_optin_headline_text": "Free Guide",
            "02_vsl_faq_question_2_text": "How long?",
            "02_booking_headline_text": "Pick a time",
            "02_thankyou_page_headline_text": "Thanks!",
        }

    def test_one_source_field_populates_several_keys(self):
        result = map_funnel_copy(
            {
                "salesPage": {"cta_text": "Book Now"},
                "logo_image": "https://l.png",
                "company_name": "Acme",
            }
        )
        assert result.values["02_vsl_cta_text"] == "Book Now"
        assert result.values["02_vsl_audience_callout_cta_text"] == "Book Now"
        for key in ("02_optin_logo_image", "02_vsl_logo_image", "02_booking_logo_image", "02_thankyou_logo_image"):
            assert result.values[key] == "https://l.png"
        assert result.values["company_name"] == "Acme"
        assert result.values["02_footer_company_name"] == "Acme"

    def test_missing_field_produces_no_entry(self):
        result = map_funnel_copy({"optinPage": {"headline_text": "Only this"}})
        assert "02_optin_subheadline_text" not in result.values
        assert "02_footer_company_name" not in result.values

    def test_list_of_strings_is_joined(self):
        result = map_funnel_copy({"salesPage": {"bio_paragraph_text": ["Line one", "Line two"]}})
        assert result.values["02_vsl_bio_paragraph_text"] == "Line one\nLine two"

    def test_object_value_is_warned(self):
        result = map_funnel_copy({"optinPage": {"headline_text": {"text": "nested"}}})
        assert result.values == {}
        assert "optinPage.headline_text" in result.warnings[0]


class TestMediaMapper:
    def test_aliases(self):
        result = map_media({"logoUrl": "https://l.png", "vslVideo": "https://v.mp4", "testimonial_2_photo": "https://t2.png"})
        assert result.values["02_vsl_logo_image"] == "https://l.png"
        assert result.values["02_vsl_video"] == "https://v.mp4"
        assert result.values["02_vsl_testimonials_profile_pic_2"] == "https://t2.png"

    def test_first_alias_wins(self):
        result = map_media({"logo": "https://first.png", "logoUrl": "https://second.png"})
        assert result.values["02_optin_logo_image"] == "https://first.png"


class TestCompanyInfoMapper:
    def test_alias_fields(self):
        result = map_company_info({"businessName": "Acme", "phone": "555-0100", "supportEmail": "a@b.test"})
        assert result.values == {
            "company_name": "Acme",
            "02_footer_company_name": "Acme",
            "company_telephone": "555-0100",
            "company_support_email": "a@b.test",
        }


# ── Brand Colors / Images ─────────────────────────────────────────────────


class TestColorScheme:
    def test_keyword_match(self):
        palette = extract_color_scheme("our brand is deep ocean blue")
        assert (palette.primary, palette.secondary, palette.accent) == ("#2563eb", "#1e40af", "#3b82f6")

    def test_explicit_hex_codes(self):
        palette = extract_color_scheme("Use #112233 and #445566")
        assert palette.primary == "#112233"
        assert palette.secondary == "#445566"
        assert palette.accent == DEFAULT_PALETTE.accent

    def test_dict_input(self):
        palette = extract_color_scheme({"primary": "#AA0000", "accent": "not a color"})
        assert palette.primary == "#AA0000"
        assert palette.accent == DEFAULT_PALETTE.accent

    def test_unknown_input_falls_back_to_default(self):
        assert extract_color_scheme("something tasteful") == DEFAULT_PALETTE
        assert extract_color_scheme(None) == DEFAULT_PALETTE

    def test_contrasting_text(self):
        assert contrasting_text("#FFFFFF") == "#000000"
        assert contrasting_text("#111111") == "#FFFFFF"


class TestBrandColorsMapper:
    def test_palette_to_color_keys(self):
        result = map_brand_colors({"brandColors": "Navy and gold"})
        assert result.values["primary_color"] == "#2563eb"
        assert result.values["02_vsl_cta_background_colour"] == "#2563eb"
        assert result.values["02_optin_cta_text_colour"] == "#FFFFFF"
        assert result.warnings == []

    def test_no_brand_input_emits_nothing(self):
        assert map_brand_colors({"companyName": "Acme"}).values == {}

    def test_unrecognized_colors_warn(self):
        result = map_brand_colors({"brandColors": "something tasteful"})
        assert result.values["primary_color"] == DEFAULT_PALETTE.primary
        assert len(result.warnings) == 1


class TestGeneratedImagesMapper:
    def test_literal_and_semantic_keys(self):
        result = map_generated_images(
            [
                GeneratedImage(image_type="hero", public_url="https://h.png"),
                {"image_type": "Thank You", "public_url": "https://ty.png"},
            ]
        )
        assert result.values["hero_image_url"] == "https://h.png"
        assert result.values["optin_mockup_image"] == "https://h.png"
        assert result.values["thank_you_image_url"] == "https://ty.png"
        assert result.values["thankyou_page_image"] == "https://ty.png"

    def test_records_without_url_are_skipped(self):
        result = map_generated_images([{"image_type": "vsl", "public_url": None}])
        assert result.values == {}
        assert len(result.warnings) == 1
