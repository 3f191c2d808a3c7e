"""Tests for markdown-to-HTML email conversion."""

from __future__ import annotations

import pytest

from src.app.funnels.email_html import (
    LINK_STYLE,
    convert_email_to_html,
    ensure_html,
    is_already_html,
)


class TestConvertEmailToHtml:
    def test_bold_inside_paragraph_inside_container(self):
        html = convert_email_to_html("**Bold** text")
        assert html.startswith('<div style="font-family: Arial, sans-serif;')
        assert '<p style="margin: 0 0 15px 0;"><strong>Bold</strong> text</p>' in html
        assert html.endswith("</div>")

    def test_italic_and_link(self):
        html = convert_email_to_html("*soft* [Book now](https://cal.test/x)", wrap_in_container=False)
        assert "<em>soft</em>" in html
        assert f'<a href="https://cal.test/x" style="{LINK_STYLE}">Book now</a>' in html

    def test_bullet_and_numbered_lists(self):
        html = convert_email_to_html("- one\n- two\n\n1. first\n2. second", wrap_in_container=False)
        assert html.count("<li") == 4
        assert "<ul" in html and "</ul>" in html
        assert "<ol" in html and "</ol>" in html

    def test_paragraphs_and_line_breaks(self):
        html = convert_email_to_html("line one\nline two\n\nsecond para", wrap_in_container=False)
        assert html.count("<p ") == 2
        assert "line one<br>line two" in html

    def test_angle_brackets_are_escaped(self):
        html = convert_email_to_html("1 < 2 & 3 > 2", wrap_in_container=False)
        assert "1 &lt; 2 &amp; 3 &gt; 2" in html

    def test_quotes_are_left_alone(self):
        html = convert_email_to_html("Say \"yes\" to Sam's offer", wrap_in_container=False)
        assert "Say \"yes\" to Sam's offer" in html

    def test_empty_input(self):
        assert convert_email_to_html("") == ""


class TestHtmlDetection:
    @pytest.mark.parametrize(
        "text",
        ["Plain words", "**Bold** text", "- a\n- b", "Line\n\nAnother"],
    )
    def test_converted_output_is_detected_as_html(self, text):
        assert is_already_html(convert_email_to_html(text)) is True

    def test_plain_text_is_not_html(self):
        assert is_already_html("Hi there, 2 > 1 is true") is False

    def test_ensure_html_leaves_html_untouched(self):
        html = "<p>Already formatted</p>"
        assert ensure_html(html) == html

    def test_ensure_html_is_idempotent(self):
        once = ensure_html("Hello **world**")
        assert ensure_html(once) == once
