"""Tests for the content normalizer (section blob + field override merge)."""

from __future__ import annotations

from src.app.funnels.normalizer import merge, merge_funnel_content
from src.app.funnels.schemas import FieldRecord, FieldType, ObjectValue, TextValue


def _make_record(**overrides) -> FieldRecord:
    defaults = {
        "section_id": "funnelCopy",
        "field_id": "company_name",
        "field_type": FieldType.text,
        "value": TextValue(value="Acme"),
    }
    defaults.update(overrides)
    return FieldRecord(**defaults)


# ── merge ─────────────────────────────────────────────────────────────────


class TestMerge:
    def test_overrides_win_and_blob_keys_pass_through(self):
        assert merge({"a": 1, "b": 2}, {"b": 3, "c": 4}) == {"a": 1, "b": 3, "c": 4}

    def test_inputs_are_not_mutated(self):
        blob = {"nested": {"x": 1}}
        merged = merge(blob, {"nested.y": 2})
        assert blob == {"nested": {"x": 1}}
        assert merged == {"nested": {"x": 1, "y": 2}}

    def test_json_string_override_is_parsed(self):
        merged = merge({}, {"bullets": '["one", "two"]', "meta": '{"k": "v"}'})
        assert merged == {"bullets": ["one", "two"], "meta": {"k": "v"}}

    def test_malformed_json_override_falls_back_to_string(self):
        merged = merge({}, {"bullets": '["one", "two"'})
        assert merged == {"bullets": '["one", "two"'}

    def test_json_string_blob_is_parsed(self):
        assert merge('{"a": 1}', None) == {"a": 1}

    def test_non_object_blob_becomes_empty(self):
        assert merge(["not", "an", "object"], {"a": 1}) == {"a": 1}

    def test_dotted_field_id_sets_nested_key(self):
        blob = {"optinPage": {"headline_text": "Old", "subheadline_text": "Keep"}}
        merged = merge(blob, {"optinPage.headline_text": "New"})
        assert merged["optinPage"] == {"headline_text": "New", "subheadline_text": "Keep"}

    def test_none_inputs(self):
        assert merge(None, None) == {}


# ── merge_funnel_content ──────────────────────────────────────────────────


class TestMergeFunnelContent:
    def test_merges_each_section(self):
        blobs = {
            "funnelCopy": {"company_name": "Old Co", "logo_image": "https://l.png"},
            "emails": {"email1": {"subject": "Hi"}},
        }
        records = [_make_record(value=TextValue(value="New Co"))]

        merged = merge_funnel_content(blobs, records)

        assert merged["funnelCopy"] == {"company_name": "New Co", "logo_image": "https://l.png"}
        assert merged["emails"] == {"email1": {"subject": "Hi"}}

    def test_field_only_sections_are_included(self):
        records = [
            _make_record(
                section_id="emails",
                field_id="email2",
                field_type=FieldType.object,
                value=ObjectValue(value={"subject": "Two"}),
            )
        ]

        merged = merge_funnel_content({}, records)

        assert merged == {"emails": {"email2": {"subject": "Two"}}}
