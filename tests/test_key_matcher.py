"""Tests for tolerant remote key lookup."""

from __future__ import annotations

from src.app.funnels.crm.key_matcher import RemoteIndex, compact_key, fold_dashes, normalize_key
from src.app.funnels.schemas import CustomValue


def _cv(id: str, name: str, value: str = "") -> CustomValue:
    return CustomValue(id=id, name=name, value=value)


class TestNormalizeKey:
    def test_lowercases_and_collapses_whitespace(self):
        assert normalize_key("  Optin Email   Subject ") == "optin_email_subject"

    def test_already_normalized(self):
        assert normalize_key("02_vsl_text") == "02_vsl_text"

    def test_fold_dashes(self):
        assert fold_dashes("02 VSL hero Sub-Headline Text") == "02_vsl_hero_sub_headline_text"
        assert fold_dashes("Sub - Headline") == "sub_headline"

    def test_compact_key(self):
        assert compact_key("02 Optin Sub-Headline Text") == compact_key("02_optin_subheadline_text")


class TestRemoteIndex:
    def test_normalized_match(self):
        index = RemoteIndex([_cv("1", "02 VSL Text")])
        assert index.find("02_vsl_text").id == "1"

    def test_case_insensitive_match(self):
        index = RemoteIndex([_cv("1", "Company_Name")])
        assert index.find("company_name").id == "1"

    def test_exact_match_beats_fuzzy(self):
        index = RemoteIndex([_cv("1", "Company_Name"), _cv("2", "company_name")])
        assert index.find("company_name").id == "2"
        assert index.find("COMPANY_NAME").id == "1"

    def test_hyphenated_remote_name_matches_underscore_key(self):
        index = RemoteIndex([_cv("1", "02 VSL hero Sub-Headline Text")])
        assert index.find("02_vsl_hero_sub_headline_text").id == "1"

    def test_spaced_dash_matches(self):
        index = RemoteIndex([_cv("1", "02 VSL Process Sub - Headline")])
        assert index.find("02_vsl_process_sub_headline").id == "1"

    def test_hyphenated_remote_name_matches_joined_word(self):
        index = RemoteIndex([_cv("9", "02 Optin Sub-Headline Text")])
        assert index.find("02_optin_subheadline_text").id == "9"

    def test_earlier_level_wins_over_compact(self):
        index = RemoteIndex([_cv("1", "02 Optin Sub-Headline Text"), _cv("2", "02 optin subheadline text")])
        assert index.find("02_optin_subheadline_text").id == "2"

    def test_miss(self):
        assert RemoteIndex([_cv("1", "a")]).find("b") is None

    def test_remember_created_record(self):
        index = RemoteIndex([])
        index.remember(_cv("9", "Optin_SMS_1", "hi"))
        assert index.find("optin_sms_1").id == "9"
        assert len(index) == 1

    def test_nameless_records_ignored(self):
        assert len(RemoteIndex([_cv("1", "")])) == 0
