"""Tests for the allow-list string sanitizer."""

import pytest

from alertbridge.core import StringSanitizer


@pytest.fixture
def sanitizer():
    return StringSanitizer(max_length=20)


class TestClean:
    def test_plain_text_unchanged(self, sanitizer):
        assert sanitizer.clean("Disk full on srv-42") == "Disk full on srv-42"

    def test_trims_whitespace(self, sanitizer):
        assert sanitizer.clean("   padded   ") == "padded"

    def test_strips_markup_characters(self):
        s = StringSanitizer()
        assert s.clean("<script>alert(1)</script>") == "scriptalert(1)/script"

    def test_strips_quotes_and_backticks(self, sanitizer):
        assert sanitizer.clean("a\"b'c`d") == "abcd"

    def test_keeps_unicode_letters(self, sanitizer):
        assert sanitizer.clean("arrêté 東京") == "arrêté 東京"

    def test_caps_by_code_points(self):
        s = StringSanitizer(max_length=5)
        assert s.clean("ééééééé") == "ééééé"

    def test_only_disallowed_characters_becomes_none(self, sanitizer):
        assert sanitizer.clean("<>\"'") is None

    def test_blank_becomes_none(self, sanitizer):
        assert sanitizer.clean("   ") is None

    def test_none_and_containers_become_none(self, sanitizer):
        assert sanitizer.clean(None) is None
        assert sanitizer.clean({"a": 1}) is None
        assert sanitizer.clean(["a"]) is None

    def test_scalars_are_stringified(self, sanitizer):
        assert sanitizer.clean(42) == "42"
        assert sanitizer.clean(True) == "True"

    def test_clean_or_default(self, sanitizer):
        assert sanitizer.clean_or_default("<>", "fallback") == "fallback"
        assert sanitizer.clean_or_default("value", "fallback") == "value"

    def test_has_disallowed(self, sanitizer):
        assert sanitizer.has_disallowed("<b>")
        assert not sanitizer.has_disallowed("plain text")

    def test_rejects_non_positive_length(self):
        with pytest.raises(ValueError):
            StringSanitizer(max_length=0)
