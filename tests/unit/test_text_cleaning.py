"""Tests for the text sanitizer."""

import pytest

from pitchrag.domain.text_cleaning import sanitize_text


class TestSanitizeText:
    """Test cases for sanitize_text."""

    def test_control_characters_become_spaces(self):
        assert sanitize_text("Hello\x01World\x02Test") == "Hello World Test"

    def test_null_characters_are_removed_not_spaced(self):
        assert sanitize_text("Rev\x00enue") == "Revenue"

    def test_del_character_becomes_space(self):
        assert sanitize_text("a\x7fb") == "a b"

    def test_whitespace_runs_collapse_and_trim(self):
        assert sanitize_text("\t\n  Series   A\r\n\r\n round  ") == "Series A round"

    def test_supplementary_plane_characters_are_dropped(self):
        assert sanitize_text("Growth \U0001F680 is strong") == "Growth is strong"

    def test_lone_surrogates_are_dropped(self):
        assert sanitize_text("ab\udc80cd") == "abcd"

    def test_basic_multilingual_plane_is_kept(self):
        assert sanitize_text("Café 投资 Ω") == "Café 投资 Ω"

    def test_leading_byte_order_mark_is_stripped(self):
        assert sanitize_text("\ufeffOur ARR is 2M. Team of five.") == "Our ARR is 2M. Team of five."

    def test_inner_byte_order_mark_collapses_to_space(self):
        assert sanitize_text("ARR\ufeff\ufeff 2M") == "ARR 2M"

    def test_empty_input(self):
        assert sanitize_text("") == ""
        assert sanitize_text(" \n\t ") == ""

    @pytest.mark.parametrize(
        "raw",
        [
            "Hello\x01World\x02Test",
            "  lots   of\n\nspace ",
            "emoji \U0001F600\U0001F600 here\x00",
            "\x0b\x0c\x1f mixed \x7f\x08 controls",
            "\ufeff bom \ufeff",
        ],
    )
    def test_idempotent(self, raw):
        once = sanitize_text(raw)
        assert sanitize_text(once) == once

    def test_output_has_no_forbidden_characters(self):
        raw = "".join(chr(c) for c in range(0, 0x80)) + "\U0001F600\U00020000"
        cleaned = sanitize_text(raw)
        assert all(ord(ch) > 0x1F and ord(ch) != 0x7F for ch in cleaned)
        assert all(ord(ch) <= 0xFFFF for ch in cleaned)
        assert "  " not in cleaned
        assert cleaned == cleaned.strip()
