"""Tests for chat_parser.py (tokenize, extract, parse_chat_messages, author discovery)."""

from __future__ import annotations

from datetime import datetime

import pytest

from chat_parser import (
    SELF_AUTHOR_LABEL,
    expand_year,
    extract,
    extract_authors,
    extract_authors_for_config,
    normalize_author,
    parse_chat_messages,
    strip_direction_marks,
    tokenize,
)
from errors import ParseError

from helpers import make_transcript


# ── tokenize ─────────────────────────────────────────────────────


class TestTokenize:
    def test_single_multiline_block(self):
        blocks = tokenize("[01.01.24, 10:00:00] Alice: Hello\nworld")
        assert blocks == ["[01.01.24, 10:00:00] Alice: Hello\nworld"]

    def test_each_header_starts_a_block(self):
        text = make_transcript([
            ("01.01.24, 10:00:00", "Alice", "one"),
            ("01.01.24, 10:01:00", "Bob", "two"),
            ("01.01.24, 10:02:00", "Alice", "three"),
        ])
        assert len(tokenize(text)) == 3

    def test_lines_before_first_header_are_dropped(self):
        text = "Messages are end-to-end encrypted.\n[01.01.24, 10:00:00] Alice: hi"
        assert tokenize(text) == ["[01.01.24, 10:00:00] Alice: hi"]

    def test_crlf_line_endings(self):
        text = "[01.01.24, 10:00:00] Alice: a\r\nb\r\n[01.01.24, 10:01:00] Bob: c\r\n"
        assert tokenize(text) == ["[01.01.24, 10:00:00] Alice: a\nb", "[01.01.24, 10:01:00] Bob: c"]

    def test_trailing_blank_lines_are_stripped(self):
        assert tokenize("[01.01.24, 10:00:00] Alice: hi\n\n\n") == ["[01.01.24, 10:00:00] Alice: hi"]

    def test_empty_text(self):
        assert tokenize("") == []
        assert tokenize("   \n  ") == []

    def test_body_line_shaped_like_header_splits(self):
        """A body line starting with a timestamp header begins a new block."""
        text = "[01.01.24, 10:00:00] Alice: quoting\n[02.01.24, 11:00:00] Bob: old text"
        assert len(tokenize(text)) == 2


# ── extract ──────────────────────────────────────────────────────


class TestExtract:
    def test_basic_parse(self):
        info = extract("[01.01.24, 10:00:00] Alice: Hello\nworld")
        assert info.author == "Alice"
        assert info.timestamp == datetime(2024, 1, 1, 10, 0, 0)
        assert info.content == "Hello\nworld"

    def test_author_and_content_are_stripped(self):
        info = extract("[05.06.23, 08:09:10]  Bob Smith :   spaced out  ")
        assert info.author == "Bob Smith"
        assert info.content == "spaced out"

    def test_year_before_50_maps_to_2000s(self):
        assert extract("[01.01.49, 00:00:00] A: x").timestamp.year == 2049

    def test_year_50_or_later_maps_to_1900s(self):
        assert extract("[01.01.99, 00:00:00] A: x").timestamp.year == 1999

    def test_missing_header_raises(self):
        with pytest.raises(ParseError):
            extract("Alice: no timestamp here")

    def test_missing_author_separator_raises(self):
        with pytest.raises(ParseError):
            extract("[01.01.24, 10:00:00] Alice joined")

    def test_impossible_date_raises(self):
        with pytest.raises(ParseError):
            extract("[31.02.24, 10:00:00] Alice: hi")

    def test_parse_error_is_value_error(self):
        with pytest.raises(ValueError):
            extract("garbage")

    def test_you_is_replaced_by_self_name(self):
        info = extract("[01.01.24, 10:00:00] You: hi", self_name="Dana")
        assert info.author == "Dana"

    def test_you_kept_without_self_name(self):
        assert extract("[01.01.24, 10:00:00] you: hi").author == "you"
        assert extract("[01.01.24, 10:00:00] You: hi", self_name="").author == "You"


class TestHelpers:
    @pytest.mark.parametrize("two_digit,full", [(0, 2000), (24, 2024), (49, 2049), (50, 1950), (99, 1999)])
    def test_expand_year(self, two_digit, full):
        assert expand_year(two_digit) == full

    def test_normalize_author_case_insensitive(self):
        assert normalize_author("YOU", "Dana") == "Dana"
        assert normalize_author("Young", "Dana") == "Young"

    def test_strip_direction_marks(self):
        assert strip_direction_marks("\u200eimage omitted\u200e") == "image omitted"


# ── parse_chat_messages ──────────────────────────────────────────


class TestParseChatMessages:
    def test_malformed_blocks_are_skipped(self):
        text = "\n".join([
            "[01.01.24, 10:00:00] Alice: fine",
            "[31.02.24, 10:00:00] Bob: impossible date",
            "[01.01.24, 10:02:00] Carol: also fine",
        ])
        infos = parse_chat_messages(text)
        assert [i.author for i in infos] == ["Alice", "Carol"]

    def test_keeps_source_order(self):
        text = make_transcript([
            ("02.01.24, 10:00:00", "B", "later"),
            ("01.01.24, 10:00:00", "A", "earlier"),
        ])
        assert [i.content for i in parse_chat_messages(text)] == ["later", "earlier"]

    def test_self_name_threaded_through(self):
        infos = parse_chat_messages("[01.01.24, 10:00:00] You: hi", self_name="Dana")
        assert infos[0].author == "Dana"


# ── author discovery ─────────────────────────────────────────────


class TestExtractAuthors:
    TEXT = make_transcript([
        ("01.01.24, 10:00:00", "Group", "Alice created this group"),
        ("01.01.24, 10:01:00", "Bob", "hi"),
        ("01.01.24, 10:02:00", "Alice", "hello"),
        ("01.01.24, 10:03:00", "You", "hey"),
        ("01.01.24, 10:04:00", "Bob", "again"),
    ])

    def test_sorted_unique(self):
        assert extract_authors(self.TEXT) == ["Alice", "Bob", "Group", "You"]

    def test_excluded(self):
        assert extract_authors(self.TEXT, excluded=["Group"]) == ["Alice", "Bob", "You"]

    def test_for_config_labels_self(self):
        authors = extract_authors_for_config(self.TEXT, excluded=["Group"])
        assert SELF_AUTHOR_LABEL in authors
        assert "You" not in authors
