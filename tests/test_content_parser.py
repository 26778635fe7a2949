"""Tests for content_parser.py (classify and its steps, record serialisation)."""

from __future__ import annotations

from datetime import datetime

import pytest

from content_parser import (
    CallInfo,
    ContentInfo,
    Message,
    classify,
    detect_mentions,
    get_call_info,
    get_message_status,
    parse_poll,
)

from helpers import make_message, make_poll

POLL_TEXT = "POLL:\nFavorite color?\nOPTION: Red (3 votes)\nOPTION: Blue (5 votes)"


# ── system messages ──────────────────────────────────────────────


class TestSystemMessages:
    @pytest.mark.parametrize("content", [
        "Alice added Bob",
        "Alice changed the group description",
        "Bob removed Carol",
        "Carol left",
        "Dave joined using your invite",
    ])
    def test_system_notices_are_discarded(self, content):
        assert classify(content) is None

    def test_ordinary_text_is_kept(self):
        assert classify("See you tomorrow") is not None


# ── media types ──────────────────────────────────────────────────


class TestMediaTypes:
    @pytest.mark.parametrize("content,expected", [
        ("image omitted", "image"),
        ("video omitted", "video"),
        ("audio omitted", "audio"),
        ("document omitted", "document"),
        ("report.pdf • 3 pages document omitted", "document"),
        ("sticker omitted", "sticker"),
        ("Contact card omitted", "contact"),
        ("GIF omitted", "gif"),
    ])
    def test_placeholder_types(self, content, expected):
        info = classify(content)
        assert info.type == expected
        assert info.content is None
        assert info.status == "active"

    def test_sticker_needs_whole_content(self):
        assert classify("my sticker omitted").type == "text"

    def test_plain_text_defaults(self):
        info = classify("Hello\nworld")
        assert info == ContentInfo(type="text", content="Hello\nworld", status="active")


# ── status ───────────────────────────────────────────────────────


class TestStatus:
    def test_edited_marker_is_stripped(self):
        info = classify("Meeting at 5 <This message was edited>")
        assert info.status == "edited"
        assert info.content == "Meeting at 5"

    def test_deleted_by_sender(self):
        info = classify("This message was deleted.")
        assert info.status == "deleted"
        assert info.content is None

    def test_get_message_status_admin_delete(self):
        assert get_message_status("You deleted this message as admin.") == ("deleted", None)

    def test_get_message_status_none(self):
        assert get_message_status(None) == ("active", None)

    def test_media_is_never_edited(self):
        """Status checks run on the content left after type detection."""
        assert classify("image omitted").status == "active"


# ── calls ────────────────────────────────────────────────────────


class TestCalls:
    def test_missed_video_call(self):
        info = classify("Missed video call. 5 min • 3 joined")
        assert info.type == "call"
        assert info.content is None
        assert info.call == CallInfo(type="video", missed=True, joined=3, duration=300)

    def test_missed_voice_call_seconds(self):
        assert get_call_info("Missed voice call. 45 sec • 1 joined") == CallInfo(
            type="voice", missed=True, joined=1, duration=45
        )

    def test_completed_video_call_hours(self):
        assert get_call_info("Video call. 2 hr • 4 joined") == CallInfo(
            type="video", missed=False, joined=4, duration=7200
        )

    @pytest.mark.parametrize("content", ["Call. 10 min • 2 joined", "Voice call. 10 min • 2 joined"])
    def test_completed_voice_call(self, content):
        assert get_call_info(content) == CallInfo(type="voice", missed=False, joined=2, duration=600)

    def test_zero_joined_is_kept(self):
        assert get_call_info("Missed voice call. 1 min • 0 joined").joined == 0

    def test_started_calls_carry_no_details(self):
        assert get_call_info("Alice started a video call") == CallInfo(type="video")
        assert get_call_info("Alice started a call") == CallInfo(type="voice")

    def test_no_call(self):
        assert get_call_info("Let's call later") is None
        assert get_call_info(None) is None


# ── polls ────────────────────────────────────────────────────────


class TestPolls:
    def test_poll_with_two_options(self):
        info = classify(POLL_TEXT)
        assert info.type == "poll"
        assert info.content is None
        assert info.poll == make_poll("Favorite color?", ("Red", 3), ("Blue", 5))
        assert info.poll.total_votes == 8

    def test_single_vote_and_direction_mark(self):
        poll = parse_poll("POLL:\nLunch?\n\u200eOPTION: Pizza (1 vote)\n\u200eOPTION: Sushi (0 votes)")
        assert [(o.option, o.votes) for o in poll.options] == [("Pizza", 1), ("Sushi", 0)]

    def test_poll_without_options_keeps_type(self):
        info = classify("POLL:\nAnyone?")
        assert info.type == "poll"
        assert info.poll is None


# ── mentions ─────────────────────────────────────────────────────


class TestMentions:
    def test_mentions_in_order(self):
        assert detect_mentions("hey @4915112345678 and @994501234567") == ("4915112345678", "994501234567")

    def test_short_numbers_ignored(self):
        assert detect_mentions("room @123") == ()

    def test_mentions_survive_edit_marker(self):
        info = classify("ping @393331234567 <This message was edited>")
        assert info.mentions == ("393331234567",)

    def test_deleted_message_has_no_mentions(self):
        assert classify("This message was deleted.").mentions == ()


class TestPurity:
    def test_classification_is_idempotent(self):
        first = classify("Hello there")
        assert classify(first.content) == first


# ── serialisation ────────────────────────────────────────────────


class TestMessageDict:
    def test_round_trip(self):
        msg = make_message(
            "Bob",
            datetime(2024, 3, 14, 11, 0, 0),
            content=None,
            type="poll",
            poll=make_poll("Favorite color?", ("Red", 3)),
            mentions=("4915112345678",),
        )
        data = msg.to_dict()
        assert data["timestamp"] == "2024-03-14T11:00:00"
        assert data["message"]["poll"]["options"] == [{"option": "Red", "votes": 3}]
        assert data["message"]["mentions"] == ["4915112345678"]
        assert Message.from_dict(data) == msg

    def test_call_round_trip(self):
        msg = make_message("Bob", "2024-03-14T08:00:00", content=None, type="call",
                           call=CallInfo(type="video", missed=True, joined=3, duration=300))
        assert Message.from_dict(msg.to_dict()) == msg
