"""Tests for points.py (calc_points and PointsConfig)."""

from __future__ import annotations

import pytest

from content_parser import CallInfo
from points import DEFAULT_POINTS_CONFIG, PointsConfig, calc_points

from helpers import make_message, make_poll

TS = "2024-03-14T10:00:00"


# ── text ─────────────────────────────────────────────────────────


class TestTextPoints:
    def test_length_bonus(self):
        msg = make_message("Alice", TS, content="Good morning team")
        assert calc_points(msg) == pytest.approx(1.17)

    def test_length_bonus_is_capped(self):
        msg = make_message("Alice", TS, content="x" * 2000)
        assert calc_points(msg) == pytest.approx(6.0)

    def test_empty_text_scores_base(self):
        assert calc_points(make_message("Alice", TS, content=None)) == pytest.approx(1.0)

    def test_edited_multiplier(self):
        msg = make_message("Carol", TS, content="Happy new year everyone", status="edited")
        assert calc_points(msg) == pytest.approx(1.353)


# ── media, calls, polls ──────────────────────────────────────────


class TestOtherTypes:
    def test_image_without_content(self):
        assert calc_points(make_message("Bob", TS, content=None, type="image")) == pytest.approx(2.0)

    def test_contact_sits_on_lower_bound(self):
        assert calc_points(make_message("Bob", TS, content=None, type="contact")) == pytest.approx(0.5)

    def test_unknown_type_uses_default_base(self):
        assert calc_points(make_message("Bob", TS, content=None, type="location")) == pytest.approx(1.0)

    def test_missed_call(self):
        msg = make_message(
            "Bob", TS, content=None, type="call",
            call=CallInfo(type="video", missed=True, joined=3, duration=300),
        )
        assert calc_points(msg) == pytest.approx(3.6)

    def test_call_without_details(self):
        msg = make_message("Bob", TS, content=None, type="call", call=CallInfo(type="voice"))
        assert calc_points(msg) == pytest.approx(1.0)

    def test_poll(self):
        msg = make_message(
            "Bob", TS, content=None, type="poll",
            poll=make_poll("Favorite color?", ("Red", 3), ("Blue", 5)),
        )
        assert calc_points(msg) == pytest.approx(2.675)

    def test_poll_without_options(self):
        assert calc_points(make_message("Bob", TS, content=None, type="poll")) == pytest.approx(2.0)


# ── deleted and clamping ─────────────────────────────────────────


class TestClamp:
    def test_deleted_is_flat(self):
        msg = make_message("Bob", TS, content=None, status="deleted")
        assert calc_points(msg) == pytest.approx(0.5)

    def test_long_call_hits_upper_bound(self):
        msg = make_message(
            "Bob", TS, content=None, type="call",
            call=CallInfo(type="voice", missed=False, joined=5, duration=36000),
        )
        assert calc_points(msg) == pytest.approx(10.0)

    def test_penalty_hits_lower_bound(self):
        config = PointsConfig(call_missed_penalty=-2.0)
        msg = make_message("Bob", TS, content=None, type="call", call=CallInfo(type="voice", missed=True))
        assert calc_points(msg, config) == pytest.approx(0.5)

    @pytest.mark.parametrize("content", [None, "", "a", "b" * 499, "c" * 5000])
    def test_score_always_within_bounds(self, content):
        for type_ in ("text", "image", "sticker", "document"):
            for status in ("active", "edited", "deleted"):
                points = calc_points(make_message("X", TS, content=content, type=type_, status=status))
                assert DEFAULT_POINTS_CONFIG.min_points <= points <= DEFAULT_POINTS_CONFIG.max_points


class TestPointsConfig:
    def test_custom_base(self):
        config = PointsConfig(base={"image": 4.0})
        assert calc_points(make_message("Bob", TS, content=None, type="image"), config) == pytest.approx(4.0)

    def test_default_tables_are_read_only(self):
        with pytest.raises(TypeError):
            DEFAULT_POINTS_CONFIG.base["text"] = 5.0

    def test_inverted_bounds_rejected(self):
        with pytest.raises(ValueError, match="min_points"):
            PointsConfig(min_points=5.0, max_points=1.0)
