"""Shared fixtures for chat stats tests."""

from __future__ import annotations

from datetime import datetime

import pytest

from content_parser import CallInfo
from stats import Stats

from helpers import make_message, make_poll

REFERENCE_TIME = datetime(2024, 3, 15, 12, 0, 0)


# ── A small, fully known chat for engine tests ──


def _sample_messages() -> list:
    """Three authors over a few days in early March 2024.

    Alice: 4 text messages on 03-12, 03-13, 03-14 (two on the 14th).
    Bob:   an image, a deleted message, a missed video call and a poll.
    Carol: one edited text message on 2024-01-05 (outside recent windows).
    """
    return [
        make_message("Carol", "2024-01-05T09:00:00", content="Happy new year everyone", status="edited"),
        make_message("Alice", "2024-03-12T10:00:00", content="Good morning team"),
        make_message("Bob", "2024-03-12T10:05:00", content=None, type="image"),
        make_message("Alice", "2024-03-13T21:30:00", content="Meeting notes are uploaded"),
        make_message("Bob", "2024-03-13T22:00:00", content=None, status="deleted"),
        make_message(
            "Bob",
            "2024-03-14T08:00:00",
            content=None,
            type="call",
            call=CallInfo(type="video", missed=True, joined=3, duration=300),
        ),
        make_message("Alice", "2024-03-14T09:00:00", content="Who joins the call?"),
        make_message(
            "Bob",
            "2024-03-14T11:00:00",
            content=None,
            type="poll",
            poll=make_poll("Favorite color?", ("Red", 3), ("Blue", 5)),
        ),
        make_message("Alice", "2024-03-14T11:30:00", content="Blue obviously"),
    ]


@pytest.fixture()
def sample_messages():
    """Return the sample message list."""
    return _sample_messages()


@pytest.fixture()
def engine(sample_messages):
    """Stats engine over the sample messages with a pinned reference time."""
    return Stats(sample_messages, reference_time=REFERENCE_TIME)
