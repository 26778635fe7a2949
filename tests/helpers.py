"""Shared test helpers for chat stats tests.

Regular functions (not fixtures) that can be imported by any test module.
"""

from __future__ import annotations

from datetime import datetime

from content_parser import CallInfo, ContentInfo, Message, PollInfo, PollOption


def make_message(
    author: str,
    timestamp: datetime | str,
    content: str | None = "hello",
    type: str = "text",
    status: str = "active",
    call: CallInfo | None = None,
    poll: PollInfo | None = None,
    mentions: tuple[str, ...] = (),
) -> Message:
    """Build a ``Message`` directly, bypassing the parser.

    Args:
        author: Author name.
        timestamp: A datetime or an ISO-8601 string.
        content: Free-text content (None for media or deleted messages).
        type: Content type string.
        status: Status string.
        call: Optional call details.
        poll: Optional poll details.
        mentions: Phone-number mentions.
    """
    if isinstance(timestamp, str):
        timestamp = datetime.fromisoformat(timestamp)
    return Message(
        author=author,
        timestamp=timestamp,
        message=ContentInfo(
            type=type,
            content=content,
            status=status,
            call=call,
            poll=poll,
            mentions=mentions,
        ),
    )


def make_poll(question: str, *options: tuple[str, int]) -> PollInfo:
    return PollInfo(question=question, options=tuple(PollOption(o, v) for o, v in options))


def make_transcript(lines: list[tuple[str, str, str]]) -> str:
    """Render (``DD.MM.YY, HH:MM:SS``, author, content) tuples as an export.

    Multi-line content is written as continuation lines.
    """
    return "\n".join(f"[{stamp}] {author}: {content}" for stamp, author, content in lines)


def make_daily_messages(author: str, days: list[str], per_day: int = 1, hour: int = 10) -> list[Message]:
    """Build *per_day* text messages for each ISO date in *days*."""
    messages = []
    for day in days:
        for i in range(per_day):
            ts = datetime.fromisoformat(f"{day}T{hour:02d}:00:00").replace(minute=i % 60)
            messages.append(make_message(author, ts, content=f"{author} message {i}"))
    return messages
