"""Classify the raw content of a chat message.

Turns the free text after the author header into a ``ContentInfo`` record:
media placeholder type, edit/delete status, call details, poll details
and phone-number mentions.  Classification is a pure function of the
content string.
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any

TEXT = "text"
IMAGE = "image"
VIDEO = "video"
VIDEO_NOTE = "video note"
AUDIO = "audio"
DOCUMENT = "document"
STICKER = "sticker"
CONTACT = "contact"
GIF = "gif"
CALL = "call"
POLL = "poll"

CONTENT_TYPES = (TEXT, IMAGE, VIDEO, VIDEO_NOTE, AUDIO, DOCUMENT, STICKER, CONTACT, GIF, CALL, POLL)

ACTIVE = "active"
EDITED = "edited"
DELETED = "deleted"

MESSAGE_STATUSES = (ACTIVE, EDITED, DELETED)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp into a naive local datetime.

    Offset-aware values (including a trailing ``Z``) are converted to local
    time and stripped of their offset, so every loaded message compares
    with naive window bounds.

    Raises:
        ValueError: If *value* is not an ISO-8601 timestamp.
    """
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    timestamp = datetime.fromisoformat(value)
    if timestamp.tzinfo is not None:
        timestamp = timestamp.astimezone().replace(tzinfo=None)
    return timestamp


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CallInfo:
    """Details of a voice or video call notice.

    ``missed``, ``joined`` and ``duration`` (seconds) are ``None`` when the
    notice does not state them, e.g. "X started a call".
    """

    type: str
    missed: bool | None = None
    joined: int | None = None
    duration: int | None = None


@dataclass(frozen=True)
class PollOption:
    option: str
    votes: int


@dataclass(frozen=True)
class PollInfo:
    question: str
    options: tuple[PollOption, ...] = ()

    @property
    def total_votes(self) -> int:
        return sum(o.votes for o in self.options)


@dataclass(frozen=True)
class ContentInfo:
    """Classified payload of one message."""

    type: str = TEXT
    content: str | None = None
    status: str = ACTIVE
    call: CallInfo | None = None
    poll: PollInfo | None = None
    mentions: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["mentions"] = list(self.mentions)
        if self.poll is not None:
            data["poll"]["options"] = [asdict(o) for o in self.poll.options]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ContentInfo:
        call = data.get("call")
        poll = data.get("poll")
        return cls(
            type=data.get("type", TEXT),
            content=data.get("content"),
            status=data.get("status", ACTIVE),
            call=CallInfo(**call) if call else None,
            poll=PollInfo(
                question=poll["question"],
                options=tuple(PollOption(o["option"], int(o["votes"])) for o in poll.get("options", [])),
            ) if poll else None,
            mentions=tuple(data.get("mentions") or ()),
        )


@dataclass(frozen=True)
class Message:
    """One parsed chat message.  Never mutated after creation."""

    author: str
    timestamp: datetime
    message: ContentInfo = field(default_factory=ContentInfo)

    def to_dict(self) -> dict[str, Any]:
        return {
            "author": self.author,
            "timestamp": self.timestamp.isoformat(),
            "message": self.message.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Message:
        return cls(
            author=data["author"],
            timestamp=parse_timestamp(data["timestamp"]),
            message=ContentInfo.from_dict(data["message"]),
        )


# ---------------------------------------------------------------------------
# Pattern tables (checked in order, first match wins)
# ---------------------------------------------------------------------------

SYSTEM_PATTERNS = [
    re.compile(r".+ (?:deleted|changed|removed|added) .+"),
    re.compile(r".* left"),
    re.compile(r".+ joined using your invite"),
]

TYPE_PATTERNS = [
    (IMAGE, re.compile(r"image omitted$")),
    (VIDEO, re.compile(r"video omitted$")),
    (VIDEO_NOTE, re.compile(r"video note omitted$")),
    (AUDIO, re.compile(r"audio omitted$")),
    (DOCUMENT, re.compile(r"document omitted$")),
    (STICKER, re.compile(r"^sticker omitted$")),
    (CONTACT, re.compile(r"Contact card omitted$")),
    (GIF, re.compile(r"GIF omitted$")),
    (POLL, re.compile(r"^POLL:")),
]

DELETED_PATTERN = re.compile(r"This message was deleted\.$")
DELETED_AS_ADMIN_PATTERN = re.compile(r"You deleted this message as admin\.$")
EDITED_PATTERN = re.compile(r" <This message was edited>$")

STARTED_VIDEO_CALL_PATTERN = re.compile(r".+ started a video call$")
STARTED_VOICE_CALL_PATTERN = re.compile(r".+ started a call$")

_CALL_SUFFIX = r"\. (\d+) (sec|min|hr) • (\d+) joined$"
# (call type, missed, pattern)
CALL_PATTERNS = [
    ("video", True, re.compile(r"Missed video call" + _CALL_SUFFIX)),
    ("voice", True, re.compile(r"Missed voice call" + _CALL_SUFFIX)),
    ("video", False, re.compile(r"Video call" + _CALL_SUFFIX)),
    ("voice", False, re.compile(r"Call" + _CALL_SUFFIX)),
    ("voice", False, re.compile(r"Voice call" + _CALL_SUFFIX)),
]

DURATION_UNITS = {"sec": 1, "min": 60, "hr": 3600}

POLL_QUESTION_PATTERN = re.compile(r"POLL:[ \t]*\n\s*([^\n]+)")
POLL_OPTION_PATTERN = re.compile(r"\u200e?OPTION: ([^(]+) \((\d+) votes?\)")

MENTION_PATTERNS = [
    re.compile(r"@(\d{7,15})\b"),
]


# ---------------------------------------------------------------------------
# Classification steps
# ---------------------------------------------------------------------------

def is_system_message(content: str) -> bool:
    """True for membership/administrative notices that are not real messages."""
    return any(p.fullmatch(content) for p in SYSTEM_PATTERNS)


def detect_type(content: str) -> str | None:
    """Return the media placeholder type of *content*, or None for free text."""
    for content_type, pattern in TYPE_PATTERNS:
        if pattern.search(content):
            return content_type
    return None


def get_message_status(content: str | None) -> tuple[str, str | None]:
    """Split *content* into a status and the content left after the marker.

    Returns:
        A (status, content) tuple.  Deleted messages lose their content;
        edited messages have the edit marker removed.
    """
    if content is None:
        return ACTIVE, None
    if DELETED_PATTERN.search(content) or DELETED_AS_ADMIN_PATTERN.search(content):
        return DELETED, None
    if EDITED_PATTERN.search(content):
        return EDITED, EDITED_PATTERN.sub("", content).strip()
    return ACTIVE, content


def get_call_info(content: str | None) -> CallInfo | None:
    """Recognise call notices.

    "Started" notices carry no duration or participant count; missed and
    completed calls share a ``<n> <unit> • <m> joined`` suffix.
    """
    if content is None:
        return None

    if STARTED_VIDEO_CALL_PATTERN.search(content):
        return CallInfo(type="video")
    if STARTED_VOICE_CALL_PATTERN.search(content):
        return CallInfo(type="voice")

    for call_type, missed, pattern in CALL_PATTERNS:
        match = pattern.search(content)
        if match is None:
            continue
        amount, unit, joined = match.groups()
        return CallInfo(
            type=call_type,
            missed=missed,
            joined=int(joined),
            duration=int(amount) * DURATION_UNITS[unit],
        )
    return None


def parse_poll(content: str | None) -> PollInfo | None:
    """Extract the question and ``OPTION:`` lines of a poll dump.

    Returns None when there is no question line or no option could be
    parsed; the caller keeps the ``poll`` type regardless.
    """
    if content is None:
        return None

    question_match = POLL_QUESTION_PATTERN.search(content)
    if question_match is None:
        return None

    options = tuple(
        PollOption(option=m.group(1).strip(), votes=int(m.group(2)))
        for m in POLL_OPTION_PATTERN.finditer(content)
    )
    if not options:
        return None
    return PollInfo(question=question_match.group(1).strip(), options=options)


def detect_mentions(content: str | None) -> tuple[str, ...]:
    """Collect phone-number mentions (``@<digits>``) in order of appearance."""
    if content is None:
        return ()
    found: list[tuple[int, str]] = []
    for pattern in MENTION_PATTERNS:
        found.extend((m.start(), m.group(1)) for m in pattern.finditer(content))
    return tuple(number for _, number in sorted(found))


def classify(content: str) -> ContentInfo | None:
    """Classify the raw content of one message.

    Steps run in a fixed priority order: system filter, media type,
    status, call detection, poll parsing, mentions.

    Args:
        content: Raw content as extracted from the message header.

    Returns:
        The ``ContentInfo`` for the message, or None when the content is
        a system notice that should be discarded.
    """
    if is_system_message(content):
        return None

    content_type = detect_type(content)
    remaining: str | None = content if content_type is None else None
    if content_type is None:
        content_type = TEXT

    status, remaining = get_message_status(remaining)
    call = get_call_info(remaining)
    if call is not None:
        content_type = CALL

    poll = parse_poll(content) if content_type == POLL else None

    return ContentInfo(
        type=content_type,
        content=remaining if call is None else None,
        status=status,
        call=call,
        poll=poll,
        mentions=detect_mentions(remaining),
    )
