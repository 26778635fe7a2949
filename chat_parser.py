"""Tokenizer and header extractor for exported chat transcripts.

An export is a sequence of message blocks.  Each block starts with a
bracketed timestamp header::

    [DD.MM.YY, HH:MM:SS] Author: content

and every following line without such a header belongs to the same block.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Iterable, NamedTuple

from errors import ParseError

logger = logging.getLogger(__name__)

LEFT_TO_RIGHT_MARK = "\u200e"
SELF_AUTHOR_LABEL = "You (your messages)"

TIMESTAMP_PATTERN = re.compile(r"^\[\d{2}\.\d{2}\.\d{2}, \d{2}:\d{2}:\d{2}\]")
MESSAGE_PATTERN = re.compile(
    r"^\[(?P<day>\d{2})\.(?P<month>\d{2})\.(?P<year>\d{2}), "
    r"(?P<hour>\d{2}):(?P<minute>\d{2}):(?P<second>\d{2})\] "
    r"(?P<author>[^:]+): (?P<content>.*)\Z",
    re.DOTALL,
)
_SELF_PATTERN = re.compile(r"^you$", re.IGNORECASE)

_DATE_FIELDS = ("day", "month", "year", "hour", "minute", "second")


class MessageInfo(NamedTuple):
    """Header fields of one message block, before content classification."""

    author: str
    timestamp: datetime
    content: str


def strip_direction_marks(text: str) -> str:
    """Remove the invisible left-to-right marks some exports embed."""
    return text.replace(LEFT_TO_RIGHT_MARK, "")


def _split_lines(text: str) -> list[str]:
    return text.replace("\r\n", "\n").split("\n")


def tokenize(text: str) -> list[str]:
    """Split a transcript into one string per logical message.

    Lines whose stripped form begins with the timestamp header start a new
    block; any other line is appended (with a newline) to the block being
    built.  Lines before the first header are discarded, and blocks are
    stripped of surrounding whitespace.

    A body line that happens to begin with a header-shaped timestamp will
    start a new block.  There is no way to tell the two apart from the
    line alone.

    Args:
        text: The complete transcript.

    Returns:
        List of non-empty message block strings in source order.
    """
    blocks: list[str] = []
    current = ""

    for line in _split_lines(text):
        if TIMESTAMP_PATTERN.match(line.strip()):
            if current.strip():
                blocks.append(current.strip())
            current = line
        elif current:
            current += "\n" + line

    if current.strip():
        blocks.append(current.strip())

    return blocks


def expand_year(two_digit_year: int) -> int:
    """Map a two-digit export year to a full year (00-49 -> 20xx, else 19xx)."""
    return 2000 + two_digit_year if two_digit_year < 50 else 1900 + two_digit_year


def normalize_author(author: str, self_name: str | None = None) -> str:
    """Replace the literal ``you`` author with *self_name* when one is set."""
    if self_name and _SELF_PATTERN.match(author):
        return self_name
    return author


def extract(block: str, self_name: str | None = None) -> MessageInfo:
    """Parse one message block into author, timestamp and raw content.

    Args:
        block: A single block as produced by ``tokenize``.
        self_name: Name that replaces a ``you`` author.  ``None`` or an
            empty string leaves the author untouched.

    Returns:
        A ``MessageInfo`` with the stripped author and content.

    Raises:
        ParseError: If the header grammar does not match, a date or time
            component is missing, or the date does not exist.
    """
    match = MESSAGE_PATTERN.match(block)
    if match is None:
        raise ParseError(f"Invalid message format: {block[:100]}...")

    parts = match.groupdict()
    if any(not parts.get(field) for field in _DATE_FIELDS):
        raise ParseError(f"Invalid date format in message: {block[:30]}")

    author = parts["author"].strip()
    if not author:
        raise ParseError(f"Missing author in message: {block[:100]}...")

    try:
        timestamp = datetime(
            expand_year(int(parts["year"])),
            int(parts["month"]),
            int(parts["day"]),
            int(parts["hour"]),
            int(parts["minute"]),
            int(parts["second"]),
        )
    except ValueError as e:
        raise ParseError(f"Invalid date in message: {block[:30]} ({e})") from e

    return MessageInfo(
        author=normalize_author(author, self_name),
        timestamp=timestamp,
        content=parts["content"].strip(),
    )


def parse_chat_messages(text: str, self_name: str | None = None) -> list[MessageInfo]:
    """Tokenize *text* and extract every well-formed block.

    Malformed blocks are skipped; one bad block never aborts the parse.
    """
    infos: list[MessageInfo] = []
    skipped = 0
    for block in tokenize(text):
        try:
            infos.append(extract(block, self_name))
        except ParseError:
            skipped += 1
            continue

    if skipped:
        logger.debug("Skipped %d malformed message blocks", skipped)
    return infos


def _header_authors(text: str) -> Iterable[str]:
    for line in _split_lines(text):
        stripped = line.strip()
        if not TIMESTAMP_PATTERN.match(stripped):
            continue
        match = MESSAGE_PATTERN.match(stripped)
        if match is None:
            continue
        author = match.group("author").strip()
        if author:
            yield author


def extract_authors(text: str, excluded: Iterable[str] = ()) -> list[str]:
    """Return the sorted unique header authors without full parsing.

    Args:
        text: The complete transcript.
        excluded: Author names to leave out (group title, assistant, ...).
    """
    skip = set(excluded)
    return sorted({a for a in _header_authors(text) if a not in skip})


def extract_authors_for_config(text: str, excluded: Iterable[str] = ()) -> list[str]:
    """Like ``extract_authors`` but renders the ``you`` author as a label.

    Used to offer a pick list when asking which names belong to the
    person who exported the chat.
    """
    skip = set(excluded)
    authors = set()
    for author in _header_authors(text):
        if author in skip:
            continue
        authors.add(SELF_AUTHOR_LABEL if _SELF_PATTERN.match(author) else author)
    return sorted(authors)
