"""End-to-end loading of chat exports and the persisted JSON collection."""

from __future__ import annotations

import json
import logging
import os
from typing import Iterable

from chat_parser import parse_chat_messages, strip_direction_marks
from content_parser import Message, classify
from settings import ParserSettings

logger = logging.getLogger(__name__)


def load_chat_file(path: str) -> str:
    """Read an exported transcript and strip its direction marks.

    Raises:
        FileNotFoundError: If the file at *path* does not exist.
    """
    with open(path, "r", encoding="utf-8") as f:
        return strip_direction_marks(f.read())


def get_messages_from_text(text: str, settings: ParserSettings | None = None) -> list[Message]:
    """Turn a raw transcript into classified messages.

    Malformed blocks, excluded authors, blocks with no content and system
    notices are dropped.

    Args:
        text: The complete transcript.
        settings: Self-name and author exclusions; defaults to none.

    Returns:
        Messages in transcript order.
    """
    settings = settings or ParserSettings()
    excluded = set(settings.excluded_authors)

    messages: list[Message] = []
    system = 0
    for info in parse_chat_messages(strip_direction_marks(text), settings.self_name):
        if info.author in excluded or not info.content:
            continue
        content = classify(info.content)
        if content is None:
            system += 1
            continue
        messages.append(Message(author=info.author, timestamp=info.timestamp, message=content))

    if text.strip() and not messages:
        logger.warning("Transcript is not empty but no messages could be parsed")
    else:
        logger.debug("Parsed %d messages (%d system notices dropped)", len(messages), system)
    return messages


def save_messages(messages: Iterable[Message], path: str) -> None:
    """Write *messages* as a JSON array, creating parent directories."""
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump([m.to_dict() for m in messages], f, indent=2, ensure_ascii=False)


def load_messages(path: str) -> list[Message]:
    """Load a collection written by ``save_messages``.

    Raises:
        FileNotFoundError: If the file at *path* does not exist.
        json.JSONDecodeError: If the file contains invalid JSON.
    """
    with open(path, "r", encoding="utf-8") as f:
        return [Message.from_dict(item) for item in json.load(f)]


def write_chat_to_json(chat_path: str, json_path: str, settings: ParserSettings | None = None) -> int:
    """Convert an exported transcript into the JSON collection.

    Returns:
        Number of messages written.
    """
    messages = get_messages_from_text(load_chat_file(chat_path), settings)
    save_messages(messages, json_path)
    logger.info("Wrote %d messages to %s", len(messages), json_path)
    return len(messages)
