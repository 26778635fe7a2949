"""Predicate-tree filtering over parsed messages.

A filter is a nested dict::

    {
        "author": {"eq": "Alice"},
        "timestamp": {"gte": datetime(2024, 1, 1)},
        "message": {
            "type": {"in": ["text", "poll"]},
            "call": {"missed": {"eq": True}},
            "poll": None,
        },
        "AND": [...], "OR": [...], "NOT": {...},
    }

Every key in one node must hold for a message to match.  An empty node
matches everything.  ``"call": None`` and ``"poll": None`` select
messages without call or poll data.
"""

from __future__ import annotations

import operator
from datetime import datetime
from typing import Any, Callable, Iterable

from content_parser import ContentInfo, Message


class FilterError(ValueError):
    """A filter names an unknown field or operator, or is badly shaped."""


def _ordered(compare: Callable[[Any, Any], bool]) -> Callable[[Any, Any], bool]:
    def check(value: Any, expected: Any) -> bool:
        if value is None or expected is None:
            return False
        return compare(value, expected)
    return check


def _string(method: str) -> Callable[[Any, Any], bool]:
    def check(value: Any, expected: Any) -> bool:
        if not isinstance(value, str):
            return False
        return getattr(value, method)(expected)
    return check


def _contains(value: Any, expected: Any) -> bool:
    if isinstance(value, (list, tuple)):
        return expected in value
    if isinstance(value, str):
        return expected in value
    return False


OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "eq": lambda value, expected: value == expected,
    "neq": lambda value, expected: value != expected,
    "in": lambda value, expected: value in expected,
    "nin": lambda value, expected: value not in expected,
    "gt": _ordered(operator.gt),
    "gte": _ordered(operator.ge),
    "lt": _ordered(operator.lt),
    "lte": _ordered(operator.le),
    "contains": _contains,
    "starts_with": _string("startswith"),
    "ends_with": _string("endswith"),
}

CONTENT_FIELDS: dict[str, Callable[[ContentInfo], Any]] = {
    "type": lambda info: info.type,
    "content": lambda info: info.content,
    "status": lambda info: info.status,
    "mentions": lambda info: info.mentions,
}

CALL_FIELDS = ("type", "missed", "joined", "duration")

POLL_FIELDS: dict[str, Callable[[Any], Any]] = {
    "question": lambda poll: poll.question,
    "options": lambda poll: tuple(o.option for o in poll.options),
    "total_votes": lambda poll: poll.total_votes,
}


def match_field(value: Any, predicate: dict[str, Any]) -> bool:
    """Apply every operator in *predicate* to *value*.

    Raises:
        FilterError: If *predicate* is not a dict or names an unknown
            operator.
    """
    if not isinstance(predicate, dict):
        raise FilterError(f"Field predicate must be a dict of operators, got {predicate!r}")
    for name, expected in predicate.items():
        check = OPERATORS.get(name)
        if check is None:
            raise FilterError(f"Unknown filter operator: {name}")
        if not check(value, expected):
            return False
    return True


def _match_call(info: ContentInfo, node: dict[str, Any] | None) -> bool:
    if node is None:
        return info.call is None
    unknown = set(node) - set(CALL_FIELDS)
    if unknown:
        raise FilterError(f"Unknown call filter field(s): {', '.join(sorted(unknown))}")
    if info.call is None:
        return False
    return all(match_field(getattr(info.call, name), pred) for name, pred in node.items())


def _match_poll(info: ContentInfo, node: dict[str, Any] | None) -> bool:
    if node is None:
        return info.poll is None
    unknown = set(node) - set(POLL_FIELDS)
    if unknown:
        raise FilterError(f"Unknown poll filter field(s): {', '.join(sorted(unknown))}")
    if info.poll is None:
        return False
    return all(match_field(POLL_FIELDS[name](info.poll), pred) for name, pred in node.items())


def _match_content(info: ContentInfo, node: dict[str, Any]) -> bool:
    if not isinstance(node, dict):
        raise FilterError(f"'message' filter must be a dict, got {node!r}")
    for name, pred in node.items():
        if name == "call":
            ok = _match_call(info, pred)
        elif name == "poll":
            ok = _match_poll(info, pred)
        elif name in CONTENT_FIELDS:
            ok = match_field(CONTENT_FIELDS[name](info), pred)
        else:
            raise FilterError(f"Unknown message filter field: {name}")
        if not ok:
            return False
    return True


def matches(message: Message, node: dict[str, Any]) -> bool:
    """Return True if *message* satisfies the predicate tree *node*.

    Raises:
        FilterError: On an unknown field, operator or badly shaped node.
    """
    if not isinstance(node, dict):
        raise FilterError(f"Filter node must be a dict, got {node!r}")

    for key, value in node.items():
        if key == "AND":
            ok = all(matches(message, child) for child in value)
        elif key == "OR":
            ok = any(matches(message, child) for child in value)
        elif key == "NOT":
            ok = not matches(message, value)
        elif key == "author":
            ok = match_field(message.author, value)
        elif key == "timestamp":
            ok = match_field(message.timestamp, value)
        elif key == "message":
            ok = _match_content(message.message, value)
        else:
            raise FilterError(f"Unknown filter field: {key}")
        if not ok:
            return False
    return True


def evaluate(messages: Iterable[Message], node: dict[str, Any]) -> list[Message]:
    """Return the messages matching *node*, in their original order."""
    return [m for m in messages if matches(m, node)]


class MessageFilter:
    """Query helper bound to one message collection.

    Example::

        MessageFilter(messages).where({"message": {"type": {"eq": "image"}}})
    """

    def __init__(self, messages: Iterable[Message]) -> None:
        self.messages = list(messages)

    def where(self, node: dict[str, Any]) -> list[Message]:
        return evaluate(self.messages, node)

    def where_author(self, author: str) -> list[Message]:
        return self.where({"author": {"eq": author}})

    def where_type(self, content_type: str) -> list[Message]:
        return self.where({"message": {"type": {"eq": content_type}}})

    def where_status(self, status: str) -> list[Message]:
        return self.where({"message": {"status": {"eq": status}}})

    def where_date_range(self, start: datetime, end: datetime) -> list[Message]:
        """Messages with ``start <= timestamp <= end``."""
        return self.where({"timestamp": {"gte": start, "lte": end}})

    def where_content_contains(self, text: str) -> list[Message]:
        return self.where({"message": {"content": {"contains": text}}})
