"""Exception types shared by the chat parsing and statistics modules."""

from __future__ import annotations


class ChatStatsError(Exception):
    """Base class for every error raised by this project."""


class ParseError(ChatStatsError, ValueError):
    """A message block does not match the export header grammar."""


class NotFoundError(ChatStatsError, LookupError):
    """The requested author has no messages in the filtered window."""

    def __init__(self, author: str) -> None:
        super().__init__(f"No messages found for user: {author}")
        self.author = author


class EmptyWindowError(ChatStatsError):
    """An aggregate was requested over a window that holds no messages."""
