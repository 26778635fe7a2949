"""Per-message point scoring.

Every message is worth a base weight for its content type plus a
type-specific bonus, scaled by a status multiplier and clamped to a
fixed range.  All weights, rates and caps live in ``PointsConfig`` so
reports can display them and callers can tune them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from content_parser import CALL, DELETED, POLL, TEXT, CallInfo, Message, PollInfo

_BASE_POINTS = {
    "text": 1.0,
    "image": 2.0,
    "video": 2.5,
    "video note": 2.0,
    "audio": 1.75,
    "document": 2.0,
    "sticker": 1.0,
    "contact": 0.5,
    "gif": 1.0,
    "call": 1.0,
    "poll": 2.0,
}

_STATUS_MULTIPLIERS = {
    "active": 1.0,
    "edited": 1.1,
}


@dataclass(frozen=True)
class PointsConfig:
    """Weights and limits used by ``calc_points``.

    Attributes:
        base: Base points per content type.  Types missing from the table
            score ``default_base``.
        text_per_char: Bonus per character of a text message.
        text_max_chars: Characters beyond this count earn nothing.
        poll_per_option: Bonus per poll option.
        poll_per_char: Bonus per character of the poll question.
        poll_max_chars: Cap on counted question characters.
        call_per_minute: Bonus per minute of call duration.
        call_per_participant: Bonus per joined participant.
        call_missed_penalty: Added (negative) when the call was missed.
        content_per_char: Length bonus for every other type with content.
        content_max_chars: Cap on counted characters for that bonus.
        status_multipliers: Multiplier per non-deleted status.
        deleted_points: Flat value for a deleted message.
        min_points: Lower clamp bound.
        max_points: Upper clamp bound.
    """

    base: Mapping[str, float] = field(default_factory=lambda: MappingProxyType(dict(_BASE_POINTS)))
    default_base: float = 1.0

    text_per_char: float = 0.01
    text_max_chars: int = 500

    poll_per_option: float = 0.3
    poll_per_char: float = 0.005
    poll_max_chars: int = 200

    call_per_minute: float = 0.5
    call_per_participant: float = 0.2
    call_missed_penalty: float = -0.5

    content_per_char: float = 0.002
    content_max_chars: int = 300

    status_multipliers: Mapping[str, float] = field(
        default_factory=lambda: MappingProxyType(dict(_STATUS_MULTIPLIERS))
    )
    deleted_points: float = 0.5

    min_points: float = 0.5
    max_points: float = 10.0

    def __post_init__(self) -> None:
        if self.min_points > self.max_points:
            raise ValueError(
                f"min_points ({self.min_points}) must not exceed max_points ({self.max_points})"
            )


DEFAULT_POINTS_CONFIG = PointsConfig()


def _clamp(points: float, config: PointsConfig) -> float:
    return max(config.min_points, min(config.max_points, points))


def _text_points(content: str | None, config: PointsConfig) -> float:
    if not content:
        return 0.0
    return min(len(content), config.text_max_chars) * config.text_per_char


def _poll_points(poll: PollInfo | None, config: PointsConfig) -> float:
    if poll is None:
        return 0.0
    points = len(poll.options) * config.poll_per_option
    if poll.question:
        points += min(len(poll.question), config.poll_max_chars) * config.poll_per_char
    return points


def _call_points(call: CallInfo | None, config: PointsConfig) -> float:
    if call is None:
        return 0.0
    points = 0.0
    if call.duration:
        points += call.duration / 60 * config.call_per_minute
    if call.joined:
        points += call.joined * config.call_per_participant
    if call.missed:
        points += config.call_missed_penalty
    return points


def _content_bonus(content: str | None, config: PointsConfig) -> float:
    if not content:
        return 0.0
    return min(len(content), config.content_max_chars) * config.content_per_char


def calc_points(message: Message, config: PointsConfig = DEFAULT_POINTS_CONFIG) -> float:
    """Score one message.

    Deleted messages short-circuit to ``config.deleted_points``.  For the
    rest the score is ``(base + bonus) * status multiplier``, clamped to
    ``[min_points, max_points]``.

    Args:
        message: The message to score.
        config: Weight table; defaults to ``DEFAULT_POINTS_CONFIG``.

    Returns:
        The point value as a float.
    """
    info = message.message
    if info.status == DELETED:
        return _clamp(config.deleted_points, config)

    base = config.base.get(info.type, config.default_base)

    if info.type == TEXT:
        bonus = _text_points(info.content, config)
    elif info.type == POLL:
        bonus = _poll_points(info.poll, config)
    elif info.type == CALL:
        bonus = _call_points(info.call, config)
    else:
        bonus = _content_bonus(info.content, config)

    multiplier = config.status_multipliers.get(info.status, 1.0)
    return _clamp((base + bonus) * multiplier, config)
