"""Statistics engine over a parsed chat.

``Stats`` wraps one message collection and answers aggregate queries
(per-user stats, rankings, overall stats, heatmaps, activity categories,
period comparisons and trending words) over configurable time windows.
Results are plain dicts and are memoized per engine instance until
``clear_cache`` or ``set_messages`` is called.
"""

from __future__ import annotations

import calendar
import copy
import json
import logging
import math
import re
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Callable, Iterable, Mapping, Sequence

from content_parser import CALL, CONTENT_TYPES, DELETED, MESSAGE_STATUSES, POLL, TEXT, Message
from errors import EmptyWindowError, NotFoundError
from filtering import evaluate
from points import DEFAULT_POINTS_CONFIG, PointsConfig, calc_points

logger = logging.getLogger(__name__)

TIME_PERIODS = ("total", "last_year", "last_month", "last_week", "last_day", "custom")
RANKING_TYPES = ("message_count", "message_points", "activity_score")

WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

ACTIVITY_CATEGORIES = ("Super Active", "Active", "Moderate", "Not Active", "Red Zone")

# Minimum weighted weekly value for each category above "Red Zone".
DEFAULT_ACTIVITY_THRESHOLDS: dict[str, tuple[float, float, float, float]] = {
    "message_count": (35, 20, 10, 3),
    "message_points": (60, 35, 18, 6),
    "activity_score": (50, 30, 15, 5),
}

# Oldest week first; the most recent week weighs the most.
WEEK_WEIGHTS = (1, 2, 3, 4)

_WORD_STRIP = re.compile(r"[^\w\s]")


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ActivityScoreConfig:
    """Weights of the composite activity score.

    score = messages * message_weight + points * point_weight
            + sum(exp(-time_decay_factor * days_ago)) + active_days * unique_day_bonus
    """

    message_weight: float = 0.4
    point_weight: float = 0.4
    time_decay_factor: float = 0.1
    unique_day_bonus: float = 0.2

    def __post_init__(self) -> None:
        for name, value in asdict(self).items():
            if value < 0:
                raise ValueError(f"{name} must be non-negative, got {value}")


@dataclass(frozen=True)
class StatsConfig:
    """Time window and options shared by every stats query.

    Attributes:
        time_period: One of ``TIME_PERIODS``.
        custom_start: Inclusive lower bound for ``custom`` (None = open).
        custom_end: Inclusive upper bound for ``custom`` (None = open).
        include_deleted: Keep messages with status ``deleted``.
        activity_score: Weights for the activity score.
    """

    time_period: str = "total"
    custom_start: datetime | None = None
    custom_end: datetime | None = None
    include_deleted: bool = True
    activity_score: ActivityScoreConfig = field(default_factory=ActivityScoreConfig)

    def __post_init__(self) -> None:
        if self.time_period not in TIME_PERIODS:
            raise ValueError(
                f"Unknown time period: {self.time_period!r} (expected one of {', '.join(TIME_PERIODS)})"
            )
        if self.time_period == "custom":
            if self.custom_start is None and self.custom_end is None:
                raise ValueError("A custom time period needs a start, an end, or both")
            if self.custom_start and self.custom_end and self.custom_start > self.custom_end:
                raise ValueError("custom_start must not be after custom_end")

    def cache_params(self) -> dict[str, Any]:
        return {
            "time_period": self.time_period,
            "custom_start": self.custom_start.isoformat() if self.custom_start else None,
            "custom_end": self.custom_end.isoformat() if self.custom_end else None,
            "include_deleted": self.include_deleted,
            "activity_score": asdict(self.activity_score),
        }


@dataclass(frozen=True)
class RankingConfig(StatsConfig):
    """``StatsConfig`` plus the ranking metric and an optional result limit."""

    ranking_type: str = "message_count"
    limit: int | None = None

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.ranking_type not in RANKING_TYPES:
            raise ValueError(
                f"Unknown ranking type: {self.ranking_type!r} (expected one of {', '.join(RANKING_TYPES)})"
            )
        if self.limit is not None and self.limit < 0:
            raise ValueError(f"limit must be non-negative, got {self.limit}")

    @classmethod
    def from_stats(cls, config: StatsConfig, ranking_type: str, limit: int | None = None) -> RankingConfig:
        return cls(
            time_period=config.time_period,
            custom_start=config.custom_start,
            custom_end=config.custom_end,
            include_deleted=config.include_deleted,
            activity_score=config.activity_score,
            ranking_type=ranking_type,
            limit=limit,
        )

    def cache_params(self) -> dict[str, Any]:
        params = super().cache_params()
        params["ranking_type"] = self.ranking_type
        params["limit"] = self.limit
        return params


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------

def _safe_div(num: float, den: float, default: float = 0.0) -> float:
    """Return ``num / den``, or *default* when *den* is zero."""
    return num / den if den else default


def shift_months(moment: datetime, months: int) -> datetime:
    """Move *moment* by whole calendar months, clamping the day to the month end.

    ``shift_months(datetime(2024, 3, 31), -1)`` is 2024-02-29.
    """
    index = moment.year * 12 + (moment.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def resolve_window(config: StatsConfig, now: datetime) -> tuple[datetime | None, datetime | None]:
    """Turn a time period into inclusive ``(start, end)`` bounds.

    Either bound may be None, meaning the window is open on that side.
    """
    period = config.time_period
    if period == "total":
        return None, None
    if period == "custom":
        return config.custom_start, config.custom_end
    if period == "last_year":
        return shift_months(now, -12), now
    if period == "last_month":
        return shift_months(now, -1), now
    if period == "last_week":
        return now - timedelta(days=7), now
    return now - timedelta(days=1), now


def build_window_filter(
    start: datetime | None, end: datetime | None, include_deleted: bool = True
) -> dict[str, Any]:
    """Build the predicate tree selecting one time window."""
    clauses: list[dict[str, Any]] = []
    bounds: dict[str, datetime] = {}
    if start is not None:
        bounds["gte"] = start
    if end is not None:
        bounds["lte"] = end
    if bounds:
        clauses.append({"timestamp": bounds})
    if not include_deleted:
        clauses.append({"message": {"status": {"neq": DELETED}}})
    return {"AND": clauses} if clauses else {}


def compute_streaks(days: Iterable[date], today: date) -> tuple[int, int]:
    """Compute the longest and current runs of consecutive active days.

    Args:
        days: Calendar dates with at least one message (duplicates allowed).
        today: Reference date for the current streak.

    Returns:
        A (longest_streak, current_streak) tuple.  The current streak is 0
        unless the last active date is today or yesterday;
        activity after *today* does not count as current.
    """
    ordered = sorted(set(days))
    if not ordered:
        return 0, 0

    longest = run = 1
    for prev, cur in zip(ordered, ordered[1:]):
        run = run + 1 if (cur - prev).days == 1 else 1
        longest = max(longest, run)

    current = 0
    if 0 <= (today - ordered[-1]).days <= 1:
        current = 1
        for i in range(len(ordered) - 1, 0, -1):
            if (ordered[i] - ordered[i - 1]).days != 1:
                break
            current += 1

    return longest, current


def activity_histograms(messages: Iterable[Message]) -> dict[str, dict]:
    """Count messages per hour, weekday, date, month and year.

    Keys are ``int`` hours, English weekday names, ``YYYY-MM-DD``,
    ``YYYY-MM`` and ``YYYY`` strings, in first-seen order.
    """
    hourly: dict[int, int] = {}
    daily: dict[str, int] = {}
    by_date: dict[str, int] = {}
    monthly: dict[str, int] = {}
    yearly: dict[str, int] = {}
    for msg in messages:
        ts = msg.timestamp
        for bucket, key in (
            (hourly, ts.hour),
            (daily, WEEKDAY_NAMES[ts.weekday()]),
            (by_date, ts.strftime("%Y-%m-%d")),
            (monthly, ts.strftime("%Y-%m")),
            (yearly, ts.strftime("%Y")),
        ):
            bucket[key] = bucket.get(key, 0) + 1
    return {
        "hourly_activity": hourly,
        "daily_activity": daily,
        "daily_activity_by_date": by_date,
        "monthly_activity": monthly,
        "yearly_activity": yearly,
    }


def _busiest(histogram: dict) -> Any:
    return max(histogram, key=histogram.get) if histogram else None


def _quietest(histogram: dict) -> Any:
    return min(histogram, key=histogram.get) if histogram else None


def _extremes(histograms: dict[str, dict], high: str, low: str) -> dict[str, Any]:
    """Busiest/quietest key of every histogram, first-seen key winning ties."""
    out: dict[str, Any] = {}
    for suffix, name in (
        ("hour", "hourly_activity"),
        ("day", "daily_activity"),
        ("date", "daily_activity_by_date"),
        ("month", "monthly_activity"),
        ("year", "yearly_activity"),
    ):
        out[f"{high}_{suffix}"] = _busiest(histograms[name])
        out[f"{low}_{suffix}"] = _quietest(histograms[name])
    return out


def _call_stats(messages: Iterable[Message]) -> dict[str, int]:
    stats = {"total": 0, "voice": 0, "video": 0, "missed": 0, "total_duration": 0}
    for msg in messages:
        call = msg.message.call
        if msg.message.type != CALL or call is None:
            continue
        stats["total"] += 1
        stats["voice"] += call.type == "voice"
        stats["video"] += call.type == "video"
        stats["missed"] += bool(call.missed)
        stats["total_duration"] += call.duration or 0
    return stats


def _poll_counts(messages: Iterable[Message]) -> tuple[int, int]:
    polls = votes = 0
    for msg in messages:
        if msg.message.type == POLL and msg.message.poll is not None:
            polls += 1
            votes += msg.message.poll.total_votes
    return polls, votes


def _distribution(counts: dict[str, int], total: int) -> dict[str, dict[str, float]]:
    return {
        key: {"count": count, "percentage": _safe_div(count * 100, total)}
        for key, count in counts.items()
    }


def _group_by_author(messages: Iterable[Message]) -> dict[str, list[Message]]:
    groups: dict[str, list[Message]] = {}
    for msg in messages:
        groups.setdefault(msg.author, []).append(msg)
    return groups


def tokenize_words(text: str) -> list[str]:
    """Lowercase, strip punctuation and keep words longer than two characters."""
    return [w for w in _WORD_STRIP.sub("", text.lower()).split() if len(w) > 2]


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class Stats:
    """Cached statistics over one message collection.

    Args:
        messages: Parsed messages, in any order.
        reference_time: Fixed "now" for relative windows, streaks, decay and
            weekly activity.  Defaults to the wall clock at query time.
        points_config: Scoring table used for every point total.
    """

    def __init__(
        self,
        messages: Iterable[Message],
        reference_time: datetime | None = None,
        points_config: PointsConfig = DEFAULT_POINTS_CONFIG,
    ) -> None:
        self.messages: list[Message] = list(messages)
        self.reference_time = reference_time
        self.points_config = points_config
        self._cache: dict[str, Any] = {}

    # -- cache ---------------------------------------------------------------

    def clear_cache(self) -> None:
        """Drop every memoized result."""
        logger.debug("Clearing stats cache (%d entries)", len(self._cache))
        self._cache.clear()

    def set_messages(self, messages: Iterable[Message]) -> None:
        """Replace the message collection and invalidate the cache."""
        self.messages = list(messages)
        self.clear_cache()

    @staticmethod
    def cache_key(operation: str, params: Mapping[str, Any]) -> str:
        return f"{operation}:{json.dumps(params, sort_keys=True, default=str)}"

    def _cached(
        self,
        operation: str,
        params: Mapping[str, Any],
        compute: Callable[[], Any],
        copier: Callable[[Any], Any] = copy.deepcopy,
    ) -> Any:
        """Memoize ``compute()`` under *operation* and *params*.

        Callers always receive ``copier(result)``, never the stored object,
        so mutating a returned result cannot change later queries.
        """
        key = self.cache_key(operation, params)
        if key in self._cache:
            logger.debug("Cache hit: %s", key)
        else:
            logger.debug("Cache miss: %s", key)
            self._cache[key] = compute()
        return copier(self._cache[key])

    # -- helpers -------------------------------------------------------------

    def now(self) -> datetime:
        return self.reference_time if self.reference_time is not None else datetime.now().replace(microsecond=0)

    def _points(self, msg: Message) -> float:
        return calc_points(msg, self.points_config)

    def _activity_score(self, messages: Sequence[Message], config: ActivityScoreConfig) -> float:
        if not messages:
            return 0.0
        now = self.now()
        total_points = sum(self._points(m) for m in messages)
        decay = sum(
            math.exp(-config.time_decay_factor * (now - m.timestamp).total_seconds() / 86400)
            for m in messages
        )
        unique_days = len({m.timestamp.date() for m in messages})
        return (
            len(messages) * config.message_weight
            + total_points * config.point_weight
            + decay
            + unique_days * config.unique_day_bonus
        )

    def _ranking_value(self, messages: Sequence[Message], config: RankingConfig) -> float:
        if config.ranking_type == "message_points":
            return sum(self._points(m) for m in messages)
        if config.ranking_type == "activity_score":
            return self._activity_score(messages, config.activity_score)
        return len(messages)

    # -- queries -------------------------------------------------------------

    def get_filtered_data(self, config: StatsConfig | None = None) -> list[Message]:
        """Return the messages inside the window described by *config*.

        Messages are immutable, so the caller gets a fresh list holding the
        cached message objects.
        """
        config = config or StatsConfig()

        def compute() -> list[Message]:
            start, end = resolve_window(config, self.now())
            logger.debug(
                "Resolved %s window: %s .. %s (include_deleted=%s)",
                config.time_period, start, end, config.include_deleted,
            )
            predicate = build_window_filter(start, end, config.include_deleted)
            return evaluate(self.messages, predicate) if predicate else list(self.messages)

        return self._cached("filtered_data", StatsConfig.cache_params(config), compute, copier=list)

    def get_user_stats(self, author: str, config: StatsConfig | None = None) -> dict[str, Any]:
        """Compute statistics for one author inside a time window.

        Args:
            author: Exact author name.
            config: Window and activity score options; defaults to the
                whole chat.

        Returns:
            Dict with message/point totals, activity score, type and status
            counts, first/last message, active days, streaks, busiest and
            quietest buckets, the five activity histograms, call, poll and
            content aggregates.

        Raises:
            NotFoundError: If *author* has no messages in the window.
        """
        config = config or StatsConfig()
        params = dict(StatsConfig.cache_params(config), author=author)
        return self._cached("user_stats", params, lambda: self._compute_user_stats(author, config))

    def _compute_user_stats(self, author: str, config: StatsConfig) -> dict[str, Any]:
        messages = [m for m in self.get_filtered_data(config) if m.author == author]
        if not messages:
            raise NotFoundError(author)
        messages.sort(key=lambda m: m.timestamp)

        message_types = {t: 0 for t in CONTENT_TYPES}
        status_counts = {s: 0 for s in MESSAGE_STATUSES}
        total_points = 0.0
        total_chars = 0
        longest = ""
        shortest: str | None = None
        for msg in messages:
            info = msg.message
            total_points += self._points(msg)
            message_types[info.type] = message_types.get(info.type, 0) + 1
            status_counts[info.status] = status_counts.get(info.status, 0) + 1
            if info.content:
                total_chars += len(info.content)
                if len(info.content) > len(longest):
                    longest = info.content
                if shortest is None or len(info.content) < len(shortest):
                    shortest = info.content

        first, last = messages[0].timestamp, messages[-1].timestamp
        active_dates = {m.timestamp.date() for m in messages}
        days_spanned = (last.date() - first.date()).days + 1
        longest_streak, current_streak = compute_streaks(active_dates, self.now().date())
        histograms = activity_histograms(messages)
        polls_created, poll_votes = _poll_counts(messages)

        stats = {
            "author": author,
            "message_count": len(messages),
            "total_points": total_points,
            "activity_score": self._activity_score(messages, config.activity_score),
            "average_points_per_message": _safe_div(total_points, len(messages)),
            "message_types": message_types,
            "status_counts": status_counts,
            "first_message": first,
            "last_message": last,
            "active_days": len(active_dates),
            "average_messages_per_day": _safe_div(len(messages), days_spanned),
            "longest_streak": longest_streak,
            "current_streak": current_streak,
        }
        stats.update(_extremes(histograms, "most_active", "most_quiet"))
        stats.update(histograms)
        stats["call_stats"] = _call_stats(messages)
        stats["poll_stats"] = {"created": polls_created, "total_votes": poll_votes}
        stats["content_stats"] = {
            "total_characters": total_chars,
            "average_characters_per_message": _safe_div(total_chars, len(messages)),
            "longest_message": longest,
            "shortest_message": shortest or "",
        }
        return stats

    def get_rankings(self, config: RankingConfig | None = None) -> list[dict[str, Any]]:
        """Rank every author in the window by the configured metric.

        Entries are sorted by value descending; equal values keep the order
        in which their authors first appear.  Ranks are 1-based positions
        and ``percentage`` is the share of the total over all authors,
        computed before ``limit`` is applied.
        """
        config = config or RankingConfig()
        return self._cached(
            "rankings", config.cache_params(), lambda: self._rank(self.get_filtered_data(config), config)
        )

    def _rank(self, messages: Iterable[Message], config: RankingConfig) -> list[dict[str, Any]]:
        groups = _group_by_author(messages)
        values = [(author, self._ranking_value(msgs, config)) for author, msgs in groups.items()]
        values.sort(key=lambda pair: pair[1], reverse=True)
        total = sum(v for _, v in values)
        entries = [
            {
                "rank": i,
                "author": author,
                "value": value,
                "percentage": _safe_div(value * 100, total),
            }
            for i, (author, value) in enumerate(values, 1)
        ]
        return entries if config.limit is None else entries[: config.limit]

    def get_overall_stats(self, config: StatsConfig | None = None) -> dict[str, Any]:
        """Aggregate statistics across every author in the window.

        Raises:
            EmptyWindowError: If the window holds no messages.
        """
        config = config or StatsConfig()
        return self._cached(
            "overall_stats", StatsConfig.cache_params(config), lambda: self._compute_overall_stats(config)
        )

    def _compute_overall_stats(self, config: StatsConfig) -> dict[str, Any]:
        messages = self.get_filtered_data(config)
        if not messages:
            raise EmptyWindowError(f"No messages in the {config.time_period} window")

        total = len(messages)
        authors = list(_group_by_author(messages))
        total_points = sum(self._points(m) for m in messages)

        type_counts = {t: 0 for t in CONTENT_TYPES}
        status_counts = {s: 0 for s in MESSAGE_STATUSES}
        total_chars = 0
        total_words = 0
        longest = {"author": "", "content": "", "length": 0}
        shortest: dict[str, Any] | None = None
        for msg in messages:
            info = msg.message
            type_counts[info.type] = type_counts.get(info.type, 0) + 1
            status_counts[info.status] = status_counts.get(info.status, 0) + 1
            if not info.content:
                continue
            length = len(info.content)
            total_chars += length
            total_words += len(info.content.split())
            if length > longest["length"]:
                longest = {"author": msg.author, "content": info.content, "length": length}
            if info.type == TEXT and (shortest is None or length < shortest["length"]):
                shortest = {"author": msg.author, "content": info.content, "length": length}

        ordered = sorted(messages, key=lambda m: m.timestamp)
        start, end = ordered[0].timestamp, ordered[-1].timestamp
        histograms = activity_histograms(messages)
        calls = _call_stats(messages)
        polls, votes = _poll_counts(messages)

        fun = _extremes(histograms, "busiest", "quietest")
        fun["most_active_user"] = self.get_rankings(RankingConfig.from_stats(config, "message_count"))[0]["author"]
        fun["most_valuable_user"] = self.get_rankings(RankingConfig.from_stats(config, "message_points"))[0]["author"]
        fun["longest_message"] = longest
        fun["shortest_message"] = shortest or {"author": "", "content": "", "length": 0}
        fun.update(self._top_holders(authors, config))

        stats = {
            "total_messages": total,
            "total_users": len(authors),
            "total_points": total_points,
            "average_points_per_message": _safe_div(total_points, total),
            "date_range": {
                "start": start,
                "end": end,
                "duration": (end - start).total_seconds() / 86400,
            },
            "message_type_distribution": _distribution(type_counts, total),
            "status_distribution": _distribution(status_counts, total),
        }
        stats.update(histograms)
        stats["call_stats"] = dict(calls, average_duration=_safe_div(calls["total_duration"], calls["total"]))
        stats["poll_stats"] = {
            "total": polls,
            "total_votes": votes,
            "average_votes_per_poll": _safe_div(votes, polls),
        }
        stats["content_stats"] = {
            "total_characters": total_chars,
            "average_characters_per_message": _safe_div(total_chars, total),
            "total_words": total_words,
            "average_words_per_message": _safe_div(total_words, total),
        }
        stats["fun_stats"] = fun
        return stats

    def _top_holders(self, authors: Sequence[str], config: StatsConfig) -> dict[str, dict[str, Any]]:
        """Longest streak, most calls and most polls, scanning per-user stats."""
        streak = {"author": "", "streak": 0}
        calls = {"author": "", "calls": 0}
        polls = {"author": "", "polls": 0}
        for i, author in enumerate(authors):
            user = self.get_user_stats(author, config)
            if i == 0 or user["longest_streak"] > streak["streak"]:
                streak = {"author": author, "streak": user["longest_streak"]}
            if i == 0 or user["call_stats"]["total"] > calls["calls"]:
                calls = {"author": author, "calls": user["call_stats"]["total"]}
            if i == 0 or user["poll_stats"]["created"] > polls["polls"]:
                polls = {"author": author, "polls": user["poll_stats"]["created"]}
        return {"message_streak": streak, "call_master": calls, "poll_creator": polls}

    def get_activity_heatmap(self, config: StatsConfig | None = None) -> dict[str, dict]:
        """Return the five activity histograms plus a ``"<Weekday>-<hour>"`` grid."""
        config = config or StatsConfig()

        def compute() -> dict[str, dict]:
            messages = self.get_filtered_data(config)
            heatmap = activity_histograms(messages)
            combined: dict[str, int] = {}
            for msg in messages:
                key = f"{WEEKDAY_NAMES[msg.timestamp.weekday()]}-{msg.timestamp.hour}"
                combined[key] = combined.get(key, 0) + 1
            heatmap["combined"] = combined
            return heatmap

        return self._cached("activity_heatmap", StatsConfig.cache_params(config), compute)

    def week_windows(self) -> list[tuple[datetime, datetime]]:
        """The last four 7-day windows ending at now, oldest first.

        Week *k* (0 = newest) spans ``(now - 7(k+1) days, now - 7k days]``;
        the start is moved one second forward so the inclusive filter
        bounds never overlap.
        """
        now = self.now()
        windows = []
        for k in range(len(WEEK_WEIGHTS)):
            end = now - timedelta(days=7 * k)
            start = end - timedelta(days=7) + timedelta(seconds=1)
            windows.insert(0, (start, end))
        return windows

    def check_activity(
        self,
        ranking_type: str = "message_count",
        thresholds: Mapping[str, Sequence[float]] | None = None,
    ) -> list[dict[str, Any]]:
        """Categorise every author by their weighted value over the last four weeks.

        Args:
            ranking_type: Metric to rank each week by.
            thresholds: Optional per-ranking-type override of the four
                descending category thresholds.

        Returns:
            List of dicts (author, category, average_value, weighted_average,
            weekly_breakdown) sorted by weighted_average descending.

        Raises:
            ValueError: On an unknown ranking type or malformed thresholds.
        """
        if ranking_type not in RANKING_TYPES:
            raise ValueError(f"Unknown ranking type: {ranking_type!r}")
        limits = tuple((thresholds or {}).get(ranking_type) or DEFAULT_ACTIVITY_THRESHOLDS[ranking_type])
        if len(limits) != 4 or any(a < b for a, b in zip(limits, limits[1:])):
            raise ValueError(f"Thresholds must be four descending numbers, got {list(limits)}")

        authors = list(_group_by_author(self.messages))
        if not authors:
            return []

        # Week windows move with the clock, so they bypass the cache.
        config = RankingConfig(ranking_type=ranking_type)
        weekly_rankings = []
        for start, end in self.week_windows():
            window = evaluate(self.messages, build_window_filter(start, end))
            by_author = {e["author"]: e for e in self._rank(window, config)}
            weekly_rankings.append((start, end, by_author))

        results = []
        for author in authors:
            breakdown = []
            weighted_sum = weight_total = total = 0.0
            for week, ((start, end, by_author), weight) in enumerate(zip(weekly_rankings, WEEK_WEIGHTS), 1):
                entry = by_author.get(author)
                rank, value = (entry["rank"], entry["value"]) if entry and entry["value"] > 0 else (0, 0)
                breakdown.append({"week": week, "start": start, "end": end, "rank": rank, "value": value})
                if value > 0:
                    total += value
                    weighted_sum += value * weight
                    weight_total += weight
            results.append(
                {
                    "author": author,
                    "category": "",
                    "average_value": total / len(WEEK_WEIGHTS),
                    "weighted_average": _safe_div(weighted_sum, weight_total),
                    "weekly_breakdown": breakdown,
                }
            )

        results.sort(key=lambda r: r["weighted_average"], reverse=True)
        for result in results:
            result["category"] = categorize(result["weighted_average"], limits)
        logger.debug("Categorised %d authors by %s", len(results), ranking_type)
        return results

    def get_comparative_stats(self, first: RankingConfig, second: RankingConfig) -> dict[str, Any]:
        """Compare two windows.

        Changes are percentages relative to *first*.  ``top_user_change``
        records whether the top-ranked author changed; its ``change`` is
        the value change of that author and stays 0 when the author changed.

        Raises:
            EmptyWindowError: If either window holds no messages.
        """
        stats1 = self.get_overall_stats(first)
        stats2 = self.get_overall_stats(second)
        top1 = self.get_rankings(first)
        top2 = self.get_rankings(second)

        previous = top1[0]["author"] if top1 else ""
        top_change = {
            "author": top2[0]["author"] if top2 else "",
            "previous_author": previous,
            "changed": bool(top1 and top2) and previous != top2[0]["author"],
            "change": 0.0,
        }
        if top1 and top2 and not top_change["changed"]:
            top_change["change"] = _pct_change(top1[0]["value"], top2[0]["value"])

        return {
            "first": stats1,
            "second": stats2,
            "changes": {
                "message_count_change": _pct_change(stats1["total_messages"], stats2["total_messages"]),
                "user_count_change": _pct_change(stats1["total_users"], stats2["total_users"]),
                "point_change": _pct_change(stats1["total_points"], stats2["total_points"]),
                "top_user_change": top_change,
            },
        }

    def get_trending_topics(self, config: StatsConfig | None = None, limit: int = 10) -> list[dict[str, Any]]:
        """Most frequent words in non-deleted text messages.

        Returns:
            Up to *limit* dicts (word, count, percentage of all counted
            words), most frequent first.
        """
        config = config or StatsConfig()

        def compute() -> list[dict[str, Any]]:
            counts: dict[str, int] = {}
            for msg in self.get_filtered_data(config):
                info = msg.message
                if info.type != TEXT or not info.content or info.status == DELETED:
                    continue
                for word in tokenize_words(info.content):
                    counts[word] = counts.get(word, 0) + 1
            total = sum(counts.values())
            ranked = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)[:limit]
            return [
                {"word": word, "count": count, "percentage": _safe_div(count * 100, total)}
                for word, count in ranked
            ]

        params = dict(StatsConfig.cache_params(config), limit=limit)
        return self._cached("trending_topics", params, compute)


def _pct_change(old: float, new: float) -> float:
    return _safe_div((new - old) * 100, old)


def categorize(value: float, thresholds: Sequence[float]) -> str:
    """Map a weighted weekly value onto an activity category."""
    for category, minimum in zip(ACTIVITY_CATEGORIES, thresholds):
        if value >= minimum:
            return category
    return ACTIVITY_CATEGORIES[-1]
