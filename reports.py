"""Plain-text report rendering for stats results.

Every function takes the dicts produced by ``stats.Stats`` and returns a
string with chat-friendly ``*bold*`` and ``_italic_`` markers.  Numbers
use German grouping (``1.234``, ``1.234,56``) and dates ``DD.MM.YY``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Mapping, Sequence

from stats import ACTIVITY_CATEGORIES, WEEKDAY_NAMES

RANKING_TITLES = {
    "message_count": "MOST MESSAGES",
    "message_points": "MOST POINTS",
    "activity_score": "HIGHEST ACTIVITY SCORE",
}

_TYPE_LABELS = {"video note": "Video note", "contact": "Contact share"}
_STATUS_LABELS = {"active": "Not edited/Not deleted"}

RED_ZONE_NOTE = '_Note: Users on the "Red Zone" must be aware the risk of getting out of the group_'


def format_number(value: float, decimals: int = 2) -> str:
    """Format *value* with ``.`` thousands and ``,`` decimal separators.

    Integral values carry no decimal part; others are rounded to
    *decimals* places with trailing zeros dropped.

    >>> format_number(1234567)
    '1.234.567'
    >>> format_number(1234.5)
    '1.234,5'
    """
    if float(value).is_integer():
        text = f"{int(value):,}"
    else:
        text = f"{value:,.{decimals}f}".rstrip("0").rstrip(".")
    return text.translate(str.maketrans(",.", ".,"))


def format_date(moment: datetime) -> str:
    return moment.strftime("%d.%m.%y")


def format_hour_range(hour: int) -> str:
    return f"{hour:02d}:00-{(hour + 1) % 24:02d}:00"


def _label(key: str, overrides: Mapping[str, str]) -> str:
    return overrides.get(key, key[:1].upper() + key[1:])


def _by_count_desc(histogram: Mapping[Any, int]) -> list[tuple[Any, int]]:
    return sorted(histogram.items(), key=lambda kv: kv[1], reverse=True)


def format_overall_report(stats: dict[str, Any], top_months: int = 5) -> str:
    """Render ``Stats.get_overall_stats`` output."""
    date_range = stats["date_range"]
    lines = [
        "*=== OVERALL STATISTICS ===*",
        "",
        f"*Date range:* {format_date(date_range['start'])} - {format_date(date_range['end'])}",
        f"*Total messages:* {format_number(stats['total_messages'])}",
        f"*Total users:* {format_number(stats['total_users'])}",
        f"*Total points:* {format_number(stats['total_points'])}",
        f"*Average points per message:* {format_number(stats['average_points_per_message'])}",
        f"*Total duration:* {round(date_range['duration'])} days",
        "",
        "*== Message Type Distribution ==*",
    ]
    types = sorted(stats["message_type_distribution"].items(), key=lambda kv: kv[1]["count"], reverse=True)
    for i, (name, data) in enumerate(types, 1):
        lines.append(
            f"{i}. {_label(name, _TYPE_LABELS)}: {format_number(data['count'])} "
            f"({format_number(data['percentage'])}%)"
        )

    lines += ["", "*== Status Distribution ==*"]
    statuses = sorted(stats["status_distribution"].items(), key=lambda kv: kv[1]["count"], reverse=True)
    for i, (name, data) in enumerate(statuses, 1):
        lines.append(
            f"{i}. {_label(name, _STATUS_LABELS)}: {format_number(data['count'])} "
            f"({format_number(data['percentage'])}%)"
        )

    lines += ["", "*== Hourly Activity ==*"]
    for hour in range(24):
        lines.append(f"- {format_hour_range(hour)} > {format_number(stats['hourly_activity'].get(hour, 0))}")

    lines += ["", "*== Daily Activity (Days of Week) ==*"]
    for day, count in _by_count_desc(stats["daily_activity"]):
        lines.append(f"- {day} > {format_number(count)}")

    lines += ["", f"*== Top {top_months} Active Months ==*"]
    for i, (month, count) in enumerate(_by_count_desc(stats["monthly_activity"])[:top_months], 1):
        lines.append(f"{i}. {month} > {format_number(count)}")

    lines += ["", "*== Yearly Activity ==*"]
    for year, count in _by_count_desc(stats["yearly_activity"]):
        lines.append(f"- {year} > {format_number(count)}")

    calls = stats["call_stats"]
    polls = stats["poll_stats"]
    content = stats["content_stats"]
    lines += [
        "",
        "*== Call Statistics ==*",
        f"*Total calls:* {calls['total']}",
        f"*Voice/Video calls:* {calls['voice']}/{calls['video']}",
        f"*Missed calls:* {calls['missed']}",
        f"*Total duration:* {format_number(calls['total_duration'])} seconds",
        f"*Average duration:* {format_number(calls['average_duration'])} seconds",
        "",
        "*== Poll Statistics ==*",
        f"*Total polls:* {polls['total']}",
        f"*Total votes:* {format_number(polls['total_votes'])}",
        f"*Average votes per poll:* {format_number(polls['average_votes_per_poll'])}",
        "",
        "*== Content Statistics ==*",
        f"*Total characters:* {format_number(content['total_characters'])}",
        f"*Average characters per message:* {format_number(content['average_characters_per_message'])}",
        f"*Total words:* {format_number(content['total_words'])}",
        f"*Average words per message:* {format_number(content['average_words_per_message'])}",
        "",
    ]
    lines += _fun_stats_lines(stats["fun_stats"])
    return "\n".join(lines)


def _fun_stats_lines(fun: dict[str, Any]) -> list[str]:
    longest = fun["longest_message"]
    shortest = fun["shortest_message"]
    return [
        "*== Other Statistics ==*",
        f"*Busiest hour:* {format_hour_range(fun['busiest_hour'])}",
        f"*Busiest day:* {fun['busiest_day']}",
        f"*Busiest date:* {fun['busiest_date']}",
        f"*Busiest month:* {fun['busiest_month']}",
        f"*Busiest year:* {fun['busiest_year']}",
        f"*Quietest hour:* {format_hour_range(fun['quietest_hour'])}",
        f"*Quietest day:* {fun['quietest_day']}",
        f"*Quietest date:* {fun['quietest_date']}",
        f"*Quietest month:* {fun['quietest_month']}",
        f"*Quietest year:* {fun['quietest_year']}",
        f"*Most active user:* {fun['most_active_user']}",
        f"*Most valuable user:* {fun['most_valuable_user']}",
        f"*Longest message:* by {longest['author']}, {format_number(longest['length'])} characters",
        f"*Shortest message:* by {shortest['author']}, {format_number(shortest['length'])} characters",
        f"*Longest streak:* by {fun['message_streak']['author']}, {fun['message_streak']['streak']} days",
        f"*Most calls:* by {fun['call_master']['author']}, {fun['call_master']['calls']} calls",
        f"*Most polls:* by {fun['poll_creator']['author']}, {fun['poll_creator']['polls']} polls",
    ]


def format_user_report(user: dict[str, Any]) -> str:
    """Render ``Stats.get_user_stats`` output for one author."""
    calls = user["call_stats"]
    content = user["content_stats"]
    lines = [
        f"*=== USER STATISTICS: {user['author']} ===*",
        "",
        f"*First message:* {format_date(user['first_message'])}",
        f"*Last message:* {format_date(user['last_message'])}",
        f"*Messages:* {format_number(user['message_count'])}",
        f"*Points:* {format_number(user['total_points'])}",
        f"*Average points per message:* {format_number(user['average_points_per_message'])}",
        f"*Activity score:* {format_number(user['activity_score'])}",
        f"*Active days:* {format_number(user['active_days'])}",
        f"*Average messages per day:* {format_number(user['average_messages_per_day'])}",
        f"*Longest streak:* {user['longest_streak']} days",
        f"*Current streak:* {user['current_streak']} days",
        "",
        "*== Message Types ==*",
    ]
    for name, count in _by_count_desc(user["message_types"]):
        if count:
            lines.append(f"- {_label(name, _TYPE_LABELS)}: {format_number(count)}")

    lines += ["", "*== Status ==*"]
    for name, count in _by_count_desc(user["status_counts"]):
        lines.append(f"- {_label(name, _STATUS_LABELS)}: {format_number(count)}")

    lines += [
        "",
        "*== Activity ==*",
        f"*Most active hour:* {format_hour_range(user['most_active_hour'])}",
        f"*Most active day:* {user['most_active_day']}",
        f"*Most active date:* {user['most_active_date']}",
        f"*Most active month:* {user['most_active_month']}",
        f"*Most active year:* {user['most_active_year']}",
        f"*Quietest hour:* {format_hour_range(user['most_quiet_hour'])}",
        f"*Quietest day:* {user['most_quiet_day']}",
        f"*Quietest date:* {user['most_quiet_date']}",
        f"*Quietest month:* {user['most_quiet_month']}",
        f"*Quietest year:* {user['most_quiet_year']}",
        "",
        "*== Calls & Polls ==*",
        f"*Calls:* {calls['total']} ({calls['voice']} voice, {calls['video']} video, {calls['missed']} missed)",
        f"*Call duration:* {format_number(calls['total_duration'])} seconds",
        f"*Polls created:* {user['poll_stats']['created']}",
        f"*Poll votes:* {format_number(user['poll_stats']['total_votes'])}",
        "",
        "*== Content ==*",
        f"*Total characters:* {format_number(content['total_characters'])}",
        f"*Average characters per message:* {format_number(content['average_characters_per_message'])}",
        f"*Longest message:* {len(content['longest_message'])} characters",
        f"*Shortest message:* {len(content['shortest_message'])} characters",
    ]
    return "\n".join(lines)


def format_rankings_report(
    rankings: Sequence[dict[str, Any]],
    ranking_type: str = "message_count",
    date_range: tuple[datetime, datetime] | None = None,
    limit: int = 10,
) -> str:
    """Render ``Stats.get_rankings`` output as a top-N list."""
    title = RANKING_TITLES.get(ranking_type, RANKING_TITLES["message_count"])
    if date_range is None:
        range_text = "No data available"
    else:
        range_text = f"{format_date(date_range[0])} - {format_date(date_range[1])}"

    lines = [f"=== TOP {limit} USERS WITH {title} ===", f"_Date range: {range_text}_", ""]
    for entry in rankings[:limit]:
        lines.append(
            f"{entry['rank']}. {entry['author']} - {format_number(entry['value'])} "
            f"({format_number(entry['percentage'])}%)"
        )
    return "\n".join(lines)


def apply_report_names(
    results: Iterable[dict[str, Any]],
    remove_users: Iterable[str] = (),
    map_user_names: Mapping[str, str] | None = None,
) -> list[dict[str, Any]]:
    """Drop excluded authors and rename the rest for display."""
    removed = set(remove_users)
    mapping = map_user_names or {}
    return [
        dict(r, author=mapping.get(r["author"]) or r["author"])
        for r in results
        if r["author"] not in removed
    ]


def format_categories_report(
    results: Iterable[dict[str, Any]],
    remove_users: Iterable[str] = (),
    map_user_names: Mapping[str, str] | None = None,
    today: datetime | None = None,
) -> str:
    """Render ``Stats.check_activity`` output grouped by category.

    Args:
        results: Activity results, already sorted.
        remove_users: Authors left out of the report.
        map_user_names: Display names keyed by original author name.
        today: Date printed in the header; defaults to now.
    """
    grouped: dict[str, list[str]] = {c: [] for c in ACTIVITY_CATEGORIES}
    for r in apply_report_names(results, remove_users, map_user_names):
        category = r["category"] if r["category"] in grouped else ACTIVITY_CATEGORIES[-1]
        grouped[category].append(r["author"])

    lines = ["*=== Activity Report ===*", f"_Date: {format_date(today or datetime.now())}_", ""]
    for category in ACTIVITY_CATEGORIES:
        lines.append(f"*{category}:*")
        lines.append(", ".join(grouped[category]) if grouped[category] else "-- No users --")
        lines.append("")
    lines.append(RED_ZONE_NOTE)
    return "\n".join(lines)


def format_activity_breakdown(
    results: Iterable[dict[str, Any]],
    remove_users: Iterable[str] = (),
    map_user_names: Mapping[str, str] | None = None,
) -> str:
    """Render the per-week values behind each activity category."""
    lines = ["*=== Weekly Activity Breakdown ===*", ""]
    for r in apply_report_names(results, remove_users, map_user_names):
        weeks = ", ".join(
            f"W{w['week']} {format_number(w['value'])}" + (f" (#{w['rank']})" if w["rank"] else "")
            for w in r["weekly_breakdown"]
        )
        lines.append(
            f"{r['author']} [{r['category']}]: weighted {format_number(r['weighted_average'])}, "
            f"average {format_number(r['average_value'])} | {weeks}"
        )
    return "\n".join(lines)


def _signed_percent(value: float) -> str:
    sign = "+" if value > 0 else ""
    return f"{sign}{format_number(value)}%"


def format_comparison_report(comparison: dict[str, Any]) -> str:
    """Render ``Stats.get_comparative_stats`` output."""
    first, second = comparison["first"], comparison["second"]
    changes = comparison["changes"]
    top = changes["top_user_change"]
    if top.get("changed"):
        top_text = f"{top['author']} (new, was {top['previous_author']})"
    else:
        top_text = f"{top['author']} ({_signed_percent(top['change'])})"

    def period(stats: dict[str, Any]) -> str:
        rng = stats["date_range"]
        return f"{format_date(rng['start'])} - {format_date(rng['end'])}"

    return "\n".join(
        [
            "*=== PERIOD COMPARISON ===*",
            "",
            f"*First period:* {period(first)}",
            f"*Second period:* {period(second)}",
            "",
            f"*Messages:* {format_number(first['total_messages'])} -> {format_number(second['total_messages'])}"
            f" ({_signed_percent(changes['message_count_change'])})",
            f"*Users:* {format_number(first['total_users'])} -> {format_number(second['total_users'])}"
            f" ({_signed_percent(changes['user_count_change'])})",
            f"*Points:* {format_number(first['total_points'])} -> {format_number(second['total_points'])}"
            f" ({_signed_percent(changes['point_change'])})",
            f"*Top user:* {top_text}",
        ]
    )


def format_heatmap_report(heatmap: dict[str, dict]) -> str:
    """Render ``Stats.get_activity_heatmap`` as a weekday by hour grid."""
    combined = heatmap["combined"]
    lines = ["*=== ACTIVITY HEATMAP ===*", "", "Day       " + " ".join(f"{h:>3}" for h in range(24))]
    for day in WEEKDAY_NAMES:
        cells = " ".join(f"{combined.get(f'{day}-{h}', 0):>3}" for h in range(24))
        lines.append(f"{day:<10}{cells}")

    lines += ["", "*== Busiest Dates ==*"]
    for i, (day, count) in enumerate(_by_count_desc(heatmap["daily_activity_by_date"])[:5], 1):
        lines.append(f"{i}. {day} > {format_number(count)}")

    lines += ["", "*== Monthly Activity ==*"]
    for month, count in sorted(heatmap["monthly_activity"].items()):
        lines.append(f"- {month} > {format_number(count)}")

    lines += ["", "*== Yearly Activity ==*"]
    for year, count in sorted(heatmap["yearly_activity"].items()):
        lines.append(f"- {year} > {format_number(count)}")
    return "\n".join(lines)


def format_trending_report(topics: Sequence[dict[str, Any]]) -> str:
    """Render ``Stats.get_trending_topics`` output."""
    lines = ["*=== TRENDING WORDS ===*", ""]
    if not topics:
        lines.append("-- No words --")
    for i, topic in enumerate(topics, 1):
        lines.append(f"{i}. {topic['word']} - {format_number(topic['count'])} ({format_number(topic['percentage'])}%)")
    return "\n".join(lines)
