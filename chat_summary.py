"""CLI: print overall, ranking and activity reports for an exported chat.

Usage:
    python chat_summary.py chat.txt
    python chat_summary.py chat.txt --start 2024-01-01 --end 2024-03-31
    python chat_summary.py data/chat.json --ranking-type message_points --user Alice
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime, timedelta

from chat_data import get_messages_from_text, load_chat_file, load_messages, save_messages
from content_parser import Message
from errors import EmptyWindowError, NotFoundError
from reports import (
    format_categories_report,
    format_overall_report,
    format_rankings_report,
    format_user_report,
)
from settings import Settings, load_settings
from stats import RANKING_TYPES, RankingConfig, Stats, StatsConfig

logger = logging.getLogger(__name__)

RULE = "-" * 60


def _parse_date(value: str) -> datetime:
    try:
        return datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date: {value!r}. Use YYYY-MM-DD format.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Statistics and activity reports for an exported chat")
    parser.add_argument("chat_file", help="Exported chat (.txt) or a saved message collection (.json)")
    parser.add_argument("--start", type=_parse_date, help="First day of the window (YYYY-MM-DD)")
    parser.add_argument("--end", type=_parse_date, help="Last day of the window, inclusive (YYYY-MM-DD)")
    parser.add_argument("--ranking-type", choices=RANKING_TYPES, default="message_count",
                        help="Metric for the rankings report (default: message_count)")
    parser.add_argument("--limit", type=int, default=10, help="Number of ranked users to print (default: 10)")
    parser.add_argument("--user", help="Also print the statistics of this author")
    parser.add_argument("--save-json", metavar="PATH", help="Write the parsed messages to a JSON file")
    parser.add_argument("--env-file", metavar="PATH", help="Load configuration from this dotenv file")
    return parser


def load_chat(path: str, settings: Settings) -> list[Message]:
    """Load messages from an export or a saved JSON collection."""
    if path.lower().endswith(".json"):
        return load_messages(path)
    return get_messages_from_text(load_chat_file(path), settings.parser)


def window_config(
    start: datetime | None, end: datetime | None, messages: list[Message], now: datetime
) -> StatsConfig:
    """Map the --start/--end options onto a ``StatsConfig``.

    A start alone runs until *now*; an end alone starts at the first
    message.  The end date covers its whole day.
    """
    if start is None and end is None:
        return StatsConfig()
    if end is None:
        end_bound = now
    else:
        end_bound = end + timedelta(days=1) - timedelta(seconds=1)
    if start is None:
        start = min(m.timestamp for m in messages) if messages else end_bound
    return StatsConfig(time_period="custom", custom_start=start, custom_end=end_bound)


def render(stats: Stats, config: StatsConfig, args: argparse.Namespace, settings: Settings) -> str:
    ranking_config = RankingConfig.from_stats(config, args.ranking_type, limit=args.limit)
    overall = stats.get_overall_stats(config)
    rankings = stats.get_rankings(ranking_config)

    report = settings.activity_report
    activity = stats.check_activity(report.ranking_type, report.thresholds)

    sections = [
        format_overall_report(overall),
        format_rankings_report(
            rankings,
            ranking_type=args.ranking_type,
            date_range=(overall["date_range"]["start"], overall["date_range"]["end"]),
            limit=args.limit,
        ),
        format_categories_report(activity, report.remove_users, report.map_user_names, today=stats.now()),
    ]
    if args.user:
        sections.append(format_user_report(stats.get_user_stats(args.user, config)))
    return f"\n{RULE}\n".join(sections)


def main(argv: list[str] | None = None) -> None:
    """CLI entry point.  Exits with status 1 on unreadable input or an empty window."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_settings(args.env_file)
        logging.basicConfig(level=settings.log_level, format="%(levelname)s %(name)s: %(message)s")
    except ValueError as e:
        print(f"Error: invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        messages = load_chat(args.chat_file, settings)
    except FileNotFoundError:
        print(f"Error: file not found: {args.chat_file}", file=sys.stderr)
        sys.exit(1)
    except json.JSONDecodeError as e:
        print(f"Error: invalid JSON in {args.chat_file}: {e}", file=sys.stderr)
        sys.exit(1)
    except (KeyError, ValueError) as e:
        print(f"Error: invalid message collection in {args.chat_file}: {e}", file=sys.stderr)
        sys.exit(1)

    if args.save_json:
        save_messages(messages, args.save_json)
        print(f"Saved {len(messages):,} messages to {args.save_json}")

    stats = Stats(messages)
    try:
        config = window_config(args.start, args.end, messages, stats.now())
        print(render(stats, config, args, settings))
    except (ValueError, EmptyWindowError, NotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
