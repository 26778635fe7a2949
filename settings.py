"""Configuration loaded from the environment and an optional ``.env`` file."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from dotenv import load_dotenv

from stats import DEFAULT_ACTIVITY_THRESHOLDS, RANKING_TYPES

logger = logging.getLogger(__name__)

ENV_SELF_NAMES = "CHAT_STATS_SELF_NAMES"
ENV_GROUP_NAME = "CHAT_STATS_GROUP_NAME"
ENV_AI_NAME = "CHAT_STATS_AI_NAME"
ENV_REMOVE_USERS = "CHAT_STATS_REMOVE_USERS"
ENV_MAP_USER_NAMES = "CHAT_STATS_MAP_USER_NAMES"
ENV_REPORT_RANKING_TYPE = "CHAT_STATS_REPORT_RANKING_TYPE"
ENV_LOG_LEVEL = "CHAT_STATS_LOG_LEVEL"

DEFAULT_LOG_LEVEL = "WARNING"


@dataclass(frozen=True)
class ParserSettings:
    """Author handling applied while turning a transcript into messages.

    Attributes:
        self_names: Aliases of the person who exported the chat.  The
            first one replaces the literal ``you`` author.
        excluded_authors: Pseudo-authors dropped entirely (group title,
            assistant bots).
    """

    self_names: tuple[str, ...] = ()
    excluded_authors: tuple[str, ...] = ()

    @property
    def self_name(self) -> str | None:
        return self.self_names[0] if self.self_names else None


@dataclass(frozen=True)
class ActivityReportConfig:
    """Options of the activity category report."""

    ranking_type: str = "message_count"
    thresholds: Mapping[str, tuple[float, ...]] = field(
        default_factory=lambda: MappingProxyType(dict(DEFAULT_ACTIVITY_THRESHOLDS))
    )
    remove_users: tuple[str, ...] = ()
    map_user_names: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self) -> None:
        if self.ranking_type not in RANKING_TYPES:
            raise ValueError(f"Unknown ranking type for the activity report: {self.ranking_type!r}")


@dataclass(frozen=True)
class Settings:
    parser: ParserSettings = field(default_factory=ParserSettings)
    activity_report: ActivityReportConfig = field(default_factory=ActivityReportConfig)
    log_level: str = DEFAULT_LOG_LEVEL


def load_environment(env_file: str | None = None) -> None:
    """Load variables from *env_file* (or a ``.env`` found nearby) if present.

    Variables already set in the process environment win.
    """
    load_dotenv(env_file)


def parse_list(value: str | None) -> tuple[str, ...]:
    """Split a comma-separated value, dropping blanks."""
    if not value:
        return ()
    return tuple(item.strip() for item in value.split(",") if item.strip())


def parse_name_map(value: str | None) -> dict[str, str]:
    """Parse ``Old=New;Other=Renamed`` into a dict.

    Entries without ``=`` or with an empty side are skipped with a warning.
    """
    mapping: dict[str, str] = {}
    if not value:
        return mapping
    for entry in value.split(";"):
        if not entry.strip():
            continue
        old, sep, new = entry.partition("=")
        if not sep or not old.strip() or not new.strip():
            logger.warning("Ignoring malformed %s entry: %r", ENV_MAP_USER_NAMES, entry)
            continue
        mapping[old.strip()] = new.strip()
    return mapping


def load_settings(env_file: str | None = None) -> Settings:
    """Build ``Settings`` from the environment.

    Args:
        env_file: Optional path of a dotenv file loaded before reading.

    Raises:
        ValueError: If the configured report ranking type is unknown.
    """
    load_environment(env_file)

    excluded = tuple(
        name for name in (os.getenv(ENV_GROUP_NAME, "").strip(), os.getenv(ENV_AI_NAME, "").strip()) if name
    )
    parser = ParserSettings(
        self_names=parse_list(os.getenv(ENV_SELF_NAMES)),
        excluded_authors=excluded,
    )
    report = ActivityReportConfig(
        ranking_type=os.getenv(ENV_REPORT_RANKING_TYPE, "message_count").strip() or "message_count",
        remove_users=parse_list(os.getenv(ENV_REMOVE_USERS)),
        map_user_names=MappingProxyType(parse_name_map(os.getenv(ENV_MAP_USER_NAMES))),
    )
    return Settings(
        parser=parser,
        activity_report=report,
        log_level=os.getenv(ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL).strip().upper() or DEFAULT_LOG_LEVEL,
    )
