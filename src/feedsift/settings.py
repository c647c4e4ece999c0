"""Static configuration for feedsift.

All user-editable settings (user rules, feeds, validation, report, logging)
live in a single JSON file for quick edits without touching Python.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import json
import os
from typing import Optional

from dotenv import load_dotenv

from feedsift.adapters.json_mapper import build_feed, normalize_rules
from feedsift.core.config import ReportConfig, ValidationConfig
from feedsift.core.models import Feed, User
from feedsift.core.validator import is_valid_url

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))

# Used when neither --config nor FEEDSIFT_CONFIG is given.
DEFAULT_CONFIG_PATH = os.path.join(PROJECT_ROOT, "config.json")

CONFIG_ENV_VAR = "FEEDSIFT_CONFIG"


@dataclass(frozen=True)
class Settings:
    """Everything read from config.json, already normalized."""

    config_path: str
    user: User
    feeds: dict[int, Feed]
    validation: ValidationConfig = ValidationConfig()
    report: ReportConfig = ReportConfig()
    logging: dict = field(default_factory=dict)


def resolve_config_path(path: Optional[str] = None) -> str:
    """Explicit path first, then FEEDSIFT_CONFIG (.env aware), then the default."""

    if path:
        return path
    load_dotenv()
    return os.getenv(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH


def _load_json_config(path: str) -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(path):
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, "r", encoding="utf-8") as handle:
        config = json.load(handle)
    if not isinstance(config, dict):
        raise ValueError(f"Config root must be a JSON object: {path}")
    return config


def _section(config: dict, name: str, expected: type, default):
    """Return ``config[name]`` after checking its JSON type."""

    value = config.get(name, default)
    if not isinstance(value, expected):
        kind = "an object" if expected is dict else "a list"
        raise ValueError(f"config.{name} must be {kind}")
    return value


def _normalize_user(raw_user: dict) -> User:
    return User(
        block_filter_entry_rules=normalize_rules(raw_user.get("block_rules")),
        keep_filter_entry_rules=normalize_rules(raw_user.get("keep_rules")),
    )


def _normalize_feeds(raw_feeds: list) -> dict[int, Feed]:
    """Build enabled feeds keyed by id, rejecting duplicates and bad URLs."""

    feeds: dict[int, Feed] = {}
    for index, raw_feed in enumerate(raw_feeds):
        if not isinstance(raw_feed, dict):
            raise ValueError(f"config.feeds[{index}] must be an object")
        if not raw_feed.get("enabled", True):
            continue
        feed = build_feed(raw_feed)
        if feed.id in feeds:
            raise ValueError(f"Duplicate feed id in config: {feed.id}")
        if not is_valid_url(feed.feed_url):
            raise ValueError(f"Feed {feed.id} has an invalid feed_url: {feed.feed_url}")
        feeds[feed.id] = feed
    return feeds


def _normalize_logging(raw_logging: dict) -> dict:
    for name in ("file", "redact"):
        if not isinstance(raw_logging.get(name, {}), dict):
            raise ValueError(f"config.logging.{name} must be an object")
    if not isinstance(raw_logging.get("redact", {}).get("patterns", []), list):
        raise ValueError("config.logging.redact.patterns must be a list")
    return raw_logging


def load_settings(path: Optional[str] = None) -> Settings:
    """Read and normalize the config file."""

    config_path = resolve_config_path(path)
    config = _load_json_config(config_path)

    _validation = _section(config, "validation", dict, {})
    validation = ValidationConfig(strict_dates=bool(_validation.get("strict_dates", False)))

    # Snippet size bounds entry titles in every report format.
    _report = _section(config, "report", dict, {})
    try:
        snippet_chars = int(_report.get("snippet_chars", 80))
    except (TypeError, ValueError) as exc:
        raise ValueError("report.snippet_chars must be an integer") from exc
    report = ReportConfig(format=str(_report.get("format", "table")), snippet_chars=snippet_chars)

    return Settings(
        config_path=config_path,
        user=_normalize_user(_section(config, "user", dict, {})),
        feeds=_normalize_feeds(_section(config, "feeds", list, [])),
        validation=validation,
        report=report,
        logging=_normalize_logging(_section(config, "logging", dict, {})),
    )
