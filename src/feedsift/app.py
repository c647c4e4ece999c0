"""Application entry point for the feedsift command line."""

from __future__ import annotations

import argparse
import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

from art import text2art
from dotenv import load_dotenv
from rich.console import Console
from rich.text import Text

from feedsift import settings
from feedsift.adapters.json_mapper import load_entries
from feedsift.adapters.report_formatting import (
    REPORT_FORMATS,
    build_decision_table,
    format_report,
    format_rule_error,
)
from feedsift.core.models import Entry
from feedsift.core.processor import EntryProcessor
from feedsift.core.validator import RULE_SET_KINDS, validate_rule_syntax

NAME = "FEEDSIFT"
FONT = "tarty-1"

EXIT_OK = 0
EXIT_INVALID_RULES = 1
EXIT_CONFIG_ERROR = 2

LOGGER = logging.getLogger(__name__)


def _print_banner(console: Console) -> None:
    console.print(Text(text2art(NAME, font=FONT)))


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values(config: dict) -> list[str]:
    redact_cfg = config.get("redact", {}) if config else {}
    if not redact_cfg.get("enabled", False):
        return []
    values = []
    for name in redact_cfg.get("patterns", []):
        value = os.getenv(name)
        if value:
            values.append(value)
    return sorted(set(values), key=len, reverse=True)


def _log_level(config: dict) -> int:
    level_name = str(config.get("level", "INFO")).upper()
    return getattr(logging, level_name, logging.INFO)


def _build_log_handlers(config: dict) -> list[logging.Handler]:
    """Build the console and rotating-file handlers enabled in ``config``."""

    level = _log_level(config)
    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    secrets = _collect_redaction_values(config)
    formatter = _RedactingFormatter(secrets, fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    if config.get("console", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/feedsift.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        max_bytes = int(file_cfg.get("max_bytes", 5 * 1024 * 1024))
        backup_count = int(file_cfg.get("backup_count", 5))
        file_handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    return handlers


def _configure_logging(config: dict) -> None:
    if not config.get("enabled", False):
        return

    load_dotenv()
    handlers = _build_log_handlers(config)
    if not handlers:
        return

    logging.basicConfig(level=_log_level(config), handlers=handlers)


def _configured_rule_sets(app_settings: settings.Settings) -> list[tuple[str, str, str]]:
    """Return (label, kind, rules) for every non-empty configured rule set."""

    rule_sets = [
        ("user block rules", "block", app_settings.user.block_filter_entry_rules),
        ("user keep rules", "keep", app_settings.user.keep_filter_entry_rules),
    ]
    for feed in app_settings.feeds.values():
        rule_sets.append((f"feed {feed.id} block rules", "block", feed.blocklist_rules))
        rule_sets.append((f"feed {feed.id} keep rules", "keep", feed.keeplist_rules))
    return [item for item in rule_sets if item[2]]


def _read_rules_file(path: str) -> str:
    with open(path, "r", encoding="utf-8") as handle:
        # A trailing newline would otherwise show up as an empty, invalid rule.
        return handle.read().rstrip("\r\n")


def _validate(args: argparse.Namespace, console: Console, errors: Console) -> int:
    strict_dates = bool(args.strict_dates)
    if args.rules_file:
        targets = [(f"rules file {args.rules_file}", args.kind, _read_rules_file(args.rules_file))]
    else:
        app_settings = settings.load_settings(args.config)
        _configure_logging(app_settings.logging)
        strict_dates = strict_dates or app_settings.validation.strict_dates
        targets = _configured_rule_sets(app_settings)

    invalid = 0
    for label, kind, rules in targets:
        error = validate_rule_syntax(rules, kind, strict_dates=strict_dates)
        if error is None:
            console.print(Text(f"OK      {label}"), soft_wrap=True)
            continue
        invalid += 1
        LOGGER.warning("Invalid %s: %s", label, error.key)
        console.print(Text(f"INVALID {label}: {format_rule_error(error)}", style="red"), soft_wrap=True)

    if invalid:
        errors.print(Text(f"{invalid} of {len(targets)} rule sets are invalid"), soft_wrap=True)
        return EXIT_INVALID_RULES
    return EXIT_OK


def _group_by_feed(entries: list[Entry], feed_ids: set[int]) -> dict[int, list[Entry]]:
    grouped: dict[int, list[Entry]] = {}
    for entry in entries:
        feed_id = entry.feed_id
        # With a single configured feed, entries may omit feed_id.
        if feed_id is None and len(feed_ids) == 1:
            feed_id = next(iter(feed_ids))
        if feed_id not in feed_ids:
            LOGGER.warning("Skipping entry %s: unknown feed_id %s", entry.url, entry.feed_id)
            continue
        grouped.setdefault(feed_id, []).append(entry)
    return grouped


def _check(args: argparse.Namespace, console: Console) -> int:
    app_settings = settings.load_settings(args.config)
    _configure_logging(app_settings.logging)

    # Broken rules still evaluate (they just never match), so only warn here.
    for label, kind, rules in _configured_rule_sets(app_settings):
        error = validate_rule_syntax(rules, kind, strict_dates=app_settings.validation.strict_dates)
        if error is not None:
            LOGGER.warning("Invalid %s: %s", label, format_rule_error(error))

    entries = load_entries(args.entries)
    grouped = _group_by_feed(entries, set(app_settings.feeds))

    processor = EntryProcessor(app_settings.user)
    results = [processor.process(app_settings.feeds[feed_id], feed_entries) for feed_id, feed_entries in grouped.items()]

    mode = args.format or app_settings.report.format
    snippet_chars = app_settings.report.snippet_chars
    if mode == "table":
        console.print(build_decision_table(results, snippet_chars))
    else:
        console.print(Text(format_report(results, mode, snippet_chars)), soft_wrap=True)
    return EXIT_OK


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="feedsift")
    parser.add_argument("--config", help="Path to config.json (default: $FEEDSIFT_CONFIG or ./config.json)")
    parser.add_argument("--banner", action="store_true", help="Print the banner to stderr")
    subparsers = parser.add_subparsers(dest="command", required=True)

    validate_parser = subparsers.add_parser("validate", help="Check rule sets for syntax errors")
    validate_parser.add_argument("--rules-file", help="Validate a single rules file instead of the config")
    validate_parser.add_argument("--kind", choices=RULE_SET_KINDS, default="block", help="Rule set kind of --rules-file")
    validate_parser.add_argument("--strict-dates", action="store_true", help="Also check EntryDate patterns")

    check_parser = subparsers.add_parser("check", help="Run entries from a JSON file through the rules")
    check_parser.add_argument("entries", help="JSON file holding an array of entries")
    check_parser.add_argument("--format", choices=REPORT_FORMATS, help="Override report.format")

    args = parser.parse_args(argv)

    console = Console()
    errors = Console(stderr=True)
    if args.banner:
        _print_banner(errors)

    try:
        if args.command == "validate":
            return _validate(args, console, errors)
        return _check(args, console)
    except (FileNotFoundError, ValueError) as exc:
        LOGGER.error("%s", exc)
        errors.print(Text(f"error: {exc}", style="red"), soft_wrap=True)
        return EXIT_CONFIG_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
