"""JSON-to-core mapping adapter.

This keeps file-format details (key names, date strings, rule lists) out of
the core models.
"""

from __future__ import annotations

from datetime import datetime, timezone
import json
from typing import Any, Optional, Union

from feedsift.core.models import Entry, Feed


def normalize_rules(value: Union[str, list, None]) -> str:
    """Accept a rule set as one string or as a list of lines."""

    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        return "\n".join(str(line) for line in value)
    raise ValueError(f"Rules must be a string or a list of lines, got {type(value).__name__}")


def parse_entry_date(value: Any) -> datetime:
    """Parse an ISO 8601 string or a unix timestamp into an aware datetime."""

    if isinstance(value, bool):
        raise ValueError(f"Invalid entry date: {value!r}")
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as exc:
            raise ValueError(f"Invalid entry date: {value!r}") from exc
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Invalid entry date: {value!r}")

    text = value.strip()
    # fromisoformat only learned the "Z" suffix in Python 3.11.
    if text.endswith(("Z", "z")):
        text = f"{text[:-1]}+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as exc:
        raise ValueError(f"Invalid entry date: {value!r}") from exc
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed


def _optional_int(value: Any, name: str) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}") from exc


def build_entry(raw: dict) -> Entry:
    """Build a core Entry from a JSON object."""

    if not isinstance(raw, dict):
        raise ValueError("Each entry must be a JSON object")
    for key in ("url", "date"):
        if key not in raw:
            raise ValueError(f"Entry is missing required key: {key}")

    tags = raw.get("tags") or []
    if isinstance(tags, str):
        tags = [tags]
    if not isinstance(tags, list):
        raise ValueError(f"Entry tags must be a string or a list, got {type(tags).__name__}")

    return Entry(
        title=str(raw.get("title") or ""),
        url=str(raw["url"]),
        date=parse_entry_date(raw["date"]),
        comments_url=str(raw.get("comments_url") or ""),
        content=str(raw.get("content") or ""),
        author=str(raw.get("author") or ""),
        tags=tuple(str(tag) for tag in tags),
        feed_id=_optional_int(raw.get("feed_id"), "feed_id"),
    )


def build_feed(raw: dict) -> Feed:
    """Build a core Feed from a config object."""

    feed_id = _optional_int(raw.get("id"), "feed id")
    if feed_id is None:
        raise ValueError("Feed is missing required key: id")
    feed_url = raw.get("feed_url")
    if not feed_url:
        raise ValueError(f"Feed {feed_id} is missing required key: feed_url")

    return Feed(
        id=feed_id,
        feed_url=str(feed_url),
        title=str(raw.get("title") or ""),
        blocklist_rules=normalize_rules(raw.get("block_rules")),
        keeplist_rules=normalize_rules(raw.get("keep_rules")),
    )


def load_entries(path: str) -> list[Entry]:
    """Load entries from a JSON array, or from an object with an ``entries`` list."""

    with open(path, "r", encoding="utf-8") as handle:
        payload = json.load(handle)

    if isinstance(payload, dict):
        payload = payload.get("entries", [])
    if not isinstance(payload, list):
        raise ValueError(f"Entries file must hold a JSON array: {path}")
    return [build_entry(item) for item in payload]
