"""Date predicate grammar used by EntryDate rules (core domain).

Supported patterns:
- ``future``: entry date is after the current time.
- ``before:YYYY-MM-DD``: entry date is before midnight UTC of that day.
- ``after:YYYY-MM-DD``: entry date is after midnight UTC of that day.
- ``between:YYYY-MM-DD,YYYY-MM-DD``: after the first day and before the second.

All comparisons are strict. Anything else is a non-match, never an error.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import re
from typing import Optional

FUTURE = "future"
BEFORE = "before"
AFTER = "after"
BETWEEN = "between"

DATE_FORMAT = "%Y-%m-%d"

# strptime alone accepts single-digit months and days.
_CALENDAR_DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


@dataclass(frozen=True)
class DatePredicate:
    """Parsed date pattern. ``start``/``end`` are unused for ``future``."""

    operator: str
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    def matches(self, date: datetime, now: Optional[datetime] = None) -> bool:
        date = _as_aware(date)
        if self.operator == FUTURE:
            reference = _as_aware(now) if now is not None else datetime.now(timezone.utc)
            return date > reference
        if self.operator == BEFORE:
            return date < self.end
        if self.operator == AFTER:
            return date > self.start
        if self.operator == BETWEEN:
            return self.start < date < self.end
        return False


def _as_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def parse_calendar_date(value: str) -> Optional[datetime]:
    """Parse ``YYYY-MM-DD`` into midnight UTC, or return None."""

    if not _CALENDAR_DATE_RE.fullmatch(value):
        return None
    try:
        parsed = datetime.strptime(value, DATE_FORMAT)
    except ValueError:
        return None
    return parsed.replace(tzinfo=timezone.utc)


def parse_date_predicate(pattern: str) -> Optional[DatePredicate]:
    """Return the parsed predicate, or None when the pattern is malformed."""

    if pattern == FUTURE:
        return DatePredicate(FUTURE)

    operator, sep, value = pattern.partition(":")
    if not sep:
        return None

    if operator == BEFORE:
        target = parse_calendar_date(value)
        if target is None:
            return None
        return DatePredicate(BEFORE, end=target)

    if operator == AFTER:
        target = parse_calendar_date(value)
        if target is None:
            return None
        return DatePredicate(AFTER, start=target)

    if operator == BETWEEN:
        bounds = value.split(",")
        if len(bounds) != 2:
            return None
        start = parse_calendar_date(bounds[0])
        end = parse_calendar_date(bounds[1])
        if start is None or end is None:
            return None
        return DatePredicate(BETWEEN, start=start, end=end)

    return None


def date_matches(date: datetime, pattern: str, now: Optional[datetime] = None) -> bool:
    """Return True when ``date`` satisfies the date predicate ``pattern``."""

    predicate = parse_date_predicate(pattern)
    if predicate is None:
        return False
    return predicate.matches(date, now=now)
