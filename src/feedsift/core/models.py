"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any storage-specific types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple


@dataclass(frozen=True)
class Entry:
    """Minimal feed entry consumed read-only by the rule engine."""

    title: str
    url: str
    date: datetime
    comments_url: str = ""
    content: str = ""
    author: str = ""
    tags: Tuple[str, ...] = ()
    feed_id: Optional[int] = None


@dataclass(frozen=True)
class Feed:
    """Feed-level context: secondary rules plus identifiers used in logs."""

    id: int
    feed_url: str
    title: str = ""
    blocklist_rules: str = ""
    keeplist_rules: str = ""


@dataclass(frozen=True)
class User:
    """User-level rules, which take the primary position during evaluation."""

    block_filter_entry_rules: str = ""
    keep_filter_entry_rules: str = ""


@dataclass(frozen=True)
class EntryDecision:
    """Outcome of running one entry through the processor."""

    entry: Entry
    kept: bool
    reason: str
    rule: Optional[str] = None
    source: Optional[str] = None


@dataclass
class FilterResult:
    """Decisions for one feed, split into kept and rejected entries."""

    feed: Feed
    decisions: list[EntryDecision] = field(default_factory=list)

    @property
    def kept(self) -> list[Entry]:
        return [decision.entry for decision in self.decisions if decision.kept]

    @property
    def rejected(self) -> list[EntryDecision]:
        return [decision for decision in self.decisions if not decision.kept]
