"""Core entry processing pipeline.

This module is storage-agnostic. It applies the user's and the feed's rule
sets to a batch of entries and records why each entry was kept or rejected.

The order is fixed:
1) Block rules (user, then feed); any match rejects the entry
2) Keep rules (user overrides feed); a non-empty keep list must match
3) Everything else is kept
"""

from __future__ import annotations

import logging
from typing import Iterable

from feedsift.core.models import Entry, EntryDecision, Feed, FilterResult, User
from feedsift.core.rules_engine import explain_block, explain_keep

LOGGER = logging.getLogger(__name__)

REASON_BLOCKED = "blocked"
REASON_NOT_KEPT = "not_kept"
REASON_KEPT = "kept"


class EntryProcessor:
    """Decides, entry by entry, what a user gets to see from a feed."""

    def __init__(self, user: User) -> None:
        self._user = user

    def decide(self, feed: Feed, entry: Entry) -> EntryDecision:
        """Return the decision for one entry of ``feed``."""

        blocked = explain_block(
            entry,
            self._user.block_filter_entry_rules,
            feed.blocklist_rules,
            feed,
        )
        if blocked.matched:
            return EntryDecision(
                entry=entry,
                kept=False,
                reason=REASON_BLOCKED,
                rule=blocked.match.rule if blocked.match else None,
                source=blocked.source,
            )

        allowed = explain_keep(
            entry,
            self._user.keep_filter_entry_rules,
            feed.keeplist_rules,
            feed,
        )
        if not allowed.matched:
            return EntryDecision(entry=entry, kept=False, reason=REASON_NOT_KEPT, source=allowed.source)

        return EntryDecision(
            entry=entry,
            kept=True,
            reason=REASON_KEPT,
            rule=allowed.match.rule if allowed.match else None,
            source=allowed.source,
        )

    def process(self, feed: Feed, entries: Iterable[Entry]) -> FilterResult:
        """Run every entry through the rules and collect the decisions."""

        result = FilterResult(feed=feed)
        for entry in entries:
            decision = self.decide(feed, entry)
            if not decision.kept:
                LOGGER.info("Skipping entry %s from feed %s (%s)", entry.url, feed.id, decision.reason)
            result.decisions.append(decision)

        LOGGER.info(
            "Filtered feed %s: entries=%s, kept=%s, rejected=%s",
            feed.id,
            len(result.decisions),
            len(result.kept),
            len(result.rejected),
        )
        return result
