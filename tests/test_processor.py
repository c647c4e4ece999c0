from __future__ import annotations

from datetime import datetime, timezone

from feedsift.core.models import Entry, Feed, User
from feedsift.core.processor import REASON_BLOCKED, REASON_KEPT, REASON_NOT_KEPT, EntryProcessor
from feedsift.core.rules_engine import PRIMARY, SECONDARY


def _entry(title: str, tags: tuple[str, ...] = (), author: str = "alice") -> Entry:
    return Entry(
        title=title,
        url=f"https://example.org/{title.lower().replace(' ', '-')}",
        date=datetime(2024, 6, 15, tzinfo=timezone.utc),
        author=author,
        tags=tags,
    )


def _feed(**overrides) -> Feed:
    values = dict(id=1, feed_url="https://example.org/feed.xml")
    values.update(overrides)
    return Feed(**values)


def test_blocked_entries_are_rejected_before_keep_rules() -> None:
    processor = EntryProcessor(User(block_filter_entry_rules="EntryTitle=(?i)sponsored"))
    feed = _feed(keeplist_rules="EntryTitle=.*")

    decision = processor.decide(feed, _entry("Sponsored post"))

    assert not decision.kept
    assert decision.reason == REASON_BLOCKED
    assert decision.rule == "EntryTitle=(?i)sponsored"
    assert decision.source == PRIMARY


def test_keep_rules_reject_unmatched_entries() -> None:
    processor = EntryProcessor(User())
    feed = _feed(keeplist_rules="EntryTag=^python$")

    kept = processor.decide(feed, _entry("Release", tags=("python",)))
    dropped = processor.decide(feed, _entry("Recipe", tags=("food",)))

    assert kept.kept
    assert kept.reason == REASON_KEPT
    assert kept.rule == "EntryTag=^python$"
    assert kept.source == SECONDARY
    assert not dropped.kept
    assert dropped.reason == REASON_NOT_KEPT
    assert dropped.rule is None


def test_no_rules_keeps_everything() -> None:
    decision = EntryProcessor(User()).decide(_feed(), _entry("Anything"))
    assert decision.kept
    assert decision.rule is None
    assert decision.source is None


def test_process_collects_decisions_in_order() -> None:
    processor = EntryProcessor(User(block_filter_entry_rules="EntryAuthor=^spam$"))
    feed = _feed(blocklist_rules="EntryTag=ads")
    entries = [
        _entry("One"),
        _entry("Two", author="spam"),
        _entry("Three", tags=("ads",)),
        _entry("Four"),
    ]

    result = processor.process(feed, entries)

    assert [decision.entry.title for decision in result.decisions] == ["One", "Two", "Three", "Four"]
    assert [entry.title for entry in result.kept] == ["One", "Four"]
    assert [decision.source for decision in result.rejected] == [PRIMARY, SECONDARY]
    assert result.feed is feed
