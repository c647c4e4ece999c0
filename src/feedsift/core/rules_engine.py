"""Rule parsing and matching logic (core domain).

A rule set is a newline-separated list of ``FieldName=Pattern`` lines. Lines
are evaluated top to bottom and the first matching line wins. Evaluation never
raises for malformed input: a line that cannot be parsed, an invalid regex, or
an unknown date pattern simply does not match.

Patterns use RE2 syntax, which has no backreferences or lookarounds and
matches in time linear in the input.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
from typing import Callable, Dict, Iterable, List, Optional

import re2

from feedsift.core.date_rules import date_matches
from feedsift.core.models import Entry, Feed, User

LOGGER = logging.getLogger(__name__)

PRIMARY = "primary"
SECONDARY = "secondary"


class EntryField(str, Enum):
    """Field selectors accepted on the left-hand side of a rule line."""

    TITLE = "EntryTitle"
    URL = "EntryURL"
    COMMENTS_URL = "EntryCommentsURL"
    CONTENT = "EntryContent"
    AUTHOR = "EntryAuthor"
    TAG = "EntryTag"
    DATE = "EntryDate"

    @classmethod
    def from_name(cls, name: str) -> Optional["EntryField"]:
        try:
            return cls(name)
        except ValueError:
            return None


# Declaration order matters: the validator checks prefixes in this order.
FIELD_NAMES = tuple(field.value for field in EntryField)

_TEXT_FIELDS: Dict[EntryField, Callable[[Entry], str]] = {
    EntryField.TITLE: lambda entry: entry.title,
    EntryField.URL: lambda entry: entry.url,
    EntryField.COMMENTS_URL: lambda entry: entry.comments_url,
    EntryField.CONTENT: lambda entry: entry.content,
    EntryField.AUTHOR: lambda entry: entry.author,
}


@dataclass(frozen=True)
class Rule:
    """One parsed rule line with its field resolved."""

    field: EntryField
    pattern: str
    raw: str
    line_number: int

    def matches(self, entry: Entry) -> bool:
        if self.field is EntryField.DATE:
            return date_matches(entry.date, self.pattern)
        if self.field is EntryField.TAG:
            return any(_regex_search(self.pattern, tag) for tag in entry.tags)
        return _regex_search(self.pattern, _TEXT_FIELDS[self.field](entry))


@dataclass(frozen=True)
class RuleMatch:
    """The rule line that fired for an entry."""

    rule: str
    line_number: int
    field: EntryField


@dataclass(frozen=True)
class Verdict:
    """Boolean decision plus the rule and rule source that produced it."""

    matched: bool
    match: Optional[RuleMatch] = None
    source: Optional[str] = None


def _regex_search(pattern: str, value: str) -> bool:
    try:
        return re2.search(pattern, value) is not None
    except re2.error:
        return False


def parse_rule_line(line: str, line_number: int = 1) -> Optional[Rule]:
    """Parse ``FieldName=Pattern``; return None for unknown fields or no ``=``.

    Only the first ``=`` separates the field from the pattern, so patterns may
    contain ``=`` themselves.
    """

    name, sep, pattern = line.partition("=")
    if not sep:
        return None
    field = EntryField.from_name(name)
    if field is None:
        return None
    return Rule(field=field, pattern=pattern, raw=line, line_number=line_number)


def build_rules(rule_set: str) -> List[Rule]:
    """Parse every usable line of a rule set, preserving order."""

    if not rule_set:
        return []
    compiled: List[Rule] = []
    for index, line in enumerate(rule_set.split("\n"), start=1):
        rule = parse_rule_line(line, index)
        if rule is not None:
            compiled.append(rule)
    return compiled


def match_line(entry: Entry, field_name: str, pattern: str) -> bool:
    """Evaluate a single field/pattern pair against an entry."""

    field = EntryField.from_name(field_name)
    if field is None:
        return False
    return Rule(field=field, pattern=pattern, raw=f"{field_name}={pattern}", line_number=1).matches(entry)


def find_matching_rule(entry: Entry, rules: Iterable[Rule]) -> Optional[RuleMatch]:
    """Return the first rule matching the entry; later rules are not evaluated."""

    for rule in rules:
        if rule.matches(entry):
            return RuleMatch(rule=rule.raw, line_number=rule.line_number, field=rule.field)
    return None


def _log_match(message: str, entry: Entry, feed: Optional[Feed], match: RuleMatch) -> None:
    LOGGER.debug(
        "%s: entry_url=%s feed_id=%s feed_url=%s rule=%s",
        message,
        entry.url,
        feed.id if feed else None,
        feed.feed_url if feed else None,
        match.rule,
    )


def explain_block(
    entry: Entry,
    primary_rules: str,
    secondary_rules: str,
    feed: Optional[Feed] = None,
) -> Verdict:
    """Block if either rule set has a matching line; primary is checked first."""

    for source, rule_set in ((PRIMARY, primary_rules), (SECONDARY, secondary_rules)):
        match = find_matching_rule(entry, build_rules(rule_set))
        if match is not None:
            _log_match("Blocking entry based on rule", entry, feed, match)
            return Verdict(matched=True, match=match, source=source)
    return Verdict(matched=False)


def explain_keep(
    entry: Entry,
    primary_rules: str,
    secondary_rules: str,
    feed: Optional[Feed] = None,
) -> Verdict:
    """Keep only if the first non-empty rule set has a matching line.

    With both rule sets empty, every entry is kept.
    """

    if primary_rules:
        source, rule_set = PRIMARY, primary_rules
    elif secondary_rules:
        source, rule_set = SECONDARY, secondary_rules
    else:
        return Verdict(matched=True)

    match = find_matching_rule(entry, build_rules(rule_set))
    if match is None:
        return Verdict(matched=False, source=source)
    _log_match("Allowing entry based on rule", entry, feed, match)
    return Verdict(matched=True, match=match, source=source)


def evaluate_block(
    entry: Entry,
    primary_rules: str,
    secondary_rules: str,
    feed: Optional[Feed] = None,
) -> bool:
    return explain_block(entry, primary_rules, secondary_rules, feed).matched


def evaluate_keep(
    entry: Entry,
    primary_rules: str,
    secondary_rules: str,
    feed: Optional[Feed] = None,
) -> bool:
    return explain_keep(entry, primary_rules, secondary_rules, feed).matched


def is_blocked_entry(feed: Feed, entry: Entry, user: User) -> bool:
    """User block rules first, then the feed blocklist."""

    return evaluate_block(entry, user.block_filter_entry_rules, feed.blocklist_rules, feed)


def is_allowed_entry(feed: Feed, entry: Entry, user: User) -> bool:
    """User keep rules override the feed keeplist; no rules means allowed."""

    return evaluate_keep(entry, user.keep_filter_entry_rules, feed.keeplist_rules, feed)
