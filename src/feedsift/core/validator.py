"""Rule-set syntax validation and related value checks.

Validation is meant to run when a rule set is saved, before it is ever
evaluated. It stops at the first invalid line so the caller can report a
single, precise problem.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple
from urllib.parse import urlsplit

import re2

from feedsift.core.date_rules import parse_date_predicate
from feedsift.core.rules_engine import FIELD_NAMES, EntryField

RULE_SET_KINDS = ("block", "keep")


class RuleErrorKind(str, Enum):
    """Error kinds, valued by the suffix of their localization key."""

    FIELD_NAME_INVALID = "fieldname_invalid"
    SEPARATOR_REQUIRED = "separator_required"
    PATTERN_REQUIRED = "regex_required"
    INVALID_REGEX = "invalid_regex"
    INVALID_DATE_PATTERN = "invalid_date"


@dataclass(frozen=True)
class RuleSyntaxError:
    """First problem found in a rule set, ready for message-catalog lookup."""

    kind: RuleErrorKind
    rule_set_kind: str
    line_number: int
    allowed_fields: Optional[str] = None

    @property
    def key(self) -> str:
        return f"error.settings_{self.rule_set_kind}_rule_{self.kind.value}"

    @property
    def args(self) -> Tuple[object, ...]:
        if self.allowed_fields is not None:
            return (self.line_number, self.allowed_fields)
        return (self.line_number,)


def allowed_fields_display() -> str:
    """Render the field vocabulary the way error messages show it."""

    return "'" + "', '".join(FIELD_NAMES) + "'"


def is_valid_regex(expr: str) -> bool:
    """Return True when ``expr`` compiles as a regular expression."""

    try:
        re2.compile(expr)
    except re2.error:
        return False
    return True


def validate_rule_syntax(
    rules: str,
    kind: str,
    strict_dates: bool = False,
) -> Optional[RuleSyntaxError]:
    """Return the first syntax error in ``rules``, or None when valid.

    Each line must be ``FieldName=Pattern`` with a known field name and a
    non-empty pattern that compiles as a regex. EntryDate patterns are only
    checked against the date grammar when ``strict_dates`` is set.
    """

    if kind not in RULE_SET_KINDS:
        raise ValueError(f"Unsupported rule set kind: {kind}")
    if not rules:
        return None

    for line_number, line in enumerate(rules.split("\n"), start=1):
        field_name = next((name for name in FIELD_NAMES if line.startswith(name)), None)
        if field_name is None:
            return RuleSyntaxError(
                RuleErrorKind.FIELD_NAME_INVALID,
                kind,
                line_number,
                allowed_fields=allowed_fields_display(),
            )

        remainder = line[len(field_name) :]
        if not remainder.startswith("="):
            return RuleSyntaxError(RuleErrorKind.SEPARATOR_REQUIRED, kind, line_number)

        pattern = remainder[1:]
        if not pattern:
            return RuleSyntaxError(RuleErrorKind.PATTERN_REQUIRED, kind, line_number)

        if not is_valid_regex(pattern):
            return RuleSyntaxError(RuleErrorKind.INVALID_REGEX, kind, line_number)

        if strict_dates and field_name == EntryField.DATE.value and parse_date_predicate(pattern) is None:
            return RuleSyntaxError(RuleErrorKind.INVALID_DATE_PATTERN, kind, line_number)

    return None


def is_valid_url(absolute_url: str) -> bool:
    """Return True for an absolute URL with a scheme and a host."""

    try:
        parts = urlsplit(absolute_url)
    except ValueError:
        return False
    return bool(parts.scheme) and bool(parts.netloc)
