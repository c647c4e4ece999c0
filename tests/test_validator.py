from __future__ import annotations

import pytest

from feedsift.core.validator import (
    RuleErrorKind,
    allowed_fields_display,
    is_valid_regex,
    is_valid_url,
    validate_rule_syntax,
)


def test_valid_rule_sets() -> None:
    assert validate_rule_syntax("EntryTitle=foo", "block") is None
    assert validate_rule_syntax("EntryTitle=foo\nEntryTag=^tech$\nEntryDate=future", "keep") is None
    assert validate_rule_syntax("", "block") is None


def test_unknown_field_name() -> None:
    error = validate_rule_syntax("BadField=foo", "block")
    assert error is not None
    assert error.kind is RuleErrorKind.FIELD_NAME_INVALID
    assert error.line_number == 1
    assert error.key == "error.settings_block_rule_fieldname_invalid"
    assert error.args == (1, allowed_fields_display())


def test_allowed_fields_display() -> None:
    assert allowed_fields_display() == (
        "'EntryTitle', 'EntryURL', 'EntryCommentsURL', 'EntryContent', 'EntryAuthor', 'EntryTag', 'EntryDate'"
    )


def test_separator_required() -> None:
    error = validate_rule_syntax("EntryTitle foo", "block")
    assert error is not None
    assert error.kind is RuleErrorKind.SEPARATOR_REQUIRED
    assert error.line_number == 1
    assert error.args == (1,)

    # Prefix match: the field name is found, then the "=" is missing.
    error = validate_rule_syntax("EntryTitleX=foo", "block")
    assert error is not None
    assert error.kind is RuleErrorKind.SEPARATOR_REQUIRED


def test_pattern_required() -> None:
    error = validate_rule_syntax("EntryTitle=", "keep")
    assert error is not None
    assert error.kind is RuleErrorKind.PATTERN_REQUIRED
    assert error.key == "error.settings_keep_rule_regex_required"


def test_invalid_regex() -> None:
    error = validate_rule_syntax("EntryTitle=(unclosed", "block")
    assert error is not None
    assert error.kind is RuleErrorKind.INVALID_REGEX
    assert error.key == "error.settings_block_rule_invalid_regex"


def test_stops_at_first_invalid_line() -> None:
    error = validate_rule_syntax("EntryTitle=ok\nEntryURL example\nNope=x", "block")
    assert error is not None
    assert error.kind is RuleErrorKind.SEPARATOR_REQUIRED
    assert error.line_number == 2


def test_trailing_newline_is_an_empty_invalid_line() -> None:
    error = validate_rule_syntax("EntryTitle=ok\n", "block")
    assert error is not None
    assert error.kind is RuleErrorKind.FIELD_NAME_INVALID
    assert error.line_number == 2


def test_date_rules_are_only_regex_checked_by_default() -> None:
    assert validate_rule_syntax("EntryDate=xyz", "block") is None
    error = validate_rule_syntax("EntryDate=(", "block")
    assert error is not None
    assert error.kind is RuleErrorKind.INVALID_REGEX


def test_strict_dates_checks_date_grammar() -> None:
    error = validate_rule_syntax("EntryTitle=x\nEntryDate=xyz", "block", strict_dates=True)
    assert error is not None
    assert error.kind is RuleErrorKind.INVALID_DATE_PATTERN
    assert error.line_number == 2
    assert error.key == "error.settings_block_rule_invalid_date"

    assert validate_rule_syntax("EntryDate=before:2024-01-01", "block", strict_dates=True) is None
    assert validate_rule_syntax("EntryDate=between:2024-01-01,2024-02-01", "keep", strict_dates=True) is None


def test_validation_is_repeatable() -> None:
    rules = "EntryTitle=ok\nEntryTag=("
    assert validate_rule_syntax(rules, "block") == validate_rule_syntax(rules, "block")


def test_unknown_rule_set_kind_is_rejected() -> None:
    with pytest.raises(ValueError):
        validate_rule_syntax("EntryTitle=foo", "mute")


def test_is_valid_regex() -> None:
    assert is_valid_regex("^foo.*$")
    assert not is_valid_regex("[a-")


def test_is_valid_url() -> None:
    assert is_valid_url("https://example.org/feed.xml")
    assert not is_valid_url("example.org/feed.xml")
    assert not is_valid_url("/feed.xml")
    assert not is_valid_url("https://")


def test_backtracking_only_constructs_are_invalid() -> None:
    for pattern in (r"(a)\1", "foo(?=bar)", "(?<!x)y"):
        error = validate_rule_syntax(f"EntryTitle={pattern}", "block")
        assert error is not None, pattern
        assert error.kind is RuleErrorKind.INVALID_REGEX
