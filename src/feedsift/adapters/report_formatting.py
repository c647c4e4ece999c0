"""Shared report formatting helpers.

Keeping formatting here prevents drift between CLI commands and keeps output
consistent regardless of the selected format.
"""

from __future__ import annotations

import json
from typing import Iterable

from rich.table import Table
from rich.text import Text

from feedsift.core.models import EntryDecision, FilterResult
from feedsift.core.validator import RuleErrorKind, RuleSyntaxError

REPORT_FORMATS = ("table", "text", "markdown", "json")

# English fallbacks for the localization keys produced by the validator.
_RULE_ERROR_MESSAGES = {
    RuleErrorKind.FIELD_NAME_INVALID: "rule #{line} is missing a valid field name (Options: {fields})",
    RuleErrorKind.SEPARATOR_REQUIRED: "rule #{line}'s pattern must be separated by a '='",
    RuleErrorKind.PATTERN_REQUIRED: "rule #{line}'s pattern is not provided",
    RuleErrorKind.INVALID_REGEX: "rule #{line}'s pattern is not a valid regex",
    RuleErrorKind.INVALID_DATE_PATTERN: (
        "rule #{line}'s date pattern must be one of future, before:YYYY-MM-DD, "
        "after:YYYY-MM-DD, between:YYYY-MM-DD,YYYY-MM-DD"
    ),
}


def format_rule_error(error: RuleSyntaxError) -> str:
    """Return the English message for a validator error."""

    template = _RULE_ERROR_MESSAGES[error.kind]
    detail = template.format(line=error.line_number, fields=error.allowed_fields or "")
    return f"Invalid {error.rule_set_kind.capitalize()} rule: {detail}"


def _clip(value: str, limit: int) -> str:
    value = " ".join(value.split())
    if len(value) <= limit:
        return value
    return value[: max(limit - 1, 0)].rstrip() + "…"


def _status(decision: EntryDecision) -> str:
    return "kept" if decision.kept else "rejected"


def _why(decision: EntryDecision) -> str:
    if decision.rule:
        return f"{decision.reason} by {decision.source} rule {decision.rule}"
    if decision.source:
        return f"{decision.reason}: no {decision.source} keep rule matched"
    return decision.reason


def _format_text(results: Iterable[FilterResult], snippet_chars: int) -> str:
    lines: list[str] = []
    for result in results:
        lines.append(f"Feed {result.feed.id} ({result.feed.feed_url})")
        for decision in result.decisions:
            title = _clip(decision.entry.title or decision.entry.url, snippet_chars)
            lines.append(f"  [{_status(decision)}] {title} - {_why(decision)}")
    return "\n".join(lines)


def _format_markdown(results: Iterable[FilterResult], snippet_chars: int) -> str:
    def escape_md(value: str) -> str:
        for ch in r"\*_`[]|":
            value = value.replace(ch, f"\\{ch}")
        return value

    lines: list[str] = []
    for result in results:
        feed_label = escape_md(result.feed.title or result.feed.feed_url)
        lines.extend([f"## Feed {result.feed.id}: {feed_label}", "", "| Status | Entry | Why |", "| --- | --- | --- |"])
        for decision in result.decisions:
            title = escape_md(_clip(decision.entry.title or decision.entry.url, snippet_chars))
            lines.append(f"| {_status(decision)} | {title} | {escape_md(_why(decision))} |")
        lines.append("")
    return "\n".join(lines).rstrip("\n")


def _format_json(results: Iterable[FilterResult]) -> str:
    payload = []
    for result in results:
        payload.append(
            {
                "feed_id": result.feed.id,
                "feed_url": result.feed.feed_url,
                "decisions": [
                    {
                        "url": decision.entry.url,
                        "title": decision.entry.title,
                        "kept": decision.kept,
                        "reason": decision.reason,
                        "rule": decision.rule,
                        "source": decision.source,
                    }
                    for decision in result.decisions
                ],
            }
        )
    return json.dumps(payload, indent=2, ensure_ascii=False)


def format_report(results: Iterable[FilterResult], mode: str, snippet_chars: int = 80) -> str:
    """Return the filter report formatted for the requested mode."""

    results = list(results)
    if mode == "text":
        return _format_text(results, snippet_chars)
    if mode == "markdown":
        return _format_markdown(results, snippet_chars)
    if mode == "json":
        return _format_json(results)
    raise ValueError(f"Unsupported report format: {mode}")


def build_decision_table(results: Iterable[FilterResult], snippet_chars: int = 80) -> Table:
    """Create the rich table shown by ``feedsift check`` in table mode."""

    table = Table(title="Entry decisions")
    table.add_column("feed", justify="right")
    table.add_column("status")
    table.add_column("entry")
    table.add_column("why")
    for result in results:
        for decision in result.decisions:
            style = "green" if decision.kept else "red"
            table.add_row(
                str(result.feed.id),
                Text(_status(decision), style=style),
                Text(_clip(decision.entry.title or decision.entry.url, snippet_chars)),
                Text(_why(decision)),
            )
    return table
