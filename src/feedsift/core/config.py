"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ValidationConfig:
    """Rule validation settings."""

    # Also check EntryDate patterns against the date grammar, not only as regex.
    strict_dates: bool = False


@dataclass(frozen=True)
class ReportConfig:
    """Report formatting settings consumed by the report adapter."""

    format: str = "table"
    snippet_chars: int = 80
