"""feedsift: rule-based filtering for feed entries."""

__version__ = "0.1.0"
