from __future__ import annotations

import json

import pytest

from feedsift import settings


def _write_config(tmp_path, config: dict) -> str:
    path = tmp_path / "config.json"
    path.write_text(json.dumps(config), encoding="utf-8")
    return str(path)


def test_load_settings_normalizes_rules_and_feeds(tmp_path) -> None:
    path = _write_config(
        tmp_path,
        {
            "user": {"block_rules": ["EntryTitle=a", "EntryTag=b"], "keep_rules": "EntryAuthor=c"},
            "feeds": [
                {"id": 1, "feed_url": "https://example.org/one.xml", "block_rules": "EntryURL=ads"},
                {"id": 2, "feed_url": "https://example.org/two.xml", "enabled": False},
            ],
            "validation": {"strict_dates": True},
            "report": {"format": "json", "snippet_chars": "40"},
        },
    )

    loaded = settings.load_settings(path)

    assert loaded.config_path == path
    assert loaded.user.block_filter_entry_rules == "EntryTitle=a\nEntryTag=b"
    assert loaded.user.keep_filter_entry_rules == "EntryAuthor=c"
    assert list(loaded.feeds) == [1]
    assert loaded.feeds[1].blocklist_rules == "EntryURL=ads"
    assert loaded.validation.strict_dates
    assert loaded.report.format == "json"
    assert loaded.report.snippet_chars == 40
    assert loaded.logging == {}


def test_defaults_for_empty_config(tmp_path) -> None:
    loaded = settings.load_settings(_write_config(tmp_path, {}))
    assert loaded.user.block_filter_entry_rules == ""
    assert loaded.feeds == {}
    assert not loaded.validation.strict_dates
    assert loaded.report.format == "table"


def test_duplicate_feed_ids_are_rejected(tmp_path) -> None:
    feed = {"id": 1, "feed_url": "https://example.org/one.xml"}
    path = _write_config(tmp_path, {"feeds": [feed, feed]})
    with pytest.raises(ValueError, match="Duplicate feed id"):
        settings.load_settings(path)


def test_invalid_feed_url_is_rejected(tmp_path) -> None:
    path = _write_config(tmp_path, {"feeds": [{"id": 1, "feed_url": "not a url"}]})
    with pytest.raises(ValueError, match="invalid feed_url"):
        settings.load_settings(path)


def test_missing_config_file(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        settings.load_settings(str(tmp_path / "missing.json"))


def test_config_path_from_environment(tmp_path, monkeypatch) -> None:
    path = _write_config(tmp_path, {"user": {"block_rules": "EntryTitle=x"}})
    monkeypatch.setenv(settings.CONFIG_ENV_VAR, path)

    assert settings.resolve_config_path() == path
    assert settings.resolve_config_path("explicit.json") == "explicit.json"
    assert settings.load_settings().user.block_filter_entry_rules == "EntryTitle=x"


def test_malformed_sections_are_rejected(tmp_path) -> None:
    cases = [
        ({"user": None}, "config.user must be an object"),
        ({"validation": []}, "config.validation must be an object"),
        ({"report": "json"}, "config.report must be an object"),
        ({"feeds": {"id": 1}}, "config.feeds must be a list"),
        ({"feeds": ["x"]}, r"config.feeds\[0\] must be an object"),
        ({"logging": {"file": True}}, "config.logging.file must be an object"),
        ({"logging": {"redact": {"patterns": "API_KEY"}}}, "config.logging.redact.patterns must be a list"),
    ]
    for config, message in cases:
        with pytest.raises(ValueError, match=message):
            settings.load_settings(_write_config(tmp_path, config))
