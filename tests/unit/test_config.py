"""
Unit tests for Settings.
"""

import pytest
from pydantic import ValidationError

from learnstate.config import DEFAULT_COMPLETION_PHRASES, Settings, get_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("LEARNSTATE_RETENTION_THRESHOLD", raising=False)
    monkeypatch.delenv("LEARNSTATE_COMPLETION_PHRASES", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults():
    settings = Settings(_env_file=None)

    assert settings.retention_threshold == 0.70
    assert settings.max_revisions == 3
    assert settings.topic_shift_min_turns == 5
    assert settings.completion_phrases == DEFAULT_COMPLETION_PHRASES
    assert settings.interval_bands[0] == (0.0, 1.0)
    assert not settings.has_content_api_configured()


def test_environment_prefix(monkeypatch):
    monkeypatch.setenv("LEARNSTATE_RETENTION_THRESHOLD", "0.8")
    monkeypatch.setenv("LEARNSTATE_COMPLETION_PHRASES", '["done", "next"]')

    settings = Settings(_env_file=None)

    assert settings.retention_threshold == 0.8
    assert settings.completion_phrases == ["done", "next"]


def test_bands_are_sorted():
    settings = Settings(_env_file=None, interval_bands=[(0.5, 5.0), (0.0, 1.0)])
    assert settings.interval_bands == [(0.0, 1.0), (0.5, 5.0)]


def test_rejects_out_of_range_threshold():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, retention_threshold=1.5)


def test_get_settings_is_cached():
    assert get_settings() is get_settings()


def test_config_dicts():
    settings = Settings(_env_file=None)
    assert settings.get_retention_config()["strength_days"] == {"min": 1.0, "max": 60.0}
    assert settings.get_router_config()["topic_window_size"] == 10
