"""Tests for environment-driven settings."""

import pytest

from tabgroup.classifier import ClassifierConfig
from tabgroup.config import Settings

ENV_KEYS = [
    "TABGROUP_API_KEY",
    "OPENAI_API_KEY",
    "TABGROUP_BASE_URL",
    "TABGROUP_MODEL",
    "TABGROUP_TEMPERATURE",
    "TABGROUP_TOP_K",
    "TABGROUP_TOPIC_TIMEOUT",
    "TABGROUP_ACCEPT_THR",
    "TABGROUP_REJECT_THR",
    "TABGROUP_FETCH",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults():
    s = Settings.from_env()
    assert s.api_key is None
    assert s.topic_timeout == 10.0
    assert (s.accept_threshold, s.reject_threshold) == (0.8, 0.2)
    assert s.fetch is False
    assert s.classifier_config() == ClassifierConfig(language="en", temperature=0.3, top_k=None)


def test_overrides(monkeypatch):
    monkeypatch.setenv("TABGROUP_API_KEY", "secret")
    monkeypatch.setenv("TABGROUP_MODEL", "qwen2.5")
    monkeypatch.setenv("TABGROUP_TOPIC_TIMEOUT", "2.5")
    monkeypatch.setenv("TABGROUP_TOP_K", "3")
    monkeypatch.setenv("TABGROUP_FETCH", "1")
    s = Settings.from_env()
    assert s.api_key == "secret"
    assert s.model == "qwen2.5"
    assert s.topic_timeout == 2.5
    assert s.top_k == 3
    assert s.fetch is True


def test_openai_key_fallback(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-fallback")
    assert Settings.from_env().api_key == "sk-fallback"


def test_malformed_numbers_use_defaults(monkeypatch):
    monkeypatch.setenv("TABGROUP_TEMPERATURE", "warm")
    monkeypatch.setenv("TABGROUP_TOP_K", "1.5")
    monkeypatch.setenv("TABGROUP_FETCH", "false")
    s = Settings.from_env()
    assert s.temperature == 0.3
    assert s.top_k is None
    assert s.fetch is False


def test_blank_top_k_stays_unset(monkeypatch):
    monkeypatch.setenv("TABGROUP_TOP_K", " ")
    assert Settings.from_env().classifier_config().top_k is None
