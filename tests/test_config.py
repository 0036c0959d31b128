"""Tests for the environment readers in data/config.py."""

import logging

import pytest

from data import config


@pytest.mark.parametrize("raw, expected", [
    ("", 60.0),
    ("15", 15.0),
    ("2.5", 2.5),
    ("abc", 60.0),
    ("0", 60.0),
    ("-5", 60.0),
    ("nan", 60.0),
])
def test_refresh_interval_must_be_positive(monkeypatch, raw, expected):
    monkeypatch.setenv("REFRESH_INTERVAL_SECONDS", raw)
    assert config._env_float("REFRESH_INTERVAL_SECONDS", 60.0, positive=True) == expected


def test_non_positive_value_is_logged(monkeypatch, caplog):
    monkeypatch.setenv("REFRESH_INTERVAL_SECONDS", "0")
    with caplog.at_level(logging.WARNING, logger="data.config"):
        config._env_float("REFRESH_INTERVAL_SECONDS", 60.0, positive=True)
    assert "non-positive REFRESH_INTERVAL_SECONDS" in caplog.text


def test_zero_allowed_without_positive(monkeypatch):
    monkeypatch.setenv("SOME_FLOAT", "0")
    assert config._env_float("SOME_FLOAT", 1.0) == 0.0


@pytest.mark.parametrize("raw, expected", [
    ("", 10_000),
    ("500", 500),
    ("0", 10_000),
    ("-1", 10_000),
    ("1e3", 10_000),
])
def test_total_count_must_be_positive(monkeypatch, raw, expected):
    monkeypatch.setenv("MARKETS_TOTAL_COUNT", raw)
    assert config._env_int("MARKETS_TOTAL_COUNT", 10_000, positive=True) == expected


def test_unset_timeout_stays_none(monkeypatch):
    monkeypatch.delenv("COINGECKO_TIMEOUT", raising=False)
    assert config._env_float("COINGECKO_TIMEOUT", None, positive=True) is None
