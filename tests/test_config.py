# tests/test_config.py
# -*- coding: utf-8 -*-
"""
Tests de moodledger/config.py : lecture de l'environnement et fuseaux.
"""

import datetime as dt
import logging

import pytest

from moodledger.config import (
    DEFAULT_DB_URL,
    LedgerSettings,
    configure_logging,
    resolve_timezone,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Nettoie les variables d'environnement pertinentes AVANT chaque test."""
    for key in [
        "MOODLEDGER_DB_URL",
        "MOODLEDGER_TIMEZONE",
        "MOODLEDGER_SQL_ECHO",
        "MOODLEDGER_LOG_LEVEL",
    ]:
        monkeypatch.delenv(key, raising=False)
    yield


def test_defaults():
    s = LedgerSettings.from_env()
    assert s.db_url == DEFAULT_DB_URL
    assert s.timezone == "UTC"
    assert s.tzinfo is dt.timezone.utc
    assert s.sql_echo is False
    assert s.log_level == "INFO"


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("MOODLEDGER_DB_URL", "sqlite:///autre.db")
    monkeypatch.setenv("MOODLEDGER_TIMEZONE", "Europe/Paris")
    monkeypatch.setenv("MOODLEDGER_SQL_ECHO", "Yes")
    monkeypatch.setenv("MOODLEDGER_LOG_LEVEL", "debug")
    s = LedgerSettings.from_env()
    assert s.db_url == "sqlite:///autre.db"
    assert s.sql_echo is True
    assert s.log_level == "DEBUG"
    # 12h UTC en hiver = 13h à Paris
    noon = dt.datetime(2025, 1, 15, 12, tzinfo=dt.timezone.utc)
    assert noon.astimezone(s.tzinfo).hour == 13


def test_unknown_timezone_fails_fast(monkeypatch):
    monkeypatch.setenv("MOODLEDGER_TIMEZONE", "Mars/Olympus_Mons")
    with pytest.raises(ValueError):
        LedgerSettings.from_env()


@pytest.mark.parametrize("name", ["", "utc", "UTC"])
def test_resolve_timezone_utc_aliases(name):
    assert resolve_timezone(name) is dt.timezone.utc


def test_configure_logging_accepts_level_names():
    # basicConfig ne reconfigure pas un root déjà équipé : on vérifie juste l'absence d'erreur
    configure_logging("warning")
    configure_logging("inconnu")
    assert logging.getLogger().handlers
