# moodledger/config.py
# -*- coding: utf-8 -*-
"""
Configuration du Mood Ledger, lue depuis l'environnement.

Variables supportées :
    MOODLEDGER_DB_URL      : URL SQLAlchemy (défaut: sqlite:///moodledger.db)
    MOODLEDGER_TIMEZONE    : fuseau IANA servant à découper les journées (défaut: UTC)
    MOODLEDGER_SQL_ECHO    : 1/true/yes/on pour tracer le SQL émis
    MOODLEDGER_LOG_LEVEL   : niveau de log (défaut: INFO)
"""

from __future__ import annotations

import datetime as dt
import logging
import os
from dataclasses import dataclass
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

DEFAULT_DB_URL = "sqlite:///moodledger.db"
DEFAULT_TIMEZONE = "UTC"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_TRUTHY = {"1", "true", "yes", "on"}


def resolve_timezone(name: str) -> dt.tzinfo:
    """Transforme un nom de fuseau en tzinfo. Lève ValueError si inconnu."""
    name = (name or "").strip()
    if not name or name.upper() == "UTC":
        return dt.timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Fuseau horaire inconnu: {name!r}") from e


@dataclass(frozen=True)
class LedgerSettings:
    db_url: str = DEFAULT_DB_URL
    timezone: str = DEFAULT_TIMEZONE
    sql_echo: bool = False
    log_level: str = "INFO"

    def __post_init__(self):
        # valide le fuseau dès la construction plutôt qu'au premier appel
        resolve_timezone(self.timezone)

    @property
    def tzinfo(self) -> dt.tzinfo:
        return resolve_timezone(self.timezone)

    @classmethod
    def from_env(cls) -> "LedgerSettings":
        return cls(
            db_url=os.getenv("MOODLEDGER_DB_URL", DEFAULT_DB_URL).strip(),
            timezone=os.getenv("MOODLEDGER_TIMEZONE", DEFAULT_TIMEZONE).strip(),
            sql_echo=os.getenv("MOODLEDGER_SQL_ECHO", "").strip().lower() in _TRUTHY,
            log_level=os.getenv("MOODLEDGER_LOG_LEVEL", "INFO").strip().upper(),
        )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
