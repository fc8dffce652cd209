# tests/test_seed_script.py
# -*- coding: utf-8 -*-
"""
Tests du script scripts/seed_mood_entries.py (sans réseau, base temporaire).
"""

import datetime as dt
import random

import pytest

from moodledger.persistence.db import Database
from moodledger.persistence.repositories.mood_entries_repo import MoodEntryRepository
from moodledger.services.mood_engine import MOOD_SCORES
from scripts import seed_mood_entries


@pytest.fixture
def db(tmp_path):
    database = Database(f"sqlite:///{tmp_path / 'seed.db'}")
    database.create_schema()
    yield database
    database.dispose()


def test_seed_is_idempotent(db, capsys):
    random.seed(1)
    end = dt.date(2025, 1, 14)
    seed_mood_entries.seed(db=db, patients=2, days=14, end_date=end, gap_rate=0.0)
    repo = MoodEntryRepository(db)
    assert repo.count() == 28

    random.seed(2)
    stats = seed_mood_entries.seed(db=db, patients=2, days=14, end_date=end, gap_rate=0.0)
    assert repo.count() == 28
    assert set(stats) == {"patient-1", "patient-2"}
    assert all(s.total_entries == 14 for s in stats.values())
    assert "Terminé" in capsys.readouterr().out


def test_seeded_entries_are_consistent(db):
    random.seed(3)
    seed_mood_entries.seed(db=db, patients=1, days=10, end_date=dt.date(2025, 2, 10), gap_rate=0.3)
    rows = MoodEntryRepository(db).list_range("patient-1", asc=True)
    assert 0 < len(rows) <= 10
    assert all(r.mood_score == MOOD_SCORES[r.mood] for r in rows)
    assert all(dt.date(2025, 2, 1) <= r.day <= dt.date(2025, 2, 10) for r in rows)


def test_main_parses_cli(tmp_path, monkeypatch):
    monkeypatch.delenv("MOODLEDGER_TIMEZONE", raising=False)
    url = f"sqlite:///{tmp_path / 'cli.db'}"
    seed_mood_entries.main(["--patients", "1", "--days", "3", "--gap-rate", "0",
                            "--end", "2025-03-03", "--seed", "5", "--db-url", url, "--wipe"])
    with Database(url) as db:
        assert MoodEntryRepository(db).count("patient-1") == 3
