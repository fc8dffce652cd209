# scripts/seed_mood_entries.py
# -*- coding: utf-8 -*-
"""
Seed local pour le Mood Ledger : crée des séries d'humeurs réalistes pour quelques patients.

Caractéristiques :
- Idempotent : réexécutable sans doublons (upsert par patient + jour)
- Paramétrable via CLI : nb de patients, nb de jours, date de fin, trous aléatoires
- Option (--wipe) pour drop+recreate le schéma (utile en dev)
- Affiche les statistiques (moyenne, distribution, tendance) de chaque patient

Exemples :
    # 3 patients, 14 jours jusqu'à aujourd'hui
    python scripts/seed_mood_entries.py

    # 5 patients, 30 jours, quelques trous, base dédiée
    python scripts/seed_mood_entries.py --patients 5 --days 30 --gap-rate 0.15 --db-url sqlite:///demo.db

    # Date de fin fixe et graine reproductible
    python scripts/seed_mood_entries.py --end 2025-10-01 --seed 7 --wipe
"""

from __future__ import annotations

import argparse
import datetime as dt
import logging
import random

from moodledger.config import LedgerSettings, configure_logging
from moodledger.persistence.db import Database
from moodledger.persistence.repositories.mood_entries_repo import MoodEntryRepository
from moodledger.services.mood_engine import Mood, MOOD_SCORES
from moodledger.services.mood_ledger import MoodLedger

MOODS_BY_SCORE = {}
for _m, _s in MOOD_SCORES.items():
    MOODS_BY_SCORE.setdefault(_s, []).append(_m)

NOTES = ["", "", "", "Bonne nuit", "Visite de la famille", "Un peu fatigué", "Promenade au parc"]


# -------------------------------------------------------------------
# Utils
# -------------------------------------------------------------------

def clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


def sample_mood(previous_score: float) -> Mood:
    """Marche aléatoire autour du score précédent, pour des séries plausibles."""
    score = int(round(clamp(random.gauss(previous_score, 0.9), 1, 5)))
    return random.choice(MOODS_BY_SCORE[score])


def daterange(end: dt.date, days: int):
    """Génère des dates [end - (days-1) .. end] incluses, en ordre croissant."""
    for i in range(days):
        yield end - dt.timedelta(days=(days - 1 - i))


class _FixedClock:
    """Horloge réglable : permet d'upserter 'aujourd'hui' pour chaque jour passé."""

    def __init__(self):
        self.current = dt.datetime.now(dt.timezone.utc)

    def __call__(self) -> dt.datetime:
        return self.current


# -------------------------------------------------------------------
# Seeding
# -------------------------------------------------------------------

def seed(
    *,
    db: Database,
    patients: int,
    days: int,
    end_date: dt.date,
    gap_rate: float,
    patient_prefix: str = "patient-",
) -> dict:
    """
    Remplit la base avec `patients` patients, chacun ayant jusqu'à `days` humeurs,
    avec des trous éventuels (gap_rate). Renvoie {patient_id: MoodStatistics}.
    """
    clock = _FixedClock()
    ledger = MoodLedger(MoodEntryRepository(db), tz=dt.timezone.utc, clock=clock)

    print(f"➡️  Seeding {patients} patient(s), {days} jour(s), fin au {end_date.isoformat()}"
          f" | gaps ~{int(gap_rate*100)}%")

    stats = {}
    total = 0
    for i in range(1, patients + 1):
        pid = f"{patient_prefix}{i}"
        score = random.uniform(2, 4)
        for day in daterange(end=end_date, days=days):
            if random.random() < gap_rate:
                continue
            mood = sample_mood(score)
            score = MOOD_SCORES[mood]
            clock.current = dt.datetime.combine(day, dt.time(20, 0), tzinfo=dt.timezone.utc)
            ledger.upsert_today(pid, mood, notes=random.choice(NOTES))
            total += 1

        stats[pid] = ledger.get_statistics(pid)
        s = stats[pid]
        trend = s.trend.value if s.trend else "—"
        print(f"   • {pid:<14} entrées={s.total_entries:>3}  moyenne={s.average_score:.2f}  tendance={trend}")

    print(f"✅ Terminé : {patients} patient(s), {total} humeur(s) créées/mises à jour.")
    return stats


# -------------------------------------------------------------------
# CLI
# -------------------------------------------------------------------

def parse_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Seed local data for the mood ledger")
    p.add_argument("--patients", type=int, default=3, help="Nombre de patients (défaut: 3)")
    p.add_argument("--days", type=int, default=14, help="Nombre de jours (défaut: 14)")
    p.add_argument("--end", type=str, default=None, help="Date de fin (YYYY-MM-DD). Défaut: aujourd'hui")
    p.add_argument("--gap-rate", type=float, default=0.1, help="Probabilité de sauter un jour (0..1, défaut: 0.1)")
    p.add_argument("--seed", type=int, default=None, help="Seed du générateur aléatoire pour reproductibilité")
    p.add_argument("--db-url", type=str, default=None, help="URL SQLAlchemy (défaut: MOODLEDGER_DB_URL)")
    p.add_argument("--wipe", action="store_true", help="Drop + recreate la base avant seeding")
    return p.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    settings = LedgerSettings.from_env()
    configure_logging(settings.log_level)

    if args.seed is not None:
        random.seed(args.seed)

    end_date = dt.date.fromisoformat(args.end) if args.end else dt.date.today()

    if args.wipe:
        print("⚠️  Wipe : drop & recreate le schéma…")

    with Database(args.db_url or settings.db_url, echo=settings.sql_echo) as db:
        db.create_schema(drop_and_recreate=bool(args.wipe))
        # les upserts quotidiens sont bavards en INFO
        logging.getLogger("moodledger.services.mood_ledger").setLevel(logging.WARNING)
        seed(
            db=db,
            patients=max(1, args.patients),
            days=max(1, args.days),
            end_date=end_date,
            gap_rate=clamp(args.gap_rate, 0.0, 0.9),
        )


if __name__ == "__main__":
    main()
