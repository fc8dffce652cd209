# moodledger/services/mood_ledger.py
# -*- coding: utf-8 -*-
"""
Mood Ledger : une humeur par patient et par jour, plus les statistiques
(moyenne, distribution, tendance) sur une plage de dates.

Usage:
    from moodledger.config import LedgerSettings
    from moodledger.services.mood_ledger import open_ledger

    db, ledger = open_ledger(LedgerSettings.from_env())
    ledger.record_mood("patient-42", "CALM", "2025-01-01", notes="bonne nuit")
    stats = ledger.get_statistics("patient-42")
    db.dispose()

Le ledger ne fait aucun retry : les erreurs de stockage remontent telles
quelles (StorageUnavailableError) et la politique de reprise appartient
à l'appelant.
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import Callable, List, Optional, Tuple

from moodledger.config import LedgerSettings
from moodledger.errors import DuplicateEntryError, NotFoundError, ValidationError
from moodledger.persistence.db import Database
from moodledger.persistence.repositories.mood_entries_repo import MoodEntryRepository
from moodledger.services.mood_engine import (
    MOOD_SCORES,
    MoodEntry,
    MoodStatistics,
    clean_notes,
    compute_statistics,
    normalize_day,
    parse_mood,
    require_patient_id,
)

log = logging.getLogger(__name__)


def _utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class MoodLedger:
    """
    Service sans état : tout passe par le repository injecté.

    Args:
        repository: MoodEntryRepository (ou équivalent) déjà branché sur une base
        tz: fuseau qui définit où commence et finit une journée
        clock: fonction renvoyant l'instant courant (aware), injectable pour les tests
    """

    def __init__(
        self,
        repository: MoodEntryRepository,
        tz: dt.tzinfo = dt.timezone.utc,
        clock: Optional[Callable[[], dt.datetime]] = None,
    ) -> None:
        self.repository = repository
        self.tz = tz
        self._clock = clock or _utc_now

    # -------------------------------------------------------------------------
    # Horloge
    # -------------------------------------------------------------------------

    def now(self) -> dt.datetime:
        now = self._clock()
        if now.tzinfo is None:
            now = now.replace(tzinfo=self.tz)
        return now.astimezone(dt.timezone.utc)

    def today(self) -> dt.date:
        return self.now().astimezone(self.tz).date()

    def _day(self, value) -> dt.date:
        if value is None:
            raise ValidationError("date est obligatoire")
        return normalize_day(value, self.tz)

    # -------------------------------------------------------------------------
    # Écriture
    # -------------------------------------------------------------------------

    def record_mood(self, patient_id, mood, date, notes: Optional[str] = None) -> MoodEntry:
        """
        Crée l'entrée du jour `date`. Lève DuplicateEntryError si le jour est
        déjà renseigné : c'est la contrainte d'unicité de la base qui tranche,
        pas une lecture préalable.
        """
        pid = require_patient_id(patient_id)
        m = parse_mood(mood)
        day = self._day(date)
        text = clean_notes(notes)

        try:
            entry = self.repository.insert(
                patient_id=pid, day=day, mood=m, mood_score=MOOD_SCORES[m],
                notes=text, created_at=self.now(),
            )
        except DuplicateEntryError:
            log.warning("Humeur déjà enregistrée pour %s le %s", pid, day.isoformat())
            raise

        log.info("Humeur enregistrée: id=%s patient=%s mood=%s score=%s day=%s",
                 entry.id, pid, entry.mood.value, entry.mood_score, day.isoformat())
        return entry

    def upsert_today(self, patient_id, mood, notes: Optional[str] = None) -> MoodEntry:
        """Crée ou remplace l'entrée d'aujourd'hui (created_at d'origine conservé)."""
        pid = require_patient_id(patient_id)
        m = parse_mood(mood)
        text = clean_notes(notes)
        day = self.today()

        entry = self.repository.upsert_day(
            patient_id=pid, day=day, mood=m, mood_score=MOOD_SCORES[m],
            notes=text, created_at=self.now(),
        )
        log.info("Humeur du jour mise à jour: id=%s patient=%s mood=%s day=%s",
                 entry.id, pid, entry.mood.value, day.isoformat())
        return entry

    def update_entry(self, entry_id: int, mood=None, notes: Optional[str] = None) -> MoodEntry:
        """Mise à jour partielle ; le score suit toujours l'humeur."""
        fields = {}
        if mood is not None:
            m = parse_mood(mood)
            fields["mood"] = m.value
            fields["mood_score"] = MOOD_SCORES[m]
        if notes is not None:
            fields["notes"] = clean_notes(notes)
        if not fields:
            raise ValidationError("rien à mettre à jour (mood ou notes attendu)")

        entry = self.repository.update_fields(entry_id, **fields)
        if entry is None:
            raise NotFoundError(f"id={entry_id}")
        log.info("Humeur modifiée: id=%s champs=%s", entry_id, sorted(fields))
        return entry

    def delete_entry(self, entry_id: int) -> None:
        if not self.repository.delete_by_id(entry_id):
            raise NotFoundError(f"id={entry_id}")
        log.info("Humeur supprimée: id=%s", entry_id)

    def delete_patient_entries(self, patient_id) -> int:
        """Suppression en cascade, appelée quand le patient est retiré."""
        pid = require_patient_id(patient_id)
        n = self.repository.delete_by_patient(pid)
        log.info("%s humeur(s) supprimée(s) pour %s", n, pid)
        return n

    # -------------------------------------------------------------------------
    # Lecture
    # -------------------------------------------------------------------------

    def get_entry(self, patient_id, date) -> MoodEntry:
        pid = require_patient_id(patient_id)
        day = self._day(date)
        entry = self.repository.get_by_day(pid, day)
        if entry is None:
            raise NotFoundError(f"patient={pid} jour={day.isoformat()}")
        return entry

    def get_entry_by_id(self, entry_id: int) -> MoodEntry:
        entry = self.repository.get_by_id(entry_id)
        if entry is None:
            raise NotFoundError(f"id={entry_id}")
        return entry

    def get_today(self, patient_id) -> MoodEntry:
        return self.get_entry(patient_id, self.today())

    def list_entries(
        self,
        patient_id,
        start=None,
        end=None,
        ascending: bool = False,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[MoodEntry]:
        """Entrées du patient, bornes incluses, plus récentes d'abord par défaut."""
        pid = require_patient_id(patient_id)
        start_day = self._day(start) if start is not None else None
        end_day = self._day(end) if end is not None else None
        rows = self.repository.list_range(pid, start=start_day, end=end_day,
                                          asc=ascending, limit=limit, offset=offset)
        log.debug("%s entrée(s) pour %s entre %s et %s", len(rows), pid, start_day, end_day)
        return rows

    def recent_entries(self, patient_id, days: int = 7) -> List[MoodEntry]:
        if days < 0:
            raise ValidationError(f"days doit être positif, reçu {days}")
        return self.list_entries(patient_id, start=self.today() - dt.timedelta(days=days))

    def get_statistics(self, patient_id, start=None, end=None) -> MoodStatistics:
        """
        Moyenne, distribution et tendance sur la plage.

        La tendance décrit le passé (pente des scores) ; ce n'est pas une prévision.
        """
        entries = self.list_entries(patient_id, start=start, end=end, ascending=True)
        return compute_statistics(entries)

    def count_entries(self, patient_id=None) -> int:
        pid = require_patient_id(patient_id) if patient_id is not None else None
        return self.repository.count(pid)


def open_ledger(settings: LedgerSettings) -> Tuple[Database, MoodLedger]:
    """Construit la base (schéma créé) et le ledger correspondant."""
    db = Database(settings.db_url, echo=settings.sql_echo)
    db.create_schema()
    ledger = MoodLedger(MoodEntryRepository(db), tz=settings.tzinfo)
    return db, ledger
