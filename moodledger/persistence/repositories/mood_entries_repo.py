# moodledger/persistence/repositories/mood_entries_repo.py
# -*- coding: utf-8 -*-
from sqlalchemy import select, update, delete, func, and_
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
import datetime as dt

from moodledger.errors import DuplicateEntryError
from moodledger.persistence.db import Database
from moodledger.persistence.models import MoodEntryRecord
from moodledger.services.mood_engine import Mood, MoodEntry

_UPSERT_INSERTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


def _as_utc(value: dt.datetime) -> dt.datetime:
    # SQLite rend des datetimes naïfs : ils ont été écrits en UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc)


def _to_entry(r: MoodEntryRecord) -> MoodEntry:
    return MoodEntry(
        id=r.id,
        patient_id=r.patient_id,
        mood=Mood(r.mood),
        mood_score=r.mood_score,
        notes=r.notes or "",
        day=r.day,
        created_at=_as_utc(r.created_at),
    )


class MoodEntryRepository:
    """
    Accès à la table mood_entries. Les arguments sont supposés déjà validés
    et normalisés (jour calendaire, score cohérent) par la couche service.
    """

    def __init__(self, db: Database):
        self.db = db

    def insert(self, patient_id: str, day: dt.date, mood: Mood, mood_score: int,
               notes: str, created_at: dt.datetime) -> MoodEntry:
        try:
            with self.db.session() as s:
                r = MoodEntryRecord(
                    patient_id=patient_id, day=day, mood=mood.value,
                    mood_score=mood_score, notes=notes, created_at=created_at,
                )
                s.add(r); s.flush(); s.refresh(r)
                return _to_entry(r)
        except IntegrityError as e:
            # la contrainte uq_patient_day tranche, même entre écrivains concurrents
            raise DuplicateEntryError(patient_id, day) from e

    def upsert_day(self, patient_id: str, day: dt.date, mood: Mood, mood_score: int,
                   notes: str, created_at: dt.datetime) -> MoodEntry:
        """
        INSERT ... ON CONFLICT (patient_id, day) DO UPDATE en une seule instruction.
        created_at n'est écrit qu'à l'insertion.
        """
        make_insert = _UPSERT_INSERTS.get(self.db.dialect)
        if make_insert is None:
            raise NotImplementedError(f"upsert non supporté pour le dialecte {self.db.dialect}")

        stmt = make_insert(MoodEntryRecord).values(
            patient_id=patient_id, day=day, mood=mood.value,
            mood_score=mood_score, notes=notes, created_at=created_at,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[MoodEntryRecord.patient_id, MoodEntryRecord.day],
            set_={
                "mood": stmt.excluded.mood,
                "mood_score": stmt.excluded.mood_score,
                "notes": stmt.excluded.notes,
            },
        )
        with self.db.session() as s:
            s.execute(stmt)
            r = s.scalar(select(MoodEntryRecord).where(and_(
                MoodEntryRecord.patient_id == patient_id, MoodEntryRecord.day == day
            )))
            return _to_entry(r)

    def get_by_id(self, entry_id: int) -> MoodEntry | None:
        with self.db.session() as s:
            r = s.get(MoodEntryRecord, entry_id)
            return _to_entry(r) if r else None

    def get_by_day(self, patient_id: str, day: dt.date) -> MoodEntry | None:
        with self.db.session() as s:
            r = s.scalar(select(MoodEntryRecord).where(and_(
                MoodEntryRecord.patient_id == patient_id, MoodEntryRecord.day == day
            )).limit(1))
            return _to_entry(r) if r else None

    def list_range(self, patient_id: str, start: dt.date | None = None, end: dt.date | None = None,
                   asc: bool = False, limit: int | None = None, offset: int | None = None) -> list[MoodEntry]:
        with self.db.session() as s:
            stmt = select(MoodEntryRecord).where(MoodEntryRecord.patient_id == patient_id)
            if start is not None:
                stmt = stmt.where(MoodEntryRecord.day >= start)
            if end is not None:
                stmt = stmt.where(MoodEntryRecord.day <= end)
            stmt = stmt.order_by(MoodEntryRecord.day.asc() if asc else MoodEntryRecord.day.desc())
            if offset:
                stmt = stmt.offset(offset)
            if limit:
                stmt = stmt.limit(limit)
            return [_to_entry(r) for r in s.scalars(stmt)]

    def update_fields(self, entry_id: int, **fields) -> MoodEntry | None:
        """UPDATE ciblé par id. Renvoie None si l'id n'existe pas."""
        with self.db.session() as s:
            res = s.execute(
                update(MoodEntryRecord).where(MoodEntryRecord.id == entry_id).values(**fields)
            )
            if res.rowcount == 0:
                return None
            r = s.get(MoodEntryRecord, entry_id, populate_existing=True)
            return _to_entry(r)

    def delete_by_id(self, entry_id: int) -> bool:
        with self.db.session() as s:
            res = s.execute(delete(MoodEntryRecord).where(MoodEntryRecord.id == entry_id))
            return res.rowcount > 0

    def delete_by_patient(self, patient_id: str) -> int:
        with self.db.session() as s:
            res = s.execute(delete(MoodEntryRecord).where(MoodEntryRecord.patient_id == patient_id))
            return res.rowcount

    def count(self, patient_id: str | None = None) -> int:
        with self.db.session() as s:
            stmt = select(func.count(MoodEntryRecord.id))
            if patient_id is not None:
                stmt = stmt.where(MoodEntryRecord.patient_id == patient_id)
            return s.scalar(stmt) or 0
