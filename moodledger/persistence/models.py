# moodledger/persistence/models.py
# -*- coding: utf-8 -*-
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy import Integer, String, Text, Date, DateTime, CheckConstraint, Index, UniqueConstraint
import datetime as dt

from moodledger.services.mood_engine import MOOD_SCORES


def _mood_score_check() -> str:
    # ex: (mood = 'ANGRY' AND mood_score = 1) OR (mood = 'SAD' AND mood_score = 2) ...
    return " OR ".join(
        f"(mood = '{m.value}' AND mood_score = {score})" for m, score in MOOD_SCORES.items()
    )


class Base(DeclarativeBase):
    pass


class MoodEntryRecord(Base):
    __tablename__ = "mood_entries"
    __table_args__ = (
        UniqueConstraint("patient_id", "day", name="uq_patient_day"),
        CheckConstraint(_mood_score_check(), name="ck_mood_score"),
        Index("ix_mood_entries_patient_day", "patient_id", "day"),
        Index("ix_mood_entries_day", "day"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    patient_id: Mapped[str] = mapped_column(String(64), nullable=False)
    day: Mapped[dt.date] = mapped_column(Date, nullable=False)

    mood: Mapped[str] = mapped_column(String(16), nullable=False)
    mood_score: Mapped[int] = mapped_column(Integer, nullable=False)
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")

    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False)
