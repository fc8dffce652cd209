# moodledger/services/mood_engine.py
# -*- coding: utf-8 -*-
from __future__ import annotations

import datetime as dt
import enum
import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Sequence

from moodledger.errors import ValidationError


class Mood(str, enum.Enum):
    ANGRY = "ANGRY"
    SAD = "SAD"
    ANXIOUS = "ANXIOUS"
    TIRED = "TIRED"
    CALM = "CALM"
    HAPPY = "HAPPY"


# Échelle 1..5. SAD et ANXIOUS partagent volontairement le score 2 :
# la distribution les distingue, la moyenne non.
MOOD_SCORES: Dict[Mood, int] = {
    Mood.ANGRY: 1,
    Mood.SAD: 2,
    Mood.ANXIOUS: 2,
    Mood.TIRED: 3,
    Mood.CALM: 4,
    Mood.HAPPY: 5,
}

# Seuils de pente pour la tendance
TREND_THRESHOLD = 0.1


class Trend(str, enum.Enum):
    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"


@dataclass(frozen=True)
class MoodEntry:
    """Une observation d'humeur (une par patient et par jour)."""
    id: int
    patient_id: str
    mood: Mood
    mood_score: int
    notes: str
    day: dt.date
    created_at: dt.datetime


@dataclass(frozen=True)
class MoodStatistics:
    """Résumé d'une plage d'entrées."""
    total_entries: int = 0
    average_score: float = 0.0
    mood_distribution: Dict[str, int] = field(default_factory=dict)
    trend: Optional[Trend] = None

    def as_dict(self) -> dict:
        return {
            "totalEntries": self.total_entries,
            "averageScore": self.average_score,
            "moodDistribution": dict(self.mood_distribution),
            "trend": self.trend.value if self.trend is not None else None,
        }


# -----------------------------------------------------------------------------
# Validation / normalisation
# -----------------------------------------------------------------------------

def parse_mood(value) -> Mood:
    """Accepte un Mood ou son nom (casse et espaces ignorés)."""
    if isinstance(value, Mood):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return Mood(value.strip().upper())
        except ValueError:
            pass
    allowed = ", ".join(m.value for m in Mood)
    raise ValidationError(f"mood invalide: {value!r} (attendu: {allowed})")


def score_for(mood) -> int:
    return MOOD_SCORES[parse_mood(mood)]


def require_patient_id(patient_id) -> str:
    if patient_id is None or not str(patient_id).strip():
        raise ValidationError("patient_id est obligatoire")
    return str(patient_id).strip()


def clean_notes(notes: Optional[str]) -> str:
    if notes is None:
        return ""
    if not isinstance(notes, str):
        raise ValidationError(f"notes doit être une chaîne, reçu {type(notes).__name__}")
    return notes.strip()


def _parse_iso(value: str):
    s = value.strip()
    if not s:
        raise ValidationError("date vide")
    if s.endswith(("Z", "z")):
        s = s[:-1] + "+00:00"
    try:
        if len(s) == 10:
            return dt.date.fromisoformat(s)
        return dt.datetime.fromisoformat(s)
    except ValueError as e:
        raise ValidationError(f"date illisible: {value!r}") from e


def normalize_day(value, tz: dt.tzinfo = dt.timezone.utc) -> dt.date:
    """
    Ramène une date/heure au jour calendaire dans le fuseau `tz`.

    - datetime naïf   : considéré comme déjà exprimé dans `tz`
    - datetime aware  : converti dans `tz` avant troncature
    - date            : renvoyée telle quelle
    - str ISO-8601    : 'YYYY-MM-DD' ou horodatage complet ('...Z' accepté)
    """
    if isinstance(value, str):
        value = _parse_iso(value)
    if isinstance(value, dt.datetime):
        if value.tzinfo is not None:
            value = value.astimezone(tz)
        return value.date()
    if isinstance(value, dt.date):
        return value
    raise ValidationError(f"type de date invalide: {type(value).__name__}")


# -----------------------------------------------------------------------------
# Statistiques et tendance
# -----------------------------------------------------------------------------

def round_half_up(value: float, digits: int = 2) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def linear_slope(scores: Sequence[float]) -> Optional[float]:
    """
    Pente des moindres carrés de `scores` contre les indices 0..n-1.

        slope = (n*Σxy - Σx*Σy) / (n*Σx² - (Σx)²)

    Renvoie None s'il y a moins de 2 points.
    """
    n = len(scores)
    if n < 2:
        return None
    sum_x = n * (n - 1) / 2
    sum_x2 = (n - 1) * n * (2 * n - 1) / 6
    sum_y = float(sum(scores))
    sum_xy = float(sum(i * y for i, y in enumerate(scores)))
    return (n * sum_xy - sum_x * sum_y) / (n * sum_x2 - sum_x * sum_x)


def classify_trend(slope: Optional[float]) -> Optional[Trend]:
    if slope is None:
        return None
    if slope > TREND_THRESHOLD:
        return Trend.IMPROVING
    if slope < -TREND_THRESHOLD:
        return Trend.DECLINING
    return Trend.STABLE


def compute_statistics(entries: Iterable[MoodEntry]) -> MoodStatistics:
    """
    Calcule total, moyenne (arrondie à 2 décimales), distribution par humeur
    et tendance sur une série d'entrées.

    La tendance est descriptive (signe de la pente), pas une prévision.
    Elle vaut None tant qu'il y a moins de 2 entrées.
    """
    ordered = sorted(entries, key=lambda e: e.day)
    if not ordered:
        return MoodStatistics()

    scores = [e.mood_score for e in ordered]
    distribution = Counter(parse_mood(e.mood).value for e in ordered)

    return MoodStatistics(
        total_entries=len(ordered),
        average_score=round_half_up(sum(scores) / len(scores), 2),
        mood_distribution=dict(distribution),
        trend=classify_trend(linear_slope(scores)),
    )
