# moodledger/errors.py
# -*- coding: utf-8 -*-
"""
Erreurs typées du Mood Ledger.

Toutes héritent de MoodLedgerError pour que l'appelant puisse brancher
sur le type (validation, doublon, introuvable, stockage indisponible).
"""

from __future__ import annotations

import datetime as dt
from typing import Optional


class MoodLedgerError(Exception):
    """Racine de toutes les erreurs du ledger."""


class ValidationError(MoodLedgerError, ValueError):
    """Entrée invalide (humeur inconnue, patient manquant, date illisible...)."""


class DuplicateEntryError(MoodLedgerError):
    """Une entrée existe déjà pour ce (patient, jour) : utiliser update/upsert."""

    def __init__(self, patient_id: str, day: dt.date, message: Optional[str] = None):
        self.patient_id = patient_id
        self.day = day
        super().__init__(
            message or f"Entrée d'humeur déjà présente pour {patient_id} le {day.isoformat()}"
        )


class NotFoundError(MoodLedgerError, LookupError):
    """Aucune entrée ne correspond à la recherche."""

    def __init__(self, what: str):
        self.what = what
        super().__init__(f"Entrée d'humeur introuvable : {what}")


class StorageUnavailableError(MoodLedgerError):
    """La base est injoignable ou l'opération a échoué côté infrastructure."""
