# moodledger/persistence/db.py
# -*- coding: utf-8 -*-
from contextlib import contextmanager
import logging

from sqlalchemy import create_engine
from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from moodledger.errors import StorageUnavailableError

log = logging.getLogger(__name__)

# secondes d'attente quand SQLite est verrouillé par un autre écrivain
SQLITE_BUSY_TIMEOUT = 30


class Database:
    """
    Moteur + fabrique de sessions, construits explicitement et passés aux
    repositories. Cycle de vie : create_schema() au démarrage, dispose() à l'arrêt.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        connect_args = {}
        if url.startswith("sqlite"):
            connect_args["timeout"] = SQLITE_BUSY_TIMEOUT
        self.engine = create_engine(url, echo=echo, future=True, connect_args=connect_args)
        self.SessionLocal = sessionmaker(
            bind=self.engine,
            autoflush=False,
            autocommit=False,
            expire_on_commit=False,
            future=True,
        )

    @property
    def dialect(self) -> str:
        return self.engine.dialect.name

    @contextmanager
    def session(self):
        """Contexte gérant commit/rollback et classant les erreurs d'infrastructure."""
        s = self.SessionLocal()
        try:
            yield s
            s.commit()
        except IntegrityError:
            # contrainte violée : le repository décide de l'erreur métier
            s.rollback()
            raise
        except DBAPIError as e:
            s.rollback()
            log.error("Erreur base de données (%s): %s", self.dialect, e.orig)
            raise StorageUnavailableError(f"Base indisponible: {e.orig}") from e
        except Exception:
            s.rollback()
            raise
        finally:
            s.close()

    def create_schema(self, drop_and_recreate: bool = False) -> None:
        """Crée les tables (et les recrée si demandé)."""
        from moodledger.persistence.models import Base

        try:
            if drop_and_recreate:
                Base.metadata.drop_all(self.engine)
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            raise StorageUnavailableError(f"Création du schéma impossible: {e}") from e

    def dispose(self) -> None:
        self.engine.dispose()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.dispose()
        return False
