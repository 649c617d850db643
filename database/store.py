import logging
import threading
from contextlib import contextmanager, nullcontext
from typing import Iterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from database.database import create_db_engine, create_session_factory, init_db
from exceptions import StorageError

logger = logging.getLogger(__name__)


class RecordStore:
    """
    Point d'accès unique au stockage : construit une fois au démarrage puis
    transmis à chaque service (pas d'instance globale).
    """

    def __init__(self, database_url: str = None, engine=None):
        self.engine = engine if engine is not None else create_db_engine(database_url)
        self._session_factory = create_session_factory(self.engine)
        self._exclusive_lock = threading.RLock()
        # Une seule connexion partagée : deux sessions concurrentes partageraient
        # la même transaction, toutes les sessions passent donc par le verrou
        self._single_connection = isinstance(self.engine.pool, StaticPool)

    @classmethod
    def in_memory(cls) -> "RecordStore":
        """Base SQLite en mémoire, isolée (tests)"""
        store = cls("sqlite://")
        store.init_db()
        return store

    def init_db(self):
        try:
            init_db(self.engine)
        except SQLAlchemyError as e:
            logger.error(f"Échec de l'initialisation de la base: {str(e)}")
            raise StorageError(f"Could not initialise database: {e}") from e

    @contextmanager
    def session(self) -> Iterator[Session]:
        """
        Ouvre une session transactionnelle : commit en sortie normale,
        rollback sur toute exception (les erreurs SQLAlchemy deviennent StorageError)
        """
        with self._exclusive_lock if self._single_connection else nullcontext():
            db = self._session_factory()
            try:
                yield db
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                logger.error(f"Erreur de stockage, transaction annulée: {str(e)}")
                raise StorageError(str(e)) from e
            except Exception:
                db.rollback()
                raise
            finally:
                db.close()

    @contextmanager
    def exclusive_session(self) -> Iterator[Session]:
        """Session réservée aux opérations multi-tables (vidage, import, amorçage)"""
        with self._exclusive_lock:
            with self.session() as db:
                yield db

    def dispose(self):
        self.engine.dispose()
