import logging
from typing import Any, List

from database import crud
from database.store import RecordStore
from exceptions import ValidationError
from models.common import load_record
from models.setting import Setting

logger = logging.getLogger(__name__)


def _check_key(key) -> str:
    if not isinstance(key, str) or not key.strip():
        raise ValidationError(f"Invalid setting key: {key!r}")
    return key


class SettingsService:
    def __init__(self, store: RecordStore):
        self._store = store

    def list_settings(self) -> List[Setting]:
        with self._store.session() as db:
            settings = [load_record(Setting, crud.row_to_dict(r)) for r in crud.get_all_settings(db)]
        return [s for s in settings if s is not None]

    def get_setting(self, key: str, default: Any = None) -> Any:
        with self._store.session() as db:
            row = crud.get_setting(db, _check_key(key))
            return row.value if row is not None else default

    def put_setting(self, key: str, value: Any) -> Setting:
        """Crée ou remplace la valeur (opération idempotente)"""
        with self._store.session() as db:
            crud.put_setting(db, _check_key(key), value)
        logger.info(f"Paramètre enregistré: {key}")
        return Setting(key=key, value=value)

    def delete_setting(self, key: str) -> None:
        with self._store.session() as db:
            crud.delete_setting(db, _check_key(key))
