"""
Export et import de toutes les données (catégories, budgets, dépenses, paramètres)
au format JSON versionné.
"""
import json
import logging
from typing import Dict

from database import crud
from database.models import BudgetModel, CategoryModel, ExpenseModel, SettingModel
from database.store import RecordStore
from models.backup import BACKUP_VERSION, BackupPayload
from models.budget import Budget
from models.category import Category
from models.common import parse_model
from models.expense import Expense
from models.setting import Setting
from utils.dates import now_iso

logger = logging.getLogger(__name__)


def _validated(schema, rows, label: str):
    """Valide chaque ligne lue ; un enregistrement corrompu bloque l'export"""
    return [parse_model(schema, crud.row_to_dict(row), label) for row in rows]


class BackupService:
    def __init__(self, store: RecordStore):
        self._store = store

    # ── Export ────────────────────────────────────────────────────────────────

    def export_backup(self) -> BackupPayload:
        """Instantané complet des quatre collections (lecture seule)"""
        with self._store.session() as db:
            payload = BackupPayload(
                version=BACKUP_VERSION,
                exported_at=now_iso(),
                categories=_validated(Category, crud.get_all_categories(db, include_hidden=True), "category"),
                budgets=_validated(Budget, crud.get_budgets(db), "budget"),
                expenses=_validated(Expense, crud.get_expenses(db), "expense"),
                settings=_validated(Setting, crud.get_all_settings(db), "setting"),
            )
        logger.info(
            f"Export: {len(payload.categories)} catégorie(s), {len(payload.budgets)} budget(s), "
            f"{len(payload.expenses)} dépense(s), {len(payload.settings)} paramètre(s)"
        )
        return payload

    def export_backup_json(self, indent: int = 2) -> str:
        return json.dumps(self.export_backup().to_wire(), indent=indent, ensure_ascii=False)

    # ── Vidage ────────────────────────────────────────────────────────────────

    def clear_all_data(self, keep_settings: bool = False) -> Dict[str, int]:
        with self._store.exclusive_session() as db:
            stats = _clear(db, keep_settings)
        logger.info(f"Données effacées: {stats}")
        return stats

    # ── Import ────────────────────────────────────────────────────────────────

    def import_backup(self, payload, merge: bool = False, keep_existing_settings: bool = False) -> Dict[str, int]:
        """
        Importe une sauvegarde (dict, BackupPayload ou texte JSON).

        merge=False : remplace toutes les données.
        merge=True  : supprime les enregistrements de même id puis insère (le dernier écrit gagne).
        Tout se fait dans une seule transaction : en cas d'échec rien n'est modifié.
        """
        data = parse_model(BackupPayload, payload, "backup")

        with self._store.exclusive_session() as db:
            if not merge:
                _clear(db, keep_settings=keep_existing_settings)
            else:
                crud.bulk_delete(db, CategoryModel, [c.id for c in data.categories])
                crud.bulk_delete(db, BudgetModel, [b.id for b in data.budgets])
                crud.bulk_delete(db, ExpenseModel, [e.id for e in data.expenses])

            stats = {
                "categories": crud.bulk_put(db, CategoryModel, [c.model_dump() for c in data.categories]),
                "budgets": crud.bulk_put(db, BudgetModel, [b.model_dump() for b in data.budgets]),
                "expenses": crud.bulk_put(db, ExpenseModel, [e.model_dump() for e in data.expenses]),
            }

            if not keep_existing_settings:
                crud.clear_table(db, SettingModel)
            stats["settings"] = crud.bulk_put(db, SettingModel, [s.model_dump() for s in data.settings])

        logger.info(f"Import ({'fusion' if merge else 'remplacement'}) terminé: {stats}")
        return stats

    def import_backup_file(self, path: str, **options) -> Dict[str, int]:
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
        return self.import_backup(text, **options)

    def export_backup_file(self, path: str) -> None:
        with open(path, "w", encoding="utf-8") as f:
            f.write(self.export_backup_json())


def _clear(db, keep_settings: bool) -> Dict[str, int]:
    stats = {
        "categories": crud.clear_table(db, CategoryModel),
        "budgets": crud.clear_table(db, BudgetModel),
        "expenses": crud.clear_table(db, ExpenseModel),
    }
    if not keep_settings:
        stats["settings"] = crud.clear_table(db, SettingModel)
    return stats
