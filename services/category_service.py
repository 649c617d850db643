import logging
import uuid
from typing import List, Optional

from database import crud
from database.store import RecordStore
from exceptions import ConflictError, NotFoundError
from models.category import Category, CategoryCreate, CategoryUpdate
from models.common import load_record, parse_model
from utils.dates import now_iso

logger = logging.getLogger(__name__)


class CategoryService:
    def __init__(self, store: RecordStore):
        self._store = store

    def list_categories(self, include_hidden: bool = False) -> List[Category]:
        """Catégories triées par nom ; les catégories masquées sont exclues par défaut"""
        with self._store.session() as db:
            rows = crud.get_all_categories(db, include_hidden=include_hidden)
            categories = [load_record(Category, crud.row_to_dict(r)) for r in rows]
        categories = [c for c in categories if c is not None]
        return sorted(categories, key=lambda c: (c.name.casefold(), c.name))

    def get_category(self, category_id: str) -> Optional[Category]:
        with self._store.session() as db:
            row = crud.get_category_by_id(db, category_id)
            return load_record(Category, crud.row_to_dict(row)) if row else None

    def create_category(self, data) -> Category:
        parsed = parse_model(CategoryCreate, data, "category")
        now = now_iso()
        record = Category(
            id=parsed.id or uuid.uuid4().hex,
            name=parsed.name,
            color=parsed.color,
            is_hidden=bool(parsed.is_hidden),
            created_at=now,
            updated_at=now,
        )
        with self._store.session() as db:
            crud.put_category(db, record.model_dump())
        logger.info(f"Catégorie créée: {record.id} ({record.name})")
        return record

    def update_category(self, category_id: str, patch) -> Category:
        parsed = parse_model(CategoryUpdate, patch, "category update")
        changes = parsed.model_dump(exclude_unset=True)
        with self._store.session() as db:
            row = crud.get_category_by_id(db, category_id)
            if row is None:
                raise NotFoundError(f"Category {category_id} not found")
            current = crud.row_to_dict(row)
            current.update(changes)
            current["updated_at"] = now_iso()
            record = parse_model(Category, current, "category")
            crud.put_category(db, record.model_dump())
        logger.info(f"Catégorie mise à jour: {category_id}")
        return record

    def set_hidden(self, category_id: str, is_hidden: bool) -> Category:
        return self.update_category(category_id, {"is_hidden": is_hidden})

    def delete_category(self, category_id: str) -> None:
        """Suppression refusée tant que des dépenses référencent la catégorie (la masquer à la place)"""
        with self._store.session() as db:
            if crud.count_expenses_for_category(db, category_id) > 0:
                raise ConflictError("Cannot delete category with associated expenses; hide it instead")
            deleted = crud.delete_category(db, category_id)
        if deleted:
            logger.info(f"Catégorie supprimée: {category_id}")
