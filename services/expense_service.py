import logging
import uuid
from typing import List, Optional

from database import crud
from database.store import RecordStore
from exceptions import NotFoundError
from models.common import load_record, parse_model
from models.expense import Expense, ExpenseCreate, ExpenseFilters, ExpenseUpdate
from utils.dates import month_key, now_iso, parse_iso_datetime

logger = logging.getLogger(__name__)


def _matches_search(expense: Expense, query: str) -> bool:
    return bool(expense.note) and query in expense.note.casefold()


class ExpenseService:
    def __init__(self, store: RecordStore):
        self._store = store

    def list_expenses(
        self,
        month: str = None,
        category_id: str = None,
        search: str = None,
        order: str = "desc",
        limit: int = None,
    ) -> List[Expense]:
        """
        Dépenses filtrées (mois, catégorie, recherche dans la note), triées par date
        puis tronquées à `limit`. Les filtres se combinent (ET).
        """
        filters = parse_model(
            ExpenseFilters,
            {"month": month, "category_id": category_id, "search": search, "order": order, "limit": limit},
            "expense filters",
        )
        with self._store.session() as db:
            rows = crud.get_expenses(db, month=filters.month, category_id=filters.category_id)
            expenses = [load_record(Expense, crud.row_to_dict(r)) for r in rows]
        expenses = [e for e in expenses if e is not None]

        query = (filters.search or "").strip().casefold()
        if query:
            expenses = [e for e in expenses if _matches_search(e, query)]

        expenses.sort(key=lambda e: parse_iso_datetime(e.date), reverse=filters.order == "desc")

        if filters.limit is not None:
            expenses = expenses[:filters.limit]
        return expenses

    def get_expense(self, expense_id: str) -> Optional[Expense]:
        with self._store.session() as db:
            row = crud.get_expense_by_id(db, expense_id)
            return load_record(Expense, crud.row_to_dict(row)) if row else None

    def create_expense(self, data) -> Expense:
        parsed = parse_model(ExpenseCreate, data, "expense")
        now = now_iso()
        derived_month = month_key(parsed.date)
        if parsed.month and parsed.month != derived_month:
            logger.debug(f"Mois fourni {parsed.month} ignoré, recalculé depuis la date: {derived_month}")
        record = Expense(
            id=parsed.id or uuid.uuid4().hex,
            amount_cents=parsed.amount_cents,
            currency="EUR",
            date=parsed.date,
            month=derived_month,
            category_id=parsed.category_id,
            note=parsed.note,
            created_at=now,
            updated_at=now,
        )
        with self._store.session() as db:
            crud.put_expense(db, record.model_dump())
        logger.info(f"Dépense créée: {record.id} ({record.amount_cents} cts, {record.month})")
        return record

    def update_expense(self, expense_id: str, patch) -> Expense:
        parsed = parse_model(ExpenseUpdate, patch, "expense update")
        changes = parsed.model_dump(exclude_unset=True)
        # Le mois suit toujours la date
        changes.pop("month", None)
        with self._store.session() as db:
            row = crud.get_expense_by_id(db, expense_id)
            if row is None:
                raise NotFoundError(f"Expense {expense_id} not found")
            current = crud.row_to_dict(row)
            current.update(changes)
            current["month"] = month_key(current["date"])
            current["updated_at"] = now_iso()
            record = parse_model(Expense, current, "expense")
            crud.put_expense(db, record.model_dump())
        logger.info(f"Dépense mise à jour: {expense_id}")
        return record

    def delete_expense(self, expense_id: str) -> None:
        with self._store.session() as db:
            deleted = crud.delete_expense(db, expense_id)
        if deleted:
            logger.info(f"Dépense supprimée: {expense_id}")
