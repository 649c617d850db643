import logging
import uuid
from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from config import APPROACHING_RATIO
from database import crud
from database.store import RecordStore
from exceptions import ConflictError, NotFoundError
from models.budget import Budget, BudgetCreate, BudgetSnapshot, BudgetUpdate
from models.common import load_record, parse_model, require_month
from models.expense import Expense
from services.budget_calculator import calculate_budget_snapshot
from utils.dates import now_iso, previous_month_key
from utils.money import add_cents

logger = logging.getLogger(__name__)


def _totals_by_category(expenses: Iterable[Expense]) -> Dict[str, int]:
    amounts = defaultdict(list)
    for expense in expenses:
        amounts[expense.category_id].append(expense.amount_cents)
    return {category_id: add_cents(values) for category_id, values in amounts.items()}


def build_budget_snapshots(
    month: str,
    budgets: List[Budget],
    expenses: List[Expense],
    previous_budgets: Optional[List[Budget]] = None,
    previous_expenses: Optional[List[Expense]] = None,
    approaching_ratio: float = APPROACHING_RATIO,
) -> List[BudgetSnapshot]:
    """Un état par budget du mois ; le budget du mois précédent est retrouvé par catégorie"""
    totals = _totals_by_category(expenses)
    previous_totals = _totals_by_category(previous_expenses or [])

    previous_by_category: Dict[str, Budget] = {}
    for previous in previous_budgets or []:
        previous_by_category.setdefault(previous.category_id, previous)

    snapshots = []
    for budget in budgets:
        previous = previous_by_category.get(budget.category_id)
        snapshots.append(calculate_budget_snapshot(
            budget,
            actual_cents=totals.get(budget.category_id, 0),
            previous_budget=previous,
            previous_actual_cents=previous_totals.get(budget.category_id, 0) if previous else None,
            approaching_ratio=approaching_ratio,
        ))
    return snapshots


class BudgetService:
    def __init__(self, store: RecordStore, approaching_ratio: float = APPROACHING_RATIO):
        self._store = store
        self._approaching_ratio = approaching_ratio

    def _load_budgets(self, db, month: str = None, category_id: str = None) -> List[Budget]:
        rows = crud.get_budgets(db, month=month, category_id=category_id)
        budgets = [load_record(Budget, crud.row_to_dict(r)) for r in rows]
        return [b for b in budgets if b is not None]

    def list_budgets(self, month: str = None, category_id: str = None) -> List[Budget]:
        if month is not None:
            require_month(month)
        with self._store.session() as db:
            budgets = self._load_budgets(db, month=month, category_id=category_id)
        return sorted(budgets, key=lambda b: (b.month, b.category_id))

    def get_budget(self, budget_id: str) -> Optional[Budget]:
        with self._store.session() as db:
            row = crud.get_budget_by_id(db, budget_id)
            return load_record(Budget, crud.row_to_dict(row)) if row else None

    def create_budget(self, data) -> Budget:
        """Crée un budget ; un seul budget par (mois, catégorie)"""
        parsed = parse_model(BudgetCreate, data, "budget")
        now = now_iso()
        with self._store.session() as db:
            duplicate = crud.find_budget(db, parsed.month, parsed.category_id)
            if duplicate is not None and duplicate.id != parsed.id:
                raise ConflictError("Budget for this category and month already exists")
            record = Budget(
                id=parsed.id or uuid.uuid4().hex,
                month=parsed.month,
                category_id=parsed.category_id,
                limit_cents=parsed.limit_cents,
                carry_over_prev=bool(parsed.carry_over_prev),
                created_at=now,
                updated_at=now,
            )
            crud.put_budget(db, record.model_dump())
        logger.info(f"Budget créé: {record.id} ({record.category_id}, {record.month})")
        return record

    def update_budget(self, budget_id: str, patch) -> Budget:
        parsed = parse_model(BudgetUpdate, patch, "budget update")
        with self._store.session() as db:
            row = crud.get_budget_by_id(db, budget_id)
            if row is None:
                raise NotFoundError(f"Budget {budget_id} not found")
            current = crud.row_to_dict(row)
            current.update(parsed.model_dump(exclude_unset=True))
            current["updated_at"] = now_iso()
            record = parse_model(Budget, current, "budget")
            crud.put_budget(db, record.model_dump())
        logger.info(f"Budget mis à jour: {budget_id}")
        return record

    def delete_budget(self, budget_id: str) -> None:
        with self._store.session() as db:
            deleted = crud.delete_budget(db, budget_id)
        if deleted:
            logger.info(f"Budget supprimé: {budget_id}")

    def copy_from_previous_month(self, month: str) -> List[Budget]:
        """Recopie les budgets du mois précédent absents du mois donné"""
        require_month(month)
        source_month = previous_month_key(month)
        now = now_iso()
        created = []
        with self._store.session() as db:
            existing = {b.category_id for b in self._load_budgets(db, month=month)}
            for source in self._load_budgets(db, month=source_month):
                if source.category_id in existing:
                    continue
                record = Budget(
                    id=uuid.uuid4().hex,
                    month=month,
                    category_id=source.category_id,
                    limit_cents=source.limit_cents,
                    carry_over_prev=source.carry_over_prev,
                    created_at=now,
                    updated_at=now,
                )
                crud.put_budget(db, record.model_dump())
                existing.add(record.category_id)
                created.append(record)
        logger.info(f"{len(created)} budget(s) recopié(s) de {source_month} vers {month}")
        return created

    def get_budget_snapshots(self, month: str) -> List[BudgetSnapshot]:
        """État de chaque budget du mois (réel, report, disponible, statut)"""
        require_month(month)
        previous_month = previous_month_key(month)
        with self._store.session() as db:
            budgets = self._load_budgets(db, month=month)
            expenses = _load_expenses(db, month)
            previous_budgets = self._load_budgets(db, month=previous_month)
            previous_expenses = _load_expenses(db, previous_month)

        return build_budget_snapshots(
            month,
            budgets,
            expenses,
            previous_budgets=previous_budgets,
            previous_expenses=previous_expenses,
            approaching_ratio=self._approaching_ratio,
        )


def _load_expenses(db, month: str) -> List[Expense]:
    expenses = [load_record(Expense, crud.row_to_dict(r)) for r in crud.get_expenses(db, month=month)]
    return [e for e in expenses if e is not None]
