from typing import Dict, List

from database import crud
from database.store import RecordStore
from exceptions import ValidationError
from models.budget import BudgetSnapshot
from models.common import require_month
from services.budget_service import BudgetService
from utils.dates import current_month_key, previous_month_key


class ReportService:
    def __init__(self, store: RecordStore, budget_service: BudgetService):
        self._store = store
        self._budget_service = budget_service

    def get_budget_vs_actual(self, month: str) -> List[BudgetSnapshot]:
        return self._budget_service.get_budget_snapshots(month)

    def get_spend_by_category(self, month: str) -> List[Dict]:
        """Retourne [{categoryId, month, totalCents}, ...] trié par total décroissant"""
        require_month(month)
        with self._store.session() as db:
            totals = crud.sum_expenses_by_category(db, month)
        rows = [
            {"categoryId": category_id, "month": month, "totalCents": total}
            for category_id, total in totals.items()
        ]
        return sorted(rows, key=lambda row: (-row["totalCents"], row["categoryId"]))

    def get_trend_over_time(self, start_month: str = None, months_back: int = 11) -> List[Dict]:
        """
        Total dépensé pour chacun des `months_back + 1` mois se terminant à
        `start_month` (inclus), du plus ancien au plus récent, mois vides compris.
        """
        start = require_month(start_month) if start_month is not None else current_month_key()
        if isinstance(months_back, bool) or not isinstance(months_back, int) or months_back < 0:
            raise ValidationError(f"months_back must be a non-negative integer, got {months_back!r}")

        months = [start]
        for _ in range(months_back):
            months.append(previous_month_key(months[-1]))
        months.reverse()

        with self._store.session() as db:
            totals = crud.sum_expenses_by_month(db, months)
        return [{"month": month, "totalCents": totals.get(month, 0)} for month in months]
