import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import uvicorn
from fastapi import Body, Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import API_HOST, API_PORT, APPROACHING_RATIO, DATABASE_URL, LOG_LEVEL
from database.seeds import seed_database
from database.store import RecordStore
from exceptions import ConflictError, NotFoundError, StorageError, ValidationError
from services.backup_service import BackupService
from services.budget_service import BudgetService
from services.category_service import CategoryService
from services.expense_service import ExpenseService
from services.report_service import ReportService
from services.settings_service import SettingsService

logger = logging.getLogger(__name__)


class AppServices:
    """Services construits une fois autour du même stockage"""

    def __init__(self, store: RecordStore, approaching_ratio: float = APPROACHING_RATIO):
        self.store = store
        self.categories = CategoryService(store)
        self.expenses = ExpenseService(store)
        self.budgets = BudgetService(store, approaching_ratio=approaching_ratio)
        self.reports = ReportService(store, self.budgets)
        self.settings = SettingsService(store)
        self.backup = BackupService(store)


def get_services(request: Request) -> AppServices:
    return request.app.state.services


def _error_handler(status_code: int):
    async def handler(request: Request, exc: Exception):
        content = {"success": False, "detail": str(exc)}
        if isinstance(exc, ValidationError):
            content["errors"] = exc.errors
        return JSONResponse(status_code=status_code, content=content)
    return handler


def create_app(store: Optional[RecordStore] = None) -> FastAPI:
    """
    Construit l'application. Sans stockage fourni, la base configurée est
    ouverte, initialisée et amorcée au démarrage.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = store is None
        active_store = store
        if owned:
            active_store = RecordStore(DATABASE_URL)
            active_store.init_db()
            seed_database(active_store)
            logger.info(f"Base ouverte: {DATABASE_URL}")
        app.state.services = AppServices(active_store)
        yield
        if owned:
            active_store.dispose()

    app = FastAPI(title="Finance Tracker API", version="1.0.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ValidationError, _error_handler(422))
    app.add_exception_handler(NotFoundError, _error_handler(404))
    app.add_exception_handler(ConflictError, _error_handler(409))
    app.add_exception_handler(StorageError, _error_handler(500))

    _register_routes(app)
    return app


def _register_routes(app: FastAPI):

    @app.get("/")
    def root():
        return {"message": "Finance Tracker API"}

    # Catégories
    @app.get("/api/categories")
    def list_categories(include_hidden: bool = False, services: AppServices = Depends(get_services)):
        categories = services.categories.list_categories(include_hidden=include_hidden)
        return {"success": True, "categories": [c.to_wire() for c in categories]}

    @app.get("/api/categories/{category_id}")
    def get_category(category_id: str, services: AppServices = Depends(get_services)):
        category = services.categories.get_category(category_id)
        if not category:
            raise HTTPException(status_code=404, detail="Category not found")
        return {"success": True, "category": category.to_wire()}

    @app.post("/api/categories", status_code=201)
    def create_category(payload: Dict[str, Any] = Body(...), services: AppServices = Depends(get_services)):
        category = services.categories.create_category(payload)
        return {"success": True, "category": category.to_wire()}

    @app.patch("/api/categories/{category_id}")
    def update_category(
        category_id: str,
        payload: Dict[str, Any] = Body(...),
        services: AppServices = Depends(get_services),
    ):
        category = services.categories.update_category(category_id, payload)
        return {"success": True, "category": category.to_wire()}

    @app.put("/api/categories/{category_id}/hidden")
    def set_category_hidden(
        category_id: str,
        hidden: bool = Query(..., description="Masquer (true) ou réafficher (false)"),
        services: AppServices = Depends(get_services),
    ):
        category = services.categories.set_hidden(category_id, hidden)
        return {"success": True, "category": category.to_wire()}

    @app.delete("/api/categories/{category_id}")
    def delete_category(category_id: str, services: AppServices = Depends(get_services)):
        services.categories.delete_category(category_id)
        return {"success": True}

    # Dépenses
    @app.get("/api/expenses")
    def list_expenses(
        month: Optional[str] = None,
        category_id: Optional[str] = None,
        search: Optional[str] = None,
        order: str = "desc",
        limit: Optional[int] = None,
        services: AppServices = Depends(get_services),
    ):
        expenses = services.expenses.list_expenses(
            month=month, category_id=category_id, search=search, order=order, limit=limit
        )
        return {"success": True, "expenses": [e.to_wire() for e in expenses]}

    @app.get("/api/expenses/{expense_id}")
    def get_expense(expense_id: str, services: AppServices = Depends(get_services)):
        expense = services.expenses.get_expense(expense_id)
        if not expense:
            raise HTTPException(status_code=404, detail="Expense not found")
        return {"success": True, "expense": expense.to_wire()}

    @app.post("/api/expenses", status_code=201)
    def create_expense(payload: Dict[str, Any] = Body(...), services: AppServices = Depends(get_services)):
        expense = services.expenses.create_expense(payload)
        return {"success": True, "expense": expense.to_wire()}

    @app.patch("/api/expenses/{expense_id}")
    def update_expense(
        expense_id: str,
        payload: Dict[str, Any] = Body(...),
        services: AppServices = Depends(get_services),
    ):
        expense = services.expenses.update_expense(expense_id, payload)
        return {"success": True, "expense": expense.to_wire()}

    @app.delete("/api/expenses/{expense_id}")
    def delete_expense(expense_id: str, services: AppServices = Depends(get_services)):
        services.expenses.delete_expense(expense_id)
        return {"success": True}

    # Budgets
    @app.get("/api/budgets")
    def list_budgets(
        month: Optional[str] = None,
        category_id: Optional[str] = None,
        services: AppServices = Depends(get_services),
    ):
        budgets = services.budgets.list_budgets(month=month, category_id=category_id)
        return {"success": True, "budgets": [b.to_wire() for b in budgets]}

    @app.get("/api/budgets/snapshots")
    def get_budget_snapshots(month: str, services: AppServices = Depends(get_services)):
        snapshots = services.budgets.get_budget_snapshots(month)
        return {"success": True, "month": month, "snapshots": [s.to_wire() for s in snapshots]}

    @app.post("/api/budgets/copy-previous")
    def copy_previous_budgets(month: str, services: AppServices = Depends(get_services)):
        created = services.budgets.copy_from_previous_month(month)
        return {"success": True, "count": len(created), "budgets": [b.to_wire() for b in created]}

    @app.get("/api/budgets/{budget_id}")
    def get_budget(budget_id: str, services: AppServices = Depends(get_services)):
        budget = services.budgets.get_budget(budget_id)
        if not budget:
            raise HTTPException(status_code=404, detail="Budget not found")
        return {"success": True, "budget": budget.to_wire()}

    @app.post("/api/budgets", status_code=201)
    def create_budget(payload: Dict[str, Any] = Body(...), services: AppServices = Depends(get_services)):
        budget = services.budgets.create_budget(payload)
        return {"success": True, "budget": budget.to_wire()}

    @app.patch("/api/budgets/{budget_id}")
    def update_budget(
        budget_id: str,
        payload: Dict[str, Any] = Body(...),
        services: AppServices = Depends(get_services),
    ):
        budget = services.budgets.update_budget(budget_id, payload)
        return {"success": True, "budget": budget.to_wire()}

    @app.delete("/api/budgets/{budget_id}")
    def delete_budget(budget_id: str, services: AppServices = Depends(get_services)):
        services.budgets.delete_budget(budget_id)
        return {"success": True}

    # Rapports
    @app.get("/api/reports/spend-by-category")
    def spend_by_category(month: str, services: AppServices = Depends(get_services)):
        return {"success": True, "rows": services.reports.get_spend_by_category(month)}

    @app.get("/api/reports/trend")
    def trend_over_time(
        start_month: Optional[str] = None,
        months_back: int = 11,
        services: AppServices = Depends(get_services),
    ):
        points = services.reports.get_trend_over_time(start_month=start_month, months_back=months_back)
        return {"success": True, "points": points}

    @app.get("/api/reports/budget-vs-actual")
    def budget_vs_actual(month: str, services: AppServices = Depends(get_services)):
        rows = services.reports.get_budget_vs_actual(month)
        return {"success": True, "rows": [r.to_wire() for r in rows]}

    # Paramètres
    @app.get("/api/settings")
    def list_settings(services: AppServices = Depends(get_services)):
        return {"success": True, "settings": [s.to_wire() for s in services.settings.list_settings()]}

    @app.get("/api/settings/{key}")
    def get_setting(key: str, services: AppServices = Depends(get_services)):
        sentinel = object()
        value = services.settings.get_setting(key, default=sentinel)
        if value is sentinel:
            raise HTTPException(status_code=404, detail="Setting not found")
        return {"success": True, "key": key, "value": value}

    @app.put("/api/settings/{key}")
    def put_setting(key: str, value: Any = Body(..., embed=True), services: AppServices = Depends(get_services)):
        setting = services.settings.put_setting(key, value)
        return {"success": True, "setting": setting.to_wire()}

    # Sauvegarde
    @app.get("/api/backup")
    def export_backup(services: AppServices = Depends(get_services)):
        return services.backup.export_backup().to_wire()

    @app.post("/api/backup/import")
    def import_backup(
        payload: Dict[str, Any] = Body(...),
        merge: bool = False,
        keep_existing_settings: bool = False,
        services: AppServices = Depends(get_services),
    ):
        stats = services.backup.import_backup(
            payload, merge=merge, keep_existing_settings=keep_existing_settings
        )
        return {"success": True, "imported": stats}

    @app.delete("/api/reset")
    def reset_all_data(keep_settings: bool = False, services: AppServices = Depends(get_services)):
        """Supprime toutes les données (réinitialisation)"""
        stats = services.backup.clear_all_data(keep_settings=keep_settings)
        return {"success": True, "deleted": stats}


app = create_app()

if __name__ == "__main__":
    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run(app, host=API_HOST, port=API_PORT)
