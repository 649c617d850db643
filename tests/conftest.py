"""Shared fixtures: an isolated in-memory store per test and a frozen clock."""

import pytest

from database.store import RecordStore
from services.backup_service import BackupService
from services.budget_service import BudgetService
from services.category_service import CategoryService
from services.expense_service import ExpenseService
from services.report_service import ReportService
from services.settings_service import SettingsService

FROZEN_NOW = "2024-03-15T12:00:00.000Z"

_CLOCK_MODULES = [
    "services.category_service",
    "services.expense_service",
    "services.budget_service",
    "services.backup_service",
    "database.seeds",
]


@pytest.fixture
def store():
    store = RecordStore.in_memory()
    yield store
    store.dispose()


@pytest.fixture
def frozen_clock(monkeypatch):
    for module in _CLOCK_MODULES:
        monkeypatch.setattr(f"{module}.now_iso", lambda: FROZEN_NOW)
    return FROZEN_NOW


@pytest.fixture
def categories(store, frozen_clock):
    return CategoryService(store)


@pytest.fixture
def expenses(store, frozen_clock):
    return ExpenseService(store)


@pytest.fixture
def budgets(store, frozen_clock):
    return BudgetService(store, approaching_ratio=0.8)


@pytest.fixture
def reports(store, budgets):
    return ReportService(store, budgets)


@pytest.fixture
def settings(store):
    return SettingsService(store)


@pytest.fixture
def backup(store, frozen_clock):
    return BackupService(store)
