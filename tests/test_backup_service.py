import json
import threading
import time

import pytest
from sqlalchemy.exc import SQLAlchemyError

from database import crud
from exceptions import StorageError, ValidationError
from models.backup import BackupPayload

TS = "2024-01-01T00:00:00.000Z"


def populate(categories, expenses, budgets, settings):
    food = categories.create_category({"id": "food", "name": "Food", "color": "#00ff00"})
    categories.create_category({"id": "old", "name": "Old", "isHidden": True})
    budgets.create_budget({"id": "b1", "month": "2024-03", "categoryId": food.id, "limitCents": 40000})
    expenses.create_expense({"id": "e1", "amountCents": 1250, "date": "2024-03-04T09:00:00Z",
                             "categoryId": food.id, "note": "Lunch"})
    settings.put_setting("currency", "EUR")
    settings.put_setting("ui", {"theme": "dark"})


def backup_dict(**overrides):
    data = {
        "version": 1,
        "exportedAt": TS,
        "categories": [
            {"id": "c9", "name": "Imported", "color": None, "isHidden": False, "createdAt": TS, "updatedAt": TS},
        ],
        "budgets": [
            {"id": "b9", "month": "2024-01", "categoryId": "c9", "limitCents": 5000, "carryOverPrev": False,
             "createdAt": TS, "updatedAt": TS},
        ],
        "expenses": [
            {"id": "e9", "amountCents": 700, "currency": "EUR", "date": "2024-01-10T12:00:00Z", "month": "2024-01",
             "categoryId": "c9", "note": None, "createdAt": TS, "updatedAt": TS},
        ],
        "settings": [{"key": "currency", "value": "EUR"}],
    }
    data.update(overrides)
    return data


def test_export_import_round_trip(store, backup, categories, expenses, budgets, settings) -> None:
    populate(categories, expenses, budgets, settings)
    exported = backup.export_backup()

    assert exported.version == 1
    assert exported.exported_at == "2024-03-15T12:00:00.000Z"
    assert {c.id for c in exported.categories} == {"food", "old"}

    backup.clear_all_data()
    assert categories.list_categories(include_hidden=True) == []

    backup.import_backup(exported)
    again = backup.export_backup()
    for field in ("categories", "budgets", "expenses", "settings"):
        before = sorted(getattr(exported, field), key=lambda r: r.model_dump_json())
        after = sorted(getattr(again, field), key=lambda r: r.model_dump_json())
        assert before == after


def test_export_json_uses_wire_format(backup, categories, expenses, budgets, settings) -> None:
    populate(categories, expenses, budgets, settings)
    data = json.loads(backup.export_backup_json())
    assert data["version"] == 1
    assert "exportedAt" in data
    assert data["expenses"][0]["amountCents"] == 1250
    assert BackupPayload.model_validate(data).expenses[0].note == "Lunch"


def test_import_replaces_everything(backup, categories, expenses, budgets, settings) -> None:
    populate(categories, expenses, budgets, settings)

    stats = backup.import_backup(backup_dict())

    assert stats == {"categories": 1, "budgets": 1, "expenses": 1, "settings": 1}
    assert [c.id for c in categories.list_categories(include_hidden=True)] == ["c9"]
    assert [e.id for e in expenses.list_expenses()] == ["e9"]
    assert settings.get_setting("ui") is None


def test_import_keeps_existing_settings(backup, categories, expenses, budgets, settings) -> None:
    populate(categories, expenses, budgets, settings)

    backup.import_backup(backup_dict(settings=[{"key": "currency", "value": "USD"}]),
                         keep_existing_settings=True)

    assert settings.get_setting("ui") == {"theme": "dark"}
    assert settings.get_setting("currency") == "USD"


def test_import_merge_overwrites_same_ids(backup, categories, expenses, budgets, settings) -> None:
    populate(categories, expenses, budgets, settings)
    payload = backup_dict()
    payload["expenses"].append({
        "id": "e1", "amountCents": 9900, "currency": "EUR", "date": "2024-03-04T09:00:00Z", "month": "2024-03",
        "categoryId": "food", "note": "Dinner", "createdAt": TS, "updatedAt": TS,
    })

    backup.import_backup(payload, merge=True)

    assert {c.id for c in categories.list_categories(include_hidden=True)} == {"food", "old", "c9"}
    assert expenses.get_expense("e1").amount_cents == 9900
    assert expenses.get_expense("e9") is not None
    assert budgets.get_budget("b1") is not None


def test_import_accepts_json_text(backup, expenses) -> None:
    backup.import_backup(json.dumps(backup_dict()))
    assert expenses.get_expense("e9").amount_cents == 700


@pytest.mark.parametrize("payload", [
    backup_dict(version=2),
    backup_dict(expenses=[{"id": "bad", "amountCents": -5}]),
    {"version": 1},
    "not json",
])
def test_invalid_backup_writes_nothing(backup, categories, expenses, budgets, settings, payload) -> None:
    populate(categories, expenses, budgets, settings)
    before = backup.export_backup()

    with pytest.raises(ValidationError):
        backup.import_backup(payload)

    assert backup.export_backup().model_dump(exclude={"exported_at"}) == before.model_dump(exclude={"exported_at"})


def test_inconsistent_expense_month_is_rejected(backup) -> None:
    payload = backup_dict()
    payload["expenses"][0]["month"] = "2024-02"
    with pytest.raises(ValidationError):
        backup.import_backup(payload)


def test_failed_import_rolls_back(monkeypatch, backup, categories, expenses, budgets, settings) -> None:
    populate(categories, expenses, budgets, settings)
    before = backup.export_backup()
    real_bulk_put = crud.bulk_put
    calls = []

    def failing_bulk_put(db, model, records):
        calls.append(model)
        if len(calls) == 3:
            raise SQLAlchemyError("disk full")
        return real_bulk_put(db, model, records)

    monkeypatch.setattr(crud, "bulk_put", failing_bulk_put)

    with pytest.raises(StorageError):
        backup.import_backup(backup_dict())

    monkeypatch.setattr(crud, "bulk_put", real_bulk_put)
    assert backup.export_backup().model_dump(exclude={"exported_at"}) == before.model_dump(exclude={"exported_at"})


def test_clear_all_data_keep_settings(backup, categories, expenses, budgets, settings) -> None:
    populate(categories, expenses, budgets, settings)

    stats = backup.clear_all_data(keep_settings=True)

    assert stats == {"categories": 2, "budgets": 1, "expenses": 1}
    assert expenses.list_expenses() == []
    assert settings.get_setting("currency") == "EUR"

    backup.clear_all_data()
    assert settings.list_settings() == []


def test_export_fails_on_corrupt_record(store, backup) -> None:
    with store.session() as db:
        crud.put_budget(db, {"id": "x", "month": "bad", "category_id": "food", "limit_cents": 1,
                             "carry_over_prev": False, "created_at": TS, "updated_at": TS})
    with pytest.raises(ValidationError):
        backup.export_backup()


def test_concurrent_reader_waits_for_failed_import(monkeypatch, backup, categories) -> None:
    categories.create_category({"id": "food", "name": "Food"})
    real_bulk_put = crud.bulk_put
    halfway = threading.Event()
    errors = []

    def slow_failing_bulk_put(db, model, records):
        real_bulk_put(db, model, records)
        halfway.set()
        time.sleep(0.3)
        raise SQLAlchemyError("disk full")

    def run_import():
        try:
            backup.import_backup(backup_dict())
        except StorageError as e:
            errors.append(e)

    monkeypatch.setattr(crud, "bulk_put", slow_failing_bulk_put)
    worker = threading.Thread(target=run_import)
    worker.start()
    assert halfway.wait(timeout=5)

    seen = [c.id for c in categories.list_categories()]
    worker.join(timeout=5)

    assert len(errors) == 1
    assert seen == ["food"]
    assert [c.id for c in categories.list_categories()] == ["food"]
