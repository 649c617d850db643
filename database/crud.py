from typing import Dict, Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from database.models import BudgetModel, CategoryModel, ExpenseModel, SettingModel


def row_to_dict(row) -> Dict:
    """Colonnes d'une ligne ORM sous forme de dict"""
    return {column.key: getattr(row, column.key) for column in row.__table__.columns}


def _put(db: Session, model, data: Dict):
    """Insère ou remplace l'enregistrement portant la même clé primaire"""
    obj = db.merge(model(**data))
    db.flush()
    return obj


def _delete_by_pk(db: Session, model, pk) -> bool:
    obj = db.get(model, pk)
    if obj is None:
        return False
    db.delete(obj)
    db.flush()
    return True


# Catégories
def get_all_categories(db: Session, include_hidden: bool = False) -> List[CategoryModel]:
    query = db.query(CategoryModel)
    if not include_hidden:
        query = query.filter(CategoryModel.is_hidden.is_(False))
    return query.all()


def get_category_by_id(db: Session, category_id: str) -> Optional[CategoryModel]:
    return db.get(CategoryModel, category_id)


def put_category(db: Session, data: Dict) -> CategoryModel:
    return _put(db, CategoryModel, data)


def delete_category(db: Session, category_id: str) -> bool:
    return _delete_by_pk(db, CategoryModel, category_id)


def count_expenses_for_category(db: Session, category_id: str) -> int:
    return db.query(func.count(ExpenseModel.id)).filter(
        ExpenseModel.category_id == category_id
    ).scalar()


# Dépenses
def get_expenses(db: Session, month: str = None, category_id: str = None) -> List[ExpenseModel]:
    query = db.query(ExpenseModel)
    if month:
        query = query.filter(ExpenseModel.month == month)
    if category_id:
        query = query.filter(ExpenseModel.category_id == category_id)
    return query.all()


def get_expense_by_id(db: Session, expense_id: str) -> Optional[ExpenseModel]:
    return db.get(ExpenseModel, expense_id)


def put_expense(db: Session, data: Dict) -> ExpenseModel:
    return _put(db, ExpenseModel, data)


def delete_expense(db: Session, expense_id: str) -> bool:
    return _delete_by_pk(db, ExpenseModel, expense_id)


def sum_expenses_by_category(db: Session, month: str) -> Dict[str, int]:
    """Total des dépenses par category_id pour un mois"""
    rows = (
        db.query(ExpenseModel.category_id, func.sum(ExpenseModel.amount_cents))
        .filter(ExpenseModel.month == month)
        .group_by(ExpenseModel.category_id)
        .all()
    )
    return {category_id: int(total or 0) for category_id, total in rows}


def sum_expenses_by_month(db: Session, months: Iterable[str]) -> Dict[str, int]:
    """Total des dépenses pour chacun des mois demandés (mois sans dépense absents)"""
    months = list(months)
    if not months:
        return {}
    rows = (
        db.query(ExpenseModel.month, func.sum(ExpenseModel.amount_cents))
        .filter(ExpenseModel.month.in_(months))
        .group_by(ExpenseModel.month)
        .all()
    )
    return {month: int(total or 0) for month, total in rows}


# Budgets
def get_budgets(db: Session, month: str = None, category_id: str = None) -> List[BudgetModel]:
    query = db.query(BudgetModel)
    if month:
        query = query.filter(BudgetModel.month == month)
    if category_id:
        query = query.filter(BudgetModel.category_id == category_id)
    return query.all()


def get_budget_by_id(db: Session, budget_id: str) -> Optional[BudgetModel]:
    return db.get(BudgetModel, budget_id)


def find_budget(db: Session, month: str, category_id: str) -> Optional[BudgetModel]:
    return db.query(BudgetModel).filter(
        BudgetModel.month == month,
        BudgetModel.category_id == category_id,
    ).first()


def put_budget(db: Session, data: Dict) -> BudgetModel:
    return _put(db, BudgetModel, data)


def delete_budget(db: Session, budget_id: str) -> bool:
    return _delete_by_pk(db, BudgetModel, budget_id)


# Paramètres
def get_all_settings(db: Session) -> List[SettingModel]:
    return db.query(SettingModel).order_by(SettingModel.key).all()


def get_setting(db: Session, key: str) -> Optional[SettingModel]:
    return db.get(SettingModel, key)


def put_setting(db: Session, key: str, value) -> SettingModel:
    return _put(db, SettingModel, {"key": key, "value": value})


def delete_setting(db: Session, key: str) -> bool:
    return _delete_by_pk(db, SettingModel, key)


# Opérations en masse (appelées dans une transaction ouverte par l'appelant)
def count_rows(db: Session, model) -> int:
    return db.query(func.count()).select_from(model).scalar()


def clear_table(db: Session, model) -> int:
    count = db.query(model).delete()
    db.flush()
    return count


def bulk_delete(db: Session, model, ids: Iterable[str]) -> int:
    ids = list(ids)
    if not ids:
        return 0
    count = db.query(model).filter(model.id.in_(ids)).delete()
    db.flush()
    return count


def bulk_put(db: Session, model, records: Iterable[Dict]) -> int:
    count = 0
    for data in records:
        db.merge(model(**data))
        count += 1
    db.flush()
    return count
