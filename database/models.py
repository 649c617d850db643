from sqlalchemy import JSON, Boolean, Column, Integer, String

from database.database import Base


class CategoryModel(Base):
    __tablename__ = "categories"

    id = Column(String, primary_key=True)
    name = Column(String(40), nullable=False, index=True)
    color = Column(String(7), nullable=True)
    is_hidden = Column(Boolean, nullable=False, default=False, index=True)
    created_at = Column(String, nullable=False)
    updated_at = Column(String, nullable=False)


class ExpenseModel(Base):
    __tablename__ = "expenses"

    id = Column(String, primary_key=True)
    amount_cents = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False, default="EUR")
    date = Column(String, nullable=False, index=True)
    month = Column(String(7), nullable=False, index=True)
    # Pas de clé étrangère : la catégorie n'est pas vérifiée à l'écriture
    category_id = Column(String, nullable=False, index=True)
    note = Column(String(500), nullable=True)
    created_at = Column(String, nullable=False)
    updated_at = Column(String, nullable=False)


class BudgetModel(Base):
    __tablename__ = "budgets"

    # Unicité (month, category_id) vérifiée à la création, pas d'index unique
    id = Column(String, primary_key=True)
    month = Column(String(7), nullable=False, index=True)
    category_id = Column(String, nullable=False, index=True)
    limit_cents = Column(Integer, nullable=False)
    carry_over_prev = Column(Boolean, nullable=False, default=False)
    created_at = Column(String, nullable=False)
    updated_at = Column(String, nullable=False)


class SettingModel(Base):
    __tablename__ = "settings"

    key = Column(String, primary_key=True)
    value = Column(JSON, nullable=True)
