from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from models.common import IsoDateTime, MoneyCents, MonthKey, RecordModel, StrictInput, reject_null

BudgetStatus = Literal["ok", "approaching", "over"]

# Ordre de gravité, utilisé pour comparer des statuts
STATUS_ORDER = ("ok", "approaching", "over")


class BudgetBase(RecordModel):
    month: MonthKey
    category_id: str
    limit_cents: MoneyCents
    carry_over_prev: bool = False


class Budget(BudgetBase):
    id: str
    created_at: IsoDateTime
    updated_at: IsoDateTime


class BudgetCreate(StrictInput):
    id: Optional[str] = None
    month: MonthKey
    category_id: str
    limit_cents: MoneyCents
    carry_over_prev: Optional[bool] = None


class BudgetUpdate(StrictInput):
    limit_cents: Optional[MoneyCents] = None
    carry_over_prev: Optional[bool] = None

    @field_validator("limit_cents", "carry_over_prev")
    @classmethod
    def _not_null(cls, value):
        return reject_null(value)


class BudgetSnapshot(BaseModel):
    """Vue calculée (jamais stockée) d'un budget pour un mois"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    category_id: str
    month: str
    limit_cents: int
    actual_cents: int
    carry_in_cents: int
    available_cents: int
    status: BudgetStatus

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")
