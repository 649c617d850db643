from typing import Annotated, Literal, Optional

from pydantic import Field, StringConstraints, field_validator, model_validator

from models.common import IsoDateTime, MoneyCents, MonthKey, RecordModel, StrictInput, reject_null
from utils.dates import month_key

Currency = Literal["EUR"]
Note = Annotated[str, StringConstraints(max_length=500)]


class Expense(RecordModel):
    id: str
    amount_cents: MoneyCents
    currency: Currency
    date: IsoDateTime
    month: MonthKey
    category_id: str
    note: Optional[Note] = None
    created_at: IsoDateTime
    updated_at: IsoDateTime

    @model_validator(mode="after")
    def _month_matches_date(self):
        if self.month != month_key(self.date):
            raise ValueError(f"month {self.month} does not match date {self.date}")
        return self


class ExpenseCreate(StrictInput):
    id: Optional[str] = None
    amount_cents: MoneyCents
    currency: Currency = "EUR"
    date: IsoDateTime
    month: Optional[MonthKey] = None
    category_id: str
    note: Optional[Note] = None


class ExpenseUpdate(StrictInput):
    amount_cents: Optional[MoneyCents] = None
    date: Optional[IsoDateTime] = None
    month: Optional[MonthKey] = None
    category_id: Optional[str] = None
    note: Optional[Note] = None

    @field_validator("amount_cents", "date", "month", "category_id", "note")
    @classmethod
    def _not_null(cls, value):
        return reject_null(value)


class ExpenseFilters(StrictInput):
    month: Optional[MonthKey] = None
    category_id: Optional[str] = None
    search: Optional[str] = None
    order: Literal["asc", "desc"] = "desc"
    limit: Optional[Annotated[int, Field(ge=0)]] = None
