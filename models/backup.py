from typing import List, Literal

from models.budget import Budget
from models.category import Category
from models.common import IsoDateTime, RecordModel
from models.expense import Expense
from models.setting import Setting

BACKUP_VERSION = 1


class BackupPayload(RecordModel):
    version: Literal[1]
    exported_at: IsoDateTime
    categories: List[Category]
    budgets: List[Budget]
    expenses: List[Expense]
    settings: List[Setting]
