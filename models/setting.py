from typing import Any

from models.common import RecordModel


class Setting(RecordModel):
    key: str
    value: Any = None
