import re
from typing import Annotated, Optional

from pydantic import AfterValidator, StringConstraints, field_validator

from models.common import IsoDateTime, RecordModel, StrictInput, reject_null

HEX_COLOR_PATTERN = re.compile(r"^#?[0-9a-fA-F]{6}$")


def normalize_hex_color(value: str) -> str:
    """'FF6600' ou '#FF6600' -> '#ff6600'"""
    if not HEX_COLOR_PATTERN.match(value):
        raise ValueError(f"Invalid hex color: {value}")
    value = value.lower()
    return value if value.startswith("#") else f"#{value}"


HexColor = Annotated[str, AfterValidator(normalize_hex_color)]
CategoryName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=40)]


class Category(RecordModel):
    id: str
    name: CategoryName
    color: Optional[HexColor] = None
    is_hidden: bool = False
    created_at: IsoDateTime
    updated_at: IsoDateTime


class CategoryCreate(StrictInput):
    id: Optional[str] = None
    name: CategoryName
    color: Optional[HexColor] = None
    is_hidden: Optional[bool] = None


class CategoryUpdate(StrictInput):
    name: Optional[CategoryName] = None
    # None explicite = effacer la couleur
    color: Optional[HexColor] = None
    is_hidden: Optional[bool] = None

    @field_validator("name", "is_hidden")
    @classmethod
    def _not_null(cls, value):
        return reject_null(value)
