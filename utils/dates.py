"""
Clés de mois ('YYYY-MM') et horodatages ISO-8601
"""
import re
from datetime import datetime, timedelta, timezone
from typing import Union

MONTH_KEY_PATTERN = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")
ISO_DATETIME_PATTERN = re.compile(
    r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}(:\d{2}(\.\d+)?)?(Z|[+-]\d{2}:\d{2})$"
)

DateLike = Union[datetime, str]


def now_iso() -> str:
    """Horodatage UTC courant, précision milliseconde, suffixe 'Z'"""
    return to_iso(datetime.now(timezone.utc))


def to_iso(value: datetime) -> str:
    utc = _to_utc(value)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_iso_datetime(value: str) -> datetime:
    """Parse un horodatage ISO-8601 qui doit porter un décalage (Z ou +HH:MM)"""
    if not isinstance(value, str) or not ISO_DATETIME_PATTERN.match(value):
        raise ValueError(f"Invalid ISO timestamp (offset required): {value!r}")
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    # L'instant doit rester représentable une fois ramené en UTC
    _to_utc(parsed)
    return parsed


def _to_utc(value: datetime) -> datetime:
    try:
        return value.astimezone(timezone.utc)
    except OverflowError:
        raise ValueError(f"Timestamp out of range: {value.isoformat()}") from None


def _to_datetime(value: DateLike) -> datetime:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            raise ValueError("Naive datetimes are not supported")
        return value
    return parse_iso_datetime(value)


def month_key(value: DateLike) -> str:
    """Mois UTC de l'instant donné"""
    utc = _to_utc(_to_datetime(value))
    return f"{utc.year:04d}-{utc.month:02d}"


def current_month_key() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m")


def ensure_month_key(month: str) -> str:
    if not isinstance(month, str) or not MONTH_KEY_PATTERN.match(month):
        raise ValueError(f"Invalid month key: {month}")
    return month


def _split(month: str):
    ensure_month_key(month)
    year, month_num = month.split("-")
    return int(year), int(month_num)


def shift_month_key(month: str, offset: int) -> str:
    year, month_num = _split(month)
    index = year * 12 + (month_num - 1) + offset
    return f"{index // 12:04d}-{index % 12 + 1:02d}"


def previous_month_key(month: str) -> str:
    return shift_month_key(month, -1)


def next_month_key(month: str) -> str:
    return shift_month_key(month, 1)


def start_of_month_iso(month: str) -> str:
    year, month_num = _split(month)
    return to_iso(datetime(year, month_num, 1, tzinfo=timezone.utc))


def end_of_month_iso(month: str) -> str:
    first_of_next = _split(next_month_key(month))
    start_next = datetime(first_of_next[0], first_of_next[1], 1, tzinfo=timezone.utc)
    # Dernière milliseconde du mois
    return to_iso(start_next - timedelta(milliseconds=1))


def is_same_month(a: DateLike, b: DateLike) -> bool:
    return month_key(a) == month_key(b)


def clamp_date_to_month(value: DateLike, month: str) -> str:
    """Ramène un instant dans les bornes du mois donné"""
    instant = _to_datetime(value)
    start = parse_iso_datetime(start_of_month_iso(month))
    end = parse_iso_datetime(end_of_month_iso(month))
    if instant < start:
        return to_iso(start)
    if instant > end:
        return to_iso(end)
    return to_iso(instant)
