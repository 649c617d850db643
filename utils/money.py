"""
Montants en centimes entiers (EUR)
"""
import math
import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable, Optional

_NON_NUMERIC = re.compile(r"[^0-9,.\-]")


def _round_to_cents(amount: Decimal) -> int:
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def parse_euro_to_cents(value) -> int:
    """Convertit un montant en euros (nombre ou texte saisi) en centimes"""
    if isinstance(value, bool):
        raise ValueError("Unsupported currency value")

    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            raise ValueError(f"Invalid currency input: {value}")
        return _round_to_cents(Decimal(str(value)))

    if isinstance(value, str):
        sanitized = _NON_NUMERIC.sub("", value).replace(",", ".", 1)
        try:
            parsed = Decimal(sanitized)
        except InvalidOperation:
            raise ValueError(f"Invalid currency input: {value}") from None
        if not parsed.is_finite():
            raise ValueError(f"Invalid currency input: {value}")
        return _round_to_cents(parsed)

    raise ValueError("Unsupported currency value")


def format_cents(amount_cents: int, symbol: str = "€") -> str:
    """Formate des centimes, ex: '€1,234.56' ou '-€12.00'"""
    sign = "-" if amount_cents < 0 else ""
    return f"{sign}{symbol}{abs(amount_cents) / 100:,.2f}"


def add_cents(values: Iterable[int]) -> int:
    return sum(values, 0)


def clamp_cents(value: int, minimum: Optional[int] = 0, maximum: Optional[int] = None) -> int:
    result = value
    if minimum is not None:
        result = max(result, minimum)
    if maximum is not None:
        result = min(result, maximum)
    return result
