"""Shared utilities used across the booking engine."""

import math
from datetime import date, datetime, time, timezone
from decimal import Decimal, InvalidOperation
from fractions import Fraction
from typing import Optional, Union

from booking_engine.config import settings
from booking_engine.errors import ValidationError

Number = Union[int, float, Decimal, Fraction]

_HALF = Fraction(1, 2)


def round_half_up(value: Number) -> int:
    """Round to the nearest integer, with halves going up.

    Works on the exact rational value, so ``round_half_up(3 / Fraction(6, 5))``
    is 3 rather than whatever binary float noise would give.

    Examples:
        >>> round_half_up(2.5)
        3
        >>> round_half_up(-2.5)
        -2
    """
    return math.floor(Fraction(value) + _HALF)


def format_price(pence: int, symbol: Optional[str] = None) -> str:
    """Render an amount in pence as a currency string.

    Examples:
        >>> format_price(4550)
        '£45.50'
    """
    symbol = settings.pricing.currency_symbol if symbol is None else symbol
    sign = "-" if pence < 0 else ""
    return f"{sign}{symbol}{abs(pence) // 100}.{abs(pence) % 100:02d}"


def format_price_ex_vat(pence: int, symbol: Optional[str] = None) -> str:
    """Render an ex-VAT amount with the trade suffix."""
    return f"{format_price(pence, symbol)} +VAT"


def parse_money_to_pence(raw: Optional[str], field: str = "amount") -> Optional[int]:
    """Parse a user-entered pounds amount into pence.

    Blank input means "not given" and returns None.

    Examples:
        >>> parse_money_to_pence("45.50")
        4550
        >>> parse_money_to_pence("£12.345")
        1235
    """
    if raw is None:
        return None
    cleaned = raw.strip().replace(",", "")
    symbol = settings.pricing.currency_symbol
    if symbol and cleaned.startswith(symbol):
        cleaned = cleaned[len(symbol):].strip()
    if not cleaned:
        return None
    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        raise ValidationError(field, f"not a valid amount: {raw!r}") from None
    if not amount.is_finite():
        raise ValidationError(field, f"not a valid amount: {raw!r}")
    if amount < 0:
        raise ValidationError(field, "must not be negative")
    return round_half_up(amount * 100)


def combine_booking_datetime(
    booking_date: date, hour: str = "08", minute: str = "00"
) -> datetime:
    """Join a picked calendar date with HH and MM strings from the time pickers."""
    try:
        h, m = int(hour), int(minute)
    except (TypeError, ValueError):
        raise ValidationError(
            "booking_time", f"invalid time {hour!r}:{minute!r}"
        ) from None
    if not (0 <= h <= 23 and 0 <= m <= 59):
        raise ValidationError("booking_time", f"time out of range {h:02d}:{m:02d}")
    return datetime.combine(booking_date, time(h, m))


def as_utc(value: datetime) -> datetime:
    """Make a datetime comparable with any other: naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
