"""Shared helpers for domain records: clock, decimals, addresses, days."""
from datetime import date, datetime, timezone
from decimal import Decimal, ROUND_HALF_UP

ZERO = Decimal('0')
CENT = Decimal('0.01')


def utcnow() -> datetime:
    """Naive UTC timestamp, matching the DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def to_decimal(value) -> Decimal:
    """Convert int/float/str/Decimal/None to Decimal via the string form."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(str(value))


def round_half_up(value) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def normalize_address(address: str) -> str:
    return address.strip().lower()


def to_day(value: date | datetime) -> date:
    """Normalize a date or datetime to its UTC calendar day."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    return value


def to_naive_utc(value: datetime | None) -> datetime | None:
    """Aware datetimes become naive UTC; naive ones are taken as UTC already."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value
