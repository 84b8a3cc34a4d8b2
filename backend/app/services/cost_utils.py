"""Month-key arithmetic and numeric guards shared by every cost engine."""
import calendar
import re
from datetime import date as _date
from typing import Optional

from app.config import COST_DECIMALS

_MONTH_KEY = re.compile(r"\d{4}-\d{2}")


def current_month(today: Optional[_date] = None) -> str:
    """Return the "YYYY-MM" key for ``today`` (defaults to the local date)."""
    d = today or _date.today()
    return f"{d.year:04d}-{d.month:02d}"


def days_in_month(month: str) -> int:
    """
    Number of days in a "YYYY-MM" month key.

    A malformed key returns 0 instead of raising, so callers can treat it as
    "no days to spread cost over".
    """
    parts = (month or "").split("-")
    if len(parts) < 2:
        return 0
    try:
        year, mon = int(parts[0]), int(parts[1])
    except ValueError:
        return 0
    if year < 1 or not 1 <= mon <= 12:
        return 0
    return calendar.monthrange(year, mon)[1]


def month_of(report_date: Optional[str], fallback: Optional[str] = None) -> str:
    """Month key of a "YYYY-MM-DD" date; empty dates use ``fallback`` or the current month."""
    if report_date:
        return report_date[:7]
    return fallback or current_month()


def is_month_key(month: Optional[str]) -> bool:
    """True for a strict, valid "YYYY-MM" key ("2024-1" and "2024-13" are not)."""
    return bool(month) and _MONTH_KEY.fullmatch(month) is not None and days_in_month(month) > 0


def in_month(report_date: Optional[str], month: str) -> bool:
    """Whether a "YYYY-MM-DD" date falls inside ``month``. Undated reports never do."""
    return bool(report_date) and month_of(report_date) == month


def non_negative(value: Optional[float]) -> float:
    if not value or value < 0:
        return 0.0
    return float(value)


def unit_cost(total_cost: float, quantity: float) -> float:
    """total / quantity, or 0 when nothing was produced."""
    return total_cost / quantity if quantity > 0 else 0.0


def format_cost(amount: float) -> str:
    """Fixed two-decimal rendering with thousands separators: 1234.5 -> "1,234.50"."""
    return f"{float(amount or 0.0):,.{COST_DECIMALS}f}"
