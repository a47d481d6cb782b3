"""Month-key arithmetic.

A month key is the ``YYYY-MM`` prefix of an ISO date. Keys sort
chronologically as plain strings, which the recurrence and trend code rely on.
"""

from datetime import date
from typing import Optional

from dateutil.relativedelta import relativedelta

MONTH_LABELS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

# Projected occurrences never land past the 28th so every month has the day.
MAX_PROJECTED_DAY = 28


def month_key(value: date | str) -> str:
    """Return the ``YYYY-MM`` key of a date or ISO date string."""
    if isinstance(value, date):
        return f"{value.year:04d}-{value.month:02d}"
    return (value or "")[:7]


def year_of(ym: str) -> str:
    """Return the ``YYYY`` part of a month key."""
    return (ym or "")[:4]


def split_month_key(ym: str) -> tuple[int, int]:
    """Split a month key into ``(year, month)`` integers.

    Raises:
        ValueError: If the key is not of the form ``YYYY-MM``
    """
    try:
        year_str, month_str = ym.split("-")[:2]
        year, month = int(year_str), int(month_str)
    except (AttributeError, ValueError) as e:
        raise ValueError(f"Invalid month key '{ym}': {e}")
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month key '{ym}': month out of range")
    return year, month


def months_diff(start_ym: str, end_ym: str) -> int:
    """Return the number of whole months from ``start_ym`` to ``end_ym``."""
    start_year, start_month = split_month_key(start_ym)
    end_year, end_month = split_month_key(end_ym)
    return (end_year - start_year) * 12 + (end_month - start_month)


def in_range_month(ym: str, start: date, end: Optional[date] = None) -> bool:
    """Check whether ``ym`` falls within the months of ``start``..``end``."""
    if end is not None and ym > month_key(end):
        return False
    return ym >= month_key(start)


def first_of_month(ym: str) -> date:
    """Return the first day of the month identified by ``ym``."""
    year, month = split_month_key(ym)
    return date(year, month, 1)


def projected_date(ym: str, anchor_day: int) -> date:
    """Return the date a projected occurrence falls on within ``ym``."""
    day = min(MAX_PROJECTED_DAY, anchor_day or 1)
    return first_of_month(ym).replace(day=day)


def add_months(ym: str, months: int) -> str:
    """Shift a month key by ``months`` (may be negative)."""
    return month_key(first_of_month(ym) + relativedelta(months=months))


def month_label(ym: str) -> str:
    """Return the short month name of a key, or the key itself if invalid."""
    try:
        _, month = split_month_key(ym)
    except ValueError:
        return ym
    return MONTH_LABELS[month - 1]


def month_number(name: str) -> int:
    """Return the 1-based month for a short month name, or 0 if unknown."""
    for index, label in enumerate(MONTH_LABELS):
        if label.lower() == (name or "").strip().lower():
            return index + 1
    return 0
