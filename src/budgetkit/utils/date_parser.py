"""Date parsing utilities."""

from datetime import date, timedelta
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

from budgetkit.utils.periods import month_key, split_month_key


def parse_date(date_str: str) -> date:
    """Parse a date string into a date object.

    Supports various formats including relative dates:
    - Absolute dates: "2024-01-15", "January 15, 2024", etc.
    - Relative dates: "today", "yesterday", "tomorrow", "last month",
      "this month", "next month" (month forms resolve to the first day)

    Args:
        date_str: Date string in various formats

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    today = date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
        "last month": (today - relativedelta(months=1)).replace(day=1),
        "this month": today.replace(day=1),
        "next month": (today + relativedelta(months=1)).replace(day=1),
    }

    if date_str in relative_dates:
        return relative_dates[date_str]

    try:
        dt = date_parser.parse(date_str)
        return dt.date()
    except (ValueError, TypeError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def parse_month(month_str: str) -> str:
    """Parse a month selector into a ``YYYY-MM`` key.

    Accepts ``YYYY-MM`` keys, full dates and the relative forms understood by
    ``parse_date``.

    Raises:
        ValueError: If the string names no month
    """
    candidate = month_str.strip()
    if len(candidate) == 7 and candidate[4] == "-":
        split_month_key(candidate)
        return candidate
    return month_key(parse_date(candidate))


def parse_optional_date(date_str: str | None) -> date | None:
    """Parse a date string, passing ``None`` and empty strings through."""
    if date_str is None or not date_str.strip():
        return None
    return parse_date(date_str)
