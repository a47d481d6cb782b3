"""Tests for date parser with relative dates."""

import pytest
from datetime import date, timedelta
from dateutil.relativedelta import relativedelta
from budgetkit.utils.date_parser import parse_date, parse_month, parse_optional_date


def test_parse_absolute_date():
    """Test parsing absolute dates."""
    result = parse_date("2024-01-15")
    assert result == date(2024, 1, 15)


def test_parse_written_date():
    """Test parsing dates with month names."""
    assert parse_date("January 15, 2024") == date(2024, 1, 15)


def test_parse_today():
    """Test parsing 'today'."""
    result = parse_date("today")
    assert result == date.today()


def test_parse_yesterday():
    """Test parsing 'yesterday'."""
    result = parse_date("Yesterday ")
    assert result == date.today() - timedelta(days=1)


def test_parse_tomorrow():
    """Test parsing 'tomorrow'."""
    result = parse_date("tomorrow")
    assert result == date.today() + timedelta(days=1)


def test_parse_last_month():
    """Test parsing 'last month'."""
    result = parse_date("last month")
    # Should be first day of last month
    expected = (date.today() - relativedelta(months=1)).replace(day=1)
    assert result == expected


def test_parse_next_month():
    """Test parsing 'next month'."""
    expected = (date.today() + relativedelta(months=1)).replace(day=1)
    assert parse_date("next month") == expected


def test_parse_invalid_date():
    """Test that unparseable dates raise ValueError."""
    with pytest.raises(ValueError):
        parse_date("not a date")


def test_parse_month_key():
    """Test parsing month selectors."""
    assert parse_month("2024-03") == "2024-03"
    assert parse_month("2024-03-17") == "2024-03"
    assert parse_month("this month") == date.today().strftime("%Y-%m")


def test_parse_month_rejects_invalid_key():
    with pytest.raises(ValueError):
        parse_month("2024-13")


def test_parse_optional_date():
    assert parse_optional_date(None) is None
    assert parse_optional_date("  ") is None
    assert parse_optional_date("2024-02-29") == date(2024, 2, 29)
