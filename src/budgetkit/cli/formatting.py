"""Output formatting helpers shared by commands."""

from decimal import Decimal

from budgetkit.domain.entities import Currency

ID_WIDTH = 8


def format_money(amount: Decimal, currency: Currency) -> str:
    return f"{currency.value} {amount:,.2f}"


def short_id(record_id: str) -> str:
    """Leading characters of an id; commands accept unique prefixes."""
    return record_id[:ID_WIDTH]
