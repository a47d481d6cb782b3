"""Utility functions for budgetkit."""

from budgetkit.utils.date_parser import parse_date, parse_month
from budgetkit.utils.amount_parser import parse_amount
from budgetkit.utils.account_resolver import resolve_account

__all__ = ["parse_date", "parse_month", "parse_amount", "resolve_account"]
