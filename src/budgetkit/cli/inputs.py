"""CLI helpers for parsing option values and finding records."""

from datetime import date
from decimal import Decimal
from typing import Optional, Sequence, TypeVar

import click

from budgetkit.utils.amount_parser import parse_amount
from budgetkit.utils.date_parser import parse_date, parse_month

Record = TypeVar("Record")

DATE_HELP = "YYYY-MM-DD or relative like 'today', 'yesterday'"


def parse_date_or_exit(ctx: click.Context, value: str, label: str = "date") -> date:
    try:
        return parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


def parse_optional_date_or_exit(ctx: click.Context, value: Optional[str], label: str = "date") -> Optional[date]:
    if value is None:
        return None
    return parse_date_or_exit(ctx, value, label)


def parse_amount_or_exit(ctx: click.Context, value: str, label: str = "amount") -> Decimal:
    try:
        return parse_amount(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label} format: {e}", err=True)
        ctx.exit(1)


def parse_month_or_exit(ctx: click.Context, value: Optional[str]) -> str:
    """Parse a ``--month`` option, defaulting to the current month."""
    try:
        return parse_month(value or "this month")
    except ValueError as e:
        click.echo(f"Error: Invalid month: {e}", err=True)
        ctx.exit(1)


def find_record(records: Sequence[Record], value: str) -> Optional[Record]:
    """Find a record by full id or by a unique id prefix."""
    value = value.strip()
    for record in records:
        if record.id == value:
            return record
    matches = [record for record in records if value and record.id.startswith(value)]
    return matches[0] if len(matches) == 1 else None


def find_record_or_exit(ctx: click.Context, records: Sequence[Record], value: str, kind: str) -> Record:
    record = find_record(records, value)
    if record is None:
        click.echo(f"Error: {kind} '{value}' not found", err=True)
        ctx.exit(1)
    return record
