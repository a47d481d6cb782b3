"""Recurring expense projection.

Projected rows are synthetic, display-only expenses for occurrences of a
recurring expense that have no recorded entry in the selected month. They
never reach balances or the journal.
"""

from dataclasses import replace
from decimal import Decimal
from typing import Optional, Sequence

from budgetkit.domain.entities import Expense, Recurrence, RecurrencePeriod
from budgetkit.domain.errors import ValidationError, invalid_choice
from budgetkit.utils.amount_parser import round_money
from budgetkit.utils.periods import in_range_month, month_key, months_diff, projected_date

PROJECTED_MARKER = "__proj__"
PROJECTED_NOTE = "(Projected)"

PERIOD_MONTHS = {
    RecurrencePeriod.MONTHLY: 1,
    RecurrencePeriod.QUARTERLY: 3,
    RecurrencePeriod.ANNUALLY: 12,
}


def parse_period(value: str | RecurrencePeriod) -> RecurrencePeriod:
    """Coerce a period name into a ``RecurrencePeriod``."""
    if isinstance(value, RecurrencePeriod):
        return value
    try:
        return RecurrencePeriod(str(value).strip().lower())
    except ValueError:
        raise ValidationError(invalid_choice("recurrence period", value, [p.value for p in RecurrencePeriod]))


def normalize_expense(expense: Expense) -> Expense:
    """Fold the legacy ``is_recurring`` flag into the structured form.

    A legacy recurring expense becomes a monthly recurrence anchored on its
    own date. An expense is recurring when either the structured recurrence
    or the legacy flag says so. Afterwards ``is_recurring`` mirrors
    ``recurrence.enabled``.
    """
    recurrence = expense.recurrence
    if recurrence is None:
        if not expense.is_recurring:
            return expense
        recurrence = Recurrence(enabled=True, period=RecurrencePeriod.MONTHLY, start=expense.date)
    elif expense.is_recurring and not recurrence.enabled:
        recurrence = replace(recurrence, enabled=True)
    return replace(expense, recurrence=recurrence, is_recurring=recurrence.enabled)


def is_projected_id(expense_id: str) -> bool:
    return PROJECTED_MARKER in (expense_id or "")


def recurrence_occurs_in_month(expense: Expense, ym: str) -> bool:
    """Check whether a recurring expense has an occurrence in month ``ym``."""
    recurrence = normalize_expense(expense).recurrence
    if recurrence is None or not recurrence.enabled:
        return False

    anchor = recurrence.start or expense.date
    if not in_range_month(ym, anchor, recurrence.end):
        return False

    diff = months_diff(month_key(anchor), ym)
    if diff < 0:
        return False
    return diff % PERIOD_MONTHS[recurrence.period] == 0


def month_expenses_real(expenses: Sequence[Expense], ym: str) -> list[Expense]:
    return [expense for expense in expenses if month_key(expense.date) == ym]


def _projected_notes(notes: Optional[str]) -> str:
    return f"{notes} • {PROJECTED_NOTE}" if notes else PROJECTED_NOTE


def _signature(expense: Expense) -> tuple[str, Decimal, str]:
    return (expense.category, round_money(expense.amount), expense.account_id)


def project_recurring_expenses(expenses: Sequence[Expense], ym: str) -> list[Expense]:
    """Build the projected rows for month ``ym``.

    Args:
        expenses: Every recorded expense
        ym: Target month key

    Returns:
        Projected, non-persisted expense rows
    """
    real_signatures = {_signature(expense) for expense in month_expenses_real(expenses, ym)}

    projected: list[Expense] = []
    for expense in expenses:
        if not recurrence_occurs_in_month(expense, ym):
            continue
        if month_key(expense.date) == ym:
            continue
        normalized = normalize_expense(expense)
        anchor = normalized.recurrence.start or expense.date
        row = replace(
            normalized,
            id=f"{expense.id}{PROJECTED_MARKER}{ym}",
            date=projected_date(ym, anchor.day),
            notes=_projected_notes(expense.notes),
            projected=True,
        )
        if _signature(row) in real_signatures:
            continue
        projected.append(row)
    return projected


def month_expenses_for_display(expenses: Sequence[Expense], ym: str) -> list[Expense]:
    """Real and projected expenses of ``ym`` in date order."""
    rows = month_expenses_real(expenses, ym) + project_recurring_expenses(expenses, ym)
    return sorted(rows, key=lambda expense: expense.date)


def projected_recurring_monthly(expenses: Sequence[Expense]) -> Decimal:
    """One period's worth of every enabled recurring expense."""
    total = Decimal("0")
    for expense in expenses:
        recurrence = normalize_expense(expense).recurrence
        if recurrence is not None and recurrence.enabled:
            total += expense.amount
    return round_money(total)
