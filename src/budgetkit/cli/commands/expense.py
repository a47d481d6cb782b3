"""Expense commands."""

from dataclasses import replace

import click

from budgetkit.cli.account_resolution import resolve_account_or_exit
from budgetkit.cli.error_handling import handle_domain_error
from budgetkit.cli.formatting import format_money, short_id
from budgetkit.cli.inputs import (
    DATE_HELP,
    find_record_or_exit,
    parse_amount_or_exit,
    parse_date_or_exit,
    parse_month_or_exit,
    parse_optional_date_or_exit,
)
from budgetkit.domain.entities import Recurrence, RecurrencePeriod
from budgetkit.domain.errors import DomainError
from budgetkit.domain.recurrence import month_expenses_for_display, normalize_expense

PERIODS = [period.value for period in RecurrencePeriod]


@click.group()
def expense_group():
    """Record expenses, including recurring ones."""
    pass


@expense_group.command("add")
@click.option("--account", required=True, help="Account name or ID")
@click.option("--amount", required=True, help="Amount spent (e.g., 45.90)")
@click.option("--category", required=True, help="Expense category (e.g., Rent, Groceries)")
@click.option("--date", "date_str", default="today", show_default=True, help=f"Expense date ({DATE_HELP})")
@click.option("--notes", help="Notes")
@click.option("--recurring", is_flag=True, help="Repeat this expense (monthly unless --period is given)")
@click.option("--period", type=click.Choice(PERIODS, case_sensitive=False), help="Recurrence period")
@click.option("--start", help="First month of the recurrence (defaults to the expense date)")
@click.option("--end", help="Last month of the recurrence")
@click.pass_context
def add_expense(ctx, account, amount, category, date_str, notes, recurring, period, start, end):
    """Record an expense and debit its account.

    Recurring expenses are shown as projected rows in later months until a
    matching expense is recorded there.

    Examples:
        budgetkit expense add --account Bank --amount 1000 --category Rent --date 2024-01-05 --recurring
        budgetkit expense add --account Cash --amount 120 --category Insurance --period quarterly
    """
    ledger = ctx.obj["ledger"]
    account_id = resolve_account_or_exit(ctx, ledger, account)
    expense_date = parse_date_or_exit(ctx, date_str)
    expense_amount = parse_amount_or_exit(ctx, amount)

    recurrence = None
    if recurring or period or start or end:
        recurrence = Recurrence(
            enabled=True,
            period=RecurrencePeriod(period or RecurrencePeriod.MONTHLY.value),
            start=parse_optional_date_or_exit(ctx, start, "start date") or expense_date,
            end=parse_optional_date_or_exit(ctx, end, "end date"),
        )

    try:
        expense = ledger.add_expense(
            date=expense_date,
            category=category,
            amount=expense_amount,
            account_id=account_id,
            recurrence=recurrence,
            notes=notes,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Added expense {short_id(expense.id)}: {format_money(expense.amount, ledger.store.currency)}")
    if expense.recurrence is not None:
        click.echo(f"Repeats {expense.recurrence.period.value} from {expense.recurrence.start}")


@expense_group.command("edit")
@click.argument("expense_id")
@click.option("--account", help="Account name or ID")
@click.option("--amount", help="Amount spent")
@click.option("--category", help="Expense category")
@click.option("--date", "date_str", help=f"Expense date ({DATE_HELP})")
@click.option("--notes", help="Notes")
@click.option("--recurring/--not-recurring", default=None, help="Turn the recurrence on or off")
@click.option("--period", type=click.Choice(PERIODS, case_sensitive=False), help="Recurrence period")
@click.option("--start", help="First month of the recurrence")
@click.option("--end", help="Last month of the recurrence")
@click.pass_context
def edit_expense(ctx, expense_id, account, amount, category, date_str, notes, recurring, period, start, end):
    """Edit an expense.

    Updates only the fields that are provided. Moving an expense to another
    account moves its amount as well.

    Examples:
        budgetkit expense edit 3f2a --amount 1100
        budgetkit expense edit 3f2a --not-recurring
    """
    ledger = ctx.obj["ledger"]
    expense = normalize_expense(find_record_or_exit(ctx, ledger.store.expenses, expense_id, "Expense"))

    changes = {}
    if account is not None:
        changes["account_id"] = resolve_account_or_exit(ctx, ledger, account)
    if amount is not None:
        changes["amount"] = parse_amount_or_exit(ctx, amount)
    if category is not None:
        changes["category"] = category
    if date_str is not None:
        changes["date"] = parse_date_or_exit(ctx, date_str)
    if notes is not None:
        changes["notes"] = notes or None

    if any(value is not None for value in (recurring, period, start, end)):
        current = expense.recurrence or Recurrence(
            enabled=False, period=RecurrencePeriod.MONTHLY, start=changes.get("date", expense.date)
        )
        if recurring is not None:
            enabled = recurring
        else:
            enabled = True if period else current.enabled
        recurrence = replace(
            current,
            enabled=enabled,
            period=RecurrencePeriod(period) if period else current.period,
            start=parse_optional_date_or_exit(ctx, start, "start date") or current.start,
            end=parse_optional_date_or_exit(ctx, end, "end date") if end is not None else current.end,
        )
        changes["recurrence"] = recurrence
        changes["is_recurring"] = recurrence.enabled

    try:
        ledger.update_expense(replace(expense, **changes))
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Updated expense {short_id(expense.id)}")


@expense_group.command("delete")
@click.argument("expense_id")
@click.pass_context
def delete_expense(ctx, expense_id: str):
    """Delete an expense and credit its account back."""
    ledger = ctx.obj["ledger"]
    expense = find_record_or_exit(ctx, ledger.store.expenses, expense_id, "Expense")

    try:
        ledger.delete_expense(expense.id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted expense {short_id(expense.id)}")


@expense_group.command("list")
@click.option("--month", help="Month to show (YYYY-MM, 'this month', 'last month'); default: this month")
@click.pass_context
def list_expenses(ctx, month: str | None):
    """List the expenses of a month, including projected recurring ones."""
    ledger = ctx.obj["ledger"]
    currency = ledger.store.currency
    ym = parse_month_or_exit(ctx, month)

    expenses = month_expenses_for_display(ledger.store.expenses, ym)
    if not expenses:
        click.echo(f"No expenses found for {ym}.")
        return

    click.echo(f"\nExpenses for {ym}:")
    click.echo("-" * 90)
    for expense in expenses:
        marker = "projected" if expense.projected else ("recurring" if expense.is_recurring else "")
        click.echo(
            f"{short_id(expense.id)} | {expense.date} | {expense.category[:20]:20s} | "
            f"{ledger.account_name(expense.account_id)[:15]:15s} | "
            f"{format_money(expense.amount, currency):>16s} | {marker}"
        )


def register_commands(cli):
    """Register expense commands with main CLI."""
    cli.add_command(expense_group, name="expense")
