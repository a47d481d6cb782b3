"""Income commands."""

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
)
from budgetkit.domain.errors import DomainError
from budgetkit.utils.periods import month_key


@click.group()
def income_group():
    """Record income."""
    pass


@income_group.command("add")
@click.option("--account", required=True, help="Account name or ID")
@click.option("--amount", required=True, help="Amount received (e.g., 2500 or 2,500.00)")
@click.option("--source", required=True, help="Where the money came from (e.g., Salary)")
@click.option("--date", "date_str", default="today", show_default=True, help=f"Income date ({DATE_HELP})")
@click.option("--notes", help="Notes")
@click.pass_context
def add_income(ctx, account: str, amount: str, source: str, date_str: str, notes: str | None):
    """Record an income and credit its account.

    Examples:
        budgetkit income add --account Cash --amount 2500 --source Salary
        budgetkit income add --account "M-Pesa" --amount "KSh 1,500" --source Gift --date yesterday
    """
    ledger = ctx.obj["ledger"]
    account_id = resolve_account_or_exit(ctx, ledger, account)
    income_date = parse_date_or_exit(ctx, date_str)
    income_amount = parse_amount_or_exit(ctx, amount)

    try:
        income = ledger.add_income(
            date=income_date, source=source, amount=income_amount, account_id=account_id, notes=notes
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Added income {short_id(income.id)}: {format_money(income.amount, ledger.store.currency)}")


@income_group.command("edit")
@click.argument("income_id")
@click.option("--account", help="Account name or ID")
@click.option("--amount", help="Amount received")
@click.option("--source", help="Where the money came from")
@click.option("--date", "date_str", help=f"Income date ({DATE_HELP})")
@click.option("--notes", help="Notes")
@click.pass_context
def edit_income(ctx, income_id: str, account, amount, source, date_str, notes):
    """Edit an income.

    Updates only the fields that are provided. Moving an income to another
    account moves its amount as well.

    Examples:
        budgetkit income edit 3f2a --amount 2600
        budgetkit income edit 3f2a --account Bank
    """
    ledger = ctx.obj["ledger"]
    income = find_record_or_exit(ctx, ledger.store.incomes, income_id, "Income")

    changes = {}
    if account is not None:
        changes["account_id"] = resolve_account_or_exit(ctx, ledger, account)
    if amount is not None:
        changes["amount"] = parse_amount_or_exit(ctx, amount)
    if source is not None:
        changes["source"] = source
    if date_str is not None:
        changes["date"] = parse_date_or_exit(ctx, date_str)
    if notes is not None:
        changes["notes"] = notes or None

    try:
        ledger.update_income(replace(income, **changes))
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Updated income {short_id(income.id)}")


@income_group.command("delete")
@click.argument("income_id")
@click.pass_context
def delete_income(ctx, income_id: str):
    """Delete an income and debit its account."""
    ledger = ctx.obj["ledger"]
    income = find_record_or_exit(ctx, ledger.store.incomes, income_id, "Income")

    try:
        ledger.delete_income(income.id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted income {short_id(income.id)}")


@income_group.command("list")
@click.option("--month", help="Month to show (YYYY-MM, 'this month', 'last month'); default: this month")
@click.option("--all", "show_all", is_flag=True, help="Show every month")
@click.pass_context
def list_incomes(ctx, month: str | None, show_all: bool):
    """List incomes of a month."""
    ledger = ctx.obj["ledger"]
    currency = ledger.store.currency

    incomes = ledger.store.incomes
    if not show_all:
        ym = parse_month_or_exit(ctx, month)
        incomes = [income for income in incomes if month_key(income.date) == ym]

    if not incomes:
        click.echo("No incomes found.")
        return

    click.echo(f"\nFound {len(incomes)} income(s):")
    click.echo("-" * 80)
    for income in incomes:
        click.echo(
            f"{short_id(income.id)} | {income.date} | {income.source[:20]:20s} | "
            f"{ledger.account_name(income.account_id)[:15]:15s} | {format_money(income.amount, currency):>16s}"
        )


def register_commands(cli):
    """Register income commands with main CLI."""
    cli.add_command(income_group, name="income")
