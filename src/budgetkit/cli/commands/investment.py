"""Investment commands."""

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
)
from budgetkit.domain.errors import DomainError


@click.group()
def investment_group():
    """Record investment contributions and withdrawals."""
    pass


@investment_group.command("add")
@click.option("--instrument", required=True, help="What was invested in (e.g., Index Fund)")
@click.option(
    "--amount",
    required=True,
    help="Positive for a contribution, negative (or in parentheses) for a withdrawal",
)
@click.option("--account", help="Account the money comes from or returns to (optional)")
@click.option("--date", "date_str", default="today", show_default=True, help=f"Investment date ({DATE_HELP})")
@click.option("--notes", help="Notes")
@click.pass_context
def add_investment(ctx, instrument: str, amount: str, account: str | None, date_str: str, notes: str | None):
    """Record an investment contribution or withdrawal.

    A linked account is debited by contributions and credited by withdrawals.

    Examples:
        budgetkit investment add --instrument "Index Fund" --amount 500 --account Bank
        budgetkit investment add --instrument "Index Fund" --amount -200 --account Bank
    """
    ledger = ctx.obj["ledger"]
    account_id = resolve_account_or_exit(ctx, ledger, account) if account else None
    investment_date = parse_date_or_exit(ctx, date_str)
    investment_amount = parse_amount_or_exit(ctx, amount)

    try:
        investment = ledger.add_investment(
            date=investment_date,
            instrument=instrument,
            amount=investment_amount,
            account_id=account_id,
            notes=notes,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    kind = "withdrawal" if investment.amount < 0 else "contribution"
    click.echo(
        f"Added {kind} {short_id(investment.id)}: {format_money(abs(investment.amount), ledger.store.currency)}"
    )


@investment_group.command("edit")
@click.argument("investment_id")
@click.option("--instrument", help="What was invested in")
@click.option("--amount", help="Positive for a contribution, negative for a withdrawal")
@click.option("--account", help="Linked account name or ID ('' to unlink)")
@click.option("--date", "date_str", help=f"Investment date ({DATE_HELP})")
@click.option("--notes", help="Notes")
@click.pass_context
def edit_investment(ctx, investment_id, instrument, amount, account, date_str, notes):
    """Edit an investment. Updates only the fields that are provided."""
    ledger = ctx.obj["ledger"]
    investment = find_record_or_exit(ctx, ledger.store.investments, investment_id, "Investment")

    changes = {}
    if instrument is not None:
        changes["instrument"] = instrument
    if amount is not None:
        changes["amount"] = parse_amount_or_exit(ctx, amount)
    if account is not None:
        changes["account_id"] = resolve_account_or_exit(ctx, ledger, account) if account else None
    if date_str is not None:
        changes["date"] = parse_date_or_exit(ctx, date_str)
    if notes is not None:
        changes["notes"] = notes or None

    try:
        ledger.update_investment(replace(investment, **changes))
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Updated investment {short_id(investment.id)}")


@investment_group.command("delete")
@click.argument("investment_id")
@click.pass_context
def delete_investment(ctx, investment_id: str):
    """Delete an investment and undo its effect on the linked account."""
    ledger = ctx.obj["ledger"]
    investment = find_record_or_exit(ctx, ledger.store.investments, investment_id, "Investment")

    try:
        ledger.delete_investment(investment.id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted investment {short_id(investment.id)}")


@investment_group.command("list")
@click.pass_context
def list_investments(ctx):
    """List all investments."""
    ledger = ctx.obj["ledger"]
    currency = ledger.store.currency

    investments = ledger.store.investments
    if not investments:
        click.echo("No investments found.")
        return

    click.echo(f"\nFound {len(investments)} investment(s):")
    click.echo("-" * 80)
    for investment in investments:
        account = ledger.account_name(investment.account_id) if investment.account_id else ""
        click.echo(
            f"{short_id(investment.id)} | {investment.date} | {investment.instrument[:20]:20s} | "
            f"{account[:15]:15s} | {format_money(investment.amount, currency):>16s}"
        )


def register_commands(cli):
    """Register investment commands with main CLI."""
    cli.add_command(investment_group, name="investment")
