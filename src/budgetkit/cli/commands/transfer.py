"""Transfer commands."""

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
def transfer_group():
    """Move money between accounts."""
    pass


@transfer_group.command("add")
@click.option("--from", "from_account", required=True, help="Source account name or ID")
@click.option("--to", "to_account", required=True, help="Destination account name or ID")
@click.option("--amount", required=True, help="Amount to move")
@click.option("--date", "date_str", default="today", show_default=True, help=f"Transfer date ({DATE_HELP})")
@click.option("--notes", help="Notes (shown on both journal entries)")
@click.pass_context
def add_transfer(ctx, from_account: str, to_account: str, amount: str, date_str: str, notes: str | None):
    """Move money from one account to another.

    Examples:
        budgetkit transfer add --from Bank --to Cash --amount 200
        budgetkit transfer add --from Cash --to "Emergency Fund" --amount 50 --notes "Weekly saving"
    """
    ledger = ctx.obj["ledger"]
    from_id = resolve_account_or_exit(ctx, ledger, from_account)
    to_id = resolve_account_or_exit(ctx, ledger, to_account)
    transfer_date = parse_date_or_exit(ctx, date_str)
    transfer_amount = parse_amount_or_exit(ctx, amount)

    try:
        transfer = ledger.add_transfer(
            date=transfer_date,
            from_account_id=from_id,
            to_account_id=to_id,
            amount=transfer_amount,
            notes=notes,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(
        f"Transferred {format_money(transfer.amount, ledger.store.currency)} from "
        f"'{ledger.account_name(from_id)}' to '{ledger.account_name(to_id)}' (ID: {short_id(transfer.id)})"
    )


@transfer_group.command("edit")
@click.argument("transfer_id")
@click.option("--from", "from_account", help="Source account name or ID")
@click.option("--to", "to_account", help="Destination account name or ID")
@click.option("--amount", help="Amount to move")
@click.option("--date", "date_str", help=f"Transfer date ({DATE_HELP})")
@click.option("--notes", help="Notes")
@click.pass_context
def edit_transfer(ctx, transfer_id, from_account, to_account, amount, date_str, notes):
    """Edit a transfer.

    Updates only the fields that are provided; both sides are re-balanced.
    """
    ledger = ctx.obj["ledger"]
    transfer = find_record_or_exit(ctx, ledger.store.transfers, transfer_id, "Transfer")

    changes = {}
    if from_account is not None:
        changes["from_account_id"] = resolve_account_or_exit(ctx, ledger, from_account)
    if to_account is not None:
        changes["to_account_id"] = resolve_account_or_exit(ctx, ledger, to_account)
    if amount is not None:
        changes["amount"] = parse_amount_or_exit(ctx, amount)
    if date_str is not None:
        changes["date"] = parse_date_or_exit(ctx, date_str)
    if notes is not None:
        changes["notes"] = notes or None

    try:
        ledger.update_transfer(replace(transfer, **changes))
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Updated transfer {short_id(transfer.id)}")


@transfer_group.command("delete")
@click.argument("transfer_id")
@click.pass_context
def delete_transfer(ctx, transfer_id: str):
    """Delete a transfer and undo both of its sides."""
    ledger = ctx.obj["ledger"]
    transfer = find_record_or_exit(ctx, ledger.store.transfers, transfer_id, "Transfer")

    try:
        ledger.delete_transfer(transfer.id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted transfer {short_id(transfer.id)}")


@transfer_group.command("list")
@click.option("--month", help="Month to show (YYYY-MM, 'this month', 'last month'); default: this month")
@click.option("--all", "show_all", is_flag=True, help="Show every month")
@click.pass_context
def list_transfers(ctx, month: str | None, show_all: bool):
    """List transfers."""
    ledger = ctx.obj["ledger"]
    currency = ledger.store.currency

    transfers = ledger.store.transfers
    if not show_all:
        ym = parse_month_or_exit(ctx, month)
        transfers = [transfer for transfer in transfers if month_key(transfer.date) == ym]

    if not transfers:
        click.echo("No transfers found.")
        return

    click.echo(f"\nFound {len(transfers)} transfer(s):")
    click.echo("-" * 80)
    for transfer in transfers:
        route = f"{ledger.account_name(transfer.from_account_id)} -> {ledger.account_name(transfer.to_account_id)}"
        click.echo(
            f"{short_id(transfer.id)} | {transfer.date} | {route[:32]:32s} | "
            f"{format_money(transfer.amount, currency):>16s}"
        )


def register_commands(cli):
    """Register transfer commands with main CLI."""
    cli.add_command(transfer_group, name="transfer")
