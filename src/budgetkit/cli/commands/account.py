"""Account management commands."""

import click

from budgetkit.cli.account_resolution import resolve_account_or_exit
from budgetkit.cli.error_handling import handle_domain_error
from budgetkit.cli.formatting import format_money, short_id
from budgetkit.cli.inputs import parse_amount_or_exit
from budgetkit.domain.entities import AccountType, Currency
from budgetkit.domain.errors import DomainError

ACCOUNT_TYPES = [account_type.value for account_type in AccountType]
CURRENCIES = [currency.value for currency in Currency]


@click.group()
def account_group():
    """Manage accounts."""
    pass


@account_group.command("create")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option(
    "--type", "account_type",
    type=click.Choice(ACCOUNT_TYPES, case_sensitive=False),
    default=AccountType.WALLET.value,
    show_default=True,
    help="Account type",
)
@click.option(
    "--currency",
    type=click.Choice(CURRENCIES, case_sensitive=False),
    help="Account currency (defaults to the budget currency)",
)
@click.option("--balance", default="0", help="Opening balance (e.g., 1500 or 1,500.00)")
@click.pass_context
def create_account(ctx, name: str, account_type: str, currency: str | None, balance: str):
    """Create a new account.

    Examples:
        budgetkit account create "M-Pesa" --currency KSH
        budgetkit account create "Emergency Fund" --type Savings --balance 2000
    """
    ledger = ctx.obj["ledger"]
    opening = parse_amount_or_exit(ctx, balance, "balance")

    try:
        created = ledger.add_account(
            name=name,
            type=_account_type(account_type),
            currency=Currency(currency.upper()) if currency else None,
            balance=opening,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created account '{created.name}' (ID: {short_id(created.id)})")


@account_group.command("list")
@click.pass_context
def list_accounts(ctx):
    """List all accounts with their balances."""
    ledger = ctx.obj["ledger"]

    accounts = ledger.store.accounts
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 72)
    for acc in accounts:
        click.echo(
            f"ID: {short_id(acc.id)} | {acc.name:20s} | {acc.type.value:10s} | "
            f"{format_money(acc.balance, acc.currency):>18s}"
        )


@account_group.command("rename")
@click.argument("account", metavar="ACCOUNT")
@click.argument("new_name", metavar="NEW_NAME")
@click.option(
    "--type", "account_type",
    type=click.Choice(ACCOUNT_TYPES, case_sensitive=False),
    help="New account type (optional)",
)
@click.option(
    "--currency",
    type=click.Choice(CURRENCIES, case_sensitive=False),
    help="New account currency (optional)",
)
@click.pass_context
def rename_account(ctx, account: str, new_name: str, account_type: str | None, currency: str | None) -> None:
    """Rename an account.

    ACCOUNT can be an account name or ID.
    NEW_NAME is the new name for the account.

    Examples:
        budgetkit account rename "Cash" "Wallet"
        budgetkit account rename 3f2a "Chase Savings" --type Savings
    """
    ledger = ctx.obj["ledger"]
    account_id = resolve_account_or_exit(ctx, ledger, account)

    try:
        ledger.update_account(
            account_id,
            name=new_name,
            type=_account_type(account_type) if account_type else None,
            currency=Currency(currency.upper()) if currency else None,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Renamed account to '{new_name}'")


@account_group.command("delete")
@click.argument("account", metavar="ACCOUNT")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_account(ctx, account: str, yes: bool) -> None:
    """Delete an account.

    ACCOUNT can be an account name or ID.

    Recorded incomes, expenses and transfers of the account are kept and
    show the account as '—'.

    Examples:
        budgetkit account delete "Old Wallet"
        budgetkit account delete 3f2a --yes
    """
    ledger = ctx.obj["ledger"]
    account_id = resolve_account_or_exit(ctx, ledger, account)
    account_obj = ledger.get_account(account_id)

    # Confirm deletion
    if not yes and not click.confirm(
        f"Are you sure you want to delete account '{account_obj.name}' (ID: {short_id(account_id)})?"
    ):
        click.echo("Deletion cancelled.")
        return

    try:
        ledger.delete_account(account_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted account '{account_obj.name}'")


def _account_type(value: str) -> AccountType:
    for account_type in AccountType:
        if account_type.value.lower() == value.lower():
            return account_type
    raise click.BadParameter(f"Unknown account type '{value}'")


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
