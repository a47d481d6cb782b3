"""Currency, import, export and reset commands."""

import click

from budgetkit.cli.error_handling import handle_domain_error
from budgetkit.domain.entities import Currency
from budgetkit.domain.errors import DomainError

CURRENCIES = [currency.value for currency in Currency]


@click.command("currency")
@click.argument("currency", required=False, type=click.Choice(CURRENCIES, case_sensitive=False))
@click.pass_context
def currency(ctx, currency: str | None):
    """Show or set the display currency."""
    ledger = ctx.obj["ledger"]
    if currency is None:
        click.echo(ledger.store.currency.value)
        return

    try:
        ledger.set_currency(Currency(currency.upper()))
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Currency set to {ledger.store.currency.value}")


@click.command("export")
@click.argument("output", type=click.File("w", encoding="utf-8"), default="-")
@click.pass_context
def export_state(ctx, output):
    """Export the whole budget as JSON (to OUTPUT, default stdout).

    Examples:
        budgetkit export backup.json
    """
    ledger = ctx.obj["ledger"]
    output.write(ledger.export_state())
    output.write("\n")


@click.command("import")
@click.argument("input_file", metavar="FILE", type=click.File("r", encoding="utf-8"))
@click.pass_context
def import_state(ctx, input_file):
    """Import a JSON export.

    Every top-level collection in FILE replaces the current one; collections
    the file does not contain are kept.
    """
    ledger = ctx.obj["ledger"]

    try:
        ignored = ledger.import_state(input_file.read())
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo("Import complete.")
    if ignored:
        click.echo(f"Ignored unknown fields: {', '.join(ignored)}")


@click.command("reset")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def reset(ctx, yes: bool):
    """Delete every record and start over with a single Cash account."""
    ledger = ctx.obj["ledger"]
    if not yes and not click.confirm("This deletes all budget data. Continue?"):
        click.echo("Reset cancelled.")
        return

    try:
        ledger.reset()
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo("Budget reset.")


def register_commands(cli):
    """Register data commands with main CLI."""
    cli.add_command(currency)
    cli.add_command(export_state, name="export")
    cli.add_command(import_state, name="import")
    cli.add_command(reset)
