"""Main CLI entry point."""

import click

from budgetkit.cli.error_handling import handle_domain_error
from budgetkit.database.factories import BACKENDS, create_database
from budgetkit.domain.errors import DomainError
from budgetkit.domain.ledger import LedgerService
from budgetkit.utils.log_config import configure_logging

# Import and register all commands at module level
from budgetkit.cli.commands import (
    account,
    income,
    expense,
    transfer,
    investment,
    goal,
    summary,
    data,
)


@click.group()
@click.option(
    "--state-path",
    type=click.Path(),
    help="Path to the local state file (overrides BUDGETKIT_STATE_PATH environment variable)",
    envvar="BUDGETKIT_STATE_PATH",
)
@click.option(
    "--backend",
    type=click.Choice(BACKENDS, case_sensitive=False),
    default="local",
    show_default=True,
    help="Storage backend: local JSON state file or SQL database",
    envvar="BUDGETKIT_BACKEND",
)
@click.option(
    "--database-url",
    help="SQLAlchemy URL for the sql backend (overrides BUDGETKIT_DATABASE_URL)",
    envvar="BUDGETKIT_DATABASE_URL",
)
@click.option(
    "--workspace",
    help="Workspace name for the sql backend (overrides BUDGETKIT_WORKSPACE)",
    envvar="BUDGETKIT_WORKSPACE",
)
@click.option(
    "--derive-balances/--incremental-balances",
    default=False,
    help="Recompute balances from recorded activity instead of adjusting them",
    envvar="BUDGETKIT_DERIVE_BALANCES",
)
@click.option("--verbose", "-v", is_flag=True, help="Log debug events to stderr")
@click.pass_context
def cli(
    ctx,
    state_path: str | None,
    backend: str,
    database_url: str | None,
    workspace: str | None,
    derive_balances: bool,
    verbose: bool,
):
    """Budgetkit - Personal budgeting ledger.

    Record income, expenses, transfers, investments and savings goals while
    account balances and the account journal stay reconciled.
    """
    ctx.ensure_object(dict)
    configure_logging(verbose)

    # Open the backend only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        try:
            db = create_database(
                backend, state_path=state_path, database_url=database_url, workspace=workspace
            )
            db.connect()
            db.initialize_schema()
            ctx.call_on_close(db.disconnect)

            ledger = LedgerService(db, derive_balances=derive_balances)
            ledger.load()
        except DomainError as e:
            handle_domain_error(ctx, e)
        ctx.obj["db"] = db
        ctx.obj["ledger"] = ledger


# Register all commands
account.register_commands(cli)
income.register_commands(cli)
expense.register_commands(cli)
transfer.register_commands(cli)
investment.register_commands(cli)
goal.register_commands(cli)
summary.register_commands(cli)
data.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
