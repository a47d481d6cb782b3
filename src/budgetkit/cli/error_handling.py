"""CLI error handling helpers."""

import click
import structlog

from budgetkit.domain.errors import DomainError, PersistenceError

logger = structlog.get_logger(__name__)

STORAGE_HINT = "Nothing was changed. Check --state-path or --database-url."


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure.

    Storage failures are logged as well and get a hint about where the
    budget is stored.
    """
    if isinstance(error, PersistenceError):
        logger.error("storage_failed", command=ctx.command_path, error=str(error))
        click.echo(f"Error: {error}. {STORAGE_HINT}", err=True)
    else:
        click.echo(f"Error: {error}", err=True)
    ctx.exit(1)
