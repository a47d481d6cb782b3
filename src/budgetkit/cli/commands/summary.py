"""Summary, trend and journal commands."""

from datetime import date

import click

from budgetkit.cli.account_resolution import resolve_account_or_exit
from budgetkit.cli.formatting import format_money, short_id
from budgetkit.cli.inputs import parse_month_or_exit
from budgetkit.domain.entities import TxnType
from budgetkit.domain.summary import (
    ALL_MONTHS,
    build_dashboard,
    filter_trend,
    store_trend,
    trend_labels,
    years_in_data,
)
from budgetkit.utils.periods import MONTH_LABELS


@click.command("summary")
@click.option("--month", help="Month to summarize (YYYY-MM, 'this month', 'last month'); default: this month")
@click.pass_context
def summary(ctx, month: str | None):
    """Show the dashboard for a month.

    Expense totals count recorded expenses only; projected recurring
    expenses are listed separately.

    Examples:
        budgetkit summary
        budgetkit summary --month 2024-03
    """
    ledger = ctx.obj["ledger"]
    ym = parse_month_or_exit(ctx, month)
    dashboard = build_dashboard(ledger.store, ym, date.today())
    currency = dashboard.currency

    def money(amount):
        return format_money(amount, currency)

    click.echo(f"\nSummary for {ym}")
    click.echo("=" * 60)
    click.echo(f"  Income:                 {money(dashboard.income_this_month):>18s}")
    click.echo(f"  Expenses:               {money(dashboard.expense_this_month):>18s}")
    click.echo(f"  Net:                    {money(dashboard.net_this_month):>18s}")
    click.echo(f"  Account balances:       {money(dashboard.total_account_balances):>18s}")
    click.echo(f"  Recurring per period:   {money(dashboard.projected_recurring_monthly):>18s}")
    click.echo(f"  Needed for goals:       {money(dashboard.required_for_goals_monthly):>18s}")
    click.echo(f"  Available for goals:    {money(dashboard.available_for_goals_this_month):>18s}")

    projected = [expense for expense in dashboard.month_expenses if expense.projected]
    if projected:
        click.echo("\nProjected recurring expenses:")
        for expense in projected:
            click.echo(f"  {expense.date} | {expense.category[:24]:24s} | {money(expense.amount):>16s}")

    if dashboard.project_stats:
        click.echo("\nGoals:")
        for item in dashboard.project_stats:
            click.echo(
                f"  {item.project.name[:24]:24s} | remaining {money(item.remaining)} | "
                f"{money(item.required_monthly)}/month"
            )


@click.command("trend")
@click.option("--year", help="Year to show (default: current year)")
@click.option(
    "--month",
    type=click.Choice([ALL_MONTHS] + MONTH_LABELS, case_sensitive=False),
    default=ALL_MONTHS,
    show_default=True,
    help="Restrict to one month of the year",
)
@click.pass_context
def trend(ctx, year: str | None, month: str):
    """Show monthly income, expenses, investments and net for a year."""
    ledger = ctx.obj["ledger"]
    currency = ledger.store.currency
    year = year or str(date.today().year)

    points = filter_trend(store_trend(ledger.store), year, month)
    if not points:
        years = ", ".join(years_in_data(ledger.store)) or "none"
        click.echo(f"No activity found for {year}. Years with data: {years}")
        return

    click.echo(f"\nTrend for {year}:")
    click.echo("-" * 88)
    click.echo(f"{'Month':6s} | {'Income':>18s} | {'Expenses':>18s} | {'Investments':>18s} | {'Net':>18s}")
    for label, point in zip(trend_labels(points), points):
        click.echo(
            f"{label:6s} | {format_money(point.income, currency):>18s} | "
            f"{format_money(point.expenses, currency):>18s} | "
            f"{format_money(point.investments, currency):>18s} | {format_money(point.net, currency):>18s}"
        )


@click.command("journal")
@click.option("--month", help="Month to show (YYYY-MM, 'this month', 'last month'); default: this month")
@click.option("--account", help="Only entries of this account (name or ID)")
@click.pass_context
def journal(ctx, month: str | None, account: str | None):
    """Show the account transactions of a month."""
    ledger = ctx.obj["ledger"]
    currency = ledger.store.currency
    ym = parse_month_or_exit(ctx, month)

    entries = build_dashboard(ledger.store, ym, date.today()).month_account_txns
    if account:
        account_id = resolve_account_or_exit(ctx, ledger, account)
        entries = tuple(entry for entry in entries if entry.account_id == account_id)

    if not entries:
        click.echo(f"No account transactions found for {ym}.")
        return

    click.echo(f"\nAccount transactions for {ym}:")
    click.echo("-" * 96)
    for entry in entries:
        sign = "+" if entry.type == TxnType.DEPOSIT else "-"
        click.echo(
            f"{short_id(entry.id)} | {entry.date} | {ledger.account_name(entry.account_id)[:15]:15s} | "
            f"{entry.type.value:10s} | {sign}{format_money(entry.amount, currency):>16s} | "
            f"{entry.linked_type.value:8s} | {entry.notes}"
        )


def register_commands(cli):
    """Register summary commands with main CLI."""
    cli.add_command(summary)
    cli.add_command(trend)
    cli.add_command(journal)
