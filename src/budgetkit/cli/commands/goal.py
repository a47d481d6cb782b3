"""Savings goal commands."""

from dataclasses import replace
from datetime import date

import click

from budgetkit.cli.error_handling import handle_domain_error
from budgetkit.cli.formatting import format_money, short_id
from budgetkit.cli.inputs import (
    DATE_HELP,
    find_record,
    find_record_or_exit,
    parse_amount_or_exit,
    parse_date_or_exit,
)
from budgetkit.domain.errors import DomainError
from budgetkit.domain.summary import project_stats


@click.group()
def goal_group():
    """Plan savings goals and track contributions."""
    pass


def _resolve_goal_or_exit(ctx, ledger, goal: str):
    """Find a goal by exact name, id or unique id prefix."""
    for project in ledger.store.projects:
        if project.name == goal:
            return project
    return find_record_or_exit(ctx, ledger.store.projects, goal, "Goal")


@goal_group.command("create")
@click.argument("name", metavar="GOAL_NAME")
@click.option("--target", required=True, help="Amount to save")
@click.option("--by", "target_date", required=True, help=f"Target date ({DATE_HELP})")
@click.option("--notes", help="Notes")
@click.pass_context
def create_goal(ctx, name: str, target: str, target_date: str, notes: str | None):
    """Create a savings goal.

    Examples:
        budgetkit goal create "New Laptop" --target 1200 --by 2025-06-30
    """
    ledger = ctx.obj["ledger"]
    target_amount = parse_amount_or_exit(ctx, target, "target")
    by = parse_date_or_exit(ctx, target_date, "target date")

    try:
        project = ledger.add_project(name=name, target_amount=target_amount, target_date=by, notes=notes)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created goal '{project.name}' (ID: {short_id(project.id)})")


@goal_group.command("edit")
@click.argument("goal", metavar="GOAL")
@click.option("--name", help="New goal name")
@click.option("--target", help="Amount to save")
@click.option("--by", "target_date", help=f"Target date ({DATE_HELP})")
@click.option("--notes", help="Notes")
@click.pass_context
def edit_goal(ctx, goal: str, name, target, target_date, notes):
    """Edit a savings goal. GOAL can be a goal name or ID."""
    ledger = ctx.obj["ledger"]
    project = _resolve_goal_or_exit(ctx, ledger, goal)

    changes = {}
    if name is not None:
        changes["name"] = name
    if target is not None:
        changes["target_amount"] = parse_amount_or_exit(ctx, target, "target")
    if target_date is not None:
        changes["target_date"] = parse_date_or_exit(ctx, target_date, "target date")
    if notes is not None:
        changes["notes"] = notes or None

    try:
        ledger.update_project(replace(project, **changes))
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Updated goal '{changes.get('name', project.name)}'")


@goal_group.command("delete")
@click.argument("goal", metavar="GOAL")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_goal(ctx, goal: str, yes: bool):
    """Delete a savings goal and all of its contributions."""
    ledger = ctx.obj["ledger"]
    project = _resolve_goal_or_exit(ctx, ledger, goal)

    if not yes and not click.confirm(f"Delete goal '{project.name}' and its contributions?"):
        click.echo("Deletion cancelled.")
        return

    try:
        ledger.delete_project(project.id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted goal '{project.name}'")


@goal_group.command("list")
@click.pass_context
def list_goals(ctx):
    """List savings goals with the monthly amount still needed."""
    ledger = ctx.obj["ledger"]
    currency = ledger.store.currency

    stats = project_stats(ledger.store, date.today())
    if not stats:
        click.echo("No goals found.")
        return

    click.echo("\nGoals:")
    click.echo("-" * 96)
    for item in stats:
        project = item.project
        click.echo(
            f"{short_id(project.id)} | {project.name[:20]:20s} | by {project.target_date} | "
            f"saved {format_money(item.contributed, currency)} of {format_money(project.target_amount, currency)} | "
            f"{format_money(item.required_monthly, currency)}/month for {item.months_left} month(s)"
        )


@goal_group.command("contribute")
@click.argument("goal", metavar="GOAL")
@click.option("--amount", required=True, help="Amount set aside")
@click.option("--date", "date_str", default="today", show_default=True, help=f"Contribution date ({DATE_HELP})")
@click.pass_context
def contribute(ctx, goal: str, amount: str, date_str: str):
    """Record a contribution towards a goal.

    Contributions do not change account balances.

    Examples:
        budgetkit goal contribute "New Laptop" --amount 200
    """
    ledger = ctx.obj["ledger"]
    project = _resolve_goal_or_exit(ctx, ledger, goal)
    contribution_amount = parse_amount_or_exit(ctx, amount)
    contribution_date = parse_date_or_exit(ctx, date_str)

    try:
        contribution = ledger.add_contribution(project.id, contribution_date, contribution_amount)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(
        f"Added {format_money(contribution.amount, ledger.store.currency)} to '{project.name}' "
        f"(ID: {short_id(contribution.id)})"
    )


@goal_group.command("uncontribute")
@click.argument("contribution_id")
@click.pass_context
def uncontribute(ctx, contribution_id: str):
    """Delete a goal contribution."""
    ledger = ctx.obj["ledger"]
    contribution = find_record_or_exit(
        ctx, ledger.store.project_contributions, contribution_id, "Contribution"
    )
    project = find_record(ledger.store.projects, contribution.project_id)

    try:
        ledger.delete_contribution(contribution.id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    goal_name = project.name if project else "—"
    click.echo(f"Removed contribution {short_id(contribution.id)} from '{goal_name}'")


def register_commands(cli):
    """Register goal commands with main CLI."""
    cli.add_command(goal_group, name="goal")
