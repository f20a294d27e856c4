"""Savings goal commands."""

import click

from famfin.cli.error_handling import handle_domain_error
from famfin.cli.record_resolution import amount_or_exit, date_or_exit, resolve_or_exit
from famfin.domain.entities import GoalCategory, GoalStatus
from famfin.domain.errors import DomainError
from famfin.domain.goal import (
    GoalService,
    calculate_days_remaining,
    calculate_monthly_contribution,
    calculate_progress,
    estimate_completion_date,
)
from famfin.utils.record_resolver import resolve_account, resolve_goal


@click.group()
def goal_group():
    """Manage savings goals."""
    pass


@goal_group.command("create")
@click.argument("name")
@click.option("--target", required=True, help="Amount to save")
@click.option("--deadline", required=True, help="Date the goal should be reached by")
@click.option(
    "--category",
    type=click.Choice([c.value for c in GoalCategory], case_sensitive=False),
    default=GoalCategory.OTHER.value,
    show_default=True,
)
@click.option("--description", help="Description")
@click.pass_context
def create_goal(ctx, name: str, target: str, deadline: str, category: str, description: str | None):
    """Create a savings goal.

    Examples:
        famfin goal create "Viagem Nordeste" --target 8000 --deadline 2025-12-01 --category travel
    """
    service = GoalService(ctx.obj["db"], ctx.obj["clock"])
    try:
        goal_id = service.create_goal(
            ctx.obj["user"],
            name=name,
            target_amount=amount_or_exit(ctx, target),
            deadline=date_or_exit(ctx, deadline),
            category=GoalCategory(category.lower()),
            description=description,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created goal '{name}' (ID: {goal_id})")


@goal_group.command("list")
@click.option("--active-only", is_flag=True, help="Hide completed and cancelled goals")
@click.pass_context
def list_goals(ctx, active_only: bool):
    """List goals with their progress."""
    service = GoalService(ctx.obj["db"], ctx.obj["clock"])
    user_id = ctx.obj["user"]
    goals = service.list_active_goals(user_id) if active_only else service.list_goals(user_id)
    if not goals:
        click.echo("No goals found.")
        return

    now = service.clock()
    for goal in goals:
        click.echo(
            f"{goal.id} | {goal.name:24s} | R$ {goal.current_amount:,.2f} of R$ {goal.target_amount:,.2f} "
            f"({calculate_progress(goal):.0f}%) | {goal.status.value}"
        )
        if goal.status == GoalStatus.ACTIVE:
            estimate = estimate_completion_date(goal, now)
            line = (
                f"    {calculate_days_remaining(goal, now)} days left, "
                f"R$ {calculate_monthly_contribution(goal, now):,.2f}/month needed"
            )
            if estimate is not None:
                line += f", on pace for {estimate:%Y-%m-%d}"
            click.echo(line)


@goal_group.command("contribute")
@click.argument("goal")
@click.argument("amount")
@click.option("--account", help="Take the money from this account")
@click.option("--note", help="Note stored with the contribution")
@click.pass_context
def contribute(ctx, goal: str, amount: str, account: str | None, note: str | None):
    """Add money to a goal, optionally moving it out of an account.

    Examples:
        famfin goal contribute "Viagem Nordeste" 500
        famfin goal contribute "Viagem Nordeste" 500 --account Nubank
    """
    service = GoalService(ctx.obj["db"], ctx.obj["clock"])
    user_id = ctx.obj["user"]
    goal_id = resolve_or_exit(ctx, resolve_goal, goal)
    value = amount_or_exit(ctx, amount)

    try:
        if account:
            account_id = resolve_or_exit(ctx, resolve_account, account)
            service.add_contribution_from_account(user_id, goal_id, account_id, value, note)
        else:
            service.add_contribution(user_id, goal_id, value, note)
    except DomainError as e:
        handle_domain_error(ctx, e)

    updated = service.require_goal(user_id, goal_id)
    click.echo(f"Goal '{updated.name}': R$ {updated.current_amount:,.2f} of R$ {updated.target_amount:,.2f}")
    if updated.status == GoalStatus.COMPLETED:
        click.echo("Goal completed!")


@goal_group.command("cancel")
@click.argument("goal")
@click.pass_context
def cancel(ctx, goal: str):
    """Cancel a goal."""
    service = GoalService(ctx.obj["db"], ctx.obj["clock"])
    goal_id = resolve_or_exit(ctx, resolve_goal, goal)
    try:
        service.cancel(ctx.obj["user"], goal_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Cancelled goal '{goal}'")


@goal_group.command("reactivate")
@click.argument("goal")
@click.pass_context
def reactivate(ctx, goal: str):
    """Reactivate a cancelled goal."""
    service = GoalService(ctx.obj["db"], ctx.obj["clock"])
    goal_id = resolve_or_exit(ctx, resolve_goal, goal)
    try:
        service.reactivate(ctx.obj["user"], goal_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    updated = service.require_goal(ctx.obj["user"], goal_id)
    click.echo(f"Goal '{updated.name}' is {updated.status.value}")


def register_commands(cli):
    """Register goal commands with main CLI."""
    cli.add_command(goal_group, name="goal")
