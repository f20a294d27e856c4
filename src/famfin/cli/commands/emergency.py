"""Emergency reserve commands."""

import click

from famfin.cli.error_handling import handle_domain_error
from famfin.cli.record_resolution import amount_or_exit, resolve_or_exit
from famfin.domain.emergency_fund import EmergencyFundService
from famfin.domain.errors import DomainError
from famfin.utils.record_resolver import resolve_account


@click.group()
def emergency_group():
    """Track the emergency reserve."""
    pass


@emergency_group.command("status")
@click.pass_context
def status(ctx):
    """Show the reserve against six months of average expenses."""
    service = EmergencyFundService(ctx.obj["db"], ctx.obj["clock"])
    result = service.get_status(ctx.obj["user"])

    click.echo(f"Monthly expenses: R$ {result.monthly_expenses:,.2f}")
    click.echo(f"Target:           R$ {result.target_amount:,.2f}")
    if not result.has_goal:
        click.echo("No emergency reserve yet. Run 'emergency create' to start one.")
        click.echo(f"Suggested monthly contribution: R$ {result.suggested_contribution:,.2f}")
        return

    click.echo(f"Saved:            R$ {result.current_amount:,.2f} ({result.progress:.0f}%)")
    click.echo(f"Months covered:   {result.months_covered:.1f} ({result.level.value})")
    click.echo(f"Suggested monthly contribution: R$ {result.suggested_contribution:,.2f}")


@emergency_group.command("create")
@click.pass_context
def create(ctx):
    """Create the reserve goal sized from recent expenses."""
    service = EmergencyFundService(ctx.obj["db"], ctx.obj["clock"])
    goal_id = service.create_emergency_goal(ctx.obj["user"])
    click.echo(f"Emergency reserve goal: {goal_id}")


@emergency_group.command("contribute")
@click.argument("amount")
@click.option("--note", help="Note stored with the contribution")
@click.pass_context
def contribute(ctx, amount: str, note: str | None):
    """Record money saved outside the tracked accounts."""
    service = EmergencyFundService(ctx.obj["db"], ctx.obj["clock"])
    value = amount_or_exit(ctx, amount)
    try:
        service.contribute(ctx.obj["user"], value, note)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Added R$ {value:,.2f} to the reserve")


@emergency_group.command("deposit")
@click.argument("amount")
@click.option("--account", required=True, help="Account the money leaves")
@click.pass_context
def deposit(ctx, amount: str, account: str):
    """Move money from an account into the reserve."""
    service = EmergencyFundService(ctx.obj["db"], ctx.obj["clock"])
    account_id = resolve_or_exit(ctx, resolve_account, account)
    value = amount_or_exit(ctx, amount)
    try:
        service.transfer_from_account(ctx.obj["user"], account_id, value)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Moved R$ {value:,.2f} from '{account}' into the reserve")


@emergency_group.command("withdraw")
@click.argument("amount")
@click.option("--account", required=True, help="Account the money goes to")
@click.pass_context
def withdraw(ctx, amount: str, account: str):
    """Move money from the reserve back into an account."""
    service = EmergencyFundService(ctx.obj["db"], ctx.obj["clock"])
    account_id = resolve_or_exit(ctx, resolve_account, account)
    value = amount_or_exit(ctx, amount)
    try:
        service.withdraw_to_account(ctx.obj["user"], account_id, value)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Moved R$ {value:,.2f} from the reserve into '{account}'")


def register_commands(cli):
    """Register emergency reserve commands with main CLI."""
    cli.add_command(emergency_group, name="emergency")
