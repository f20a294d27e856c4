"""Family member commands."""

import click

from famfin.cli.error_handling import handle_domain_error
from famfin.cli.record_resolution import resolve_or_exit
from famfin.domain.errors import DomainError
from famfin.domain.family import FamilyService
from famfin.utils.record_resolver import resolve_member


@click.group()
def family_group():
    """Manage the people expenses are attributed to."""
    pass


@family_group.command("add")
@click.argument("name")
@click.pass_context
def add_member(ctx, name: str):
    """Add a family member."""
    service = FamilyService(ctx.obj["db"], ctx.obj["clock"])
    try:
        member_id = service.add_member(ctx.obj["user"], name)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Added '{name}' (ID: {member_id})")


@family_group.command("list")
@click.option("--active-only", is_flag=True, help="Hide inactive members")
@click.pass_context
def list_members(ctx, active_only: bool):
    """List family members."""
    service = FamilyService(ctx.obj["db"], ctx.obj["clock"])
    members = service.list_members(ctx.obj["user"], active_only=active_only)
    if not members:
        click.echo("No family members found.")
        return
    for member in members:
        status = "" if member.is_active else " (inactive)"
        click.echo(f"{member.id} | {member.name}{status}")


@family_group.command("deactivate")
@click.argument("member")
@click.pass_context
def deactivate_member(ctx, member: str):
    """Deactivate a family member, keeping their history."""
    service = FamilyService(ctx.obj["db"], ctx.obj["clock"])
    member_id = resolve_or_exit(ctx, resolve_member, member)
    try:
        service.deactivate_member(ctx.obj["user"], member_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deactivated '{member}'")


def register_commands(cli):
    """Register family commands with main CLI."""
    cli.add_command(family_group, name="family")
