"""Account management commands."""

import click

from famfin.cli.error_handling import handle_domain_error
from famfin.cli.record_resolution import amount_or_exit, resolve_or_exit
from famfin.domain.account import AccountService
from famfin.domain.entities import AccountType
from famfin.domain.errors import DomainError
from famfin.utils.record_resolver import resolve_account


@click.group()
def account_group():
    """Manage accounts."""
    pass


@account_group.command("create")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option(
    "--type",
    "account_type",
    type=click.Choice([t.value for t in AccountType], case_sensitive=False),
    default=AccountType.BANK.value,
    show_default=True,
    help="Kind of account",
)
@click.option("--initial-balance", default="0", help="Opening balance (e.g., 1500.00 or 1.500,00)")
@click.option("--exclude-from-total", is_flag=True, help="Leave the account out of the total balance")
@click.pass_context
def create_account(ctx, name: str, account_type: str, initial_balance: str, exclude_from_total: bool):
    """Create a new account.

    Examples:
        famfin account create "Nubank"
        famfin account create "Carteira" --type cash --initial-balance 200
    """
    service = AccountService(ctx.obj["db"], ctx.obj["clock"])
    balance = amount_or_exit(ctx, initial_balance, positive=False)

    try:
        account_id = service.create_account(
            ctx.obj["user"],
            name=name,
            account_type=AccountType(account_type.lower()),
            initial_balance=balance,
            include_in_total=not exclude_from_total,
        )
        click.echo(f"Created account '{name}' (ID: {account_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@account_group.command("list")
@click.option("--active-only", is_flag=True, help="Hide inactive accounts")
@click.pass_context
def list_accounts(ctx, active_only: bool):
    """List all accounts with their current balances."""
    service = AccountService(ctx.obj["db"], ctx.obj["clock"])

    accounts = service.list_accounts(ctx.obj["user"], active_only=active_only)
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 80)
    for acc in accounts:
        flags = "" if acc.is_active else " (inactive)"
        click.echo(
            f"{acc.id} | {acc.name:20s} | {acc.account_type.value:10s} | "
            f"R$ {acc.current_balance:>12,.2f}{flags}"
        )


@account_group.command("total")
@click.pass_context
def total_balance(ctx):
    """Show the combined balance of active accounts counted in the total."""
    service = AccountService(ctx.obj["db"], ctx.obj["clock"])
    click.echo(f"Total balance: R$ {service.total_balance(ctx.obj['user']):,.2f}")


@account_group.command("recalculate")
@click.argument("account", required=False)
@click.pass_context
def recalculate(ctx, account: str | None):
    """Rebuild balances from the transaction history.

    ACCOUNT can be an account name or ID; all accounts are recalculated when
    it is omitted.

    Examples:
        famfin account recalculate
        famfin account recalculate "Nubank"
    """
    service = AccountService(ctx.obj["db"], ctx.obj["clock"])
    user_id = ctx.obj["user"]

    try:
        if account is None:
            balances = service.recalculate_all_balances(user_id)
        else:
            account_id = resolve_or_exit(ctx, resolve_account, account)
            balances = {account_id: service.recalculate_balance(user_id, account_id)}
    except DomainError as e:
        handle_domain_error(ctx, e)

    names = {acc.id: acc.name for acc in service.list_accounts(user_id)}
    for account_id, balance in balances.items():
        click.echo(f"{names.get(account_id, account_id):20s} R$ {balance:>12,.2f}")


@account_group.command("delete")
@click.argument("account", metavar="ACCOUNT")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_account(ctx, account: str, yes: bool) -> None:
    """Delete an account.

    ACCOUNT can be an account name or ID.

    The account can only be deleted if no transactions reference it.
    """
    service = AccountService(ctx.obj["db"], ctx.obj["clock"])
    account_id = resolve_or_exit(ctx, resolve_account, account)

    if not yes and not click.confirm(f"Are you sure you want to delete account '{account}'?"):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_account(ctx.obj["user"], account_id)
        click.echo(f"Deleted account '{account}'")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
