"""Main CLI entry point."""

import logging
from datetime import date

import click

from famfin.database.factories import create_sqlite_database

# Import and register all commands at module level
from famfin.cli.commands import (
    account,
    add,
    card,
    category,
    data,
    emergency,
    family,
    forecast,
    goal,
    invoice,
    transaction,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides FAMFIN_DB_PATH environment variable)",
    envvar="FAMFIN_DB_PATH",
)
@click.option(
    "--user",
    default="local",
    show_default=True,
    envvar="FAMFIN_USER",
    help="User namespace to work in",
)
@click.option("--verbose", "-v", is_flag=True, help="Log debug messages")
@click.pass_context
def cli(ctx, db_path: str | None, user: str, verbose: bool):
    """famfin - Family finance manager.

    Track accounts, expenses and credit cards, generate and pay card
    invoices, and forecast cash flow and emergency reserves.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.call_on_close(db.disconnect)
        ctx.obj["db"] = db
        ctx.obj["user"] = user
        clock = ctx.obj.setdefault("clock", None)
        ctx.obj.setdefault("today", clock().date() if clock else date.today())


# Register all commands
account.register_commands(cli)
category.register_commands(cli)
card.register_commands(cli)
add.register_commands(cli)
transaction.register_commands(cli)
invoice.register_commands(cli)
forecast.register_commands(cli)
emergency.register_commands(cli)
goal.register_commands(cli)
family.register_commands(cli)
data.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
