"""Export and import of a user namespace as JSON documents."""

import json

import click

from famfin.cli.error_handling import handle_domain_error
from famfin.database.documents import export_namespace, import_namespace
from famfin.domain.errors import DomainError


@click.command("export")
@click.argument("output", type=click.File("w", encoding="utf-8"), default="-")
@click.pass_context
def export_data(ctx, output):
    """Write every record of the user namespace as JSON.

    OUTPUT defaults to standard output.

    Examples:
        famfin export backup.json
        famfin --user alice export > alice.json
    """
    data = export_namespace(ctx.obj["db"], ctx.obj["user"])
    json.dump(data, output, ensure_ascii=False, indent=2, sort_keys=True)
    output.write("\n")


@click.command("import")
@click.argument("source", type=click.File("r", encoding="utf-8"))
@click.pass_context
def import_data(ctx, source):
    """Load records from a JSON export into the user namespace.

    Records with the same ID are replaced. Everything is loaded in a single
    write, so a bad file leaves the namespace untouched.
    """
    try:
        data = json.load(source)
    except json.JSONDecodeError as e:
        click.echo(f"Error: Invalid JSON: {e}", err=True)
        ctx.exit(1)
    if not isinstance(data, dict):
        click.echo("Error: Expected a JSON object of collections", err=True)
        ctx.exit(1)

    try:
        counts = import_namespace(ctx.obj["db"], ctx.obj["user"], data)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not counts:
        click.echo("Nothing to import.")
        return
    for collection, count in counts.items():
        click.echo(f"Imported {count} {collection}")


def register_commands(cli):
    """Register export and import commands with main CLI."""
    cli.add_command(export_data)
    cli.add_command(import_data)
