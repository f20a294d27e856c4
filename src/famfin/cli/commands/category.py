"""Category management commands."""

import click

from famfin.cli.error_handling import handle_domain_error
from famfin.cli.record_resolution import amount_or_exit
from famfin.domain.account import AccountService
from famfin.domain.category import CategoryService
from famfin.domain.entities import CategoryType
from famfin.domain.errors import DomainError

_TYPE_CHOICE = click.Choice([t.value for t in CategoryType], case_sensitive=False)


@click.group()
def category_group():
    """Manage categories."""
    pass


@category_group.command("list")
@click.option("--type", "category_type", type=_TYPE_CHOICE, help="Only list income or expense categories")
@click.option("--all", "include_archived", is_flag=True, help="Include archived categories")
@click.pass_context
def list_categories(ctx, category_type: str | None, include_archived: bool):
    """List categories grouped by type."""
    service = CategoryService(ctx.obj["db"], ctx.obj["clock"])

    categories = service.list_categories(
        ctx.obj["user"],
        category_type=CategoryType(category_type) if category_type else None,
        include_archived=include_archived,
    )
    if not categories:
        click.echo("No categories found. Run 'category init' to create default categories.")
        return

    for kind in CategoryType:
        group = [c for c in categories if c.category_type == kind]
        if not group:
            continue
        click.echo(f"\n{kind.value.capitalize()}:")
        for cat in group:
            archived = " (archived)" if cat.is_archived else ""
            click.echo(f"  {cat.name} (ID: {cat.id}){archived}")


@category_group.command("create")
@click.argument("name")
@click.option("--type", "category_type", type=_TYPE_CHOICE, default="expense", help="Category type (default: expense)")
@click.option("--icon", default="Tag", help="Icon identifier")
@click.option("--color", default="#64748b", help="Display color")
@click.option("--budget", help="Monthly budget")
@click.pass_context
def create_category(ctx, name: str, category_type: str, icon: str, color: str, budget: str | None):
    """Create a new category."""
    service = CategoryService(ctx.obj["db"], ctx.obj["clock"])
    monthly_budget = amount_or_exit(ctx, budget) if budget else None

    try:
        category_id = service.create_category(
            ctx.obj["user"],
            name=name,
            category_type=CategoryType(category_type.lower()),
            icon=icon,
            color=color,
            monthly_budget=monthly_budget,
        )
        click.echo(f"Created category '{name}' (ID: {category_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@category_group.command("init")
@click.pass_context
def init_categories(ctx):
    """Create the default categories and a starting wallet account.

    Existing categories are kept; running it twice creates nothing new.
    """
    db = ctx.obj["db"]
    user_id = ctx.obj["user"]
    created = CategoryService(db, ctx.obj["clock"]).seed_default_categories(user_id)
    click.echo(f"Created {created} default categories")

    account_id = AccountService(db, ctx.obj["clock"]).seed_default_account(user_id)
    if account_id:
        click.echo(f"Created default account (ID: {account_id})")


def register_commands(cli):
    """Register category commands with main CLI."""
    cli.add_command(category_group, name="category")
