"""Credit card management commands."""

import click

from famfin.cli.error_handling import handle_domain_error
from famfin.cli.record_resolution import amount_or_exit, resolve_or_exit
from famfin.domain.card import CreditCardService
from famfin.domain.errors import DomainError
from famfin.utils.record_resolver import resolve_card


@click.group()
def card_group():
    """Manage credit cards."""
    pass


@card_group.command("create")
@click.argument("nickname")
@click.option("--brand", required=True, help="Card network or issuer (e.g., Visa, Mastercard)")
@click.option("--closing-day", type=int, required=True, help="Day of month the billing period closes")
@click.option("--due-day", type=int, required=True, help="Day of month the invoice falls due")
@click.option("--limit", "limit_", default="0", help="Credit limit")
@click.option("--last-digits", default="", help="Last four digits of the card number")
@click.pass_context
def create_card(ctx, nickname: str, brand: str, closing_day: int, due_day: int, limit_: str, last_digits: str):
    """Create a new credit card.

    Examples:
        famfin card create "Nubank" --brand Mastercard --closing-day 10 --due-day 17
        famfin card create "Itaú Black" --brand Visa --closing-day 28 --due-day 5 --limit 15000
    """
    service = CreditCardService(ctx.obj["db"], ctx.obj["clock"])
    limit = amount_or_exit(ctx, limit_, positive=False)

    try:
        card_id = service.create_card(
            ctx.obj["user"],
            nickname=nickname,
            card_brand=brand,
            closing_day=closing_day,
            due_day=due_day,
            limit=limit,
            last_four_digits=last_digits,
        )
        click.echo(f"Created card '{nickname}' (ID: {card_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@card_group.command("list")
@click.option("--active-only", is_flag=True, help="Hide inactive cards")
@click.pass_context
def list_cards(ctx, active_only: bool):
    """List credit cards with their billing days."""
    service = CreditCardService(ctx.obj["db"], ctx.obj["clock"])

    cards = service.list_cards(ctx.obj["user"], active_only=active_only)
    if not cards:
        click.echo("No credit cards found.")
        return

    click.echo("\nCredit cards:")
    click.echo("-" * 80)
    for card in cards:
        digits = f" •••• {card.last_four_digits}" if card.last_four_digits else ""
        status = "" if card.is_active else " (inactive)"
        click.echo(
            f"{card.id} | {card.display_name}{digits} | closes {card.closing_day:2d} | "
            f"due {card.due_day:2d} | limit R$ {card.limit:,.2f}{status}"
        )


@card_group.command("activate")
@click.argument("card")
@click.pass_context
def activate_card(ctx, card: str):
    """Activate a credit card."""
    service = CreditCardService(ctx.obj["db"], ctx.obj["clock"])
    card_id = resolve_or_exit(ctx, resolve_card, card)
    try:
        service.activate(ctx.obj["user"], card_id)
        click.echo(f"Activated card '{card}'")
    except DomainError as e:
        handle_domain_error(ctx, e)


@card_group.command("deactivate")
@click.argument("card")
@click.pass_context
def deactivate_card(ctx, card: str):
    """Deactivate a credit card.

    Inactive cards are skipped by automatic invoice generation and forecasts.
    """
    service = CreditCardService(ctx.obj["db"], ctx.obj["clock"])
    card_id = resolve_or_exit(ctx, resolve_card, card)
    try:
        service.deactivate(ctx.obj["user"], card_id)
        click.echo(f"Deactivated card '{card}'")
    except DomainError as e:
        handle_domain_error(ctx, e)


@card_group.command("next-due")
@click.argument("card")
@click.pass_context
def next_due(ctx, card: str):
    """Show which invoice new purchases fall in and when it is due."""
    service = CreditCardService(ctx.obj["db"], ctx.obj["clock"])
    card_id = resolve_or_exit(ctx, resolve_card, card)
    card_obj = service.require_card(ctx.obj["user"], card_id)

    today = ctx.obj["today"]
    month, year = service.invoice_period_for(card_obj, today)
    due = service.next_due_date(card_obj, today)
    click.echo(f"Purchases today go to the {month + 1:02d}/{year} invoice")
    click.echo(f"Due date: {due:%Y-%m-%d}")


def register_commands(cli):
    """Register credit card commands with main CLI."""
    cli.add_command(card_group, name="card")
