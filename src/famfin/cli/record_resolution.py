"""CLI helpers for record resolution and input parsing."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Callable

import click

from famfin.cli.error_handling import handle_domain_error
from famfin.utils.amount_parser import parse_amount, parse_positive_amount
from famfin.utils.date_parser import parse_date, parse_month
from famfin.utils.timestamps import at_noon


def resolve_or_exit(ctx: click.Context, resolver: Callable[..., str], ref: str, *args) -> str:
    """Resolve a record reference, or exit with a CLI error.

    ``resolver`` is one of the ``famfin.utils.record_resolver`` functions;
    extra ``args`` are passed after the reference.

    This keeps error messaging and exit behavior consistent across commands.
    """
    try:
        return resolver(ctx.obj["db"], ctx.obj["user"], ref, *args)
    except ValueError as exc:
        handle_domain_error(ctx, exc)


def date_or_exit(ctx: click.Context, value: str) -> datetime:
    """Parse a date option into a noon timestamp, or exit."""
    try:
        return at_noon(parse_date(value, today=ctx.obj["today"]))
    except ValueError as e:
        click.echo(f"Error: Invalid date format: {e}", err=True)
        ctx.exit(1)


def amount_or_exit(ctx: click.Context, value: str, positive: bool = True) -> Decimal:
    """Parse an amount option, or exit."""
    try:
        return parse_positive_amount(value) if positive else parse_amount(value)
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)


def month_or_exit(ctx: click.Context, value: str | None) -> tuple[int, int]:
    """Parse a billing month option (current month when omitted), or exit."""
    today: date = ctx.obj["today"]
    if value is None:
        return today.month - 1, today.year
    try:
        return parse_month(value, today=today)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)
