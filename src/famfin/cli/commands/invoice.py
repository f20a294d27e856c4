"""Credit card invoice commands."""

import click

from famfin.cli.commands.transaction import format_transaction
from famfin.cli.error_handling import handle_domain_error
from famfin.cli.record_resolution import date_or_exit, month_or_exit, resolve_or_exit
from famfin.domain.errors import DomainError
from famfin.domain.invoice import InvoiceService, invoice_label
from famfin.utils.record_resolver import resolve_account, resolve_card


@click.group()
def invoice_group():
    """Generate and pay credit card invoices."""
    pass


@invoice_group.command("generate")
@click.argument("card")
@click.option("--month", help="Invoice month (YYYY-MM or MM/YYYY); defaults to this month")
@click.pass_context
def generate(ctx, card: str, month: str | None):
    """Bill a card's pending charges on a new invoice.

    Examples:
        famfin invoice generate Nubank
        famfin invoice generate Nubank --month 2024-04
    """
    service = InvoiceService(ctx.obj["db"], ctx.obj["clock"])
    card_id = resolve_or_exit(ctx, resolve_card, card)
    month_index, year = month_or_exit(ctx, month)

    try:
        invoice_id = service.generate_invoice(ctx.obj["user"], card_id, month_index, year)
    except DomainError as e:
        handle_domain_error(ctx, e)

    invoice = service.require_invoice(ctx.obj["user"], invoice_id)
    click.echo(f"Generated invoice {invoice_id} ({invoice_label(invoice)})")
    click.echo(f"  Charges: {len(invoice.transaction_ids)}")
    click.echo(f"  Total: R$ {invoice.total_amount:,.2f}")
    click.echo(f"  Due: {invoice.due_date:%Y-%m-%d}")


@invoice_group.command("list")
@click.option("--card", help="Only invoices of this card")
@click.pass_context
def list_invoices(ctx, card: str | None):
    """List invoices, most recent due date first."""
    service = InvoiceService(ctx.obj["db"], ctx.obj["clock"])
    card_id = resolve_or_exit(ctx, resolve_card, card) if card else None

    invoices = service.list_invoices(ctx.obj["user"], card_id=card_id)
    if not invoices:
        click.echo("No invoices found.")
        return

    for invoice in invoices:
        status = "paid" if invoice.is_paid else "open"
        click.echo(
            f"{invoice.id} | {invoice_label(invoice):18s} | due {invoice.due_date:%Y-%m-%d} | "
            f"R$ {invoice.total_amount:>10,.2f} | {status}"
        )


@invoice_group.command("show")
@click.argument("invoice_id")
@click.pass_context
def show(ctx, invoice_id: str):
    """Show an invoice and its charges."""
    service = InvoiceService(ctx.obj["db"], ctx.obj["clock"])
    try:
        details = service.get_invoice_details(ctx.obj["user"], invoice_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    invoice = details.invoice
    click.echo(f"\n{details.card.display_name} - {invoice_label(invoice)}")
    click.echo(f"Closing: {invoice.closing_date:%Y-%m-%d}  Due: {invoice.due_date:%Y-%m-%d}")
    click.echo("-" * 80)
    for txn in details.transactions:
        click.echo(format_transaction(txn))
    click.echo("-" * 80)
    click.echo(f"Total: R$ {invoice.total_amount:,.2f}")
    if invoice.is_paid:
        click.echo(f"Paid on {invoice.paid_date:%Y-%m-%d} (transaction {invoice.payment_transaction_id})")


@invoice_group.command("pay")
@click.argument("invoice_id")
@click.option("--account", required=True, help="Account the invoice is paid from")
@click.option("--date", "date_", help="Payment date; defaults to now")
@click.pass_context
def pay(ctx, invoice_id: str, account: str, date_: str | None):
    """Pay an invoice from an account.

    Examples:
        famfin invoice pay 9c1e... --account Nubank
    """
    service = InvoiceService(ctx.obj["db"], ctx.obj["clock"])
    account_id = resolve_or_exit(ctx, resolve_account, account)
    payment_date = date_or_exit(ctx, date_) if date_ else None

    try:
        settlement_id = service.pay_invoice(ctx.obj["user"], invoice_id, account_id, payment_date)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Paid invoice {invoice_id} (transaction {settlement_id})")


@invoice_group.command("delete")
@click.argument("invoice_id")
@click.pass_context
def delete(ctx, invoice_id: str):
    """Delete an unpaid invoice, releasing its charges."""
    service = InvoiceService(ctx.obj["db"], ctx.obj["clock"])
    try:
        service.delete_invoice(ctx.obj["user"], invoice_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted invoice {invoice_id}")


@invoice_group.command("auto")
@click.pass_context
def auto(ctx):
    """Generate this month's invoice for every card past its closing day."""
    service = InvoiceService(ctx.obj["db"], ctx.obj["clock"])
    created = service.auto_generate_invoices(ctx.obj["user"], ctx.obj["today"])
    if not created:
        click.echo("No invoices generated.")
        return
    for invoice_id in created:
        invoice = service.require_invoice(ctx.obj["user"], invoice_id)
        click.echo(f"Generated invoice {invoice_id} ({invoice_label(invoice)}): R$ {invoice.total_amount:,.2f}")


def register_commands(cli):
    """Register invoice commands with main CLI."""
    cli.add_command(invoice_group, name="invoice")
