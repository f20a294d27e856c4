"""Transaction management commands."""

import click

from famfin.cli.error_handling import handle_domain_error
from famfin.cli.record_resolution import amount_or_exit, month_or_exit, resolve_or_exit
from famfin.domain.entities import Transaction, TransactionType
from famfin.domain.errors import DomainError
from famfin.domain.transaction import TransactionService, calculate_probable_value, calculate_stats
from famfin.utils.record_resolver import resolve_account, resolve_card

_SIGNS = {
    TransactionType.INCOME: "+",
    TransactionType.EXPENSE: "-",
    TransactionType.TRANSFER: "→",
}


def format_transaction(txn: Transaction) -> str:
    """Render one transaction as a listing line."""
    status = "paid" if txn.is_paid else "open"
    installment = f" ({txn.current_installment}/{txn.installments})" if txn.installments else ""
    card = " [card]" if txn.is_card_charge else ""
    return (
        f"{txn.id} | {txn.date:%Y-%m-%d} | {_SIGNS[txn.transaction_type]} R$ {txn.amount:>10,.2f} | "
        f"{status:4s} | {txn.description}{installment}{card}"
    )


@click.group()
def transaction_group():
    """Manage transactions."""
    pass


@transaction_group.command("list")
@click.option("--month", help="Month to list (YYYY-MM, MM/YYYY, 'last month'); defaults to this month")
@click.option("--all", "all_months", is_flag=True, help="List every month")
@click.option("--account", help="Only transactions of this account")
@click.option("--card", help="Only charges on this card")
@click.pass_context
def list_transactions(ctx, month: str | None, all_months: bool, account: str | None, card: str | None):
    """List transactions, newest first, with paid totals.

    Examples:
        famfin transaction list
        famfin transaction list --month 2024-03 --card Nubank
    """
    service = TransactionService(ctx.obj["db"], ctx.obj["clock"])
    month_index = year = None
    if not all_months:
        month_index, year = month_or_exit(ctx, month)

    transactions = service.list_transactions(
        ctx.obj["user"],
        month=month_index,
        year=year,
        account_id=resolve_or_exit(ctx, resolve_account, account) if account else None,
        card_id=resolve_or_exit(ctx, resolve_card, card) if card else None,
    )
    if not transactions:
        click.echo("No transactions found.")
        return

    for txn in transactions:
        click.echo(format_transaction(txn))

    stats = calculate_stats(transactions)
    click.echo("-" * 80)
    click.echo(f"Income:  R$ {stats.income:>12,.2f}")
    click.echo(f"Expense: R$ {stats.expense:>12,.2f}")
    click.echo(f"Balance: R$ {stats.balance:>12,.2f}")


@transaction_group.command("pending")
@click.pass_context
def pending(ctx):
    """Show unpaid fixed entries due in the next days, with probable values."""
    service = TransactionService(ctx.obj["db"], ctx.obj["clock"])
    result = service.get_pending_confirmations(ctx.obj["user"])

    if not result.expenses and not result.incomes:
        click.echo("Nothing to confirm.")
        return

    for label, entries in (("Expenses", result.expenses), ("Incomes", result.incomes)):
        if not entries:
            continue
        click.echo(f"\n{label}:")
        for txn in entries:
            due = txn.due_date or txn.date
            probable = calculate_probable_value(txn.value_history)
            hint = f" (probable R$ {probable:,.2f})" if probable is not None else ""
            click.echo(f"  {txn.id} | due {due:%Y-%m-%d} | R$ {txn.amount:,.2f}{hint} | {txn.description}")


@transaction_group.command("pay")
@click.argument("transaction_id")
@click.pass_context
def pay(ctx, transaction_id: str):
    """Mark a transaction as paid and post it to its account."""
    service = TransactionService(ctx.obj["db"], ctx.obj["clock"])
    try:
        service.mark_paid(ctx.obj["user"], transaction_id)
        click.echo(f"Marked transaction {transaction_id} as paid")
    except DomainError as e:
        handle_domain_error(ctx, e)


@transaction_group.command("confirm")
@click.argument("transaction_id")
@click.option("--amount", required=True, help="Amount actually paid or received")
@click.option("--update-future", is_flag=True, help="Use this amount for the next occurrence as is")
@click.pass_context
def confirm(ctx, transaction_id: str, amount: str, update_future: bool):
    """Confirm a pending entry with its real amount.

    Recurring and fixed entries get their next monthly occurrence.

    Examples:
        famfin transaction confirm 3f2a... --amount 187,40
    """
    service = TransactionService(ctx.obj["db"], ctx.obj["clock"])
    try:
        next_id = service.confirm_transaction(
            ctx.obj["user"],
            transaction_id,
            amount_or_exit(ctx, amount),
            update_future_values=update_future,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Confirmed transaction {transaction_id}")
    if next_id:
        next_txn = service.require_transaction(ctx.obj["user"], next_id)
        click.echo(f"Next occurrence {next_id}: R$ {next_txn.amount:,.2f}")


@transaction_group.command("delete")
@click.argument("transaction_id")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete(ctx, transaction_id: str, yes: bool):
    """Delete a transaction.

    Deleting one installment deletes every installment of the purchase.
    Transactions billed on an invoice cannot be deleted.
    """
    service = TransactionService(ctx.obj["db"], ctx.obj["clock"])
    if not yes and not click.confirm(f"Are you sure you want to delete transaction {transaction_id}?"):
        click.echo("Deletion cancelled.")
        return

    try:
        deleted = service.delete_transaction(ctx.obj["user"], transaction_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted {len(deleted)} transaction{'s' if len(deleted) != 1 else ''}")


def register_commands(cli):
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="transaction")
