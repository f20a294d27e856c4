"""Add transaction command."""

import click

from famfin.cli.error_handling import handle_domain_error
from famfin.cli.record_resolution import amount_or_exit, date_or_exit, resolve_or_exit
from famfin.domain.entities import CategoryType, ExpenseType, RecurrenceType, TransactionType
from famfin.domain.errors import DomainError
from famfin.domain.transaction import TransactionService
from famfin.utils.record_resolver import resolve_account, resolve_card, resolve_category, resolve_member

DEFAULT_CATEGORIES = {
    TransactionType.INCOME: "default-income",
    TransactionType.EXPENSE: "default-expense",
    TransactionType.TRANSFER: "transfer",
}


@click.command("add")
@click.argument(
    "transaction_type",
    type=click.Choice([t.value for t in TransactionType], case_sensitive=False),
)
@click.option("--account", required=True, help="Account name or ID")
@click.option("--amount", required=True, help="Total amount (e.g., 123.45 or 1.234,56)")
@click.option("--description", required=True, help="Transaction description")
@click.option(
    "--date",
    "date_",
    default="today",
    help="Transaction date (YYYY-MM-DD, DD/MM/YYYY or relative like 'today', 'yesterday')",
)
@click.option("--category", help="Category name or ID")
@click.option("--to-account", help="Destination account of a transfer")
@click.option("--card", help="Credit card name or ID the purchase was made with")
@click.option(
    "--expense-type",
    type=click.Choice([t.value for t in ExpenseType], case_sensitive=False),
    help="How the expense is charged",
)
@click.option("--installments", type=int, help="Number of monthly installments")
@click.option("--first-due", help="First installment date when no card is used")
@click.option("--down-payment", help="Amount paid up front on an installment purchase")
@click.option("--due", help="Due date of a fixed or recurring entry")
@click.option(
    "--recurring",
    type=click.Choice([t.value for t in RecurrenceType], case_sensitive=False),
    help="Repeat the entry monthly or yearly",
)
@click.option("--paid", is_flag=True, help="The money already moved")
@click.option("--member", help="Family member name or ID the entry belongs to")
@click.option("--notes", help="Notes")
@click.pass_context
def add_transaction(
    ctx,
    transaction_type: str,
    account: str,
    amount: str,
    description: str,
    date_: str,
    category: str | None,
    to_account: str | None,
    card: str | None,
    expense_type: str | None,
    installments: int | None,
    first_due: str | None,
    down_payment: str | None,
    due: str | None,
    recurring: str | None,
    paid: bool,
    member: str | None,
    notes: str | None,
):
    """Add an income, expense or transfer.

    Purchases on a card are billed on the card's invoice and never move an
    account balance directly. Installment purchases are split into one
    record per month.

    Examples:
        famfin add income --account Nubank --amount 5000 --description Salário --category Salário --paid
        famfin add expense --account Nubank --card Nubank --amount 1200 --installments 3 \\
            --expense-type installment --description "Geladeira"
        famfin add expense --account Nubank --amount 150 --expense-type fixed --due 2024-03-10 \\
            --recurring monthly --description "Internet"
        famfin add transfer --account Nubank --to-account Carteira --amount 200 --description Saque --paid
    """
    user_id = ctx.obj["user"]
    txn_type = TransactionType(transaction_type.lower())
    service = TransactionService(ctx.obj["db"], ctx.obj["clock"])

    account_id = resolve_or_exit(ctx, resolve_account, account)
    to_account_id = resolve_or_exit(ctx, resolve_account, to_account) if to_account else None
    card_id = resolve_or_exit(ctx, resolve_card, card) if card else None
    member_id = resolve_or_exit(ctx, resolve_member, member) if member else None

    category_id = DEFAULT_CATEGORIES[txn_type]
    if category:
        category_type = CategoryType.INCOME if txn_type == TransactionType.INCOME else CategoryType.EXPENSE
        category_id = resolve_or_exit(ctx, resolve_category, category, category_type)

    kind = ExpenseType(expense_type.lower()) if expense_type else None
    if kind is None and txn_type == TransactionType.EXPENSE:
        kind = ExpenseType.INSTALLMENT if installments and installments > 1 else ExpenseType.CASH

    try:
        created = service.create_transaction(
            user_id,
            transaction_type=txn_type,
            amount=amount_or_exit(ctx, amount),
            description=description,
            category_id=category_id,
            account_id=account_id,
            date=date_or_exit(ctx, date_),
            is_paid=paid,
            notes=notes,
            assigned_to=member_id,
            is_recurring=recurring is not None,
            recurrence_type=RecurrenceType(recurring.lower()) if recurring else None,
            recurrence_day=date_or_exit(ctx, due).day if due and recurring else None,
            expense_type=kind,
            card_id=card_id,
            installments=installments,
            due_date=date_or_exit(ctx, due) if due else None,
            first_due_date=date_or_exit(ctx, first_due) if first_due else None,
            down_payment_amount=amount_or_exit(ctx, down_payment, positive=False) if down_payment else None,
            to_account_id=to_account_id,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    if len(created) == 1:
        click.echo(f"Created transaction {created[0]}")
    else:
        click.echo(f"Created {len(created)} transactions")
        for transaction_id in created:
            click.echo(f"  {transaction_id}")


def register_commands(cli):
    """Register add command with main CLI."""
    cli.add_command(add_transaction)
