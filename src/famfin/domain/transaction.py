"""Transaction domain service."""

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Iterable, Optional

from famfin.database.base import Database
from famfin.domain.billing_cycle import invoice_month_for, shift_months
from famfin.domain.entities import (
    Collection,
    ExpenseType,
    RecurrenceType,
    Transaction,
    TransactionType,
    WriteBatch,
)
from famfin.domain.errors import (
    ConflictError,
    NotFoundError,
    PreconditionFailedError,
    ValidationError,
    account_not_found,
    card_not_found,
    transaction_in_invoice,
    transaction_not_found,
)
from famfin.domain.ledger import net_effects, stage_balance_changes
from famfin.utils.timestamps import end_of_day, month_bounds

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
VALUE_HISTORY_SIZE = 5
CONFIRMATION_WINDOW_DAYS = 5

_EDITABLE_FIELDS = {
    "transaction_type",
    "amount",
    "description",
    "category_id",
    "account_id",
    "date",
    "is_paid",
    "notes",
    "assigned_to",
    "is_recurring",
    "recurrence_day",
    "recurrence_type",
    "expense_type",
    "card_id",
    "due_date",
    "to_account_id",
}

# Fields an invoice total depends on
_BILLED_FIELDS = {"transaction_type", "amount", "is_paid", "card_id"}


@dataclass(frozen=True)
class PendingConfirmations:
    """Unpaid entries awaiting confirmation, soonest due first."""

    expenses: list[Transaction]
    incomes: list[Transaction]


@dataclass(frozen=True)
class TransactionStats:
    """Paid totals of a set of transactions.

    ``balance`` only reflects account-side movements; card charges are
    settled through invoices.
    """

    income: Decimal
    expense: Decimal
    balance: Decimal


def calculate_probable_value(history: Iterable[Decimal]) -> Optional[Decimal]:
    """Predict the next value of a recurring entry from its history.

    Applies the mean percentage variation between consecutive values to the
    last value, rounded to cents.

    Returns:
        The probable value, or None with fewer than two values
    """
    values = [Decimal(value) for value in history]
    if len(values) < 2:
        return None
    variations = [
        (current - previous) / previous * 100
        for previous, current in zip(values, values[1:])
        if previous != 0
    ]
    if not variations:
        return None
    average = sum(variations, Decimal("0")) / len(variations)
    next_value = values[-1] * (1 + average / 100)
    return next_value.quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_stats(transactions: Iterable[Transaction]) -> TransactionStats:
    """Total paid income and expense, and the resulting account-side balance."""
    income = expense = balance = Decimal("0")
    for txn in transactions:
        if not txn.is_paid:
            continue
        if txn.transaction_type == TransactionType.INCOME:
            income += txn.amount
            if not txn.is_card_charge:
                balance += txn.amount
        else:
            expense += txn.amount
            if not txn.is_card_charge:
                balance -= txn.amount
    return TransactionStats(income=income, expense=expense, balance=balance)


def split_installments(total: Decimal, count: int) -> list[Decimal]:
    """Split an amount into ``count`` cent-rounded parts summing to ``total``.

    The last part absorbs the rounding remainder.
    """
    part = (total / count).quantize(CENT, rounding=ROUND_HALF_UP)
    parts = [part] * (count - 1)
    parts.append(total - part * (count - 1))
    return parts


class TransactionService:
    """Service for recording money movements and keeping balances posted."""

    def __init__(self, db: Database, clock: Optional[Callable[[], datetime]] = None):
        """Initialize transaction service.

        Args:
            db: Database instance
            clock: Optional callable returning the current time
        """
        self.db = db
        self.clock = clock or datetime.now

    def create_transaction(
        self,
        user_id: str,
        transaction_type: TransactionType,
        amount: Decimal,
        description: str,
        category_id: str,
        account_id: str,
        date: datetime,
        is_paid: bool = False,
        notes: Optional[str] = None,
        assigned_to: Optional[str] = None,
        is_recurring: bool = False,
        recurrence_day: Optional[int] = None,
        recurrence_type: Optional[RecurrenceType] = None,
        expense_type: Optional[ExpenseType] = None,
        card_id: Optional[str] = None,
        installments: Optional[int] = None,
        due_date: Optional[datetime] = None,
        first_due_date: Optional[datetime] = None,
        down_payment_amount: Optional[Decimal] = None,
        to_account_id: Optional[str] = None,
    ) -> list[str]:
        """Create a transaction, or one record per installment.

        Card purchases made after the card's closing day move to the next
        month: fixed expenses shift their due date, others their date.
        Installment purchases are split into monthly records sharing an
        installment ID; a down payment becomes a separate paid record.

        Args:
            user_id: Namespace owner
            transaction_type: Income, expense or transfer
            amount: Positive amount
            description: Description
            category_id: Category ID
            account_id: Account the money moves from or to
            date: Transaction date
            is_paid: Whether the money already moved
            notes: Optional notes
            assigned_to: Optional family member ID
            is_recurring: Whether the entry repeats
            recurrence_day: Day of month of a recurring entry
            recurrence_type: Monthly or yearly recurrence
            expense_type: Fixed, cash or installment
            card_id: Optional credit card ID
            installments: Number of installments
            due_date: Due date of a fixed or recurring entry
            first_due_date: First installment date when no card is used
            down_payment_amount: Optional amount paid up front
            to_account_id: Destination account of a transfer

        Returns:
            IDs of the created transactions

        Raises:
            ValidationError: If the amount or transfer setup is invalid
            NotFoundError: If a referenced account or card does not exist
        """
        amount = Decimal(amount)
        if amount <= 0:
            raise ValidationError("Transaction amount must be positive")
        if self.db.get_account(user_id, account_id) is None:
            raise NotFoundError(account_not_found(account_id))
        if transaction_type == TransactionType.TRANSFER:
            if not to_account_id:
                raise ValidationError("A transfer needs a destination account")
            if to_account_id == account_id:
                raise ValidationError("Cannot transfer to the same account")
            if self.db.get_account(user_id, to_account_id) is None:
                raise NotFoundError(account_not_found(to_account_id))

        card = None
        if card_id:
            card = self.db.get_credit_card(user_id, card_id)
            if card is None:
                raise NotFoundError(card_not_found(card_id))

        now = self.clock()
        base = Transaction(
            id="",
            transaction_type=transaction_type,
            amount=amount,
            description=description,
            category_id=category_id,
            account_id=account_id,
            date=date,
            is_paid=is_paid,
            created_at=now,
            notes=notes,
            assigned_to=assigned_to,
            is_recurring=is_recurring,
            recurrence_day=recurrence_day,
            recurrence_type=recurrence_type,
            expense_type=expense_type,
            card_id=card_id or None,
            due_date=due_date,
            first_due_date=first_due_date,
            to_account_id=to_account_id,
        )

        rolled_over = card is not None and invoice_month_for(date, card.closing_day) > date.date().replace(day=1)

        if expense_type == ExpenseType.INSTALLMENT and installments and installments > 1:
            batch = self._installment_batch(user_id, base, installments, down_payment_amount, rolled_over)
        else:
            record = replace(base, id=self.db.new_id())
            if rolled_over:
                if expense_type == ExpenseType.FIXED and due_date is not None:
                    record = replace(record, due_date=shift_months(due_date, 1))
                else:
                    record = replace(record, date=shift_months(date, 1))
            batch = WriteBatch().put(record)

        created = [record.id for record in batch.records]
        stage_balance_changes(self.db, user_id, batch, net_effects(applied=batch.records))
        self.db.commit(user_id, batch)
        logger.debug("Created %d transaction record(s) for user %s", len(created), user_id)
        return created

    def _installment_batch(
        self,
        user_id: str,
        base: Transaction,
        count: int,
        down_payment: Optional[Decimal],
        rolled_over: bool,
    ) -> WriteBatch:
        purchase_date = base.date
        if base.card_id:
            first_payment = shift_months(purchase_date, 1) if rolled_over else purchase_date
        else:
            first_payment = base.first_due_date or purchase_date

        down_payment = Decimal(down_payment or 0)
        if down_payment < 0 or down_payment >= base.amount:
            raise ValidationError("Down payment must be between zero and the total amount")

        batch = WriteBatch()
        if down_payment > 0:
            batch.put(
                replace(
                    base,
                    id=self.db.new_id(),
                    amount=down_payment,
                    description=f"{base.description} - Entrada",
                    date=self.clock(),
                    is_paid=True,
                    expense_type=ExpenseType.CASH,
                    card_id=None,
                    first_due_date=None,
                )
            )

        installment_id = self.db.new_id()
        for index, part in enumerate(split_installments(base.amount - down_payment, count)):
            batch.put(
                replace(
                    base,
                    id=self.db.new_id(),
                    amount=part,
                    date=shift_months(first_payment, index),
                    is_paid=False,
                    installments=count,
                    current_installment=index + 1,
                    installment_id=installment_id,
                    purchase_date=purchase_date,
                    down_payment_amount=down_payment or None,
                )
            )
        return batch

    def get_transaction(self, user_id: str, transaction_id: str) -> Optional[Transaction]:
        return self.db.get_transaction(user_id, transaction_id)

    def require_transaction(self, user_id: str, transaction_id: str) -> Transaction:
        """Get transaction by ID or raise NotFoundError."""
        txn = self.db.get_transaction(user_id, transaction_id)
        if txn is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        return txn

    def list_transactions(
        self,
        user_id: str,
        month: Optional[int] = None,
        year: Optional[int] = None,
        account_id: Optional[str] = None,
        card_id: Optional[str] = None,
    ) -> list[Transaction]:
        """List transactions, newest first.

        Args:
            user_id: Namespace owner
            month: Optional 0-based month; only used together with ``year``
            year: Optional year
            account_id: Optional account filter
            card_id: Optional card filter
        """
        start = end = None
        if month is not None and year is not None:
            start, end = month_bounds(month, year)
        return self.db.list_transactions(user_id, start=start, end=end, account_id=account_id, card_id=card_id)

    def update_transaction(self, user_id: str, transaction_id: str, **fields) -> None:
        """Update a transaction and re-post its ledger effect.

        Raises:
            NotFoundError: If the transaction does not exist
            PreconditionFailedError: If it belongs to a paid invoice, or if
                its amount, type, card or paid flag would change while it is
                billed on an open invoice
            ValidationError: If a field cannot be edited
        """
        old = self.require_transaction(user_id, transaction_id)
        unknown = set(fields) - _EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update transaction fields: {', '.join(sorted(unknown))}")
        if "amount" in fields and Decimal(fields["amount"]) <= 0:
            raise ValidationError("Transaction amount must be positive")

        invoice = self.db.find_invoice_for_transaction(user_id, transaction_id)
        if invoice is not None and (invoice.is_paid or _BILLED_FIELDS & set(fields)):
            raise PreconditionFailedError(transaction_in_invoice(transaction_id, invoice.id))

        new = replace(old, **fields)
        batch = WriteBatch().patch(Collection.TRANSACTIONS, transaction_id, **fields)
        stage_balance_changes(self.db, user_id, batch, net_effects(applied=[new], reversed_=[old]))
        self.db.commit(user_id, batch)

    def delete_transaction(self, user_id: str, transaction_id: str) -> list[str]:
        """Delete a transaction, or its whole installment group.

        Returns:
            IDs of the deleted transactions

        Raises:
            NotFoundError: If the transaction does not exist
            ConflictError: If any affected transaction belongs to an invoice
        """
        txn = self.require_transaction(user_id, transaction_id)
        group = [txn]
        if txn.installment_id:
            group = self.db.list_transactions(user_id, installment_id=txn.installment_id)

        for member in group:
            invoice = self.db.find_invoice_for_transaction(user_id, member.id)
            if invoice is not None:
                raise ConflictError(transaction_in_invoice(member.id, invoice.id))

        batch = WriteBatch()
        for member in group:
            batch.delete(Collection.TRANSACTIONS, member.id)
        stage_balance_changes(self.db, user_id, batch, net_effects(reversed_=group))
        self.db.commit(user_id, batch)
        if len(group) > 1:
            logger.info("Deleted %d installments of group %s", len(group), txn.installment_id)
        return [member.id for member in group]

    def mark_paid(self, user_id: str, transaction_id: str) -> None:
        """Record the standalone payment of a transaction.

        Raises:
            NotFoundError: If the transaction does not exist
            PreconditionFailedError: If it is already paid, billed on an invoice
                or a card charge, which is settled by paying its invoice
        """
        txn = self.require_transaction(user_id, transaction_id)
        if txn.is_paid:
            raise PreconditionFailedError(f"Transaction {transaction_id} is already paid")
        if txn.is_card_charge:
            raise PreconditionFailedError(
                f"Transaction {transaction_id} is a card charge and is paid through its invoice"
            )
        invoice = self.db.find_invoice_for_transaction(user_id, transaction_id)
        if invoice is not None:
            raise PreconditionFailedError(transaction_in_invoice(transaction_id, invoice.id))

        batch = WriteBatch().patch(Collection.TRANSACTIONS, transaction_id, is_paid=True)
        stage_balance_changes(
            self.db, user_id, batch, net_effects(applied=[replace(txn, is_paid=True)], reversed_=[txn])
        )
        self.db.commit(user_id, batch)

    def get_pending_confirmations(self, user_id: str, today: Optional[datetime] = None) -> PendingConfirmations:
        """Find unpaid fixed entries due within the confirmation window.

        Expenses cover fixed expenses (by due date) and installments without a
        card (by date). Incomes cover recurring incomes (by due date). Overdue
        entries are included.
        """
        today = today or self.clock()
        limit = end_of_day((today + timedelta(days=CONFIRMATION_WINDOW_DAYS)).date())
        unpaid = self.db.list_transactions(user_id, unpaid_only=True)

        expenses = []
        incomes = []
        for txn in unpaid:
            if txn.transaction_type == TransactionType.EXPENSE:
                if txn.expense_type == ExpenseType.FIXED and txn.due_date is not None:
                    if txn.due_date <= limit:
                        expenses.append(txn)
                elif txn.expense_type == ExpenseType.INSTALLMENT and not txn.is_card_charge:
                    if txn.date <= limit:
                        expenses.append(txn)
            elif txn.transaction_type == TransactionType.INCOME and txn.is_recurring and txn.due_date is not None:
                if txn.due_date <= limit:
                    incomes.append(txn)

        expenses.sort(key=lambda t: t.due_date or t.date)
        incomes.sort(key=lambda t: t.due_date)
        return PendingConfirmations(expenses=expenses, incomes=incomes)

    def confirm_transaction(
        self,
        user_id: str,
        transaction_id: str,
        confirmed_amount: Decimal,
        update_future_values: bool = False,
    ) -> Optional[str]:
        """Confirm a pending entry with the amount actually paid or received.

        Recurring and fixed entries get their next monthly occurrence, valued
        at the confirmed amount or at the probable value from history.

        Returns:
            ID of the next occurrence, if one was created

        Raises:
            NotFoundError: If the transaction does not exist
            PreconditionFailedError: If it is already paid
            ValidationError: If the amount is not positive
        """
        confirmed_amount = Decimal(confirmed_amount)
        if confirmed_amount <= 0:
            raise ValidationError("Confirmed amount must be positive")
        txn = self.require_transaction(user_id, transaction_id)
        if txn.is_paid:
            raise PreconditionFailedError(f"Transaction {transaction_id} is already paid")

        history = (txn.value_history + (confirmed_amount,))[-VALUE_HISTORY_SIZE:]
        confirmed = replace(txn, is_paid=True, amount=confirmed_amount, value_history=history)
        batch = WriteBatch().patch(
            Collection.TRANSACTIONS,
            transaction_id,
            is_paid=True,
            amount=confirmed_amount,
            value_history=history,
        )

        next_id = None
        if txn.is_recurring or txn.expense_type == ExpenseType.FIXED:
            if update_future_values:
                next_amount = confirmed_amount
            else:
                probable = calculate_probable_value(history)
                next_amount = probable if probable is not None else confirmed_amount
            next_occurrence = replace(
                confirmed,
                id=self.db.new_id(),
                date=shift_months(txn.date, 1),
                due_date=shift_months(txn.due_date, 1) if txn.due_date else None,
                is_paid=False,
                amount=next_amount,
                created_at=self.clock(),
            )
            batch.put(next_occurrence)
            next_id = next_occurrence.id

        stage_balance_changes(self.db, user_id, batch, net_effects(applied=[confirmed], reversed_=[txn]))
        self.db.commit(user_id, batch)
        return next_id
