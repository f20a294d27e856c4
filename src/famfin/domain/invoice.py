"""Credit card invoice domain service.

Invoices snapshot a card's unpaid charges at generation time and are settled
by a single payment transaction against an account.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Optional

from dateutil.relativedelta import relativedelta

from famfin.database.base import Database
from famfin.domain import billing_cycle
from famfin.domain.entities import (
    Collection,
    CreditCard,
    ExpenseType,
    Invoice,
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
    duplicate_invoice,
    insufficient_balance,
    invoice_already_paid,
    invoice_not_found,
    no_pending_transactions,
    paid_invoice_delete_blocked,
)
from famfin.domain.ledger import net_effects, stage_balance_changes

logger = logging.getLogger(__name__)

PAYMENT_CATEGORY = "default-expense"

MONTH_NAMES = (
    "janeiro",
    "fevereiro",
    "março",
    "abril",
    "maio",
    "junho",
    "julho",
    "agosto",
    "setembro",
    "outubro",
    "novembro",
    "dezembro",
)


@dataclass(frozen=True)
class InvoiceDetails:
    """An invoice with its card and the member transactions still on record."""

    invoice: Invoice
    transactions: list[Transaction]
    card: CreditCard


def invoice_label(invoice: Invoice) -> str:
    """Human readable billing period, e.g. ``março de 2024``."""
    return f"{MONTH_NAMES[invoice.month]} de {invoice.year}"


class InvoiceService:
    """Service for generating, settling and inspecting card invoices."""

    def __init__(self, db: Database, clock: Optional[Callable[[], datetime]] = None):
        """Initialize invoice service.

        Args:
            db: Database instance
            clock: Optional callable returning the current time
        """
        self.db = db
        self.clock = clock or datetime.now

    def _require_card(self, user_id: str, card_id: str) -> CreditCard:
        card = self.db.get_credit_card(user_id, card_id)
        if card is None:
            raise NotFoundError(card_not_found(card_id))
        return card

    def _find_period(self, user_id: str, card_id: str, month: int, year: int) -> Optional[Invoice]:
        for invoice in self.db.list_invoices(user_id, card_id=card_id):
            if invoice.month == month and invoice.year == year:
                return invoice
        return None

    def generate_invoice(self, user_id: str, card_id: str, month: int, year: int) -> str:
        """Bill every pending charge of a card on a new invoice.

        All unpaid charges of the card are included regardless of their date,
        except those already listed on another invoice.

        Args:
            user_id: Namespace owner
            card_id: Card to bill
            month: 0-based invoice month
            year: Invoice year

        Returns:
            Invoice ID

        Raises:
            ValidationError: If the month is outside 0..11
            NotFoundError: If the card does not exist
            ConflictError: If the card already has an invoice for the period
            PreconditionFailedError: If the card has no pending charges
        """
        if not 0 <= month <= 11:
            raise ValidationError(f"Invalid invoice month {month}: must be between 0 and 11")
        card = self._require_card(user_id, card_id)
        if self._find_period(user_id, card_id, month, year) is not None:
            raise ConflictError(duplicate_invoice(card_id, month, year))

        invoice_month = date(year, month + 1, 1)
        closing_date = billing_cycle.closing_date_for(invoice_month, card.closing_day)
        due_date = billing_cycle.due_date_for(invoice_month, card.due_day, card.closing_day)

        pending = [
            txn
            for txn in self.db.list_transactions(user_id, card_id=card_id, unpaid_only=True)
            if self.db.find_invoice_for_transaction(user_id, txn.id) is None
        ]
        if not pending:
            raise PreconditionFailedError(no_pending_transactions(card_id))
        pending.sort(key=lambda txn: (txn.date, txn.id))

        invoice = Invoice(
            id=self.db.new_id(),
            card_id=card_id,
            month=month,
            year=year,
            closing_date=closing_date,
            due_date=due_date,
            total_amount=sum((txn.amount for txn in pending), Decimal("0")),
            is_paid=False,
            transaction_ids=tuple(txn.id for txn in pending),
            created_at=self.clock(),
        )
        self.db.put(user_id, invoice)
        logger.info(
            "Generated invoice %s for card %s (%s): %d charges, total %s",
            invoice.id,
            card_id,
            invoice_label(invoice),
            len(pending),
            invoice.total_amount,
        )
        return invoice.id

    def get_invoice(self, user_id: str, invoice_id: str) -> Optional[Invoice]:
        return self.db.get_invoice(user_id, invoice_id)

    def require_invoice(self, user_id: str, invoice_id: str) -> Invoice:
        """Get invoice by ID or raise NotFoundError."""
        invoice = self.db.get_invoice(user_id, invoice_id)
        if invoice is None:
            raise NotFoundError(invoice_not_found(invoice_id))
        return invoice

    def list_invoices(self, user_id: str, card_id: Optional[str] = None) -> list[Invoice]:
        """List invoices, most recent due date first."""
        return self.db.list_invoices(user_id, card_id=card_id)

    def get_invoice_details(self, user_id: str, invoice_id: str) -> InvoiceDetails:
        """Load an invoice with its card and member transactions.

        Member transactions that no longer exist are skipped.

        Raises:
            NotFoundError: If the invoice or its card does not exist
        """
        invoice = self.require_invoice(user_id, invoice_id)
        card = self._require_card(user_id, invoice.card_id)
        transactions = []
        for transaction_id in invoice.transaction_ids:
            txn = self.db.get_transaction(user_id, transaction_id)
            if txn is not None:
                transactions.append(txn)
        return InvoiceDetails(invoice=invoice, transactions=transactions, card=card)

    def pay_invoice(
        self,
        user_id: str,
        invoice_id: str,
        account_id: str,
        payment_date: Optional[datetime] = None,
    ) -> str:
        """Settle an invoice from an account.

        Records one paid settlement expense for the invoice total, flags every
        member charge as paid and stores the settlement fields on the invoice,
        all in a single atomic write. The settlement is the only debit applied
        to the account; member charges carry a card and never post.

        Returns:
            ID of the settlement transaction

        Raises:
            NotFoundError: If the invoice, its card or the account does not exist
            PreconditionFailedError: If the invoice is already paid or the
                account balance is below the invoice total
        """
        details = self.get_invoice_details(user_id, invoice_id)
        invoice = details.invoice
        if invoice.is_paid:
            raise PreconditionFailedError(invoice_already_paid(invoice_id))

        account = self.db.get_account(user_id, account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        if account.current_balance < invoice.total_amount:
            raise PreconditionFailedError(insufficient_balance(account.name))

        paid_at = payment_date or self.clock()
        settlement = Transaction(
            id=self.db.new_id(),
            transaction_type=TransactionType.EXPENSE,
            amount=invoice.total_amount,
            description=f"Pagamento Fatura {details.card.display_name} - {invoice_label(invoice)}",
            category_id=PAYMENT_CATEGORY,
            account_id=account_id,
            date=paid_at,
            is_paid=True,
            created_at=self.clock(),
            expense_type=ExpenseType.CASH,
        )

        batch = WriteBatch().put(settlement)
        stage_balance_changes(self.db, user_id, batch, net_effects(applied=[settlement]))
        for txn in details.transactions:
            batch.patch(Collection.TRANSACTIONS, txn.id, is_paid=True)
        batch.patch(
            Collection.INVOICES,
            invoice_id,
            is_paid=True,
            paid_date=paid_at,
            paid_from_account_id=account_id,
            payment_transaction_id=settlement.id,
        )
        self.db.commit(user_id, batch)
        logger.info(
            "Paid invoice %s (%s) from account %s with transaction %s",
            invoice_id,
            invoice.total_amount,
            account_id,
            settlement.id,
        )
        return settlement.id

    def delete_invoice(self, user_id: str, invoice_id: str) -> None:
        """Delete an unpaid invoice, releasing its charges for a later invoice.

        Raises:
            NotFoundError: If the invoice does not exist
            PreconditionFailedError: If the invoice is already paid
        """
        invoice = self.require_invoice(user_id, invoice_id)
        if invoice.is_paid:
            raise PreconditionFailedError(paid_invoice_delete_blocked(invoice_id))
        self.db.delete(user_id, Collection.INVOICES, invoice_id)
        logger.info("Deleted invoice %s", invoice_id)

    def get_current_invoice(self, user_id: str, card_id: str, today: Optional[date] = None) -> Optional[Invoice]:
        """Get the card's invoice for the current calendar month, if any."""
        today = today or self.clock()
        return self._find_period(user_id, card_id, today.month - 1, today.year)

    def get_upcoming_invoice(self, user_id: str, card_id: str, today: Optional[date] = None) -> Optional[Invoice]:
        """Get the card's invoice for the next calendar month, if any."""
        today = today or self.clock()
        next_month = today.replace(day=1) + relativedelta(months=1)
        return self._find_period(user_id, card_id, next_month.month - 1, next_month.year)

    def auto_generate_invoices(self, user_id: str, today: Optional[date] = None) -> list[str]:
        """Generate this month's invoice for every active card past its closing day.

        Cards with nothing to bill are skipped quietly. Any other per-card
        failure is logged and does not stop the remaining cards.

        Returns:
            IDs of the invoices created
        """
        today = today or self.clock()
        month, year = today.month - 1, today.year
        created = []
        for card in self.db.list_credit_cards(user_id, active_only=True):
            closing = billing_cycle.clamp_day(today.year, today.month, card.closing_day)
            if today.day <= closing.day:
                continue
            if self._find_period(user_id, card.id, month, year) is not None:
                continue
            try:
                created.append(self.generate_invoice(user_id, card.id, month, year))
            except PreconditionFailedError:
                logger.debug("No pending charges for card %s", card.display_name)
            except Exception:
                logger.exception("Failed to generate invoice for card %s", card.display_name)
        return created
