"""Abstract database interface.

The interface mirrors the primitives of a per-user document store: point
reads, collection reads, whole-record writes, field patches, removals and an
atomic multi-record commit. Services receive an instance explicitly.
"""

import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Optional

# Import entities directly to avoid circular import through domain/__init__.py
from famfin.domain.entities import (
    Account,
    Category,
    Collection,
    CreditCard,
    FamilyMember,
    Goal,
    Invoice,
    Patch,
    Transaction,
    WriteBatch,
)


class Database(ABC):
    """Abstract database interface for famfin."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    def new_id(self) -> str:
        """Issue a new opaque record id."""
        return uuid.uuid4().hex

    # Writes
    @abstractmethod
    def commit(self, user_id: str, batch: WriteBatch) -> None:
        """Apply every write in the batch atomically.

        Raises:
            NotFoundError: If a patched or deleted record does not exist
            ConflictError: If a uniqueness constraint would be violated
            StorageError: If the underlying store fails
        """
        pass

    def put(self, user_id: str, entity: Any) -> None:
        """Insert or replace a whole record."""
        self.commit(user_id, WriteBatch().put(entity))

    def patch(self, user_id: str, patch: Patch) -> None:
        """Update the named fields of one record."""
        self.commit(user_id, WriteBatch(patches=[patch]))

    def delete(self, user_id: str, collection: Collection, record_id: str) -> None:
        """Remove a record."""
        self.commit(user_id, WriteBatch().delete(collection, record_id))

    # Account operations
    @abstractmethod
    def get_account(self, user_id: str, account_id: str) -> Optional[Account]:
        """Get account by ID."""
        pass

    @abstractmethod
    def list_accounts(self, user_id: str) -> list[Account]:
        """List all accounts ordered by name."""
        pass

    # Category operations
    @abstractmethod
    def get_category(self, user_id: str, category_id: str) -> Optional[Category]:
        """Get category by ID."""
        pass

    @abstractmethod
    def list_categories(self, user_id: str) -> list[Category]:
        """List all categories ordered by name."""
        pass

    # Credit card operations
    @abstractmethod
    def get_credit_card(self, user_id: str, card_id: str) -> Optional[CreditCard]:
        """Get credit card by ID."""
        pass

    @abstractmethod
    def list_credit_cards(self, user_id: str, active_only: bool = False) -> list[CreditCard]:
        """List credit cards, optionally only the active ones."""
        pass

    # Transaction operations
    @abstractmethod
    def get_transaction(self, user_id: str, transaction_id: str) -> Optional[Transaction]:
        """Get transaction by ID."""
        pass

    @abstractmethod
    def list_transactions(
        self,
        user_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        account_id: Optional[str] = None,
        card_id: Optional[str] = None,
        installment_id: Optional[str] = None,
        unpaid_only: bool = False,
    ) -> list[Transaction]:
        """List transactions with optional filters, newest first.

        Args:
            user_id: Namespace owner
            start: Optional inclusive lower bound on ``date``
            end: Optional inclusive upper bound on ``date``
            account_id: Optional account filter
            card_id: Optional credit card filter
            installment_id: Optional installment group filter
            unpaid_only: If True, only return transactions with ``is_paid`` false
        """
        pass

    # Invoice operations
    @abstractmethod
    def get_invoice(self, user_id: str, invoice_id: str) -> Optional[Invoice]:
        """Get invoice by ID."""
        pass

    @abstractmethod
    def list_invoices(self, user_id: str, card_id: Optional[str] = None) -> list[Invoice]:
        """List invoices, optionally for one card, most recent due date first."""
        pass

    @abstractmethod
    def find_invoice_for_transaction(self, user_id: str, transaction_id: str) -> Optional[Invoice]:
        """Get the invoice whose members include the transaction, if any."""
        pass

    # Goal operations
    @abstractmethod
    def get_goal(self, user_id: str, goal_id: str) -> Optional[Goal]:
        """Get goal by ID."""
        pass

    @abstractmethod
    def list_goals(self, user_id: str) -> list[Goal]:
        """List goals, newest first."""
        pass

    # Family operations
    @abstractmethod
    def list_family_members(self, user_id: str) -> list[FamilyMember]:
        """List family members ordered by name."""
        pass
