"""Account domain service."""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional

from famfin.database.base import Database
from famfin.domain.entities import Account, AccountType, Collection, WriteBatch
from famfin.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    account_not_found,
)
from famfin.domain.goal import GoalService
from famfin.domain.ledger import replay_balance

logger = logging.getLogger(__name__)

DEFAULT_ACCOUNT_NAME = "Carteira Principal"

_EDITABLE_FIELDS = {"name", "account_type", "initial_balance", "color", "icon", "include_in_total"}


class AccountService:
    """Service for managing accounts and their balances."""

    def __init__(self, db: Database, clock: Optional[Callable[[], datetime]] = None):
        """Initialize account service.

        Args:
            db: Database instance
            clock: Optional callable returning the current time
        """
        self.db = db
        self.clock = clock or datetime.now

    def create_account(
        self,
        user_id: str,
        name: str,
        account_type: AccountType = AccountType.BANK,
        initial_balance: Decimal = Decimal("0"),
        color: str = "#14b8a6",
        icon: str = "Wallet",
        include_in_total: bool = True,
    ) -> str:
        """Create a new account.

        The current balance starts at the initial balance.

        Args:
            user_id: Namespace owner
            name: Account name
            account_type: Kind of account
            initial_balance: Opening balance
            color: Display color
            icon: Icon identifier
            include_in_total: Whether the account counts towards the total balance

        Returns:
            Account ID

        Raises:
            ValidationError: If the name is empty or already used
        """
        name = name.strip()
        if not name:
            raise ValidationError("Account name must not be empty")
        for acc in self.db.list_accounts(user_id):
            if acc.name == name:
                raise ValidationError(f"Account with name '{name}' already exists")

        account = Account(
            id=self.db.new_id(),
            name=name,
            account_type=account_type,
            initial_balance=Decimal(initial_balance),
            current_balance=Decimal(initial_balance),
            created_at=self.clock(),
            color=color,
            icon=icon,
            include_in_total=include_in_total,
        )
        self.db.put(user_id, account)
        return account.id

    def get_account(self, user_id: str, account_id: str) -> Optional[Account]:
        """Get account by ID.

        Returns:
            Account entity or None if not found
        """
        return self.db.get_account(user_id, account_id)

    def require_account(self, user_id: str, account_id: str) -> Account:
        """Get account by ID or raise NotFoundError."""
        account = self.db.get_account(user_id, account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        return account

    def list_accounts(self, user_id: str, active_only: bool = False) -> list[Account]:
        accounts = self.db.list_accounts(user_id)
        if active_only:
            accounts = [acc for acc in accounts if acc.is_active]
        return accounts

    def update_account(self, user_id: str, account_id: str, **fields) -> None:
        """Update editable account fields.

        Changing the initial balance shifts the current balance by the same
        difference.

        Raises:
            NotFoundError: If the account does not exist
            ValidationError: If a field cannot be edited or the name is taken
        """
        account = self.require_account(user_id, account_id)
        unknown = set(fields) - _EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update account fields: {', '.join(sorted(unknown))}")

        if "name" in fields:
            name = fields["name"].strip()
            if not name:
                raise ValidationError("Account name must not be empty")
            for acc in self.db.list_accounts(user_id):
                if acc.id != account_id and acc.name == name:
                    raise ValidationError(f"Account with name '{name}' already exists")
            fields["name"] = name

        if "initial_balance" in fields:
            new_initial = Decimal(fields["initial_balance"])
            fields["initial_balance"] = new_initial
            fields["current_balance"] = account.current_balance + (new_initial - account.initial_balance)

        self.db.commit(user_id, WriteBatch().patch(Collection.ACCOUNTS, account_id, **fields))

    def activate(self, user_id: str, account_id: str) -> None:
        self.require_account(user_id, account_id)
        self.db.commit(user_id, WriteBatch().patch(Collection.ACCOUNTS, account_id, is_active=True))

    def deactivate(self, user_id: str, account_id: str) -> None:
        self.require_account(user_id, account_id)
        self.db.commit(user_id, WriteBatch().patch(Collection.ACCOUNTS, account_id, is_active=False))

    def delete_account(self, user_id: str, account_id: str) -> None:
        """Delete an account that no transaction references.

        Raises:
            NotFoundError: If the account does not exist
            ConflictError: If transactions still reference the account
        """
        self.require_account(user_id, account_id)
        referencing = [
            txn
            for txn in self.db.list_transactions(user_id)
            if txn.account_id == account_id or txn.to_account_id == account_id
        ]
        if referencing:
            raise ConflictError(
                f"Cannot delete account {account_id}: {len(referencing)} transaction(s) reference it"
            )
        self.db.delete(user_id, Collection.ACCOUNTS, account_id)

    def adjust_balance(self, user_id: str, account_id: str, amount: Decimal, operation: str) -> Decimal:
        """Add to or subtract from an account's current balance.

        Args:
            user_id: Namespace owner
            account_id: Account to adjust
            amount: Amount to apply
            operation: Either ``"add"`` or ``"subtract"``

        Returns:
            The new current balance

        Raises:
            NotFoundError: If the account does not exist
            ValidationError: If the operation is unknown
        """
        if operation not in ("add", "subtract"):
            raise ValidationError(f"Unknown balance operation '{operation}'")
        account = self.require_account(user_id, account_id)
        delta = Decimal(amount) if operation == "add" else -Decimal(amount)
        new_balance = account.current_balance + delta
        self.db.commit(
            user_id, WriteBatch().patch(Collection.ACCOUNTS, account_id, current_balance=new_balance)
        )
        return new_balance

    def total_balance(self, user_id: str) -> Decimal:
        """Sum current balances of active accounts included in the total."""
        return sum(
            (acc.current_balance for acc in self.db.list_accounts(user_id) if acc.include_in_total and acc.is_active),
            Decimal("0"),
        )

    def recalculate_balance(self, user_id: str, account_id: str) -> Decimal:
        """Rebuild an account's current balance from its posted transactions.

        Returns:
            The recalculated balance

        Raises:
            NotFoundError: If the account does not exist
        """
        account = self.require_account(user_id, account_id)
        transactions = self.db.list_transactions(user_id)
        balance = replay_balance(account.initial_balance, account_id, transactions)
        if balance != account.current_balance:
            logger.info(
                "Recalculated balance of account %s: %s -> %s",
                account_id,
                account.current_balance,
                balance,
            )
        self.db.commit(user_id, WriteBatch().patch(Collection.ACCOUNTS, account_id, current_balance=balance))
        return balance

    def recalculate_all_balances(self, user_id: str) -> dict[str, Decimal]:
        """Recalculate every account's balance.

        Returns:
            Mapping of account ID to recalculated balance
        """
        balances = {
            account.id: self.recalculate_balance(user_id, account.id)
            for account in self.db.list_accounts(user_id)
        }
        logger.info("Recalculated %d account balances", len(balances))
        return balances

    def transfer_to_goal(self, user_id: str, account_id: str, goal_id: str, amount: Decimal) -> str:
        """Move money from an account into a goal.

        Returns:
            ID of the expense transaction recorded against the account
        """
        return GoalService(self.db, self.clock).add_contribution_from_account(user_id, goal_id, account_id, amount)

    def withdraw_from_goal(self, user_id: str, account_id: str, goal_id: str, amount: Decimal) -> str:
        """Move money from a goal back into an account.

        Returns:
            ID of the income transaction recorded against the account
        """
        return GoalService(self.db, self.clock).withdraw(user_id, goal_id, account_id, amount)

    def seed_default_account(self, user_id: str) -> Optional[str]:
        """Create the default wallet account if the user has no accounts.

        Returns:
            Account ID, or None if accounts already exist
        """
        if self.db.list_accounts(user_id):
            return None
        return self.create_account(user_id, DEFAULT_ACCOUNT_NAME, account_type=AccountType.CASH)
