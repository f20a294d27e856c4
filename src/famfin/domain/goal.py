"""Savings goal domain service."""

import logging
import math
from dataclasses import replace
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, Optional

from famfin.database.base import Database
from famfin.domain.entities import (
    Collection,
    Contribution,
    Goal,
    GoalCategory,
    GoalStatus,
    Transaction,
    TransactionType,
    WriteBatch,
)
from famfin.domain.errors import (
    NotFoundError,
    PreconditionFailedError,
    ValidationError,
    account_not_found,
    goal_not_found,
    insufficient_balance,
)
from famfin.domain.ledger import net_effects, stage_balance_changes

logger = logging.getLogger(__name__)

# Category ids of the ledger postings that move money into and out of a goal.
RESERVE_DEPOSIT_CATEGORY = "reserva-emergencia"
RESERVE_WITHDRAWAL_CATEGORY = "saque-reserva"

_DAY_MS = 24 * 60 * 60 * 1000
_EDITABLE_FIELDS = {
    "name",
    "description",
    "category",
    "target_amount",
    "deadline",
    "icon",
    "color",
    "is_emergency_fund",
    "bank_name",
    "account_info",
}


def settled_status(goal: Goal, new_amount: Decimal, now: datetime) -> tuple[GoalStatus, Optional[datetime]]:
    """Return the status and completion instant a goal has at ``new_amount``.

    Cancelled goals stay cancelled. Otherwise a goal is completed while the
    amount reaches the target and active below it.
    """
    if goal.status == GoalStatus.CANCELLED:
        return goal.status, goal.completed_at
    if new_amount >= goal.target_amount:
        return GoalStatus.COMPLETED, goal.completed_at or now
    return GoalStatus.ACTIVE, None


def calculate_progress(goal: Goal) -> float:
    """Percentage of the target reached, capped at 100."""
    if goal.target_amount == 0:
        return 0.0
    return min(100.0, float(goal.current_amount / goal.target_amount * 100))


def calculate_remaining(goal: Goal) -> Decimal:
    return max(Decimal("0"), goal.target_amount - goal.current_amount)


def calculate_days_remaining(goal: Goal, now: datetime) -> int:
    """Whole days until the deadline, rounded up. Negative once overdue."""
    diff_ms = (goal.deadline - now) / timedelta(milliseconds=1)
    return math.ceil(diff_ms / _DAY_MS)


def calculate_monthly_contribution(goal: Goal, now: datetime) -> Decimal:
    """Monthly deposit needed to reach the target by the deadline."""
    remaining = calculate_remaining(goal)
    days_remaining = calculate_days_remaining(goal, now)
    if days_remaining <= 0:
        return remaining
    months_remaining = max(Decimal("1"), Decimal(days_remaining) / 30)
    return (remaining / months_remaining).quantize(Decimal("0.01"))


def estimate_completion_date(goal: Goal, now: datetime) -> Optional[datetime]:
    """Project when the goal completes at its average monthly deposit rate.

    Returns:
        Estimated completion instant, or None without contribution history
    """
    if not goal.contributions:
        return None
    if goal.current_amount >= goal.target_amount:
        return goal.completed_at or now

    span = goal.contributions[-1].date - goal.contributions[0].date
    months_span = max(1.0, span / timedelta(days=30))
    average_monthly = float(goal.current_amount) / months_span
    if average_monthly <= 0:
        return None
    months_to_complete = float(calculate_remaining(goal)) / average_monthly
    return now + timedelta(days=30 * months_to_complete)


class GoalService:
    """Service for managing savings goals and their contributions."""

    def __init__(self, db: Database, clock: Optional[Callable[[], datetime]] = None):
        """Initialize goal service.

        Args:
            db: Database instance
            clock: Optional callable returning the current time
        """
        self.db = db
        self.clock = clock or datetime.now

    def create_goal(
        self,
        user_id: str,
        name: str,
        target_amount: Decimal,
        deadline: datetime,
        category: GoalCategory = GoalCategory.OTHER,
        description: Optional[str] = None,
        icon: Optional[str] = None,
        color: Optional[str] = None,
        is_emergency_fund: bool = False,
    ) -> str:
        """Create a new active goal with no contributions.

        Returns:
            Goal ID

        Raises:
            ValidationError: If the name is empty or the target is negative
        """
        if not name.strip():
            raise ValidationError("Goal name must not be empty")
        if target_amount < 0:
            raise ValidationError("Goal target must not be negative")

        now = self.clock()
        goal = Goal(
            id=self.db.new_id(),
            name=name.strip(),
            category=category,
            target_amount=Decimal(target_amount),
            current_amount=Decimal("0"),
            deadline=deadline,
            status=GoalStatus.ACTIVE,
            created_at=now,
            updated_at=now,
            description=description,
            icon=icon,
            color=color,
            is_emergency_fund=is_emergency_fund,
        )
        self.db.put(user_id, goal)
        logger.info("Created goal %s (%s)", goal.id, goal.name)
        return goal.id

    def get_goal(self, user_id: str, goal_id: str) -> Optional[Goal]:
        return self.db.get_goal(user_id, goal_id)

    def require_goal(self, user_id: str, goal_id: str) -> Goal:
        """Get a goal or raise NotFoundError."""
        goal = self.db.get_goal(user_id, goal_id)
        if goal is None:
            raise NotFoundError(goal_not_found(goal_id))
        return goal

    def list_goals(self, user_id: str) -> list[Goal]:
        """List all goals, newest first."""
        return self.db.list_goals(user_id)

    def list_active_goals(self, user_id: str) -> list[Goal]:
        return [goal for goal in self.db.list_goals(user_id) if goal.status == GoalStatus.ACTIVE]

    def update_goal(self, user_id: str, goal_id: str, **fields) -> None:
        """Update editable goal fields.

        Raises:
            NotFoundError: If the goal does not exist
            ValidationError: If a field cannot be edited this way
        """
        self.require_goal(user_id, goal_id)
        unknown = set(fields) - _EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update goal fields: {', '.join(sorted(unknown))}")
        batch = WriteBatch().patch(Collection.GOALS, goal_id, **fields, updated_at=self.clock())
        self.db.commit(user_id, batch)

    def stage_contribution(
        self,
        batch: WriteBatch,
        goal: Goal,
        amount: Decimal,
        note: Optional[str] = None,
    ) -> Contribution:
        """Add a contribution of ``amount`` (negative to withdraw) to a batch."""
        now = self.clock()
        contribution = Contribution(id=self.db.new_id(), amount=Decimal(amount), date=now, note=note)
        new_amount = goal.current_amount + contribution.amount
        status, completed_at = settled_status(goal, new_amount, now)
        batch.patch(
            Collection.GOALS,
            goal.id,
            current_amount=new_amount,
            contributions=goal.contributions + (contribution,),
            status=status,
            completed_at=completed_at,
            updated_at=now,
        )
        return contribution

    def add_contribution(self, user_id: str, goal_id: str, amount: Decimal, note: Optional[str] = None) -> str:
        """Record a deposit into a goal without touching any account.

        Returns:
            Contribution ID

        Raises:
            NotFoundError: If the goal does not exist
            ValidationError: If the amount is not positive
        """
        if amount <= 0:
            raise ValidationError("Contribution amount must be positive")
        goal = self.require_goal(user_id, goal_id)
        batch = WriteBatch()
        contribution = self.stage_contribution(batch, goal, amount, note)
        self.db.commit(user_id, batch)
        return contribution.id

    def add_contribution_from_account(
        self,
        user_id: str,
        goal_id: str,
        account_id: str,
        amount: Decimal,
        note: Optional[str] = None,
    ) -> str:
        """Move money from an account into a goal.

        Records a paid expense against the account and a contribution on the
        goal in one atomic write.

        Returns:
            ID of the ledger transaction

        Raises:
            NotFoundError: If the goal or account does not exist
            PreconditionFailedError: If the account balance is below ``amount``
            ValidationError: If the amount is not positive
        """
        if amount <= 0:
            raise ValidationError("Transfer amount must be positive")
        goal = self.require_goal(user_id, goal_id)
        account = self.db.get_account(user_id, account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        if account.current_balance < amount:
            raise PreconditionFailedError(insufficient_balance(account.name))

        now = self.clock()
        transaction = Transaction(
            id=self.db.new_id(),
            transaction_type=TransactionType.EXPENSE,
            amount=Decimal(amount),
            description=f"Transferência para {goal.name or 'Reserva de Emergência'}",
            category_id=RESERVE_DEPOSIT_CATEGORY,
            account_id=account_id,
            date=now,
            is_paid=True,
            created_at=now,
            notes=note or "Contribuição para reserva de emergência",
        )
        batch = WriteBatch().put(transaction)
        stage_balance_changes(self.db, user_id, batch, net_effects(applied=[transaction]))
        self.stage_contribution(batch, goal, amount, f"Transferência de {account.name}")
        self.db.commit(user_id, batch)
        logger.info("Transferred %s from account %s to goal %s", amount, account_id, goal_id)
        return transaction.id

    def withdraw(self, user_id: str, goal_id: str, account_id: str, amount: Decimal) -> str:
        """Move money from a goal back into an account.

        Returns:
            ID of the ledger transaction

        Raises:
            NotFoundError: If the goal or account does not exist
            PreconditionFailedError: If the goal holds less than ``amount``
            ValidationError: If the amount is not positive
        """
        if amount <= 0:
            raise ValidationError("Withdrawal amount must be positive")
        goal = self.require_goal(user_id, goal_id)
        account = self.db.get_account(user_id, account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        if goal.current_amount < amount:
            raise PreconditionFailedError(f"Insufficient funds in goal '{goal.name}'")

        now = self.clock()
        transaction = Transaction(
            id=self.db.new_id(),
            transaction_type=TransactionType.INCOME,
            amount=Decimal(amount),
            description=f"Saque de {goal.name or 'Reserva de Emergência'}",
            category_id=RESERVE_WITHDRAWAL_CATEGORY,
            account_id=account_id,
            date=now,
            is_paid=True,
            created_at=now,
            notes="Saque da reserva de emergência",
        )
        batch = WriteBatch().put(transaction)
        stage_balance_changes(self.db, user_id, batch, net_effects(applied=[transaction]))
        self.stage_contribution(batch, goal, -Decimal(amount), f"Saque para {account.name}")
        self.db.commit(user_id, batch)
        logger.info("Withdrew %s from goal %s to account %s", amount, goal_id, account_id)
        return transaction.id

    def remove_contribution(self, user_id: str, goal_id: str, contribution_id: str) -> None:
        """Delete one contribution entry and take its amount back out.

        Raises:
            NotFoundError: If the goal or contribution does not exist
        """
        goal = self.require_goal(user_id, goal_id)
        removed = next((c for c in goal.contributions if c.id == contribution_id), None)
        if removed is None:
            raise NotFoundError(f"Contribution {contribution_id} not found")

        now = self.clock()
        new_amount = goal.current_amount - removed.amount
        status, completed_at = settled_status(goal, new_amount, now)
        batch = WriteBatch().patch(
            Collection.GOALS,
            goal_id,
            current_amount=max(Decimal("0"), new_amount),
            contributions=tuple(c for c in goal.contributions if c.id != contribution_id),
            status=status,
            completed_at=completed_at,
            updated_at=now,
        )
        self.db.commit(user_id, batch)

    def cancel(self, user_id: str, goal_id: str) -> None:
        self.require_goal(user_id, goal_id)
        self.db.commit(
            user_id,
            WriteBatch().patch(Collection.GOALS, goal_id, status=GoalStatus.CANCELLED, updated_at=self.clock()),
        )

    def reactivate(self, user_id: str, goal_id: str) -> None:
        """Reopen a cancelled goal as active, or completed if already funded."""
        goal = self.require_goal(user_id, goal_id)
        status, completed_at = settled_status(
            replace(goal, status=GoalStatus.ACTIVE), goal.current_amount, self.clock()
        )
        self.db.commit(
            user_id,
            WriteBatch().patch(
                Collection.GOALS,
                goal_id,
                status=status,
                completed_at=completed_at,
                updated_at=self.clock(),
            ),
        )

    def delete_goal(self, user_id: str, goal_id: str) -> None:
        self.require_goal(user_id, goal_id)
        self.db.delete(user_id, Collection.GOALS, goal_id)
