"""Emergency fund advisor.

Sizes a safety reserve at six months of average spending and tracks it
through a savings goal.
"""

import logging
import math
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Callable, Optional

from dateutil.relativedelta import relativedelta

from famfin.database.base import Database
from famfin.domain.entities import Collection, Goal, GoalCategory, GoalStatus, TransactionType, WriteBatch
from famfin.domain.errors import NotFoundError
from famfin.domain.goal import RESERVE_DEPOSIT_CATEGORY, GoalService

logger = logging.getLogger(__name__)

TARGET_MONTHS = 6
HISTORY_MONTHS = 3
DRIFT_THRESHOLD_PERCENT = 10
GOAL_NAME = "Reserva de Emergência"
_NAME_MARKERS = ("emergência", "reserva")


class ReserveLevel(str, Enum):
    NONE = "none"
    BUILDING = "building"
    ADEQUATE = "adequate"
    EXCELLENT = "excellent"


@dataclass(frozen=True)
class EmergencyFundStatus:
    """Snapshot of the reserve against its recommended size."""

    has_goal: bool
    current_amount: Decimal
    target_amount: Decimal
    monthly_expenses: Decimal
    progress: float
    months_covered: float
    suggested_contribution: Decimal
    level: ReserveLevel
    goal: Optional[Goal] = None


def reserve_level(months_covered: float) -> ReserveLevel:
    if months_covered >= 6:
        return ReserveLevel.EXCELLENT
    if months_covered >= 3:
        return ReserveLevel.ADEQUATE
    if months_covered > 0:
        return ReserveLevel.BUILDING
    return ReserveLevel.NONE


def is_emergency_goal(goal: Goal) -> bool:
    """Whether a goal is the active emergency reserve."""
    if goal.status != GoalStatus.ACTIVE:
        return False
    name = goal.name.lower()
    return (
        goal.is_emergency_fund
        or goal.category == GoalCategory.EMERGENCY
        or any(marker in name for marker in _NAME_MARKERS)
    )


def suggested_contribution(target_amount: Decimal, current_amount: Decimal) -> Decimal:
    """Monthly deposit that closes the gap within a year, rounded up to whole units."""
    gap = target_amount - current_amount
    if gap <= 0:
        return Decimal("0")
    return Decimal(math.ceil(gap / 12))


class EmergencyFundService:
    """Service advising on and moving money into the emergency reserve."""

    def __init__(self, db: Database, clock: Optional[Callable[[], datetime]] = None):
        """Initialize emergency fund service.

        Args:
            db: Database instance
            clock: Optional callable returning the current time
        """
        self.db = db
        self.clock = clock or datetime.now
        self.goals = GoalService(db, self.clock)

    def calculate_monthly_expenses(self, user_id: str) -> Decimal:
        """Average monthly paid expenses over the last three months.

        Only months with recorded expenses count towards the average. Reserve
        transfers are not spending and are left out.
        """
        since = self.clock() - relativedelta(months=HISTORY_MONTHS)
        totals: dict[tuple[int, int], Decimal] = defaultdict(Decimal)
        for txn in self.db.list_transactions(user_id, start=since):
            if (
                txn.transaction_type == TransactionType.EXPENSE
                and txn.is_paid
                and txn.category_id != RESERVE_DEPOSIT_CATEGORY
            ):
                totals[(txn.date.year, txn.date.month)] += txn.amount
        if not totals:
            return Decimal("0")
        return (sum(totals.values(), Decimal("0")) / len(totals)).quantize(Decimal("0.01"))

    def find_emergency_goal(self, user_id: str) -> Optional[Goal]:
        return next((goal for goal in self.db.list_goals(user_id) if is_emergency_goal(goal)), None)

    def get_status(self, user_id: str) -> EmergencyFundStatus:
        """Compute the reserve status, correcting a drifted goal target.

        When the recommended target differs from the goal's stored target by
        more than 10%, the stored target is updated.
        """
        monthly_expenses = self.calculate_monthly_expenses(user_id)
        target_amount = monthly_expenses * TARGET_MONTHS
        goal = self.find_emergency_goal(user_id)

        if goal is None:
            return EmergencyFundStatus(
                has_goal=False,
                current_amount=Decimal("0"),
                target_amount=target_amount,
                monthly_expenses=monthly_expenses,
                progress=0.0,
                months_covered=0.0,
                suggested_contribution=suggested_contribution(target_amount, Decimal("0")),
                level=ReserveLevel.NONE,
            )

        if target_amount > 0 and self._has_drifted(goal.target_amount, target_amount):
            logger.info(
                "Updating emergency goal %s target from %s to %s",
                goal.id,
                goal.target_amount,
                target_amount,
            )
            self.db.commit(
                user_id,
                WriteBatch().patch(
                    Collection.GOALS, goal.id, target_amount=target_amount, updated_at=self.clock()
                ),
            )
            goal = self.db.get_goal(user_id, goal.id) or goal

        current = goal.current_amount
        months_covered = float(current / monthly_expenses) if monthly_expenses > 0 else 0.0
        progress = float(current / goal.target_amount * 100) if goal.target_amount > 0 else 0.0
        return EmergencyFundStatus(
            has_goal=True,
            current_amount=current,
            target_amount=goal.target_amount,
            monthly_expenses=monthly_expenses,
            progress=progress,
            months_covered=months_covered,
            suggested_contribution=suggested_contribution(goal.target_amount, current),
            level=reserve_level(months_covered),
            goal=goal,
        )

    @staticmethod
    def _has_drifted(stored: Decimal, computed: Decimal) -> bool:
        if stored == 0:
            return True
        return abs(stored - computed) / stored * 100 > DRIFT_THRESHOLD_PERCENT

    def create_emergency_goal(self, user_id: str) -> str:
        """Create the reserve goal, or return the existing one's ID.

        Returns:
            Goal ID
        """
        status = self.get_status(user_id)
        if status.goal is not None:
            return status.goal.id
        return self.goals.create_goal(
            user_id,
            name=GOAL_NAME,
            target_amount=status.target_amount,
            deadline=self.clock() + timedelta(days=365),
            category=GoalCategory.EMERGENCY,
            description="6 meses de despesas para imprevistos",
            icon="Shield",
            is_emergency_fund=True,
        )

    def _require_goal(self, user_id: str) -> Goal:
        goal = self.find_emergency_goal(user_id)
        if goal is None:
            raise NotFoundError("Emergency fund goal not found")
        return goal

    def contribute(self, user_id: str, amount: Decimal, note: Optional[str] = None) -> str:
        """Record a deposit made outside the tracked accounts.

        Raises:
            NotFoundError: If there is no reserve goal
        """
        return self.goals.add_contribution(user_id, self._require_goal(user_id).id, amount, note)

    def transfer_from_account(self, user_id: str, account_id: str, amount: Decimal) -> str:
        """Move money from an account into the reserve.

        Raises:
            NotFoundError: If there is no reserve goal or the account is missing
            PreconditionFailedError: If the account balance is too low
        """
        return self.goals.add_contribution_from_account(
            user_id, self._require_goal(user_id).id, account_id, amount
        )

    def withdraw_to_account(self, user_id: str, account_id: str, amount: Decimal) -> str:
        """Move money from the reserve back into an account.

        Raises:
            NotFoundError: If there is no reserve goal or the account is missing
            PreconditionFailedError: If the reserve holds less than ``amount``
        """
        return self.goals.withdraw(user_id, self._require_goal(user_id).id, account_id, amount)
