"""Financial projection service.

Read-only forecasts over the transaction history: next month's committed
expenses, a multi-month cash-flow projection and month-over-month insights.
Missing data yields zero-valued results, never errors.
"""

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Callable, Optional

from dateutil.relativedelta import relativedelta

from famfin.database.base import Database
from famfin.domain.entities import ExpenseType, Transaction, TransactionType
from famfin.domain.goal import RESERVE_DEPOSIT_CATEGORY
from famfin.utils.timestamps import month_bounds

ZERO = Decimal("0")
INCOME_HISTORY_MONTHS = 3
UPCOMING_DUE_DAYS = 7


class InsightKind(str, Enum):
    SAVINGS = "savings"
    OVERSPEND = "overspend"
    CONCENTRATION = "concentration"
    UPCOMING_DUE = "upcoming_due"
    ON_TRACK = "on_track"


class Severity(str, Enum):
    SUCCESS = "success"
    WARNING = "warning"
    INFO = "info"


class InsightIcon(str, Enum):
    """Icon identifiers, resolved to artwork only by the presentation layer."""

    TRENDING_DOWN = "TrendingDown"
    TRENDING_UP = "TrendingUp"
    PIE_CHART = "PieChart"
    BELL = "Bell"
    TARGET = "Target"


@dataclass(frozen=True)
class Insight:
    kind: InsightKind
    severity: Severity
    title: str
    description: str
    icon: InsightIcon


@dataclass(frozen=True)
class NextMonthExpenses:
    """Unpaid expenses committed for next month, by bucket."""

    fixed: list[Transaction]
    card_purchases: list[Transaction]
    installments: list[Transaction]

    @property
    def total_fixed(self) -> Decimal:
        return sum((t.amount for t in self.fixed + self.card_purchases), ZERO)

    @property
    def total_installments(self) -> Decimal:
        return sum((t.amount for t in self.installments), ZERO)

    @property
    def total(self) -> Decimal:
        return self.total_fixed + self.total_installments


@dataclass(frozen=True)
class CashFlowMonth:
    """Projected figures of one future month."""

    month: date
    income: Decimal
    expenses: Decimal
    balance: Decimal
    projected_balance: Decimal

    @property
    def label(self) -> str:
        return self.month.strftime("%m/%Y")


def _in_window(value: Optional[datetime], start: datetime, end: datetime) -> bool:
    return value is not None and start <= value <= end


class ProjectionService:
    """Service computing forecasts and insights from transaction history."""

    def __init__(self, db: Database, clock: Optional[Callable[[], datetime]] = None):
        """Initialize projection service.

        Args:
            db: Database instance
            clock: Optional callable returning the current time
        """
        self.db = db
        self.clock = clock or datetime.now

    def _month_start(self, offset: int) -> date:
        return self.clock().date().replace(day=1) + relativedelta(months=offset)

    def get_next_month_expenses(self, user_id: str) -> NextMonthExpenses:
        """Collect unpaid expenses falling in next calendar month.

        Buckets are recurring fixed charges by due date, cash card purchases by
        date and installments by date. Reserve transfers and charges on missing
        or inactive cards are left out.
        """
        next_month = self._month_start(1)
        start, end = month_bounds(next_month.month - 1, next_month.year)
        active_cards = {card.id for card in self.db.list_credit_cards(user_id, active_only=True)}

        fixed, card_purchases, installments = [], [], []
        for txn in self.db.list_transactions(user_id, unpaid_only=True):
            if txn.transaction_type != TransactionType.EXPENSE or txn.category_id == RESERVE_DEPOSIT_CATEGORY:
                continue
            if txn.card_id and txn.card_id not in active_cards:
                continue
            if txn.expense_type == ExpenseType.FIXED and txn.is_recurring:
                if _in_window(txn.due_date, start, end):
                    fixed.append(txn)
            elif txn.expense_type == ExpenseType.INSTALLMENT:
                if _in_window(txn.date, start, end):
                    installments.append(txn)
            elif txn.expense_type == ExpenseType.CASH and txn.card_id:
                if _in_window(txn.date, start, end):
                    card_purchases.append(txn)
        return NextMonthExpenses(fixed=fixed, card_purchases=card_purchases, installments=installments)

    def average_monthly_income(self, user_id: str) -> Decimal:
        """Average income over the last three calendar months and this one so far."""
        now = self.clock()
        since = datetime.combine(self._month_start(-INCOME_HISTORY_MONTHS), datetime.min.time())
        total = sum(
            (
                txn.amount
                for txn in self.db.list_transactions(user_id, start=since)
                if txn.transaction_type == TransactionType.INCOME and txn.date < now
            ),
            ZERO,
        )
        return total / INCOME_HISTORY_MONTHS

    def calculate_cash_flow_projection(
        self,
        user_id: str,
        starting_balance: Decimal,
        months_ahead: int = 6,
    ) -> list[CashFlowMonth]:
        """Project the balance forward month by month.

        Each month's expenses are the recurring fixed charges due in it plus
        the installments dated in it. Income is the trailing average, computed
        once and held constant across the horizon.
        """
        transactions = self.db.list_transactions(user_id)
        income = self.average_monthly_income(user_id)
        running = Decimal(starting_balance)

        projections = []
        for offset in range(1, months_ahead + 1):
            month = self._month_start(offset)
            start, end = month_bounds(month.month - 1, month.year)
            expenses = ZERO
            for txn in transactions:
                if txn.transaction_type != TransactionType.EXPENSE or txn.category_id == RESERVE_DEPOSIT_CATEGORY:
                    continue
                if txn.expense_type == ExpenseType.FIXED and txn.is_recurring:
                    if _in_window(txn.due_date, start, end):
                        expenses += txn.amount
                elif txn.expense_type == ExpenseType.INSTALLMENT and _in_window(txn.date, start, end):
                    expenses += txn.amount
            running += income - expenses
            projections.append(
                CashFlowMonth(
                    month=month,
                    income=income,
                    expenses=expenses,
                    balance=income - expenses,
                    projected_balance=running,
                )
            )
        return projections

    def get_financial_insights(self, user_id: str) -> list[Insight]:
        """Derive qualitative signals from this month's and last month's spending."""
        now = self.clock()
        this_start, this_end = month_bounds(now.month - 1, now.year)
        last_month = self._month_start(-1)
        last_start, last_end = month_bounds(last_month.month - 1, last_month.year)

        transactions = self.db.list_transactions(user_id)
        if not transactions:
            return []

        paid_expenses = [t for t in transactions if t.transaction_type == TransactionType.EXPENSE and t.is_paid]
        current = [t for t in paid_expenses if this_start <= t.date <= this_end]
        current_total = sum((t.amount for t in current), ZERO)
        last_total = sum((t.amount for t in paid_expenses if last_start <= t.date <= last_end), ZERO)

        insights = []
        if last_total > 0:
            diff = (current_total - last_total) / last_total * 100
            if diff < -10:
                insights.append(
                    Insight(
                        kind=InsightKind.SAVINGS,
                        severity=Severity.SUCCESS,
                        title="Economia detectada!",
                        description=f"Você está gastando {abs(diff):.0f}% menos que o mês passado",
                        icon=InsightIcon.TRENDING_DOWN,
                    )
                )
            elif diff > 20:
                insights.append(
                    Insight(
                        kind=InsightKind.OVERSPEND,
                        severity=Severity.WARNING,
                        title="Gastos aumentaram",
                        description=f"Seus gastos subiram {diff:.0f}% em relação ao mês passado",
                        icon=InsightIcon.TRENDING_UP,
                    )
                )

        by_category: dict[str, Decimal] = defaultdict(Decimal)
        for txn in current:
            by_category[txn.category_id] += txn.amount
        if by_category and current_total > 0:
            share = max(by_category.values()) / current_total * 100
            if share > 40:
                insights.append(
                    Insight(
                        kind=InsightKind.CONCENTRATION,
                        severity=Severity.INFO,
                        title="Categoria dominante",
                        description=f"{share:.0f}% dos gastos estão concentrados em uma categoria",
                        icon=InsightIcon.PIE_CHART,
                    )
                )

        horizon = now + timedelta(days=UPCOMING_DUE_DAYS)
        upcoming = [
            t
            for t in transactions
            if t.transaction_type == TransactionType.EXPENSE
            and t.expense_type == ExpenseType.FIXED
            and not t.is_paid
            and t.due_date is not None
            and t.due_date <= horizon
        ]
        if upcoming:
            insights.append(
                Insight(
                    kind=InsightKind.UPCOMING_DUE,
                    severity=Severity.WARNING,
                    title="Contas próximas do vencimento",
                    description=f"Você tem {len(upcoming)} conta(s) fixa(s) vencendo nos próximos {UPCOMING_DUE_DAYS} dias",
                    icon=InsightIcon.BELL,
                )
            )

        if last_total > 0 and current_total < last_total * Decimal("0.8"):
            insights.append(
                Insight(
                    kind=InsightKind.ON_TRACK,
                    severity=Severity.SUCCESS,
                    title="Meta alcançada!",
                    description="Você está no caminho certo para economizar este mês",
                    icon=InsightIcon.TARGET,
                )
            )
        return insights
