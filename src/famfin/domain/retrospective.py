"""Monthly retrospective aggregations.

Pure functions over a list of transactions. Each looks at the paid
transactions of the calendar month before ``today``.
"""

import calendar
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from dateutil.relativedelta import relativedelta

from famfin.domain.entities import Category, CreditCard, FamilyMember, Transaction, TransactionType

ZERO = Decimal("0")
UNASSIGNED = "Não informado"
WEEKDAY_NAMES = ("Seg", "Ter", "Qua", "Qui", "Sex", "Sáb", "Dom")


@dataclass(frozen=True)
class CategoryShare:
    name: str
    icon: str
    amount: Decimal
    percent: float


@dataclass(frozen=True)
class Highlight:
    description: str
    amount: Decimal


@dataclass(frozen=True)
class MonthlyRetrospective:
    """Summary of a closed month compared with the month before it."""

    month: date
    total_income: Decimal
    total_expense: Decimal
    balance: Decimal
    balance_percent: float
    top_categories: list[CategoryShare]
    biggest_income: Optional[Highlight]
    biggest_expense: Optional[Highlight]
    days_without_expenses: int
    income_change: float
    expense_change: float
    balance_change: float


@dataclass(frozen=True)
class SpendingGroup:
    name: str
    amount: Decimal
    count: int


@dataclass(frozen=True)
class SpendingPatterns:
    by_weekday: list[SpendingGroup]
    by_week: list[SpendingGroup]
    average_per_day: Decimal


def _month_start(today: date, months_back: int) -> date:
    return today.replace(day=1) - relativedelta(months=months_back)


def paid_in_month(transactions: Iterable[Transaction], month: date) -> list[Transaction]:
    """Paid transactions dated within the calendar month of ``month``."""
    return [
        t
        for t in transactions
        if t.is_paid and t.date.year == month.year and t.date.month == month.month
    ]


def _totals(transactions: list[Transaction]) -> tuple[Decimal, Decimal]:
    income = sum((t.amount for t in transactions if t.transaction_type == TransactionType.INCOME), ZERO)
    expense = sum((t.amount for t in transactions if t.transaction_type == TransactionType.EXPENSE), ZERO)
    return income, expense


def _percent_change(current: Decimal, previous: Decimal) -> float:
    if previous == 0:
        return 0.0
    return float((current - previous) / abs(previous) * 100)


def calculate_monthly_retrospective(
    transactions: Iterable[Transaction],
    categories: Iterable[Category],
    today: date,
) -> MonthlyRetrospective:
    """Summarize last month and compare it with the month before."""
    transactions = list(transactions)
    month = _month_start(today, 1)
    current = paid_in_month(transactions, month)
    previous = paid_in_month(transactions, _month_start(today, 2))

    total_income, total_expense = _totals(current)
    balance = total_income - total_expense
    balance_percent = float(balance / total_income * 100) if total_income > 0 else 0.0

    incomes = [t for t in current if t.transaction_type == TransactionType.INCOME]
    expenses = [t for t in current if t.transaction_type == TransactionType.EXPENSE]

    by_category: dict[str, Decimal] = defaultdict(Decimal)
    for txn in expenses:
        by_category[txn.category_id] += txn.amount
    category_index = {category.id: category for category in categories}
    shares = []
    for category_id, amount in by_category.items():
        category = category_index.get(category_id)
        shares.append(
            CategoryShare(
                name=category.name if category else "Outros",
                icon=category.icon if category else "Package",
                amount=amount,
                percent=float(amount / total_expense * 100),
            )
        )
    shares.sort(key=lambda share: share.amount, reverse=True)

    biggest_income = max(incomes, key=lambda t: t.amount, default=None)
    biggest_expense = max(expenses, key=lambda t: t.amount, default=None)

    days_in_month = calendar.monthrange(month.year, month.month)[1]
    days_with_expenses = {t.date.date() for t in expenses}

    previous_income, previous_expense = _totals(previous)
    return MonthlyRetrospective(
        month=month,
        total_income=total_income,
        total_expense=total_expense,
        balance=balance,
        balance_percent=balance_percent,
        top_categories=shares[:3],
        biggest_income=Highlight(biggest_income.description, biggest_income.amount) if biggest_income else None,
        biggest_expense=Highlight(biggest_expense.description, biggest_expense.amount) if biggest_expense else None,
        days_without_expenses=days_in_month - len(days_with_expenses),
        income_change=_percent_change(total_income, previous_income),
        expense_change=_percent_change(total_expense, previous_expense),
        balance_change=_percent_change(balance, previous_income - previous_expense),
    )


def _grouped(groups: dict[str, list[Decimal]]) -> list[SpendingGroup]:
    result = [SpendingGroup(name=name, amount=sum(amounts, ZERO), count=len(amounts)) for name, amounts in groups.items()]
    result.sort(key=lambda group: group.amount, reverse=True)
    return result


def expenses_by_card(
    transactions: Iterable[Transaction],
    cards: Iterable[CreditCard],
    today: date,
) -> list[SpendingGroup]:
    """Last month's card expenses per card, largest first."""
    names = {card.id: card.display_name for card in cards}
    groups: dict[str, list[Decimal]] = defaultdict(list)
    for txn in paid_in_month(transactions, _month_start(today, 1)):
        if txn.transaction_type == TransactionType.EXPENSE and txn.card_id:
            groups[names.get(txn.card_id, txn.card_id)].append(txn.amount)
    return _grouped(groups)


def expenses_by_member(
    transactions: Iterable[Transaction],
    members: Iterable[FamilyMember],
    today: date,
) -> list[SpendingGroup]:
    """Last month's expenses per assigned family member, largest first."""
    names = {member.id: member.name for member in members}
    groups: dict[str, list[Decimal]] = defaultdict(list)
    for txn in paid_in_month(transactions, _month_start(today, 1)):
        if txn.transaction_type == TransactionType.EXPENSE:
            groups[names.get(txn.assigned_to or "", UNASSIGNED)].append(txn.amount)
    return _grouped(groups)


def spending_patterns(transactions: Iterable[Transaction], today: date) -> SpendingPatterns:
    """Break last month's expenses down by weekday and by week of the month."""
    month = _month_start(today, 1)
    expenses = [
        t for t in paid_in_month(transactions, month) if t.transaction_type == TransactionType.EXPENSE
    ]

    weekdays: dict[int, list[Decimal]] = defaultdict(list)
    weeks: dict[int, list[Decimal]] = defaultdict(list)
    for txn in expenses:
        weekdays[txn.date.weekday()].append(txn.amount)
        weeks[(txn.date.day - 1) // 7].append(txn.amount)

    by_weekday = [
        SpendingGroup(name=WEEKDAY_NAMES[day], amount=sum(weekdays[day], ZERO), count=len(weekdays[day]))
        for day in sorted(weekdays)
    ]
    by_week = [
        SpendingGroup(name=f"Semana {week + 1}", amount=sum(weeks[week], ZERO), count=len(weeks[week]))
        for week in sorted(weeks)
    ]
    days_in_month = calendar.monthrange(month.year, month.month)[1]
    total = sum((t.amount for t in expenses), ZERO)
    return SpendingPatterns(
        by_weekday=by_weekday,
        by_week=by_week,
        average_per_day=(total / days_in_month).quantize(Decimal("0.01")),
    )
