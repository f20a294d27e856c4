"""Tests for the emergency fund advisor."""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from famfin.domain.emergency_fund import (
    GOAL_NAME,
    ReserveLevel,
    is_emergency_goal,
    reserve_level,
    suggested_contribution,
)
from famfin.domain.entities import Goal, GoalCategory, GoalStatus, TransactionType
from famfin.domain.errors import NotFoundError, PreconditionFailedError


@pytest.fixture
def spending_account(account_service, user_id):
    account_id = account_service.create_account(user_id, "Conta Salário", initial_balance=Decimal("10000"))
    return account_service.get_account(user_id, account_id)


@pytest.fixture
def add_expense(transaction_service, user_id, spending_account):
    def add(amount, date, is_paid=True, category_id="mercado", transaction_type=TransactionType.EXPENSE):
        return transaction_service.create_transaction(
            user_id,
            transaction_type=transaction_type,
            amount=Decimal(amount),
            description="Gasto",
            category_id=category_id,
            account_id=spending_account.id,
            date=date,
            is_paid=is_paid,
        )

    return add


@pytest.fixture
def three_months_of_spending(add_expense):
    add_expense("900", datetime(2024, 1, 10, 12, 0))
    add_expense("600", datetime(2024, 2, 10, 12, 0))
    add_expense("500", datetime(2024, 2, 18, 12, 0))
    add_expense("1000", datetime(2024, 3, 10, 12, 0))


def _goal(now, **overrides):
    fields = dict(
        id="g1",
        name="Carro novo",
        category=GoalCategory.OTHER,
        target_amount=Decimal("100"),
        current_amount=Decimal("0"),
        deadline=now,
        status=GoalStatus.ACTIVE,
        created_at=now,
        updated_at=now,
    )
    fields.update(overrides)
    return Goal(**fields)


def test_monthly_expenses_average_spending_months(emergency_service, user_id, three_months_of_spending):
    assert emergency_service.calculate_monthly_expenses(user_id) == Decimal("1000.00")


def test_monthly_expenses_ignore_unpaid_income_old_and_reserve(
    emergency_service, add_expense, user_id, three_months_of_spending
):
    add_expense("5000", datetime(2024, 3, 12, 12, 0), is_paid=False)
    add_expense("5000", datetime(2024, 3, 12, 12, 0), transaction_type=TransactionType.INCOME)
    add_expense("5000", datetime(2023, 11, 12, 12, 0))
    add_expense("5000", datetime(2024, 3, 12, 12, 0), category_id="reserva-emergencia")

    assert emergency_service.calculate_monthly_expenses(user_id) == Decimal("1000.00")


def test_no_history_means_zero(emergency_service, user_id):
    status = emergency_service.get_status(user_id)

    assert status.monthly_expenses == Decimal("0")
    assert status.target_amount == Decimal("0")
    assert status.level == ReserveLevel.NONE
    assert not status.has_goal


def test_status_without_goal(emergency_service, user_id, three_months_of_spending):
    status = emergency_service.get_status(user_id)

    assert not status.has_goal
    assert status.target_amount == Decimal("6000.00")
    assert status.current_amount == Decimal("0")
    assert status.suggested_contribution == Decimal("500")
    assert status.level == ReserveLevel.NONE


def test_create_goal_and_contribute(emergency_service, goal_service, user_id, three_months_of_spending, now):
    goal_id = emergency_service.create_emergency_goal(user_id)

    goal = goal_service.get_goal(user_id, goal_id)
    assert goal.name == GOAL_NAME
    assert goal.is_emergency_fund
    assert goal.category == GoalCategory.EMERGENCY
    assert goal.target_amount == Decimal("6000.00")
    assert goal.deadline == now + timedelta(days=365)
    # Creating again returns the same goal
    assert emergency_service.create_emergency_goal(user_id) == goal_id

    emergency_service.contribute(user_id, Decimal("3000"))

    status = emergency_service.get_status(user_id)
    assert status.has_goal
    assert status.current_amount == Decimal("3000")
    assert status.months_covered == 3.0
    assert status.progress == 50.0
    assert status.level == ReserveLevel.ADEQUATE
    assert status.suggested_contribution == Decimal("250")


def test_drifted_target_is_corrected(emergency_service, goal_service, add_expense, user_id, three_months_of_spending):
    goal_id = emergency_service.create_emergency_goal(user_id)
    add_expense("1500", datetime(2024, 3, 15, 12, 0))

    status = emergency_service.get_status(user_id)

    assert status.monthly_expenses == Decimal("1500.00")
    assert status.target_amount == Decimal("9000.00")
    assert goal_service.get_goal(user_id, goal_id).target_amount == Decimal("9000.00")


def test_small_drift_keeps_target(emergency_service, goal_service, add_expense, user_id, three_months_of_spending):
    goal_id = emergency_service.create_emergency_goal(user_id)
    add_expense("150", datetime(2024, 3, 15, 12, 0))

    status = emergency_service.get_status(user_id)

    assert status.monthly_expenses == Decimal("1050.00")
    assert status.target_amount == Decimal("6000.00")
    assert goal_service.get_goal(user_id, goal_id).target_amount == Decimal("6000.00")


def test_transfer_and_withdraw(
    emergency_service, account_service, user_id, spending_account, three_months_of_spending
):
    emergency_service.create_emergency_goal(user_id)
    balance = account_service.get_account(user_id, spending_account.id).current_balance

    emergency_service.transfer_from_account(user_id, spending_account.id, Decimal("500"))
    emergency_service.withdraw_to_account(user_id, spending_account.id, Decimal("200"))

    status = emergency_service.get_status(user_id)
    assert status.current_amount == Decimal("300")
    # Moving money into the reserve is not spending
    assert status.monthly_expenses == Decimal("1000.00")
    assert account_service.get_account(user_id, spending_account.id).current_balance == balance - Decimal("300")

    with pytest.raises(PreconditionFailedError):
        emergency_service.withdraw_to_account(user_id, spending_account.id, Decimal("301"))


def test_operations_need_a_goal(emergency_service, user_id, spending_account):
    with pytest.raises(NotFoundError):
        emergency_service.contribute(user_id, Decimal("10"))
    with pytest.raises(NotFoundError):
        emergency_service.transfer_from_account(user_id, spending_account.id, Decimal("10"))


def test_existing_reserve_goal_is_detected_by_name(emergency_service, goal_service, user_id, now):
    goal_id = goal_service.create_goal(user_id, "Minha reserva", Decimal("100"), now)

    assert emergency_service.find_emergency_goal(user_id).id == goal_id
    assert emergency_service.create_emergency_goal(user_id) == goal_id


def test_completed_reserve_is_not_the_current_goal(emergency_service, goal_service, user_id, now):
    goal_id = goal_service.create_goal(user_id, "Reserva de Emergência", Decimal("100"), now)
    goal_service.add_contribution(user_id, goal_id, Decimal("100"))
    assert goal_service.get_goal(user_id, goal_id).status == GoalStatus.COMPLETED

    assert not emergency_service.get_status(user_id).has_goal
    assert emergency_service.create_emergency_goal(user_id) != goal_id


def test_is_emergency_goal(now):
    assert is_emergency_goal(_goal(now, is_emergency_fund=True))
    assert is_emergency_goal(_goal(now, category=GoalCategory.EMERGENCY))
    assert is_emergency_goal(_goal(now, name="Fundo de Emergência"))
    assert not is_emergency_goal(_goal(now, name="Reserva", status=GoalStatus.COMPLETED))
    assert not is_emergency_goal(_goal(now, name="Reserva", status=GoalStatus.CANCELLED))
    assert not is_emergency_goal(_goal(now))


@pytest.mark.parametrize(
    "months, level",
    [
        (0.0, ReserveLevel.NONE),
        (0.5, ReserveLevel.BUILDING),
        (3.0, ReserveLevel.ADEQUATE),
        (5.9, ReserveLevel.ADEQUATE),
        (6.0, ReserveLevel.EXCELLENT),
    ],
)
def test_reserve_level(months, level):
    assert reserve_level(months) == level


def test_suggested_contribution_rounds_up():
    assert suggested_contribution(Decimal("6000"), Decimal("1")) == Decimal("500")
    assert suggested_contribution(Decimal("6000"), Decimal("7000")) == Decimal("0")
