"""Tests for savings goals."""

from datetime import timedelta
from decimal import Decimal

import pytest

from famfin.domain.entities import Contribution, Goal, GoalCategory, GoalStatus
from famfin.domain.errors import NotFoundError, PreconditionFailedError, ValidationError
from famfin.domain.goal import (
    RESERVE_DEPOSIT_CATEGORY,
    RESERVE_WITHDRAWAL_CATEGORY,
    GoalService,
    calculate_days_remaining,
    calculate_monthly_contribution,
    calculate_progress,
    calculate_remaining,
    estimate_completion_date,
)


def _goal(now, current="300", target="1200", deadline_days=90, contributions=()):
    return Goal(
        id="g1",
        name="Viagem",
        category=GoalCategory.TRAVEL,
        target_amount=Decimal(target),
        current_amount=Decimal(current),
        deadline=now + timedelta(days=deadline_days),
        status=GoalStatus.ACTIVE,
        created_at=now,
        updated_at=now,
        contributions=contributions,
    )


@pytest.fixture
def trip_goal(goal_service, user_id, now):
    goal_id = goal_service.create_goal(
        user_id,
        "Viagem",
        Decimal("1000"),
        now + timedelta(days=180),
        category=GoalCategory.TRAVEL,
    )
    return goal_service.get_goal(user_id, goal_id)


def test_progress_and_remaining(now):
    goal = _goal(now)
    assert calculate_progress(goal) == 25.0
    assert calculate_remaining(goal) == Decimal("900")


def test_progress_is_capped(now):
    goal = _goal(now, current="1500")
    assert calculate_progress(goal) == 100.0
    assert calculate_remaining(goal) == Decimal("0")


def test_days_and_monthly_contribution(now):
    goal = _goal(now)
    assert calculate_days_remaining(goal, now) == 90
    assert calculate_monthly_contribution(goal, now) == Decimal("300.00")


def test_partial_day_rounds_up(now):
    goal = _goal(now)
    assert calculate_days_remaining(goal, now + timedelta(hours=12)) == 90


def test_overdue_goal_needs_the_whole_remainder(now):
    goal = _goal(now, deadline_days=-1)
    assert calculate_days_remaining(goal, now) == -1
    assert calculate_monthly_contribution(goal, now) == Decimal("900")


def test_estimate_completion_date(now):
    contributions = (
        Contribution(id="c1", amount=Decimal("200"), date=now - timedelta(days=60)),
        Contribution(id="c2", amount=Decimal("100"), date=now),
    )
    goal = _goal(now, contributions=contributions)

    # 300 saved over two months is 150 a month; 900 left takes six months
    assert estimate_completion_date(goal, now) == now + timedelta(days=180)
    assert estimate_completion_date(_goal(now), now) is None


def test_create_goal(trip_goal, now):
    assert trip_goal.status == GoalStatus.ACTIVE
    assert trip_goal.current_amount == Decimal("0")
    assert trip_goal.contributions == ()
    assert trip_goal.created_at == now


def test_create_goal_validation(goal_service, user_id, now):
    with pytest.raises(ValidationError):
        goal_service.create_goal(user_id, "  ", Decimal("10"), now)
    with pytest.raises(ValidationError):
        goal_service.create_goal(user_id, "Carro", Decimal("-1"), now)


def test_contribution_completes_goal(goal_service, user_id, trip_goal, now):
    goal_service.add_contribution(user_id, trip_goal.id, Decimal("400"))
    goal = goal_service.get_goal(user_id, trip_goal.id)
    assert goal.status == GoalStatus.ACTIVE
    assert goal.completed_at is None

    contribution_id = goal_service.add_contribution(user_id, trip_goal.id, Decimal("600"), note="Bônus")

    goal = goal_service.get_goal(user_id, trip_goal.id)
    assert goal.current_amount == Decimal("1000")
    assert goal.status == GoalStatus.COMPLETED
    assert goal.completed_at == now
    assert [c.amount for c in goal.contributions] == [Decimal("400"), Decimal("600")]
    assert goal.contributions[-1].note == "Bônus"

    goal_service.remove_contribution(user_id, trip_goal.id, contribution_id)

    goal = goal_service.get_goal(user_id, trip_goal.id)
    assert goal.current_amount == Decimal("400")
    assert goal.status == GoalStatus.ACTIVE
    assert goal.completed_at is None
    assert len(goal.contributions) == 1


def test_contribution_must_be_positive(goal_service, user_id, trip_goal):
    with pytest.raises(ValidationError):
        goal_service.add_contribution(user_id, trip_goal.id, Decimal("0"))


def test_remove_missing_contribution(goal_service, user_id, trip_goal):
    with pytest.raises(NotFoundError):
        goal_service.remove_contribution(user_id, trip_goal.id, "missing")


def test_contribution_from_account(goal_service, account_service, transaction_service, user_id, trip_goal, sample_account):
    txn_id = goal_service.add_contribution_from_account(user_id, trip_goal.id, sample_account.id, Decimal("400"))

    assert account_service.get_account(user_id, sample_account.id).current_balance == Decimal("600")
    assert goal_service.get_goal(user_id, trip_goal.id).current_amount == Decimal("400")
    txn = transaction_service.get_transaction(user_id, txn_id)
    assert txn.category_id == RESERVE_DEPOSIT_CATEGORY
    assert txn.is_paid
    assert txn.amount == Decimal("400")


def test_contribution_from_account_needs_balance(goal_service, account_service, user_id, trip_goal, sample_account):
    with pytest.raises(PreconditionFailedError):
        goal_service.add_contribution_from_account(user_id, trip_goal.id, sample_account.id, Decimal("1000.01"))

    assert account_service.get_account(user_id, sample_account.id).current_balance == Decimal("1000")
    assert goal_service.get_goal(user_id, trip_goal.id).current_amount == Decimal("0")


def test_withdraw_to_account(goal_service, account_service, transaction_service, user_id, trip_goal, sample_account):
    goal_service.add_contribution(user_id, trip_goal.id, Decimal("400"))

    txn_id = goal_service.withdraw(user_id, trip_goal.id, sample_account.id, Decimal("150"))

    goal = goal_service.get_goal(user_id, trip_goal.id)
    assert goal.current_amount == Decimal("250")
    assert goal.contributions[-1].amount == Decimal("-150")
    assert account_service.get_account(user_id, sample_account.id).current_balance == Decimal("1150")
    assert transaction_service.get_transaction(user_id, txn_id).category_id == RESERVE_WITHDRAWAL_CATEGORY

    with pytest.raises(PreconditionFailedError):
        goal_service.withdraw(user_id, trip_goal.id, sample_account.id, Decimal("250.01"))


def test_withdraw_below_target_reopens_goal(goal_service, user_id, trip_goal, sample_account):
    goal_service.add_contribution(user_id, trip_goal.id, Decimal("1000"))
    goal_service.withdraw(user_id, trip_goal.id, sample_account.id, Decimal("1"))

    assert goal_service.get_goal(user_id, trip_goal.id).status == GoalStatus.ACTIVE


def test_account_service_goal_transfers(account_service, goal_service, user_id, trip_goal, sample_account):
    account_service.transfer_to_goal(user_id, sample_account.id, trip_goal.id, Decimal("300"))
    account_service.withdraw_from_goal(user_id, sample_account.id, trip_goal.id, Decimal("100"))

    assert goal_service.get_goal(user_id, trip_goal.id).current_amount == Decimal("200")
    assert account_service.get_account(user_id, sample_account.id).current_balance == Decimal("800")


def test_cancel_and_reactivate(goal_service, user_id, trip_goal):
    goal_service.cancel(user_id, trip_goal.id)
    assert goal_service.get_goal(user_id, trip_goal.id).status == GoalStatus.CANCELLED
    assert goal_service.list_active_goals(user_id) == []

    # Funding a cancelled goal keeps it cancelled
    goal_service.add_contribution(user_id, trip_goal.id, Decimal("1000"))
    assert goal_service.get_goal(user_id, trip_goal.id).status == GoalStatus.CANCELLED

    goal_service.reactivate(user_id, trip_goal.id)
    assert goal_service.get_goal(user_id, trip_goal.id).status == GoalStatus.COMPLETED


def test_update_goal(goal_service, user_id, trip_goal):
    goal_service.update_goal(user_id, trip_goal.id, name="Viagem Nordeste", target_amount=Decimal("1500"))

    goal = goal_service.get_goal(user_id, trip_goal.id)
    assert goal.name == "Viagem Nordeste"
    assert goal.target_amount == Decimal("1500")

    with pytest.raises(ValidationError):
        goal_service.update_goal(user_id, trip_goal.id, current_amount=Decimal("1"))


def test_list_goals_newest_first(temp_db, user_id, now):
    older = GoalService(temp_db, lambda: now).create_goal(user_id, "Carro", Decimal("10"), now)
    newer = GoalService(temp_db, lambda: now + timedelta(days=1)).create_goal(user_id, "Casa", Decimal("10"), now)

    assert [g.id for g in GoalService(temp_db).list_goals(user_id)] == [newer, older]


def test_delete_goal(goal_service, user_id, trip_goal):
    goal_service.delete_goal(user_id, trip_goal.id)
    assert goal_service.get_goal(user_id, trip_goal.id) is None
    with pytest.raises(NotFoundError):
        goal_service.delete_goal(user_id, trip_goal.id)
