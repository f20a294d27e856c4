"""Tests for account service and the posting rule."""

from dataclasses import replace
from datetime import datetime
from decimal import Decimal

import pytest

from famfin.domain.entities import AccountType, ExpenseType, TransactionType
from famfin.domain.errors import ConflictError, NotFoundError, ValidationError
from famfin.domain.ledger import net_effects, posting_effects


def _add(transaction_service, user_id, account_id, transaction_type, amount, **kwargs):
    return transaction_service.create_transaction(
        user_id,
        transaction_type=transaction_type,
        amount=Decimal(amount),
        description=kwargs.pop("description", "Test"),
        category_id=kwargs.pop("category_id", "cat"),
        account_id=account_id,
        date=kwargs.pop("date", datetime(2024, 3, 18, 12, 0)),
        **kwargs,
    )


def test_create_account_starts_at_initial_balance(account_service, user_id):
    account_id = account_service.create_account(user_id, "Nubank", initial_balance=Decimal("250.50"))

    account = account_service.get_account(user_id, account_id)
    assert account.name == "Nubank"
    assert account.account_type == AccountType.BANK
    assert account.initial_balance == Decimal("250.50")
    assert account.current_balance == Decimal("250.50")
    assert account.is_active


def test_create_account_duplicate_name(account_service, user_id):
    account_service.create_account(user_id, "Nubank")
    with pytest.raises(ValidationError, match="already exists"):
        account_service.create_account(user_id, "Nubank")


def test_accounts_are_scoped_per_user(account_service, user_id):
    account_id = account_service.create_account(user_id, "Nubank")

    assert account_service.get_account("someone-else", account_id) is None
    assert account_service.list_accounts("someone-else") == []
    # The same name is free in another namespace
    account_service.create_account("someone-else", "Nubank")


def test_paid_income_credits_account(transaction_service, account_service, user_id, sample_account):
    _add(transaction_service, user_id, sample_account.id, TransactionType.INCOME, "500", is_paid=True)

    assert account_service.get_account(user_id, sample_account.id).current_balance == Decimal("1500")


def test_unpaid_expense_does_not_post(transaction_service, account_service, user_id, sample_account):
    _add(transaction_service, user_id, sample_account.id, TransactionType.EXPENSE, "200")

    assert account_service.get_account(user_id, sample_account.id).current_balance == Decimal("1000")


def test_card_charge_does_not_post(transaction_service, account_service, user_id, sample_account, sample_card):
    _add(
        transaction_service,
        user_id,
        sample_account.id,
        TransactionType.EXPENSE,
        "200",
        is_paid=True,
        card_id=sample_card.id,
        expense_type=ExpenseType.CASH,
    )

    assert account_service.get_account(user_id, sample_account.id).current_balance == Decimal("1000")


def test_transfer_moves_money_between_accounts(transaction_service, account_service, user_id, sample_account):
    savings_id = account_service.create_account(user_id, "Poupança")

    _add(
        transaction_service,
        user_id,
        sample_account.id,
        TransactionType.TRANSFER,
        "300",
        is_paid=True,
        to_account_id=savings_id,
    )

    assert account_service.get_account(user_id, sample_account.id).current_balance == Decimal("700")
    assert account_service.get_account(user_id, savings_id).current_balance == Decimal("300")


def test_recalculation_reproduces_incremental_balances(
    transaction_service, account_service, user_id, sample_account, sample_card
):
    savings_id = account_service.create_account(user_id, "Poupança", initial_balance=Decimal("50"))
    _add(transaction_service, user_id, sample_account.id, TransactionType.INCOME, "2000", is_paid=True)
    _add(transaction_service, user_id, sample_account.id, TransactionType.EXPENSE, "123.45", is_paid=True)
    _add(transaction_service, user_id, sample_account.id, TransactionType.EXPENSE, "99")
    _add(
        transaction_service,
        user_id,
        sample_account.id,
        TransactionType.EXPENSE,
        "80",
        is_paid=True,
        card_id=sample_card.id,
    )
    _add(
        transaction_service,
        user_id,
        sample_account.id,
        TransactionType.TRANSFER,
        "400",
        is_paid=True,
        to_account_id=savings_id,
    )
    incremental = {acc.id: acc.current_balance for acc in account_service.list_accounts(user_id)}

    # Drift the stored balance, then rebuild it from history
    account_service.adjust_balance(user_id, sample_account.id, Decimal("999"), "add")
    recalculated = account_service.recalculate_all_balances(user_id)

    assert recalculated == incremental
    assert recalculated[sample_account.id] == Decimal("2476.55")
    assert recalculated[savings_id] == Decimal("450")


def test_adjust_balance(account_service, user_id, sample_account):
    assert account_service.adjust_balance(user_id, sample_account.id, Decimal("25"), "subtract") == Decimal("975")
    with pytest.raises(ValidationError):
        account_service.adjust_balance(user_id, sample_account.id, Decimal("25"), "multiply")


def test_total_balance_skips_excluded_and_inactive(account_service, user_id, sample_account):
    account_service.create_account(user_id, "Investimentos", initial_balance=Decimal("5000"), include_in_total=False)
    old_id = account_service.create_account(user_id, "Antiga", initial_balance=Decimal("70"))
    account_service.deactivate(user_id, old_id)

    assert account_service.total_balance(user_id) == Decimal("1000")


def test_update_initial_balance_shifts_current(account_service, user_id, sample_account):
    account_service.adjust_balance(user_id, sample_account.id, Decimal("100"), "subtract")
    account_service.update_account(user_id, sample_account.id, initial_balance=Decimal("1500"))

    account = account_service.get_account(user_id, sample_account.id)
    assert account.initial_balance == Decimal("1500")
    assert account.current_balance == Decimal("1400")


def test_update_account_rejects_unknown_fields(account_service, user_id, sample_account):
    with pytest.raises(ValidationError):
        account_service.update_account(user_id, sample_account.id, current_balance=Decimal("1"))


def test_delete_account_refused_while_referenced(transaction_service, account_service, user_id, sample_account):
    _add(transaction_service, user_id, sample_account.id, TransactionType.EXPENSE, "10")
    with pytest.raises(ConflictError):
        account_service.delete_account(user_id, sample_account.id)


def test_delete_account(account_service, user_id, sample_account):
    account_service.delete_account(user_id, sample_account.id)
    assert account_service.get_account(user_id, sample_account.id) is None
    with pytest.raises(NotFoundError):
        account_service.delete_account(user_id, sample_account.id)


def test_seed_default_account_only_when_empty(account_service, user_id):
    account_id = account_service.seed_default_account(user_id)
    assert account_service.get_account(user_id, account_id).name == "Carteira Principal"
    assert account_service.seed_default_account(user_id) is None


def test_posting_effects_and_net_effects(transaction_service, user_id, sample_account, temp_db):
    [txn_id] = _add(transaction_service, user_id, sample_account.id, TransactionType.EXPENSE, "40")
    txn = temp_db.get_transaction(user_id, txn_id)

    assert posting_effects(txn) == []
    paid = replace(txn, is_paid=True)
    assert posting_effects(paid) == [(sample_account.id, Decimal("-40"))]
    assert net_effects(applied=[paid], reversed_=[paid]) == {}
