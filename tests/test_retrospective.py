"""Tests for monthly retrospective aggregations."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from famfin.domain.entities import Category, CategoryType, CreditCard, FamilyMember, Transaction, TransactionType
from famfin.domain.retrospective import (
    UNASSIGNED,
    calculate_monthly_retrospective,
    expenses_by_card,
    expenses_by_member,
    spending_patterns,
)

TODAY = date(2024, 3, 20)
CREATED = datetime(2024, 1, 1)


def _txn(txn_id, transaction_type, amount, when, category_id="outros", is_paid=True, **kwargs):
    return Transaction(
        id=txn_id,
        transaction_type=transaction_type,
        amount=Decimal(amount),
        description=kwargs.pop("description", txn_id),
        category_id=category_id,
        account_id="acc",
        date=when,
        is_paid=is_paid,
        created_at=CREATED,
        **kwargs,
    )


@pytest.fixture
def february():
    return [
        _txn("salario", TransactionType.INCOME, "5000", datetime(2024, 2, 5, 12, 0), "salario"),
        _txn("feira", TransactionType.EXPENSE, "600", datetime(2024, 2, 10, 12, 0), "mercado"),
        _txn("padaria", TransactionType.EXPENSE, "400", datetime(2024, 2, 10, 18, 0), "mercado"),
        _txn("cinema", TransactionType.EXPENSE, "300", datetime(2024, 2, 12, 12, 0), "lazer"),
        _txn("luz", TransactionType.EXPENSE, "200", datetime(2024, 2, 20, 12, 0), "casa"),
        _txn("presente", TransactionType.EXPENSE, "100", datetime(2024, 2, 26, 12, 0), "sem-categoria"),
        _txn("pendente", TransactionType.EXPENSE, "999", datetime(2024, 2, 27, 12, 0), is_paid=False),
        _txn("janeiro-renda", TransactionType.INCOME, "4000", datetime(2024, 1, 5, 12, 0)),
        _txn("janeiro-gasto", TransactionType.EXPENSE, "2000", datetime(2024, 1, 8, 12, 0)),
        _txn("marco", TransactionType.EXPENSE, "777", datetime(2024, 3, 2, 12, 0)),
    ]


@pytest.fixture
def categories():
    return [
        Category(id=cid, name=name, category_type=CategoryType.EXPENSE, created_at=CREATED, icon=icon)
        for cid, name, icon in [
            ("mercado", "Mercado", "ShoppingCart"),
            ("lazer", "Lazer", "Gamepad"),
            ("casa", "Casa", "Home"),
        ]
    ]


def test_monthly_retrospective(february, categories):
    retro = calculate_monthly_retrospective(february, categories, TODAY)

    assert retro.month == date(2024, 2, 1)
    assert retro.total_income == Decimal("5000")
    assert retro.total_expense == Decimal("1600")
    assert retro.balance == Decimal("3400")
    assert retro.balance_percent == 68.0
    assert [(c.name, c.amount, c.percent) for c in retro.top_categories] == [
        ("Mercado", Decimal("1000"), 62.5),
        ("Lazer", Decimal("300"), 18.75),
        ("Casa", Decimal("200"), 12.5),
    ]
    assert retro.biggest_income.description == "salario"
    assert retro.biggest_expense.description == "feira"
    assert retro.biggest_expense.amount == Decimal("600")
    assert retro.days_without_expenses == 25
    assert retro.income_change == 25.0
    assert retro.expense_change == -20.0
    assert retro.balance_change == 70.0


def test_unknown_category_is_reported_as_other(february):
    retro = calculate_monthly_retrospective(february, [], TODAY)

    assert len(retro.top_categories) == 3
    assert all(c.name == "Outros" and c.icon == "Package" for c in retro.top_categories)


def test_empty_month():
    retro = calculate_monthly_retrospective([], [], TODAY)

    assert retro.total_income == Decimal("0")
    assert retro.balance_percent == 0.0
    assert retro.top_categories == []
    assert retro.biggest_income is None
    assert retro.biggest_expense is None
    assert retro.days_without_expenses == 29
    assert retro.income_change == 0.0


def test_january_retrospective_looks_at_december():
    december = [_txn("ceia", TransactionType.EXPENSE, "80", datetime(2023, 12, 24, 20, 0))]

    retro = calculate_monthly_retrospective(december, [], date(2024, 1, 15))

    assert retro.month == date(2023, 12, 1)
    assert retro.total_expense == Decimal("80")


def test_expenses_by_card():
    cards = [
        CreditCard(
            id="nu", nickname="Nubank", card_brand="Mastercard", closing_day=10, due_day=5,
            limit=Decimal("1000"), created_at=CREATED,
        ),
        CreditCard(
            id="inter", nickname="", card_brand="Visa", closing_day=10, due_day=5,
            limit=Decimal("1000"), created_at=CREATED,
        ),
    ]
    transactions = [
        _txn("a", TransactionType.EXPENSE, "50", datetime(2024, 2, 3), card_id="nu"),
        _txn("b", TransactionType.EXPENSE, "70", datetime(2024, 2, 4), card_id="nu"),
        _txn("c", TransactionType.EXPENSE, "200", datetime(2024, 2, 5), card_id="inter"),
        _txn("d", TransactionType.EXPENSE, "999", datetime(2024, 2, 6)),
    ]

    groups = expenses_by_card(transactions, cards, TODAY)

    assert [(g.name, g.amount, g.count) for g in groups] == [
        ("Visa", Decimal("200"), 1),
        ("Nubank", Decimal("120"), 2),
    ]


def test_expenses_by_member():
    members = [FamilyMember(id="m1", name="Ana", created_at=CREATED)]
    transactions = [
        _txn("a", TransactionType.EXPENSE, "50", datetime(2024, 2, 3), assigned_to="m1"),
        _txn("b", TransactionType.EXPENSE, "70", datetime(2024, 2, 4)),
        _txn("c", TransactionType.EXPENSE, "30", datetime(2024, 2, 5), assigned_to="removido"),
    ]

    groups = expenses_by_member(transactions, members, TODAY)

    assert [(g.name, g.amount, g.count) for g in groups] == [
        (UNASSIGNED, Decimal("100"), 2),
        ("Ana", Decimal("50"), 1),
    ]


def test_spending_patterns(february):
    patterns = spending_patterns(february, TODAY)

    # February 10th 2024 is a Saturday, the 12th and 26th are Mondays
    assert [(g.name, g.amount, g.count) for g in patterns.by_weekday] == [
        ("Seg", Decimal("400"), 2),
        ("Ter", Decimal("200"), 1),
        ("Sáb", Decimal("1000"), 2),
    ]
    assert [(g.name, g.amount) for g in patterns.by_week] == [
        ("Semana 2", Decimal("1300")),
        ("Semana 3", Decimal("200")),
        ("Semana 4", Decimal("100")),
    ]
    assert patterns.average_per_day == Decimal("55.17")
