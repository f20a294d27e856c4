"""Tests for document export and import."""

from datetime import datetime
from decimal import Decimal

import pytest

from famfin.database.documents import (
    document_key,
    export_namespace,
    from_document,
    import_namespace,
    to_document,
)
from famfin.database.factories import create_sqlite_database
from famfin.domain.entities import ExpenseType, GoalCategory, Transaction, TransactionType
from famfin.domain.errors import ValidationError
from famfin.utils.timestamps import to_millis


@pytest.fixture
def other_db(tmp_path):
    db = create_sqlite_database(database_path=str(tmp_path / "copy.db"))
    db.connect()
    db.initialize_schema()
    yield db
    db.disconnect()


@pytest.fixture
def populated(
    account_service,
    transaction_service,
    invoice_service,
    goal_service,
    family_service,
    add_card_purchase,
    user_id,
    sample_account,
    sample_card,
    now,
):
    add_card_purchase("100", datetime(2024, 3, 2, 12, 0))
    invoice_service.generate_invoice(user_id, sample_card.id, 2, 2024)
    transaction_service.create_transaction(
        user_id,
        transaction_type=TransactionType.EXPENSE,
        amount=Decimal("89.90"),
        description="Internet",
        category_id="internet",
        account_id=sample_account.id,
        date=datetime(2024, 3, 5, 12, 0),
        expense_type=ExpenseType.FIXED,
        is_recurring=True,
        due_date=datetime(2024, 3, 10, 12, 0),
    )
    goal_id = goal_service.create_goal(user_id, "Viagem", Decimal("3000"), now, category=GoalCategory.TRAVEL)
    goal_service.add_contribution(user_id, goal_id, Decimal("250"), note="Primeira")
    family_service.add_member(user_id, "Ana")


def test_document_keys():
    assert document_key("transaction_type") == "type"
    assert document_key("is_paid") == "isPaid"
    assert document_key("last_four_digits") == "lastFourDigits"
    assert document_key("amount") == "amount"


def test_to_document_omits_nulls():
    txn = Transaction(
        id="t1",
        transaction_type=TransactionType.INCOME,
        amount=Decimal("10.50"),
        description="Pix",
        category_id="outros",
        account_id="a1",
        date=datetime(2024, 3, 5, 12, 0),
        is_paid=True,
        created_at=datetime(2024, 3, 5, 12, 0),
    )

    document = to_document(txn)

    assert document["type"] == "income"
    assert document["amount"] == 10.5
    assert document["date"] == to_millis(datetime(2024, 3, 5, 12, 0))
    assert "cardId" not in document
    assert "valueHistory" not in document
    assert "id" not in document
    assert from_document(Transaction, "t1", document) == txn


def test_from_document_requires_fields():
    with pytest.raises(ValidationError, match="missing required field 'amount'"):
        from_document(Transaction, "t1", {"type": "income"})


def test_from_document_rejects_bad_values():
    document = {
        "type": "gift",
        "amount": 1,
        "description": "x",
        "categoryId": "c",
        "accountId": "a",
        "date": 0,
        "isPaid": True,
        "createdAt": 0,
    }
    with pytest.raises(ValidationError, match="invalid 'type'"):
        from_document(Transaction, "t1", document)


def test_export_layout(temp_db, user_id, populated, sample_card):
    data = export_namespace(temp_db, user_id)

    assert set(data) == {"accounts", "creditCards", "transactions", "invoices", "goals", "family"}
    [invoice] = data["invoices"].values()
    assert invoice["month"] == 2
    assert invoice["cardId"] == sample_card.id
    assert invoice["totalAmount"] == 100.0
    [goal] = data["goals"].values()
    assert goal["contributions"][0]["amount"] == 250.0
    assert goal["contributions"][0]["note"] == "Primeira"


def test_export_then_import_into_another_store(temp_db, other_db, user_id, populated):
    data = export_namespace(temp_db, user_id)

    counts = import_namespace(other_db, user_id, data)

    assert counts == {
        "transactions": 2,
        "accounts": 1,
        "creditCards": 1,
        "invoices": 1,
        "goals": 1,
        "family": 1,
    }
    assert other_db.list_transactions(user_id) == temp_db.list_transactions(user_id)
    assert other_db.list_invoices(user_id) == temp_db.list_invoices(user_id)
    assert other_db.list_goals(user_id) == temp_db.list_goals(user_id)
    assert other_db.list_accounts(user_id) == temp_db.list_accounts(user_id)


def test_import_is_atomic(temp_db, user_id):
    data = {
        "family": {"m1": {"name": "Ana", "createdAt": 0}},
        "accounts": {"a1": {"name": "Sem tipo"}},
    }

    with pytest.raises(ValidationError):
        import_namespace(temp_db, user_id, data)

    assert temp_db.list_family_members(user_id) == []


def test_import_rejects_malformed_collection(temp_db, user_id):
    with pytest.raises(ValidationError):
        import_namespace(temp_db, user_id, {"accounts": ["not", "a", "mapping"]})


def test_import_ignores_unknown_collections(temp_db, user_id):
    assert import_namespace(temp_db, user_id, {"budgets": {"b1": {}}}) == {}
