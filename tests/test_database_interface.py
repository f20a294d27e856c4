"""Tests for the Database interface primitives."""

from datetime import datetime
from decimal import Decimal

import pytest

from famfin.database.factories import DB_PATH_ENV, create_sqlite_database, default_database_path
from famfin.domain import entities
from famfin.domain.entities import Collection, Patch, WriteBatch
from famfin.domain.errors import ConflictError, NotFoundError, ValidationError

CREATED = datetime(2024, 3, 1, 9, 30)


def _account(account_id, name="Conta", balance="100"):
    return entities.Account(
        id=account_id,
        name=name,
        account_type=entities.AccountType.BANK,
        initial_balance=Decimal(balance),
        current_balance=Decimal(balance),
        created_at=CREATED,
    )


def _invoice(invoice_id, card_id="card", month=2, year=2024, transaction_ids=("t1", "t2")):
    return entities.Invoice(
        id=invoice_id,
        card_id=card_id,
        month=month,
        year=year,
        closing_date=datetime(2024, 3, 10, 23, 59, 59),
        due_date=datetime(2024, 4, 5, 23, 59, 59),
        total_amount=Decimal("150.75"),
        is_paid=False,
        transaction_ids=transaction_ids,
        created_at=CREATED,
    )


class TestReadsAndWrites:
    """Tests for whole-record writes and reads."""

    def test_put_and_get_returns_domain_model(self, temp_db, user_id):
        temp_db.put(user_id, _account("a1", balance="123.45"))

        account = temp_db.get_account(user_id, "a1")

        assert isinstance(account, entities.Account)
        assert account.current_balance == Decimal("123.45")
        assert account.created_at == CREATED

    def test_put_replaces_existing_record(self, temp_db, user_id):
        temp_db.put(user_id, _account("a1", name="Antes"))
        temp_db.put(user_id, _account("a1", name="Depois"))

        assert [a.name for a in temp_db.list_accounts(user_id)] == ["Depois"]

    def test_records_are_invisible_to_other_users(self, temp_db, user_id):
        temp_db.put(user_id, _account("a1"))

        assert temp_db.get_account("other-user", "a1") is None
        assert temp_db.list_accounts("other-user") == []

    def test_put_cannot_take_over_another_users_id(self, temp_db, user_id):
        temp_db.put(user_id, _account("a1"))

        with pytest.raises(ConflictError):
            temp_db.put("other-user", _account("a1"))

    def test_invoice_keeps_member_order(self, temp_db, user_id):
        temp_db.put(user_id, _invoice("i1", transaction_ids=("t3", "t1", "t2")))

        invoice = temp_db.get_invoice(user_id, "i1")

        assert invoice.transaction_ids == ("t3", "t1", "t2")
        assert temp_db.find_invoice_for_transaction(user_id, "t1").id == "i1"
        assert temp_db.find_invoice_for_transaction(user_id, "t9") is None

    def test_goal_keeps_contributions(self, temp_db, user_id):
        contributions = (
            entities.Contribution(id="c1", amount=Decimal("50"), date=CREATED, note="Primeira"),
            entities.Contribution(id="c2", amount=Decimal("-20"), date=CREATED),
        )
        goal = entities.Goal(
            id="g1",
            name="Reserva",
            category=entities.GoalCategory.EMERGENCY,
            target_amount=Decimal("1000"),
            current_amount=Decimal("30"),
            deadline=datetime(2025, 1, 1),
            status=entities.GoalStatus.ACTIVE,
            created_at=CREATED,
            updated_at=CREATED,
            contributions=contributions,
        )
        temp_db.put(user_id, goal)

        assert temp_db.get_goal(user_id, "g1").contributions == contributions

    def test_transaction_keeps_value_history(self, temp_db, user_id):
        txn = entities.Transaction(
            id="t1",
            transaction_type=entities.TransactionType.EXPENSE,
            amount=Decimal("120"),
            description="Luz",
            category_id="casa",
            account_id="a1",
            date=CREATED,
            is_paid=False,
            created_at=CREATED,
            expense_type=entities.ExpenseType.FIXED,
            value_history=(Decimal("100"), Decimal("110")),
        )
        temp_db.put(user_id, txn)

        stored = temp_db.get_transaction(user_id, "t1")
        assert stored.value_history == (Decimal("100"), Decimal("110"))
        assert stored.expense_type == entities.ExpenseType.FIXED
        assert stored.card_id is None


class TestPatchAndDelete:
    """Tests for field patches and removals."""

    def test_patch_updates_named_fields_only(self, temp_db, user_id):
        temp_db.put(user_id, _account("a1", name="Conta"))

        temp_db.patch(user_id, Patch(Collection.ACCOUNTS, "a1", {"current_balance": Decimal("42")}))

        account = temp_db.get_account(user_id, "a1")
        assert account.current_balance == Decimal("42")
        assert account.initial_balance == Decimal("100")
        assert account.name == "Conta"

    def test_patch_missing_record(self, temp_db, user_id):
        with pytest.raises(NotFoundError):
            temp_db.patch(user_id, Patch(Collection.ACCOUNTS, "missing", {"name": "X"}))

    def test_patch_immutable_field(self, temp_db, user_id):
        temp_db.put(user_id, _invoice("i1"))

        with pytest.raises(ValidationError):
            temp_db.patch(user_id, Patch(Collection.INVOICES, "i1", {"transaction_ids": ("t9",)}))

    def test_patch_unknown_field(self, temp_db, user_id):
        temp_db.put(user_id, _account("a1"))

        with pytest.raises(ValidationError):
            temp_db.patch(user_id, Patch(Collection.ACCOUNTS, "a1", {"nickname": "X"}))

    def test_patch_can_clear_a_field(self, temp_db, user_id):
        temp_db.put(user_id, _invoice("i1"))
        temp_db.patch(
            user_id, Patch(Collection.INVOICES, "i1", {"is_paid": True, "paid_date": CREATED})
        )
        temp_db.patch(user_id, Patch(Collection.INVOICES, "i1", {"is_paid": False, "paid_date": None}))

        invoice = temp_db.get_invoice(user_id, "i1")
        assert not invoice.is_paid
        assert invoice.paid_date is None

    def test_delete(self, temp_db, user_id):
        temp_db.put(user_id, _account("a1"))

        temp_db.delete(user_id, Collection.ACCOUNTS, "a1")

        assert temp_db.get_account(user_id, "a1") is None
        with pytest.raises(NotFoundError):
            temp_db.delete(user_id, Collection.ACCOUNTS, "a1")

    def test_delete_from_other_namespace_is_not_found(self, temp_db, user_id):
        temp_db.put(user_id, _account("a1"))

        with pytest.raises(NotFoundError):
            temp_db.delete("other-user", Collection.ACCOUNTS, "a1")
        assert temp_db.get_account(user_id, "a1") is not None


class TestCommit:
    """Tests for atomic multi-record commits."""

    def test_commit_applies_all_writes(self, temp_db, user_id):
        temp_db.put(user_id, _account("a1"))
        batch = (
            WriteBatch()
            .put(_account("a2", name="Poupança"))
            .patch(Collection.ACCOUNTS, "a1", current_balance=Decimal("0"))
        )
        assert len(batch) == 2

        temp_db.commit(user_id, batch)

        assert temp_db.get_account(user_id, "a1").current_balance == Decimal("0")
        assert temp_db.get_account(user_id, "a2") is not None

    def test_failed_commit_writes_nothing(self, temp_db, user_id):
        batch = (
            WriteBatch()
            .put(_account("a1"))
            .patch(Collection.ACCOUNTS, "missing", current_balance=Decimal("0"))
        )

        with pytest.raises(NotFoundError):
            temp_db.commit(user_id, batch)

        assert temp_db.list_accounts(user_id) == []

    def test_duplicate_invoice_period_conflicts(self, temp_db, user_id):
        temp_db.put(user_id, _invoice("i1"))

        with pytest.raises(ConflictError):
            temp_db.put(user_id, _invoice("i2", transaction_ids=("t3",)))

        assert [inv.id for inv in temp_db.list_invoices(user_id)] == ["i1"]

    def test_new_ids_are_unique(self, temp_db):
        assert temp_db.new_id() != temp_db.new_id()


class TestDatabaseFactory:
    """Tests for locating the ledger file."""

    def test_environment_path(self, tmp_path, monkeypatch):
        path = tmp_path / "familia" / "ledger.db"
        monkeypatch.setenv(DB_PATH_ENV, str(path))

        db = create_sqlite_database()

        assert default_database_path() == path
        assert db.database_url == f"sqlite:///{path}"
        assert path.parent.is_dir()

    def test_explicit_path_wins(self, tmp_path, monkeypatch):
        monkeypatch.setenv(DB_PATH_ENV, str(tmp_path / "env.db"))
        path = tmp_path / "explicit.db"

        db = create_sqlite_database(str(path))

        assert db.database_url == f"sqlite:///{path}"
