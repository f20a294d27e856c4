"""Shared pytest fixtures for famfin tests."""

import os
import tempfile
from datetime import datetime
from decimal import Decimal

import pytest

from famfin.database.factories import create_sqlite_database
from famfin.domain.account import AccountService
from famfin.domain.card import CreditCardService
from famfin.domain.category import CategoryService
from famfin.domain.emergency_fund import EmergencyFundService
from famfin.domain.entities import ExpenseType, TransactionType
from famfin.domain.family import FamilyService
from famfin.domain.goal import GoalService
from famfin.domain.invoice import InvoiceService
from famfin.domain.projection import ProjectionService
from famfin.domain.transaction import TransactionService

NOW = datetime(2024, 3, 20, 10, 0)
USER = "user-1"


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def now():
    """The fixed current time every service sees."""
    return NOW


@pytest.fixture
def clock(now):
    return lambda: now


@pytest.fixture
def user_id():
    return USER


@pytest.fixture
def account_service(temp_db, clock):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db, clock)


@pytest.fixture
def category_service(temp_db, clock):
    return CategoryService(temp_db, clock)


@pytest.fixture
def card_service(temp_db, clock):
    return CreditCardService(temp_db, clock)


@pytest.fixture
def transaction_service(temp_db, clock):
    """Create a TransactionService with a temporary database."""
    return TransactionService(temp_db, clock)


@pytest.fixture
def invoice_service(temp_db, clock):
    return InvoiceService(temp_db, clock)


@pytest.fixture
def goal_service(temp_db, clock):
    return GoalService(temp_db, clock)


@pytest.fixture
def emergency_service(temp_db, clock):
    return EmergencyFundService(temp_db, clock)


@pytest.fixture
def projection_service(temp_db, clock):
    return ProjectionService(temp_db, clock)


@pytest.fixture
def family_service(temp_db, clock):
    return FamilyService(temp_db, clock)


@pytest.fixture
def sample_account(account_service, user_id):
    """Create a bank account holding 1000.00."""
    account_id = account_service.create_account(user_id, "Conta Corrente", initial_balance=Decimal("1000"))
    return account_service.get_account(user_id, account_id)


@pytest.fixture
def sample_card(card_service, user_id):
    """Create a card closing on day 10 and due on day 5."""
    card_id = card_service.create_card(user_id, "Nubank", "Mastercard", closing_day=10, due_day=5)
    return card_service.get_card(user_id, card_id)


@pytest.fixture
def add_card_purchase(transaction_service, user_id, sample_account, sample_card):
    """Return a helper recording a cash purchase on the sample card."""

    def add(amount, date, description="Compra"):
        return transaction_service.create_transaction(
            user_id,
            transaction_type=TransactionType.EXPENSE,
            amount=Decimal(amount),
            description=description,
            category_id="cat-food",
            account_id=sample_account.id,
            date=date,
            expense_type=ExpenseType.CASH,
            card_id=sample_card.id,
        )[0]

    return add


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
