"""SQLAlchemy models for the famfin database.

Column names follow the stored document field names (camelCase), instants are
epoch milliseconds and invoice months are 0-based, so rows map one-to-one onto
exported documents.
"""

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import Session, declarative_base, relationship, sessionmaker

Base = declarative_base()

MONEY = Numeric(14, 2)


class Account(Base):
    """Account model."""

    __tablename__ = "accounts"

    id = Column(String, primary_key=True)
    user_id = Column("userId", String, nullable=False, index=True)
    name = Column(String, nullable=False)
    account_type = Column("type", String, nullable=False)
    initial_balance = Column("initialBalance", MONEY, nullable=False)
    current_balance = Column("currentBalance", MONEY, nullable=False)
    color = Column(String, nullable=False)
    icon = Column(String, nullable=False)
    is_active = Column("isActive", Boolean, default=True, nullable=False)
    include_in_total = Column("includeInTotal", Boolean, default=True, nullable=False)
    created_at = Column("createdAt", BigInteger, nullable=False)


class Category(Base):
    """Category model."""

    __tablename__ = "categories"

    id = Column(String, primary_key=True)
    user_id = Column("userId", String, nullable=False, index=True)
    name = Column(String, nullable=False)
    category_type = Column("type", String, nullable=False)
    icon = Column(String, nullable=False)
    color = Column(String, nullable=False)
    monthly_budget = Column("monthlyBudget", MONEY, nullable=True)
    is_archived = Column("isArchived", Boolean, default=False, nullable=False)
    created_at = Column("createdAt", BigInteger, nullable=False)


class CreditCard(Base):
    """Credit card model."""

    __tablename__ = "creditCards"

    id = Column(String, primary_key=True)
    user_id = Column("userId", String, nullable=False, index=True)
    nickname = Column(String, nullable=False)
    card_brand = Column("cardBrand", String, nullable=False)
    last_four_digits = Column("lastFourDigits", String, nullable=False, default="")
    closing_day = Column("closingDay", Integer, nullable=False)
    due_day = Column("dueDay", Integer, nullable=False)
    limit = Column(MONEY, nullable=False)
    color = Column(String, nullable=False)
    is_active = Column("isActive", Boolean, default=True, nullable=False)
    created_at = Column("createdAt", BigInteger, nullable=False)


class Transaction(Base):
    """Transaction model."""

    __tablename__ = "transactions"

    id = Column(String, primary_key=True)
    user_id = Column("userId", String, nullable=False, index=True)
    transaction_type = Column("type", String, nullable=False)
    amount = Column(MONEY, nullable=False)
    description = Column(String, nullable=False, default="")
    category_id = Column("categoryId", String, nullable=False)
    account_id = Column("accountId", String, nullable=False, index=True)
    date = Column(BigInteger, nullable=False, index=True)
    is_paid = Column("isPaid", Boolean, default=False, nullable=False)
    notes = Column(String, nullable=True)
    assigned_to = Column("assignedTo", String, nullable=True)
    is_recurring = Column("isRecurring", Boolean, default=False, nullable=False)
    recurrence_day = Column("recurrenceDay", Integer, nullable=True)
    recurrence_type = Column("recurrenceType", String, nullable=True)
    expense_type = Column("expenseType", String, nullable=True)
    card_id = Column("cardId", String, nullable=True, index=True)
    installments = Column(Integer, nullable=True)
    current_installment = Column("currentInstallment", Integer, nullable=True)
    installment_id = Column("installmentId", String, nullable=True, index=True)
    due_date = Column("dueDate", BigInteger, nullable=True)
    purchase_date = Column("purchaseDate", BigInteger, nullable=True)
    value_history = Column("valueHistory", String, nullable=True)
    first_due_date = Column("firstDueDate", BigInteger, nullable=True)
    down_payment_amount = Column("downPaymentAmount", MONEY, nullable=True)
    to_account_id = Column("toAccountId", String, nullable=True)
    created_at = Column("createdAt", BigInteger, nullable=False)


class Invoice(Base):
    """Credit card invoice model."""

    __tablename__ = "invoices"

    id = Column(String, primary_key=True)
    user_id = Column("userId", String, nullable=False, index=True)
    card_id = Column("cardId", String, nullable=False, index=True)
    month = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    closing_date = Column("closingDate", BigInteger, nullable=False)
    due_date = Column("dueDate", BigInteger, nullable=False)
    total_amount = Column("totalAmount", MONEY, nullable=False)
    is_paid = Column("isPaid", Boolean, default=False, nullable=False)
    paid_date = Column("paidDate", BigInteger, nullable=True)
    paid_from_account_id = Column("paidFromAccountId", String, nullable=True)
    payment_transaction_id = Column("paymentTransactionId", String, nullable=True)
    created_at = Column("createdAt", BigInteger, nullable=False)

    __table_args__ = (
        UniqueConstraint("userId", "cardId", "month", "year", name="uq_invoice_period"),
    )

    # Relationships
    members = relationship(
        "InvoiceMember",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceMember.position",
    )


class InvoiceMember(Base):
    """Ordered membership of a transaction in an invoice."""

    __tablename__ = "invoice_transactions"

    invoice_id = Column("invoiceId", String, ForeignKey("invoices.id"), primary_key=True)
    position = Column(Integer, primary_key=True)
    transaction_id = Column("transactionId", String, nullable=False, index=True)

    # Relationships
    invoice = relationship("Invoice", back_populates="members")


class Goal(Base):
    """Savings goal model."""

    __tablename__ = "goals"

    id = Column(String, primary_key=True)
    user_id = Column("userId", String, nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    category = Column(String, nullable=False)
    target_amount = Column("targetAmount", MONEY, nullable=False)
    current_amount = Column("currentAmount", MONEY, nullable=False)
    deadline = Column(BigInteger, nullable=False)
    icon = Column(String, nullable=True)
    color = Column(String, nullable=True)
    status = Column(String, nullable=False)
    completed_at = Column("completedAt", BigInteger, nullable=True)
    is_emergency_fund = Column("isEmergencyFund", Boolean, default=False, nullable=False)
    bank_name = Column("bankName", String, nullable=True)
    account_info = Column("accountInfo", String, nullable=True)
    created_at = Column("createdAt", BigInteger, nullable=False)
    updated_at = Column("updatedAt", BigInteger, nullable=False)

    # Relationships
    contributions = relationship(
        "GoalContribution",
        back_populates="goal",
        cascade="all, delete-orphan",
        order_by="GoalContribution.position",
    )


class GoalContribution(Base):
    """Ordered contribution entry of a goal."""

    __tablename__ = "goal_contributions"

    goal_id = Column("goalId", String, ForeignKey("goals.id"), primary_key=True)
    position = Column(Integer, primary_key=True)
    id = Column(String, nullable=False)
    amount = Column(MONEY, nullable=False)
    date = Column(BigInteger, nullable=False)
    note = Column(String, nullable=True)

    # Relationships
    goal = relationship("Goal", back_populates="contributions")


class FamilyMember(Base):
    """Family member model."""

    __tablename__ = "family"

    id = Column(String, primary_key=True)
    user_id = Column("userId", String, nullable=False, index=True)
    name = Column(String, nullable=False)
    is_active = Column("isActive", Boolean, default=True, nullable=False)
    created_at = Column("createdAt", BigInteger, nullable=False)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
