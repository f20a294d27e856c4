"""Domain model entities for famfin.

These are pure data classes representing business concepts, independent of
the storage schema. Dates are ``datetime`` values and money is ``Decimal``;
the storage layer owns the epoch-millisecond and camelCase encodings.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, Optional


class TransactionType(str, Enum):
    """Direction of a money movement."""

    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"


class ExpenseType(str, Enum):
    """How an expense is charged."""

    FIXED = "fixed"
    CASH = "cash"
    INSTALLMENT = "installment"


class RecurrenceType(str, Enum):
    MONTHLY = "monthly"
    YEARLY = "yearly"


class AccountType(str, Enum):
    CASH = "cash"
    BANK = "bank"
    CREDIT = "credit"
    INVESTMENT = "investment"


class CategoryType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class GoalCategory(str, Enum):
    EMERGENCY = "emergency"
    TRAVEL = "travel"
    HOUSE = "house"
    CAR = "car"
    EDUCATION = "education"
    RETIREMENT = "retirement"
    OTHER = "other"


class GoalStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Collection(str, Enum):
    """Per-user record collections, named as they are persisted."""

    TRANSACTIONS = "transactions"
    ACCOUNTS = "accounts"
    CATEGORIES = "categories"
    CREDIT_CARDS = "creditCards"
    INVOICES = "invoices"
    GOALS = "goals"
    FAMILY = "family"


@dataclass(frozen=True)
class Account:
    """Balance-holding account domain entity."""

    id: str
    name: str
    account_type: AccountType
    initial_balance: Decimal
    current_balance: Decimal
    created_at: datetime
    color: str = "#14b8a6"
    icon: str = "Wallet"
    is_active: bool = True
    include_in_total: bool = True


@dataclass(frozen=True)
class Category:
    """Income or expense category domain entity."""

    id: str
    name: str
    category_type: CategoryType
    created_at: datetime
    icon: str = "Tag"
    color: str = "#64748b"
    monthly_budget: Optional[Decimal] = None
    is_archived: bool = False


@dataclass(frozen=True)
class CreditCard:
    """Credit card billing configuration."""

    id: str
    nickname: str
    card_brand: str
    closing_day: int
    due_day: int
    limit: Decimal
    created_at: datetime
    last_four_digits: str = ""
    color: str = "#64748b"
    is_active: bool = True

    @property
    def display_name(self) -> str:
        return self.nickname or self.card_brand


@dataclass(frozen=True)
class Transaction:
    """A single money movement."""

    id: str
    transaction_type: TransactionType
    amount: Decimal
    description: str
    category_id: str
    account_id: str
    date: datetime
    is_paid: bool
    created_at: datetime
    notes: Optional[str] = None
    assigned_to: Optional[str] = None
    is_recurring: bool = False
    recurrence_day: Optional[int] = None
    recurrence_type: Optional[RecurrenceType] = None
    expense_type: Optional[ExpenseType] = None
    card_id: Optional[str] = None
    installments: Optional[int] = None
    current_installment: Optional[int] = None
    installment_id: Optional[str] = None
    due_date: Optional[datetime] = None
    purchase_date: Optional[datetime] = None
    value_history: tuple[Decimal, ...] = ()
    first_due_date: Optional[datetime] = None
    down_payment_amount: Optional[Decimal] = None
    to_account_id: Optional[str] = None

    @property
    def is_card_charge(self) -> bool:
        return bool(self.card_id)


@dataclass(frozen=True)
class Invoice:
    """Aggregation of a card's pending charges for one billing period.

    ``month`` is 0-based (January = 0) to match the stored encoding.
    """

    id: str
    card_id: str
    month: int
    year: int
    closing_date: datetime
    due_date: datetime
    total_amount: Decimal
    is_paid: bool
    transaction_ids: tuple[str, ...]
    created_at: datetime
    paid_date: Optional[datetime] = None
    paid_from_account_id: Optional[str] = None
    payment_transaction_id: Optional[str] = None


@dataclass(frozen=True)
class Contribution:
    """Deposit into (positive) or withdrawal from (negative) a goal."""

    id: str
    amount: Decimal
    date: datetime
    note: Optional[str] = None


@dataclass(frozen=True)
class Goal:
    """Savings goal domain entity."""

    id: str
    name: str
    category: GoalCategory
    target_amount: Decimal
    current_amount: Decimal
    deadline: datetime
    status: GoalStatus
    created_at: datetime
    updated_at: datetime
    contributions: tuple[Contribution, ...] = ()
    description: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = None
    completed_at: Optional[datetime] = None
    is_emergency_fund: bool = False
    bank_name: Optional[str] = None
    account_info: Optional[str] = None


@dataclass(frozen=True)
class FamilyMember:
    """Person transactions can be attributed to."""

    id: str
    name: str
    created_at: datetime
    is_active: bool = True


Entity = Account | Category | CreditCard | Transaction | Invoice | Goal | FamilyMember

ENTITY_COLLECTIONS: dict[type, Collection] = {
    Account: Collection.ACCOUNTS,
    Category: Collection.CATEGORIES,
    CreditCard: Collection.CREDIT_CARDS,
    Transaction: Collection.TRANSACTIONS,
    Invoice: Collection.INVOICES,
    Goal: Collection.GOALS,
    FamilyMember: Collection.FAMILY,
}


@dataclass(frozen=True)
class Patch:
    """Field-level update of one stored record.

    ``values`` maps entity field names to their new values. Fields not named
    are left untouched; a value of ``None`` clears the field.
    """

    collection: Collection
    record_id: str
    values: Mapping[str, Any]


@dataclass
class WriteBatch:
    """Set of writes applied atomically by ``Database.commit``."""

    records: list[Any] = field(default_factory=list)
    patches: list[Patch] = field(default_factory=list)
    deletions: list[tuple[Collection, str]] = field(default_factory=list)

    def put(self, entity: Any) -> "WriteBatch":
        self.records.append(entity)
        return self

    def patch(self, collection: Collection, record_id: str, **values: Any) -> "WriteBatch":
        self.patches.append(Patch(collection=collection, record_id=record_id, values=values))
        return self

    def delete(self, collection: Collection, record_id: str) -> "WriteBatch":
        self.deletions.append((collection, record_id))
        return self

    def __len__(self) -> int:
        return len(self.records) + len(self.patches) + len(self.deletions)
