"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic: instants become epoch milliseconds,
enums become their stored strings and ordered child collections become
positioned rows.
"""

from decimal import Decimal
from typing import Any, Callable, Optional

from famfin.domain import entities as domain
from famfin.database.models import (
    Account as ORMAccount,
    Category as ORMCategory,
    CreditCard as ORMCreditCard,
    FamilyMember as ORMFamilyMember,
    Goal as ORMGoal,
    GoalContribution as ORMGoalContribution,
    Invoice as ORMInvoice,
    InvoiceMember as ORMInvoiceMember,
    Transaction as ORMTransaction,
)
from famfin.utils.timestamps import (
    from_millis,
    optional_from_millis,
    optional_to_millis,
    to_millis,
)


def _optional_enum(enum_type: type, value: Optional[str]) -> Any:
    return None if value is None else enum_type(value)


def _enum_value(value: Any) -> Any:
    return value.value if hasattr(value, "value") else value


def encode_value_history(history: tuple[Decimal, ...]) -> Optional[str]:
    """Store a value history as a comma-separated string."""
    if not history:
        return None
    return ",".join(str(value) for value in history)


def decode_value_history(raw: Optional[str]) -> tuple[Decimal, ...]:
    if not raw:
        return ()
    return tuple(Decimal(part) for part in raw.split(","))


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        name=orm_account.name,
        account_type=domain.AccountType(orm_account.account_type),
        initial_balance=Decimal(orm_account.initial_balance),
        current_balance=Decimal(orm_account.current_balance),
        created_at=from_millis(orm_account.created_at),
        color=orm_account.color,
        icon=orm_account.icon,
        is_active=orm_account.is_active,
        include_in_total=orm_account.include_in_total,
    )


def account_to_orm(account: domain.Account, user_id: str) -> ORMAccount:
    """Convert domain Account entity to SQLAlchemy Account model."""
    return ORMAccount(
        id=account.id,
        user_id=user_id,
        name=account.name,
        account_type=account.account_type.value,
        initial_balance=account.initial_balance,
        current_balance=account.current_balance,
        color=account.color,
        icon=account.icon,
        is_active=account.is_active,
        include_in_total=account.include_in_total,
        created_at=to_millis(account.created_at),
    )


def category_to_domain(orm_category: ORMCategory) -> domain.Category:
    """Convert SQLAlchemy Category model to domain Category entity."""
    return domain.Category(
        id=orm_category.id,
        name=orm_category.name,
        category_type=domain.CategoryType(orm_category.category_type),
        created_at=from_millis(orm_category.created_at),
        icon=orm_category.icon,
        color=orm_category.color,
        monthly_budget=(
            Decimal(orm_category.monthly_budget) if orm_category.monthly_budget is not None else None
        ),
        is_archived=orm_category.is_archived,
    )


def category_to_orm(category: domain.Category, user_id: str) -> ORMCategory:
    """Convert domain Category entity to SQLAlchemy Category model."""
    return ORMCategory(
        id=category.id,
        user_id=user_id,
        name=category.name,
        category_type=category.category_type.value,
        icon=category.icon,
        color=category.color,
        monthly_budget=category.monthly_budget,
        is_archived=category.is_archived,
        created_at=to_millis(category.created_at),
    )


def credit_card_to_domain(orm_card: ORMCreditCard) -> domain.CreditCard:
    """Convert SQLAlchemy CreditCard model to domain CreditCard entity."""
    return domain.CreditCard(
        id=orm_card.id,
        nickname=orm_card.nickname,
        card_brand=orm_card.card_brand,
        closing_day=orm_card.closing_day,
        due_day=orm_card.due_day,
        limit=Decimal(orm_card.limit),
        created_at=from_millis(orm_card.created_at),
        last_four_digits=orm_card.last_four_digits,
        color=orm_card.color,
        is_active=orm_card.is_active,
    )


def credit_card_to_orm(card: domain.CreditCard, user_id: str) -> ORMCreditCard:
    """Convert domain CreditCard entity to SQLAlchemy CreditCard model."""
    return ORMCreditCard(
        id=card.id,
        user_id=user_id,
        nickname=card.nickname,
        card_brand=card.card_brand,
        last_four_digits=card.last_four_digits,
        closing_day=card.closing_day,
        due_day=card.due_day,
        limit=card.limit,
        color=card.color,
        is_active=card.is_active,
        created_at=to_millis(card.created_at),
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    return domain.Transaction(
        id=orm_transaction.id,
        transaction_type=domain.TransactionType(orm_transaction.transaction_type),
        amount=Decimal(orm_transaction.amount),
        description=orm_transaction.description,
        category_id=orm_transaction.category_id,
        account_id=orm_transaction.account_id,
        date=from_millis(orm_transaction.date),
        is_paid=orm_transaction.is_paid,
        created_at=from_millis(orm_transaction.created_at),
        notes=orm_transaction.notes,
        assigned_to=orm_transaction.assigned_to,
        is_recurring=orm_transaction.is_recurring,
        recurrence_day=orm_transaction.recurrence_day,
        recurrence_type=_optional_enum(domain.RecurrenceType, orm_transaction.recurrence_type),
        expense_type=_optional_enum(domain.ExpenseType, orm_transaction.expense_type),
        card_id=orm_transaction.card_id,
        installments=orm_transaction.installments,
        current_installment=orm_transaction.current_installment,
        installment_id=orm_transaction.installment_id,
        due_date=optional_from_millis(orm_transaction.due_date),
        purchase_date=optional_from_millis(orm_transaction.purchase_date),
        value_history=decode_value_history(orm_transaction.value_history),
        first_due_date=optional_from_millis(orm_transaction.first_due_date),
        down_payment_amount=(
            Decimal(orm_transaction.down_payment_amount)
            if orm_transaction.down_payment_amount is not None
            else None
        ),
        to_account_id=orm_transaction.to_account_id,
    )


def transaction_to_orm(transaction: domain.Transaction, user_id: str) -> ORMTransaction:
    """Convert domain Transaction entity to SQLAlchemy Transaction model."""
    return ORMTransaction(
        id=transaction.id,
        user_id=user_id,
        transaction_type=transaction.transaction_type.value,
        amount=transaction.amount,
        description=transaction.description,
        category_id=transaction.category_id,
        account_id=transaction.account_id,
        date=to_millis(transaction.date),
        is_paid=transaction.is_paid,
        notes=transaction.notes,
        assigned_to=transaction.assigned_to,
        is_recurring=transaction.is_recurring,
        recurrence_day=transaction.recurrence_day,
        recurrence_type=_enum_value(transaction.recurrence_type),
        expense_type=_enum_value(transaction.expense_type),
        card_id=transaction.card_id,
        installments=transaction.installments,
        current_installment=transaction.current_installment,
        installment_id=transaction.installment_id,
        due_date=optional_to_millis(transaction.due_date),
        purchase_date=optional_to_millis(transaction.purchase_date),
        value_history=encode_value_history(transaction.value_history),
        first_due_date=optional_to_millis(transaction.first_due_date),
        down_payment_amount=transaction.down_payment_amount,
        to_account_id=transaction.to_account_id,
        created_at=to_millis(transaction.created_at),
    )


def invoice_to_domain(orm_invoice: ORMInvoice) -> domain.Invoice:
    """Convert SQLAlchemy Invoice model to domain Invoice entity."""
    return domain.Invoice(
        id=orm_invoice.id,
        card_id=orm_invoice.card_id,
        month=orm_invoice.month,
        year=orm_invoice.year,
        closing_date=from_millis(orm_invoice.closing_date),
        due_date=from_millis(orm_invoice.due_date),
        total_amount=Decimal(orm_invoice.total_amount),
        is_paid=orm_invoice.is_paid,
        transaction_ids=tuple(member.transaction_id for member in orm_invoice.members),
        created_at=from_millis(orm_invoice.created_at),
        paid_date=optional_from_millis(orm_invoice.paid_date),
        paid_from_account_id=orm_invoice.paid_from_account_id,
        payment_transaction_id=orm_invoice.payment_transaction_id,
    )


def invoice_to_orm(invoice: domain.Invoice, user_id: str) -> ORMInvoice:
    """Convert domain Invoice entity to SQLAlchemy Invoice model."""
    return ORMInvoice(
        id=invoice.id,
        user_id=user_id,
        card_id=invoice.card_id,
        month=invoice.month,
        year=invoice.year,
        closing_date=to_millis(invoice.closing_date),
        due_date=to_millis(invoice.due_date),
        total_amount=invoice.total_amount,
        is_paid=invoice.is_paid,
        paid_date=optional_to_millis(invoice.paid_date),
        paid_from_account_id=invoice.paid_from_account_id,
        payment_transaction_id=invoice.payment_transaction_id,
        created_at=to_millis(invoice.created_at),
        members=[
            ORMInvoiceMember(position=position, transaction_id=transaction_id)
            for position, transaction_id in enumerate(invoice.transaction_ids)
        ],
    )


def contribution_to_domain(orm_contribution: ORMGoalContribution) -> domain.Contribution:
    """Convert SQLAlchemy GoalContribution model to domain Contribution."""
    return domain.Contribution(
        id=orm_contribution.id,
        amount=Decimal(orm_contribution.amount),
        date=from_millis(orm_contribution.date),
        note=orm_contribution.note,
    )


def contributions_to_orm(contributions: tuple[domain.Contribution, ...]) -> list[ORMGoalContribution]:
    """Convert an ordered contribution list to positioned rows."""
    return [
        ORMGoalContribution(
            position=position,
            id=contribution.id,
            amount=contribution.amount,
            date=to_millis(contribution.date),
            note=contribution.note,
        )
        for position, contribution in enumerate(contributions)
    ]


def goal_to_domain(orm_goal: ORMGoal) -> domain.Goal:
    """Convert SQLAlchemy Goal model to domain Goal entity."""
    return domain.Goal(
        id=orm_goal.id,
        name=orm_goal.name,
        category=domain.GoalCategory(orm_goal.category),
        target_amount=Decimal(orm_goal.target_amount),
        current_amount=Decimal(orm_goal.current_amount),
        deadline=from_millis(orm_goal.deadline),
        status=domain.GoalStatus(orm_goal.status),
        created_at=from_millis(orm_goal.created_at),
        updated_at=from_millis(orm_goal.updated_at),
        contributions=tuple(contribution_to_domain(c) for c in orm_goal.contributions),
        description=orm_goal.description,
        icon=orm_goal.icon,
        color=orm_goal.color,
        completed_at=optional_from_millis(orm_goal.completed_at),
        is_emergency_fund=orm_goal.is_emergency_fund,
        bank_name=orm_goal.bank_name,
        account_info=orm_goal.account_info,
    )


def goal_to_orm(goal: domain.Goal, user_id: str) -> ORMGoal:
    """Convert domain Goal entity to SQLAlchemy Goal model."""
    return ORMGoal(
        id=goal.id,
        user_id=user_id,
        name=goal.name,
        description=goal.description,
        category=goal.category.value,
        target_amount=goal.target_amount,
        current_amount=goal.current_amount,
        deadline=to_millis(goal.deadline),
        icon=goal.icon,
        color=goal.color,
        status=goal.status.value,
        completed_at=optional_to_millis(goal.completed_at),
        is_emergency_fund=goal.is_emergency_fund,
        bank_name=goal.bank_name,
        account_info=goal.account_info,
        created_at=to_millis(goal.created_at),
        updated_at=to_millis(goal.updated_at),
        contributions=contributions_to_orm(goal.contributions),
    )


def family_member_to_domain(orm_member: ORMFamilyMember) -> domain.FamilyMember:
    """Convert SQLAlchemy FamilyMember model to domain FamilyMember entity."""
    return domain.FamilyMember(
        id=orm_member.id,
        name=orm_member.name,
        created_at=from_millis(orm_member.created_at),
        is_active=orm_member.is_active,
    )


def family_member_to_orm(member: domain.FamilyMember, user_id: str) -> ORMFamilyMember:
    """Convert domain FamilyMember entity to SQLAlchemy FamilyMember model."""
    return ORMFamilyMember(
        id=member.id,
        user_id=user_id,
        name=member.name,
        is_active=member.is_active,
        created_at=to_millis(member.created_at),
    )


ORM_MODELS: dict[domain.Collection, type] = {
    domain.Collection.ACCOUNTS: ORMAccount,
    domain.Collection.CATEGORIES: ORMCategory,
    domain.Collection.CREDIT_CARDS: ORMCreditCard,
    domain.Collection.TRANSACTIONS: ORMTransaction,
    domain.Collection.INVOICES: ORMInvoice,
    domain.Collection.GOALS: ORMGoal,
    domain.Collection.FAMILY: ORMFamilyMember,
}

TO_ORM: dict[type, Callable[[Any, str], Any]] = {
    domain.Account: account_to_orm,
    domain.Category: category_to_orm,
    domain.CreditCard: credit_card_to_orm,
    domain.Transaction: transaction_to_orm,
    domain.Invoice: invoice_to_orm,
    domain.Goal: goal_to_orm,
    domain.FamilyMember: family_member_to_orm,
}

# Entity fields whose stored form differs from the domain value. Fields not
# listed here are stored as-is (after unwrapping enums).
_INSTANT_FIELDS = {
    "created_at",
    "updated_at",
    "date",
    "due_date",
    "purchase_date",
    "first_due_date",
    "closing_date",
    "paid_date",
    "deadline",
    "completed_at",
}


def patch_value_to_orm(field_name: str, value: Any) -> Any:
    """Convert a patched domain value into its stored column value."""
    if value is None:
        return None
    if field_name in _INSTANT_FIELDS:
        return to_millis(value)
    if field_name == "value_history":
        return encode_value_history(tuple(value))
    return _enum_value(value)
