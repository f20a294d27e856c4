"""Utilities for resolving record names to IDs."""

from typing import Callable, Iterable, Optional

from famfin.database.base import Database
from famfin.domain.entities import CategoryType
from famfin.domain.errors import NotFoundError


def _matches(records: Iterable, ref: str, name_of: Callable) -> list:
    """Records whose ID equals ``ref``, else those whose name matches it.

    Names are compared case-insensitively.
    """
    records = list(records)
    by_id = [record for record in records if record.id == ref]
    if by_id:
        return by_id
    wanted = ref.strip().lower()
    return [record for record in records if name_of(record).lower() == wanted]


def _resolve(records: Iterable, ref: str, label: str, name_of: Callable) -> str:
    found = _matches(records, ref, name_of)
    if len(found) > 1:
        raise NotFoundError(f"{label} '{ref}' is ambiguous; use its ID")
    if not found:
        raise NotFoundError(f"{label} '{ref}' not found")
    return found[0].id


def resolve_account(db: Database, user_id: str, account: str) -> str:
    """Resolve account name or ID to account ID.

    Args:
        db: Database instance
        user_id: Namespace owner
        account: Account name or ID

    Returns:
        Account ID

    Raises:
        NotFoundError: If account is not found or the name is ambiguous
    """
    return _resolve(db.list_accounts(user_id), account, "Account", lambda a: a.name)


def resolve_card(db: Database, user_id: str, card: str) -> str:
    """Resolve card nickname, brand or ID to card ID."""
    return _resolve(db.list_credit_cards(user_id), card, "Credit card", lambda c: c.display_name)


def resolve_category(
    db: Database,
    user_id: str,
    category: str,
    category_type: Optional[CategoryType] = None,
) -> str:
    """Resolve category name or ID to category ID.

    Transactions may carry category ids that have no stored record, such as
    ``default-expense`` or ``reserva-emergencia``; an unknown reference is
    returned unchanged.

    Raises:
        NotFoundError: If the name matches more than one category
    """
    categories = [
        c
        for c in db.list_categories(user_id)
        if category_type is None or c.category_type == category_type
    ]
    found = _matches(categories, category, lambda c: c.name)
    if len(found) > 1:
        raise NotFoundError(f"Category '{category}' is ambiguous; use its ID")
    return found[0].id if found else category


def resolve_goal(db: Database, user_id: str, goal: str) -> str:
    """Resolve goal name or ID to goal ID."""
    return _resolve(db.list_goals(user_id), goal, "Goal", lambda g: g.name)


def resolve_member(db: Database, user_id: str, member: str) -> str:
    """Resolve family member name or ID to member ID."""
    return _resolve(db.list_family_members(user_id), member, "Family member", lambda m: m.name)
