"""Posting rule shared by incremental balance updates and recalculation."""

from collections import defaultdict
from decimal import Decimal
from typing import Iterable, Mapping

from famfin.database.base import Database
from famfin.domain.entities import Collection, Transaction, TransactionType, WriteBatch
from famfin.domain.errors import NotFoundError, account_not_found


def posting_effects(transaction: Transaction) -> list[tuple[str, Decimal]]:
    """Return the balance changes a transaction applies to accounts.

    Only paid transactions without a card post. Card charges reach an
    account through the settlement transaction of their invoice.
    """
    if not transaction.is_paid or transaction.is_card_charge:
        return []
    amount = transaction.amount
    if transaction.transaction_type == TransactionType.INCOME:
        return [(transaction.account_id, amount)]
    if transaction.transaction_type == TransactionType.TRANSFER:
        effects = [(transaction.account_id, -amount)]
        if transaction.to_account_id:
            effects.append((transaction.to_account_id, amount))
        return effects
    return [(transaction.account_id, -amount)]


def net_effects(
    applied: Iterable[Transaction] = (),
    reversed_: Iterable[Transaction] = (),
) -> dict[str, Decimal]:
    """Sum posting effects per account, undoing those of ``reversed_``."""
    totals: dict[str, Decimal] = defaultdict(Decimal)
    for transaction in applied:
        for account_id, delta in posting_effects(transaction):
            totals[account_id] += delta
    for transaction in reversed_:
        for account_id, delta in posting_effects(transaction):
            totals[account_id] -= delta
    return {account_id: delta for account_id, delta in totals.items() if delta}


def stage_balance_changes(
    db: Database,
    user_id: str,
    batch: WriteBatch,
    deltas: Mapping[str, Decimal],
) -> WriteBatch:
    """Add account balance patches for ``deltas`` to a write batch.

    Raises:
        NotFoundError: If an affected account does not exist
    """
    for account_id, delta in deltas.items():
        account = db.get_account(user_id, account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        batch.patch(
            Collection.ACCOUNTS,
            account_id,
            current_balance=account.current_balance + delta,
        )
    return batch


def replay_balance(initial_balance: Decimal, account_id: str, transactions: Iterable[Transaction]) -> Decimal:
    """Rebuild an account balance from its initial value and posted history."""
    balance = initial_balance
    for transaction in transactions:
        for affected_id, delta in posting_effects(transaction):
            if affected_id == account_id:
                balance += delta
    return balance
