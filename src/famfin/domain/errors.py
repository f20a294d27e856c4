"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class PreconditionFailedError(DomainError):
    """Operation not allowed in the current state of the entity."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class StorageError(DomainError):
    """Underlying store read or write failed. Never retried."""


def account_not_found(account_id: str) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def card_not_found(card_id: str) -> str:
    """Return message for missing credit card."""
    return f"Credit card {card_id} not found"


def category_not_found(category_id: str) -> str:
    """Return message for missing category."""
    return f"Category {category_id} not found"


def transaction_not_found(transaction_id: str) -> str:
    """Return message for missing transaction."""
    return f"Transaction {transaction_id} not found"


def invoice_not_found(invoice_id: str) -> str:
    """Return message for missing invoice."""
    return f"Invoice {invoice_id} not found"


def goal_not_found(goal_id: str) -> str:
    """Return message for missing goal."""
    return f"Goal {goal_id} not found"


def no_pending_transactions(card_id: str) -> str:
    """Return message when a card has nothing to bill."""
    return f"No pending transactions for card {card_id}"


def invoice_already_paid(invoice_id: str) -> str:
    """Return message when settling an invoice twice."""
    return f"Invoice {invoice_id} is already paid"


def paid_invoice_delete_blocked(invoice_id: str) -> str:
    """Return message when deleting a settled invoice."""
    return f"Cannot delete invoice {invoice_id}: it has already been paid"


def duplicate_invoice(card_id: str, month: int, year: int) -> str:
    """Return message for a second invoice in the same billing period."""
    return f"Invoice for card {card_id} in {year}-{month + 1:02d} already exists"


def insufficient_balance(account_name: str) -> str:
    """Return message when an account cannot cover a debit."""
    return f"Insufficient balance in account '{account_name}'"


def transaction_in_invoice(transaction_id: str, invoice_id: str) -> str:
    """Return message when a billed transaction would be modified."""
    return f"Transaction {transaction_id} belongs to invoice {invoice_id} and cannot be changed"
