"""Credit card domain service."""

from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Optional

from famfin.database.base import Database
from famfin.domain import billing_cycle
from famfin.domain.entities import Collection, CreditCard, WriteBatch
from famfin.domain.errors import NotFoundError, ValidationError, card_not_found

_EDITABLE_FIELDS = {"nickname", "card_brand", "last_four_digits", "closing_day", "due_day", "limit", "color"}


class CreditCardService:
    """Service for managing credit cards and their billing configuration."""

    def __init__(self, db: Database, clock: Optional[Callable[[], datetime]] = None):
        """Initialize credit card service.

        Args:
            db: Database instance
            clock: Optional callable returning the current time
        """
        self.db = db
        self.clock = clock or datetime.now

    def create_card(
        self,
        user_id: str,
        nickname: str,
        card_brand: str,
        closing_day: int,
        due_day: int,
        limit: Decimal = Decimal("0"),
        last_four_digits: str = "",
        color: str = "#64748b",
    ) -> str:
        """Create a new active credit card.

        Args:
            user_id: Namespace owner
            nickname: Display name
            card_brand: Card network or issuer
            closing_day: Day of month the billing period closes (1..31)
            due_day: Day of month the invoice falls due (1..31)
            limit: Credit limit
            last_four_digits: Optional last digits of the card number
            color: Display color

        Returns:
            Card ID

        Raises:
            ValidationError: If a day is out of range or the limit is negative
        """
        billing_cycle.validate_day(closing_day, "closing day")
        billing_cycle.validate_day(due_day, "due day")
        if Decimal(limit) < 0:
            raise ValidationError("Card limit must not be negative")

        card = CreditCard(
            id=self.db.new_id(),
            nickname=nickname.strip(),
            card_brand=card_brand.strip(),
            closing_day=closing_day,
            due_day=due_day,
            limit=Decimal(limit),
            created_at=self.clock(),
            last_four_digits=last_four_digits,
            color=color,
        )
        self.db.put(user_id, card)
        return card.id

    def get_card(self, user_id: str, card_id: str) -> Optional[CreditCard]:
        return self.db.get_credit_card(user_id, card_id)

    def require_card(self, user_id: str, card_id: str) -> CreditCard:
        """Get card by ID or raise NotFoundError."""
        card = self.db.get_credit_card(user_id, card_id)
        if card is None:
            raise NotFoundError(card_not_found(card_id))
        return card

    def list_cards(self, user_id: str, active_only: bool = False) -> list[CreditCard]:
        return self.db.list_credit_cards(user_id, active_only=active_only)

    def update_card(self, user_id: str, card_id: str, **fields) -> None:
        """Update editable card fields.

        Raises:
            NotFoundError: If the card does not exist
            ValidationError: If a field cannot be edited or a day is out of range
        """
        self.require_card(user_id, card_id)
        unknown = set(fields) - _EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update card fields: {', '.join(sorted(unknown))}")
        if "closing_day" in fields:
            billing_cycle.validate_day(fields["closing_day"], "closing day")
        if "due_day" in fields:
            billing_cycle.validate_day(fields["due_day"], "due day")
        self.db.commit(user_id, WriteBatch().patch(Collection.CREDIT_CARDS, card_id, **fields))

    def activate(self, user_id: str, card_id: str) -> None:
        self.require_card(user_id, card_id)
        self.db.commit(user_id, WriteBatch().patch(Collection.CREDIT_CARDS, card_id, is_active=True))

    def deactivate(self, user_id: str, card_id: str) -> None:
        self.require_card(user_id, card_id)
        self.db.commit(user_id, WriteBatch().patch(Collection.CREDIT_CARDS, card_id, is_active=False))

    def invoice_period_for(self, card: CreditCard, purchase_date: datetime) -> tuple[int, int]:
        """Return the (0-based month, year) of the invoice a purchase is billed in."""
        invoice_month = billing_cycle.invoice_month_for(purchase_date, card.closing_day)
        return invoice_month.month - 1, invoice_month.year

    def next_due_date(self, card: CreditCard, today: Optional[date] = None) -> datetime:
        """Return when the invoice currently accumulating purchases falls due."""
        return billing_cycle.next_due_date(card.closing_day, card.due_day, today or self.clock())
