"""Family member domain service."""

from datetime import datetime
from typing import Callable, Optional

from famfin.database.base import Database
from famfin.domain.entities import Collection, FamilyMember, WriteBatch
from famfin.domain.errors import NotFoundError, ValidationError


class FamilyService:
    """Service for managing the people transactions are attributed to."""

    def __init__(self, db: Database, clock: Optional[Callable[[], datetime]] = None):
        self.db = db
        self.clock = clock or datetime.now

    def add_member(self, user_id: str, name: str) -> str:
        """Add an active family member.

        Returns:
            Member ID

        Raises:
            ValidationError: If the name is empty
        """
        name = name.strip()
        if not name:
            raise ValidationError("Member name must not be empty")
        member = FamilyMember(id=self.db.new_id(), name=name, created_at=self.clock())
        self.db.put(user_id, member)
        return member.id

    def list_members(self, user_id: str, active_only: bool = False) -> list[FamilyMember]:
        members = self.db.list_family_members(user_id)
        if active_only:
            members = [member for member in members if member.is_active]
        return members

    def _set_active(self, user_id: str, member_id: str, active: bool) -> None:
        if not any(member.id == member_id for member in self.db.list_family_members(user_id)):
            raise NotFoundError(f"Family member {member_id} not found")
        self.db.commit(user_id, WriteBatch().patch(Collection.FAMILY, member_id, is_active=active))

    def deactivate_member(self, user_id: str, member_id: str) -> None:
        self._set_active(user_id, member_id, False)

    def activate_member(self, user_id: str, member_id: str) -> None:
        self._set_active(user_id, member_id, True)
