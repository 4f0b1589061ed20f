from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence

from ..core.enums import Role
from .model import User


class UserRepository(Protocol):
    """Repository interface for User.

    Note: the service layer depends on this interface, not on a concrete database.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def count_users(self) -> int:
        raise NotImplementedError

    def lock_registrations(self) -> None:
        """Serialize registrations for the rest of the current transaction."""

        raise NotImplementedError

    def create_user(
        self,
        *,
        email: str,
        password_hash: str,
        full_name: str,
        role: Role,
        is_active: bool = True,
    ) -> int:
        raise NotImplementedError

    def update_user(self, user_id: int, **fields: Any) -> bool:
        """Partial update; keys are column names (email, password_hash, full_name, role, is_active)."""

        raise NotImplementedError

    def set_active(self, user_id: int, *, is_active: bool) -> bool:
        raise NotImplementedError

    def list_employees(self, *, is_active: Optional[bool] = None, search: str = "") -> Sequence[dict]:
        """Roster rows including ``last_active`` (latest location or time entry)."""

        raise NotImplementedError
