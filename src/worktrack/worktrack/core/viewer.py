from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .enums import Role
from .exceptions import AuthorizationError


@dataclass(frozen=True)
class Viewer:
    """The authenticated caller, passed explicitly into every service call.

    Queries never trust a caller-supplied target user: they ask the viewer which
    rows it may see.
    """

    user_id: int
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def scope_user_id(self, requested: Optional[int] = None) -> Optional[int]:
        """User filter for a listing: employees always get their own id, admins get what they asked for (None = everyone)."""
        if not self.is_admin:
            return self.user_id
        return int(requested) if requested is not None else None

    def can_see(self, owner_id: int) -> bool:
        return self.is_admin or int(owner_id) == self.user_id

    def require_admin(self) -> None:
        if not self.is_admin:
            raise AuthorizationError("Access denied. Admin privileges required.")
