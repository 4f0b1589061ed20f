from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: User.

    Note: Plain data object (no DB access code). Never serialize it directly, it carries the hash.
    """

    user_id: int
    email: str
    password_hash: str
    full_name: str
    role: Role
    is_active: bool = True
    created_at: Optional[datetime] = None

    def public(self) -> dict:
        return {
            "id": self.user_id,
            "email": self.email,
            "full_name": self.full_name,
            "role": self.role.value,
            "is_active": self.is_active,
            "created_at": self.created_at,
        }
