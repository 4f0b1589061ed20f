from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.unit_of_work import UnitOfWork
from ..common.validators import (
    PASSWORD_REQUIREMENTS,
    is_valid_email,
    is_valid_full_name,
    is_valid_password,
    validate_credentials,
)
from ..core.enums import Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from ..core.viewer import Viewer
from .model import User
from .repository import UserRepository

logger = logging.getLogger(__name__)


def _parse_role(value: Any) -> Role:
    try:
        return Role(value)
    except ValueError:
        raise ValidationError("Role must be either admin or employee")


class AuthService:
    """Use case: register, authenticate, current user."""

    def __init__(self, users: UserRepository, uow: UnitOfWork):
        self._users = users
        self._uow = uow

    def register(self, *, email: str, password: str, full_name: str) -> User:
        validate_credentials(email, password, full_name)
        email = email.lower()

        with self._uow.transaction():
            self._users.lock_registrations()
            if self._users.get_by_email(email):
                raise ConflictError("Email already registered")

            # The very first account bootstraps the system as admin.
            role = Role.ADMIN if self._users.count_users() == 0 else Role.EMPLOYEE
            user_id = self._users.create_user(
                email=email,
                password_hash=generate_password_hash(password),
                full_name=full_name.strip(),
                role=role,
            )

        logger.info("Registered user %s as %s", user_id, role.value)
        return self._users.get_by_id(user_id)

    def authenticate(self, email: str, password: str) -> User:
        if not email or not password:
            raise ValidationError("Email and password are required")

        user = self._users.get_by_email(email.lower())
        if not user:
            raise AuthenticationError("Invalid credentials")
        if not user.is_active:
            raise AuthorizationError("Account deactivated")

        try:
            ok = check_password_hash(user.password_hash, password)
        except ValueError:
            # e.g. placeholder or corrupted hashes
            ok = False

        if not ok:
            raise AuthenticationError("Invalid credentials")
        return user

    def me(self, viewer: Viewer) -> User:
        user = self._users.get_by_id(viewer.user_id)
        if not user:
            raise NotFoundError("User not found")
        return user


class EmployeeService:
    """Use case: manage the employee roster (admin)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def list_employees(self, viewer: Viewer, *, status: str = "active", search: str = "") -> Sequence[dict]:
        viewer.require_admin()
        is_active: Optional[bool] = {"active": True, "inactive": False}.get(status)
        return self._users.list_employees(is_active=is_active, search=(search or "").strip())

    def create_employee(
        self,
        viewer: Viewer,
        *,
        email: str,
        password: str,
        full_name: str,
        role: Any = Role.EMPLOYEE.value,
        is_active: bool = True,
    ) -> User:
        viewer.require_admin()
        validate_credentials(email, password, full_name)
        role = _parse_role(role)

        if self._users.get_by_email(email.lower()):
            raise ConflictError("Email already exists")

        user_id = self._users.create_user(
            email=email.lower(),
            password_hash=generate_password_hash(password),
            full_name=full_name.strip(),
            role=role,
            is_active=bool(is_active),
        )
        logger.info("Admin %s created user %s", viewer.user_id, user_id)
        return self._users.get_by_id(user_id)

    def update_employee(self, viewer: Viewer, user_id: int, **changes: Any) -> User:
        viewer.require_admin()
        if not self._users.get_by_id(user_id):
            raise NotFoundError("Employee not found")

        fields: dict[str, Any] = {}
        if changes.get("email") is not None:
            email = changes["email"]
            if not is_valid_email(email):
                raise ValidationError("Invalid email format")
            existing = self._users.get_by_email(email.lower())
            if existing and existing.user_id != int(user_id):
                raise ConflictError("Email already exists")
            fields["email"] = email.lower()
        if changes.get("password") is not None:
            if not is_valid_password(changes["password"]):
                raise ValidationError(PASSWORD_REQUIREMENTS)
            fields["password_hash"] = generate_password_hash(changes["password"])
        if changes.get("full_name") is not None:
            if not is_valid_full_name(changes["full_name"]):
                raise ValidationError("Full name must be between 2 and 255 characters")
            fields["full_name"] = changes["full_name"].strip()
        if changes.get("role") is not None:
            fields["role"] = _parse_role(changes["role"])
        if changes.get("is_active") is not None:
            fields["is_active"] = bool(changes["is_active"])

        if not fields:
            raise ValidationError("No fields to update")

        self._users.update_user(int(user_id), **fields)
        return self._users.get_by_id(user_id)

    def archive_employee(self, viewer: Viewer, user_id: int) -> None:
        """Soft delete: users are never removed, only deactivated."""
        viewer.require_admin()
        if int(user_id) == viewer.user_id:
            raise ValidationError("Cannot archive your own account")
        if not self._users.get_by_id(user_id):
            raise NotFoundError("Employee not found")

        self._users.set_active(int(user_id), is_active=False)
        logger.info("Admin %s archived user %s", viewer.user_id, user_id)
