from __future__ import annotations

import pytest

from src.worktrack.worktrack.core.enums import Role
from src.worktrack.worktrack.core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)

PASSWORD = "Secret123"


def test_roster_is_admin_only(container, employee):
    with pytest.raises(AuthorizationError):
        container.employee_service.list_employees(employee)


def test_roster_filters(container, admin, employee, make_user, record_location, fixed_now):
    make_user("retired@example.com", full_name="Rita Retired", is_active=False)
    record_location(employee, at=fixed_now)
    svc = container.employee_service

    active = svc.list_employees(admin)
    assert {e["email"] for e in active} == {"admin@example.com", "emp@example.com"}
    assert next(e for e in active if e["id"] == employee.user_id)["last_active"] == fixed_now

    assert [e["full_name"] for e in svc.list_employees(admin, status="inactive")] == ["Rita Retired"]
    assert len(svc.list_employees(admin, status="all")) == 3
    assert [e["email"] for e in svc.list_employees(admin, status="all", search="eve")] == ["emp@example.com"]


def test_create_employee(container, admin):
    user = container.employee_service.create_employee(
        admin, email="New@Example.com", password=PASSWORD, full_name="New Hire", role="admin"
    )
    assert user.email == "new@example.com"
    assert user.role == Role.ADMIN

    with pytest.raises(ConflictError):
        container.employee_service.create_employee(admin, email="new@example.com", password=PASSWORD, full_name="Dup")
    with pytest.raises(ValidationError, match="Role"):
        container.employee_service.create_employee(
            admin, email="x@example.com", password=PASSWORD, full_name="X Y", role="owner"
        )


def test_update_employee(container, admin, employee, other_employee):
    svc = container.employee_service
    updated = svc.update_employee(admin, employee.user_id, full_name="Eve Updated", role="admin")
    assert updated.full_name == "Eve Updated"
    assert updated.role == Role.ADMIN

    with pytest.raises(ConflictError):
        svc.update_employee(admin, employee.user_id, email="other@example.com")
    with pytest.raises(ValidationError, match="No fields"):
        svc.update_employee(admin, employee.user_id)
    with pytest.raises(NotFoundError):
        svc.update_employee(admin, 999, full_name="Ghost")


def test_password_change_allows_new_login(container, admin, employee):
    container.employee_service.update_employee(admin, employee.user_id, password="NewSecret9")
    assert container.auth_service.authenticate("emp@example.com", "NewSecret9").user_id == employee.user_id


def test_archive_is_soft_delete(container, db, admin, employee):
    svc = container.employee_service
    svc.archive_employee(admin, employee.user_id)

    assert db.users[employee.user_id].is_active is False
    with pytest.raises(ValidationError, match="own account"):
        svc.archive_employee(admin, admin.user_id)
    with pytest.raises(NotFoundError):
        svc.archive_employee(admin, 999)
