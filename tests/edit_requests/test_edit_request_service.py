from __future__ import annotations

from datetime import timedelta

import pytest

from src.worktrack.worktrack.core.enums import RequestStatus
from src.worktrack.worktrack.core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)


def test_approval_opens_a_24_hour_grant(container, admin, employee, make_report, fixed_now):
    report = make_report(employee)
    svc = container.edit_request_service
    req = svc.submit(employee, report_id=report.report_id, reason="Forgot a task", now=fixed_now)

    approved = svc.approve(admin, req.request_id, now=fixed_now)

    assert approved.status == RequestStatus.APPROVED
    assert approved.edit_deadline == fixed_now + timedelta(hours=24)


def test_reason_is_required(container, employee, make_report):
    report = make_report(employee)
    with pytest.raises(ValidationError, match="required"):
        container.edit_request_service.submit(employee, report_id=report.report_id, reason="  ")


def test_reason_length_boundary(container, employee, make_report):
    svc = container.edit_request_service
    report = make_report(employee)
    with pytest.raises(ValidationError, match="500"):
        svc.submit(employee, report_id=report.report_id, reason="r" * 501)

    req = svc.submit(employee, report_id=report.report_id, reason="r" * 500)
    assert req.reason == "r" * 500


def test_unknown_report(container, employee):
    with pytest.raises(NotFoundError):
        container.edit_request_service.submit(employee, report_id=999, reason="typo")


def test_only_owner_can_request(container, employee, other_employee, make_report):
    report = make_report(employee)
    with pytest.raises(AuthorizationError, match="Not your report"):
        container.edit_request_service.submit(other_employee, report_id=report.report_id, reason="mine now")


def test_one_pending_request_per_report(container, employee, make_report, fixed_now):
    report = make_report(employee)
    svc = container.edit_request_service
    svc.submit(employee, report_id=report.report_id, reason="first", now=fixed_now)

    with pytest.raises(ConflictError, match="already pending"):
        svc.submit(employee, report_id=report.report_id, reason="second", now=fixed_now)


def test_live_grant_blocks_new_request(container, admin, employee, make_report, fixed_now):
    report = make_report(employee)
    svc = container.edit_request_service
    req = svc.submit(employee, report_id=report.report_id, reason="first", now=fixed_now)
    svc.approve(admin, req.request_id, now=fixed_now)

    with pytest.raises(ConflictError, match="active edit permission"):
        svc.submit(employee, report_id=report.report_id, reason="again", now=fixed_now + timedelta(hours=1))

    # Once the grant has expired a new request is accepted.
    later = svc.submit(employee, report_id=report.report_id, reason="again", now=fixed_now + timedelta(hours=25))
    assert later.status == RequestStatus.PENDING


def test_rejection_opens_no_grant(container, admin, employee, make_report, fixed_now):
    report = make_report(employee)
    svc = container.edit_request_service
    req = svc.submit(employee, report_id=report.report_id, reason="typo", now=fixed_now)

    rejected = svc.reject(admin, req.request_id, reason="Looks fine", now=fixed_now)

    assert rejected.edit_deadline is None
    assert not container.report_edit_gate.can_edit(report, employee.user_id, fixed_now)


def test_listing_defaults_to_all(container, admin, employee, make_report, fixed_now, today):
    svc = container.edit_request_service
    first = make_report(employee, report_date=today - timedelta(days=1))
    second = make_report(employee)
    req = svc.submit(employee, report_id=first.report_id, reason="a", now=fixed_now)
    svc.submit(employee, report_id=second.report_id, reason="b", now=fixed_now)
    svc.reject(admin, req.request_id, now=fixed_now)

    assert len(svc.list_requests(employee)) == 2
    assert len(svc.list_requests(admin, status="pending")) == 1
