from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Optional, Sequence

from ..common.unit_of_work import UnitOfWork
from ..common.validators import require_max_length
from ..core.constants import EDIT_GRANT_HOURS, MAX_REASON_LENGTH
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..core.viewer import Viewer
from ..reports.repository import ReportRepository
from ..workflow.engine import ApprovalWorkflow, parse_status_filter
from .model import ReportEditRequest
from .repository import EditRequestRepository


class EditRequestService:
    """Use case: ask for a report to be reopened; approval opens a time-boxed edit grant."""

    def __init__(self, requests: EditRequestRepository, reports: ReportRepository, uow: UnitOfWork):
        self._requests = requests
        self._reports = reports
        self._workflow: ApprovalWorkflow[ReportEditRequest] = ApprovalWorkflow(
            requests,
            uow,
            subject="report",
            holds=self._has_live_grant,
            on_approve=self._open_grant,
            held_message="You already have an active edit permission for this report",
            pending_message="Edit request already pending for this report",
        )

    def submit(
        self,
        viewer: Viewer,
        *,
        report_id: Any,
        reason: Any,
        now: datetime | None = None,
    ) -> ReportEditRequest:
        if report_id in (None, "") or not isinstance(reason, str) or not reason.strip():
            raise ValidationError("Report ID and reason are required")
        require_max_length(reason, "Reason", MAX_REASON_LENGTH)
        try:
            report_id = int(report_id)
        except (TypeError, ValueError):
            raise ValidationError("Report ID must be an integer")

        report = self._reports.get_by_id(report_id)
        if not report:
            raise NotFoundError("Report not found")
        if report.user_id != viewer.user_id:
            raise AuthorizationError("Not your report")

        return self._workflow.submit(requester=viewer, subject_id=report_id, now=now, reason=reason.strip())

    def list_requests(self, viewer: Viewer, *, status: Optional[str] = "all") -> Sequence[dict]:
        return self._workflow.list_for(viewer, status=parse_status_filter(status))

    def approve(self, viewer: Viewer, request_id: int, *, now: datetime | None = None) -> ReportEditRequest:
        return self._workflow.approve(reviewer=viewer, request_id=request_id, now=now)

    def reject(
        self,
        viewer: Viewer,
        request_id: int,
        *,
        reason: Optional[str] = None,
        now: datetime | None = None,
    ) -> ReportEditRequest:
        return self._workflow.reject(reviewer=viewer, request_id=request_id, reason=reason, now=now)

    def _has_live_grant(self, report_id: int, user_id: int, now: datetime) -> bool:
        return self._requests.latest_live_grant(report_id=report_id, user_id=user_id, now=now) is not None

    def _open_grant(self, req: ReportEditRequest, now: datetime) -> None:
        self._requests.set_edit_deadline(req.request_id, now + timedelta(hours=EDIT_GRANT_HOURS))
