from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Optional, Sequence

from ..common.datetime_utils import days_ago, is_future_date, now_local
from ..common.unit_of_work import UnitOfWork
from ..common.validators import parse_date, validate_report_fields
from ..core.constants import DEFAULT_HISTORY_DAYS
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..core.viewer import Viewer
from ..edit_requests.repository import EditRequestRepository
from .model import DailyReport
from .repository import ReportRepository

logger = logging.getLogger(__name__)


class ReportService:
    """Use case: submit and read daily reports."""

    def __init__(self, reports: ReportRepository):
        self._reports = reports

    def submit(
        self,
        viewer: Viewer,
        *,
        tasks: Any,
        hours_worked: Any,
        notes: Optional[str] = None,
        report_date: Any = None,
        now: datetime | None = None,
    ) -> DailyReport:
        today = (now or now_local()).date()
        report_date = today if report_date in (None, "") else parse_date(report_date, "Report date")
        if is_future_date(report_date, today=today):
            raise ValidationError("Cannot submit report for future dates")

        tasks, hours, notes = validate_report_fields(tasks, hours_worked, notes)

        if self._reports.exists_for_date(user_id=viewer.user_id, report_date=report_date):
            raise ConflictError("Report already exists for this date")

        report_id = self._reports.create_report(
            user_id=viewer.user_id,
            report_date=report_date,
            tasks=tasks,
            hours_worked=hours,
            notes=notes,
        )
        logger.info("User %s submitted report %s for %s", viewer.user_id, report_id, report_date)
        return self._reports.get_by_id(report_id)

    def list_reports(
        self,
        viewer: Viewer,
        *,
        user_id: Optional[int] = None,
        start_date: Any = None,
        end_date: Any = None,
        today: date | None = None,
    ) -> Sequence[dict]:
        today = today or now_local().date()
        start = days_ago(DEFAULT_HISTORY_DAYS, today=today) if start_date in (None, "") else parse_date(start_date, "Start date")
        end = today if end_date in (None, "") else parse_date(end_date, "End date")
        return self._reports.list_reports(
            start_date=start,
            end_date=end,
            user_id=viewer.scope_user_id(user_id),
        )

    def get_report(self, viewer: Viewer, report_id: int) -> DailyReport:
        report = self._reports.get_by_id(int(report_id))
        if not report:
            raise NotFoundError("Report not found")
        if not viewer.can_see(report.user_id):
            raise AuthorizationError("Access denied")
        return report


class ReportEditGate:
    """Reports are read-only unless the owner holds a live approved edit grant.

    A grant allows exactly one edit: it is deleted in the same transaction that
    overwrites the report.
    """

    def __init__(self, reports: ReportRepository, grants: EditRequestRepository, uow: UnitOfWork):
        self._reports = reports
        self._grants = grants
        self._uow = uow

    def can_edit(self, report: DailyReport, user_id: int, now: datetime | None = None) -> bool:
        if report.user_id != int(user_id):
            return False
        grant = self._grants.latest_live_grant(report_id=report.report_id, user_id=int(user_id), now=now or now_local())
        return grant is not None

    def apply_edit(
        self,
        viewer: Viewer,
        report_id: int,
        *,
        tasks: Any,
        hours_worked: Any,
        notes: Optional[str] = None,
        now: datetime | None = None,
    ) -> DailyReport:
        now = now or now_local()

        with self._uow.transaction():
            report = self._reports.get_by_id(int(report_id))
            if not report:
                raise NotFoundError("Report not found")
            if report.user_id != viewer.user_id:
                raise AuthorizationError("Not your report")

            # Latest deadline wins when several grants are live.
            grant = self._grants.latest_live_grant(report_id=report.report_id, user_id=viewer.user_id, now=now)
            if grant is None:
                raise AuthorizationError("No active edit permission")

            tasks, hours, notes = validate_report_fields(tasks, hours_worked, notes)

            # Compare-and-set: a grant already consumed by a concurrent edit deletes nothing.
            if not self._grants.delete(grant.request_id):
                raise AuthorizationError("No active edit permission")
            self._reports.update_report(report.report_id, tasks=tasks, hours_worked=hours, notes=notes)

        logger.info("User %s edited report %s using grant %s", viewer.user_id, report.report_id, grant.request_id)
        return self._reports.get_by_id(report.report_id)
