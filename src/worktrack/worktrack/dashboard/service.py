from __future__ import annotations

from datetime import datetime

from ..access_requests.repository import AccessRequestRepository
from ..common.datetime_utils import minutes_to_hours, now_local, start_of_month, start_of_week
from ..core.constants import PENDING_PREVIEW_LIMIT, RECENT_ACTIVITY_LIMIT
from ..core.enums import RequestStatus
from ..core.exceptions import NotFoundError
from ..core.viewer import Viewer
from ..edit_requests.repository import EditRequestRepository
from ..locations.repository import LocationRepository
from ..time_entries.service import TimerService
from ..users.repository import UserRepository
from .repository import DashboardRepository


class DashboardService:
    """Aggregation queries. Hours are summed minutes / 60, rounded to 2 decimals."""

    def __init__(
        self,
        stats: DashboardRepository,
        users: UserRepository,
        access_requests: AccessRequestRepository,
        edit_requests: EditRequestRepository,
        locations: LocationRepository,
        timer: TimerService,
    ):
        self._stats = stats
        self._users = users
        self._access_requests = access_requests
        self._edit_requests = edit_requests
        self._locations = locations
        self._timer = timer

    def admin_dashboard(self, viewer: Viewer, *, now: datetime | None = None) -> dict:
        viewer.require_admin()
        today = (now or now_local()).date()
        return {
            "stats": {
                "total_employees": self._stats.count_active_employees(),
                "active_projects": self._stats.count_active_projects(),
                "pending_requests": self._stats.count_pending_requests(),
                "reports_today": self._stats.count_reports(start_date=today, end_date=today),
            },
            "recent_activity": list(self._stats.recent_activity(today=today, limit=RECENT_ACTIVITY_LIMIT)),
            "pending_access_requests": list(
                self._access_requests.list_rows(status=RequestStatus.PENDING, limit=PENDING_PREVIEW_LIMIT)
            ),
            "pending_edit_requests": list(
                self._edit_requests.list_rows(status=RequestStatus.PENDING, limit=PENDING_PREVIEW_LIMIT)
            ),
        }

    def employee_dashboard(self, viewer: Viewer, *, now: datetime | None = None) -> dict:
        now = now or now_local()
        today = now.date()
        user_id = viewer.user_id
        return {
            "stats": {
                "hours_today": self._hours(user_id, today, today),
                "hours_this_week": self._hours(user_id, start_of_week(today)),
                "active_projects": self._stats.count_active_assigned_projects(user_id),
                "reports_this_month": self._stats.count_reports(start_date=start_of_month(today), user_id=user_id),
            },
            "active_timer": self._timer.get_active(viewer, now=now),
            "recent_time_entries": list(self._stats.recent_entries(user_id=user_id, limit=5, completed_only=True)),
            "recent_reports": list(self._stats.recent_reports(user_id=user_id, limit=3)),
            "recent_access_requests": list(self._access_requests.list_rows(user_id=user_id, limit=5)),
        }

    def employee_detail(self, viewer: Viewer, user_id: int, *, now: datetime | None = None) -> dict:
        viewer.require_admin()
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("Employee not found")

        today = (now or now_local()).date()
        latest = list(self._locations.latest_per_user(user_id=user.user_id))

        detail = user.public()
        detail.update(
            {
                "stats": {
                    "hours_today": self._hours(user.user_id, today, today),
                    "hours_this_week": self._hours(user.user_id, start_of_week(today)),
                    "hours_this_month": self._hours(user.user_id, start_of_month(today)),
                    "active_projects": self._stats.count_active_assigned_projects(user.user_id),
                },
                "current_location": latest[0] if latest else None,
                "recent_reports": list(self._stats.recent_reports(user_id=user.user_id, limit=7)),
                "recent_time_entries": list(self._stats.recent_entries(user_id=user.user_id, limit=10)),
                "assigned_projects": list(self._stats.assigned_projects(user.user_id)),
            }
        )
        return detail

    def _hours(self, user_id: int, start, end=None) -> float:
        return minutes_to_hours(self._stats.minutes_logged(user_id=user_id, start_date=start, end_date=end))
