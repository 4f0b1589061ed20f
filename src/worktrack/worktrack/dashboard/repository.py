from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence


class DashboardRepository(Protocol):
    """Read-only rollups behind the dashboards and the employee detail page."""

    def count_active_employees(self) -> int:
        raise NotImplementedError

    def count_active_projects(self) -> int:
        raise NotImplementedError

    def count_pending_requests(self) -> int:
        """Pending access requests plus pending edit requests."""

        raise NotImplementedError

    def count_reports(self, *, start_date: date, end_date: Optional[date] = None, user_id: Optional[int] = None) -> int:
        raise NotImplementedError

    def minutes_logged(self, *, user_id: int, start_date: date, end_date: Optional[date] = None) -> int:
        raise NotImplementedError

    def count_active_assigned_projects(self, user_id: int) -> int:
        raise NotImplementedError

    def recent_activity(self, *, today: date, limit: int) -> Sequence[dict]:
        """Active users, most recently seen first: last location time, current location, hours today."""

        raise NotImplementedError

    def recent_entries(self, *, user_id: int, limit: int, completed_only: bool = False) -> Sequence[dict]:
        raise NotImplementedError

    def recent_reports(self, *, user_id: int, limit: int) -> Sequence[dict]:
        raise NotImplementedError

    def assigned_projects(self, user_id: int) -> Sequence[dict]:
        raise NotImplementedError
