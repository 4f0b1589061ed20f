from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import DailyReport


class ReportRepository(Protocol):
    def get_by_id(self, report_id: int) -> Optional[DailyReport]:
        raise NotImplementedError

    def exists_for_date(self, *, user_id: int, report_date: date) -> bool:
        raise NotImplementedError

    def create_report(
        self,
        *,
        user_id: int,
        report_date: date,
        tasks: list[str],
        hours_worked: float,
        notes: Optional[str],
    ) -> int:
        raise NotImplementedError

    def update_report(
        self,
        report_id: int,
        *,
        tasks: list[str],
        hours_worked: float,
        notes: Optional[str],
    ) -> bool:
        raise NotImplementedError

    def list_reports(
        self,
        *,
        start_date: date,
        end_date: date,
        user_id: Optional[int] = None,
    ) -> Sequence[dict]:
        """Rows carry ``user_name``; ``tasks_completed`` is already decoded."""

        raise NotImplementedError
