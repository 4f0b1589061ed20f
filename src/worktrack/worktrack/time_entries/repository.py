from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from .model import TimeEntry


class TimeEntryRepository(Protocol):
    def get_by_id(self, entry_id: int) -> Optional[TimeEntry]:
        raise NotImplementedError

    def get_open_timer(self, user_id: int) -> Optional[TimeEntry]:
        raise NotImplementedError

    def create_timer(self, *, user_id: int, project_id: int, task_description: str, start_time: datetime) -> int:
        """Must fail with ConflictError if the user already has an open timer."""

        raise NotImplementedError

    def close_timer(self, entry_id: int, *, end_time: datetime, duration_minutes: int) -> bool:
        """Only closes a timer that is still open."""

        raise NotImplementedError

    def create_manual(
        self,
        *,
        user_id: int,
        project_id: int,
        task_description: str,
        entry_date: date,
        duration_minutes: int,
    ) -> int:
        raise NotImplementedError

    def list_entries(
        self,
        *,
        start_date: date,
        end_date: date,
        user_id: Optional[int] = None,
        project_id: Optional[int] = None,
    ) -> Sequence[dict]:
        """Rows carry ``user_name`` and ``project_name``."""

        raise NotImplementedError
