from __future__ import annotations

import logging
import math
from datetime import date, datetime
from typing import Any, Optional

from ..common.datetime_utils import (
    days_ago,
    is_future_date,
    minutes_to_hours,
    now_local,
    whole_minutes_between,
    whole_seconds_between,
)
from ..common.unit_of_work import UnitOfWork
from ..common.validators import parse_date, require_max_length
from ..core.constants import DEFAULT_HISTORY_DAYS, MAX_MANUAL_MINUTES, MAX_TASK_LENGTH
from ..core.enums import TimeEntryType
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..core.viewer import Viewer
from ..projects.repository import ProjectRepository
from .repository import TimeEntryRepository

logger = logging.getLogger(__name__)


def _duration_part(value: Any) -> float:
    if value in (None, ""):
        return 0.0
    if isinstance(value, bool):
        raise ValidationError("Invalid duration values")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError("Invalid duration values")
    if math.isnan(number):
        raise ValidationError("Invalid duration values")
    return number


class TimerService:
    """Use case: timers (start/stop/active), manual entries and the time sheet listing."""

    def __init__(self, entries: TimeEntryRepository, projects: ProjectRepository, uow: UnitOfWork):
        self._entries = entries
        self._projects = projects
        self._uow = uow

    def start(
        self,
        viewer: Viewer,
        *,
        project_id: Any,
        task_description: Any,
        now: datetime | None = None,
    ) -> dict:
        if project_id in (None, "") or not isinstance(task_description, str) or not task_description.strip():
            raise ValidationError("Project ID and task description are required")
        require_max_length(task_description, "Task description", MAX_TASK_LENGTH)
        project_id = self._as_project_id(project_id)
        now = now or now_local()

        with self._uow.transaction():
            self._require_assignment(viewer, project_id)
            if self._entries.get_open_timer(viewer.user_id) is not None:
                raise ConflictError("Timer already running. Please stop current timer first.")

            entry_id = self._entries.create_timer(
                user_id=viewer.user_id,
                project_id=project_id,
                task_description=task_description,
                start_time=now,
            )

        logger.info("User %s started timer %s on project %s", viewer.user_id, entry_id, project_id)
        return self._with_project_name(self._entries.get_by_id(entry_id))

    def stop(self, viewer: Viewer, entry_id: int, *, now: datetime | None = None) -> dict:
        now = now or now_local()

        with self._uow.transaction():
            entry = self._entries.get_by_id(int(entry_id))
            if not entry:
                raise NotFoundError("Time entry not found")
            if entry.user_id != viewer.user_id:
                raise AuthorizationError("Not your time entry")
            if entry.entry_type != TimeEntryType.TIMER:
                raise ValidationError("Not a timer entry")
            if entry.end_time is not None:
                raise ValidationError("Timer already stopped")

            minutes = whole_minutes_between(entry.start_time, now)
            if not self._entries.close_timer(entry.entry_id, end_time=now, duration_minutes=minutes):
                raise ValidationError("Timer already stopped")

        logger.info("User %s stopped timer %s after %s minutes", viewer.user_id, entry.entry_id, minutes)
        return self._with_project_name(self._entries.get_by_id(entry.entry_id))

    def get_active(self, viewer: Viewer, *, now: datetime | None = None) -> Optional[dict]:
        entry = self._entries.get_open_timer(viewer.user_id)
        if entry is None:
            return None
        now = now or now_local()
        data = self._with_project_name(entry)
        data["elapsed_seconds"] = whole_seconds_between(entry.start_time, now)
        return data

    def add_manual(
        self,
        viewer: Viewer,
        *,
        project_id: Any,
        task_description: Any,
        entry_date: Any,
        duration_hours: Any = 0,
        duration_minutes: Any = 0,
        now: datetime | None = None,
    ) -> dict:
        if (
            project_id in (None, "")
            or not isinstance(task_description, str)
            or not task_description.strip()
            or entry_date in (None, "")
        ):
            raise ValidationError("Project ID, task description, and entry date are required")
        require_max_length(task_description, "Task description", MAX_TASK_LENGTH)
        project_id = self._as_project_id(project_id)

        today = (now or now_local()).date()
        entry_date = parse_date(entry_date, "Entry date")
        if is_future_date(entry_date, today=today):
            raise ValidationError("Cannot log time for future dates")

        hours = _duration_part(duration_hours)
        minutes = _duration_part(duration_minutes)
        if hours < 0 or hours > 24 or minutes < 0 or minutes > 59:
            raise ValidationError("Invalid duration values")

        total = math.floor(hours * 60 + minutes)
        if total < 1:
            raise ValidationError("Duration must be at least 1 minute")
        if total > MAX_MANUAL_MINUTES:
            raise ValidationError("Duration cannot exceed 24 hours (1440 minutes)")

        self._require_assignment(viewer, project_id)

        entry_id = self._entries.create_manual(
            user_id=viewer.user_id,
            project_id=project_id,
            task_description=task_description,
            entry_date=entry_date,
            duration_minutes=total,
        )
        logger.info("User %s logged %s manual minutes on project %s", viewer.user_id, total, project_id)
        return self._with_project_name(self._entries.get_by_id(entry_id))

    def list_entries(
        self,
        viewer: Viewer,
        *,
        user_id: Optional[int] = None,
        project_id: Optional[int] = None,
        start_date: Any = None,
        end_date: Any = None,
        today: date | None = None,
    ) -> dict:
        today = today or now_local().date()
        start = days_ago(DEFAULT_HISTORY_DAYS, today=today) if start_date in (None, "") else parse_date(start_date, "Start date")
        end = today if end_date in (None, "") else parse_date(end_date, "End date")

        entries = list(
            self._entries.list_entries(
                start_date=start,
                end_date=end,
                user_id=viewer.scope_user_id(user_id),
                project_id=project_id,
            )
        )
        total_minutes = sum(int(e["duration_minutes"] or 0) for e in entries)
        return {
            "entries": entries,
            "total_hours": minutes_to_hours(total_minutes),
            "total_entries": len(entries),
        }

    def _require_assignment(self, viewer: Viewer, project_id: int) -> None:
        if not self._projects.is_assigned(project_id=project_id, user_id=viewer.user_id):
            raise AuthorizationError("You do not have access to this project")

    def _with_project_name(self, entry) -> dict:
        project = self._projects.get_by_id(entry.project_id)
        return entry.as_dict(project_name=project.name if project else None)

    @staticmethod
    def _as_project_id(value: Any) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ValidationError("Project ID must be an integer")
