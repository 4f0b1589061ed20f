from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Any, Optional

from ..common.datetime_utils import format_duration
from ..core.enums import TimeEntryType


@dataclass(frozen=True)
class TimeEntry:
    entry_id: int
    user_id: int
    project_id: int
    task_description: str
    entry_type: TimeEntryType
    entry_date: date
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    duration_minutes: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_open_timer(self) -> bool:
        return self.entry_type == TimeEntryType.TIMER and self.end_time is None

    def as_dict(self, **extra: Any) -> dict:
        data = asdict(self)
        data["entry_type"] = self.entry_type.value
        data["duration_formatted"] = format_duration(self.duration_minutes)
        data.update(extra)
        return data
