from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional


@dataclass(frozen=True)
class DailyReport:
    """One report per (user, day). Immutable except through an approved edit grant."""

    report_id: int
    user_id: int
    report_date: date
    tasks_completed: list[str] = field(default_factory=list)
    hours_worked: float = 0.0
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
