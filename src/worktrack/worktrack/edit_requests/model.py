from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import RequestStatus


@dataclass(frozen=True)
class ReportEditRequest:
    """A request to reopen one daily report.

    Once approved it doubles as the edit grant: the owner may change the report once
    before ``edit_deadline``.
    """

    request_id: int
    report_id: int
    user_id: int
    reason: str
    status: RequestStatus
    requested_at: datetime
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    edit_deadline: Optional[datetime] = None

    def is_live_grant(self, now: datetime) -> bool:
        return (
            self.status == RequestStatus.APPROVED
            and self.edit_deadline is not None
            and self.edit_deadline > now
        )
