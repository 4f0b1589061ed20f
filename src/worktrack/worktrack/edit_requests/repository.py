from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import RequestStatus
from .model import ReportEditRequest


class EditRequestRepository(Protocol):
    """Approval store for report edit requests (subject = report), plus grant lookups."""

    def get(self, request_id: int) -> Optional[ReportEditRequest]:
        raise NotImplementedError

    def has_pending(self, *, subject_id: int, user_id: int) -> bool:
        """At most one pending request per report, whoever asked."""

        raise NotImplementedError

    def create(self, *, subject_id: int, user_id: int, requested_at: datetime, reason: str) -> int:
        raise NotImplementedError

    def decide(
        self,
        *,
        request_id: int,
        status: RequestStatus,
        reviewed_by: int,
        reviewed_at: datetime,
        rejection_reason: Optional[str] = None,
    ) -> bool:
        raise NotImplementedError

    def list_rows(
        self,
        *,
        status: Optional[RequestStatus] = None,
        user_id: Optional[int] = None,
        limit: int = 200,
    ) -> Sequence[dict]:
        raise NotImplementedError

    # -------- Grants --------
    def set_edit_deadline(self, request_id: int, deadline: datetime) -> bool:
        raise NotImplementedError

    def latest_live_grant(self, *, report_id: int, user_id: int, now: datetime) -> Optional[ReportEditRequest]:
        """Approved grant with the latest deadline still after ``now``."""

        raise NotImplementedError

    def delete(self, request_id: int) -> bool:
        """Remove a consumed grant; False when it was already gone."""

        raise NotImplementedError
