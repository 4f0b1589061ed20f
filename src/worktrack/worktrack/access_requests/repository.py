from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import RequestStatus
from .model import ProjectAccessRequest


class AccessRequestRepository(Protocol):
    """Approval store for project access requests (subject = project)."""

    def get(self, request_id: int) -> Optional[ProjectAccessRequest]:
        raise NotImplementedError

    def has_pending(self, *, subject_id: int, user_id: int) -> bool:
        raise NotImplementedError

    def create(self, *, subject_id: int, user_id: int, requested_at: datetime) -> int:
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
        project_id: Optional[int] = None,
        limit: int = 200,
    ) -> Sequence[dict]:
        """UI rows joined with ``project_name``, ``user_name`` and ``reviewed_by_name``."""

        raise NotImplementedError
