from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import RequestStatus


@dataclass(frozen=True)
class ProjectAccessRequest:
    request_id: int
    project_id: int
    user_id: int
    status: RequestStatus
    requested_at: datetime
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
