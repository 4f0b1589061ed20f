from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import LocationStatus


@dataclass(frozen=True)
class LocationPoint:
    """One GPS sample. The log is append only."""

    location_id: int
    user_id: int
    latitude: float
    longitude: float
    accuracy: Optional[float]
    status: LocationStatus
    recorded_at: datetime
