from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import LocationStatus
from .model import LocationPoint


class LocationRepository(Protocol):
    def get_by_id(self, location_id: int) -> Optional[LocationPoint]:
        raise NotImplementedError

    def append(
        self,
        *,
        user_id: int,
        latitude: float,
        longitude: float,
        accuracy: Optional[float],
        status: LocationStatus,
        recorded_at: datetime,
    ) -> int:
        raise NotImplementedError

    def history(self, *, start: datetime, end: datetime, user_id: Optional[int] = None) -> Sequence[dict]:
        """Points with ``start <= recorded_at < end``, newest first."""

        raise NotImplementedError

    def latest_per_user(self, *, user_id: Optional[int] = None) -> Sequence[dict]:
        raise NotImplementedError
