from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from typing import Any, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.validators import parse_date, require_number, validate_coordinates
from ..core.enums import LocationStatus
from ..core.exceptions import ValidationError
from ..core.viewer import Viewer
from .model import LocationPoint
from .repository import LocationRepository

logger = logging.getLogger(__name__)


class LocationService:
    def __init__(self, locations: LocationRepository):
        self._locations = locations

    def record(
        self,
        viewer: Viewer,
        *,
        latitude: Any,
        longitude: Any,
        accuracy: Any = None,
        status: Any = LocationStatus.ACTIVE.value,
        now: datetime | None = None,
    ) -> LocationPoint:
        lat, lon = validate_coordinates(latitude, longitude)
        try:
            status = LocationStatus(status)
        except ValueError:
            raise ValidationError("Status must be either active or paused")
        accuracy = None if accuracy is None else require_number(accuracy, "Accuracy")

        location_id = self._locations.append(
            user_id=viewer.user_id,
            latitude=lat,
            longitude=lon,
            accuracy=accuracy,
            status=status,
            recorded_at=now or now_local(),
        )
        logger.debug("Recorded location %s for user %s", location_id, viewer.user_id)
        return self._locations.get_by_id(location_id)

    def history(
        self,
        viewer: Viewer,
        *,
        user_id: Optional[int] = None,
        start_date: Any = None,
        end_date: Any = None,
        today: date | None = None,
    ) -> Sequence[dict]:
        """Whole days, both ends inclusive. Defaults to today."""
        today = today or now_local().date()
        start = today if start_date in (None, "") else parse_date(start_date, "Start date")
        end = today if end_date in (None, "") else parse_date(end_date, "End date")
        return self._locations.history(
            start=datetime.combine(start, time.min),
            end=datetime.combine(end + timedelta(days=1), time.min),
            user_id=viewer.scope_user_id(user_id),
        )

    def latest(self, viewer: Viewer, *, user_id: Optional[int] = None) -> Sequence[dict]:
        viewer.require_admin()
        return self._locations.latest_per_user(user_id=user_id)
