from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import LocationStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, to_float, where_clause
from .model import LocationPoint
from .repository import LocationRepository


def _to_row(r: dict) -> dict:
    return {
        "location_id": int(r["location_id"]),
        "user_id": int(r["user_id"]),
        "user_name": r["user_name"],
        "latitude": to_float(r["latitude"]),
        "longitude": to_float(r["longitude"]),
        "accuracy": to_float(r.get("accuracy")),
        "status": r["status"],
        "recorded_at": r["recorded_at"],
    }


class MySQLLocationRepository(LocationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, location_id: int) -> Optional[LocationPoint]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT location_id, user_id, latitude, longitude, accuracy, status, recorded_at
                FROM location_history WHERE location_id=%s
                """,
                (int(location_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return LocationPoint(
                location_id=int(r["location_id"]),
                user_id=int(r["user_id"]),
                latitude=to_float(r["latitude"]),
                longitude=to_float(r["longitude"]),
                accuracy=to_float(r.get("accuracy")),
                status=LocationStatus(r["status"]),
                recorded_at=r["recorded_at"],
            )

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO location_history(user_id, latitude, longitude, accuracy, status, recorded_at)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (int(user_id), latitude, longitude, accuracy, status.value, recorded_at),
            )
            return int(cur.lastrowid)

    def history(self, *, start: datetime, end: datetime, user_id: Optional[int] = None) -> Sequence[dict]:
        clauses = ["lh.recorded_at >= %s", "lh.recorded_at < %s"]
        params: list[object] = [start, end]
        if user_id is not None:
            clauses.append("lh.user_id=%s")
            params.append(int(user_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT lh.location_id, lh.user_id, lh.latitude, lh.longitude, lh.accuracy,
                       lh.status, lh.recorded_at, u.full_name AS user_name
                FROM location_history lh
                JOIN users u ON u.user_id = lh.user_id
                WHERE {where_clause(clauses)}
                ORDER BY lh.recorded_at DESC, lh.location_id DESC
                """,
                tuple(params),
            )
            return [_to_row(r) for r in fetchall(cur)]

    def latest_per_user(self, *, user_id: Optional[int] = None) -> Sequence[dict]:
        clauses: list[str] = []
        params: list[object] = []
        if user_id is not None:
            clauses.append("lh.user_id=%s")
            params.append(int(user_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT location_id, user_id, user_name, latitude, longitude, accuracy, status, recorded_at
                FROM (
                    SELECT lh.location_id, lh.user_id, u.full_name AS user_name,
                           lh.latitude, lh.longitude, lh.accuracy, lh.status, lh.recorded_at,
                           ROW_NUMBER() OVER (
                               PARTITION BY lh.user_id ORDER BY lh.recorded_at DESC, lh.location_id DESC
                           ) AS rn
                    FROM location_history lh
                    JOIN users u ON u.user_id = lh.user_id
                    WHERE {where_clause(clauses)}
                ) ranked
                WHERE rn = 1
                ORDER BY user_id
                """,
                tuple(params),
            )
            return [_to_row(r) for r in fetchall(cur)]
