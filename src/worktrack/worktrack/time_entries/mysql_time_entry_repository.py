from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import TimeEntryType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, duplicate_as_conflict, fetchall, fetchone, where_clause
from .model import TimeEntry
from .repository import TimeEntryRepository

_COLUMNS = (
    "entry_id, user_id, project_id, task_description, entry_type, entry_date, "
    "start_time, end_time, duration_minutes, created_at, updated_at"
)


def _to_entry(r: dict) -> TimeEntry:
    return TimeEntry(
        entry_id=int(r["entry_id"]),
        user_id=int(r["user_id"]),
        project_id=int(r["project_id"]),
        task_description=r["task_description"],
        entry_type=TimeEntryType(r["entry_type"]),
        entry_date=r["entry_date"],
        start_time=r.get("start_time"),
        end_time=r.get("end_time"),
        duration_minutes=int(r.get("duration_minutes") or 0),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


class MySQLTimeEntryRepository(TimeEntryRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, entry_id: int) -> Optional[TimeEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM time_entries WHERE entry_id=%s", (int(entry_id),))
            r = fetchone(cur)
            return _to_entry(r) if r else None

    def get_open_timer(self, user_id: int) -> Optional[TimeEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM time_entries
                WHERE user_id=%s AND entry_type=%s AND end_time IS NULL
                LIMIT 1
                """,
                (int(user_id), TimeEntryType.TIMER.value),
            )
            r = fetchone(cur)
            return _to_entry(r) if r else None

    def create_timer(self, *, user_id: int, project_id: int, task_description: str, start_time: datetime) -> int:
        with duplicate_as_conflict("Timer already running. Please stop current timer first."):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO time_entries(
                        user_id, project_id, task_description, entry_type, entry_date, start_time, duration_minutes
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,0)
                    """,
                    (
                        int(user_id),
                        int(project_id),
                        task_description,
                        TimeEntryType.TIMER.value,
                        start_time.date(),
                        start_time,
                    ),
                )
                return int(cur.lastrowid)

    def close_timer(self, entry_id: int, *, end_time: datetime, duration_minutes: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE time_entries
                SET end_time=%s, duration_minutes=%s
                WHERE entry_id=%s AND entry_type=%s AND end_time IS NULL
                """,
                (end_time, int(duration_minutes), int(entry_id), TimeEntryType.TIMER.value),
            )
            return cur.rowcount > 0

    def create_manual(
        self,
        *,
        user_id: int,
        project_id: int,
        task_description: str,
        entry_date: date,
        duration_minutes: int,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO time_entries(
                    user_id, project_id, task_description, entry_type, entry_date, duration_minutes
                )
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(user_id),
                    int(project_id),
                    task_description,
                    TimeEntryType.MANUAL.value,
                    entry_date,
                    int(duration_minutes),
                ),
            )
            return int(cur.lastrowid)

    def list_entries(
        self,
        *,
        start_date: date,
        end_date: date,
        user_id: Optional[int] = None,
        project_id: Optional[int] = None,
    ) -> Sequence[dict]:
        clauses = ["te.entry_date >= %s", "te.entry_date <= %s"]
        params: list[object] = [start_date, end_date]
        if user_id is not None:
            clauses.append("te.user_id=%s")
            params.append(int(user_id))
        if project_id is not None:
            clauses.append("te.project_id=%s")
            params.append(int(project_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT te.entry_id, te.user_id, te.project_id, te.task_description, te.entry_type,
                       te.entry_date, te.start_time, te.end_time, te.duration_minutes,
                       te.created_at, te.updated_at,
                       u.full_name AS user_name,
                       p.name AS project_name
                FROM time_entries te
                JOIN users u ON u.user_id = te.user_id
                JOIN projects p ON p.project_id = te.project_id
                WHERE {where_clause(clauses)}
                ORDER BY te.entry_date DESC, te.created_at DESC
                """,
                tuple(params),
            )
            return [
                _to_entry(r).as_dict(user_name=r["user_name"], project_name=r["project_name"])
                for r in fetchall(cur)
            ]
