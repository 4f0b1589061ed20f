from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..common.datetime_utils import format_duration, minutes_to_hours
from ..core.enums import ProjectStatus, RequestStatus, Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, to_float, where_clause
from .repository import DashboardRepository


class MySQLDashboardRepository(DashboardRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _scalar(self, sql: str, params: tuple = ()) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, params)
            row = fetchone(cur)
            return int(row["value"] or 0) if row else 0

    def count_active_employees(self) -> int:
        return self._scalar(
            "SELECT COUNT(*) AS value FROM users WHERE is_active=1 AND role=%s",
            (Role.EMPLOYEE.value,),
        )

    def count_active_projects(self) -> int:
        return self._scalar("SELECT COUNT(*) AS value FROM projects WHERE status=%s", (ProjectStatus.ACTIVE.value,))

    def count_pending_requests(self) -> int:
        return self._scalar(
            """
            SELECT (SELECT COUNT(*) FROM project_access_requests WHERE status=%s)
                 + (SELECT COUNT(*) FROM report_edit_requests WHERE status=%s) AS value
            """,
            (RequestStatus.PENDING.value, RequestStatus.PENDING.value),
        )

    def count_reports(self, *, start_date: date, end_date: Optional[date] = None, user_id: Optional[int] = None) -> int:
        clauses = ["report_date >= %s"]
        params: list[object] = [start_date]
        if end_date is not None:
            clauses.append("report_date <= %s")
            params.append(end_date)
        if user_id is not None:
            clauses.append("user_id=%s")
            params.append(int(user_id))
        return self._scalar(f"SELECT COUNT(*) AS value FROM daily_reports WHERE {where_clause(clauses)}", tuple(params))

    def minutes_logged(self, *, user_id: int, start_date: date, end_date: Optional[date] = None) -> int:
        clauses = ["user_id=%s", "entry_date >= %s"]
        params: list[object] = [int(user_id), start_date]
        if end_date is not None:
            clauses.append("entry_date <= %s")
            params.append(end_date)
        return self._scalar(
            f"SELECT COALESCE(SUM(duration_minutes), 0) AS value FROM time_entries WHERE {where_clause(clauses)}",
            tuple(params),
        )

    def count_active_assigned_projects(self, user_id: int) -> int:
        return self._scalar(
            """
            SELECT COUNT(*) AS value
            FROM project_assignments pa
            JOIN projects p ON p.project_id = pa.project_id
            WHERE pa.user_id=%s AND p.status=%s
            """,
            (int(user_id), ProjectStatus.ACTIVE.value),
        )

    def recent_activity(self, *, today: date, limit: int) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT u.user_id, u.full_name,
                       loc.recorded_at AS last_active,
                       loc.latitude, loc.longitude,
                       COALESCE(te.minutes_today, 0) AS minutes_today
                FROM users u
                LEFT JOIN (
                    SELECT user_id, latitude, longitude, recorded_at
                    FROM (
                        SELECT user_id, latitude, longitude, recorded_at,
                               ROW_NUMBER() OVER (
                                   PARTITION BY user_id ORDER BY recorded_at DESC, location_id DESC
                               ) AS rn
                        FROM location_history
                    ) ranked
                    WHERE rn = 1
                ) loc ON loc.user_id = u.user_id
                LEFT JOIN (
                    SELECT user_id, SUM(duration_minutes) AS minutes_today
                    FROM time_entries WHERE entry_date=%s GROUP BY user_id
                ) te ON te.user_id = u.user_id
                WHERE u.is_active=1
                ORDER BY loc.recorded_at IS NULL, loc.recorded_at DESC
                LIMIT %s
                """,
                (today, int(limit)),
            )
            out: list[dict] = []
            for r in fetchall(cur):
                location = None
                if r.get("last_active") is not None:
                    location = {"latitude": to_float(r["latitude"]), "longitude": to_float(r["longitude"])}
                out.append(
                    {
                        "user_id": int(r["user_id"]),
                        "full_name": r["full_name"],
                        "last_active": r.get("last_active"),
                        "current_location": location,
                        "hours_today": minutes_to_hours(r["minutes_today"] or 0),
                    }
                )
            return out

    def recent_entries(self, *, user_id: int, limit: int, completed_only: bool = False) -> Sequence[dict]:
        clauses = ["te.user_id=%s"]
        if completed_only:
            clauses.append("(te.entry_type='manual' OR te.end_time IS NOT NULL)")

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT te.entry_id, te.project_id, te.task_description, te.entry_type, te.entry_date,
                       te.start_time, te.end_time, te.duration_minutes, te.created_at,
                       p.name AS project_name
                FROM time_entries te
                JOIN projects p ON p.project_id = te.project_id
                WHERE {where_clause(clauses)}
                ORDER BY te.created_at DESC, te.entry_id DESC
                LIMIT %s
                """,
                (int(user_id), int(limit)),
            )
            return [
                {
                    "entry_id": int(r["entry_id"]),
                    "project_id": int(r["project_id"]),
                    "project_name": r["project_name"],
                    "task_description": r["task_description"],
                    "entry_type": r["entry_type"],
                    "entry_date": r["entry_date"],
                    "start_time": r.get("start_time"),
                    "end_time": r.get("end_time"),
                    "duration_minutes": int(r["duration_minutes"] or 0),
                    "duration_formatted": format_duration(int(r["duration_minutes"] or 0)),
                    "created_at": r["created_at"],
                }
                for r in fetchall(cur)
            ]

    def recent_reports(self, *, user_id: int, limit: int) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT report_id, report_date, hours_worked, created_at
                FROM daily_reports
                WHERE user_id=%s
                ORDER BY report_date DESC
                LIMIT %s
                """,
                (int(user_id), int(limit)),
            )
            return [
                {
                    "report_id": int(r["report_id"]),
                    "report_date": r["report_date"],
                    "hours_worked": to_float(r["hours_worked"]),
                    "created_at": r["created_at"],
                }
                for r in fetchall(cur)
            ]

    def assigned_projects(self, user_id: int) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT p.project_id, p.name, p.status, pa.assigned_at
                FROM project_assignments pa
                JOIN projects p ON p.project_id = pa.project_id
                WHERE pa.user_id=%s
                ORDER BY pa.assigned_at DESC
                """,
                (int(user_id),),
            )
            return [
                {
                    "project_id": int(r["project_id"]),
                    "name": r["name"],
                    "status": r["status"],
                    "assigned_at": r["assigned_at"],
                }
                for r in fetchall(cur)
            ]
