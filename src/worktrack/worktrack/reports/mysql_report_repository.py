from __future__ import annotations

import json
from datetime import date
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    db_cursor,
    duplicate_as_conflict,
    fetchall,
    fetchone,
    load_json_list,
    to_float,
    where_clause,
)
from .model import DailyReport
from .repository import ReportRepository

_COLUMNS = "report_id, user_id, report_date, tasks_completed, hours_worked, notes, created_at, updated_at"


def _to_report(r: dict) -> DailyReport:
    return DailyReport(
        report_id=int(r["report_id"]),
        user_id=int(r["user_id"]),
        report_date=r["report_date"],
        tasks_completed=load_json_list(r["tasks_completed"]),
        hours_worked=to_float(r["hours_worked"]) or 0.0,
        notes=r.get("notes"),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


class MySQLReportRepository(ReportRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, report_id: int) -> Optional[DailyReport]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM daily_reports WHERE report_id=%s", (int(report_id),))
            r = fetchone(cur)
            return _to_report(r) if r else None

    def exists_for_date(self, *, user_id: int, report_date: date) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT 1 AS ok FROM daily_reports WHERE user_id=%s AND report_date=%s LIMIT 1",
                (int(user_id), report_date),
            )
            return fetchone(cur) is not None

    def create_report(
        self,
        *,
        user_id: int,
        report_date: date,
        tasks: list[str],
        hours_worked: float,
        notes: Optional[str],
    ) -> int:
        with duplicate_as_conflict("Report already exists for this date"):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO daily_reports(user_id, report_date, tasks_completed, hours_worked, notes)
                    VALUES(%s,%s,%s,%s,%s)
                    """,
                    (int(user_id), report_date, json.dumps(list(tasks)), hours_worked, notes),
                )
                return int(cur.lastrowid)

    def update_report(
        self,
        report_id: int,
        *,
        tasks: list[str],
        hours_worked: float,
        notes: Optional[str],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE daily_reports
                SET tasks_completed=%s, hours_worked=%s, notes=%s
                WHERE report_id=%s
                """,
                (json.dumps(list(tasks)), hours_worked, notes, int(report_id)),
            )
            return cur.rowcount > 0

    def list_reports(
        self,
        *,
        start_date: date,
        end_date: date,
        user_id: Optional[int] = None,
    ) -> Sequence[dict]:
        clauses = ["dr.report_date >= %s", "dr.report_date <= %s"]
        params: list[object] = [start_date, end_date]
        if user_id is not None:
            clauses.append("dr.user_id=%s")
            params.append(int(user_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT dr.report_id, dr.user_id, dr.report_date, dr.tasks_completed,
                       dr.hours_worked, dr.notes, dr.created_at, dr.updated_at,
                       u.full_name AS user_name
                FROM daily_reports dr
                JOIN users u ON u.user_id = dr.user_id
                WHERE {where_clause(clauses)}
                ORDER BY dr.report_date DESC, dr.created_at DESC
                """,
                tuple(params),
            )
            return [
                {
                    "report_id": int(r["report_id"]),
                    "user_id": int(r["user_id"]),
                    "user_name": r["user_name"],
                    "report_date": r["report_date"],
                    "tasks_completed": load_json_list(r["tasks_completed"]),
                    "hours_worked": to_float(r["hours_worked"]),
                    "notes": r.get("notes"),
                    "created_at": r["created_at"],
                    "updated_at": r.get("updated_at"),
                }
                for r in fetchall(cur)
            ]
