from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import RequestStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, duplicate_as_conflict, fetchall, fetchone, where_clause
from .model import ReportEditRequest
from .repository import EditRequestRepository

_COLUMNS = (
    "request_id, report_id, user_id, reason, status, requested_at, "
    "reviewed_by, reviewed_at, rejection_reason, edit_deadline"
)


def _to_request(r: dict) -> ReportEditRequest:
    return ReportEditRequest(
        request_id=int(r["request_id"]),
        report_id=int(r["report_id"]),
        user_id=int(r["user_id"]),
        reason=r["reason"],
        status=RequestStatus(r["status"]),
        requested_at=r["requested_at"],
        reviewed_by=r.get("reviewed_by"),
        reviewed_at=r.get("reviewed_at"),
        rejection_reason=r.get("rejection_reason"),
        edit_deadline=r.get("edit_deadline"),
    )


class MySQLEditRequestRepository(EditRequestRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, request_id: int) -> Optional[ReportEditRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM report_edit_requests WHERE request_id=%s", (int(request_id),))
            r = fetchone(cur)
            return _to_request(r) if r else None

    def has_pending(self, *, subject_id: int, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT 1 AS ok FROM report_edit_requests WHERE report_id=%s AND status=%s LIMIT 1",
                (int(subject_id), RequestStatus.PENDING.value),
            )
            return fetchone(cur) is not None

    def create(self, *, subject_id: int, user_id: int, requested_at: datetime, reason: str) -> int:
        with duplicate_as_conflict("Edit request already pending for this report"):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO report_edit_requests(report_id, user_id, reason, status, requested_at)
                    VALUES(%s,%s,%s,%s,%s)
                    """,
                    (int(subject_id), int(user_id), reason, RequestStatus.PENDING.value, requested_at),
                )
                return int(cur.lastrowid)

    def decide(
        self,
        *,
        request_id: int,
        status: RequestStatus,
        reviewed_by: int,
        reviewed_at: datetime,
        rejection_reason: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE report_edit_requests
                SET status=%s, reviewed_by=%s, reviewed_at=%s, rejection_reason=%s
                WHERE request_id=%s AND status=%s
                """,
                (
                    status.value,
                    int(reviewed_by),
                    reviewed_at,
                    rejection_reason,
                    int(request_id),
                    RequestStatus.PENDING.value,
                ),
            )
            return cur.rowcount > 0

    def list_rows(
        self,
        *,
        status: Optional[RequestStatus] = None,
        user_id: Optional[int] = None,
        limit: int = 200,
    ) -> Sequence[dict]:
        clauses: list[str] = []
        params: list[object] = []

        if status is not None:
            clauses.append("r.status=%s")
            params.append(status.value)
        if user_id is not None:
            clauses.append("r.user_id=%s")
            params.append(int(user_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT r.request_id, r.report_id, r.user_id, r.reason, r.status, r.requested_at,
                       r.reviewed_by, r.reviewed_at, r.rejection_reason, r.edit_deadline,
                       dr.report_date,
                       u.full_name AS user_name,
                       rv.full_name AS reviewed_by_name
                FROM report_edit_requests r
                JOIN daily_reports dr ON dr.report_id = r.report_id
                JOIN users u ON u.user_id = r.user_id
                LEFT JOIN users rv ON rv.user_id = r.reviewed_by
                WHERE {where_clause(clauses)}
                ORDER BY r.requested_at DESC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [
                {
                    "request_id": int(r["request_id"]),
                    "report_id": int(r["report_id"]),
                    "report_date": r["report_date"],
                    "user_id": int(r["user_id"]),
                    "user_name": r["user_name"],
                    "reason": r["reason"],
                    "status": r["status"],
                    "requested_at": r["requested_at"],
                    "reviewed_by": r.get("reviewed_by"),
                    "reviewed_by_name": r.get("reviewed_by_name"),
                    "reviewed_at": r.get("reviewed_at"),
                    "rejection_reason": r.get("rejection_reason"),
                    "edit_deadline": r.get("edit_deadline"),
                }
                for r in fetchall(cur)
            ]

    # -------- Grants --------
    def set_edit_deadline(self, request_id: int, deadline: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE report_edit_requests SET edit_deadline=%s WHERE request_id=%s",
                (deadline, int(request_id)),
            )
            return cur.rowcount > 0

    def latest_live_grant(self, *, report_id: int, user_id: int, now: datetime) -> Optional[ReportEditRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM report_edit_requests
                WHERE report_id=%s AND user_id=%s AND status=%s AND edit_deadline > %s
                ORDER BY edit_deadline DESC
                LIMIT 1
                """,
                (int(report_id), int(user_id), RequestStatus.APPROVED.value, now),
            )
            r = fetchone(cur)
            return _to_request(r) if r else None

    def delete(self, request_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM report_edit_requests WHERE request_id=%s", (int(request_id),))
            return cur.rowcount > 0
