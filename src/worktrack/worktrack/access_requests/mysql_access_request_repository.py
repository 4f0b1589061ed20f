from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import RequestStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, duplicate_as_conflict, fetchall, fetchone, where_clause
from .model import ProjectAccessRequest
from .repository import AccessRequestRepository


class MySQLAccessRequestRepository(AccessRequestRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, request_id: int) -> Optional[ProjectAccessRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT request_id, project_id, user_id, status, requested_at,
                       reviewed_by, reviewed_at, rejection_reason
                FROM project_access_requests
                WHERE request_id=%s
                """,
                (int(request_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return ProjectAccessRequest(
                request_id=int(r["request_id"]),
                project_id=int(r["project_id"]),
                user_id=int(r["user_id"]),
                status=RequestStatus(r["status"]),
                requested_at=r["requested_at"],
                reviewed_by=r.get("reviewed_by"),
                reviewed_at=r.get("reviewed_at"),
                rejection_reason=r.get("rejection_reason"),
            )

    def has_pending(self, *, subject_id: int, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT 1 AS ok FROM project_access_requests
                WHERE project_id=%s AND user_id=%s AND status=%s
                LIMIT 1
                """,
                (int(subject_id), int(user_id), RequestStatus.PENDING.value),
            )
            return fetchone(cur) is not None

    def create(self, *, subject_id: int, user_id: int, requested_at: datetime) -> int:
        with duplicate_as_conflict("Access request already pending for this project"):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO project_access_requests(project_id, user_id, status, requested_at)
                    VALUES(%s,%s,%s,%s)
                    """,
                    (int(subject_id), int(user_id), RequestStatus.PENDING.value, requested_at),
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
                UPDATE project_access_requests
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
        project_id: Optional[int] = None,
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
        if project_id is not None:
            clauses.append("r.project_id=%s")
            params.append(int(project_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT r.request_id, r.project_id, r.user_id, r.status, r.requested_at,
                       r.reviewed_by, r.reviewed_at, r.rejection_reason,
                       p.name AS project_name,
                       u.full_name AS user_name,
                       rv.full_name AS reviewed_by_name
                FROM project_access_requests r
                JOIN projects p ON p.project_id = r.project_id
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
                    "project_id": int(r["project_id"]),
                    "project_name": r["project_name"],
                    "user_id": int(r["user_id"]),
                    "user_name": r["user_name"],
                    "status": r["status"],
                    "requested_at": r["requested_at"],
                    "reviewed_by": r.get("reviewed_by"),
                    "reviewed_by_name": r.get("reviewed_by_name"),
                    "reviewed_at": r.get("reviewed_at"),
                    "rejection_reason": r.get("rejection_reason"),
                }
                for r in fetchall(cur)
            ]
