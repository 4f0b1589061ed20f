from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Sequence

from ..common.datetime_utils import minutes_to_hours
from ..core.enums import ProjectStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, duplicate_as_conflict, fetchall, fetchone, where_clause
from .model import Project
from .repository import ProjectRepository

_PROJECT_COLUMNS = "project_id, name, description, status, created_by, created_at, updated_at"
_UPDATABLE = {"name", "description", "status"}


def _to_project(row: dict) -> Project:
    return Project(
        project_id=int(row["project_id"]),
        name=row["name"],
        description=row.get("description"),
        status=ProjectStatus(row["status"]),
        created_by=int(row["created_by"]),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


class MySQLProjectRepository(ProjectRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_projects(self, *, status: Optional[ProjectStatus] = None) -> Sequence[dict]:
        clauses: list[str] = []
        params: list[object] = []
        if status is not None:
            clauses.append("p.status=%s")
            params.append(status.value)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT p.project_id, p.name, p.description, p.status, p.created_by,
                       p.created_at, p.updated_at,
                       u.full_name AS created_by_name,
                       (SELECT COUNT(*) FROM project_assignments pa
                        WHERE pa.project_id = p.project_id) AS assigned_employees_count
                FROM projects p
                JOIN users u ON u.user_id = p.created_by
                WHERE {where_clause(clauses)}
                ORDER BY p.created_at DESC
                """,
                tuple(params),
            )
            return [
                {
                    "project_id": int(r["project_id"]),
                    "name": r["name"],
                    "description": r.get("description"),
                    "status": r["status"],
                    "created_by": int(r["created_by"]),
                    "created_by_name": r["created_by_name"],
                    "assigned_employees_count": int(r["assigned_employees_count"] or 0),
                    "created_at": r["created_at"],
                    "updated_at": r.get("updated_at"),
                }
                for r in fetchall(cur)
            ]

    def get_by_id(self, project_id: int) -> Optional[Project]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_PROJECT_COLUMNS} FROM projects WHERE project_id=%s", (int(project_id),))
            row = fetchone(cur)
            return _to_project(row) if row else None

    def get_by_name(self, name: str) -> Optional[Project]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_PROJECT_COLUMNS} FROM projects WHERE name=%s", (name,))
            row = fetchone(cur)
            return _to_project(row) if row else None

    def create_project(
        self,
        *,
        name: str,
        description: Optional[str],
        status: ProjectStatus,
        created_by: int,
    ) -> int:
        with duplicate_as_conflict("Project name already exists"):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    "INSERT INTO projects(name, description, status, created_by) VALUES(%s,%s,%s,%s)",
                    (name, description, status.value, int(created_by)),
                )
                return int(cur.lastrowid)

    def update_project(self, project_id: int, **fields: Any) -> bool:
        unknown = set(fields) - _UPDATABLE
        if unknown:
            raise ValueError(f"Unsupported project fields: {sorted(unknown)}")
        if not fields:
            return False

        assignments = []
        params: list[object] = []
        for column, value in fields.items():
            if isinstance(value, ProjectStatus):
                value = value.value
            assignments.append(f"{column}=%s")
            params.append(value)

        with duplicate_as_conflict("Project name already exists"):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    f"UPDATE projects SET {', '.join(assignments)} WHERE project_id=%s",
                    tuple(params + [int(project_id)]),
                )
                return cur.rowcount > 0

    # -------- Assignments --------
    def is_assigned(self, *, project_id: int, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT 1 AS ok FROM project_assignments WHERE project_id=%s AND user_id=%s LIMIT 1",
                (int(project_id), int(user_id)),
            )
            return fetchone(cur) is not None

    def add_assignment(self, *, project_id: int, user_id: int, assigned_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            # No-op update on the unique key: rowcount is 1 for a new row, 0 for an existing one.
            cur.execute(
                """
                INSERT INTO project_assignments(project_id, user_id, assigned_at)
                VALUES(%s,%s,%s)
                ON DUPLICATE KEY UPDATE assignment_id = assignment_id
                """,
                (int(project_id), int(user_id), assigned_at),
            )
            return cur.rowcount == 1

    def remove_assignment(self, *, project_id: int, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM project_assignments WHERE project_id=%s AND user_id=%s",
                (int(project_id), int(user_id)),
            )
            return cur.rowcount > 0

    def list_assigned_employees(self, project_id: int) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT u.user_id, u.full_name, u.email, pa.assigned_at,
                       COALESCE(SUM(te.duration_minutes), 0) AS total_minutes
                FROM project_assignments pa
                JOIN users u ON u.user_id = pa.user_id
                LEFT JOIN time_entries te ON te.user_id = pa.user_id AND te.project_id = pa.project_id
                WHERE pa.project_id=%s
                GROUP BY u.user_id, u.full_name, u.email, pa.assigned_at
                ORDER BY pa.assigned_at DESC
                """,
                (int(project_id),),
            )
            return [
                {
                    "user_id": int(r["user_id"]),
                    "full_name": r["full_name"],
                    "email": r["email"],
                    "assigned_at": r["assigned_at"],
                    "total_hours": minutes_to_hours(r["total_minutes"] or 0),
                }
                for r in fetchall(cur)
            ]

    def total_minutes_logged(self, project_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT COALESCE(SUM(duration_minutes), 0) AS total FROM time_entries WHERE project_id=%s",
                (int(project_id),),
            )
            return int(fetchone(cur)["total"])
