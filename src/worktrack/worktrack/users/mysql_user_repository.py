from __future__ import annotations

from typing import Any, Optional, Sequence

from ..core.enums import Role
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, duplicate_as_conflict, fetchall, fetchone, where_clause
from .model import User
from .repository import UserRepository

_USER_COLUMNS = "user_id, email, password_hash, full_name, role, is_active, created_at"
_UPDATABLE = {"email", "password_hash", "full_name", "role", "is_active"}
_REGISTRATION_LOCK = "worktrack.users.register"
_REGISTRATION_LOCK_TIMEOUT = 10


def _to_user(row: dict) -> User:
    return User(
        user_id=int(row["user_id"]),
        email=row["email"],
        password_hash=row["password_hash"],
        full_name=row["full_name"],
        role=Role(row["role"]),
        is_active=bool(row.get("is_active", True)),
        created_at=row.get("created_at"),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE user_id=%s", (int(user_id),))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def get_by_email(self, email: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE email=%s", (email.lower(),))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def count_users(self) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS cnt FROM users")
            return int(fetchone(cur)["cnt"])

    def lock_registrations(self) -> None:
        # Named locks belong to the connection, which the transaction closes on exit.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT GET_LOCK(%s, %s) AS acquired", (_REGISTRATION_LOCK, _REGISTRATION_LOCK_TIMEOUT))
            row = fetchone(cur)
            if not row or row["acquired"] != 1:
                raise ConflictError("Registration is busy, please retry")

    def create_user(
        self,
        *,
        email: str,
        password_hash: str,
        full_name: str,
        role: Role,
        is_active: bool = True,
    ) -> int:
        with duplicate_as_conflict("Email already registered"):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO users(email, password_hash, full_name, role, is_active)
                    VALUES(%s,%s,%s,%s,%s)
                    """,
                    (email.lower(), password_hash, full_name, role.value, int(bool(is_active))),
                )
                return int(cur.lastrowid)

    def update_user(self, user_id: int, **fields: Any) -> bool:
        unknown = set(fields) - _UPDATABLE
        if unknown:
            raise ValueError(f"Unsupported user fields: {sorted(unknown)}")
        if not fields:
            return False

        assignments = []
        params: list[object] = []
        for column, value in fields.items():
            if isinstance(value, Role):
                value = value.value
            if column == "is_active":
                value = int(bool(value))
            assignments.append(f"{column}=%s")
            params.append(value)

        with duplicate_as_conflict("Email already exists"):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    f"UPDATE users SET {', '.join(assignments)} WHERE user_id=%s",
                    tuple(params + [int(user_id)]),
                )
                return cur.rowcount > 0

    def set_active(self, user_id: int, *, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET is_active=%s WHERE user_id=%s", (int(bool(is_active)), int(user_id)))
            return cur.rowcount > 0

    def list_employees(self, *, is_active: Optional[bool] = None, search: str = "") -> Sequence[dict]:
        clauses: list[str] = []
        params: list[object] = []

        if is_active is not None:
            clauses.append("u.is_active=%s")
            params.append(int(bool(is_active)))
        if search:
            clauses.append("(u.full_name LIKE %s OR u.email LIKE %s)")
            params.extend([f"%{search}%", f"%{search}%"])

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT u.user_id, u.email, u.full_name, u.role, u.is_active, u.created_at,
                       lh.last_location, te.last_entry
                FROM users u
                LEFT JOIN (
                    SELECT user_id, MAX(recorded_at) AS last_location FROM location_history GROUP BY user_id
                ) lh ON lh.user_id = u.user_id
                LEFT JOIN (
                    SELECT user_id, MAX(created_at) AS last_entry FROM time_entries GROUP BY user_id
                ) te ON te.user_id = u.user_id
                WHERE {where_clause(clauses)}
                ORDER BY u.created_at DESC
                """,
                tuple(params),
            )
            out: list[dict] = []
            for r in fetchall(cur):
                seen = [ts for ts in (r.get("last_location"), r.get("last_entry")) if ts is not None]
                out.append(
                    {
                        "id": int(r["user_id"]),
                        "email": r["email"],
                        "full_name": r["full_name"],
                        "role": r["role"],
                        "is_active": bool(r["is_active"]),
                        "created_at": r["created_at"],
                        "last_active": max(seen) if seen else None,
                    }
                )
            return out
