from __future__ import annotations

import json
from contextlib import contextmanager
from decimal import Decimal
from typing import Any, Dict, List, Optional

import mysql.connector
from mysql.connector import errorcode

from ..core.exceptions import ConflictError
from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    active = conn_factory.active_connection()
    if active is not None:
        # Commit/rollback belong to the enclosing transaction.
        cur = active.cursor(dictionary=dictionary)
        try:
            yield active, cur
        finally:
            cur.close()
        return

    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


@contextmanager
def duplicate_as_conflict(message: str):
    """Translate unique-key violations into ConflictError."""
    try:
        yield
    except mysql.connector.IntegrityError as e:
        if e.errno == errorcode.ER_DUP_ENTRY:
            raise ConflictError(message) from e
        raise


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def to_float(value: Any) -> Optional[float]:
    """DECIMAL columns come back as Decimal."""
    if value is None:
        return None
    if isinstance(value, Decimal):
        return float(value)
    return float(value)


def load_json_list(value: Any) -> list:
    if value is None:
        return []
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    if isinstance(value, str):
        return list(json.loads(value))
    return list(value)


def where_clause(clauses: list[str]) -> str:
    return " AND ".join(clauses) if clauses else "1=1"
