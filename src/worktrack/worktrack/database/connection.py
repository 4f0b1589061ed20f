from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any, Iterator, Optional

import mysql.connector


@dataclass
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str


class DatabaseConnection:
    """Singleton-like DB connection factory.

    Note: We create short-lived connections per operation (safe for simple Flask apps).
    Inside ``transaction()`` every repository call reuses one connection so that
    multi-write operations commit or roll back together.
    """

    _instance: Optional["DatabaseConnection"] = None

    def __init__(self, config: DBConfig):
        self._config = config
        self._active: ContextVar[Optional[Any]] = ContextVar(f"worktrack_tx_{id(self)}", default=None)

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        if cls._instance is None:
            cls._instance = DatabaseConnection(config)
        return cls._instance

    def connect(self):
        return mysql.connector.connect(
            host=self._config.host,
            port=int(self._config.port),
            user=self._config.user,
            password=self._config.password,
            database=self._config.database,
        )

    def active_connection(self) -> Optional[Any]:
        return self._active.get()

    @contextmanager
    def transaction(self) -> Iterator[None]:
        # Nested blocks join the outer transaction.
        if self._active.get() is not None:
            yield
            return

        conn = self.connect()
        token = self._active.set(conn)
        try:
            yield
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            self._active.reset(token)
            conn.close()
