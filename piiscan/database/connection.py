from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import psycopg
from psycopg_pool import ConnectionPool

from piiscan.config.settings import Settings

_SCHEMA_PATH = Path(__file__).parent / "schema.sql"


class Database:
    """Owns the connection pool; opened and closed by the process entry point."""

    def __init__(self, settings: Settings, *, min_size: int = 1, max_size: int = 10) -> None:
        self._conninfo = (
            f"host={settings.db_host} "
            f"port={settings.db_port} "
            f"dbname={settings.db_database} "
            f"user={settings.db_username} "
            f"password={settings.db_password}"
        )
        self._min_size = min_size
        self._max_size = max_size
        self._pool: ConnectionPool | None = None

    def open(self) -> None:
        """Create the pool and wait until a connection is available."""
        if self._pool is not None:
            return
        pool = ConnectionPool(
            self._conninfo,
            min_size=self._min_size,
            max_size=self._max_size,
            open=False,
        )
        pool.open(wait=True)
        self._pool = pool

    def close(self) -> None:
        if self._pool is not None:
            self._pool.close()
            self._pool = None

    @contextmanager
    def connection(self) -> Generator[psycopg.Connection[Any], None, None]:
        """Yield a connection from the pool. Caller manages commit/rollback."""
        if self._pool is None:
            raise RuntimeError("Database is not open. Call open() first.")
        with self._pool.connection() as conn:
            yield conn

    def apply_schema(self) -> None:
        """Create the worker's tables if they do not exist yet."""
        sql = _SCHEMA_PATH.read_text(encoding="utf-8")
        with self.connection() as conn:
            conn.execute(sql)
            conn.commit()
