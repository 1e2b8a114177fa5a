from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from types import TracebackType
from typing import Any

import psycopg
from psycopg_pool import ConnectionPool

from regforms.config.settings import Settings
from regforms.logging.logger import Log

SCHEMA_PATH = Path(__file__).with_name("schema.sql")


def build_conninfo(settings: Settings) -> str:
    """Build a libpq connection string from settings."""
    return (
        f"host={settings.db_host} "
        f"port={settings.db_port} "
        f"dbname={settings.db_database} "
        f"user={settings.db_username} "
        f"password={settings.db_password}"
    )


@dataclass(frozen=True)
class DatabaseHealth:
    healthy: bool
    timestamp: datetime | None = None
    error: str | None = None


class Database:
    """Owns the connection pool for the lifetime of the process.

    Repositories receive a Database instance instead of reaching for a
    module-level pool. Use it as a context manager to close the pool on exit.
    """

    def __init__(self, settings: Settings) -> None:
        self._pool: ConnectionPool | None = ConnectionPool(
            build_conninfo(settings),
            min_size=1,
            max_size=settings.db_pool_max_size,
            open=True,
        )

    def __enter__(self) -> "Database":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Close the connection pool."""
        if self._pool is not None:
            self._pool.close()
            self._pool = None
            Log.info("Database connection pool closed")

    @contextmanager
    def connection(self) -> Generator[psycopg.Connection[Any], None, None]:
        """Yield a connection from the pool. Caller manages commit/rollback."""
        if self._pool is None:
            raise RuntimeError("Connection pool is closed")
        with self._pool.connection() as conn:
            yield conn

    def check_health(self) -> DatabaseHealth:
        """Run a trivial query; never raises."""
        try:
            with self.connection() as conn:
                row = conn.execute("SELECT NOW()").fetchone()
        except Exception as exc:
            return DatabaseHealth(healthy=False, error=str(exc))
        return DatabaseHealth(healthy=True, timestamp=row[0] if row else None)

    def initialize_schema(self, schema_path: Path = SCHEMA_PATH) -> None:
        """Create missing tables and indexes. Safe to run repeatedly."""
        statements = schema_path.read_text(encoding="utf-8")
        with self.connection() as conn:
            conn.execute(statements)
            conn.commit()
        Log.info(f"Database schema initialized from {schema_path.name}")
