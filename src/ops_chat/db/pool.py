"""Postgres connection pool with an explicit open/close lifecycle."""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

import psycopg2
from psycopg2.pool import ThreadedConnectionPool

from ops_chat.config import PoolConfig
from ops_chat.errors import DatabaseUnavailableError
from ops_chat.obs.logging import get_logger

logger = get_logger(__name__)


class ConnectionPool:
    """Thread-safe pool shared by in-flight requests.

    `open()` runs once at process start and fails fast when the database is
    unreachable; `close()` drains every connection at shutdown. Connections are
    checked out per query through `connection()` and always returned. When all
    `max_connections` are in use, a checkout waits up to
    `checkout_timeout_seconds` for one to be returned.
    """

    def __init__(
        self,
        dsn: str,
        config: PoolConfig | None = None,
        *,
        pool_factory: Callable[..., Any] = ThreadedConnectionPool,
    ) -> None:
        self._dsn = dsn
        self._config = config or PoolConfig()
        self._pool_factory = pool_factory
        self._pool: Any | None = None
        self._slots = threading.BoundedSemaphore(self._config.max_connections)

    @property
    def is_open(self) -> bool:
        return self._pool is not None

    def open(self) -> None:
        if self._pool is not None:
            return
        try:
            self._pool = self._pool_factory(
                self._config.min_connections,
                self._config.max_connections,
                dsn=self._dsn,
            )
        except psycopg2.Error as exc:
            raise DatabaseUnavailableError(f"Could not open database pool: {exc}") from exc
        logger.info(
            f"Database pool opened (min={self._config.min_connections}, "
            f"max={self._config.max_connections})"
        )

    def close(self) -> None:
        if self._pool is None:
            return
        self._pool.closeall()
        self._pool = None
        logger.info("Database pool closed")

    @contextmanager
    def connection(self) -> Iterator[Any]:
        pool = self._pool
        if pool is None:
            raise DatabaseUnavailableError("Database pool is not open")
        if not self._slots.acquire(timeout=self._config.checkout_timeout_seconds):
            raise DatabaseUnavailableError("Timed out waiting for a database connection")
        try:
            conn = pool.getconn()
            try:
                yield conn
                conn.commit()
            except Exception:
                conn.rollback()
                raise
            finally:
                # closeall() during shutdown has already closed the connection.
                if not pool.closed:
                    pool.putconn(conn)
        finally:
            self._slots.release()

    def fetch_all(self, sql: str, params: tuple[Any, ...]) -> list[tuple[Any, ...]]:
        with self.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(sql, params)
                return list(cur.fetchall())
