import threading
import time

import pytest
from psycopg2.pool import PoolError

from ops_chat.config import PoolConfig
from ops_chat.db.pool import ConnectionPool
from ops_chat.errors import DatabaseUnavailableError


class _FakeConnection:
    def commit(self) -> None:
        pass

    def rollback(self) -> None:
        pass


class _FakePool:
    """Mimics ThreadedConnectionPool: getconn fails once maxconn are out."""

    def __init__(self, minconn: int, maxconn: int, dsn: str) -> None:
        self.maxconn = maxconn
        self.closed = False
        self.in_use = 0
        self.peak = 0
        self._lock = threading.Lock()

    def getconn(self) -> _FakeConnection:
        with self._lock:
            if self.in_use >= self.maxconn:
                raise PoolError("connection pool exhausted")
            self.in_use += 1
            self.peak = max(self.peak, self.in_use)
        return _FakeConnection()

    def putconn(self, conn: _FakeConnection) -> None:
        if self.closed:
            raise PoolError("connection pool is closed")
        with self._lock:
            self.in_use -= 1

    def closeall(self) -> None:
        self.closed = True


def _open_pool(config: PoolConfig) -> tuple[ConnectionPool, _FakePool]:
    pool = ConnectionPool("postgresql://test", config, pool_factory=_FakePool)
    pool.open()
    return pool, pool._pool


def test_checkouts_beyond_max_connections_wait_instead_of_failing() -> None:
    pool, fake = _open_pool(PoolConfig(min_connections=1, max_connections=2))
    errors: list[Exception] = []

    def _query() -> None:
        try:
            with pool.connection():
                time.sleep(0.05)
        except Exception as exc:
            errors.append(exc)

    threads = [threading.Thread(target=_query) for _ in range(5)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert fake.peak == 2
    assert fake.in_use == 0


def test_checkout_times_out_when_every_connection_is_held() -> None:
    pool, _ = _open_pool(
        PoolConfig(min_connections=1, max_connections=1, checkout_timeout_seconds=0.05)
    )

    with pool.connection():
        with pytest.raises(DatabaseUnavailableError):
            with pool.connection():
                pass


def test_close_during_inflight_query_does_not_raise() -> None:
    pool, fake = _open_pool(PoolConfig(min_connections=1, max_connections=2))

    with pool.connection():
        pool.close()

    assert fake.closed
    assert not pool.is_open
    with pytest.raises(DatabaseUnavailableError):
        with pool.connection():
            pass
