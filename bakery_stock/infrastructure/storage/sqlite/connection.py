"""
Fixed-size pool of aiosqlite connections to the stock database.

Each aiosqlite connection runs on its own thread, so pooled connections let
ledger transactions overlap; SQLite's write lock and the busy timeout
serialise the commits.
"""

import asyncio
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite

from bakery_stock.config import get_logger, get_settings
from bakery_stock.core.exceptions import PersistenceError

logger = get_logger(__name__)

_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=NORMAL",
)


class ConnectionPool:
    """Opens ``pool_size`` connections lazily and hands them out one at a time."""

    def __init__(
        self,
        db_path: Path,
        pool_size: int = 5,
        busy_timeout: int = 30000,
        acquire_timeout: float = 10.0,
    ):
        self.db_path = db_path
        self.pool_size = pool_size
        self.busy_timeout = busy_timeout  # ms, SQLite side
        self.acquire_timeout = acquire_timeout  # s, waiting for a free connection

        self._idle: asyncio.Queue[aiosqlite.Connection] = asyncio.Queue()
        self._connections: list[aiosqlite.Connection] = []
        self._initialized = False
        self._lock = asyncio.Lock()

    @property
    def in_use(self) -> int:
        return len(self._connections) - self._idle.qsize()

    async def initialize(self) -> None:
        async with self._lock:
            if self._initialized:
                return
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            for _ in range(self.pool_size):
                conn = await self._open()
                self._connections.append(conn)
                self._idle.put_nowait(conn)
            self._initialized = True

        logger.info("connection_pool_initialized", db_path=str(self.db_path), pool_size=self.pool_size)

    async def _open(self) -> aiosqlite.Connection:
        conn = await aiosqlite.connect(self.db_path)
        for pragma in _PRAGMAS:
            await conn.execute(pragma)
        await conn.execute(f"PRAGMA busy_timeout={int(self.busy_timeout)}")
        conn.row_factory = aiosqlite.Row
        return conn

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Borrow a connection; it goes back to the pool when the block exits.

        Raises PersistenceError if none frees up within ``acquire_timeout``.
        """
        if not self._initialized:
            await self.initialize()

        try:
            conn = await asyncio.wait_for(self._idle.get(), timeout=self.acquire_timeout)
        except TimeoutError as e:
            logger.error("connection_pool_exhausted", pool_size=self.pool_size)
            raise PersistenceError("acquire", "No database connection available") from e

        try:
            yield conn
        finally:
            self._idle.put_nowait(conn)

    @asynccontextmanager
    async def transaction(self, immediate: bool = False) -> AsyncIterator[aiosqlite.Connection]:
        """
        Borrow a connection inside a transaction.

        Commits when the block exits normally, rolls back otherwise. With
        ``immediate`` the write lock is taken before the block runs, so
        whatever the block reads cannot change until it commits.
        """
        async with self.acquire() as conn:
            if immediate:
                await conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
                await conn.commit()
            except BaseException:
                await conn.rollback()
                raise

    async def ping(self) -> float:
        """Round-trip a trivial query; returns latency in milliseconds."""
        started = time.perf_counter()
        async with self.acquire() as conn:
            await conn.execute("SELECT 1")
        return (time.perf_counter() - started) * 1000

    async def close(self) -> None:
        async with self._lock:
            for conn in self._connections:
                await conn.close()
            self._connections.clear()
            self._idle = asyncio.Queue()
            self._initialized = False
        logger.info("connection_pool_closed", db_path=str(self.db_path))


_pool: ConnectionPool | None = None


async def get_pool() -> ConnectionPool:
    """Process-wide pool built from storage settings."""
    global _pool
    if _pool is None:
        storage = get_settings().storage
        _pool = ConnectionPool(
            db_path=storage.db_path,
            pool_size=storage.pool_size,
            busy_timeout=storage.busy_timeout,
            acquire_timeout=storage.acquire_timeout,
        )
        await _pool.initialize()
    return _pool


async def close_pool() -> None:
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None
