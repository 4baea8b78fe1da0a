"""Callback executor — runs the callback statement on a pooled connection.

Learn: Callback work is bounded twice over:
1. asyncio.Semaphore(capacity) caps how many callbacks run at once
2. the asyncpg pool (max_size = capacity) caps live connections

Waiting callbacks queue on the semaphore, so a burst of notifications never
asks the pool for more connections than it has. Acquiring still has a
timeout: if the pool cannot hand out a connection in time, the callback is
dropped with a PoolTimeoutError.

The statement's status string is discarded. The callback is a
side effect, not a query.
"""

import asyncio

import asyncpg
import structlog

from http_port.errors import CallbackError, PoolTimeoutError

logger = structlog.get_logger()


class CallbackExecutor:
    def __init__(self, pool: asyncpg.Pool, capacity: int, acquire_timeout: float = 30.0):
        self.pool = pool
        self.capacity = capacity
        self.acquire_timeout = acquire_timeout
        self.semaphore = asyncio.Semaphore(capacity)

    async def execute(self, callback: str, envelope: str) -> None:
        """Run ``callback`` with ``envelope`` bound as its only parameter ($1).

        Raises PoolTimeoutError or CallbackError; the connection is returned
        to the pool on every path.
        """
        async with self.semaphore:
            try:
                async with self.pool.acquire(timeout=self.acquire_timeout) as conn:
                    try:
                        status = await conn.execute(callback, envelope)
                    except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
                        raise CallbackError(
                            f"callback failed: {e}", callback=callback
                        ) from e
            except asyncio.TimeoutError as e:
                raise PoolTimeoutError(
                    f"no database connection available after {self.acquire_timeout}s",
                    callback=callback,
                ) from e
            except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
                # Raised while acquiring or releasing, not by the statement.
                raise CallbackError(f"connection error: {e}", callback=callback) from e

        logger.debug("http_port.callback_done", callback=callback, status=status)
