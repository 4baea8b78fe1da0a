"""Dispatcher runtime — wires the pool, HTTP client and listener together.

Learn: Startup order matters. The pool and the LISTEN connection are opened
before anything is subscribed, so a bad db_uri fails fast with a
StartupError. Shutdown runs in reverse: stop listening, let in-flight
notifications finish (bounded by shutdown_timeout), then close the pool and
the HTTP client.
"""

import asyncio
import signal
from typing import Optional

import asyncpg
import structlog

from http_port.config import Settings
from http_port.db.pool import connect_listener, create_pool
from http_port.dispatcher.listener import NotificationListener
from http_port.errors import StartupError
from http_port.services.callback_executor import CallbackExecutor
from http_port.services.http_dispatch import HttpDispatcher, create_http_client

logger = structlog.get_logger()


def _redact(db_uri: str) -> str:
    return db_uri.split("@", 1)[1] if "@" in db_uri else db_uri


async def run(settings: Settings) -> None:
    """Run the dispatcher until SIGINT/SIGTERM or the LISTEN connection drops."""
    logger.info(
        "http_port.starting",
        db=_redact(settings.db_uri),
        channel=settings.db_channel,
        pool=settings.db_pool,
    )

    client = create_http_client(settings)
    pool: Optional[asyncpg.Pool] = None
    try:
        pool = await create_pool(settings)
        conn = await connect_listener(settings)

        executor = CallbackExecutor(pool, settings.db_pool, settings.pool_timeout)
        listener = NotificationListener(HttpDispatcher(client), executor, settings.db_channel)

        try:
            await listener.start(conn)
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
            await conn.close()
            raise StartupError(f"cannot LISTEN on {settings.db_channel!r}: {e}") from e

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, listener.stop)

        try:
            await listener.run_forever()
        finally:
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.remove_signal_handler(sig)
            await listener.close()
            if not await listener.drain(timeout=settings.shutdown_timeout or None):
                cancelled = listener.cancel_pending()
                logger.warning("http_port.shutdown_cancelled", cancelled=cancelled)
                await listener.drain()
            logger.info("http_port.stopped", **listener.get_stats())
    finally:
        if pool is not None:
            await pool.close()
        await client.aclose()
