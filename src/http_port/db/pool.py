"""asyncpg connection handles — the callback pool and the LISTEN connection.

Learn: The LISTEN connection is kept outside the pool. A pooled connection
is reset when released, which would drop its subscriptions.
"""

import asyncpg

from http_port.config import Settings
from http_port.errors import StartupError


async def create_pool(settings: Settings) -> asyncpg.Pool:
    """Connection pool for callbacks, sized by ``db_pool``."""
    try:
        return await asyncpg.create_pool(
            settings.db_uri,
            min_size=1,
            max_size=settings.db_pool,
        )
    except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, ValueError) as e:
        raise StartupError(f"cannot create database pool: {e}") from e


async def connect_listener(settings: Settings) -> asyncpg.Connection:
    """Dedicated connection for LISTEN/NOTIFY."""
    try:
        return await asyncpg.connect(settings.db_uri)
    except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, ValueError) as e:
        raise StartupError(f"cannot connect to database: {e}") from e
