"""
Postgres-backed SalesStore (async) using asyncpg.
Provides same interface as analytics/state/store.py.
"""
import asyncio
from typing import Any, Dict, List, Optional, Sequence

import asyncpg

from analytics.logger import get_logger
from analytics.state.result import StoreErrorKind, StoreResult
from analytics.state.store import SalesStore

logger = get_logger(__name__)

_CONNECTION_ERRORS = (
    asyncpg.PostgresConnectionError,
    asyncpg.InterfaceError,
    asyncio.TimeoutError,
    OSError,
)


class PostgresSalesStore(SalesStore):
    paramstyle = "dollar"

    def __init__(
        self,
        database_url: str,
        min_size: int = 1,
        max_size: int = 20,
        command_timeout: Optional[float] = 10.0,
        ssl: bool = False,
    ):
        self.database_url = database_url
        self.min_size = min_size
        self.max_size = max_size
        self.command_timeout = command_timeout
        self.ssl = ssl
        self.pool = None

    async def initialize(self):
        """Create the bounded connection pool and verify connectivity."""
        self.pool = await asyncpg.create_pool(
            self.database_url,
            min_size=self.min_size,
            max_size=self.max_size,
            command_timeout=self.command_timeout,
            ssl="require" if self.ssl else False,
        )
        async with self.pool.acquire() as conn:
            await conn.fetchval("SELECT NOW()")
        logger.info("Connected to PostgreSQL (pool max_size=%s)", self.max_size)

    async def close(self):
        if self.pool is not None:
            await self.pool.close()
            self.pool = None

    async def fetch(self, sql: str, args: Sequence[Any] = ()) -> StoreResult[List[Dict[str, Any]]]:
        if self.pool is None:
            return StoreResult.failure(StoreErrorKind.CONNECTION, "pool not initialized")
        try:
            async with self.pool.acquire() as conn:
                rows = await conn.fetch(sql, *args)
        except (OverflowError, ValueError) as e:
            # asyncpg.DataError (unencodable argument) is a ValueError
            logger.error("PostgreSQL argument rejected: %s", e)
            return StoreResult.failure(StoreErrorKind.STATEMENT, str(e))
        except _CONNECTION_ERRORS as e:
            logger.error("PostgreSQL connection failure: %s", e)
            return StoreResult.failure(StoreErrorKind.CONNECTION, str(e))
        except asyncpg.PostgresError as e:
            logger.error("PostgreSQL statement failure: %s", e)
            return StoreResult.failure(StoreErrorKind.STATEMENT, str(e))
        return StoreResult.success([dict(r) for r in rows])

    async def ping(self) -> bool:
        result = await self.fetch_value("SELECT 1")
        return result.ok
