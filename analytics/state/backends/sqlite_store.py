"""
SQLite-backed SalesStore (async) using aiosqlite, for local runs and tests.
"""
import os
import sqlite3
from typing import Any, Dict, Iterable, List, Sequence

import aiosqlite

from analytics.logger import get_logger
from analytics.state.result import StoreErrorKind, StoreResult
from analytics.state.store import SalesStore

logger = get_logger(__name__)

SCHEMA = """
    CREATE TABLE IF NOT EXISTS global_sales_master (
        item_id TEXT PRIMARY KEY,
        master_code INTEGER NOT NULL,
        master_name TEXT NOT NULL,
        region TEXT NOT NULL,
        platform TEXT NOT NULL,
        sale_month TEXT NOT NULL,
        gmv REAL NOT NULL,
        quantity INTEGER NOT NULL
    )
"""

COLUMNS = ("item_id", "master_code", "master_name", "region", "platform", "sale_month", "gmv", "quantity")


class SqliteSalesStore(SalesStore):
    paramstyle = "qmark"

    def __init__(self, db_path: str = "data/sales.db"):
        self.db_path = db_path
        if os.path.dirname(db_path):
            os.makedirs(os.path.dirname(db_path), exist_ok=True)

    async def initialize(self):
        """Create the fact table if missing."""
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(SCHEMA)
            await db.commit()
        logger.info("Using SQLite sales store at %s", self.db_path)

    async def close(self):
        pass

    async def load_rows(self, rows: Iterable[Dict[str, Any]]):
        """Bulk insert fact rows (local seeding only, the service never writes)."""
        placeholders = ", ".join("?" for _ in COLUMNS)
        async with aiosqlite.connect(self.db_path) as db:
            await db.executemany(
                f"INSERT INTO global_sales_master ({', '.join(COLUMNS)}) VALUES ({placeholders})",
                [tuple(row[c] for c in COLUMNS) for row in rows],
            )
            await db.commit()

    async def fetch(self, sql: str, args: Sequence[Any] = ()) -> StoreResult[List[Dict[str, Any]]]:
        try:
            async with aiosqlite.connect(self.db_path) as db:
                db.row_factory = aiosqlite.Row
                async with db.execute(sql, tuple(args)) as cursor:
                    rows = await cursor.fetchall()
        except sqlite3.OperationalError as e:
            kind = StoreErrorKind.CONNECTION if "unable to open" in str(e) else StoreErrorKind.STATEMENT
            logger.error("SQLite %s failure: %s", kind.value.lower(), e)
            return StoreResult.failure(kind, str(e))
        except sqlite3.Error as e:
            logger.error("SQLite statement failure: %s", e)
            return StoreResult.failure(StoreErrorKind.STATEMENT, str(e))
        except (OverflowError, ValueError) as e:
            # argument the driver cannot bind, e.g. an int wider than 64 bits
            logger.error("SQLite argument rejected: %s", e)
            return StoreResult.failure(StoreErrorKind.STATEMENT, str(e))
        return StoreResult.success([dict(r) for r in rows])

    async def ping(self) -> bool:
        result = await self.fetch_value("SELECT 1")
        return result.ok
