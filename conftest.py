import asyncio
import os
from typing import Any, Dict, Iterator, List, Optional

import pytest
from fastapi.testclient import TestClient

from analytics.config import DatabaseSettings, RedisSettings, ServiceSettings
from analytics.state.result import StoreErrorKind, StoreResult
from analytics.state.backends.sqlite_store import SqliteSalesStore
from analytics.state.store import SalesStore
from backend.main import create_app

SALES_ROWS: List[Dict[str, Any]] = [
    {"item_id": "i1", "master_code": 101, "master_name": "Alpha", "region": "North", "platform": "Blinkit", "sale_month": "2025-01", "gmv": 100.0, "quantity": 2},
    {"item_id": "i2", "master_code": 101, "master_name": "Alpha", "region": "North", "platform": "Blinkit", "sale_month": "2025-01", "gmv": 50.0, "quantity": 1},
    {"item_id": "i3", "master_code": 102, "master_name": "Beta", "region": "North", "platform": "Blinkit", "sale_month": "2025-01", "gmv": 300.0, "quantity": 3},
    {"item_id": "i4", "master_code": 101, "master_name": "Alpha", "region": "South", "platform": "Blinkit", "sale_month": "2025-01", "gmv": 80.0, "quantity": 1},
    {"item_id": "i5", "master_code": 103, "master_name": "Gamma", "region": "North", "platform": "Blinkit", "sale_month": "2025-02", "gmv": 40.0, "quantity": 4},
    {"item_id": "i6", "master_code": 101, "master_name": "Alpha", "region": "North", "platform": "Zepto", "sale_month": "2025-01", "gmv": 500.0, "quantity": 5},
    {"item_id": "i7", "master_code": 104, "master_name": "Delta", "region": "South", "platform": "Zepto", "sale_month": "2025-02", "gmv": 20.0, "quantity": 1},
]


class FakeRedis:
    """In-memory stand-in for redis.asyncio.Redis (get / set ex= / ping / aclose)."""

    def __init__(self):
        self.data: Dict[str, str] = {}
        self.ttls: Dict[str, int] = {}
        self.get_calls = 0
        self.set_calls = 0

    async def get(self, key: str) -> Optional[str]:
        self.get_calls += 1
        return self.data.get(key)

    async def set(self, key: str, value: str, ex: Optional[int] = None):
        self.set_calls += 1
        self.data[key] = value
        if ex is not None:
            self.ttls[key] = ex
        return True

    async def ping(self) -> bool:
        return True

    async def aclose(self):
        pass


class DownStore(SalesStore):
    """Store whose every statement fails with the given error kind."""

    paramstyle = "dollar"

    def __init__(self, kind=StoreErrorKind.CONNECTION):
        self.kind = kind
        self.calls = 0

    async def initialize(self):
        pass

    async def close(self):
        pass

    async def fetch(self, sql, args=()):
        self.calls += 1
        return StoreResult.failure(self.kind, "boom")

    async def ping(self):
        return False


def make_settings(db_path: str, redis_url: Optional[str] = None) -> ServiceSettings:
    return ServiceSettings(
        database=DatabaseSettings(backend="sqlite", sqlite_path=db_path),
        redis=RedisSettings(url=redis_url),
        log_dir=None,
    )


def seed_store(db_path: str, rows: List[Dict[str, Any]] = SALES_ROWS) -> SqliteSalesStore:
    store = SqliteSalesStore(db_path=db_path)

    async def _run():
        await store.initialize()
        await store.load_rows(rows)

    asyncio.run(_run())
    return store


@pytest.fixture
def db_path(tmp_path) -> str:
    return os.path.join(str(tmp_path), "sales.db")


@pytest.fixture
def sales_store(db_path) -> SqliteSalesStore:
    return seed_store(db_path)


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def client(db_path, sales_store, fake_redis) -> Iterator[TestClient]:
    app = create_app(settings=make_settings(db_path), store=sales_store, redis_client=fake_redis)
    with TestClient(app) as c:
        yield c
