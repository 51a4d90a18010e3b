"""
SalesQueryService: request-level reads over an injected store and cache.

Responsibilities:
- distinct-value lists through the cache-aside reader
- grouped aggregates
- paginated detail rows with an independent count
- unpaginated export
Each operation returns a ServiceResult; formatting the HTTP response is left
to backend/api.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from analytics.cache.cache_aside import CacheAsideReader, create_redis_client, distinct_key
from analytics.config import ServiceSettings
from analytics.logger import get_logger
from analytics.query.builder import SalesQueryBuilder
from analytics.query.filters import FilterSet
from analytics.query.pagination import PageRequest, Pagination
from analytics.state.result import StoreErrorKind, StoreResult
from analytics.state.store import SalesStore

logger = get_logger(__name__)

# distinct endpoint name -> fact table column
DISTINCT_SETS = {
    "platforms": "platform",
    "months": "sale_month",
    "regions": "region",
}


class StoreFailure(Exception):
    """Carries a failed StoreResult out of a cache compute callback."""

    def __init__(self, result: StoreResult):
        super().__init__(result.message)
        self.result = result


@dataclass(frozen=True)
class ServiceResult:
    data: Any = None
    cached: Optional[bool] = None
    pagination: Optional[Pagination] = None
    error: Optional[StoreErrorKind] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failure(cls, result: StoreResult) -> "ServiceResult":
        return cls(error=result.error or StoreErrorKind.STATEMENT)


class SalesQueryService:
    def __init__(
        self,
        store: SalesStore,
        cache: CacheAsideReader,
        settings: Optional[ServiceSettings] = None,
    ):
        self.settings = settings or ServiceSettings()
        self.store = store
        self.cache = cache
        self.builder = SalesQueryBuilder(
            table=self.settings.database.table,
            paramstyle=store.paramstyle,
            default_platform=self.settings.detail.default_platform,
            default_month=self.settings.detail.default_month,
        )

    async def distinct_values(self, name: str) -> ServiceResult:
        if name not in DISTINCT_SETS:
            raise ValueError(f"unknown distinct set: {name!r}")
        sql, args = self.builder.build_distinct(DISTINCT_SETS[name])

        async def compute() -> List[Any]:
            result = await self.store.fetch_column(sql, args)
            if not result.ok:
                raise StoreFailure(result)
            return list(result.value)

        try:
            values, cached = await self.cache.get_or_compute(
                distinct_key(name), self.settings.cache.distinct_ttl, compute
            )
        except StoreFailure as e:
            logger.error("Distinct %s lookup failed (%s)", name, e.result.error.value)
            return ServiceResult.failure(e.result)
        return ServiceResult(data=values, cached=cached)

    async def aggregated(self, filters: FilterSet) -> ServiceResult:
        sql, args = self.builder.build_aggregate(filters)
        result = await self.store.fetch(sql, args)
        if not result.ok:
            logger.error("Aggregate query failed (%s)", result.error.value)
            return ServiceResult.failure(result)
        return ServiceResult(data=result.value)

    async def detailed(self, filters: FilterSet, page: PageRequest) -> ServiceResult:
        # data and count are separate statements over the same predicate
        sql, args = self.builder.build_detail(filters, page.limit, page.offset)
        rows = await self.store.fetch(sql, args)
        if not rows.ok:
            logger.error("Detail query failed (%s)", rows.error.value)
            return ServiceResult.failure(rows)

        count_sql, count_args = self.builder.build_count(filters)
        total = await self.store.fetch_value(count_sql, count_args)
        if not total.ok:
            logger.error("Detail count query failed (%s)", total.error.value)
            return ServiceResult.failure(total)

        return ServiceResult(data=rows.value, pagination=Pagination.build(page, total.value))

    async def export(self, filters: FilterSet) -> ServiceResult:
        sql, args = self.builder.build_export(filters)
        result = await self.store.fetch(sql, args)
        if not result.ok:
            logger.error("Export query failed (%s)", result.error.value)
            return ServiceResult.failure(result)
        return ServiceResult(data=result.value)

    async def health(self) -> Dict[str, bool]:
        return {
            "database": await self.store.ping(),
            "redis": await self.cache.ping(),
        }

    async def close(self):
        await self.cache.close()
        await self.store.close()


def create_store(settings: ServiceSettings) -> SalesStore:
    """Pick the store backend from config (postgres in production)."""
    db = settings.database
    if db.backend == "sqlite":
        from analytics.state.backends.sqlite_store import SqliteSalesStore
        return SqliteSalesStore(db_path=db.sqlite_path)
    if db.backend != "postgres":
        raise ValueError(f"unknown database backend: {db.backend!r}")
    from analytics.state.backends.postgres_store import PostgresSalesStore
    return PostgresSalesStore(
        db.url,
        min_size=db.min_size,
        max_size=db.max_size,
        command_timeout=db.command_timeout,
        ssl=db.ssl,
    )


async def build_sales_service(settings: ServiceSettings, store: Optional[SalesStore] = None, redis_client=None) -> SalesQueryService:
    """
    Wire store and cache for the process. Store failures here are fatal and
    propagate; an unreachable cache is only logged.
    """
    store = store or create_store(settings)
    await store.initialize()

    client = redis_client if redis_client is not None else create_redis_client(settings.redis.url)
    cache = CacheAsideReader(client)
    if cache.enabled and await cache.ping():
        logger.info("Connected to Redis")
    elif cache.enabled:
        logger.warning("Redis unreachable at startup; distinct lookups will hit the store")
    else:
        logger.info("Redis not configured; caching disabled")

    return SalesQueryService(store, cache, settings)
