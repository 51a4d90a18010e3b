"""
SalesStore: read-only access to the sales fact table.
Backends live in analytics/state/backends/.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Sequence

from analytics.state.result import StoreResult


class SalesStore(ABC):
    """Store interface. Per-request methods return StoreResult instead of raising."""

    # placeholder style understood by the backend driver
    paramstyle = "dollar"

    @abstractmethod
    async def initialize(self):
        """Open connections; raises if the store is unreachable."""
        pass

    @abstractmethod
    async def close(self):
        pass

    @abstractmethod
    async def fetch(self, sql: str, args: Sequence[Any] = ()) -> StoreResult[List[Dict[str, Any]]]:
        pass

    async def fetch_value(self, sql: str, args: Sequence[Any] = ()) -> StoreResult[Any]:
        """First column of the first row, or None for an empty result."""
        result = await self.fetch(sql, args)
        if not result.ok:
            return result
        rows = result.value or []
        if not rows:
            return StoreResult.success(None)
        return StoreResult.success(next(iter(rows[0].values())))

    async def fetch_column(self, sql: str, args: Sequence[Any] = ()) -> StoreResult[List[Any]]:
        result = await self.fetch(sql, args)
        if not result.ok:
            return result
        return StoreResult.success([next(iter(row.values())) for row in result.value or []])

    @abstractmethod
    async def ping(self) -> bool:
        pass
