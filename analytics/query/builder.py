"""
SalesQueryBuilder: parameterized SQL for the sales fact table.

Every statement is produced by a single _StatementBuilder pass that appends
each predicate together with its argument, so placeholder numbers always
match positions in the returned argument list. Column names come only from
the fixed DIMENSIONS / DETAIL_KEY tuples, never from request input.
"""
import re
from typing import Any, Callable, Dict, List, NamedTuple, Optional

from analytics.query.filters import DIMENSIONS, FilterSet

DETAIL_KEY = ("platform", "sale_month", "region", "master_code", "master_name")
DETAIL_ORDER = ("sale_month ASC", "total_gmv DESC", "master_code ASC", "master_name ASC")
AGGREGATES = (
    "SUM(gmv) AS total_gmv",
    "SUM(quantity) AS total_quantity",
    "COUNT(*) AS record_count",
)
DETAIL_MEASURES = (
    "SUM(quantity) AS total_units",
    "SUM(gmv) AS total_gmv",
)

PARAMSTYLES: Dict[str, Callable[[int], str]] = {
    # asyncpg / PostgreSQL
    "dollar": lambda n: f"${n}",
    # sqlite numbered parameters
    "qmark": lambda n: f"?{n}",
}

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


class Statement(NamedTuple):
    sql: str
    args: List[Any]


class _StatementBuilder:
    """Accumulates (predicate, argument) pairs and grouping dimensions."""

    def __init__(self, placeholder: Callable[[int], str]):
        self._placeholder = placeholder
        self.predicates: List[str] = []
        self.args: List[Any] = []
        self.dimensions: List[str] = []
        self.sql = ""

    def bind(self, value: Any) -> str:
        self.args.append(value)
        return self._placeholder(len(self.args))

    def where(self, column: str, value: Any, group: bool = False) -> None:
        self.predicates.append(f"{column} = {self.bind(value)}")
        if group:
            self.dimensions.append(column)

    def where_clause(self) -> str:
        if not self.predicates:
            return ""
        return " WHERE " + " AND ".join(self.predicates)

    def statement(self, sql: str) -> Statement:
        return Statement(sql, list(self.args))


class SalesQueryBuilder:
    def __init__(
        self,
        table: str = "global_sales_master",
        paramstyle: str = "dollar",
        default_platform: str = "Blinkit",
        default_month: str = "2025-01",
    ):
        if not _IDENTIFIER.match(table):
            raise ValueError(f"invalid table name: {table!r}")
        if paramstyle not in PARAMSTYLES:
            raise ValueError(f"unknown paramstyle: {paramstyle!r}")
        self.table = table
        self.paramstyle = paramstyle
        self.default_platform = default_platform
        self.default_month = default_month

    def _new(self) -> _StatementBuilder:
        return _StatementBuilder(PARAMSTYLES[self.paramstyle])

    def detail_filters(self, filters: FilterSet) -> FilterSet:
        """The filter set actually applied by detail, count and export."""
        return filters.with_defaults(self.default_platform, self.default_month)

    def build_distinct(self, dimension: str) -> Statement:
        if dimension not in DIMENSIONS:
            raise ValueError(f"unknown dimension: {dimension!r}")
        return Statement(
            f"SELECT DISTINCT {dimension} FROM {self.table} ORDER BY {dimension}",
            [],
        )

    def build_aggregate(self, filters: FilterSet) -> Statement:
        b = self._new()
        for dimension, value in filters.active():
            b.where(dimension, value, group=True)

        select = list(b.dimensions) + list(AGGREGATES)
        sql = f"SELECT {', '.join(select)} FROM {self.table}{b.where_clause()}"
        if b.dimensions:
            dims = ", ".join(b.dimensions)
            sql += f" GROUP BY {dims} ORDER BY {dims}"
        return b.statement(sql)

    def _detail_base(self, filters: FilterSet, columns) -> _StatementBuilder:
        b = self._new()
        for dimension, value in self.detail_filters(filters).active():
            b.where(dimension, value)
        b.sql = (
            f"SELECT {', '.join(columns)} FROM {self.table}{b.where_clause()}"
            f" GROUP BY {', '.join(DETAIL_KEY)}"
        )
        return b

    def build_export(self, filters: FilterSet) -> Statement:
        b = self._detail_base(filters, DETAIL_KEY + DETAIL_MEASURES)
        return b.statement(f"{b.sql} ORDER BY {', '.join(DETAIL_ORDER)}")

    def build_detail(self, filters: FilterSet, limit: Optional[int], offset: int = 0) -> Statement:
        """Paginated detail rows; limit=None yields the export statement."""
        if limit is None:
            return self.build_export(filters)
        b = self._detail_base(filters, DETAIL_KEY + DETAIL_MEASURES)
        sql = f"{b.sql} ORDER BY {', '.join(DETAIL_ORDER)}"
        sql += f" LIMIT {b.bind(int(limit))} OFFSET {b.bind(int(offset))}"
        return b.statement(sql)

    def build_count(self, filters: FilterSet) -> Statement:
        b = self._detail_base(filters, DETAIL_KEY)
        return b.statement(f"SELECT COUNT(*) AS total FROM ({b.sql}) AS grouped_records")
