import itertools
import re

import pytest

from analytics.query.builder import SalesQueryBuilder
from analytics.query.filters import FilterSet

VALUES = {"platform": "Blinkit", "sale_month": "2025-01", "region": "North"}

ALL_SUBSETS = [
    FilterSet(**{dim: (VALUES[dim] if on else None) for dim, on in zip(VALUES, mask)})
    for mask in itertools.product([False, True], repeat=3)
]


def _placeholder_numbers(sql):
    return [int(n) for n in re.findall(r"\$(\d+)", sql)]


def _predicates(sql):
    return re.findall(r"(\w+) = \$(\d+)", sql)


def _clause(sql, name, stop):
    match = re.search(rf"{name} (.+?)(?: {stop}|$)", sql)
    return [c.strip() for c in match.group(1).split(",")] if match else []


@pytest.mark.parametrize("filters", ALL_SUBSETS)
def test_placeholders_match_args_for_every_builder(filters):
    builder = SalesQueryBuilder()
    applied = builder.detail_filters(filters)
    statements = [
        (builder.build_aggregate(filters), filters),
        (builder.build_detail(filters, 10, 20), applied),
        (builder.build_count(filters), applied),
        (builder.build_export(filters), applied),
    ]
    for (sql, args), effective in statements:
        assert _placeholder_numbers(sql) == list(range(1, len(args) + 1))
        for column, n in _predicates(sql):
            assert args[int(n) - 1] == getattr(effective, column)


@pytest.mark.parametrize("filters", ALL_SUBSETS)
def test_aggregate_clauses_share_dimension_order(filters):
    sql, args = SalesQueryBuilder().build_aggregate(filters)
    active = [dim for dim, _ in filters.active()]

    where_columns = [col for col, _ in _predicates(sql)]
    assert where_columns == active
    assert args == [value for _, value in filters.active()]

    select = _clause(sql, "SELECT", "FROM")
    assert select[: len(active)] == active
    if active:
        assert _clause(sql, "GROUP BY", "ORDER BY") == active
        assert _clause(sql, "ORDER BY", "LIMIT") == active
    else:
        assert "GROUP BY" not in sql
        assert "WHERE" not in sql


def test_aggregate_without_filters_is_single_summary():
    sql, args = SalesQueryBuilder().build_aggregate(FilterSet())
    assert sql == (
        "SELECT SUM(gmv) AS total_gmv, SUM(quantity) AS total_quantity, COUNT(*) AS record_count "
        "FROM global_sales_master"
    )
    assert args == []


def test_aggregate_skips_middle_dimension():
    sql, args = SalesQueryBuilder().build_aggregate(FilterSet(platform="Zepto", region="South"))
    assert "WHERE platform = $1 AND region = $2" in sql
    assert sql.endswith("GROUP BY platform, region ORDER BY platform, region")
    assert args == ["Zepto", "South"]


def test_detail_applies_defaults_and_appends_limit_offset():
    builder = SalesQueryBuilder(default_platform="Blinkit", default_month="2025-01")
    sql, args = builder.build_detail(FilterSet(), 10, 40)
    assert "WHERE platform = $1 AND sale_month = $2" in sql
    assert "GROUP BY platform, sale_month, region, master_code, master_name" in sql
    assert "ORDER BY sale_month ASC, total_gmv DESC, master_code ASC, master_name ASC" in sql
    assert sql.endswith("LIMIT $3 OFFSET $4")
    assert args == ["Blinkit", "2025-01", 10, 40]


def test_detail_explicit_filters_override_defaults():
    sql, args = SalesQueryBuilder().build_detail(FilterSet(platform="Zepto", region="South"), 5, 0)
    assert "platform = $1 AND sale_month = $2 AND region = $3" in sql
    assert args == ["Zepto", "2025-01", "South", 5, 0]


def test_count_uses_same_predicate_as_detail():
    builder = SalesQueryBuilder()
    filters = FilterSet(sale_month="2025-02", region="North")
    detail_sql, detail_args = builder.build_detail(filters, 10, 0)
    count_sql, count_args = builder.build_count(filters)

    assert count_args == detail_args[:-2]
    assert _predicates(count_sql) == _predicates(detail_sql)
    assert count_sql.startswith("SELECT COUNT(*) AS total FROM (SELECT ")
    assert count_sql.endswith(") AS grouped_records")
    assert "LIMIT" not in count_sql


def test_export_is_detail_without_pagination():
    builder = SalesQueryBuilder()
    filters = FilterSet(platform="Blinkit")
    export_sql, export_args = builder.build_export(filters)
    detail_sql, detail_args = builder.build_detail(filters, 10, 0)

    assert "LIMIT" not in export_sql and "OFFSET" not in export_sql
    assert detail_sql.startswith(export_sql)
    assert export_args == detail_args[:-2]
    assert builder.build_detail(filters, None) == (export_sql, export_args)


def test_qmark_paramstyle_for_sqlite():
    sql, args = SalesQueryBuilder(paramstyle="qmark").build_detail(FilterSet(region="East"), 10, 0)
    assert "platform = ?1 AND sale_month = ?2 AND region = ?3" in sql
    assert sql.endswith("LIMIT ?4 OFFSET ?5")
    assert "$" not in sql
    assert len(args) == 5


def test_distinct_statements_and_rejections():
    builder = SalesQueryBuilder()
    assert builder.build_distinct("sale_month") == (
        "SELECT DISTINCT sale_month FROM global_sales_master ORDER BY sale_month",
        [],
    )
    with pytest.raises(ValueError):
        builder.build_distinct("gmv; DROP TABLE x")
    with pytest.raises(ValueError):
        SalesQueryBuilder(table="sales; --")
    with pytest.raises(ValueError):
        SalesQueryBuilder(paramstyle="format")


def test_filter_values_are_never_inlined():
    hostile = "x' OR '1'='1"
    sql, args = SalesQueryBuilder().build_aggregate(FilterSet(platform=hostile))
    assert hostile not in sql
    assert args == [hostile]
