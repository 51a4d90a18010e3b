from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from analytics.query.pagination import Pagination


class PaginationInfo(BaseModel):
    page: int
    limit: int
    total: int
    totalPages: int


class DistinctResponse(BaseModel):
    success: bool = True
    data: List[str]
    cached: bool


class RowsResponse(BaseModel):
    success: bool = True
    data: List[Dict[str, Any]]


class DetailedResponse(BaseModel):
    success: bool = True
    data: List[Dict[str, Any]]
    pagination: PaginationInfo


class ErrorResponse(BaseModel):
    success: bool = False
    error: str


def _plain(value: Any) -> Any:
    # numeric SUMs come back as Decimal from asyncpg
    if isinstance(value, Decimal):
        return float(value)
    return value


def shape_rows(rows: Optional[List[Dict[str, Any]]]) -> List[Dict[str, Any]]:
    return [{k: _plain(v) for k, v in row.items()} for row in rows or []]


def pagination_info(pagination: Pagination) -> PaginationInfo:
    return PaginationInfo(**pagination.to_dict())
