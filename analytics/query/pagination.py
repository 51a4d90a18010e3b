"""
Offset pagination for the detail view.

Page and limit never raise: missing, non-numeric or out-of-range values fall
back to page 1 / limit 10, and huge values are clamped so the offset fits a
64-bit integer.
"""
import math
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
# LIMIT / OFFSET are bound as signed 64-bit integers
MAX_ROWS = 2 ** 63 - 1


def _to_int(value: Union[str, int, None], default: int) -> int:
    if value is None:
        return default
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return default


def paginate(page: int, limit: int) -> int:
    """Row offset for a page; never negative."""
    return max(0, page - 1) * limit


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit > 0 else 0


@dataclass(frozen=True)
class PageRequest:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def offset(self) -> int:
        return paginate(self.page, self.limit)


def parse_page_params(page: Union[str, int, None] = None, limit: Union[str, int, None] = None) -> PageRequest:
    page_num = _to_int(page, DEFAULT_PAGE)
    limit_num = _to_int(limit, DEFAULT_LIMIT)
    if page_num < 1:
        page_num = DEFAULT_PAGE
    if limit_num < 1:
        limit_num = DEFAULT_LIMIT
    limit_num = min(limit_num, MAX_ROWS)
    # keep offset = (page - 1) * limit within MAX_ROWS
    page_num = min(page_num, MAX_ROWS // limit_num + 1)
    return PageRequest(page=page_num, limit=limit_num)


@dataclass(frozen=True)
class Pagination:
    page: int
    limit: int
    total: int
    total_pages: int

    @classmethod
    def build(cls, request: PageRequest, total: Optional[int]) -> "Pagination":
        total = int(total or 0)
        return cls(
            page=request.page,
            limit=request.limit,
            total=total,
            total_pages=total_pages(total, request.limit),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "totalPages": self.total_pages,
        }
