"""
Sales analytics endpoints (read-only).
Every failure is answered with HTTP 500 and a static message; query details
stay in the logs.
"""
from typing import Optional, Union

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from analytics.query.filters import FilterSet
from analytics.query.pagination import parse_page_params
from analytics.service.sales_service import SalesQueryService, ServiceResult
from backend.schemas.sales import (
    DetailedResponse,
    DistinctResponse,
    ErrorResponse,
    RowsResponse,
    pagination_info,
    shape_rows,
)

router = APIRouter()


def get_sales_service(request: Request) -> SalesQueryService:
    return request.app.state.sales_service


def error_response(message: str, status_code: int = 500) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


async def _distinct(service: SalesQueryService, name: str, error: str) -> Union[DistinctResponse, JSONResponse]:
    result = await service.distinct_values(name)
    if not result.ok:
        return error_response(error)
    return DistinctResponse(data=[str(v) for v in result.data], cached=result.cached)


def _rows(result: ServiceResult, error: str) -> Union[RowsResponse, JSONResponse]:
    if not result.ok:
        return error_response(error)
    return RowsResponse(data=shape_rows(result.data))


@router.get("/platforms", response_model=DistinctResponse)
async def get_platforms(service: SalesQueryService = Depends(get_sales_service)):
    return await _distinct(service, "platforms", "Failed to fetch platforms")


@router.get("/months", response_model=DistinctResponse)
async def get_months(service: SalesQueryService = Depends(get_sales_service)):
    return await _distinct(service, "months", "Failed to fetch months")


@router.get("/regions", response_model=DistinctResponse)
async def get_regions(service: SalesQueryService = Depends(get_sales_service)):
    return await _distinct(service, "regions", "Failed to fetch regions")


@router.get("/aggregated", response_model=RowsResponse)
async def get_aggregated(
    platform: Optional[str] = None,
    sale_month: Optional[str] = None,
    region: Optional[str] = None,
    service: SalesQueryService = Depends(get_sales_service),
):
    """Totals grouped by whichever filters are present; one summary row without filters."""
    filters = FilterSet.from_params(platform, sale_month, region)
    return _rows(await service.aggregated(filters), "Failed to fetch aggregated data")


@router.get("/detailed", response_model=DetailedResponse)
async def get_detailed(
    platform: Optional[str] = None,
    sale_month: Optional[str] = None,
    region: Optional[str] = None,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    service: SalesQueryService = Depends(get_sales_service),
):
    """Per-SKU rows for one page; page/limit arrive as strings so bad input falls back to defaults."""
    filters = FilterSet.from_params(platform, sale_month, region)
    result = await service.detailed(filters, parse_page_params(page, limit))
    if not result.ok:
        return error_response("Failed to fetch detailed sales data")
    return DetailedResponse(data=shape_rows(result.data), pagination=pagination_info(result.pagination))


@router.get("/export", response_model=RowsResponse)
async def export_sales(
    platform: Optional[str] = None,
    sale_month: Optional[str] = None,
    region: Optional[str] = None,
    service: SalesQueryService = Depends(get_sales_service),
):
    filters = FilterSet.from_params(platform, sale_month, region)
    return _rows(await service.export(filters), "Failed to export sales data")
