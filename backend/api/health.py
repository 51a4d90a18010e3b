"""
Health Check endpoints
"""
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from analytics.service.sales_service import SalesQueryService
from backend.api.sales import get_sales_service

router = APIRouter()


@router.get("/health")
async def health_check(service: SalesQueryService = Depends(get_sales_service)) -> Dict[str, Any]:
    checks = await service.health()
    timestamp = datetime.now(timezone.utc).isoformat()
    if not checks["database"]:
        return JSONResponse(
            status_code=500,
            content={"status": "error", "timestamp": timestamp, "error": "Database connection failed"},
        )
    return {
        "status": "ok",
        "timestamp": timestamp,
        "database": "connected",
        # redis is optional; reads fall back to the store
        "redis": "connected" if checks["redis"] else "unavailable",
    }
