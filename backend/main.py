from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from starlette.exceptions import HTTPException as StarletteHTTPException

from analytics.config import ServiceSettings, load_settings
from analytics.logger import get_logger, setup_logger
from analytics.service.sales_service import build_sales_service
from analytics.state.store import SalesStore
from backend.api import health, sales

logger = get_logger(__name__)


def create_app(
    settings: Optional[ServiceSettings] = None,
    store: Optional[SalesStore] = None,
    redis_client=None,
) -> FastAPI:
    """
    Build the API. store / redis_client override the configured backends
    (tests pass a seeded SQLite store and an in-memory cache client).
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup: an unreachable store aborts the process here
        cfg = settings or load_settings()
        setup_logger(cfg.log_level, log_dir=Path(cfg.log_dir) if cfg.log_dir else None)
        app.state.settings = cfg
        app.state.sales_service = await build_sales_service(cfg, store=store, redis_client=redis_client)
        logger.info("Sales analytics API ready")
        yield
        # Shutdown
        await app.state.sales_service.close()
        logger.info("Sales analytics API stopped")

    app = FastAPI(title="Sales Analytics API", lifespan=lifespan)

    app.include_router(sales.router, prefix="/api/sales", tags=["sales"])
    app.include_router(health.router, tags=["health"])

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return sales.error_response("Route not found", status_code=404)
        return sales.error_response(str(exc.detail), status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s", request.url.path)
        return sales.error_response("Internal server error")

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    # Use module path so imports resolve when launched via `python -m backend.main`
    cfg = load_settings()
    uvicorn.run("backend.main:app", host=cfg.server.host, port=cfg.server.port, reload=False)
