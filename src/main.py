"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from config.settings import settings
from src.container import build_container, set_container
from src.lp_common.errors import AppError
from src.lp_common.middleware.request_log import RequestLogMiddleware
from src.lp_common.redis_client import close_redis, get_redis
from src.lp_common.response import error_response
from src.lp_listing.api.router import router as listing_router
from src.lp_referral.api.router import router as referral_router
from src.lp_tx.api.router import router as action_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: wire services, start the listing refresh. Shutdown: stop and close."""
    # Startup
    container = build_container()
    set_container(container)
    await get_redis()
    container.scheduler.start()
    logger.info(
        "%s ready: marketplace %s (%s)",
        settings.APP_NAME, settings.MARKETPLACE_ADDRESS, settings.MARKETPLACE_MODEL,
    )
    yield
    # Shutdown
    await container.scheduler.stop()
    await container.gateway.close()
    await close_redis()
    set_container(None)


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


app.include_router(listing_router, prefix="/api/v1")
app.include_router(action_router, prefix="/api/v1")
app.include_router(referral_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
