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
from sqlalchemy import text

from config.settings import settings
from src.fm_admin.api.router import router as admin_router
from src.fm_bid.api.router import router as bid_router
from src.fm_common.database import engine
from src.fm_common.errors import AppError
from src.fm_common.redis_client import close_redis, get_redis
from src.fm_common.response import error_response
from src.fm_gateway.middleware.request_log import RequestLogMiddleware
from src.fm_ledger.api.router import router as ledger_router
from src.fm_order.api.router import router as order_router
from src.fm_payment.api.router import router as payment_router
from src.fm_revision.api.router import router as revision_router

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify DB (and Redis, when configured). Shutdown: dispose."""
    # Startup
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    if settings.REDIS_URL:
        await get_redis()
    yield
    # Shutdown
    await engine.dispose()
    await close_redis()


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


app.include_router(order_router, prefix="/api/v1")
app.include_router(bid_router, prefix="/api/v1")
app.include_router(revision_router, prefix="/api/v1")
app.include_router(payment_router, prefix="/api/v1")
app.include_router(ledger_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
