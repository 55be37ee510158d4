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
from src.fx_billing.api.router import router as billing_router
from src.fx_common.database import engine
from src.fx_common.errors import AppError
from src.fx_common.middleware.request_log import RequestLogMiddleware
from src.fx_common.redis_client import close_redis, get_redis
from src.fx_common.response import error_response
from src.fx_equity.api.router import router as equity_router
from src.fx_fees.api.router import router as fees_router
from src.fx_payouts.api.router import router as payouts_router
from src.fx_payouts.infrastructure.wise_client import close_wise_client
from src.fx_waterfall.api.router import router as waterfall_router


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: logging, verify DB + Redis connections. Shutdown: dispose."""
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    await get_redis()
    yield
    await engine.dispose()
    await close_redis()
    await close_wise_client()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message)
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


app.include_router(fees_router, prefix="/api/v1")
app.include_router(equity_router, prefix="/api/v1")
app.include_router(waterfall_router, prefix="/api/v1")
app.include_router(payouts_router, prefix="/api/v1")
app.include_router(billing_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
