"""Main FastAPI application for the MedLedger API.

This module sets up the FastAPI application with all routes, middleware,
and logging configuration.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from medledger.api.dependencies import get_state_store
from medledger.api.middleware import setup_middleware
from medledger.api.routes import grants, health, records, registry
from medledger.infrastructure.logging_config import setup_logging
from medledger.infrastructure.settings import settings

setup_logging(use_json=settings.json_logs, log_level=settings.log_level)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    logger.info(f"{settings.app_name} API starting up...")
    logger.info(f"State store: {settings.store_config.store_type}")
    yield
    logger.info(f"{settings.app_name} API shutting down...")
    if get_state_store.cache_info().currsize:
        get_state_store().close()
        get_state_store.cache_clear()


app = FastAPI(
    title="MedLedger API",
    description="Medical records and grant-based access control over a key-value ledger",
    version=settings.app_version,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan
)

setup_middleware(app)

app.include_router(health.router)
app.include_router(registry.router)
app.include_router(records.router)
app.include_router(grants.router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "MedLedger API",
        "version": settings.app_version,
        "docs": "/api/docs",
        "health": "/api/health"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "medledger.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
