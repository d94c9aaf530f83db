"""Health check endpoint for the MedLedger API."""

import logging
import time

from fastapi import APIRouter

from medledger.api.dependencies import StoreDep
from medledger.api.models import HealthResponse, StoreHealth
from medledger.domain.ports import StorageError
from medledger.infrastructure.settings import settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["health"])

HEALTH_CHECK_KEY = "__health__"


@router.get("/health", response_model=HealthResponse)
async def health_check(store: StoreDep) -> HealthResponse:
    """Report whether the state store answers a read."""
    store_type = type(store).__name__
    start_time = time.time()
    try:
        await store.get_state(HEALTH_CHECK_KEY)
    except StorageError as e:
        logger.warning(f"State store health check failed: {str(e)}")
        return HealthResponse(
            status="unhealthy",
            version=settings.app_version,
            store=StoreHealth(status="disconnected", type=store_type),
        )

    response_time = (time.time() - start_time) * 1000
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        store=StoreHealth(status="connected", type=store_type, response_time_ms=round(response_time, 2)),
    )
