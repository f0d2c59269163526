"""Health check endpoints."""

import time

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from image_variants.dependencies import ObjectStoreDep
from image_variants.models.schemas.common import (
    DetailedHealthResponse,
    HealthResponse,
    ServiceHealth,
)

router = APIRouter(prefix="/health")


@router.get("", response_model=HealthResponse)
async def health_check():
    """
    Basic health check for load balancers.

    Returns 200 if service is running.
    """
    return HealthResponse(status="ok")


@router.get("/ready", response_model=DetailedHealthResponse)
async def readiness_check(store: ObjectStoreDep):
    """
    Readiness check verifying the object store.

    Returns 503 if the store is unreachable.
    """
    start = time.time()
    healthy = await store.health_check()
    latency = (time.time() - start) * 1000

    if healthy:
        response = DetailedHealthResponse(
            status="ok",
            services={"object_store": ServiceHealth(status="ok", latency_ms=round(latency, 2))},
        )
        return response

    response = DetailedHealthResponse(
        status="degraded",
        services={"object_store": ServiceHealth(status="error", error="Connection failed")},
    )
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=response.model_dump(mode="json"),
    )
