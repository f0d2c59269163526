"""Main API router aggregating all version routers."""

from fastapi import APIRouter

from image_variants.api.v1.health import router as health_router
from image_variants.api.v1.images import blobs_router
from image_variants.api.v1.images import router as images_router

api_router = APIRouter()

# v1 endpoints
api_router.include_router(health_router, prefix="/v1", tags=["Health"])
api_router.include_router(images_router, prefix="/v1", tags=["Images"])
api_router.include_router(blobs_router, prefix="/v1", tags=["Blobs"])
