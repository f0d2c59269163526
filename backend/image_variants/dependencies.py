"""Dependency injection factories."""

from typing import Annotated

from fastapi import Depends, Request

from image_variants.config import Settings
from image_variants.services.image.variants import VariantEngine
from image_variants.storage.base import ObjectStore


async def get_app_settings(request: Request) -> Settings:
    """Settings the app was created with."""
    return request.app.state.settings


async def get_object_store(request: Request) -> ObjectStore:
    """Object store from app state."""
    return request.app.state.object_store


async def get_variant_engine(request: Request) -> VariantEngine:
    """Variant engine from app state (built once at startup)."""
    return request.app.state.variant_engine


SettingsDep = Annotated[Settings, Depends(get_app_settings)]
ObjectStoreDep = Annotated[ObjectStore, Depends(get_object_store)]
VariantEngineDep = Annotated[VariantEngine, Depends(get_variant_engine)]
