"""Image upload, lookup, variant and delete endpoints."""

import asyncio
import logging
import os
from collections.abc import Awaitable
from typing import BinaryIO, TypeVar

from fastapi import APIRouter, File, Query, UploadFile
from fastapi.responses import Response

from image_variants.config import Settings
from image_variants.dependencies import SettingsDep, VariantEngineDep
from image_variants.models.schemas.common import ErrorResponse
from image_variants.models.schemas.images import DeleteImageResponse, ImageResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/images")
blobs_router = APIRouter(prefix="/blobs")

T = TypeVar("T")

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Bad parameter"},
    422: {"model": ErrorResponse, "description": "Business validation failed"},
    500: {"model": ErrorResponse, "description": "Unexpected failure"},
}


async def _bounded(operation: Awaitable[T], settings: Settings) -> T:
    """Run an engine call under the request timeout."""
    return await asyncio.wait_for(operation, timeout=settings.request_timeout_seconds)


def _stream_size(stream: BinaryIO) -> int:
    """Size of a seekable stream without reading it."""
    position = stream.tell()
    size = stream.seek(0, os.SEEK_END)
    stream.seek(position)
    return size


@router.post("/upload", response_model=ImageResponse, responses=ERROR_RESPONSES)
async def upload_image(
    engine: VariantEngineDep,
    settings: SettingsDep,
    image: UploadFile = File(..., description="Image file (multipart field 'image')"),
):
    """
    Upload an original image.

    The file extension must be allow-listed, the size within the configured
    limit and the content a decodable image.
    """
    size = image.size if image.size is not None else _stream_size(image.file)
    location = await _bounded(
        engine.upload(image.filename or "", image.content_type, size, image.file),
        settings,
    )
    return ImageResponse.from_location(location)


@router.get("/{image_id}", response_model=ImageResponse, responses=ERROR_RESPONSES)
async def get_original(image_id: str, engine: VariantEngineDep, settings: SettingsDep):
    """Location of the original image."""
    location = await _bounded(engine.fetch_original(image_id), settings)
    return ImageResponse.from_location(location)


@router.get("/{image_id}/variation", response_model=ImageResponse, responses=ERROR_RESPONSES)
async def get_variation(
    image_id: str,
    engine: VariantEngineDep,
    settings: SettingsDep,
    target_height: int = Query(..., alias="targetHeight", description="Variant height in pixels"),
):
    """
    Location of the variant with the given height.

    Built from the original on first request and served from storage after.
    Heights above the original's are refused.
    """
    location = await _bounded(engine.fetch_or_build_variant(image_id, target_height), settings)
    return ImageResponse.from_location(location)


@router.get("/{image_id}/thumbnail", response_model=ImageResponse, responses=ERROR_RESPONSES)
async def get_thumbnail(image_id: str, engine: VariantEngineDep, settings: SettingsDep):
    """Location of the thumbnail-height variant."""
    location = await _bounded(engine.fetch_thumbnail(image_id), settings)
    return ImageResponse.from_location(location)


@router.delete("/{image_id}", response_model=DeleteImageResponse, responses=ERROR_RESPONSES)
async def delete_image(image_id: str, engine: VariantEngineDep, settings: SettingsDep):
    """Delete the original and all of its variants."""
    deleted = await _bounded(engine.delete_all(image_id), settings)
    return DeleteImageResponse.from_deleted(deleted)


@blobs_router.get("/{key}", responses=ERROR_RESPONSES)
async def get_blob(key: str, engine: VariantEngineDep, settings: SettingsDep):
    """Raw bytes of a stored original or variant."""
    stored = await _bounded(engine.read_object(key), settings)
    return Response(
        content=stored.data,
        media_type=stored.content_type or "application/octet-stream",
    )
