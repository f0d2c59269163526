"""Image variant service module."""

from image_variants.services.image.codec import DecodedImage, ImageCodec
from image_variants.services.image.errors import (
    DecodeError,
    ErrorKind,
    NotFoundError,
    StoredImageCorruptError,
    TargetHeightExceededError,
    ValidationError,
    VariantServiceError,
)
from image_variants.services.image.singleflight import SingleFlight
from image_variants.services.image.variants import (
    DeletedImage,
    ImageLocation,
    VariantEngine,
    scaled_width,
)

__all__ = [
    "DecodeError",
    "DecodedImage",
    "DeletedImage",
    "ErrorKind",
    "ImageCodec",
    "ImageLocation",
    "NotFoundError",
    "SingleFlight",
    "StoredImageCorruptError",
    "TargetHeightExceededError",
    "ValidationError",
    "VariantEngine",
    "VariantServiceError",
    "scaled_width",
]
