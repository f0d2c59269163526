"""Error taxonomy for the variant service.

Every failure the engine raises carries an ``ErrorKind`` tag so the HTTP
layer can map it to a status class without inspecting the concrete type,
plus a context dict (image id, target height) for logging.
"""

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Status class of a service failure."""

    VALIDATION = "validation"
    TARGET_HEIGHT_EXCEEDED = "target_height_exceeded"
    UNEXPECTED = "unexpected"


class VariantServiceError(Exception):
    """Base service error."""

    kind: ErrorKind = ErrorKind.UNEXPECTED

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.context = {k: v for k, v in context.items() if v is not None}
        super().__init__(message)


class ValidationError(VariantServiceError):
    """Caller supplied something the service will not accept."""

    kind = ErrorKind.VALIDATION


class NotFoundError(ValidationError):
    """No original is stored under the requested id."""

    def __init__(self, image_id: str, **context: Any):
        super().__init__(f"Image with id {image_id} not found.", image_id=image_id, **context)
        self.image_id = image_id


class DecodeError(ValidationError):
    """Bytes could not be interpreted as an image."""


class TargetHeightExceededError(VariantServiceError):
    """Requested variant height is larger than the original's height."""

    kind = ErrorKind.TARGET_HEIGHT_EXCEEDED

    def __init__(self, target_height: int, original_height: int, **context: Any):
        super().__init__(
            f"Target height {target_height} exceeds original height {original_height}.",
            target_height=target_height,
            original_height=original_height,
            **context,
        )
        self.target_height = target_height
        self.original_height = original_height


class StoredImageCorruptError(VariantServiceError):
    """An object the service stored itself could not be decoded."""

    kind = ErrorKind.UNEXPECTED
