"""Global error handling.

Every failure is rendered as ``{"error": ..., "details": ...}``.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from image_variants.config import get_settings
from image_variants.services.image.errors import ErrorKind, VariantServiceError

logger = logging.getLogger(__name__)

# status code, error text per kind
KIND_RESPONSES: dict[ErrorKind, tuple[int, str]] = {
    ErrorKind.VALIDATION: (
        422,  # HTTP 422 Unprocessable Content
        "Business validation failed.",
    ),
    ErrorKind.TARGET_HEIGHT_EXCEEDED: (
        status.HTTP_400_BAD_REQUEST,
        "Error occurred.",
    ),
    ErrorKind.UNEXPECTED: (
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "An unexpected error occurred.",
    ),
}


def create_error_response(error: str, details: str) -> dict:
    """Create standardized error response."""
    return {"error": error, "details": details}


async def service_error_handler(request: Request, exc: VariantServiceError) -> JSONResponse:
    """Handle errors raised by the variant engine."""
    status_code, error = KIND_RESPONSES[exc.kind]
    return JSONResponse(
        status_code=status_code,
        content=create_error_response(error, exc.message),
    )


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    """Handle HTTP exceptions."""
    details = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response("Error occurred.", details),
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Handle request validation errors."""
    details = "; ".join(
        f"{'.'.join(str(x) for x in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    )
    logger.warning(f"Validation error: {details}")

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=create_error_response("Request validation failed.", details),
    )


async def timeout_handler(request: Request, exc: TimeoutError) -> JSONResponse:
    """Handle operations that ran past the request timeout."""
    logger.error(f"Timed out: {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_504_GATEWAY_TIMEOUT,
        content=create_error_response("An unexpected error occurred.", "Request timed out."),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception(f"Unexpected error on {request.method} {request.url.path}: {exc}")

    settings = getattr(request.app.state, "settings", None) or get_settings()
    details = str(exc) if settings.debug else "Internal server error."
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=create_error_response("An unexpected error occurred.", details),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers."""
    app.add_exception_handler(VariantServiceError, service_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(TimeoutError, timeout_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
