"""Logging setup and per-request access logging."""

import logging
import sys
import time
from collections.abc import Callable

from fastapi import FastAPI, Request, Response
from pythonjsonlogger.json import JsonFormatter
from starlette.middleware.base import BaseHTTPMiddleware

from image_variants.config import Settings
from image_variants.middleware.request_id import get_request_id

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s"
JSON_FORMAT = "%(asctime)s %(name)s %(levelname)s %(request_id)s %(message)s"

_configured = False


class RequestIDFilter(logging.Filter):
    """Attach the current request ID to every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id() or "-"
        return True


def configure_logging(settings: Settings) -> None:
    """Configure the root logger once per process."""
    global _configured
    if _configured:
        return

    handler = logging.StreamHandler(sys.stdout)
    if settings.enable_structured_logging:
        handler.setFormatter(JsonFormatter(JSON_FORMAT))
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    handler.addFilter(RequestIDFilter())

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(settings.log_level.upper())
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Module logger; formatting is applied by ``configure_logging``."""
    return logging.getLogger(name)


logger = get_logger(__name__)


class AccessLogMiddleware(BaseHTTPMiddleware):
    """Log method, path, status and latency of each request."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start = time.perf_counter()
        response = await call_next(request)
        latency_ms = (time.perf_counter() - start) * 1000

        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code}",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "latency_ms": round(latency_ms, 2),
            },
        )
        return response


def setup_observability(app: FastAPI, settings: Settings) -> None:
    """Configure logging and register the access log middleware."""
    configure_logging(settings)
    app.add_middleware(AccessLogMiddleware)
