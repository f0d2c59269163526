"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from image_variants.api.router import api_router
from image_variants.config import Settings, get_settings
from image_variants.middleware.error_handler import setup_exception_handlers
from image_variants.middleware.observability import get_logger, setup_observability
from image_variants.middleware.request_id import RequestIDMiddleware
from image_variants.services.image.variants import VariantEngine
from image_variants.storage import ObjectStore, create_object_store

logger = get_logger(__name__)


def create_app(
    settings: Settings | None = None,
    object_store: ObjectStore | None = None,
) -> FastAPI:
    """
    Application factory.

    Args:
        settings: Settings to run with (process settings by default)
        object_store: Pre-built store; otherwise one is created at startup
            from ``settings.storage_backend`` and closed at shutdown
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan management."""
        logger.info(f"Starting {settings.app_name}...")

        owns_store = object_store is None
        store = object_store or await create_object_store(settings)
        app.state.object_store = store
        app.state.variant_engine = VariantEngine(store, settings)
        logger.info(f"Object store initialized ({type(store).__name__})")

        yield

        logger.info("Shutting down...")
        if owns_store:
            await store.close()
        logger.info("Shutdown complete")

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        description="Stores uploaded images and serves height-constrained variants on demand",
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Access logging (configured first so the request ID middleware wraps it)
    setup_observability(app, settings)

    # Request ID middleware (outermost, sets the request_id log context)
    app.add_middleware(RequestIDMiddleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routes
    app.include_router(api_router, prefix="/api")

    return app


app = create_app()
