"""FastAPI application for the webhook trigger API."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from presto_webhooks import __version__
from presto_webhooks.config import Settings
from presto_webhooks.exceptions import NotFoundError, PrestoError, RejectedDelivery
from presto_webhooks.logging import configure_logging, get_logger
from presto_webhooks.service import DeliveryService
from presto_webhooks.storage import SubscriptionStore

from .router import router, set_service

logger = get_logger(__name__)


def create_app(
    settings: Settings | None = None,
    store: SubscriptionStore | None = None,
) -> FastAPI:
    """Create a FastAPI application.

    Args:
        settings: Optional settings. Uses environment if None.
        store: Subscription store handed to the DeliveryService. An empty
            in-memory store is used if None.

    Returns:
        Configured FastAPI application.

    Example:
        ```python
        from presto_webhooks.api import create_app

        app = create_app(store=my_store)
        # Run with: uvicorn presto_webhooks.api:app --reload
        ```
    """
    if settings is None:
        settings = Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Create the DeliveryService on startup and close it on shutdown."""
        configure_logging(level=settings.log_level, format=settings.log_format)
        logger.info(
            "Starting webhook API", log_level=settings.log_level, log_format=settings.log_format
        )

        service = DeliveryService.create(settings, store=store)
        set_service(service)

        yield

        await service.close()
        set_service(None)  # type: ignore[arg-type]

    app = FastAPI(
        title="Presto Webhooks",
        description="Signed webhook delivery with bounded retries.",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    if settings.cors_enabled:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_allow_origins,
            allow_methods=["POST", "GET", "OPTIONS"],
            allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
        )

    register_exception_handlers(app)
    app.include_router(router, prefix="/api/v1")

    return app


def register_exception_handlers(app: FastAPI) -> None:
    """Map the exception hierarchy onto HTTP responses."""

    @app.exception_handler(NotFoundError)
    async def not_found_error_handler(request: Request, exc: NotFoundError) -> JSONResponse:
        """Handle unknown subscriptions with 404 status."""
        logger.info(
            "Resource not found",
            resource_type=exc.resource_type,
            resource_id=exc.resource_id,
            path=str(request.url),
        )
        return JSONResponse(status_code=404, content=exc.to_dict())

    @app.exception_handler(RejectedDelivery)
    async def rejected_delivery_handler(request: Request, exc: RejectedDelivery) -> JSONResponse:
        """Inactive subscriptions look missing (404); unsubscribed events are a 400."""
        logger.info(
            "Delivery rejected",
            subscription_id=exc.subscription_id,
            reason=exc.reason,
            path=str(request.url),
        )
        status_code = 404 if exc.reason == "inactive" else 400
        return JSONResponse(status_code=status_code, content=exc.to_dict())

    @app.exception_handler(PrestoError)
    async def presto_error_handler(request: Request, exc: PrestoError) -> JSONResponse:
        """Handle all other errors (signing, storage) with 500 status."""
        logger.error(
            "Webhook delivery error", error=exc.message, code=exc.code, path=str(request.url)
        )
        return JSONResponse(status_code=500, content=exc.to_dict())


# Default app instance for uvicorn
app = create_app()
