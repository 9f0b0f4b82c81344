"""
FastAPI application factory.

The application receives a ready order service instead of building one, so
the same factory serves production wiring and tests with in-memory ports.
"""

from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from orderstream.api.routes import health_router, router as orders_router
from orderstream.core.config import Settings, get_settings
from orderstream.core.logging import (
    clear_context,
    get_logger,
    get_request_id,
    log_performance,
    set_request_id,
)
from orderstream.services.orders import OrderService

logger = get_logger(__name__)


async def request_logging_middleware(request: Request, call_next):
    """
    Middleware for request logging and correlation ID management.

    Sets request ID for correlation, logs request details, and measures
    response time. Clears context after request processing.

    Args:
        request: Incoming HTTP request
        call_next: Next middleware or route handler

    Returns:
        HTTP response with X-Request-ID header
    """
    request_id = set_request_id(request.headers.get("X-Request-ID"))

    logger.info(
        "Request received",
        method=request.method,
        path=request.url.path,
        client_host=request.client.host if request.client else None,
    )

    try:
        with log_performance(
            logger,
            "request_processing",
            method=request.method,
            path=request.url.path,
        ):
            response = await call_next(request)

        response.headers["X-Request-ID"] = request_id

        logger.info(
            "Request completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
        )

        return response
    finally:
        clear_context()


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected exceptions with a generic error response.

    Args:
        request: HTTP request that caused exception
        exc: Exception that was raised

    Returns:
        JSON response without internal details
    """
    logger.error(
        "Unhandled exception",
        method=request.method,
        path=request.url.path,
        error=str(exc),
        error_type=type(exc).__name__,
        exc_info=True,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal Server Error",
            "message": "An unexpected error occurred",
            "request_id": get_request_id(),
        },
    )


def create_app(service: OrderService, settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the HTTP application around an order service.

    Args:
        service: Order service used by all handlers
        settings: Application settings, defaults to the process settings

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Order lookup and submission API",
        docs_url="/docs",
        redoc_url=None,
        openapi_url="/openapi.json",
    )
    app.state.order_service = service
    app.state.settings = settings

    app.middleware("http")(request_logging_middleware)
    app.add_exception_handler(Exception, global_exception_handler)

    app.include_router(orders_router)
    app.include_router(health_router)

    logger.debug("HTTP application created", environment=settings.environment)
    return app
