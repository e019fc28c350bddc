"""
Store Service FastAPI Application
=================================

Main application entry point for the Store Service.
Serves the category catalog and runs the outbox dispatcher that delivers
domain events to cache invalidation and Kafka.
"""

import time
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.v1.admin import router as admin_router
from .api.v1.carts import router as carts_router
from .api.v1.categories import router as categories_router
from .api.v1.health import router as health_router
from .api.v1.orders import router as orders_router
from .api.v1.payments import router as payments_router
from .core.database import database_manager
from .core.event_management import close_events, init_events
from .core.settings import get_settings
from .middleware.auth import setup_store_auth_middleware
from .middleware.error import setup_store_error_handling
from .middleware.logging import setup_request_logging
from .services.cache import create_cache_service
from .utils.logging import setup_store_logging as setup_logging

settings = get_settings()
enable_file_logging = settings.ENVIRONMENT.lower() in ["production", "staging"]

logger = setup_logging(
    "store_service",
    log_level=settings.LOG_LEVEL,
    enable_file_logging=enable_file_logging,
)


# Lifespan management
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager for startup and shutdown."""
    startup_start = time.time()

    try:
        await database_manager.create_tables()
        app.state.outbox_dispatcher = await init_events(app.state.cache)
    except Exception as e:
        logger.error(
            "Failed to start store service",
            exc_info=True,
            extra={
                "startup_duration_ms": int((time.time() - startup_start) * 1000),
                "error_type": type(e).__name__,
            },
        )
        raise

    logger.info(
        "Store service started successfully",
        extra={
            "total_startup_duration_ms": int((time.time() - startup_start) * 1000),
            "environment": settings.ENVIRONMENT,
            "cache_backend": settings.CACHE_BACKEND,
            "event_publishing": settings.ENABLE_EVENT_PUBLISHING,
            "outbox_dispatcher": settings.OUTBOX_DISPATCHER_ENABLED,
        },
    )

    yield

    logger.info("Starting store service shutdown")
    await close_events()
    await app.state.cache.close()
    await database_manager.close()
    logger.info("Store service shutdown completed")


# Application factory
def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan,
        openapi_url="/openapi.json" if settings.DEBUG else None,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
    )
    app.state.cache = create_cache_service(settings)
    app.state.outbox_dispatcher = None

    _setup_middleware(app)
    _setup_cors(app)
    _setup_routers(app)

    return app


def _setup_middleware(app: FastAPI) -> None:
    """Configure middleware; the last one added runs first."""
    setup_store_error_handling(app)
    setup_store_auth_middleware(app)
    setup_request_logging(app)
    logger.info(
        "Middleware configured",
        extra={"app_name": settings.APP_NAME, "debug_mode": settings.DEBUG},
    )


def _setup_cors(app: FastAPI) -> None:
    """Configure CORS settings with logging."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=settings.CORS_CREDENTIALS,
        allow_methods=settings.CORS_METHODS,
        allow_headers=settings.CORS_HEADERS,
    )

    logger.info(
        "CORS middleware configured",
        extra={
            "allowed_origins": len(settings.CORS_ORIGINS),
            "credentials_allowed": settings.CORS_CREDENTIALS,
        },
    )


def _setup_routers(app: FastAPI) -> None:
    """Configure all application routers with detailed logging."""
    routers_info: list[dict[str, Any]] = []

    app.include_router(health_router, tags=["Health"])
    routers_info.append({"router": "health", "prefix": "", "tags": ["Health"]})

    app.include_router(
        categories_router, prefix="/api/v1", tags=["Category Management"]
    )
    routers_info.append(
        {"router": "categories", "prefix": "/api/v1", "tags": ["Category Management"]}
    )

    for router, name, tag in (
        (carts_router, "carts", "Cart Management"),
        (orders_router, "orders", "Order Management"),
        (payments_router, "payments", "Payment Management"),
    ):
        app.include_router(router, prefix="/api/v1", tags=[tag])
        routers_info.append({"router": name, "prefix": "/api/v1", "tags": [tag]})

    app.include_router(admin_router, prefix="/api/v1", tags=["Administration"])
    routers_info.append(
        {"router": "admin", "prefix": "/api/v1", "tags": ["Administration"]}
    )

    logger.info(
        "API routes configured",
        extra={"total_routers": len(routers_info), "routers": routers_info},
    )


app = create_app()
