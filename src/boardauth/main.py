"""FastAPI application factory."""

from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from boardauth import __version__
from boardauth.api import api_router
from boardauth.config import Settings, get_settings
from boardauth.core.auth import IdentityMiddleware, RequestIdMiddleware
from boardauth.core.cache import close_redis_pool
from boardauth.core.errors import register_exception_handlers
from boardauth.core.jobs import RecurringTask
from boardauth.core.logging import RequestLoggingMiddleware, configure_logging
from boardauth.core.rate_limit import RateLimitMiddleware
from boardauth.core.wiring import AuthComponents, build_components


logger = structlog.get_logger()


def build_background_tasks(components: AuthComponents) -> list[RecurringTask]:
    """Housekeeping tasks run while the application is up."""
    settings = components.settings
    tasks = [
        RecurringTask(
            "rate_limit_bucket_sweep",
            settings.rate_limit_cleanup_interval_seconds,
            _sweep_buckets(components),
        ),
    ]
    if settings.session_sweep_in_process:
        tasks.append(
            RecurringTask(
                "refresh_session_sweep",
                settings.session_cleanup_interval_seconds,
                components.sessions.delete_expired,
            )
        )
    return tasks


def _sweep_buckets(components: AuthComponents) -> Callable[[], Awaitable[None]]:
    async def sweep() -> None:
        await components.rate_limiter.cleanup()
        await components.login_limiter.cleanup()

    return sweep


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler.

    Starts housekeeping tasks and releases connections on shutdown.
    """
    components: AuthComponents = app.state.components
    settings = components.settings

    logger.info(
        "application_startup",
        app_name=settings.app_name,
        environment=settings.environment,
    )

    tasks = build_background_tasks(components)
    for task in tasks:
        task.start()

    yield

    logger.info("application_shutdown")

    for task in tasks:
        await task.stop()

    await components.dispose()

    if settings.rate_limit_backend == "redis":
        await close_redis_pool()
        logger.info("redis_pool_closed")


def create_app(
    settings: Settings | None = None,
    components: AuthComponents | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to use; loaded from the environment if omitted
        components: Pre-built components; built from settings if omitted

    Returns:
        Configured FastAPI application instance.
    """
    if components is not None:
        settings = components.settings
    settings = settings or get_settings()
    components = components or build_components(settings)

    configure_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        description="Authentication and session service for the board backend",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
        # Disable docs in production
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        openapi_url="/openapi.json" if not settings.is_production else None,
    )
    app.state.components = components

    # Middleware added last runs first
    app.add_middleware(RateLimitMiddleware, limiter=components.rate_limiter)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(IdentityMiddleware)
    app.add_middleware(RequestIdMiddleware)

    cors_origins = settings.cors_origins
    if settings.is_development and not cors_origins:
        cors_origins = ["http://localhost:3000", "http://localhost:5173"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    )

    # Register exception handlers for RFC 7807 error responses
    register_exception_handlers(app)

    app.include_router(api_router)

    return app
