"""tokengate - FastAPI Application Factory."""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tokengate.api import api_router
from tokengate.core import Settings, get_settings, setup_logging
from tokengate.core.logging import get_logger
from tokengate.errors import StoreError
from tokengate.middleware import SecurityHeadersMiddleware
from tokengate.services.gateway import Gateway, build_gateway
from tokengate.store.sql import SQLTokenStore

logger = get_logger("main")


def task_done_callback(task: asyncio.Task[None]) -> None:
    """Log unhandled exceptions from background tasks."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error(f"Background task {task.get_name()} failed: {exc}")


async def _expired_token_cleanup_loop(gateway: Gateway, interval: int) -> None:
    """Periodically remove expired token rows."""
    while True:
        await asyncio.sleep(interval)
        try:
            await gateway.lifecycle.purge_expired()
        except StoreError as e:
            logger.warning(f"Expired token cleanup skipped: {e}")
        except Exception:
            logger.exception("Error cleaning up expired tokens")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    settings: Settings = app.state.settings
    gateway: Gateway = app.state.gateway

    setup_logging(
        level=settings.log_level,
        format_type="structured" if not settings.debug else "dev",
    )
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")

    for warning in settings.check_security_configuration():
        logger.warning(f"SECURITY: {warning}")

    if isinstance(gateway.store, SQLTokenStore):
        await gateway.store.create_tables()

    # Exactly one bootstrap per process start
    if settings.bootstrap_admin:
        await gateway.lifecycle.bootstrap_admin()

    cleanup_task = asyncio.create_task(
        _expired_token_cleanup_loop(gateway, settings.token_cleanup_interval_seconds)
    )
    cleanup_task.add_done_callback(task_done_callback)

    yield

    logger.info("Shutting down...")
    cleanup_task.cancel()
    try:
        await cleanup_task
    except asyncio.CancelledError:
        pass

    await gateway.audit.flush()
    if gateway.audit.dropped:
        logger.warning(f"{gateway.audit.dropped} audit entries were not persisted")
    await gateway.store.close()


def create_app(settings: Settings | None = None, gateway: Gateway | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    ``gateway`` may be supplied pre-built (tests inject one around an
    in-memory store); otherwise it is built from ``settings``.
    """
    settings = settings or (gateway.settings if gateway else get_settings())
    gateway = gateway or build_gateway(settings)

    app = FastAPI(
        title=settings.app_name,
        description="Bearer token authentication and authorization gateway",
        version=settings.app_version,
        lifespan=lifespan,
        # Docs would bypass the token gate, so only expose them when debugging
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
    )
    app.state.settings = settings
    app.state.gateway = gateway

    app.add_middleware(SecurityHeadersMiddleware)

    # CORS must be outermost (added last) so rejections carry CORS headers too
    if settings.cors_origins_list:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins_list,
            allow_credentials=True,
            allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
            allow_headers=["Authorization", "Content-Type", "Accept"],
        )

    app.include_router(api_router)

    return app


# Application instance
app = create_app()
