"""FastAPI application factory"""

import asyncio
import logging
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from core.config import get_settings
from core.cors import SplitCORSMiddleware
from core.database import get_database_manager, init_database_manager
from core.errors import register_exception_handlers
from core.logging import setup_logging
from routers import public_timers_router, timers_router
from shared.database import PoolConfig

logger = logging.getLogger(__name__)

_start_time: float = 0.0
_heartbeat_task: asyncio.Task | None = None
_db_retry_task: asyncio.Task | None = None


async def _heartbeat(interval: int = 300) -> None:
    """Periodic heartbeat: log uptime and DB status"""
    while True:
        await asyncio.sleep(interval)
        uptime = int(time.time() - _start_time)
        db_ok = await get_database_manager().check_health()
        logger.info(f"Heartbeat: uptime={uptime}s, db={db_ok}")


async def _db_retry_loop(db_manager) -> None:
    """Keep trying to connect after the startup attempt timed out."""
    delay = 5
    max_delay = 60
    while True:
        await asyncio.sleep(delay)
        if db_manager.is_connected:
            return
        try:
            await db_manager.connect()
            logger.info("Database connected (background retry)")
            return
        except asyncio.CancelledError:
            return
        except Exception as e:
            delay = min(delay * 2, max_delay)
            logger.warning(
                f"DB background retry failed: {type(e).__name__}: {e}, next retry in {delay}s"
            )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle startup and shutdown"""
    global _start_time, _heartbeat_task, _db_retry_task
    _start_time = time.time()

    settings = get_settings()
    logger.info("Starting countdown timer API")
    logger.info(f"Environment: {settings.environment}")

    # Wait up to 30s for the pool before accepting requests; requests that
    # arrive while the background retry runs get 503 from get_db_pool.
    db_manager = init_database_manager(settings.database_url, PoolConfig(ssl=settings.database_ssl))
    try:
        await asyncio.wait_for(db_manager.connect(), timeout=30)
        logger.info("Database connected")
    except TimeoutError:
        logger.warning("DB connection timed out during startup, retrying in background")
        _db_retry_task = asyncio.create_task(_db_retry_loop(db_manager))
    except Exception as e:
        logger.error(
            f"DB connection failed during startup: {type(e).__name__}: {e}, retrying in background"
        )
        _db_retry_task = asyncio.create_task(_db_retry_loop(db_manager))

    if settings.enable_keep_alive:
        _heartbeat_task = asyncio.create_task(_heartbeat(settings.keep_alive_interval))
        logger.info(f"Heartbeat started (interval={settings.keep_alive_interval}s)")

    yield

    logger.info("Shutting down countdown timer API")
    for task in (_db_retry_task, _heartbeat_task):
        if task:
            task.cancel()
    await db_manager.disconnect()


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    settings = get_settings()

    setup_logging(settings)

    app = FastAPI(
        title="Countdown Timer API",
        description="Merchant countdown timer management and storefront timer delivery",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )

    app.add_middleware(
        SplitCORSMiddleware,
        public_prefix=public_timers_router.PUBLIC_PREFIX,
        admin_origins=settings.cors_origins,
    )
    register_exception_handlers(app)

    # Storefront routes first: they share the /api/timers prefix
    app.include_router(public_timers_router.router)
    app.include_router(timers_router.router)

    @app.get("/")
    async def root():
        """Root endpoint - minimal service info"""
        return {"service": "countdown-timer-api", "status": "running"}

    @app.get("/health")
    async def health():
        """Liveness check (no DB dependency)"""
        return {
            "status": "healthy",
            "uptime_seconds": int(time.time() - _start_time),
        }

    @app.get("/status")
    async def status():
        """Readiness check including DB health"""
        try:
            db_ok = await get_database_manager().check_health()
        except RuntimeError:
            db_ok = False
        return {
            "service": "countdown-timer-api",
            "version": "1.0.0",
            "uptime_seconds": int(time.time() - _start_time),
            "db_connected": db_ok,
            "environment": settings.environment,
        }

    @app.api_route("/ping", methods=["GET", "HEAD"], response_class=PlainTextResponse)
    async def ping():
        return "pong"

    logger.info("FastAPI application configured")

    return app
