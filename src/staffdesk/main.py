"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Lifespan owns the process-wide resources: the database pool and
the Redis notifier are created at startup, hung on app.state, and drained
at shutdown.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from staffdesk import __version__
from staffdesk.api import api_router
from staffdesk.config import settings
from staffdesk.db.engine import Database
from staffdesk.exceptions import register_exception_handlers
from staffdesk.realtime.pubsub import ProfileNotifier

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs at
    shutdown.
    """
    logger.info(
        "staffdesk.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    app.state.database = Database.from_settings(settings)
    # Redis is optional; without it broadcasts are dropped
    app.state.notifier = await ProfileNotifier.connect(settings)
    logger.info("staffdesk.ready")

    yield

    logger.info("staffdesk.shutdown")
    await app.state.notifier.close()
    await app.state.database.dispose()


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="StaffDesk",
        description="Office staff profile service",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: RequestId → Security → CORS → handler

    from staffdesk.middleware.request_id import RequestIdMiddleware
    from staffdesk.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(api_router)

    from staffdesk.realtime.websocket import router as ws_router
    app.include_router(ws_router)

    return app


# Default app instance (used by uvicorn: staffdesk.main:app)
app = create_app()
