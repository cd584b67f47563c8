"""Main FastAPI application entry point."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager, suppress

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import ORJSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy.exc import SQLAlchemyError

from api.exception_handlers import setup_exception_handlers
from api.middleware.logging import RequestLoggingMiddleware
from api.middleware.request_id import RequestIDMiddleware
from api.middleware.security import SecurityHeadersMiddleware
from api.routes.health import API_VERSION
from api.routes.health import router as health_router
from api.v1 import router as v1_router
from api.v1.dependencies import get_access_control_service
from core.config import settings
from core.logging import setup_logging
from core.rate_limit import limiter, rate_limit_exceeded_handler

logger = structlog.get_logger()

# Initialize structured logging
setup_logging()


async def invitation_sweep_loop(interval_seconds: int) -> None:
    """Periodically persist the expiry of lapsed pending invitations.

    Expiry is already enforced lazily on every read and accept; the sweep
    only keeps stored statuses tidy for reporting.
    """
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            expired = await get_access_control_service().expire_stale_invitations()
            if expired > 0:
                logger.info("invitation_sweep_completed", expired_count=expired)
        except SQLAlchemyError:
            logger.exception("invitation_sweep_failed")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager for startup/shutdown tasks."""
    sweep_task = None
    if settings.invitation_sweep_interval_seconds > 0:
        sweep_task = asyncio.create_task(
            invitation_sweep_loop(settings.invitation_sweep_interval_seconds)
        )
    yield
    if sweep_task is not None:
        sweep_task.cancel()
        with suppress(asyncio.CancelledError):
            await sweep_task


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        title=settings.app_name,
        description=(
            "## Dashboard Collaboration & Access Control\n\n"
            "Workspaces, team roles, invitations and dashboard sharing "
            "for the analytics dashboard product.\n\n"
            "### Features\n"
            "- **Team roles**: owner, admin, analyst and viewer with fixed capabilities\n"
            "- **Invitations**: email invitations with expiry, resend and revoke\n"
            "- **Sharing**: public/private dashboards plus per-email view/edit grants\n\n"
            "### Authentication\n"
            "All endpoints (except `/health` and public dashboards) require a "
            "valid JWT token in the Authorization header:\n"
            "```\nAuthorization: Bearer <your_token>\n```\n\n"
            "### Rate Limits\n"
            "- GET endpoints: 30-60 requests/minute\n"
            "- POST/PUT/PATCH/DELETE: 10-20 requests/minute"
        ),
        version=API_VERSION,
        debug=settings.debug,
        openapi_tags=[
            {
                "name": "health",
                "description": "Health check endpoints",
            },
            {
                "name": "workspaces",
                "description": "Workspaces, members and roles",
            },
            {
                "name": "invitations",
                "description": "Invitation lifecycle",
            },
            {
                "name": "dashboards",
                "description": "Dashboard visibility, sharing and access resolution",
            },
        ],
    )

    # Rate limiting
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # Security & tracking middleware (LIFO order - last added = outermost)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # GZip compression for responses > 1KB
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Setup exception handlers
    setup_exception_handlers(app)

    # Include routers
    app.include_router(health_router)
    app.include_router(v1_router, prefix="/api/v1")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=not settings.is_production,
    )
