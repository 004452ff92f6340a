"""
FastAPI application entry point.

This module creates and configures the FastAPI application.
Using an application factory pattern (create_app function) because:
- Easier to test with different configurations
- Explicit about initialization order

For local development:
    uvicorn sportstraining.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .api.dependencies import reset_dependencies
from .api.routes import auth, diary, health, preferences, programs
from .config.settings import get_settings
from .core.sessions.results import SessionExpiredError

# Configure logging
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Validates configuration on startup and closes the vendor client's
    connection pool on shutdown.
    """
    settings = get_settings()
    logging.getLogger().setLevel(settings.log_level.upper())

    logger.info(
        "SportsTraining API starting",
        extra={
            "version": __version__,
            "vc_base_url": settings.vc_base_url,
            "mock_mode": {"preferences": settings.preferences_mock_mode},
        }
    )

    missing_fields = settings.validate_required_fields()
    if missing_fields:
        logger.error(
            "Invalid configuration",
            extra={"missing_fields": missing_fields}
        )

    yield

    reset_dependencies()
    logger.info("SportsTraining API shutting down")


def create_app() -> FastAPI:
    """
    Application factory.

    Creates and configures the FastAPI application.
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description="""
        Backend for the SportsTraining mobile app.

        ## Authentication

        All endpoints require an API key in the `X-API-Key` header.
        The Visual Coaching session is held server-side after
        `POST /api/v1/auth/login`.

        A `401` from any endpoint means the Visual Coaching session is
        missing or expired: show the login page.
        """,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(
        health.router,
        prefix="/health",
        tags=["Health"],
    )

    app.include_router(
        auth.router,
        prefix="/api/v1/auth",
        tags=["Auth"],
    )

    app.include_router(
        programs.router,
        prefix="/api/v1/programs",
        tags=["Programs"],
    )

    app.include_router(
        diary.router,
        prefix="/api/v1/diary",
        tags=["Diary"],
    )

    app.include_router(
        preferences.router,
        prefix="/api/v1/preferences",
        tags=["Preferences"],
    )

    @app.get("/", include_in_schema=False)
    async def root():
        return {
            "message": "SportsTraining API",
            "version": settings.api_version,
            "docs": "/docs",
            "health": "/health",
        }

    @app.exception_handler(SessionExpiredError)
    async def session_expired_handler(request: Request, exc: SessionExpiredError):
        """Expired or missing vendor session: the front end should show login."""
        logger.info("Vendor session expired", extra={"path": request.url.path})
        return JSONResponse(
            status_code=401,
            content={"detail": str(exc)},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Catch-all exception handler.

        We log the full error server-side but return a generic message.
        """
        logger.error(
            "Unhandled exception",
            extra={
                "path": request.url.path,
                "method": request.method,
                "error": str(exc),
            },
            exc_info=exc,
        )

        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error. Please contact support if this persists."
            }
        )

    logger.info(
        "FastAPI application created",
        extra={
            "title": settings.api_title,
            "version": settings.api_version,
        }
    )

    return app


# Create the application instance
# This is what uvicorn imports
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "sportstraining.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=settings.log_level.lower(),
    )
