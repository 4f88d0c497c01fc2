"""FastAPI application entrypoint.

Configures CORS and error tracking, maps store errors onto HTTP responses,
includes routers, and exposes a healthcheck endpoint.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

from .deps import get_settings
from .errors import StoreError
from .routers import bookings as bookings_router
from .routers import catalog as catalog_router
from .routers import clients as clients_router
from .routers import payments as payments_router
from .routers import performance as performance_router
from .routers import public as public_router
from .routers import reports as reports_router
from .telemetry.sentry import capture_exception, init_sentry

# Import models so Alembic can discover metadata
from . import models  # noqa: F401


def create_app() -> FastAPI:
    """Build the FastAPI application."""
    settings = get_settings()
    init_sentry(settings.SENTRY_DSN, settings.ENVIRONMENT)

    app = FastAPI(
        title="Trading Academy API",
        version="0.1.0",
        description="Courses, mentorship, bookings and client records for the trading academy.",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError):
        """Translate StoreError subclasses into their HTTP status and error body."""
        logger.info("[API] %s %s -> %s (%s)", request.method, request.url.path, exc.status_code, exc.code.value)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("[API] Unhandled error on %s %s", request.method, request.url.path)
        capture_exception(exc, extra={"path": request.url.path})
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    @app.get("/health", tags=["Health"])
    def health():
        return {"status": "ok"}

    app.include_router(catalog_router.router)
    app.include_router(clients_router.router)
    app.include_router(bookings_router.router)
    app.include_router(payments_router.router)
    app.include_router(performance_router.router)
    app.include_router(public_router.router)
    app.include_router(reports_router.router)

    return app


app = create_app()
