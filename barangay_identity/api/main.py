"""
Barangay Identity Service - FastAPI Application

The identity-and-privilege boundary of the barangay portal.
Provides:
- Pre-registration identity check across the credential store and profile directory
- Ownership-gated escalation of a profile to the admin role
- Self-service MFA disable
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import make_asgi_app

from barangay_identity import __version__
from barangay_identity.api.middleware import (
    CORS_ALLOW_HEADERS,
    CORS_ALLOW_METHODS,
    CORS_ALLOW_ORIGINS,
    RequestIDMiddleware,
    SecurityHeadersMiddleware,
)
from barangay_identity.api.routes import health, identity, mfa, promote
from barangay_identity.config import Settings, get_settings
from barangay_identity.kernel.http.errors import UnhandledErrorMiddleware, register_exception_handlers
from barangay_identity.stores.backend import Backend, build_backend

# Path prefix the portal's browser client already calls
API_PREFIX = "/functions/v1"

# Map log level string to logging constant
_LOG_LEVEL_MAP = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}

logger = structlog.get_logger()


def configure_logging(settings: Settings) -> None:
    """Configure structured logging."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer()
            if settings.log_format == "json"
            else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            _LOG_LEVEL_MAP.get(settings.log_level.lower(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan - startup and shutdown."""
    settings: Settings = app.state.settings

    logger.info(
        "Starting Barangay Identity Service",
        version=__version__,
        environment=settings.environment,
        probe_failure_mode=settings.identity_probe_failure_mode,
    )

    # A backend handed to create_app() belongs to the caller.
    owns_backend = app.state.backend is None
    if owns_backend:
        # Raises ConfigurationError before the app accepts traffic.
        app.state.backend = build_backend(settings)

    yield

    logger.info("Shutting down Barangay Identity Service")
    if owns_backend and app.state.backend is not None:
        await app.state.backend.aclose()
        app.state.backend = None


def create_app(settings: Settings | None = None, backend: Backend | None = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Settings to use (defaults to the environment)
        backend: Prebuilt store handle; when omitted it is built at startup
    """
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title="Barangay Identity API",
        description="Identity check, role escalation and MFA management for the barangay portal",
        version=__version__,
        lifespan=lifespan,
        docs_url=None if settings.environment == "production" else "/docs",
        redoc_url=None,
    )
    app.state.settings = settings
    app.state.backend = backend

    register_exception_handlers(app)

    # Middleware (order matters - first added = last executed)
    app.add_middleware(UnhandledErrorMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ALLOW_ORIGINS,
        allow_methods=CORS_ALLOW_METHODS,
        allow_headers=CORS_ALLOW_HEADERS,
        expose_headers=["X-Request-ID"],
    )

    # Prometheus metrics endpoint
    app.mount("/metrics", make_asgi_app())

    # Include routers
    app.include_router(health.router, tags=["Health"])
    app.include_router(identity.router, prefix=API_PREFIX, tags=["Identity"])
    app.include_router(promote.router, prefix=API_PREFIX, tags=["Escalation"])
    app.include_router(mfa.router, prefix=API_PREFIX, tags=["MFA"])

    @app.get("/", include_in_schema=False)
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Barangay Identity API",
            "version": __version__,
            "health": "/health",
            "metrics": "/metrics",
        }

    return app


app = create_app()


def run() -> None:
    """Console entrypoint: serve the application with uvicorn."""
    settings = get_settings()
    uvicorn.run(
        "barangay_identity.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )
