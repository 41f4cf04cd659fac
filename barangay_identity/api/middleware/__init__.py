"""API middleware modules."""

from .security import (
    CORS_ALLOW_HEADERS,
    CORS_ALLOW_METHODS,
    CORS_ALLOW_ORIGINS,
    CORS_HEADERS,
    RequestIDMiddleware,
    SecurityHeadersMiddleware,
    preflight_response,
)

__all__ = [
    "CORS_ALLOW_HEADERS",
    "CORS_ALLOW_METHODS",
    "CORS_ALLOW_ORIGINS",
    "CORS_HEADERS",
    "RequestIDMiddleware",
    "SecurityHeadersMiddleware",
    "preflight_response",
]
