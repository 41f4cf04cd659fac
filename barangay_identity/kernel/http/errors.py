from __future__ import annotations

from typing import Any, Callable

import structlog
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from barangay_identity.kernel.errors import ServiceError

logger = structlog.get_logger()


def _get_request_id(request: Request) -> str | None:
    return getattr(getattr(request, "state", None), "request_id", None)


def register_exception_handlers(app: FastAPI) -> None:
    """Register service-wide exception handlers on a FastAPI app.

    Every error body carries `error` + stable `code`, plus `request_id` when known.
    """

    @app.exception_handler(ServiceError)
    async def _service_error_handler(request: Request, exc: ServiceError) -> Response:
        request_id = _get_request_id(request)
        if exc.status_code >= 500:
            logger.error(
                "Request failed",
                code=exc.code,
                error=exc.message,
                path=request.url.path,
            )
        return JSONResponse(status_code=exc.status_code, content=exc.to_public_dict(request_id=request_id))

    @app.exception_handler(HTTPException)
    async def _http_exception_handler(request: Request, exc: HTTPException) -> Response:
        request_id = _get_request_id(request)
        payload: dict[str, Any] = {
            "error": exc.detail,
            "code": f"http.{exc.status_code}",
        }
        if request_id:
            payload["request_id"] = request_id

        headers = dict(exc.headers or {})
        return JSONResponse(status_code=int(exc.status_code), content=payload, headers=headers)

    @app.exception_handler(RequestValidationError)
    async def _validation_error_handler(request: Request, exc: RequestValidationError) -> Response:
        request_id = _get_request_id(request)
        payload: dict[str, Any] = {
            "error": "Validation error",
            "code": "request.validation_error",
        }
        if request_id:
            payload["request_id"] = request_id
        return JSONResponse(status_code=400, content=payload)

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(request: Request, exc: Exception) -> Response:
        return unhandled_error_response(request, exc)


def unhandled_error_response(request: Request, exc: Exception) -> Response:
    """Log an unexpected exception and render the generic 500 body."""
    request_id = _get_request_id(request)
    logger.exception("Unhandled exception", request_id=request_id, error=str(exc))

    payload: dict[str, Any] = {
        "error": "Unexpected error",
        "code": "internal.unhandled",
    }
    if request_id:
        payload["request_id"] = request_id
    return JSONResponse(status_code=500, content=payload)


class UnhandledErrorMiddleware(BaseHTTPMiddleware):
    """
    Render unexpected exceptions as the generic 500 inside the middleware stack.

    Added first so it sits innermost: the response still passes through the
    CORS, security-header and request-id middleware. The app-level `Exception`
    handler only sees what escapes the outer middleware themselves.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            return unhandled_error_response(request, exc)
