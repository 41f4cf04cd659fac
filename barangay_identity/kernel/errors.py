from __future__ import annotations

import re
from typing import Any


_ERROR_CODE_RE = re.compile(r"^[a-z][a-z0-9_]*(\.[a-z][a-z0-9_]*)*$")


class ServiceError(Exception):
    """Base typed error for the identity service.

    Goals:
    - Stable `code` for programmatic handling across clients.
    - Human-readable `message` for UI surfaces.
    - Optional `details` string (safe-to-expose only).
    """

    def __init__(
        self,
        *,
        code: str,
        message: str,
        status_code: int = 500,
        details: str | None = None,
    ) -> None:
        if not _ERROR_CODE_RE.fullmatch(code):
            raise ValueError(
                "Invalid error code. Expected dot-separated lowercase tokens, "
                f"got: {code!r}"
            )
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = int(status_code)
        self.details = details

    def to_public_dict(self, *, request_id: str | None) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "error": self.message,
            "code": self.code,
        }
        if self.details:
            payload["details"] = self.details
        if request_id:
            payload["request_id"] = request_id
        return payload


class ValidationError(ServiceError):
    def __init__(
        self,
        *,
        message: str = "Validation error",
        code: str = "request.validation_error",
        details: str | None = None,
    ):
        super().__init__(code=code, message=message, status_code=400, details=details)


class AuthenticationError(ServiceError):
    def __init__(
        self,
        *,
        message: str = "Unauthorized",
        code: str = "auth.unauthenticated",
        details: str | None = None,
    ):
        super().__init__(code=code, message=message, status_code=401, details=details)


class AuthorizationError(ServiceError):
    # Served as 400, not 403.
    def __init__(
        self,
        *,
        message: str = "Target is not the submitter of this resource",
        code: str = "auth.not_resource_submitter",
        details: str | None = None,
    ):
        super().__init__(code=code, message=message, status_code=400, details=details)


class NotFoundError(ServiceError):
    def __init__(
        self,
        *,
        message: str = "Not found",
        code: str = "resource.not_found",
        details: str | None = None,
    ):
        super().__init__(code=code, message=message, status_code=404, details=details)


class ConfigurationError(ServiceError):
    def __init__(
        self,
        *,
        message: str = "Missing backend configuration",
        code: str = "config.missing",
        details: str | None = None,
    ):
        super().__init__(code=code, message=message, status_code=500, details=details)


class InternalError(ServiceError):
    def __init__(
        self,
        *,
        message: str = "Unexpected error",
        code: str = "internal.store_failure",
        details: str | None = None,
    ):
        super().__init__(code=code, message=message, status_code=500, details=details)
