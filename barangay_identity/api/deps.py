"""
FastAPI dependencies.

Handlers receive the startup-built backend and the services wired on top of it
through these functions, so tests can swap any store by passing a different
backend to `create_app`.
"""

from __future__ import annotations

from typing import TypeVar

from fastapi import Depends, Header, Request
from pydantic import BaseModel
from pydantic import ValidationError as SchemaError

from barangay_identity.auth.caller import authenticate_caller
from barangay_identity.auth.escalation import RoleEscalationAuthorizer
from barangay_identity.auth.mfa import MfaDisabler
from barangay_identity.config import Settings, get_settings
from barangay_identity.identity.resolver import IdentityResolver
from barangay_identity.kernel.errors import ConfigurationError, ValidationError
from barangay_identity.stores.backend import Backend
from barangay_identity.stores.ports import CallerIdentity

ModelT = TypeVar("ModelT", bound=BaseModel)


def get_app_settings(request: Request) -> Settings:
    return getattr(request.app.state, "settings", None) or get_settings()


def get_backend(request: Request) -> Backend:
    backend = getattr(request.app.state, "backend", None)
    if backend is None:
        raise ConfigurationError()
    return backend


async def get_caller(
    authorization: str | None = Header(default=None),
    backend: Backend = Depends(get_backend),
) -> CallerIdentity:
    return await authenticate_caller(backend.sessions, authorization)


def get_identity_resolver(
    backend: Backend = Depends(get_backend),
    settings: Settings = Depends(get_app_settings),
) -> IdentityResolver:
    return IdentityResolver(
        backend.credentials,
        backend.profiles,
        failure_mode=settings.identity_probe_failure_mode,
    )


def get_escalation_authorizer(backend: Backend = Depends(get_backend)) -> RoleEscalationAuthorizer:
    return RoleEscalationAuthorizer(backend.resources, backend.profiles)


def get_mfa_disabler(backend: Backend = Depends(get_backend)) -> MfaDisabler:
    return MfaDisabler(backend.mfa_factors, backend.sessions)


def _describe_schema_errors(exc: SchemaError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        parts.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "; ".join(parts)


async def read_json_body(request: Request, model: type[ModelT]) -> ModelT:
    """
    Parse and validate a JSON object body against `model`.

    Raises:
        ValidationError: body is not JSON, not an object, or fails the schema
    """
    try:
        payload = await request.json()
    except ValueError as exc:
        raise ValidationError(message="Invalid JSON body") from exc

    if not isinstance(payload, dict):
        raise ValidationError(message="Request body must be a JSON object")

    try:
        return model.model_validate(payload)
    except SchemaError as exc:
        raise ValidationError(
            message="Invalid request body",
            details=_describe_schema_errors(exc),
        ) from exc
