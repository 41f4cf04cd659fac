"""
Caller authentication.

The transport carries the caller's access token in the `Authorization` header
(`Bearer <token>`). The credential store is the only authority on whether that
token is valid; this module never decodes or trusts token claims locally.
"""

from __future__ import annotations

import structlog

from barangay_identity.kernel.errors import AuthenticationError, InternalError
from barangay_identity.stores.ports import CallerIdentity, SessionVerifier, StoreError

logger = structlog.get_logger()

AUTHORIZATION_HEADER = "Authorization"
BEARER_PREFIX = "bearer "


def extract_bearer_token(authorization: str | None) -> str | None:
    """Return the token from a `Bearer <token>` header value, or None."""
    if not authorization:
        return None
    value = authorization.strip()
    if not value.lower().startswith(BEARER_PREFIX):
        return None
    token = value[len(BEARER_PREFIX):].strip()
    return token or None


async def authenticate_caller(
    sessions: SessionVerifier,
    authorization: str | None,
) -> CallerIdentity:
    """
    Resolve the caller behind an Authorization header.

    Raises:
        AuthenticationError: no token, or the credential store rejected it
        InternalError: the credential store could not be reached
    """
    token = extract_bearer_token(authorization)
    if token is None:
        raise AuthenticationError()

    try:
        caller = await sessions.resolve_caller(token)
    except StoreError as exc:
        logger.error("Caller verification failed", error=str(exc))
        raise InternalError(message="Unable to verify caller") from exc

    if caller is None:
        logger.info("Caller token rejected")
        raise AuthenticationError()

    return caller
