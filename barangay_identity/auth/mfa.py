"""
MFA disable flow.

An authenticated user switches off their own second factor after re-proving
possession of a credential: a current TOTP code for the stored secret, the
account password, or both. The factor row is disabled and its secret cleared.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import re
import struct
import time
from typing import Callable

import structlog
from pydantic import BaseModel, ConfigDict, Field

from barangay_identity.kernel.errors import (
    AuthenticationError,
    InternalError,
    ValidationError,
)
from barangay_identity.stores.ports import CallerIdentity, MfaFactorStore, SessionVerifier, StoreError

logger = structlog.get_logger()

TOTP_STEP_SECONDS = 30
TOTP_DIGITS = 6
TOTP_DRIFT_STEPS = 1

_CODE_RE = re.compile(r"^\d{6}$")


def totp_code(secret: str, counter: int) -> str:
    """RFC 6238 code (HMAC-SHA1) for a base32 secret at a time-step counter."""
    cleaned = secret.replace(" ", "").upper()
    key = base64.b32decode(cleaned + "=" * (-len(cleaned) % 8))
    digest = hmac.new(key, struct.pack(">Q", counter), hashlib.sha1).digest()
    offset = digest[-1] & 0x0F
    value = struct.unpack(">I", digest[offset:offset + 4])[0] & 0x7FFFFFFF
    return str(value % 10**TOTP_DIGITS).zfill(TOTP_DIGITS)


def verify_totp(secret: str, code: str, *, at: float) -> bool:
    """Check `code` against the secret, allowing one step of clock drift either way."""
    counter = int(at // TOTP_STEP_SECONDS)
    try:
        candidates = [
            totp_code(secret, counter + drift)
            for drift in range(-TOTP_DRIFT_STEPS, TOTP_DRIFT_STEPS + 1)
        ]
    except ValueError:
        logger.warning("Stored MFA secret is not valid base32")
        return False
    return any(hmac.compare_digest(candidate, code) for candidate in candidates)


class MfaDisableRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    password: str | None = None
    mfa_code: str | None = Field(default=None, alias="mfaCode")


class MfaDisabler:
    def __init__(
        self,
        factors: MfaFactorStore,
        sessions: SessionVerifier,
        *,
        clock: Callable[[], float] = time.time,
    ):
        self._factors = factors
        self._sessions = sessions
        self._clock = clock

    async def disable(self, caller: CallerIdentity | None, request: MfaDisableRequest) -> str:
        """Disable the caller's second factor and return a confirmation message."""
        if caller is None:
            raise AuthenticationError()

        password = request.password or None
        code = (request.mfa_code or "").strip() or None
        if password is None and code is None:
            raise ValidationError(message="Password or MFA code required for security")

        try:
            factor = await self._factors.get_factor(caller.user_id)
        except StoreError as exc:
            logger.error("MFA factor lookup failed", user_id=caller.user_id, error=str(exc))
            raise InternalError(message="Failed to load MFA settings") from exc

        if factor is None or not factor.enabled:
            raise ValidationError(message="MFA is not enabled", code="mfa.not_enabled")

        if code is not None:
            if not _CODE_RE.fullmatch(code):
                raise ValidationError(message="Invalid MFA code format", code="mfa.invalid_code_format")
            if not factor.secret or not verify_totp(factor.secret, code, at=self._clock()):
                logger.info("MFA disable rejected: wrong code", user_id=caller.user_id)
                raise AuthenticationError(message="Invalid MFA code", code="mfa.invalid_code")

        if password is not None:
            await self._require_password(caller, password)

        try:
            await self._factors.disable_factor(caller.user_id)
        except StoreError as exc:
            logger.error("Error disabling MFA", user_id=caller.user_id, error=str(exc))
            raise InternalError(message="Failed to disable MFA") from exc

        logger.info("MFA disabled", user_id=caller.user_id)
        return "Two-Factor Authentication has been successfully disabled"

    async def _require_password(self, caller: CallerIdentity, password: str) -> None:
        if not caller.email:
            raise AuthenticationError(message="Password verification failed", code="auth.invalid_password")
        try:
            valid = await self._sessions.verify_password(caller.email, password)
        except StoreError as exc:
            logger.error("Password re-verification failed", user_id=caller.user_id, error=str(exc))
            raise InternalError(message="Password verification failed") from exc
        if not valid:
            logger.info("MFA disable rejected: wrong password", user_id=caller.user_id)
            raise AuthenticationError(message="Invalid password", code="auth.invalid_password")
