"""
Identity Resolver

Reports whether a candidate email and/or phone number is already claimed,
checked against two independently maintained stores:
- the credential store (canonical authentication registry)
- the profile directory (application profiles, which duplicate email and hold phone)

Neither store is treated as the sole source of truth: a value is "taken" if any
store reports it. The probes run concurrently and without a reservation, so the
verdict is point-in-time only; two concurrent registrations can both see "not
taken". Uniqueness enforcement belongs to whichever store persists the account.

A probe that fails at the store is resolved by the configured failure mode:
- open: the failed probe counts as a non-hit (availability over accuracy)
- closed: the failed probe counts as a hit (the value is reported taken)
Either way the failure is logged and counted; the request still succeeds.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable

import structlog
from prometheus_client import Counter

from barangay_identity.identity.normalization import normalize_email, normalize_phone
from barangay_identity.identity.types import IdentityCheckRequest, IdentityReport
from barangay_identity.kernel.errors import ValidationError
from barangay_identity.stores.ports import CredentialStore, ProfileDirectory, StoreError

logger = structlog.get_logger()

PROBE_FAILURES = Counter(
    "barangay_identity_probe_failures_total",
    "Identity resolver store probes that failed",
    ["probe"],
)
IDENTITY_CHECKS = Counter(
    "barangay_identity_checks_total",
    "Identity checks answered",
    ["outcome"],
)

PROBE_CREDENTIAL_EMAIL = "credentials.email"
PROBE_PROFILE_EMAIL = "profiles.email"
PROBE_PROFILE_PHONE = "profiles.phone"


class ProbeFailureMode(str, Enum):
    """How a failed store probe is counted."""

    OPEN = "open"
    CLOSED = "closed"


@dataclass(frozen=True, slots=True)
class ProbeResult:
    hit: bool
    failed: bool = False


class IdentityResolver:
    """Cross-store existence check for candidate contact details."""

    def __init__(
        self,
        credentials: CredentialStore,
        profiles: ProfileDirectory,
        *,
        failure_mode: ProbeFailureMode = ProbeFailureMode.OPEN,
    ):
        self._credentials = credentials
        self._profiles = profiles
        self._failure_mode = ProbeFailureMode(failure_mode)

    @property
    def failure_mode(self) -> ProbeFailureMode:
        return self._failure_mode

    async def resolve(self, request: IdentityCheckRequest) -> IdentityReport:
        """
        Resolve a candidate email/phone against both stores.

        Raises:
            ValidationError: if neither email nor phone is present after trimming
        """
        email = normalize_email(request.email)
        phone = normalize_phone(request.phone)

        if email is None and phone is None:
            raise ValidationError(message="Missing email or phone")

        credential_email, profile_email, profile_phone = await asyncio.gather(
            self._probe(PROBE_CREDENTIAL_EMAIL, email, self._credentials.email_exists),
            self._probe(PROBE_PROFILE_EMAIL, email, self._profiles.email_exists),
            self._probe(PROBE_PROFILE_PHONE, phone, self._profiles.phone_exists),
        )

        report = IdentityReport(
            email_taken=credential_email.hit or profile_email.hit,
            phone_taken=profile_phone.hit,
            email_exists_auth=credential_email.hit,
            email_exists_profiles=profile_email.hit,
            phone_exists_profiles=profile_phone.hit,
        )

        degraded = any(r.failed for r in (credential_email, profile_email, profile_phone))
        IDENTITY_CHECKS.labels(outcome="degraded" if degraded else "ok").inc()
        logger.info(
            "Identity check resolved",
            has_email=email is not None,
            has_phone=phone is not None,
            email_taken=report.email_taken,
            phone_taken=report.phone_taken,
            degraded=degraded,
        )
        return report

    async def _probe(
        self,
        probe: str,
        value: str | None,
        lookup: Callable[[str], Awaitable[bool]],
    ) -> ProbeResult:
        if value is None:
            return ProbeResult(hit=False)
        try:
            return ProbeResult(hit=bool(await lookup(value)))
        except StoreError as exc:
            PROBE_FAILURES.labels(probe=probe).inc()
            logger.warning(
                "Identity probe failed",
                probe=probe,
                failure_mode=self._failure_mode.value,
                error=str(exc),
            )
            return ProbeResult(hit=self._failure_mode is ProbeFailureMode.CLOSED, failed=True)
