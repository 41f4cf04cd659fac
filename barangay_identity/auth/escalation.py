"""
Role Escalation Authorizer

Elevates a profile to the administrative tier for a barangay.

Preconditions, checked in order and without side effects:
1. the caller is authenticated
2. a target user id is present
3. if a barangay id is supplied, the barangay exists and the target is its submitter

When no barangay id is supplied the ownership check is skipped and the target is
escalated unconditionally, so any authenticated caller can escalate any target
by omitting the id. The skip is logged on every call.

The single mutation is a last-writer-wins overwrite of role, elevated flag and
status, so repeating it converges to the same terminal state.
"""

from __future__ import annotations

from enum import Enum

import structlog
from prometheus_client import Counter
from pydantic import BaseModel, ConfigDict, Field

from barangay_identity.kernel.errors import (
    AuthenticationError,
    AuthorizationError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from barangay_identity.stores.ports import (
    CallerIdentity,
    ProfileDirectory,
    ResourceDirectory,
    StoreError,
)

logger = structlog.get_logger()

ROLE_ESCALATIONS = Counter(
    "barangay_role_escalations_total",
    "Role escalation attempts by outcome",
    ["outcome"],
)

ADMIN_ROLE = "admin"


class ProfileStatus(str, Enum):
    """Profile lifecycle states. Escalation only ever moves pending -> approved."""

    PENDING = "pending"
    APPROVED = "approved"


ESCALATED_PROFILE_FIELDS = {
    "role": ADMIN_ROLE,
    "superior_admin": True,
    "status": ProfileStatus.APPROVED.value,
}


class EscalationRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    user_id: str | None = Field(default=None, alias="userId")
    barangay_id: str | None = Field(default=None, alias="barangayId")


class RoleEscalationAuthorizer:
    """Ownership-gated escalation of a profile to admin."""

    def __init__(self, resources: ResourceDirectory, profiles: ProfileDirectory):
        self._resources = resources
        self._profiles = profiles

    async def escalate(self, caller: CallerIdentity | None, request: EscalationRequest) -> None:
        """
        Escalate the target profile.

        Raises:
            AuthenticationError: no authenticated caller
            ValidationError: missing target user id
            NotFoundError: barangay id supplied but no such barangay
            AuthorizationError: target is not the barangay's submitter
            InternalError: a store call failed
        """
        if caller is None:
            ROLE_ESCALATIONS.labels(outcome="unauthenticated").inc()
            raise AuthenticationError()

        user_id = request.user_id or ""
        if not user_id.strip():
            ROLE_ESCALATIONS.labels(outcome="invalid").inc()
            raise ValidationError(message="Missing userId")

        # Ids are used verbatim; only an absent or empty barangay id skips the lookup.
        barangay_id = request.barangay_id or None
        if barangay_id is not None:
            await self._require_submitter(user_id, barangay_id)

        log = logger.bind(
            caller_id=caller.user_id,
            user_id=user_id,
            barangay_id=barangay_id,
            ownership_checked=barangay_id is not None,
        )

        try:
            matched = await self._profiles.update_profile(user_id, dict(ESCALATED_PROFILE_FIELDS))
        except StoreError as exc:
            ROLE_ESCALATIONS.labels(outcome="failed").inc()
            log.error("Profile escalation update failed", error=str(exc))
            raise InternalError(message="Failed to promote user") from exc

        if matched == 0:
            log.warning("Profile escalation matched no profile row")

        ROLE_ESCALATIONS.labels(outcome="promoted").inc()
        log.info("Profile escalated to admin")

    async def _require_submitter(self, user_id: str, barangay_id: str) -> None:
        try:
            resource = await self._resources.get_resource(barangay_id)
        except StoreError as exc:
            ROLE_ESCALATIONS.labels(outcome="failed").inc()
            logger.error("Barangay lookup failed", barangay_id=barangay_id, error=str(exc))
            raise InternalError(message="Failed to look up barangay") from exc

        if resource is None:
            ROLE_ESCALATIONS.labels(outcome="resource_not_found").inc()
            raise NotFoundError(message="Barangay not found")

        if resource.submitter_id != user_id:
            ROLE_ESCALATIONS.labels(outcome="not_submitter").inc()
            logger.warning(
                "Escalation rejected: target is not the barangay submitter",
                user_id=user_id,
                barangay_id=barangay_id,
            )
            raise AuthorizationError(message="User is not the submitter for this barangay")
