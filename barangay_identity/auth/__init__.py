"""
Privilege boundary for the barangay portal.

Caller authentication against the credential store, ownership-gated role
escalation, and the self-service MFA disable flow.
"""

from barangay_identity.auth.caller import (
    AUTHORIZATION_HEADER,
    authenticate_caller,
    extract_bearer_token,
)
from barangay_identity.auth.escalation import (
    ADMIN_ROLE,
    ESCALATED_PROFILE_FIELDS,
    EscalationRequest,
    ProfileStatus,
    RoleEscalationAuthorizer,
)
from barangay_identity.auth.mfa import (
    MfaDisabler,
    MfaDisableRequest,
    totp_code,
    verify_totp,
)

__all__ = [
    # Caller
    "AUTHORIZATION_HEADER",
    "authenticate_caller",
    "extract_bearer_token",
    # Escalation
    "ADMIN_ROLE",
    "ESCALATED_PROFILE_FIELDS",
    "EscalationRequest",
    "ProfileStatus",
    "RoleEscalationAuthorizer",
    # MFA
    "MfaDisabler",
    "MfaDisableRequest",
    "totp_code",
    "verify_totp",
]
