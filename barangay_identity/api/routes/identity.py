"""
Identity check endpoint.

POST /check-identity reports whether a candidate email/phone is already claimed
in the credential store or the profile directory. Read-only.
"""

from fastapi import APIRouter, Depends, Request, Response

from barangay_identity.api.deps import get_identity_resolver, read_json_body
from barangay_identity.api.middleware.security import preflight_response
from barangay_identity.identity.resolver import IdentityResolver
from barangay_identity.identity.types import IdentityCheckRequest, IdentityReport


router = APIRouter(tags=["identity"])


@router.post("/check-identity", response_model=IdentityReport)
async def check_identity(
    request: Request,
    resolver: IdentityResolver = Depends(get_identity_resolver),
) -> IdentityReport:
    """
    Check a candidate email and/or phone number before account creation.

    At least one of `email` / `phone` is required. The verdict is point-in-time:
    it reserves nothing.
    """
    body = await read_json_body(request, IdentityCheckRequest)
    return await resolver.resolve(body)


@router.options("/check-identity", include_in_schema=False)
async def check_identity_preflight() -> Response:
    return preflight_response()
