"""
Role escalation endpoint.

POST /promote-user elevates a profile to admin, gated on barangay ownership when
a barangay id is supplied. Requires an authenticated caller.
"""

from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel

from barangay_identity.api.deps import get_caller, get_escalation_authorizer, read_json_body
from barangay_identity.api.middleware.security import preflight_response
from barangay_identity.auth.escalation import EscalationRequest, RoleEscalationAuthorizer
from barangay_identity.stores.ports import CallerIdentity

router = APIRouter(tags=["escalation"])


class SuccessResponse(BaseModel):
    success: bool = True


@router.post("/promote-user", response_model=SuccessResponse)
async def promote_user(
    request: Request,
    caller: CallerIdentity = Depends(get_caller),
    authorizer: RoleEscalationAuthorizer = Depends(get_escalation_authorizer),
) -> SuccessResponse:
    """
    Promote a user to admin.

    **Request**: `{"userId": str, "barangayId"?: str}`

    If `barangayId` is given, `userId` must be that barangay's submitter.
    Without it the ownership check is skipped.
    """
    body = await read_json_body(request, EscalationRequest)
    await authorizer.escalate(caller, body)
    return SuccessResponse()


@router.options("/promote-user", include_in_schema=False)
async def promote_user_preflight() -> Response:
    return preflight_response()
