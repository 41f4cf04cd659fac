"""MFA disable endpoint."""

from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel

from barangay_identity.api.deps import get_caller, get_mfa_disabler, read_json_body
from barangay_identity.api.middleware.security import preflight_response
from barangay_identity.auth.mfa import MfaDisabler, MfaDisableRequest
from barangay_identity.stores.ports import CallerIdentity

router = APIRouter(tags=["mfa"])


class MfaDisableResponse(BaseModel):
    success: bool = True
    message: str


@router.post("/mfa-disable", response_model=MfaDisableResponse)
async def mfa_disable(
    request: Request,
    caller: CallerIdentity = Depends(get_caller),
    disabler: MfaDisabler = Depends(get_mfa_disabler),
) -> MfaDisableResponse:
    """Disable the caller's second factor after re-verifying a password or TOTP code."""
    body = await read_json_body(request, MfaDisableRequest)
    message = await disabler.disable(caller, body)
    return MfaDisableResponse(message=message)


@router.options("/mfa-disable", include_in_schema=False)
async def mfa_disable_preflight() -> Response:
    return preflight_response()
