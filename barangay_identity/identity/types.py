"""
Identity check type definitions.

Request and response shapes for the pre-registration identity check. Field
aliases carry the camelCase names used on the wire.
"""

from pydantic import BaseModel, ConfigDict, Field


class IdentityCheckRequest(BaseModel):
    """Candidate contact details for a new account."""

    model_config = ConfigDict(extra="ignore")

    email: str | None = None
    phone: str | None = None


class IdentityReport(BaseModel):
    """
    Point-in-time verdict on whether a candidate email/phone is already claimed.

    Carries the aggregate flags and the per-source flags so a caller can tell
    which store produced a hit.
    """

    model_config = ConfigDict(populate_by_name=True)

    email_taken: bool = Field(alias="emailTaken")
    phone_taken: bool = Field(alias="phoneTaken")
    email_exists_auth: bool = Field(alias="emailExistsAuth")
    email_exists_profiles: bool = Field(alias="emailExistsProfiles")
    phone_exists_profiles: bool = Field(alias="phoneExistsProfiles")
