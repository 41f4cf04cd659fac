"""Store ports used by the identity boundary.

Handlers depend only on these protocols. The hosted backend adapters live in
`barangay_identity.stores.supabase`; tests substitute in-memory fakes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol


class StoreError(Exception):
    """A store call failed (transport error or non-success status)."""

    def __init__(self, operation: str, message: str, *, status_code: int | None = None) -> None:
        super().__init__(f"{operation}: {message}")
        self.operation = operation
        self.status_code = status_code


@dataclass(frozen=True, slots=True)
class CallerIdentity:
    """The authenticated user behind a bearer token."""

    user_id: str
    email: str | None = None


@dataclass(frozen=True, slots=True)
class ResourceRecord:
    """An organizational unit (barangay) and the profile that registered it."""

    id: str
    submitter_id: str | None


@dataclass(frozen=True, slots=True)
class MfaFactorRecord:
    user_id: str
    enabled: bool
    secret: str | None = None


class CredentialStore(Protocol):
    """Canonical authentication registry."""

    async def email_exists(self, email: str) -> bool:
        ...


class ProfileDirectory(Protocol):
    """Application user-profile rows."""

    async def email_exists(self, email: str) -> bool:
        ...

    async def phone_exists(self, phone: str) -> bool:
        ...

    async def update_profile(self, user_id: str, changes: dict[str, Any]) -> int:
        """Apply `changes` to the profile row; return the number of rows matched."""
        ...


class ResourceDirectory(Protocol):
    async def get_resource(self, resource_id: str) -> ResourceRecord | None:
        ...


class SessionVerifier(Protocol):
    """Resolves a bearer token to the user it was issued to."""

    async def resolve_caller(self, access_token: str) -> CallerIdentity | None:
        ...

    async def verify_password(self, email: str, password: str) -> bool:
        ...


class MfaFactorStore(Protocol):
    async def get_factor(self, user_id: str) -> MfaFactorRecord | None:
        ...

    async def disable_factor(self, user_id: str) -> None:
        ...
