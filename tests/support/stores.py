from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from barangay_identity.stores.backend import Backend
from barangay_identity.stores.ports import (
    CallerIdentity,
    MfaFactorRecord,
    ResourceRecord,
    StoreError,
)


@dataclass(slots=True)
class FakeCredentialStore:
    """In-memory credential registry keyed by email."""

    emails: set[str] = field(default_factory=set)
    fail: bool = False
    calls: list[str] = field(default_factory=list)

    async def email_exists(self, email: str) -> bool:
        self.calls.append(email)
        if self.fail:
            raise StoreError("credentials.email_exists", "simulated outage")
        return any(stored.lower() == email.lower() for stored in self.emails)


@dataclass(slots=True)
class FakeProfileDirectory:
    """
    In-memory profile rows.

    Email matching is case-insensitive and phone matching exact, like the real
    directory. `fail_on` names operations that should raise StoreError.
    """

    rows: dict[str, dict[str, Any]] = field(default_factory=dict)
    fail_on: set[str] = field(default_factory=set)
    updates: list[tuple[str, dict[str, Any]]] = field(default_factory=list)

    def add(self, user_id: str, **fields: Any) -> dict[str, Any]:
        row = {
            "id": user_id,
            "email": None,
            "phone": None,
            "role": "user",
            "superior_admin": False,
            "status": "pending",
            "barangay": None,
        }
        row.update(fields)
        self.rows[user_id] = row
        return row

    def _maybe_fail(self, operation: str) -> None:
        if operation in self.fail_on:
            raise StoreError(f"profiles.{operation}", "simulated outage")

    async def email_exists(self, email: str) -> bool:
        self._maybe_fail("email_exists")
        return any((row.get("email") or "").lower() == email.lower() for row in self.rows.values())

    async def phone_exists(self, phone: str) -> bool:
        self._maybe_fail("phone_exists")
        return any(row.get("phone") == phone for row in self.rows.values())

    async def update_profile(self, user_id: str, changes: dict[str, Any]) -> int:
        self._maybe_fail("update_profile")
        self.updates.append((user_id, dict(changes)))
        row = self.rows.get(user_id)
        if row is None:
            return 0
        row.update(changes)
        return 1


@dataclass(slots=True)
class FakeResourceDirectory:
    submitters: dict[str, str | None] = field(default_factory=dict)
    fail: bool = False

    async def get_resource(self, resource_id: str) -> ResourceRecord | None:
        if self.fail:
            raise StoreError("resources.get", "simulated outage")
        if resource_id not in self.submitters:
            return None
        return ResourceRecord(id=resource_id, submitter_id=self.submitters[resource_id])


@dataclass(slots=True)
class FakeSessionVerifier:
    """Maps access tokens to callers and emails to passwords."""

    tokens: dict[str, CallerIdentity] = field(default_factory=dict)
    passwords: dict[str, str] = field(default_factory=dict)
    fail: bool = False

    async def resolve_caller(self, access_token: str) -> CallerIdentity | None:
        if self.fail:
            raise StoreError("sessions.resolve_caller", "simulated outage")
        return self.tokens.get(access_token)

    async def verify_password(self, email: str, password: str) -> bool:
        if self.fail:
            raise StoreError("sessions.verify_password", "simulated outage")
        return self.passwords.get(email) == password


@dataclass(slots=True)
class FakeMfaFactorStore:
    factors: dict[str, dict[str, Any]] = field(default_factory=dict)
    fail: bool = False

    def enable(self, user_id: str, secret: str) -> None:
        self.factors[user_id] = {"enabled": True, "secret": secret, "last_verified_at": "2026-01-01T00:00:00Z"}

    async def get_factor(self, user_id: str) -> MfaFactorRecord | None:
        if self.fail:
            raise StoreError("mfa.get_factor", "simulated outage")
        row = self.factors.get(user_id)
        if row is None:
            return None
        return MfaFactorRecord(user_id=user_id, enabled=bool(row["enabled"]), secret=row["secret"])

    async def disable_factor(self, user_id: str) -> None:
        if self.fail:
            raise StoreError("mfa.disable_factor", "simulated outage")
        row = self.factors.setdefault(user_id, {})
        row.update({"enabled": False, "secret": None, "last_verified_at": None})


def make_fake_backend() -> Backend:
    """Backend wired entirely to in-memory fakes."""
    return Backend(
        credentials=FakeCredentialStore(),
        profiles=FakeProfileDirectory(),
        resources=FakeResourceDirectory(),
        sessions=FakeSessionVerifier(),
        mfa_factors=FakeMfaFactorStore(),
    )
