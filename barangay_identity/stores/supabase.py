"""
Hosted backend adapters (Supabase GoTrue + PostgREST over httpx).

Every adapter shares one `httpx.AsyncClient`. Adapters never retry: a transport
error or an unexpected status becomes `StoreError` and the caller decides what
that means.
"""

from __future__ import annotations

from typing import Any

import httpx

from barangay_identity.stores.ports import (
    CallerIdentity,
    MfaFactorRecord,
    ResourceRecord,
    StoreError,
)


PROFILES_TABLE = "profiles"
RESOURCES_TABLE = "barangays"
MFA_FACTORS_TABLE = "hieroglyphics"

# GoTrue admin listing paging
ADMIN_USERS_PAGE_SIZE = 1000
ADMIN_USERS_MAX_PAGES = 50


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so `ilike` behaves as a case-insensitive equality."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SupabaseGateway:
    """Low-level request helper holding the base URL and keys."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        base_url: str,
        anon_key: str,
        service_role_key: str,
    ):
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._anon_key = anon_key
        self._service_role_key = service_role_key

    def service_headers(self) -> dict[str, str]:
        return {
            "apikey": self._service_role_key,
            "Authorization": f"Bearer {self._service_role_key}",
        }

    def anon_headers(self, access_token: str | None = None) -> dict[str, str]:
        headers = {"apikey": self._anon_key}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        return headers

    async def request(
        self,
        operation: str,
        method: str,
        path: str,
        *,
        headers: dict[str, str],
        params: dict[str, str] | None = None,
        json: Any = None,
    ) -> httpx.Response:
        try:
            return await self._client.request(
                method,
                f"{self._base_url}{path}",
                headers=headers,
                params=params,
                json=json,
            )
        except httpx.HTTPError as exc:
            raise StoreError(operation, str(exc) or exc.__class__.__name__) from exc

    @staticmethod
    def ensure_ok(operation: str, response: httpx.Response) -> None:
        if response.status_code >= 400:
            raise StoreError(
                operation,
                f"unexpected status {response.status_code}",
                status_code=response.status_code,
            )

    @staticmethod
    def json_rows(operation: str, response: httpx.Response) -> list[dict[str, Any]]:
        try:
            payload = response.json()
        except ValueError as exc:
            raise StoreError(operation, "response body is not JSON") from exc
        if isinstance(payload, list):
            return [row for row in payload if isinstance(row, dict)]
        if isinstance(payload, dict) and isinstance(payload.get("users"), list):
            return [row for row in payload["users"] if isinstance(row, dict)]
        return []


class SupabaseCredentialStore:
    """Email existence against the GoTrue admin user registry."""

    page_size = ADMIN_USERS_PAGE_SIZE
    max_pages = ADMIN_USERS_MAX_PAGES

    def __init__(self, gateway: SupabaseGateway):
        self._gateway = gateway

    async def email_exists(self, email: str) -> bool:
        """
        Walk the admin listing page by page until an exact match or a short page.

        The listing `filter` is a substring match; every page is confirmed locally.

        Raises:
            StoreError: a page failed, or the listing ran past `max_pages`
        """
        operation = "credentials.email_exists"
        for page in range(1, self.max_pages + 1):
            response = await self._gateway.request(
                operation,
                "GET",
                "/auth/v1/admin/users",
                headers=self._gateway.service_headers(),
                params={
                    "filter": email,
                    "email": email,
                    "page": str(page),
                    "per_page": str(self.page_size),
                },
            )
            self._gateway.ensure_ok(operation, response)
            users = self._gateway.json_rows(operation, response)
            if any(str(user.get("email") or "").strip().lower() == email for user in users):
                return True
            if len(users) < self.page_size:
                return False
        raise StoreError(operation, f"listing exceeded {self.max_pages} pages")


class SupabaseProfileDirectory:
    """Rows of the `profiles` table through PostgREST."""

    def __init__(self, gateway: SupabaseGateway):
        self._gateway = gateway

    async def email_exists(self, email: str) -> bool:
        operation = "profiles.email_exists"
        response = await self._gateway.request(
            operation,
            "GET",
            f"/rest/v1/{PROFILES_TABLE}",
            headers=self._gateway.service_headers(),
            params={"select": "id,email", "email": f"ilike.{escape_like(email)}"},
        )
        self._gateway.ensure_ok(operation, response)
        rows = self._gateway.json_rows(operation, response)
        return any(str(row.get("email") or "").strip().lower() == email for row in rows)

    async def phone_exists(self, phone: str) -> bool:
        operation = "profiles.phone_exists"
        response = await self._gateway.request(
            operation,
            "GET",
            f"/rest/v1/{PROFILES_TABLE}",
            headers=self._gateway.service_headers(),
            params={"select": "id", "phone": f"eq.{phone}", "limit": "1"},
        )
        self._gateway.ensure_ok(operation, response)
        return len(self._gateway.json_rows(operation, response)) > 0

    async def update_profile(self, user_id: str, changes: dict[str, Any]) -> int:
        operation = "profiles.update"
        response = await self._gateway.request(
            operation,
            "PATCH",
            f"/rest/v1/{PROFILES_TABLE}",
            headers={**self._gateway.service_headers(), "Prefer": "return=representation"},
            params={"id": f"eq.{user_id}"},
            json=changes,
        )
        self._gateway.ensure_ok(operation, response)
        return len(self._gateway.json_rows(operation, response))


class SupabaseResourceDirectory:
    """Rows of the `barangays` table."""

    def __init__(self, gateway: SupabaseGateway):
        self._gateway = gateway

    async def get_resource(self, resource_id: str) -> ResourceRecord | None:
        operation = "resources.get"
        response = await self._gateway.request(
            operation,
            "GET",
            f"/rest/v1/{RESOURCES_TABLE}",
            headers=self._gateway.service_headers(),
            params={"select": "id,submitter", "id": f"eq.{resource_id}", "limit": "1"},
        )
        self._gateway.ensure_ok(operation, response)
        rows = self._gateway.json_rows(operation, response)
        if not rows:
            return None
        submitter = rows[0].get("submitter")
        return ResourceRecord(
            id=str(rows[0].get("id", resource_id)),
            submitter_id=str(submitter) if submitter is not None else None,
        )


class SupabaseSessionVerifier:
    """Caller verification against the GoTrue user endpoint."""

    def __init__(self, gateway: SupabaseGateway):
        self._gateway = gateway

    async def resolve_caller(self, access_token: str) -> CallerIdentity | None:
        operation = "sessions.resolve_caller"
        response = await self._gateway.request(
            operation,
            "GET",
            "/auth/v1/user",
            headers=self._gateway.anon_headers(access_token),
        )
        if response.status_code in (400, 401, 403, 404):
            return None
        self._gateway.ensure_ok(operation, response)
        try:
            payload = response.json()
        except ValueError as exc:
            raise StoreError(operation, "response body is not JSON") from exc
        user_id = payload.get("id") if isinstance(payload, dict) else None
        if not user_id:
            return None
        return CallerIdentity(user_id=str(user_id), email=payload.get("email"))

    async def verify_password(self, email: str, password: str) -> bool:
        operation = "sessions.verify_password"
        response = await self._gateway.request(
            operation,
            "POST",
            "/auth/v1/token",
            headers=self._gateway.anon_headers(),
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        if response.status_code in (400, 401, 403):
            return False
        self._gateway.ensure_ok(operation, response)
        return True


class SupabaseMfaFactorStore:
    """Second-factor rows keyed by user id."""

    def __init__(self, gateway: SupabaseGateway):
        self._gateway = gateway

    async def get_factor(self, user_id: str) -> MfaFactorRecord | None:
        operation = "mfa.get_factor"
        response = await self._gateway.request(
            operation,
            "GET",
            f"/rest/v1/{MFA_FACTORS_TABLE}",
            headers=self._gateway.service_headers(),
            params={"select": "userid,enabled,secret", "userid": f"eq.{user_id}", "limit": "1"},
        )
        self._gateway.ensure_ok(operation, response)
        rows = self._gateway.json_rows(operation, response)
        if not rows:
            return None
        return MfaFactorRecord(
            user_id=user_id,
            enabled=bool(rows[0].get("enabled")),
            secret=rows[0].get("secret"),
        )

    async def disable_factor(self, user_id: str) -> None:
        operation = "mfa.disable_factor"
        response = await self._gateway.request(
            operation,
            "PATCH",
            f"/rest/v1/{MFA_FACTORS_TABLE}",
            headers=self._gateway.service_headers(),
            params={"userid": f"eq.{user_id}"},
            json={"enabled": False, "secret": None, "last_verified_at": None},
        )
        self._gateway.ensure_ok(operation, response)
