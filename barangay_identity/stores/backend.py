"""
Backend handle built once at process start.

The handle bundles every store port. The application keeps it on `app.state`
and passes it into handlers; nothing in the service reaches for a global client.
"""

from __future__ import annotations

from dataclasses import dataclass

import httpx
import structlog

from barangay_identity.config import Settings
from barangay_identity.stores.ports import (
    CredentialStore,
    MfaFactorStore,
    ProfileDirectory,
    ResourceDirectory,
    SessionVerifier,
)
from barangay_identity.stores.supabase import (
    SupabaseCredentialStore,
    SupabaseGateway,
    SupabaseMfaFactorStore,
    SupabaseProfileDirectory,
    SupabaseResourceDirectory,
    SupabaseSessionVerifier,
)

logger = structlog.get_logger()


@dataclass
class Backend:
    credentials: CredentialStore
    profiles: ProfileDirectory
    resources: ResourceDirectory
    sessions: SessionVerifier
    mfa_factors: MfaFactorStore
    http_client: httpx.AsyncClient | None = None

    async def aclose(self) -> None:
        if self.http_client is not None:
            await self.http_client.aclose()
            self.http_client = None
            logger.info("Backend HTTP client closed")


def build_backend(settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None) -> Backend:
    """Build the hosted-backend adapters around one shared HTTP client.

    Raises ConfigurationError if any required backend setting is missing.
    """
    settings.require_backend()

    client = httpx.AsyncClient(timeout=settings.store_timeout_seconds, transport=transport)
    gateway = SupabaseGateway(
        client,
        base_url=settings.supabase_url or "",
        anon_key=settings.supabase_anon_key or "",
        service_role_key=settings.supabase_service_role_key or "",
    )

    logger.info(
        "Backend initialized",
        url=(settings.supabase_url or "")[:50],
        timeout_seconds=settings.store_timeout_seconds,
    )

    return Backend(
        credentials=SupabaseCredentialStore(gateway),
        profiles=SupabaseProfileDirectory(gateway),
        resources=SupabaseResourceDirectory(gateway),
        sessions=SupabaseSessionVerifier(gateway),
        mfa_factors=SupabaseMfaFactorStore(gateway),
        http_client=client,
    )
