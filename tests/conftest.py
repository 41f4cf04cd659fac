"""
Test Configuration and Fixtures

Provides shared fixtures for the test suite: explicit settings, an in-memory
backend, and an application wired to it.
"""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

from barangay_identity.config import Settings
from barangay_identity.stores.ports import CallerIdentity
from tests.support.stores import make_fake_backend

CALLER_TOKEN = "token-caller"
CALLER = CallerIdentity(user_id="caller-1", email="caller@example.com")


# =============================================================================
# PYTEST CONFIGURATION
# =============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "api: API endpoint tests")


def pytest_collection_modifyitems(config, items):
    """
    Auto-assign tier markers so we can run `pytest -m unit` / `pytest -m api`.

    Convention:
    - tests/api/** => api
    - everything else => unit
    """
    for item in items:
        path = str(getattr(item, "fspath", ""))
        if item.get_closest_marker("api") or item.get_closest_marker("unit"):
            continue
        if "/tests/api/" in path or "\\tests\\api\\" in path:
            item.add_marker(pytest.mark.api)
        else:
            item.add_marker(pytest.mark.unit)


# =============================================================================
# SETTINGS / BACKEND FIXTURES
# =============================================================================


@pytest.fixture
def settings() -> Settings:
    """Fully configured settings that ignore the process environment file."""
    return Settings(
        _env_file=None,
        environment="test",
        supabase_url="https://project.example.test",
        supabase_anon_key="anon-key",
        supabase_service_role_key="service-key",
        identity_probe_failure_mode="open",
        log_level="WARNING",
        log_format="text",
    )


@pytest.fixture
def backend():
    """Backend wired to in-memory fakes, with one known caller token."""
    fake = make_fake_backend()
    fake.sessions.tokens[CALLER_TOKEN] = CALLER
    return fake


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {CALLER_TOKEN}"}


# =============================================================================
# APPLICATION FIXTURES
# =============================================================================


@pytest.fixture
def app(settings, backend):
    """FastAPI application using the fake backend."""
    from barangay_identity.api.main import create_app

    return create_app(settings=settings, backend=backend)


@pytest.fixture
def client(app) -> TestClient:
    """Synchronous test client (lifespan not entered; the backend is injected)."""
    return TestClient(app)


@pytest_asyncio.fixture
async def async_client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async test client over the ASGI transport."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
