"""API tests for application wiring: health, CORS, headers and startup."""

import pytest
from fastapi.testclient import TestClient

from barangay_identity.api.main import create_app
from barangay_identity.config import Settings
from barangay_identity.kernel.errors import ConfigurationError

pytestmark = pytest.mark.api

ENDPOINTS = [
    "/functions/v1/check-identity",
    "/functions/v1/promote-user",
    "/functions/v1/mfa-disable",
]


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")

        body = response.json()
        assert response.status_code == 200
        assert body["status"] == "healthy"
        assert body["backend_configured"] is True

    def test_live(self, client):
        assert client.get("/live").json() == {"status": "alive"}

    def test_metrics_are_exposed(self, client):
        client.post("/functions/v1/check-identity", json={"email": "a@b.c"})

        response = client.get("/metrics/")

        assert response.status_code == 200
        assert "barangay_identity_checks_total" in response.text


class TestCors:
    @pytest.mark.parametrize("path", ENDPOINTS)
    def test_bare_options(self, client, path):
        response = client.options(path)

        assert response.status_code == 200
        assert response.headers["Access-Control-Allow-Origin"] == "*"
        assert "authorization" in response.headers["Access-Control-Allow-Headers"]

    @pytest.mark.parametrize("path", ENDPOINTS)
    def test_browser_preflight(self, client, path):
        response = client.options(
            path,
            headers={
                "Origin": "https://portal.example.ph",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "authorization, content-type",
            },
        )

        assert response.status_code == 200
        assert response.headers["Access-Control-Allow-Origin"] == "*"

    def test_error_responses_carry_cors_headers(self, client):
        response = client.post(
            "/functions/v1/promote-user",
            json={"userId": "U1"},
            headers={"Origin": "https://portal.example.ph"},
        )

        assert response.status_code == 401
        assert response.headers["Access-Control-Allow-Origin"] == "*"


class TestResponseHeaders:
    def test_request_id_is_echoed(self, client):
        response = client.get("/live", headers={"X-Request-ID": "req-123"})

        assert response.headers["X-Request-ID"] == "req-123"

    def test_security_headers(self, client):
        response = client.post("/functions/v1/check-identity", json={"phone": "555"})

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["Cache-Control"] == "no-store"

    @pytest.mark.parametrize("path", ENDPOINTS)
    def test_unsupported_method(self, client, path):
        response = client.get(path)

        assert response.status_code == 405
        assert response.json()["code"] == "http.405"


class TestStartup:
    def test_missing_configuration_fails_before_serving(self):
        settings = Settings(
            _env_file=None,
            supabase_url=None,
            supabase_anon_key=None,
            supabase_service_role_key=None,
        )

        with pytest.raises(ConfigurationError):
            with TestClient(create_app(settings=settings)):
                pass

    def test_injected_backend_survives_shutdown(self, settings, backend):
        app = create_app(settings=settings, backend=backend)

        with TestClient(app) as client:
            assert client.get("/health").json()["backend_configured"] is True

        assert app.state.backend is backend


class TestUnexpectedErrors:
    def test_crash_keeps_cors_and_tracing_headers(self, app):
        async def crash():
            raise RuntimeError("relation profiles does not exist")

        app.add_api_route("/functions/v1/crash", crash, methods=["POST"])
        client = TestClient(app, raise_server_exceptions=False)

        response = client.post(
            "/functions/v1/crash",
            headers={"Origin": "https://portal.example.ph", "X-Request-ID": "req-500"},
        )

        assert response.status_code == 500
        assert response.json() == {
            "error": "Unexpected error",
            "code": "internal.unhandled",
            "request_id": "req-500",
        }
        assert response.headers["Access-Control-Allow-Origin"] == "*"
        assert response.headers["X-Request-ID"] == "req-500"
        assert response.headers["Cache-Control"] == "no-store"
