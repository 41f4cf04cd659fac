"""API tests for POST /functions/v1/check-identity."""

import pytest
from prometheus_client import REGISTRY

pytestmark = pytest.mark.api

URL = "/functions/v1/check-identity"


def _probe_failures(probe: str) -> float:
    return REGISTRY.get_sample_value("barangay_identity_probe_failures_total", {"probe": probe}) or 0.0


class TestCheckIdentity:
    def test_unknown_email_is_free(self, client):
        response = client.post(URL, json={"email": "new@x.com"})

        assert response.status_code == 200
        assert response.json() == {
            "emailTaken": False,
            "phoneTaken": False,
            "emailExistsAuth": False,
            "emailExistsProfiles": False,
            "phoneExistsProfiles": False,
        }

    def test_profile_email_is_matched_case_insensitively(self, client, backend):
        backend.profiles.add("u1", email="test@x.com")

        response = client.post(URL, json={"email": "  Test@X.com "})

        body = response.json()
        assert response.status_code == 200
        assert body["emailTaken"] is True
        assert body["emailExistsProfiles"] is True
        assert body["emailExistsAuth"] is False
        assert body["phoneTaken"] is False

    def test_credential_only_email_is_taken(self, client, backend):
        backend.credentials.emails.add("auth@x.com")

        body = client.post(URL, json={"email": "auth@x.com"}).json()

        assert body["emailExistsAuth"] is True
        assert body["emailExistsProfiles"] is False
        assert body["emailTaken"] is True

    def test_phone_only(self, client, backend):
        backend.profiles.add("u1", phone="555-1234")

        body = client.post(URL, json={"phone": "555-1234"}).json()

        assert body["phoneTaken"] is True
        assert body["phoneExistsProfiles"] is True
        assert body["emailTaken"] is False
        assert backend.credentials.calls == []

    def test_missing_both_fields(self, client):
        response = client.post(URL, json={})

        assert response.status_code == 400
        assert response.json()["error"] == "Missing email or phone"
        assert response.json()["code"] == "request.validation_error"

    def test_blank_fields_count_as_missing(self, client):
        response = client.post(URL, json={"email": "   ", "phone": ""})

        assert response.status_code == 400

    def test_malformed_json(self, client):
        response = client.post(URL, content=b"{not json", headers={"Content-Type": "application/json"})

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid JSON body"

    def test_non_object_body(self, client):
        response = client.post(URL, json=["a@b.c"])

        assert response.status_code == 400
        assert response.json()["error"] == "Request body must be a JSON object"

    def test_non_string_email(self, client):
        response = client.post(URL, json={"email": 42})

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request body"
        assert "email" in response.json()["details"]

    def test_no_authentication_required(self, client):
        response = client.post(URL, json={"phone": "555"})

        assert response.status_code == 200

    def test_probe_failure_fails_open_by_default(self, client, backend):
        backend.credentials.fail = True
        before = _probe_failures("credentials.email")

        response = client.post(URL, json={"email": "new@x.com"})

        assert response.status_code == 200
        assert response.json()["emailExistsAuth"] is False
        assert response.json()["emailTaken"] is False
        assert _probe_failures("credentials.email") == before + 1

    def test_probe_failure_fails_closed_when_configured(self, settings, backend):
        from fastapi.testclient import TestClient

        from barangay_identity.api.main import create_app

        backend.profiles.fail_on.add("phone_exists")
        closed = settings.model_copy(update={"identity_probe_failure_mode": "closed"})
        client = TestClient(create_app(settings=closed, backend=backend))

        body = client.post(URL, json={"phone": "555-0000"}).json()

        assert body["phoneExistsProfiles"] is True
        assert body["phoneTaken"] is True


@pytest.mark.asyncio
async def test_check_identity_async_client(async_client, backend):
    backend.profiles.add("u1", email="a@x.com", phone="555")

    response = await async_client.post(URL, json={"email": "a@x.com", "phone": "555"})

    assert response.status_code == 200
    assert response.json()["emailTaken"] is True
    assert response.json()["phoneTaken"] is True
