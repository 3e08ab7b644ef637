"""
Tests for the softphone endpoints: access tokens and click-to-call.
"""

from __future__ import annotations

from urllib.parse import parse_qsl, urlsplit

import jwt
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from callbridge.dependencies import get_twilio_settings
from callbridge.telephony.config import TwilioConfig
from callbridge.telephony.interface import CallInitiationError
from callbridge.telephony.mock_adapter import MockTelephonyProvider

from conftest import JANICE, JANICE_NUMBER, PUBLIC_BASE


def _jwt_payload(token: str) -> dict:
    return jwt.decode(token, "test_key_secret", algorithms=["HS256"])


@pytest.fixture
def token_config() -> TwilioConfig:
    return TwilioConfig(
        account_sid="AC_TEST_ACCOUNT_SID",
        api_key_sid="SK_TEST_KEY",
        api_key_secret="test_key_secret",
        twiml_app_sid="AP_TEST_APP",
        token_ttl_seconds=600,
    )


class TestTokenEndpoint:
    def test_unknown_email_forbidden(self, app: FastAPI, client: TestClient, token_config: TwilioConfig) -> None:
        app.dependency_overrides[get_twilio_settings] = lambda: token_config

        resp = client.get("/token", params={"email": "ghost@glive.ca"})

        assert resp.status_code == 403

    def test_missing_email_forbidden(self, client: TestClient) -> None:
        resp = client.get("/token")

        assert resp.status_code == 403

    def test_token_carries_identity_and_voice_grant(
        self,
        app: FastAPI,
        client: TestClient,
        token_config: TwilioConfig,
    ) -> None:
        app.dependency_overrides[get_twilio_settings] = lambda: token_config

        resp = client.get("/token", params={"email": "Janice@Glive.ca"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["identity"] == JANICE
        claims = _jwt_payload(body["token"])
        assert claims["iss"] == "SK_TEST_KEY"
        assert claims["sub"] == "AC_TEST_ACCOUNT_SID"
        assert claims["grants"]["identity"] == JANICE
        voice = claims["grants"]["voice"]
        assert voice["outgoing"]["application_sid"] == "AP_TEST_APP"
        assert voice["incoming"]["allow"] is True

    def test_missing_api_key_is_unavailable(self, app: FastAPI, client: TestClient) -> None:
        app.dependency_overrides[get_twilio_settings] = lambda: TwilioConfig(
            account_sid="AC_TEST", api_key_sid="", api_key_secret="", twiml_app_sid=""
        )

        resp = client.get("/token", params={"email": JANICE})

        assert resp.status_code == 503


class TestClickToCallEndpoint:
    def test_places_call_from_agent_number(self, client: TestClient, mock_provider: MockTelephonyProvider) -> None:
        resp = client.post(
            "/click-to-call",
            json={
                "employeeEmail": JANICE,
                "clientPhone": "+15551234567",
                "contactId": "501",
                "ownerId": "77",
            },
        )

        assert resp.status_code == 200
        assert resp.json() == {"callSid": "CA_MOCK_000001", "status": "queued"}

        request = mock_provider.requests[0]
        assert request.to == JANICE_NUMBER
        assert request.from_number == JANICE_NUMBER
        url = urlsplit(request.voice_url)
        assert f"{url.scheme}://{url.netloc}" == PUBLIC_BASE
        assert url.path == "/voice"
        query = dict(parse_qsl(url.query))
        assert query == {"clientPhone": "+15551234567", "contactId": "501", "ownerId": "77"}

    def test_without_contact_id(self, client: TestClient, mock_provider: MockTelephonyProvider) -> None:
        resp = client.post("/click-to-call", json={"employeeEmail": JANICE, "clientPhone": "+15551234567"})

        assert resp.status_code == 200
        query = dict(parse_qsl(urlsplit(mock_provider.requests[0].voice_url).query))
        assert "contactId" not in query

    def test_missing_client_phone(self, client: TestClient, mock_provider: MockTelephonyProvider) -> None:
        resp = client.post("/click-to-call", json={"employeeEmail": JANICE})

        assert resp.status_code == 400
        assert mock_provider.requests == []

    def test_unknown_agent_forbidden(self, client: TestClient, mock_provider: MockTelephonyProvider) -> None:
        resp = client.post("/click-to-call", json={"employeeEmail": "ghost@glive.ca", "clientPhone": "+15551234567"})

        assert resp.status_code == 403
        assert mock_provider.requests == []

    def test_provider_failure_is_bad_gateway(
        self,
        client: TestClient,
        mock_provider: MockTelephonyProvider,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        async def failing(request):
            raise CallInitiationError("Invalid 'To' Phone Number", error_code="21211")

        monkeypatch.setattr(mock_provider, "initiate_call", failing)

        resp = client.post("/click-to-call", json={"employeeEmail": JANICE, "clientPhone": "+1555"})

        assert resp.status_code == 502
        assert resp.json()["code"] == "21211"
