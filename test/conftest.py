"""
Pytest configuration and shared fixtures.
"""

from __future__ import annotations

from collections.abc import Generator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from callbridge.config import Settings, get_settings
from callbridge.crm.interface import CrmClient
from callbridge.crm.models import CallEngagementRecord
from callbridge.directory import IdentityDirectory
from callbridge.main import create_app
from callbridge.telephony.mock_adapter import MockTelephonyProvider

JANICE = "janice@glive.ca"
JANICE_NUMBER = "+14506001665"
MARC = "marc@glive.ca"
MARC_NUMBER = "+14506001666"
PUBLIC_BASE = "https://bridge.example.com"


class FakeCrmClient(CrmClient):
    """In-memory CRM: records lookups and writes, once per external call id."""

    def __init__(self, contacts: dict[str, str] | None = None, fail_writes: bool = False) -> None:
        self.contacts = contacts or {}
        self.fail_writes = fail_writes
        self.lookups: list[str | None] = []
        self.records: list[CallEngagementRecord] = []
        self.events: list[str] = []

    async def resolve_contact(self, phone_number: str | None) -> str | None:
        self.lookups.append(phone_number)
        self.events.append("resolve_contact")
        return self.contacts.get(phone_number or "")

    async def record_call(self, record: CallEngagementRecord) -> bool:
        self.events.append("record_call")
        if self.fail_writes:
            return False
        if any(r.external_call_id == record.external_call_id for r in self.records):
            return True
        self.records.append(record)
        return True


@pytest.fixture
def directory() -> IdentityDirectory:
    return IdentityDirectory.from_mapping({JANICE: JANICE_NUMBER, MARC: MARC_NUMBER})


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        app_env="dev",
        debug=True,
        public_base_url=PUBLIC_BASE,
        agent_directory={JANICE: JANICE_NUMBER, MARC: MARC_NUMBER},
        record_calls=True,
        cors_origins="https://app.hubspot.com",
    )


@pytest.fixture
def fake_crm() -> FakeCrmClient:
    return FakeCrmClient()


@pytest.fixture
def mock_provider() -> MockTelephonyProvider:
    return MockTelephonyProvider()


@pytest.fixture
def app(
    test_settings: Settings,
    directory: IdentityDirectory,
    fake_crm: FakeCrmClient,
    mock_provider: MockTelephonyProvider,
) -> Generator[FastAPI, None, None]:
    application = create_app(
        settings=test_settings,
        directory=directory,
        crm_client=fake_crm,
        telephony_provider=mock_provider,
    )
    application.dependency_overrides[get_settings] = lambda: test_settings
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    # No context manager: lifespan (root logging setup) is not needed here.
    return TestClient(app)
