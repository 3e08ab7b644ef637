"""
Tests for CallLoggingService: contact resolution, direction and write-once logging.
"""

from __future__ import annotations

import pytest

from callbridge.crm.models import CallOutcome, EngagementDirection
from callbridge.crm.service import CallLoggingService, resolve_direction
from callbridge.telephony.callbacks import CallbackKind, CompletedCallLeg
from callbridge.telephony.correlation import CorrelationToken

from conftest import JANICE_NUMBER, FakeCrmClient

CUSTOMER = "+15551234567"


def _leg(
    kind: CallbackKind = CallbackKind.STATUS,
    status: str | None = "completed",
    direction: str | None = "inbound",
    from_number: str | None = CUSTOMER,
    to_number: str | None = JANICE_NUMBER,
    **extra,
) -> CompletedCallLeg:
    return CompletedCallLeg(
        kind=kind,
        external_call_id=extra.pop("external_call_id", "CA_PARENT"),
        call_sid=extra.pop("call_sid", "CA_CHILD"),
        call_status=status,
        direction=direction,
        from_number=from_number,
        to_number=to_number,
        **extra,
    )


class TestResolveDirection:
    def test_token_flag_wins(self) -> None:
        leg = _leg(direction="outbound-dial")

        assert resolve_direction(leg, CorrelationToken(is_incoming=True)) is EngagementDirection.INBOUND
        assert resolve_direction(_leg(), CorrelationToken(is_incoming=False)) is EngagementDirection.OUTBOUND

    def test_falls_back_to_twilio_direction(self) -> None:
        empty = CorrelationToken()

        assert resolve_direction(_leg(direction="inbound"), empty) is EngagementDirection.INBOUND
        assert resolve_direction(_leg(direction="outbound-api"), empty) is EngagementDirection.OUTBOUND
        assert resolve_direction(_leg(direction=None), empty) is EngagementDirection.OUTBOUND


class TestLogCall:
    @pytest.mark.asyncio
    async def test_propagated_contact_id_skips_search(self) -> None:
        crm = FakeCrmClient(contacts={CUSTOMER: "999"})
        service = CallLoggingService(crm)

        record = await service.log_call(_leg(), CorrelationToken(contact_id="501", is_incoming=True))

        assert record is not None
        assert record.contact_id == "501"
        assert crm.lookups == []
        assert crm.events == ["record_call"]

    @pytest.mark.asyncio
    async def test_inbound_without_contact_searches_caller_before_write(self) -> None:
        crm = FakeCrmClient(contacts={CUSTOMER: "777"})
        service = CallLoggingService(crm)

        record = await service.log_call(_leg(status="no-answer"), CorrelationToken())

        assert crm.lookups == [CUSTOMER]
        assert crm.events == ["resolve_contact", "record_call"]
        assert record is not None
        assert record.contact_id == "777"
        assert record.direction is EngagementDirection.INBOUND
        assert record.outcome is CallOutcome.NO_ANSWER

    @pytest.mark.asyncio
    async def test_inbound_search_prefers_propagated_customer_phone(self) -> None:
        crm = FakeCrmClient(contacts={CUSTOMER: "777"})
        service = CallLoggingService(crm)

        leg = _leg(
            kind=CallbackKind.RECORDING,
            from_number=None,
            to_number=None,
            recording_url="https://api.twilio.com/Recordings/RE1.mp3",
            duration_seconds=12,
        )
        record = await service.log_call(leg, CorrelationToken(customer_phone=CUSTOMER, is_incoming=True))

        assert crm.lookups == [CUSTOMER]
        assert record is not None
        assert record.from_number == CUSTOMER
        assert record.recording_url == "https://api.twilio.com/Recordings/RE1.mp3"
        assert record.duration_ms == 12000

    @pytest.mark.asyncio
    async def test_outbound_without_contact_logs_unassociated(self) -> None:
        crm = FakeCrmClient(contacts={CUSTOMER: "777"})
        service = CallLoggingService(crm)

        leg = _leg(direction="outbound-dial", from_number=JANICE_NUMBER, to_number=CUSTOMER)
        record = await service.log_call(leg, CorrelationToken(is_incoming=False, owner_id="42"))

        assert crm.lookups == []
        assert record is not None
        assert record.contact_id is None
        assert record.owner_id == "42"
        assert record.direction is EngagementDirection.OUTBOUND

    @pytest.mark.asyncio
    async def test_completed_status_is_logged(self) -> None:
        crm = FakeCrmClient(contacts={CUSTOMER: "777"})
        service = CallLoggingService(crm)

        leg = _leg(status="completed", duration_seconds=42)
        record = await service.log_call(leg, CorrelationToken())

        assert crm.events == ["resolve_contact", "record_call"]
        assert record is not None
        assert record.outcome is CallOutcome.COMPLETED
        assert record.duration_ms == 42000
        assert record.from_number == CUSTOMER
        assert record.to_number == JANICE_NUMBER

    @pytest.mark.asyncio
    async def test_recording_after_status_writes_once(self) -> None:
        crm = FakeCrmClient()
        service = CallLoggingService(crm)
        token = CorrelationToken(
            contact_id="501",
            customer_phone=CUSTOMER,
            agent_number=JANICE_NUMBER,
            is_incoming=False,
        )

        status_leg = _leg(direction="outbound-dial", from_number=JANICE_NUMBER, to_number=CUSTOMER)
        await service.log_call(status_leg, token)
        recording = _leg(
            kind=CallbackKind.RECORDING,
            direction=None,
            from_number=None,
            to_number=None,
            recording_url="https://api.twilio.com/Recordings/RE1.mp3",
        )
        assert await service.log_call(recording, token) is not None

        assert crm.events == ["record_call", "record_call"]
        assert len(crm.records) == 1
        assert crm.records[0].recording_url is None

    @pytest.mark.asyncio
    async def test_outbound_recording_without_numbers_uses_token(self) -> None:
        crm = FakeCrmClient()
        service = CallLoggingService(crm)

        leg = _leg(kind=CallbackKind.RECORDING, direction=None, from_number=None, to_number=None)
        token = CorrelationToken(customer_phone=CUSTOMER, agent_number=JANICE_NUMBER, is_incoming=False)
        record = await service.log_call(leg, token)

        assert record is not None
        assert record.from_number == JANICE_NUMBER
        assert record.to_number == CUSTOMER

    @pytest.mark.asyncio
    async def test_inbound_recording_without_numbers_uses_token(self) -> None:
        crm = FakeCrmClient()
        service = CallLoggingService(crm)

        leg = _leg(kind=CallbackKind.RECORDING, direction=None, from_number=None, to_number=None)
        token = CorrelationToken(customer_phone=CUSTOMER, agent_number=JANICE_NUMBER, is_incoming=True)
        record = await service.log_call(leg, token)

        assert record is not None
        assert record.from_number == CUSTOMER
        assert record.to_number == JANICE_NUMBER

    @pytest.mark.asyncio
    async def test_failed_write_returns_none(self) -> None:
        crm = FakeCrmClient(fail_writes=True)
        service = CallLoggingService(crm)

        assert await service.log_call(_leg(), CorrelationToken(contact_id="501")) is None
        assert crm.events == ["record_call"]

    @pytest.mark.asyncio
    async def test_unmapped_status_is_unknown_outcome(self) -> None:
        crm = FakeCrmClient()
        service = CallLoggingService(crm)

        record = await service.log_call(_leg(status="voicemail"), CorrelationToken(contact_id="501"))

        assert record is not None
        assert record.outcome is CallOutcome.UNKNOWN
