"""
Call logging service: turns a completed call leg plus its correlation token
into exactly one CRM call engagement.
"""

from __future__ import annotations

from callbridge.crm.interface import CrmClient
from callbridge.crm.models import CallEngagementRecord, EngagementDirection, map_outcome
from callbridge.shared.logging import get_logger
from callbridge.telephony.callbacks import CompletedCallLeg
from callbridge.telephony.correlation import CorrelationToken

logger = get_logger(__name__)


def resolve_direction(leg: CompletedCallLeg, token: CorrelationToken) -> EngagementDirection:
    """The propagated flag wins; otherwise trust Twilio's Direction field."""
    if token.is_incoming is not None:
        return EngagementDirection.INBOUND if token.is_incoming else EngagementDirection.OUTBOUND
    return EngagementDirection.INBOUND if leg.is_inbound else EngagementDirection.OUTBOUND


class CallLoggingService:
    """Resolve the CRM contact for a finished call and log it once.

    Both the status callback and the recording callback call ``log_call``
    for the same external call id. Whichever arrives first writes the
    engagement; the CRM client skips the second write because an
    engagement with that external id already exists.
    """

    def __init__(self, crm: CrmClient) -> None:
        self._crm = crm

    async def build_record(self, leg: CompletedCallLeg, token: CorrelationToken) -> CallEngagementRecord:
        direction = resolve_direction(leg, token)

        # A propagated contact id is authoritative. Inbound calls never had a
        # click-to-call that knew the contact, so fall back to the caller's number.
        contact_id = token.contact_id
        if not contact_id and direction is EngagementDirection.INBOUND:
            contact_id = await self._crm.resolve_contact(token.customer_phone or leg.from_number)

        # Recording callbacks carry no From/To; the token knows both parties.
        if direction is EngagementDirection.INBOUND:
            from_number = leg.from_number or token.customer_phone
            to_number = leg.to_number or token.agent_number
        else:
            from_number = leg.from_number or token.agent_number
            to_number = leg.to_number or token.customer_phone

        return CallEngagementRecord(
            external_call_id=leg.external_call_id,
            direction=direction,
            from_number=from_number,
            to_number=to_number,
            duration_ms=leg.duration_seconds * 1000,
            outcome=map_outcome(leg.call_status),
            contact_id=contact_id,
            recording_url=leg.recording_url,
            owner_id=token.owner_id,
        )

    async def log_call(self, leg: CompletedCallLeg, token: CorrelationToken) -> CallEngagementRecord | None:
        """Log ``leg``. Returns the record when the CRM accepted or already had it."""
        record = await self.build_record(leg, token)
        if not record.contact_id:
            logger.info(
                "Logging call without contact association",
                extra={
                    "external_call_id": record.external_call_id,
                    "direction": record.direction.value,
                    "callback": leg.kind.value,
                },
            )

        written = await self._crm.record_call(record)
        return record if written else None
