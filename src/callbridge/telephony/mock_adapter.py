"""
Mock telephony provider for local development and tests.

Never touches Twilio; records every request it is asked to place.
"""

from __future__ import annotations

from datetime import datetime, timezone

from callbridge.telephony.interface import (
    CallInitiationRequest,
    CallInitiationResponse,
    TelephonyProvider,
)


class MockTelephonyProvider(TelephonyProvider):
    def __init__(self) -> None:
        self.requests: list[CallInitiationRequest] = []

    async def initiate_call(self, request: CallInitiationRequest) -> CallInitiationResponse:
        self.requests.append(request)
        return CallInitiationResponse(
            provider_call_id=f"CA_MOCK_{len(self.requests):06d}",
            status="queued",
            created_at=datetime.now(timezone.utc),
            raw_response={"mock": True, "to": request.to, "from": request.from_number},
        )

    def validate_webhook_signature(self, params: dict[str, str], signature: str, url: str) -> bool:
        return True
