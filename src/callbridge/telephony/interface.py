"""
Telephony provider interface definition.

Used for server-initiated (click-to-call) legs and webhook authenticity checks.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class CallInitiationRequest:
    """Request to place a call that Twilio then drives through ``voice_url``."""

    to: str
    from_number: str
    voice_url: str
    status_callback: str | None = None


@dataclass(frozen=True)
class CallInitiationResponse:
    """Response from call initiation."""

    provider_call_id: str
    status: str
    created_at: datetime
    raw_response: dict[str, Any] = field(default_factory=dict)


class TelephonyProviderError(Exception):
    """Base exception for telephony provider errors."""

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        provider_response: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.error_code = error_code
        self.provider_response = provider_response or {}


class CallInitiationError(TelephonyProviderError):
    """Error during call initiation."""


class TelephonyProvider(ABC):
    """Abstract interface for telephony providers."""

    @abstractmethod
    async def initiate_call(
        self,
        request: CallInitiationRequest,
    ) -> CallInitiationResponse:
        """Place an outbound call."""
        ...

    @abstractmethod
    def validate_webhook_signature(
        self,
        params: dict[str, str],
        signature: str,
        url: str,
    ) -> bool:
        """Validate webhook signature for authenticity."""
        ...

    async def close(self) -> None:
        """Release network resources."""
        return None
