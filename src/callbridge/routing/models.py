"""
Routing domain models.

A CallContext only lives for the duration of one webhook request. It is
rebuilt from the webhook payload, the identity directory and whatever
correlation data came back on the request URL.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

# Twilio sometimes echoes absent values back as these literals.
_ABSENT_LITERALS = frozenset({"", "undefined", "null", "none"})


def clean_param(value: Any) -> str | None:
    """Normalize a form/query value: blank and 'undefined' mean absent."""
    if value is None:
        return None
    text = str(value).strip()
    if text.lower() in _ABSENT_LITERALS:
        return None
    return text


class CallDirection(str, Enum):
    """Direction of the call as seen by the agent."""

    INBOUND = "inbound"
    OUTBOUND_FROM_AGENT = "outbound_from_agent"


@dataclass(frozen=True)
class VoiceRequest:
    """Fields of a call-control webhook that drive routing."""

    from_number: str | None
    to_number: str | None
    call_sid: str | None = None
    contact_id: str | None = None
    owner_id: str | None = None
    client_phone: str | None = None

    @classmethod
    def from_payload(
        cls,
        form: Mapping[str, Any],
        query: Mapping[str, Any] | None = None,
    ) -> "VoiceRequest":
        """Build from the form body plus the request's own query string.

        Body values win; query values fill what the body lacks (bridge legs
        started by click-to-call carry their context in the URL).
        """
        query = query or {}

        def pick(*keys: str) -> str | None:
            for source in (form, query):
                for key in keys:
                    value = clean_param(source.get(key))
                    if value is not None:
                        return value
            return None

        return cls(
            from_number=pick("From"),
            to_number=pick("To"),
            call_sid=pick("CallSid"),
            contact_id=pick("contactId"),
            owner_id=pick("ownerId"),
            client_phone=pick("clientPhone"),
        )


@dataclass(frozen=True)
class CallContext:
    direction: CallDirection
    agent_identity: str | None
    caller_number: str | None
    target_number: str | None
    crm_contact_id: str | None = None
    crm_owner_id: str | None = None
    # The external party: who the CRM contact is looked up by.
    customer_number: str | None = None

    @property
    def is_incoming(self) -> bool:
        return self.direction is CallDirection.INBOUND


@dataclass(frozen=True)
class OutboundRoute:
    """Agent dials an external number, presenting their caller ID."""

    context: CallContext


@dataclass(frozen=True)
class InboundRoute:
    """External caller rings the agent's softphone client."""

    context: CallContext


@dataclass(frozen=True)
class Unroutable:
    """No agent or caller number matches; the caller hears an apology."""

    context: CallContext
    reason: str


Route = Union[InboundRoute, OutboundRoute, Unroutable]
