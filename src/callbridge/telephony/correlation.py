"""
Correlation context carried through Twilio callback URLs.

The call-control request and the later status/recording callbacks are
independent HTTP requests with no server-side session. The callback URL we
hand to Twilio is the only channel that survives between them, so the CRM
context is encoded into its query string and decoded when Twilio calls back.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlencode

from callbridge.routing.models import CallContext, clean_param

CONTACT_ID = "contactId"
OWNER_ID = "ownerId"
CUSTOMER_PHONE = "customerPhone"
AGENT_NUMBER = "agentNumber"
IS_INCOMING = "isIncoming"

_TRUE = frozenset({"true", "1", "yes"})
_FALSE = frozenset({"false", "0", "no"})


def _parse_flag(value: Any) -> bool | None:
    text = clean_param(value)
    if text is None:
        return None
    lowered = text.lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    return None


@dataclass(frozen=True)
class CorrelationToken:
    """Subset of the call context that must survive the round trip through Twilio.

    Every field is optional; an absent field means "unknown" downstream.
    """

    contact_id: str | None = None
    owner_id: str | None = None
    customer_phone: str | None = None
    agent_number: str | None = None
    is_incoming: bool | None = None

    @classmethod
    def from_context(cls, context: CallContext) -> "CorrelationToken":
        return cls(
            contact_id=context.crm_contact_id,
            owner_id=context.crm_owner_id,
            customer_phone=context.customer_number,
            agent_number=context.caller_number,
            is_incoming=context.is_incoming,
        )

    @classmethod
    def from_query(cls, params: Mapping[str, Any]) -> "CorrelationToken":
        """Decode from query parameters. Missing keys and 'undefined' are absent."""
        return cls(
            contact_id=clean_param(params.get(CONTACT_ID)),
            owner_id=clean_param(params.get(OWNER_ID)),
            customer_phone=clean_param(params.get(CUSTOMER_PHONE)),
            agent_number=clean_param(params.get(AGENT_NUMBER)),
            is_incoming=_parse_flag(params.get(IS_INCOMING)),
        )

    def to_query(self) -> dict[str, str]:
        """Encode as query parameters, omitting unknown fields."""
        params: dict[str, str] = {}
        if self.contact_id:
            params[CONTACT_ID] = self.contact_id
        if self.owner_id:
            params[OWNER_ID] = self.owner_id
        if self.customer_phone:
            params[CUSTOMER_PHONE] = self.customer_phone
        if self.agent_number:
            params[AGENT_NUMBER] = self.agent_number
        if self.is_incoming is not None:
            params[IS_INCOMING] = "true" if self.is_incoming else "false"
        return params


def callback_url(base_url: str, path: str, token: CorrelationToken | None = None) -> str:
    """Build an absolute callback URL carrying ``token`` in its query string."""
    url = f"{base_url.rstrip('/')}/{path.lstrip('/')}"
    query = urlencode(token.to_query()) if token else ""
    return f"{url}?{query}" if query else url
