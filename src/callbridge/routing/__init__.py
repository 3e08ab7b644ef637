"""
Call classification: inbound vs. agent-outbound, and the route to take.
"""

from callbridge.routing.models import (
    CallContext,
    CallDirection,
    InboundRoute,
    OutboundRoute,
    Route,
    Unroutable,
    VoiceRequest,
)
from callbridge.routing.resolver import CLIENT_PREFIX, classify_call

__all__ = [
    "CLIENT_PREFIX",
    "CallContext",
    "CallDirection",
    "InboundRoute",
    "OutboundRoute",
    "Route",
    "Unroutable",
    "VoiceRequest",
    "classify_call",
]
