"""
Call context resolver.

Decides whether a call-control webhook is an agent-initiated outbound call
or an external inbound call, and resolves the agent and caller ID.
"""

from __future__ import annotations

from callbridge.directory import IdentityDirectory, normalize_identity
from callbridge.routing.models import (
    CallContext,
    CallDirection,
    InboundRoute,
    OutboundRoute,
    Route,
    Unroutable,
    VoiceRequest,
)
from callbridge.shared.logging import get_logger

logger = get_logger(__name__)

CLIENT_PREFIX = "client:"


def is_client_identity(value: str | None) -> bool:
    return bool(value) and value.lower().startswith(CLIENT_PREFIX)


def strip_client_prefix(value: str) -> str:
    return normalize_identity(value[len(CLIENT_PREFIX):])


def classify_call(request: VoiceRequest, directory: IdentityDirectory) -> Route:
    """Classify a call-control webhook.

    Agent-outbound when ``From`` is a softphone client identity, or when
    click-to-call context (CRM contact id, client phone) rides along with the
    request: a relayed leg no longer has a client ``From`` but still carries
    that context. Such signals therefore outrank the dialed-number inference
    used for inbound calls.
    """
    if is_client_identity(request.from_number) or request.contact_id or request.client_phone:
        route = _resolve_outbound(request, directory)
    else:
        route = _resolve_inbound(request, directory)

    logger.info(
        "Call classified",
        extra={
            "route": type(route).__name__,
            "direction": route.context.direction.value,
            "agent_identity": route.context.agent_identity,
            "target_number": route.context.target_number,
            "has_contact_id": bool(route.context.crm_contact_id),
            "reason": getattr(route, "reason", None),
        },
    )
    return route


def _resolve_outbound(request: VoiceRequest, directory: IdentityDirectory) -> Route:
    if is_client_identity(request.from_number):
        identity: str | None = strip_client_prefix(request.from_number or "")
    else:
        # Relayed leg: the platform already swapped legs, To is the agent's number.
        identity = directory.lookup_identity(request.to_number)

    caller_number = directory.lookup_number(identity)
    target = request.client_phone or request.to_number

    context = CallContext(
        direction=CallDirection.OUTBOUND_FROM_AGENT,
        agent_identity=identity,
        caller_number=caller_number,
        target_number=target,
        crm_contact_id=request.contact_id,
        crm_owner_id=request.owner_id,
        customer_number=target,
    )

    if not identity:
        return Unroutable(context=context, reason="unknown_agent")
    if not caller_number:
        return Unroutable(context=context, reason="no_caller_number")
    if not target:
        return Unroutable(context=context, reason="no_target_number")
    return OutboundRoute(context=context)


def _resolve_inbound(request: VoiceRequest, directory: IdentityDirectory) -> Route:
    identity = directory.lookup_identity(request.to_number)

    context = CallContext(
        direction=CallDirection.INBOUND,
        agent_identity=identity,
        caller_number=request.to_number,
        target_number=request.to_number,
        crm_contact_id=request.contact_id,
        crm_owner_id=request.owner_id,
        customer_number=request.from_number,
    )

    if not identity:
        return Unroutable(context=context, reason="no_agent_for_number")
    return InboundRoute(context=context)
