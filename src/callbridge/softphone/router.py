"""
FastAPI router for softphone endpoints.
"""

from __future__ import annotations

from typing import Annotated
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Query, Request

from callbridge.config import Settings, get_settings
from callbridge.dependencies import (
    get_directory,
    get_telephony_provider,
    get_twilio_settings,
    public_base_url,
)
from callbridge.directory import IdentityDirectory, normalize_identity
from callbridge.shared.exceptions import ConfigurationError, ForbiddenError, ValidationError
from callbridge.shared.logging import get_logger
from callbridge.softphone.schemas import ClickToCallRequest, ClickToCallResponse, TokenResponse
from callbridge.softphone.tokens import mint_voice_token
from callbridge.telephony.config import TwilioConfig
from callbridge.telephony.correlation import CorrelationToken
from callbridge.telephony.interface import CallInitiationError, CallInitiationRequest, TelephonyProvider

logger = get_logger(__name__)

router = APIRouter(tags=["softphone"])


@router.get("/token", response_model=TokenResponse)
async def token(
    directory: Annotated[IdentityDirectory, Depends(get_directory)],
    twilio_config: Annotated[TwilioConfig, Depends(get_twilio_settings)],
    email: Annotated[str | None, Query()] = None,
) -> TokenResponse:
    """Mint a softphone access token for a known agent."""
    if not email or email not in directory:
        logger.warning("Token refused", extra={"email": email})
        raise ForbiddenError(message="Unauthorized user or missing email")

    identity = normalize_identity(email)
    try:
        jwt = mint_voice_token(identity, twilio_config)
    except ConfigurationError:
        logger.exception("Cannot mint softphone token")
        raise

    logger.info("Softphone token issued", extra={"identity": identity})
    return TokenResponse(token=jwt, identity=identity)


@router.post("/click-to-call", response_model=ClickToCallResponse, response_model_by_alias=True)
async def click_to_call(
    request: Request,
    body: ClickToCallRequest,
    directory: Annotated[IdentityDirectory, Depends(get_directory)],
    provider: Annotated[TelephonyProvider, Depends(get_telephony_provider)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> ClickToCallResponse:
    """Ring the agent's number; once answered, Twilio bridges to the client.

    The bridge leg reaches /voice with the client phone and CRM context in
    its query string, which classifies it as agent-outbound.
    """
    if not body.employee_email or not body.client_phone:
        raise ValidationError(message="employeeEmail and clientPhone are required")

    agent_number = directory.lookup_number(body.employee_email)
    if not agent_number:
        raise ForbiddenError(
            message="No caller number associated with this user",
            details={"employee_email": body.employee_email},
        )

    correlation = CorrelationToken(contact_id=body.contact_id, owner_id=body.owner_id)
    query = {"clientPhone": body.client_phone, **correlation.to_query()}
    voice_url = f"{public_base_url(request, settings)}/voice?{urlencode(query)}"

    try:
        response = await provider.initiate_call(
            CallInitiationRequest(
                to=agent_number,
                from_number=agent_number,
                voice_url=voice_url,
            )
        )
    except CallInitiationError as e:
        logger.error(
            "Click-to-call failed",
            extra={"employee_email": body.employee_email, "error_code": e.error_code, "error": str(e)},
        )
        raise

    logger.info(
        "Click-to-call started",
        extra={"employee_email": body.employee_email, "provider_call_id": response.provider_call_id},
    )
    return ClickToCallResponse(call_sid=response.provider_call_id, status=response.status)
