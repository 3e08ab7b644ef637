"""
FastAPI router for Twilio webhook endpoints.

Key constraints:
- /voice always answers with TwiML; a routing failure is a spoken apology.
- Status and recording callbacks always answer 200, whatever the CRM does,
  so Twilio never redelivers and duplicates the engagement.
- No state is shared between requests; context travels in callback URLs.
"""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from callbridge.config import Settings, get_settings
from callbridge.crm.service import CallLoggingService
from callbridge.dependencies import (
    get_call_logging_service,
    get_directory,
    get_telephony_provider,
    get_twilio_settings,
    get_voice_policy,
    public_base_url,
)
from callbridge.directory import IdentityDirectory
from callbridge.routing import Unroutable, VoiceRequest, classify_call
from callbridge.shared.exceptions import RoutingError
from callbridge.shared.logging import call_sid_var, get_logger
from callbridge.telephony.callbacks import (
    WebhookParseError,
    parse_recording_callback,
    parse_status_callback,
)
from callbridge.telephony.config import TwilioConfig
from callbridge.telephony.correlation import CorrelationToken
from callbridge.telephony.interface import TelephonyProvider
from callbridge.telephony.voice_response import (
    VoiceResponsePolicy,
    apology_document,
    build_voice_response,
    render_twiml,
)

logger = get_logger(__name__)

router = APIRouter(tags=["webhooks"])

TWIML_MEDIA_TYPE = "text/xml"


async def _read_form(request: Request) -> dict[str, str]:
    if request.method != "POST":
        return {}
    try:
        form = await request.form()
    except Exception:
        logger.warning("Unreadable webhook form body", extra={"path": request.url.path})
        return {}
    return {k: v for k, v in form.items() if isinstance(v, str)}


async def verify_twilio_signature(
    request: Request,
    twilio_config: Annotated[TwilioConfig, Depends(get_twilio_settings)],
    provider: Annotated[TelephonyProvider, Depends(get_telephony_provider)],
) -> None:
    """Reject forged webhooks when signature validation is enabled."""
    if not twilio_config.validate_signatures:
        return

    params = await _read_form(request)
    signature = request.headers.get("x-twilio-signature", "")
    if not provider.validate_webhook_signature(params, signature, str(request.url)):
        logger.warning("Invalid Twilio signature", extra={"path": request.url.path})
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid signature")


def _twiml_response(content: str) -> Response:
    return Response(content=content, media_type=TWIML_MEDIA_TYPE)


@router.api_route(
    "/voice",
    methods=["GET", "POST"],
    dependencies=[Depends(verify_twilio_signature)],
)
async def voice(
    request: Request,
    directory: Annotated[IdentityDirectory, Depends(get_directory)],
    settings: Annotated[Settings, Depends(get_settings)],
    policy: Annotated[VoiceResponsePolicy, Depends(get_voice_policy)],
) -> Response:
    """Call-control webhook: decide where the call goes and return TwiML."""
    form = await _read_form(request)
    voice_request = VoiceRequest.from_payload(form, dict(request.query_params))
    call_sid_var.set(voice_request.call_sid)

    logger.info(
        "Voice webhook",
        extra={
            "from_number": voice_request.from_number,
            "to_number": voice_request.to_number,
            "has_contact_id": bool(voice_request.contact_id),
        },
    )

    try:
        route = classify_call(voice_request, directory)
        if isinstance(route, Unroutable):
            raise RoutingError(
                message="No agent or caller number for call",
                details={"reason": route.reason, "agent_identity": route.context.agent_identity},
            )
        document = build_voice_response(route, public_base_url(request, settings), policy)
        return _twiml_response(render_twiml(document))
    except RoutingError as e:
        logger.warning("Call not routable (returning apology TwiML)", extra=e.details or {})
        return _twiml_response(render_twiml(apology_document(policy)))
    except Exception:
        # Never leave the caller in silence.
        logger.exception("Voice webhook failed (returning apology TwiML)")
        return _twiml_response(render_twiml(apology_document(policy)))


@router.post(
    "/call-status",
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(verify_twilio_signature)],
)
async def call_status(
    request: Request,
    service: Annotated[CallLoggingService, Depends(get_call_logging_service)],
) -> dict[str, Any]:
    """Final call status from Twilio; logs the call engagement."""
    form = await _read_form(request)
    token = CorrelationToken.from_query(request.query_params)
    call_sid_var.set(form.get("CallSid"))

    logger.info(
        "Call status received",
        extra={
            "call_status": form.get("CallStatus"),
            "direction": form.get("Direction"),
            "query_keys": sorted(request.query_params.keys()),
        },
    )

    try:
        leg = parse_status_callback(form)
        await service.log_call(leg, token)
    except WebhookParseError as e:
        logger.warning("Ignoring status callback", extra={"error": str(e)})
    except Exception:
        logger.exception("Failed to process status callback (ACKing 200 to Twilio)")

    return {"ok": True}


@router.post(
    "/recording-callback",
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(verify_twilio_signature)],
)
async def recording_callback(
    request: Request,
    service: Annotated[CallLoggingService, Depends(get_call_logging_service)],
) -> dict[str, Any]:
    """Recording is ready; logs the call unless its status callback already did."""
    form = await _read_form(request)
    token = CorrelationToken.from_query(request.query_params)
    call_sid_var.set(form.get("CallSid"))

    try:
        leg = parse_recording_callback(form)
        logger.info(
            "Recording received",
            extra={
                "recording_sid": leg.recording_sid,
                "recording_url": leg.recording_url,
                "duration_seconds": leg.duration_seconds,
            },
        )
        await service.log_call(leg, token)
    except WebhookParseError as e:
        logger.warning("Ignoring recording callback", extra={"error": str(e)})
    except Exception:
        logger.exception("Failed to process recording callback (ACKing 200 to Twilio)")

    return {"ok": True}
