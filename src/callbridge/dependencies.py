"""
FastAPI dependencies.

Long-lived collaborators (identity directory, CRM client, telephony provider)
are built once in ``create_app`` and kept on ``app.state``; request handlers
receive them through these getters so tests can override them.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from callbridge.config import Settings, get_settings
from callbridge.crm.interface import CrmClient
from callbridge.crm.service import CallLoggingService
from callbridge.directory import IdentityDirectory
from callbridge.telephony.config import TwilioConfig, get_twilio_config
from callbridge.telephony.interface import TelephonyProvider
from callbridge.telephony.voice_response import VoiceResponsePolicy


def get_directory(request: Request) -> IdentityDirectory:
    return request.app.state.directory


def get_crm_client(request: Request) -> CrmClient:
    return request.app.state.crm_client


def get_telephony_provider(request: Request) -> TelephonyProvider:
    return request.app.state.telephony_provider


def get_twilio_settings() -> TwilioConfig:
    return get_twilio_config()


def get_voice_policy(settings: Annotated[Settings, Depends(get_settings)]) -> VoiceResponsePolicy:
    return VoiceResponsePolicy(
        record_calls=settings.record_calls,
        no_route_message=settings.no_route_message,
        no_route_language=settings.no_route_language,
    )


def get_call_logging_service(
    crm: Annotated[CrmClient, Depends(get_crm_client)],
) -> CallLoggingService:
    return CallLoggingService(crm=crm)


def public_base_url(request: Request, settings: Settings) -> str:
    """Public base URL reachable by Twilio.

    Priority:
      1) PUBLIC_BASE_URL setting (recommended)
      2) X-Forwarded-Proto / X-Forwarded-Host (behind a proxy or tunnel)
      3) request.base_url (last resort)
    """
    if settings.public_base_url.strip():
        return settings.public_base_url.strip().rstrip("/")

    xf_proto = (request.headers.get("x-forwarded-proto") or "").strip()
    xf_host = (request.headers.get("x-forwarded-host") or "").strip()
    if xf_host:
        return f"{xf_proto or 'https'}://{xf_host}"

    return str(request.base_url).rstrip("/")
