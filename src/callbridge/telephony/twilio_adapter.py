"""
Twilio telephony provider adapter.

Uses httpx against the Twilio REST API.
"""

from __future__ import annotations

import hashlib
import hmac
from base64 import b64encode
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime

import httpx

from callbridge.shared.logging import get_logger
from callbridge.telephony.config import TwilioConfig, get_twilio_config
from callbridge.telephony.interface import (
    CallInitiationError,
    CallInitiationRequest,
    CallInitiationResponse,
    TelephonyProvider,
)

logger = get_logger(__name__)


def _parse_twilio_date(value: str | None) -> datetime:
    # Twilio REST dates are RFC 2822 ("Mon, 15 Jan 2024 10:30:00 +0000").
    if value:
        try:
            return parsedate_to_datetime(value)
        except (TypeError, ValueError):
            pass
    return datetime.now(timezone.utc)


class TwilioAdapter(TelephonyProvider):
    """Twilio telephony provider adapter."""

    def __init__(
        self,
        config: TwilioConfig | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config or get_twilio_config()
        self._client = http_client
        self._owns_client = http_client is None

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self._config.timeout_seconds))
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._owns_client and self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    def _get_api_url(self, endpoint: str) -> str:
        base = self._config.api_base_url.rstrip("/")
        return f"{base}/2010-04-01/Accounts/{self._config.account_sid}{endpoint}"

    async def initiate_call(
        self,
        request: CallInitiationRequest,
    ) -> CallInitiationResponse:
        """Place a call via Twilio.

        Raises:
            CallInitiationError: If credentials are missing or Twilio rejects the call.
        """
        if not self._config.has_rest_credentials:
            raise CallInitiationError(
                message="Twilio REST credentials are not configured",
                error_code="MISSING_CREDENTIALS",
            )

        form_data: dict[str, str | list[str]] = {
            "To": request.to,
            "From": request.from_number,
            "Url": request.voice_url,
            "Method": "POST",
        }
        if request.status_callback:
            form_data["StatusCallback"] = request.status_callback
            form_data["StatusCallbackMethod"] = "POST"
            form_data["StatusCallbackEvent"] = ["completed"]

        logger.info(
            "Initiating Twilio call",
            extra={"to": request.to, "from_number": request.from_number},
        )

        client = self._get_client()
        try:
            response = await client.post(
                self._get_api_url("/Calls.json"),
                data=form_data,
                auth=(self._config.account_sid, self._config.auth_token),
            )
        except httpx.HTTPError as e:
            logger.exception("HTTP error during Twilio call initiation", extra={"to": request.to})
            raise CallInitiationError(
                message=f"HTTP error: {e!s}",
                error_code="HTTP_ERROR",
            ) from e

        if response.status_code >= 400:
            try:
                error_data = response.json() if response.content else {}
            except ValueError:
                error_data = {"message": response.text}
            logger.error(
                "Twilio call initiation failed",
                extra={"status_code": response.status_code, "error": error_data, "to": request.to},
            )
            raise CallInitiationError(
                message=error_data.get("message", "Call initiation failed"),
                error_code=str(error_data.get("code", response.status_code)),
                provider_response=error_data,
            )

        data = response.json()
        return CallInitiationResponse(
            provider_call_id=data["sid"],
            status=data.get("status", "queued"),
            created_at=_parse_twilio_date(data.get("date_created")),
            raw_response=data,
        )

    def validate_webhook_signature(self, params: dict[str, str], signature: str, url: str) -> bool:
        """Validate Twilio's X-Twilio-Signature.

        HMAC-SHA1 over the full URL followed by each POST parameter name and
        value, sorted by name, keyed with the auth token.
        """
        if not self._config.auth_token:
            logger.warning("No auth token configured, cannot validate signature")
            return False
        if not signature:
            return False

        data_str = url
        for key in sorted(params):
            data_str += key + params[key]

        computed = hmac.new(
            self._config.auth_token.encode("utf-8"),
            data_str.encode("utf-8"),
            hashlib.sha1,
        ).digest()

        return hmac.compare_digest(b64encode(computed).decode("utf-8"), signature)
