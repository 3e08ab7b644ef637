"""
HubSpot CRM client.

Uses httpx against the HubSpot CRM v3 REST API with an explicit timeout.
"""

from __future__ import annotations

from html import escape
from typing import Any

import httpx

from callbridge.crm.config import HubSpotConfig, get_hubspot_config
from callbridge.crm.interface import CrmClient
from callbridge.crm.models import CallEngagementRecord, CallOutcome, EngagementDirection
from callbridge.directory import normalize_phone
from callbridge.shared.exceptions import ExternalLookupError
from callbridge.shared.logging import get_logger

logger = get_logger(__name__)

CONTACT_SEARCH_PATH = "/crm/v3/objects/contacts/search"
CALL_SEARCH_PATH = "/crm/v3/objects/calls/search"
CALL_CREATE_PATH = "/crm/v3/objects/calls"

EXTERNAL_ID_PROPERTY = "hs_call_external_id"


def build_call_properties(record: CallEngagementRecord) -> dict[str, str]:
    """Map a record onto HubSpot call object properties."""
    direction_label = "Inbound" if record.direction is EngagementDirection.INBOUND else "Outbound"
    seconds = record.duration_ms // 1000

    body_lines = [
        f"Direction: {direction_label}",
        f"From: {escape(record.from_number or '-')}",
        f"To: {escape(record.to_number or '-')}",
        f"Duration: {seconds} seconds",
        f"Status: {record.outcome.value}",
    ]
    if record.recording_url:
        body_lines.append(f'Recording: <a href="{escape(record.recording_url)}" target="_blank">listen</a>')

    properties: dict[str, str] = {
        "hs_timestamp": record.timestamp.isoformat(),
        "hs_call_title": f"{direction_label} call",
        "hs_call_body": "<br>".join(body_lines),
        "hs_call_duration": str(record.duration_ms),
        "hs_call_direction": record.direction.value,
        EXTERNAL_ID_PROPERTY: record.external_call_id,
    }
    # HubSpot rejects values outside its status enum.
    if record.outcome is not CallOutcome.UNKNOWN:
        properties["hs_call_status"] = record.outcome.value
    if record.from_number:
        properties["hs_call_from_number"] = record.from_number
    if record.to_number:
        properties["hs_call_to_number"] = record.to_number
    if record.recording_url:
        properties["hs_call_recording_url"] = record.recording_url
    if record.owner_id:
        properties["hubspot_owner_id"] = record.owner_id
    return properties


class HubSpotClient(CrmClient):
    """HubSpot implementation of the CRM client."""

    def __init__(
        self,
        config: HubSpotConfig | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config or get_hubspot_config()
        self._client = http_client
        self._owns_client = http_client is None

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._config.base_url,
                timeout=httpx.Timeout(self._config.timeout_seconds),
            )
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._owns_client and self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def _post(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        """POST to HubSpot, raising ExternalLookupError on any failure."""
        if not self._config.is_configured:
            raise ExternalLookupError(
                message="HubSpot access token is not configured",
                details={"path": path},
            )

        client = self._get_client()
        try:
            response = await client.post(
                path,
                json=body,
                headers={
                    "Authorization": f"Bearer {self._config.access_token}",
                    "Accept": "application/json",
                },
            )
        except httpx.HTTPError as e:
            raise ExternalLookupError(
                message=f"HubSpot request failed: {e!s}",
                details={"path": path, "error_type": type(e).__name__},
            ) from e

        if response.status_code >= 400:
            raise ExternalLookupError(
                message=f"HubSpot API error: {response.status_code}",
                details={"path": path, "status_code": response.status_code, "body": response.text[:500]},
            )

        try:
            return response.json() if response.content else {}
        except ValueError as e:
            raise ExternalLookupError(
                message="HubSpot returned a non-JSON response",
                details={"path": path},
            ) from e

    async def _search_first_id(self, path: str, property_name: str, value: str) -> str | None:
        data = await self._post(
            path,
            {
                "filterGroups": [
                    {"filters": [{"propertyName": property_name, "operator": "EQ", "value": value}]}
                ],
                "properties": ["hs_object_id"],
                "limit": 1,
            },
        )
        results = data.get("results") or []
        if not results:
            return None
        found = results[0].get("id")
        return str(found) if found is not None else None

    async def resolve_contact(self, phone_number: str | None) -> str | None:
        if not phone_number:
            return None
        phone = normalize_phone(phone_number)

        try:
            contact_id = await self._search_first_id(
                CONTACT_SEARCH_PATH, self._config.contact_phone_property, phone
            )
        except ExternalLookupError as e:
            logger.error("HubSpot contact search failed", extra={"phone": phone, "error": e.message, **(e.details or {})})
            return None

        if contact_id:
            logger.info("HubSpot contact found", extra={"phone": phone, "contact_id": contact_id})
        else:
            logger.info("No HubSpot contact for phone", extra={"phone": phone})
        return contact_id

    async def _find_logged_call(self, external_call_id: str) -> str | None:
        try:
            return await self._search_first_id(CALL_SEARCH_PATH, EXTERNAL_ID_PROPERTY, external_call_id)
        except ExternalLookupError as e:
            # Fall through to a single create attempt.
            logger.warning(
                "HubSpot call dedup search failed",
                extra={"external_call_id": external_call_id, "error": e.message},
            )
            return None

    async def record_call(self, record: CallEngagementRecord) -> bool:
        existing = await self._find_logged_call(record.external_call_id)
        if existing:
            logger.info(
                "Call already logged in HubSpot, skipping",
                extra={"external_call_id": record.external_call_id, "engagement_id": existing},
            )
            return True

        body: dict[str, Any] = {"properties": build_call_properties(record)}
        if record.contact_id:
            body["associations"] = [
                {
                    "to": {"id": record.contact_id},
                    "types": [
                        {
                            "associationCategory": "HUBSPOT_DEFINED",
                            "associationTypeId": self._config.call_association_type_id,
                        }
                    ],
                }
            ]

        try:
            data = await self._post(CALL_CREATE_PATH, body)
        except ExternalLookupError as e:
            logger.error(
                "Failed to log call in HubSpot",
                extra={
                    "external_call_id": record.external_call_id,
                    "contact_id": record.contact_id,
                    "error": e.message,
                    **(e.details or {}),
                },
            )
            return False

        logger.info(
            "Call logged in HubSpot",
            extra={
                "external_call_id": record.external_call_id,
                "contact_id": record.contact_id,
                "engagement_id": data.get("id"),
                "outcome": record.outcome.value,
            },
        )
        return True
