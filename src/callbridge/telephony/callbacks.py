"""
Parsing of Twilio status and recording callbacks into completed call legs.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from callbridge.routing.models import clean_param

RECORDING_FORMAT_SUFFIX = ".mp3"


class CallbackKind(str, Enum):
    STATUS = "status"
    RECORDING = "recording"


class WebhookParseError(ValueError):
    """Callback payload lacks the fields needed to log the call."""


@dataclass(frozen=True)
class CompletedCallLeg:
    """A finished call leg as reported by Twilio."""

    kind: CallbackKind
    external_call_id: str
    call_sid: str
    call_status: str | None
    direction: str | None
    from_number: str | None
    to_number: str | None
    duration_seconds: int = 0
    recording_url: str | None = None
    recording_sid: str | None = None

    @property
    def is_inbound(self) -> bool:
        return bool(self.direction) and "inbound" in self.direction.lower()


def _duration(value: Any) -> int:
    text = clean_param(value)
    if text is None:
        return 0
    try:
        return max(int(float(text)), 0)
    except ValueError:
        return 0


def _require_call_sid(payload: Mapping[str, Any]) -> str:
    call_sid = clean_param(payload.get("CallSid"))
    if not call_sid:
        raise WebhookParseError("Missing CallSid in callback payload")
    return call_sid


def playable_recording_url(raw_url: str | None) -> str | None:
    url = clean_param(raw_url)
    if url is None:
        return None
    if url.endswith(RECORDING_FORMAT_SUFFIX):
        return url
    return f"{url}{RECORDING_FORMAT_SUFFIX}"


def parse_status_callback(payload: Mapping[str, Any]) -> CompletedCallLeg:
    """Parse a ``/call-status`` delivery.

    Dial noun callbacks report the child leg; ``ParentCallSid`` is the call
    the recording callback will also reference, so it is preferred as the
    external id.
    """
    call_sid = _require_call_sid(payload)
    return CompletedCallLeg(
        kind=CallbackKind.STATUS,
        external_call_id=clean_param(payload.get("ParentCallSid")) or call_sid,
        call_sid=call_sid,
        call_status=(clean_param(payload.get("CallStatus")) or "").lower() or None,
        direction=clean_param(payload.get("Direction")),
        from_number=clean_param(payload.get("From")),
        to_number=clean_param(payload.get("To")),
        duration_seconds=_duration(payload.get("CallDuration") or payload.get("DialCallDuration")),
    )


def parse_recording_callback(payload: Mapping[str, Any]) -> CompletedCallLeg:
    """Parse a ``/recording-callback`` delivery.

    A recording only exists for an answered call, so a missing dial status
    is reported as completed.
    """
    call_sid = _require_call_sid(payload)
    status = clean_param(payload.get("DialCallStatus")) or clean_param(payload.get("CallStatus")) or "completed"
    return CompletedCallLeg(
        kind=CallbackKind.RECORDING,
        external_call_id=clean_param(payload.get("ParentCallSid")) or call_sid,
        call_sid=call_sid,
        call_status=status.lower(),
        direction=clean_param(payload.get("Direction")),
        from_number=clean_param(payload.get("From")),
        to_number=clean_param(payload.get("To")),
        duration_seconds=_duration(payload.get("RecordingDuration")),
        recording_url=playable_recording_url(payload.get("RecordingUrl")),
        recording_sid=clean_param(payload.get("RecordingSid")),
    )
