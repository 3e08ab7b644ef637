"""
CRM-facing call engagement models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class EngagementDirection(str, Enum):
    INBOUND = "INBOUND"
    OUTBOUND = "OUTBOUND"


class CallOutcome(str, Enum):
    """HubSpot ``hs_call_status`` values, plus UNKNOWN for unmapped statuses."""

    BUSY = "BUSY"
    CANCELED = "CANCELED"
    COMPLETED = "COMPLETED"
    CONNECTING = "CONNECTING"
    FAILED = "FAILED"
    IN_PROGRESS = "IN_PROGRESS"
    NO_ANSWER = "NO_ANSWER"
    QUEUED = "QUEUED"
    RINGING = "RINGING"
    UNKNOWN = "UNKNOWN"


TWILIO_OUTCOME_MAP: dict[str, CallOutcome] = {
    "queued": CallOutcome.QUEUED,
    "initiated": CallOutcome.CONNECTING,
    "ringing": CallOutcome.RINGING,
    "in-progress": CallOutcome.IN_PROGRESS,
    "answered": CallOutcome.IN_PROGRESS,
    "completed": CallOutcome.COMPLETED,
    "busy": CallOutcome.BUSY,
    "no-answer": CallOutcome.NO_ANSWER,
    "failed": CallOutcome.FAILED,
    "canceled": CallOutcome.CANCELED,
}


def map_outcome(status: str | None) -> CallOutcome:
    """Map a Twilio call status string; anything unrecognized is UNKNOWN."""
    if not status:
        return CallOutcome.UNKNOWN
    return TWILIO_OUTCOME_MAP.get(status.strip().lower(), CallOutcome.UNKNOWN)


@dataclass(frozen=True)
class CallEngagementRecord:
    """One logged call leg. Written once per ``external_call_id``, never updated."""

    external_call_id: str
    direction: EngagementDirection
    from_number: str | None
    to_number: str | None
    duration_ms: int
    outcome: CallOutcome
    contact_id: str | None = None
    recording_url: str | None = None
    owner_id: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        if self.duration_ms < 0:
            raise ValueError("duration_ms must be >= 0")
