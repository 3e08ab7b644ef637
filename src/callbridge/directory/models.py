"""
Agent identity models.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

_PHONE_NOISE = re.compile(r"[\s().\-]")


def normalize_identity(identity: str) -> str:
    """Identities are compared case-insensitively."""
    return identity.strip().lower()


def normalize_phone(number: str) -> str:
    """Strip formatting characters, keep digits and a leading '+'."""
    return _PHONE_NOISE.sub("", number.strip())


@dataclass(frozen=True)
class AgentIdentity:
    """An agent reachable as a softphone client, with the number they call from."""

    identity: str
    caller_number: str

    @classmethod
    def create(cls, identity: str, caller_number: str) -> "AgentIdentity":
        return cls(
            identity=normalize_identity(identity),
            caller_number=normalize_phone(caller_number),
        )
