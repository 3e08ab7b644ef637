"""
Identity directory: agent identity <-> caller number.

Built once at startup and passed by reference to the resolver and the
routers. Lookups never raise: a missing entry is an expected routing case.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from types import MappingProxyType

from callbridge.directory.models import AgentIdentity, normalize_identity, normalize_phone
from callbridge.shared.exceptions import ConfigurationError
from callbridge.shared.logging import get_logger

logger = get_logger(__name__)


class IdentityDirectory:
    """Immutable one-to-one mapping between agent identities and caller numbers."""

    __slots__ = ("_by_identity", "_by_number")

    def __init__(self, agents: Iterable[AgentIdentity] = ()) -> None:
        by_identity: dict[str, AgentIdentity] = {}
        by_number: dict[str, AgentIdentity] = {}

        for agent in agents:
            if not agent.identity or not agent.caller_number:
                raise ConfigurationError(
                    message="Agent entry requires both identity and caller number",
                    details={"identity": agent.identity, "caller_number": agent.caller_number},
                )
            if agent.identity in by_identity:
                raise ConfigurationError(
                    message=f"Duplicate agent identity: {agent.identity}",
                    details={"identity": agent.identity},
                )
            if agent.caller_number in by_number:
                raise ConfigurationError(
                    message=f"Caller number {agent.caller_number} is assigned to more than one agent",
                    details={
                        "caller_number": agent.caller_number,
                        "identities": [by_number[agent.caller_number].identity, agent.identity],
                    },
                )
            by_identity[agent.identity] = agent
            by_number[agent.caller_number] = agent

        self._by_identity: Mapping[str, AgentIdentity] = MappingProxyType(by_identity)
        self._by_number: Mapping[str, AgentIdentity] = MappingProxyType(by_number)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, str]) -> "IdentityDirectory":
        """Build from a ``{identity: caller_number}`` mapping (configuration shape)."""
        directory = cls(AgentIdentity.create(identity, number) for identity, number in mapping.items())
        logger.info("Identity directory loaded", extra={"agents": len(directory)})
        return directory

    def lookup_number(self, identity: str | None) -> str | None:
        if not identity:
            return None
        agent = self._by_identity.get(normalize_identity(identity))
        return agent.caller_number if agent else None

    def lookup_identity(self, phone_number: str | None) -> str | None:
        if not phone_number:
            return None
        agent = self._by_number.get(normalize_phone(phone_number))
        return agent.identity if agent else None

    def __contains__(self, identity: object) -> bool:
        return isinstance(identity, str) and normalize_identity(identity) in self._by_identity

    def __len__(self) -> int:
        return len(self._by_identity)

    def __repr__(self) -> str:
        return f"IdentityDirectory(agents={len(self)})"
