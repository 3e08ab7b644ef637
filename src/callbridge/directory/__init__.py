"""
Agent identity directory.
"""

from callbridge.directory.models import AgentIdentity, normalize_identity, normalize_phone
from callbridge.directory.service import IdentityDirectory

__all__ = ["AgentIdentity", "IdentityDirectory", "normalize_identity", "normalize_phone"]
