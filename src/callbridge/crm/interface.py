"""
CRM client interface.
"""

from abc import ABC, abstractmethod

from callbridge.crm.models import CallEngagementRecord


class CrmClient(ABC):
    """Contact lookup and call logging against a CRM.

    Neither operation raises: a failed lookup is "no contact" and a failed
    write is reported as ``False`` after being logged.
    """

    @abstractmethod
    async def resolve_contact(self, phone_number: str | None) -> str | None:
        """Return the id of the contact whose phone exactly matches, else None."""
        ...

    @abstractmethod
    async def record_call(self, record: CallEngagementRecord) -> bool:
        """Write ``record`` once. Returns True on success or when already written."""
        ...

    async def close(self) -> None:
        """Release network resources."""
        return None
