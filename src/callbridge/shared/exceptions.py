"""
Shared exceptions.

Error taxonomy for call handling:
- RoutingError: no agent/number match; answered with a spoken apology.
- ExternalLookupError: CRM search/write failed; logged, never surfaced to Twilio.
- ConfigurationError: invalid directory or missing credentials.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass
class AppError(Exception):
    message: str = "Application error"
    details: Optional[dict[str, Any]] = None

    def __str__(self) -> str:
        return self.message


class ValidationError(AppError):
    pass


class ForbiddenError(AppError):
    pass


class RoutingError(AppError):
    pass


class ExternalLookupError(AppError):
    pass


class ConfigurationError(AppError):
    pass
