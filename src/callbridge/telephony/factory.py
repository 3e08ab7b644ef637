"""
Telephony provider factory.
"""

from __future__ import annotations

from callbridge.shared.logging import get_logger, mask
from callbridge.telephony.config import ProviderType, TwilioConfig
from callbridge.telephony.interface import TelephonyProvider
from callbridge.telephony.mock_adapter import MockTelephonyProvider
from callbridge.telephony.twilio_adapter import TwilioAdapter

logger = get_logger(__name__)


def create_telephony_provider(cfg: TwilioConfig) -> TelephonyProvider:
    """Create the telephony provider selected by configuration."""
    logger.info(
        "Telephony config resolved",
        extra={
            "provider_type": cfg.provider_type.value,
            "twilio_account_sid": mask(cfg.account_sid),
            "has_rest_credentials": cfg.has_rest_credentials,
            "has_token_credentials": cfg.has_token_credentials,
            "validate_signatures": cfg.validate_signatures,
        },
    )

    if cfg.provider_type == ProviderType.TWILIO:
        return TwilioAdapter(cfg)

    if cfg.provider_type == ProviderType.MOCK:
        return MockTelephonyProvider()

    raise ValueError(f"Unsupported telephony provider_type: {cfg.provider_type}")
