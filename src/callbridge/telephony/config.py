"""
Twilio configuration.

Single source of truth for Twilio credentials: loaded from OS env + .env,
never read with raw os.getenv("TWILIO_*") elsewhere.
"""

from enum import Enum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ProviderType(str, Enum):
    """Supported telephony provider types."""

    TWILIO = "twilio"
    MOCK = "mock"


class TwilioConfig(BaseSettings):
    """Twilio credentials and REST settings from environment."""

    model_config = SettingsConfigDict(
        env_prefix="TWILIO_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    provider_type: ProviderType = Field(default=ProviderType.TWILIO)

    # REST credentials (click-to-call, signature validation)
    account_sid: str = Field(default="")
    auth_token: str = Field(default="")

    # API key used to sign softphone access tokens
    api_key_sid: str = Field(default="")
    api_key_secret: str = Field(default="")
    twiml_app_sid: str = Field(default="", description="TwiML App the softphone dials through")
    token_ttl_seconds: int = Field(default=3600, ge=60, le=86400)

    api_base_url: str = Field(default="https://api.twilio.com")
    timeout_seconds: float = Field(default=10.0, gt=0, le=60)

    validate_signatures: bool = Field(
        default=False,
        description="Reject webhooks whose X-Twilio-Signature does not match.",
    )

    @property
    def has_rest_credentials(self) -> bool:
        return bool(self.account_sid and self.auth_token)

    @property
    def has_token_credentials(self) -> bool:
        return bool(self.account_sid and self.api_key_sid and self.api_key_secret and self.twiml_app_sid)


def get_twilio_config() -> TwilioConfig:
    return TwilioConfig()
