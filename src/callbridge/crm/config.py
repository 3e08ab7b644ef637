"""
HubSpot configuration.
"""

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# HubSpot-defined association type: call -> contact
CALL_TO_CONTACT_ASSOCIATION_TYPE_ID = 194


class HubSpotConfig(BaseSettings):
    """HubSpot private-app credentials and REST settings from environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    access_token: str = Field(
        default="",
        validation_alias=AliasChoices("HUBSPOT_ACCESS_TOKEN", "HUBSPOT_API_KEY", "access_token"),
    )
    base_url: str = Field(
        default="https://api.hubapi.com",
        validation_alias=AliasChoices("HUBSPOT_BASE_URL", "base_url"),
    )
    timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        le=30,
        validation_alias=AliasChoices("HUBSPOT_TIMEOUT_SECONDS", "timeout_seconds"),
    )
    contact_phone_property: str = Field(
        default="phone",
        validation_alias=AliasChoices("HUBSPOT_CONTACT_PHONE_PROPERTY", "contact_phone_property"),
    )
    call_association_type_id: int = Field(
        default=CALL_TO_CONTACT_ASSOCIATION_TYPE_ID,
        validation_alias=AliasChoices("HUBSPOT_CALL_ASSOCIATION_TYPE_ID", "call_association_type_id"),
    )

    @property
    def is_configured(self) -> bool:
        return bool(self.access_token)


def get_hubspot_config() -> HubSpotConfig:
    return HubSpotConfig()
