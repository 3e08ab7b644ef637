"""
Application configuration with environment-driven settings.
"""

from functools import lru_cache
import json
import os
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "callbridge"
    app_env: Literal["dev", "qa", "uat", "prod"] = "dev"
    debug: bool = False
    log_level: str = "INFO"

    # CORS
    cors_origins: str = Field(
        default="https://app.hubspot.com",
        description="Comma-separated list of allowed CORS origins",
    )

    # Public base URL reachable by Twilio for callbacks
    public_base_url: str = Field(
        default="",
        description="Public base URL (e.g. https://bridge.example.com). Derived from the request when empty.",
    )

    # Agents: {"identity": "+E164"}
    agent_directory: dict[str, str] = Field(
        default_factory=dict,
        description="JSON object mapping agent identity (email) to caller number",
    )

    # Voice
    record_calls: bool = Field(
        default=True,
        description="Record dialed calls (record-from-answer-dual).",
    )
    no_route_message: str = Field(
        default="Personne n'est disponible pour prendre cet appel.",
        description="Spoken when no agent or caller number matches.",
    )
    no_route_language: str = Field(default="fr-FR")

    @field_validator("agent_directory", mode="before")
    @classmethod
    def parse_agent_directory(cls, v: object) -> object:
        """Accept a JSON string as well as a mapping."""
        if isinstance(v, str):
            v = v.strip()
            if not v:
                return {}
            return json.loads(v)
        return v

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache
def _get_settings_cached() -> Settings:
    return Settings()


def get_settings() -> Settings:
    # Under pytest, env vars change between tests (monkeypatch).
    if os.environ.get("PYTEST_CURRENT_TEST"):
        return Settings()
    return _get_settings_cached()
