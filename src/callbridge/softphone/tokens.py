"""
Twilio Voice access tokens for the browser softphone.
"""

from __future__ import annotations

from twilio.jwt.access_token import AccessToken
from twilio.jwt.access_token.grants import VoiceGrant

from callbridge.shared.exceptions import ConfigurationError
from callbridge.telephony.config import TwilioConfig


def mint_voice_token(identity: str, config: TwilioConfig) -> str:
    """Sign an access token letting ``identity`` place and receive calls.

    Raises:
        ConfigurationError: If the Twilio API key or TwiML App is missing.
    """
    if not config.has_token_credentials:
        raise ConfigurationError(
            message="Twilio API key / TwiML App are not configured",
            details={"identity": identity},
        )

    token = AccessToken(
        config.account_sid,
        config.api_key_sid,
        config.api_key_secret,
        identity=identity,
        ttl=config.token_ttl_seconds,
    )
    token.add_grant(
        VoiceGrant(
            outgoing_application_sid=config.twiml_app_sid,
            incoming_allow=True,
        )
    )

    jwt = token.to_jwt()
    return jwt.decode("utf-8") if isinstance(jwt, bytes) else jwt
