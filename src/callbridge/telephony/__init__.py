"""
Telephony package.

Keep package import side-effects to a minimum to avoid circular imports.
Do not import factory/adapters here.
"""

__all__ = [
    "callbacks",
    "config",
    "correlation",
    "factory",
    "interface",
    "mock_adapter",
    "twilio_adapter",
    "voice_response",
]
