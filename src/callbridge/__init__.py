"""
callbridge: Twilio softphone call routing with HubSpot call logging.
"""

__version__ = "0.1.0"
