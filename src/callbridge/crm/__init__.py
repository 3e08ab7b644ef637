"""
CRM correlation and call logging.
"""

__all__ = ["config", "hubspot", "interface", "models", "service"]
