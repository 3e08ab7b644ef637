"""
Browser softphone support: access tokens and click-to-call.
"""
