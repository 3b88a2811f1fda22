"""
League Client - data-access layer for the sports league management API.

Dispatches requests, attaches the session token, caches reads per session,
invalidates after mutations and tracks the selected league.
"""

__version__ = "0.1.0"

from .config import Settings, get_settings

__all__ = ["Settings", "get_settings", "__version__"]
