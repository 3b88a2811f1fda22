"""
Data Models Module.

Contains Pydantic models for league entities and session state.
"""

from .models import League, LeagueContext, Organization, UserProfile

__all__ = [
    "League",
    "LeagueContext",
    "Organization",
    "UserProfile",
]
