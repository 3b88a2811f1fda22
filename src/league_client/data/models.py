"""
Pydantic data models for the league client.

Only the fields the client itself reads are declared; anything else the API
returns is kept as extra data so it round-trips through durable storage.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Organization(BaseModel):
    """An organization (tenant) that owns one or more leagues."""

    model_config = ConfigDict(extra="allow")

    id: str | int | None = Field(default=None, description="Organization ID")
    slug: str | None = Field(default=None, description="URL-safe name")
    name: str | None = Field(default=None, description="Display name")


class League(BaseModel):
    """A league inside an organization."""

    model_config = ConfigDict(extra="allow")

    id: str | int | None = Field(default=None, description="League ID")
    slug: str | None = Field(default=None, description="URL-safe name")
    name: str | None = Field(default=None, description="Display name")
    organization_id: str | int | None = Field(
        default=None, description="Owning organization ID"
    )


class LeagueContext(BaseModel):
    """
    The currently selected organization/league pair.

    The shape is always stable: both keys present, each possibly None.
    """

    organization: Organization | None = None
    league: League | None = None


class UserProfile(BaseModel):
    """The user returned by /auth/me."""

    model_config = ConfigDict(extra="allow")

    id: str | int | None = None
    username: str | None = None
    email: str | None = None

    @classmethod
    def from_response(cls, data: Any) -> "UserProfile | None":
        """Build a profile from a response body, None for empty bodies."""
        if data is None:
            return None
        return cls.model_validate(data)
