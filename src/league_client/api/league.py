"""
League context and scope resolution.

LeagueContextStore remembers the selected organization/league pair across
reloads. The resolver turns whatever league argument a caller passes into
exactly one of league_id / league_slug, falling back to that store.
"""

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from ..data.models import League, LeagueContext, Organization
from .errors import InvalidLeagueArgumentError, NoActiveLeagueError
from .storage import KeyValueStore

logger = logging.getLogger(__name__)

LEAGUE_CONTEXT_KEY = "mpl.leagueContext.v2"

# Accepted key spellings, in precedence order
ID_KEYS = ("league_id", "leagueId", "id")
SLUG_KEYS = ("league_slug", "leagueSlug", "slug")


# =============================================================================
# League Context Store
# =============================================================================


def _as_organization(value: Organization | Mapping | None) -> Organization | None:
    if value is None or isinstance(value, Organization):
        return value
    return Organization.model_validate(dict(value))


def _as_league(value: League | Mapping | None) -> League | None:
    if value is None or isinstance(value, League):
        return value
    return League.model_validate(dict(value))


class LeagueContextStore:
    """
    Currently selected organization and league.

    Changing the organization always clears the league, so a selected
    league can never belong to another organization.
    """

    def __init__(self, storage: KeyValueStore, key: str = LEAGUE_CONTEXT_KEY):
        """
        Initialize the store from durable storage.

        Args:
            storage: Durable key-value store
            key: Storage key for the serialized context
        """
        self._storage = storage
        self._key = key
        self._context = self._load()

    def _load(self) -> LeagueContext:
        raw = self._storage.get(self._key)
        if not raw:
            return LeagueContext()

        try:
            data = json.loads(raw)
            if isinstance(data, dict):
                return LeagueContext(
                    organization=data.get("organization"),
                    league=data.get("league"),
                )
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Discarding unreadable league context: {e}")
            return LeagueContext()

        logger.warning("Discarding malformed league context")
        return LeagueContext()

    def _save(self) -> None:
        self._storage.set(self._key, self._context.model_dump_json())

    def _replace(self, organization: Organization | None, league: League | None) -> None:
        self._context = LeagueContext(organization=organization, league=league)
        self._save()

    @property
    def context(self) -> LeagueContext:
        return self._context

    @property
    def organization(self) -> Organization | None:
        return self._context.organization

    @property
    def league(self) -> League | None:
        return self._context.league

    def set_organization(self, organization: Organization | Mapping | None) -> None:
        """Select an organization and reset the league."""
        self._replace(_as_organization(organization), None)

    def set_league(self, league: League | Mapping | None) -> None:
        """Select a league, keeping the organization."""
        self._replace(self._context.organization, _as_league(league))

    def set_context(
        self,
        organization: Organization | Mapping | None = None,
        league: League | Mapping | None = None,
    ) -> None:
        """Replace both halves of the context at once."""
        self._replace(_as_organization(organization), _as_league(league))

    def clear(self) -> None:
        self._replace(None, None)

    def get_league_id(self) -> str | int | None:
        league = self._context.league
        return league.id if league is not None else None

    def get_league_slug(self) -> str | None:
        league = self._context.league
        return league.slug if league is not None else None


# =============================================================================
# League Arguments
# =============================================================================


@dataclass(frozen=True)
class Absent:
    """No league given: use the selected context."""


@dataclass(frozen=True)
class PrimitiveId:
    """A bare league id."""

    value: str


@dataclass(frozen=True)
class Explicit:
    """An id and/or slug pulled out of a mapping or object."""

    id: str | None = None
    slug: str | None = None


LeagueArg = Absent | PrimitiveId | Explicit


def _first_present(source: Any, keys: tuple[str, ...]) -> str | None:
    for k in keys:
        if isinstance(source, Mapping):
            value = source.get(k)
        else:
            value = getattr(source, k, None)
        if value is not None and value != "":
            return str(value)
    return None


def league_arg(value: Any) -> LeagueArg:
    """
    Classify a caller-supplied league argument.

    Args:
        value: None, a primitive id, a mapping, or an object with id/slug
            attributes (e.g. a League model)

    Returns:
        The matching LeagueArg variant
    """
    if isinstance(value, (Absent, PrimitiveId, Explicit)):
        return value
    if value is None:
        return Absent()
    # a flag is never a league id
    if isinstance(value, bool):
        raise InvalidLeagueArgumentError(f"Invalid league argument: {value!r}")
    if isinstance(value, float) and value.is_integer():
        return PrimitiveId(str(int(value)))
    if isinstance(value, (str, int, float)):
        return PrimitiveId(str(value))
    return Explicit(id=_first_present(value, ID_KEYS), slug=_first_present(value, SLUG_KEYS))


# =============================================================================
# Scope Resolution
# =============================================================================


@dataclass(frozen=True)
class LeagueBits:
    """Resolved league scope: exactly one of league_id / league_slug."""

    league_id: str | None = None
    league_slug: str | None = None

    def __post_init__(self) -> None:
        if (self.league_id is None) == (self.league_slug is None):
            raise ValueError("LeagueBits needs exactly one of league_id or league_slug")

    def as_params(self) -> dict[str, str]:
        """Query parameters identifying the league."""
        if self.league_id is not None:
            return {"league_id": self.league_id}
        return {"league_slug": self.league_slug}  # type: ignore[dict-item]


def normalize(value: Any, context: LeagueContextStore) -> LeagueBits:
    """
    Resolve a league argument to LeagueBits.

    Raises:
        InvalidLeagueArgumentError: Explicit argument with neither id nor slug
        NoActiveLeagueError: No argument and nothing selected in context
    """
    arg = league_arg(value)

    if isinstance(arg, Explicit):
        if arg.id is not None:
            return LeagueBits(league_id=arg.id)
        if arg.slug is not None:
            return LeagueBits(league_slug=arg.slug)
        raise InvalidLeagueArgumentError()

    if isinstance(arg, PrimitiveId):
        return LeagueBits(league_id=arg.value)

    league_id = context.get_league_id()
    if league_id is not None and league_id != "":
        return LeagueBits(league_id=str(league_id))

    league_slug = context.get_league_slug()
    if league_slug:
        return LeagueBits(league_slug=str(league_slug))

    raise NoActiveLeagueError()


def league_key(bits: LeagueBits | None) -> str:
    """Canonical cache-key segment for a resolved scope."""
    if bits is None:
        return "none"
    if bits.league_id is not None:
        return f"id:{bits.league_id}"
    if bits.league_slug is not None:
        return f"slug:{bits.league_slug.lower()}"
    return "none"
