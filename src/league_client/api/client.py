"""
League API Client.

One method per remote operation. Reads go through the session cache;
writes always hit the API and then invalidate the cache entries whose
data they may have changed. A 401 from any endpoint resets the client
(token, cache and league context) before the error reaches the caller.
"""

import asyncio
import logging
import time
from collections.abc import Mapping, Sequence
from typing import Any, Callable
from urllib.parse import urlencode

import httpx

from ..config import Settings, get_settings
from ..data.models import UserProfile
from . import endpoints as ep
from .auth import TokenStore
from .cache import CacheKey, KeyPattern, SessionCache
from .errors import AuthenticationError, HTTPError, LeagueAPIError, LeagueValidationError
from .gateway import AuthFailure, RequestGateway, Success
from .league import LeagueBits, LeagueContextStore, league_key, normalize
from .storage import KeyValueStore, MemoryStore

logger = logging.getLogger(__name__)


class LeagueClient:
    """
    Async client for the league API.

    Wires the gateway, session cache and the two stores together. Build one
    per application (see create()) and share it; tests build isolated ones.
    """

    def __init__(
        self,
        gateway: RequestGateway,
        cache: SessionCache,
        tokens: TokenStore,
        league_context: LeagueContextStore,
    ):
        self.gateway = gateway
        self.cache = cache
        self.tokens = tokens
        self.league_context = league_context
        self._unsubscribe = tokens.subscribe(self._on_token_change)

    @classmethod
    def create(
        cls,
        settings: Settings | None = None,
        storage: KeyValueStore | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], float] | None = None,
    ) -> "LeagueClient":
        """
        Build a fully wired client.

        Args:
            settings: Configuration (defaults to get_settings())
            storage: Durable store for token and league context
                (defaults to an in-memory store)
            transport: Custom httpx transport
            clock: Time source for cache expiry
        """
        settings = settings or get_settings()
        storage = storage if storage is not None else MemoryStore()

        tokens = TokenStore(storage, settings.storage.token_key)
        league_context = LeagueContextStore(storage, settings.storage.league_key)
        cache = SessionCache(ttl=settings.cache.ttl, clock=clock or time.monotonic)
        gateway = RequestGateway(
            base_url=settings.api.base_url,
            token_provider=tokens.get_token,
            timeout=settings.api.timeout,
            transport=transport,
        )
        return cls(gateway, cache, tokens, league_context)

    async def __aenter__(self) -> "LeagueClient":
        await self.gateway.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.gateway.close()

    # =========================================================================
    # Session State
    # =========================================================================

    def _on_token_change(self, token: str) -> None:
        logger.debug("Token changed, resetting session cache and league context")
        self.cache.clear()
        self.league_context.clear()

    def reset(self) -> None:
        """Clear token, profile, session cache and league context."""
        self.tokens.clear()
        self.cache.clear()
        self.league_context.clear()
        logger.info("Client state reset")

    def _scope(self, league: Any) -> LeagueBits:
        return normalize(league, self.league_context)

    # =========================================================================
    # Dispatch
    # =========================================================================

    async def _dispatch(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        """
        Send a request and turn its result into a value or an exception.

        Raises:
            AuthenticationError: On 401, after resetting the client
            HTTPError: On any other non-2xx response
            TransportError: If no response was received
        """
        response = await self.gateway.request(method, path, params=params, json=json)
        result = self.gateway.interpret(response)

        if isinstance(result, Success):
            return result.value

        if isinstance(result, AuthFailure):
            logger.warning(f"{method} {path} rejected the session, signing out")
            self.reset()
            raise AuthenticationError(result.status_code, result.body)

        raise HTTPError(result.status_code, result.body)

    async def _read(
        self,
        key: CacheKey,
        path: str,
        params: dict[str, Any] | None = None,
        ttl: float | None = None,
    ) -> Any:
        return await self.cache.get_or_compute(
            key, lambda: self._dispatch("GET", path, params=params), ttl
        )

    async def _write(
        self,
        method: str,
        path: str,
        invalidate: Sequence[KeyPattern] = (),
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        out = await self._dispatch(method, path, params=params, json=json)
        if invalidate:
            self.cache.invalidate(*invalidate)
        return out

    # =========================================================================
    # Auth
    # =========================================================================

    async def login(self, username: str, password: str) -> UserProfile | None:
        """
        Log in and store the returned token.

        The token change resets the session cache and league context. The
        profile comes from the login response when included, otherwise from
        /auth/me.

        Returns:
            The signed-in user's profile
        """
        logger.info(f"Logging in as {username}")
        data = await self._dispatch(
            "POST", ep.AUTH_LOGIN, json={"username": username, "password": password}
        )

        token = None
        if isinstance(data, Mapping):
            token = data.get("access_token") or data.get("token")
        if not token:
            raise LeagueAPIError("Login response did not include a token")

        self.tokens.set_token(token)

        user = data.get("user")
        if user is not None:
            profile = UserProfile.from_response(user)
            self.tokens.set_profile(profile)
            return profile

        return await self.get_me()

    async def get_me(self) -> UserProfile | None:
        """Fetch the current user and remember it on the token store."""
        profile = UserProfile.from_response(await self._dispatch("GET", ep.AUTH_ME))
        self.tokens.set_profile(profile)
        return profile

    def logout(self) -> None:
        """Sign out locally."""
        logger.info("Logging out")
        self.reset()

    # =========================================================================
    # Seasons
    # =========================================================================

    async def get_seasons(self, league: Any = None) -> Any:
        """List the seasons of a league."""
        bits = self._scope(league)
        key = CacheKey(ep.NS_SEASONS, league_key(bits))
        return await self._read(key, ep.SEASONS, bits.as_params())

    async def get_season_dashboard(self, season_id: str | int, league: Any = None) -> Any:
        """Get standings, results and leaders for one season."""
        bits = self._scope(league)
        key = CacheKey(ep.NS_SEASON_DASHBOARD, league_key(bits), (str(season_id),))
        url = ep.get_season_url(ep.SEASON_DASHBOARD, season_id)
        return await self._read(key, url, bits.as_params())

    async def get_season_badges(self, season_id: str | int, league: Any = None) -> Any:
        bits = self._scope(league)
        key = CacheKey(ep.NS_SEASON_BADGES, league_key(bits), (str(season_id),))
        url = ep.get_season_url(ep.SEASON_BADGES, season_id)
        return await self._read(key, url, bits.as_params())

    async def get_season_schedule(self, season_id: str | int, league: Any = None) -> Any:
        bits = self._scope(league)
        key = CacheKey(ep.NS_SEASON_SCHEDULE, league_key(bits), (str(season_id),))
        url = ep.get_season_url(ep.SEASON_SCHEDULE, season_id)
        return await self._read(key, url, bits.as_params())

    async def get_season_teams(self, season_id: str | int, league: Any = None) -> Any:
        bits = self._scope(league)
        key = CacheKey(ep.NS_SEASON_TEAMS, league_key(bits), (str(season_id),))
        url = ep.get_season_url(ep.SEASON_TEAMS, season_id)
        return await self._read(key, url, bits.as_params())

    async def create_season(self, payload: dict[str, Any], league: Any = None) -> Any:
        """
        Create a season in a league.

        Invalidates every season list and dashboard.
        """
        bits = self._scope(league)
        return await self._write(
            "POST",
            ep.SEASONS,
            invalidate=[KeyPattern(ep.NS_SEASONS), KeyPattern(ep.NS_SEASON_DASHBOARD)],
            params=bits.as_params(),
            json=payload,
        )

    async def generate_schedule(
        self,
        season_id: str | int,
        payload: dict[str, Any] | None = None,
        league: Any = None,
    ) -> Any:
        """Generate the fixture schedule of a season."""
        bits = self._scope(league)
        url = ep.get_season_url(ep.SEASON_SCHEDULE_GENERATE, season_id)
        return await self._write(
            "POST",
            url,
            invalidate=[
                KeyPattern(ep.NS_SEASON_SCHEDULE, league_key(bits), (str(season_id),))
            ],
            params=bits.as_params(),
            json=payload,
        )

    def _season_team_patterns(self, bits: LeagueBits, season_id: str | int) -> list[KeyPattern]:
        return [
            KeyPattern(ep.NS_SEASON_TEAMS, league_key(bits), (str(season_id),)),
            KeyPattern(ep.NS_SEASONS),
        ]

    async def create_season_team(
        self, season_id: str | int, payload: dict[str, Any], league: Any = None
    ) -> Any:
        bits = self._scope(league)
        return await self._write(
            "POST",
            ep.get_season_url(ep.SEASON_TEAMS, season_id),
            invalidate=self._season_team_patterns(bits, season_id),
            params=bits.as_params(),
            json=payload,
        )

    async def update_season_team(
        self,
        season_id: str | int,
        team_id: str | int,
        payload: dict[str, Any],
        league: Any = None,
    ) -> Any:
        bits = self._scope(league)
        return await self._write(
            "PUT",
            ep.get_season_team_url(season_id, team_id),
            invalidate=self._season_team_patterns(bits, season_id),
            params=bits.as_params(),
            json=payload,
        )

    async def delete_season_team(
        self, season_id: str | int, team_id: str | int, league: Any = None
    ) -> Any:
        """Remove a team from a season; also drops every dashboard."""
        bits = self._scope(league)
        return await self._write(
            "DELETE",
            ep.get_season_team_url(season_id, team_id),
            invalidate=[
                *self._season_team_patterns(bits, season_id),
                KeyPattern(ep.NS_SEASON_DASHBOARD),
            ],
            params=bits.as_params(),
        )

    # =========================================================================
    # Tier List
    # =========================================================================

    async def get_season_tier_list(
        self, season_id: str | int, include_hidden: bool = False
    ) -> Any:
        """
        Get the tier list of a season.

        Hidden and visible views are cached separately.
        """
        include_hidden = bool(include_hidden)
        key = CacheKey(ep.NS_SEASON_TIERLIST, None, (str(season_id), include_hidden))
        url = ep.get_season_url(ep.SEASON_TIERLIST, season_id)
        params = {"include_hidden": "true" if include_hidden else "false"}
        return await self._read(key, url, params)

    async def patch_season_tier_assignments(
        self, season_id: str | int, changes: Sequence[Any] | Mapping[str, Any]
    ) -> Any:
        """
        Apply a batch of tier assignment changes.

        Raises:
            LeagueValidationError: If changes is empty
        """
        if not changes:
            raise LeagueValidationError("No tier assignment changes to apply")

        if isinstance(changes, Mapping):
            body = dict(changes)
        else:
            body = list(changes)

        return await self._write(
            "PATCH",
            ep.get_season_url(ep.SEASON_TIERLIST_ASSIGNMENTS, season_id),
            invalidate=[
                KeyPattern(ep.NS_SEASON_TIERLIST, params=(str(season_id),)),
                KeyPattern(ep.NS_SEASON_DASHBOARD),
            ],
            json={"assignments": body},
        )

    # =========================================================================
    # Coaches and Stats
    # =========================================================================

    async def get_coaches(self, league_type: str | None = "major", league: Any = None) -> Any:
        bits = self._scope(league)
        params = bits.as_params()
        if league_type:
            params["league_type"] = league_type
        key = CacheKey(ep.NS_COACHES, league_key(bits), (league_type or "",))
        return await self._read(key, ep.COACHES, params)

    async def get_coach_crosstable(
        self,
        names: str | None = "",
        league_type: str | None = "",
        league: Any = None,
    ) -> Any:
        """
        Head-to-head records between coaches.

        Args:
            names: Comma-separated coach names to restrict the table to
            league_type: Optional league type filter
        """
        bits = self._scope(league)
        filters: dict[str, str] = {}
        if names and names.strip():
            filters["names"] = names.strip()
        if league_type and league_type.strip():
            filters["league_type"] = league_type.strip()

        key = CacheKey(ep.NS_CROSSTABLE, league_key(bits), (urlencode(filters) or "all",))
        return await self._read(key, ep.COACH_CROSSTABLE, {**bits.as_params(), **filters})

    async def refresh_coach_crosstable(self, league: Any = None) -> Any:
        """Ask the API to rebuild its crosstable cache."""
        bits = self._scope(league)
        return await self._write(
            "POST",
            ep.COACH_CROSSTABLE_REFRESH,
            invalidate=[KeyPattern(ep.NS_CROSSTABLE)],
            params=bits.as_params(),
        )

    async def get_coach_profile_by_name(self, name: str, league: Any = None) -> Any:
        bits = self._scope(league)
        key = CacheKey(ep.NS_COACH_PROFILE, league_key(bits), (name.lower(),))
        return await self._read(key, ep.get_coach_profile_url(name), bits.as_params())

    async def get_coach_season_details(
        self, coach_id: str | int, season_id: str | int, league: Any = None
    ) -> Any:
        bits = self._scope(league)
        key = CacheKey(
            ep.NS_COACH_SEASON_DETAILS, league_key(bits), (str(coach_id), str(season_id))
        )
        url = ep.get_coach_season_details_url(coach_id, season_id)
        return await self._read(key, url, bits.as_params())

    async def get_mvps(self, league_type: str | None = None, league: Any = None) -> Any:
        bits = self._scope(league)
        params = bits.as_params()
        if league_type:
            params["league_type"] = league_type
        key = CacheKey(ep.NS_MVPS, league_key(bits), (league_type or "all",))
        return await self._read(key, ep.MVPS, params)

    async def get_badges(self, league_type: str | None = "major", league: Any = None) -> Any:
        bits = self._scope(league)
        params = bits.as_params()
        if league_type:
            params["league_type"] = league_type
        key = CacheKey(ep.NS_BADGES, league_key(bits), (league_type or "",))
        return await self._read(key, ep.BADGES, params)

    async def get_pokemon_career_stats(self, league: Any = None) -> Any:
        bits = self._scope(league)
        key = CacheKey(ep.NS_POKEMON_STATS, league_key(bits))
        return await self._read(key, ep.POKEMON_STATS, bits.as_params())

    async def run_pokemon_stats_rollup(self, league: Any = None) -> Any:
        """Trigger the career stats rollup (the API exposes it as a GET)."""
        bits = self._scope(league)
        return await self._write(
            "GET",
            ep.POKEMON_STATS_RUN,
            invalidate=[KeyPattern(ep.NS_POKEMON_STATS)],
            params=bits.as_params(),
        )

    # =========================================================================
    # Organizations and Invites
    # =========================================================================

    async def get_organizations(self) -> Any:
        """Organizations the current user belongs to."""
        return await self._read(CacheKey(ep.NS_ORGANIZATIONS), ep.ORGANIZATIONS)

    async def get_organization_leagues(self, organization_id: str | int) -> Any:
        key = CacheKey(ep.NS_ORGANIZATION_LEAGUES, None, (str(organization_id),))
        return await self._read(key, ep.get_organization_leagues_url(organization_id))

    async def get_invites(self, league: Any = None) -> Any:
        bits = self._scope(league)
        key = CacheKey(ep.NS_INVITES, league_key(bits))
        return await self._read(key, ep.INVITES, bits.as_params())

    async def create_invite(self, payload: dict[str, Any], league: Any = None) -> Any:
        bits = self._scope(league)
        return await self._write(
            "POST",
            ep.INVITES,
            invalidate=[KeyPattern(ep.NS_INVITES, league_key(bits))],
            params=bits.as_params(),
            json=payload,
        )

    async def accept_invite(self, code: str) -> Any:
        """
        Accept an invite, joining its organization/league.

        Raises:
            LeagueValidationError: If code is missing or blank
        """
        if code is None or not str(code).strip():
            raise LeagueValidationError("Invite code is required")

        return await self._write(
            "POST",
            ep.get_invite_accept_url(str(code).strip()),
            invalidate=[
                KeyPattern(ep.NS_ORGANIZATIONS),
                KeyPattern(ep.NS_ORGANIZATION_LEAGUES),
            ],
        )

    async def revoke_invite(self, invite_id: str | int, league: Any = None) -> Any:
        """
        Revoke a pending invite.

        Raises:
            LeagueValidationError: If invite_id is missing or blank
        """
        if invite_id is None or not str(invite_id).strip():
            raise LeagueValidationError("Invite id is required")

        bits = self._scope(league)
        return await self._write(
            "DELETE",
            ep.get_invite_url(str(invite_id).strip()),
            invalidate=[KeyPattern(ep.NS_INVITES, league_key(bits))],
            params=bits.as_params(),
        )


# =============================================================================
# Synchronous Wrapper
# =============================================================================


class SyncLeagueClient:
    """
    Synchronous wrapper for LeagueClient.

    Runs the async client on a private event loop. Used by the CLI.
    """

    def __init__(self, client: LeagueClient | None = None, **kwargs: Any):
        """Wrap client, or build one with LeagueClient.create(**kwargs)."""
        self._async_client = client or LeagueClient.create(**kwargs)
        self._loop: asyncio.AbstractEventLoop | None = None

    def _run(self, coro):
        """Run a coroutine synchronously."""
        if self._loop is None:
            self._loop = asyncio.new_event_loop()
        return self._loop.run_until_complete(coro)

    @property
    def tokens(self) -> TokenStore:
        return self._async_client.tokens

    @property
    def league_context(self) -> LeagueContextStore:
        return self._async_client.league_context

    def close(self) -> None:
        """Close the client."""
        self._run(self._async_client.close())
        if self._loop is not None:
            self._loop.close()
            self._loop = None

    def login(self, username: str, password: str) -> UserProfile | None:
        return self._run(self._async_client.login(username, password))

    def logout(self) -> None:
        self._async_client.logout()

    def get_me(self) -> UserProfile | None:
        return self._run(self._async_client.get_me())

    def get_organizations(self) -> Any:
        return self._run(self._async_client.get_organizations())

    def get_organization_leagues(self, organization_id: str | int) -> Any:
        return self._run(self._async_client.get_organization_leagues(organization_id))

    def get_seasons(self, league: Any = None) -> Any:
        return self._run(self._async_client.get_seasons(league))

    def get_season_dashboard(self, season_id: str | int, league: Any = None) -> Any:
        return self._run(self._async_client.get_season_dashboard(season_id, league))
