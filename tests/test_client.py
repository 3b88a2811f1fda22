import json

import httpx
import pytest

from league_client.api import (
    AuthenticationError,
    CacheKey,
    HTTPError,
    LeagueValidationError,
    NoActiveLeagueError,
    TransportError,
)
from league_client.api.auth import TOKEN_KEY


SEASONS = [{"id": 1, "name": "Spring"}, {"id": 2, "name": "Fall"}]


def seed_reads(api):
    api.add("GET", "/seasons", body=SEASONS)
    api.add("GET", "/seasons/1/dashboard", body={"standings": []})
    api.add("GET", "/seasons/1/teams", body=[{"id": 10}])
    api.add("GET", "/seasons/1/schedule", body={"weeks": []})
    api.add("GET", "/seasons/2/schedule", body={"weeks": []})
    api.add("GET", "/seasons/1/tierlist", body={"tiers": []})
    api.add("GET", "/seasons/2/tierlist", body={"tiers": []})


# =============================================================================
# Reads and scope
# =============================================================================


@pytest.mark.asyncio
async def test_get_seasons_without_league_fails_before_network(client, api):
    with pytest.raises(NoActiveLeagueError, match="No active league selected"):
        await client.get_seasons()
    assert api.calls == []


@pytest.mark.asyncio
async def test_reads_are_cached_within_ttl(client, api, select_league):
    seed_reads(api)
    select_league(client)

    first = await client.get_seasons()
    second = await client.get_seasons()

    assert first == second == SEASONS
    assert api.count("GET", "/seasons") == 1
    assert api.calls[0].url.params["league_id"] == "7"


@pytest.mark.asyncio
async def test_reads_refetch_after_ttl(client, api, clock, select_league):
    seed_reads(api)
    select_league(client)

    await client.get_seasons()
    clock.advance(client.cache.ttl)
    await client.get_seasons()

    assert api.count("GET", "/seasons") == 2


@pytest.mark.asyncio
async def test_explicit_league_argument_overrides_context(client, api, select_league):
    seed_reads(api)
    select_league(client)

    await client.get_seasons({"leagueSlug": "Other"})
    assert api.calls[0].url.params["league_slug"] == "Other"
    assert "league_id" not in api.calls[0].url.params


@pytest.mark.asyncio
async def test_slug_casing_shares_a_cache_entry(client, api):
    seed_reads(api)

    await client.get_seasons({"league_slug": "Main"})
    await client.get_seasons({"slug": "main"})

    assert api.count("GET", "/seasons") == 1
    assert CacheKey("seasons", "slug:main") in client.cache


@pytest.mark.asyncio
async def test_tier_list_flag_is_part_of_the_key(client, api):
    seed_reads(api)

    await client.get_season_tier_list(1, include_hidden=True)
    await client.get_season_tier_list(1, include_hidden=False)
    await client.get_season_tier_list(1, include_hidden=True)

    assert api.count("GET", "/seasons/1/tierlist") == 2
    flags = [r.url.params["include_hidden"] for r in api.calls]
    assert flags == ["true", "false"]


@pytest.mark.asyncio
async def test_crosstable_filters_are_part_of_the_key(client, api, select_league):
    api.add("GET", "/coaches/crosstable", body={"rows": []})
    select_league(client)

    await client.get_coach_crosstable()
    await client.get_coach_crosstable(" ash, misty ")
    await client.get_coach_crosstable("ash, misty")

    assert api.count("GET", "/coaches/crosstable") == 2
    assert api.calls[1].url.params["names"] == "ash, misty"


@pytest.mark.asyncio
async def test_no_content_yields_none(client, api, select_league):
    api.add("DELETE", "/seasons/1/teams/10", status=204)
    select_league(client)

    assert await client.delete_season_team(1, 10) is None


# =============================================================================
# Invalidation
# =============================================================================


async def warm(client):
    await client.get_seasons()
    await client.get_season_dashboard(1)
    await client.get_season_teams(1)
    await client.get_season_schedule(1)
    await client.get_season_schedule(2)
    await client.get_season_tier_list(1)
    await client.get_season_tier_list(1, include_hidden=True)
    await client.get_season_tier_list(2)


@pytest.mark.asyncio
async def test_create_season_invalidates_lists_and_dashboards(client, api, select_league):
    seed_reads(api)
    api.add("POST", "/seasons", status=201, body={"id": 3})
    select_league(client)
    await warm(client)

    assert await client.create_season({"name": "Winter"}) == {"id": 3}

    assert CacheKey("seasons", "id:7") not in client.cache
    assert CacheKey("season-dashboard", "id:7", ("1",)) not in client.cache
    assert CacheKey("season-teams", "id:7", ("1",)) in client.cache
    assert CacheKey("season-schedule", "id:7", ("1",)) in client.cache

    await client.get_seasons()
    assert api.count("GET", "/seasons") == 2
    assert json.loads(api.calls[-2].content) == {"name": "Winter"}


@pytest.mark.asyncio
async def test_generate_schedule_only_drops_that_schedule(client, api, select_league):
    seed_reads(api)
    api.add("POST", "/seasons/1/schedule/generate", body={"weeks": 5})
    select_league(client)
    await warm(client)
    before = len(client.cache)

    await client.generate_schedule(1)

    assert CacheKey("season-schedule", "id:7", ("1",)) not in client.cache
    assert CacheKey("season-schedule", "id:7", ("2",)) in client.cache
    assert len(client.cache) == before - 1


@pytest.mark.asyncio
async def test_season_team_writes(client, api, select_league):
    seed_reads(api)
    api.add("POST", "/seasons/1/teams", body={"id": 11})
    api.add("PUT", "/seasons/1/teams/11", body={"id": 11})
    api.add("DELETE", "/seasons/1/teams/11", status=204)
    select_league(client)

    await warm(client)
    await client.create_season_team(1, {"name": "Pallet"})
    assert CacheKey("season-teams", "id:7", ("1",)) not in client.cache
    assert CacheKey("seasons", "id:7") not in client.cache
    assert CacheKey("season-dashboard", "id:7", ("1",)) in client.cache

    await warm(client)
    await client.update_season_team(1, 11, {"name": "Viridian"})
    assert CacheKey("season-teams", "id:7", ("1",)) not in client.cache
    assert CacheKey("season-dashboard", "id:7", ("1",)) in client.cache

    await warm(client)
    await client.delete_season_team(1, 11)
    assert CacheKey("season-teams", "id:7", ("1",)) not in client.cache
    assert CacheKey("seasons", "id:7") not in client.cache
    assert CacheKey("season-dashboard", "id:7", ("1",)) not in client.cache
    assert CacheKey("season-schedule", "id:7", ("1",)) in client.cache


@pytest.mark.asyncio
async def test_patch_tier_assignments_invalidates_both_views(client, api, select_league):
    seed_reads(api)
    api.add("PATCH", "/seasons/1/tierlist/assignments", body={"updated": 2})
    select_league(client)
    await warm(client)

    changes = [{"pokemon": "pikachu", "tier": "S"}, {"pokemon": "onix", "tier": "C"}]
    await client.patch_season_tier_assignments(1, changes)

    assert json.loads(api.calls[-1].content) == {"assignments": changes}
    assert CacheKey("season-tierlist", None, ("1", False)) not in client.cache
    assert CacheKey("season-tierlist", None, ("1", True)) not in client.cache
    assert CacheKey("season-tierlist", None, ("2", False)) in client.cache
    assert CacheKey("season-dashboard", "id:7", ("1",)) not in client.cache
    assert CacheKey("seasons", "id:7") in client.cache


@pytest.mark.asyncio
async def test_failed_write_does_not_invalidate(client, api, select_league):
    seed_reads(api)
    api.add("POST", "/seasons", status=422, body="name required")
    select_league(client)
    await warm(client)

    with pytest.raises(HTTPError) as exc_info:
        await client.create_season({})

    assert exc_info.value.status_code == 422
    assert exc_info.value.body == "name required"
    assert str(exc_info.value) == "HTTP 422: name required"
    assert CacheKey("seasons", "id:7") in client.cache


@pytest.mark.asyncio
async def test_refresh_crosstable_and_rollup(client, api, select_league):
    api.add("GET", "/coaches/crosstable", body={"rows": []})
    api.add("POST", "/coaches/crosstable/refresh", body={"ok": True})
    api.add("GET", "/pokemon/stats", body=[])
    api.add("GET", "/pokemon/stats/run", body={"ok": True})
    select_league(client)

    await client.get_coach_crosstable()
    await client.get_pokemon_career_stats()
    await client.refresh_coach_crosstable()
    await client.run_pokemon_stats_rollup()

    assert len(client.cache) == 0


# =============================================================================
# Local validation
# =============================================================================


@pytest.mark.asyncio
async def test_empty_tier_assignments_rejected_locally(client, api):
    with pytest.raises(LeagueValidationError):
        await client.patch_season_tier_assignments(42, [])
    assert api.calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize("code", [None, "", "   "])
async def test_accept_invite_requires_code(client, api, code):
    with pytest.raises(LeagueValidationError):
        await client.accept_invite(code)
    assert api.calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize("invite_id", [None, "", "  "])
async def test_revoke_invite_requires_id(client, api, select_league, invite_id):
    select_league(client)
    with pytest.raises(LeagueValidationError):
        await client.revoke_invite(invite_id)
    assert api.calls == []


@pytest.mark.asyncio
async def test_invite_flow_invalidation(client, api, select_league):
    api.add("GET", "/invites", body=[])
    api.add("POST", "/invites", body={"id": 5, "code": "abc"})
    api.add("DELETE", "/invites/5", status=204)
    api.add("GET", "/organizations", body=[{"id": 1}])
    api.add("POST", "/invites/abc/accept", body={"ok": True})
    select_league(client)

    await client.get_invites()
    await client.create_invite({"email": "misty@example.com"})
    assert CacheKey("invites", "id:7") not in client.cache

    await client.get_invites()
    await client.revoke_invite(5)
    assert CacheKey("invites", "id:7") not in client.cache

    await client.get_organizations()
    await client.accept_invite(" abc ")
    assert CacheKey("organizations") not in client.cache


# =============================================================================
# Auth and global reset
# =============================================================================


@pytest.mark.asyncio
async def test_unauthenticated_response_resets_everything(client, api, storage, select_league):
    seed_reads(api)
    client.tokens.set_token("stale")
    select_league(client)
    await client.get_seasons()
    assert len(client.cache) == 1

    api.add("GET", "/seasons/1/dashboard", status=401, body="token expired")
    with pytest.raises(AuthenticationError) as exc_info:
        await client.get_season_dashboard(1)

    assert exc_info.value.status_code == 401
    assert client.tokens.get_token() == ""
    assert storage.get(TOKEN_KEY) is None
    assert len(client.cache) == 0
    assert client.league_context.league is None
    assert client.league_context.organization is None

    select_league(client)
    await client.get_seasons()
    assert api.count("GET", "/seasons") == 2


@pytest.mark.asyncio
async def test_other_errors_do_not_reset(client, api, select_league):
    seed_reads(api)
    api.add("GET", "/seasons/1/dashboard", status=500, body="boom")
    client.tokens.set_token("tok")
    select_league(client)
    await client.get_seasons()

    with pytest.raises(HTTPError) as exc_info:
        await client.get_season_dashboard(1)

    assert not isinstance(exc_info.value, AuthenticationError)
    assert client.tokens.get_token() == "tok"
    assert CacheKey("seasons", "id:7") in client.cache
    assert CacheKey("season-dashboard", "id:7", ("1",)) not in client.cache


@pytest.mark.asyncio
async def test_transport_error_does_not_reset(settings, storage, clock, select_league):
    from league_client.api import LeagueClient

    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    client = LeagueClient.create(
        settings=settings, storage=storage, transport=httpx.MockTransport(handler), clock=clock
    )
    async with client:
        client.tokens.set_token("tok")
        select_league(client)
        with pytest.raises(TransportError):
            await client.get_seasons()

    assert client.tokens.get_token() == "tok"
    assert client.league_context.get_league_id() == 7


@pytest.mark.asyncio
async def test_login_stores_token_and_profile(client, api, storage, select_league):
    seed_reads(api)
    api.add(
        "POST",
        "/auth/login",
        body={"access_token": "fresh", "user": {"id": 1, "username": "ash"}},
    )
    select_league(client)
    await client.get_seasons()

    profile = await client.login("ash", "pikachu")

    assert profile.username == "ash"
    assert client.tokens.profile == profile
    assert storage.get(TOKEN_KEY) == "fresh"
    # a new token starts a clean session
    assert len(client.cache) == 0
    assert client.league_context.league is None
    assert json.loads(api.calls[-1].content) == {"username": "ash", "password": "pikachu"}

    select_league(client)
    await client.get_seasons()
    assert api.calls[-1].headers["Authorization"] == "Bearer fresh"


@pytest.mark.asyncio
async def test_login_falls_back_to_me(client, api):
    api.add("POST", "/auth/login", body={"token": "fresh"})
    api.add("GET", "/auth/me", body={"id": 2, "username": "misty"})

    profile = await client.login("misty", "starmie")

    assert profile.username == "misty"
    assert api.calls[-1].headers["Authorization"] == "Bearer fresh"


@pytest.mark.asyncio
async def test_login_rejected_credentials(client, api):
    api.add("POST", "/auth/login", status=401, body="bad credentials")

    with pytest.raises(AuthenticationError):
        await client.login("ash", "wrong")
    assert not client.tokens.is_authenticated


@pytest.mark.asyncio
async def test_get_me_is_not_cached(client, api):
    api.add("GET", "/auth/me", body={"id": 1, "username": "ash"})
    client.tokens.set_token("tok")

    await client.get_me()
    await client.get_me()

    assert api.count("GET", "/auth/me") == 2
    assert client.tokens.profile.username == "ash"


@pytest.mark.asyncio
async def test_logout_resets_everything(client, api, select_league):
    seed_reads(api)
    client.tokens.set_token("tok")
    select_league(client)
    await client.get_seasons()

    client.logout()

    assert not client.tokens.is_authenticated
    assert len(client.cache) == 0
    assert client.league_context.league is None


# =============================================================================
# Coaches and league-wide stats
# =============================================================================


@pytest.mark.asyncio
async def test_league_type_is_part_of_the_key(client, api, select_league):
    for path in ("/coaches", "/badges", "/mvps"):
        api.add("GET", path, body=[])
    select_league(client)

    await client.get_coaches()
    await client.get_coaches("major")
    await client.get_coaches("minor")
    await client.get_badges()
    await client.get_badges("major")
    await client.get_badges("minor")
    await client.get_mvps()
    await client.get_mvps(None)
    await client.get_mvps("minor")

    assert api.count("GET", "/coaches") == 2
    assert api.count("GET", "/badges") == 2
    assert api.count("GET", "/mvps") == 2
    assert CacheKey("coaches", "id:7", ("major",)) in client.cache
    assert CacheKey("coaches", "id:7", ("minor",)) in client.cache
    assert CacheKey("badges", "id:7", ("major",)) in client.cache
    assert CacheKey("mvps", "id:7", ("all",)) in client.cache
    assert CacheKey("mvps", "id:7", ("minor",)) in client.cache

    mvp_calls = [r for r in api.calls if r.url.path == "/mvps"]
    assert "league_type" not in mvp_calls[0].url.params
    assert mvp_calls[1].url.params["league_type"] == "minor"
    assert api.calls[0].url.params["league_type"] == "major"


@pytest.mark.asyncio
async def test_coach_profile_name_is_case_insensitive(client, api, select_league):
    api.add("GET", "/coaches/by-name/Ash/profile", body={"name": "Ash"})
    select_league(client)

    await client.get_coach_profile_by_name("Ash")
    await client.get_coach_profile_by_name("ash")

    assert len(api.calls) == 1
    assert CacheKey("coach-profile", "id:7", ("ash",)) in client.cache


@pytest.mark.asyncio
async def test_coach_profile_name_is_one_path_segment(client, api, select_league):
    api.add("GET", "/coaches/by-name/Ash K/Jr/profile", body={"name": "Ash K/Jr"})
    select_league(client)

    assert await client.get_coach_profile_by_name("Ash K/Jr") == {"name": "Ash K/Jr"}
    assert api.calls[0].url.raw_path.startswith(b"/coaches/by-name/Ash%20K%2FJr/profile")


@pytest.mark.asyncio
async def test_coach_season_details_and_season_badges(client, api, select_league):
    api.add("GET", "/coaches/3/seasons/1/details", body={"wins": 4})
    api.add("GET", "/coaches/3/seasons/2/details", body={"wins": 1})
    api.add("GET", "/seasons/1/badges", body=[])
    select_league(client)

    await client.get_coach_season_details(3, 1)
    await client.get_coach_season_details("3", "1")
    await client.get_coach_season_details(3, 2)
    await client.get_season_badges(1)
    await client.get_season_badges("1")

    assert len(api.calls) == 3
    assert CacheKey("coach-season-details", "id:7", ("3", "1")) in client.cache
    assert CacheKey("coach-season-details", "id:7", ("3", "2")) in client.cache
    assert CacheKey("season-badges", "id:7", ("1",)) in client.cache


@pytest.mark.asyncio
async def test_write_with_empty_body_still_invalidates(client, api, select_league):
    seed_reads(api)
    api.add("POST", "/seasons", body="")
    select_league(client)
    await client.get_seasons()

    assert await client.create_season({"name": "Winter"}) is None
    assert CacheKey("seasons", "id:7") not in client.cache
