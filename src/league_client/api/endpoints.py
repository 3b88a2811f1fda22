"""
League API endpoint definitions.

Path templates (relative to the configured base URL) and the cache
namespaces of the data they return.
"""

from urllib.parse import quote

# =============================================================================
# Auth
# =============================================================================

AUTH_LOGIN = "/auth/login"
AUTH_ME = "/auth/me"

# =============================================================================
# Seasons (league-scoped)
# =============================================================================

SEASONS = "/seasons"
SEASON_DASHBOARD = "/seasons/{season_id}/dashboard"
SEASON_BADGES = "/seasons/{season_id}/badges"
SEASON_SCHEDULE = "/seasons/{season_id}/schedule"
SEASON_SCHEDULE_GENERATE = "/seasons/{season_id}/schedule/generate"
SEASON_TEAMS = "/seasons/{season_id}/teams"
SEASON_TEAM = "/seasons/{season_id}/teams/{team_id}"

# Tier list is keyed by season only; include_hidden is a query flag
SEASON_TIERLIST = "/seasons/{season_id}/tierlist"
SEASON_TIERLIST_ASSIGNMENTS = "/seasons/{season_id}/tierlist/assignments"

# =============================================================================
# Coaches and league-wide stats (league-scoped)
# =============================================================================

COACHES = "/coaches"
COACH_CROSSTABLE = "/coaches/crosstable"
COACH_CROSSTABLE_REFRESH = "/coaches/crosstable/refresh"
COACH_PROFILE_BY_NAME = "/coaches/by-name/{name}/profile"
COACH_SEASON_DETAILS = "/coaches/{coach_id}/seasons/{season_id}/details"
MVPS = "/mvps"
BADGES = "/badges"
POKEMON_STATS = "/pokemon/stats"
POKEMON_STATS_RUN = "/pokemon/stats/run"

# =============================================================================
# Organizations and invites
# =============================================================================

ORGANIZATIONS = "/organizations"
ORGANIZATION_LEAGUES = "/organizations/{organization_id}/leagues"
INVITES = "/invites"
INVITE = "/invites/{invite_id}"
INVITE_ACCEPT = "/invites/{code}/accept"

# =============================================================================
# Cache Namespaces
# =============================================================================

NS_SEASONS = "seasons"
NS_SEASON_DASHBOARD = "season-dashboard"
NS_SEASON_BADGES = "season-badges"
NS_SEASON_SCHEDULE = "season-schedule"
NS_SEASON_TEAMS = "season-teams"
NS_SEASON_TIERLIST = "season-tierlist"
NS_COACHES = "coaches"
NS_CROSSTABLE = "crosstable"
NS_COACH_PROFILE = "coach-profile"
NS_COACH_SEASON_DETAILS = "coach-season-details"
NS_MVPS = "mvps"
NS_BADGES = "badges"
NS_POKEMON_STATS = "pokemon-career-stats"
NS_ORGANIZATIONS = "organizations"
NS_ORGANIZATION_LEAGUES = "organization-leagues"
NS_INVITES = "invites"

# =============================================================================
# Endpoint Helper Functions
# =============================================================================


def _segment(value: object) -> str:
    """Percent-encode a value for use as a single path segment."""
    return quote(str(value), safe="")


def get_season_url(template: str, season_id: str | int) -> str:
    """Fill a season-level template."""
    return template.format(season_id=_segment(season_id))


def get_season_team_url(season_id: str | int, team_id: str | int) -> str:
    """Get URL for a single season team."""
    return SEASON_TEAM.format(season_id=_segment(season_id), team_id=_segment(team_id))


def get_coach_profile_url(name: str) -> str:
    """Get URL for a coach profile looked up by name."""
    return COACH_PROFILE_BY_NAME.format(name=_segment(name))


def get_coach_season_details_url(coach_id: str | int, season_id: str | int) -> str:
    """Get URL for a coach's details in one season."""
    return COACH_SEASON_DETAILS.format(
        coach_id=_segment(coach_id), season_id=_segment(season_id)
    )


def get_organization_leagues_url(organization_id: str | int) -> str:
    """Get URL for the leagues of an organization."""
    return ORGANIZATION_LEAGUES.format(organization_id=_segment(organization_id))


def get_invite_url(invite_id: str | int) -> str:
    """Get URL for a single invite."""
    return INVITE.format(invite_id=_segment(invite_id))


def get_invite_accept_url(code: str) -> str:
    """Get URL for accepting an invite."""
    return INVITE_ACCEPT.format(code=_segment(code))
