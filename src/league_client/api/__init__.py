"""
League API Integration Module.

Provides the cached, league-scoped client for the league management API.
"""

from .auth import TokenStore
from .cache import ANY, CacheEntry, CacheKey, KeyPattern, SessionCache
from .client import LeagueClient, SyncLeagueClient
from .errors import (
    AuthenticationError,
    HTTPError,
    InvalidLeagueArgumentError,
    LeagueAPIError,
    LeagueValidationError,
    NoActiveLeagueError,
    TransportError,
)
from .gateway import AuthFailure, HttpFailure, RequestGateway, Success
from .league import (
    Absent,
    Explicit,
    LeagueBits,
    LeagueContextStore,
    PrimitiveId,
    league_arg,
    league_key,
    normalize,
)
from .storage import FileStore, KeyValueStore, MemoryStore

__all__ = [
    # Client
    "LeagueClient",
    "SyncLeagueClient",
    "RequestGateway",
    "Success",
    "HttpFailure",
    "AuthFailure",
    # Cache
    "SessionCache",
    "CacheEntry",
    "CacheKey",
    "KeyPattern",
    "ANY",
    # Stores
    "TokenStore",
    "LeagueContextStore",
    "KeyValueStore",
    "MemoryStore",
    "FileStore",
    # League scope
    "Absent",
    "PrimitiveId",
    "Explicit",
    "LeagueBits",
    "league_arg",
    "league_key",
    "normalize",
    # Errors
    "LeagueAPIError",
    "LeagueValidationError",
    "InvalidLeagueArgumentError",
    "NoActiveLeagueError",
    "HTTPError",
    "AuthenticationError",
    "TransportError",
]
