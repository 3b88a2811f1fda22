"""
League API error hierarchy.

Every failure surfaced by the data-access layer derives from LeagueAPIError.
"""


class LeagueAPIError(Exception):
    """Base exception for league API errors."""

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class LeagueValidationError(LeagueAPIError):
    """Raised locally, before any network call, for invalid arguments."""

    pass


class InvalidLeagueArgumentError(LeagueValidationError):
    """Raised when a league argument carries neither an id nor a slug."""

    def __init__(self, message: str = "Invalid league argument"):
        super().__init__(message)


class NoActiveLeagueError(LeagueValidationError):
    """Raised when no league argument is given and none is selected."""

    def __init__(self, message: str = "No active league selected"):
        super().__init__(message)


class HTTPError(LeagueAPIError):
    """Raised for any non-2xx, non-204 response."""

    def __init__(self, status_code: int, body: str):
        self.body = body
        super().__init__(f"HTTP {status_code}: {body}", status_code=status_code)


class AuthenticationError(HTTPError):
    """Raised when the API rejects the session token (401)."""

    pass


class TransportError(LeagueAPIError):
    """Raised when the request never produced a response."""

    pass
