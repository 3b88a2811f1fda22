"""
Auth Token Store.

Holds the bearer token and the last fetched user profile, mirroring the
token into durable storage so it survives a reload.
"""

import logging
from typing import Callable

from ..data.models import UserProfile
from .storage import KeyValueStore

logger = logging.getLogger(__name__)

TOKEN_KEY = "mpl_token"

TokenListener = Callable[[str], None]


class TokenStore:
    """
    Bearer token holder.

    Subscribers are notified whenever the token actually changes; the
    client uses this to reset the session cache and league context.
    """

    def __init__(self, storage: KeyValueStore, key: str = TOKEN_KEY):
        """
        Initialize the store, loading any persisted token.

        Args:
            storage: Durable key-value store
            key: Storage key for the token
        """
        self._storage = storage
        self._key = key
        self._token: str = storage.get(key) or ""
        self._profile: UserProfile | None = None
        self._listeners: list[TokenListener] = []

        if self._token:
            logger.debug("Loaded token from storage")

    @property
    def token(self) -> str:
        return self._token

    @property
    def profile(self) -> UserProfile | None:
        """Last profile returned by /auth/me."""
        return self._profile

    @property
    def is_authenticated(self) -> bool:
        return bool(self._token)

    def get_token(self) -> str:
        """Get the current token ("" when signed out)."""
        return self._token

    def set_token(self, value: str | None) -> None:
        """
        Replace the token.

        A changed token is persisted (removed when empty) and announced to
        every subscriber. Setting the same value again is a no-op.
        """
        new = value or ""
        if new == self._token:
            return

        self._token = new
        if new:
            self._storage.set(self._key, new)
        else:
            self._storage.remove(self._key)

        logger.info("Token set" if new else "Token cleared")
        for listener in list(self._listeners):
            listener(new)

    def set_profile(self, profile: UserProfile | None) -> None:
        self._profile = profile

    def clear(self) -> None:
        """Sign out: drop the token and the cached profile."""
        self.set_token("")
        self._profile = None

    def subscribe(self, listener: TokenListener) -> Callable[[], None]:
        """
        Register a token-change listener.

        Returns:
            Function removing the listener again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe
