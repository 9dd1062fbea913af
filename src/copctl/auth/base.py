import logging
import time
from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable

from copctl.errors import AuthTransportError
from copctl.model import AuthToken, Credentials

log = logging.getLogger(__name__)

Clock = Callable[[], float]


class AuthState(Enum):
    VALID = "valid"
    NEEDS_REFRESH = "needs_refresh"
    NEEDS_REAUTHENTICATION = "needs_reauthentication"


def classify(token: AuthToken, now: float) -> AuthState:
    """Decide what a cached token is still good for at time `now` (epoch seconds).

    A token is usable until `acquired_at + expires_in`, and refreshable until
    `acquired_at + refresh_expires_in`. Any other combination, including a refresh
    window closing before the access window, requires a new login.
    """
    is_expired = now > token.expires_at
    is_refresh_expired = now > token.refresh_expires_at
    if not is_expired and not is_refresh_expired:
        return AuthState.VALID
    if is_expired and not is_refresh_expired:
        return AuthState.NEEDS_REFRESH
    return AuthState.NEEDS_REAUTHENTICATION


class Authenticator(ABC):
    """
    Base authenticator: decides whether a cached token can be reused, refreshed
    or must be reacquired, and delegates the provider calls to subclasses.

    Tokens are passed in and returned by value, persisting them is up to the caller.
    """

    def __init__(self, clock: Clock | None = None):
        self.clock = clock or time.time

    @abstractmethod
    def authenticate(self, credentials: Credentials) -> AuthToken:
        """Acquire a brand new token from user credentials."""
        ...

    @abstractmethod
    def refresh(self, token: AuthToken) -> AuthToken:
        """Exchange the refresh token of `token` for a new token."""
        ...

    def now(self) -> int:
        try:
            return int(self.clock())
        except (OSError, OverflowError, ValueError) as e:
            raise AuthTransportError(f"Unable to read the system clock: {e}") from e

    def state(self, token: AuthToken) -> AuthState:
        return classify(token, self.now())

    def ensure_valid(self, token: AuthToken | None, credentials: Credentials) -> AuthToken:
        """Return a token that can be used right now.

        Args:
            token (AuthToken | None): cached token, if any
            credentials (Credentials): used only when a new login is required

        Returns:
            AuthToken: `token` itself when still valid, otherwise a new one
        """
        if token is None:
            log.debug("Auth: no cached token, authenticating")
            return self.authenticate(credentials)

        state = self.state(token)
        if state == AuthState.VALID:
            log.debug("Auth: existing token ok, reusing")
            return token
        if state == AuthState.NEEDS_REFRESH:
            log.debug("Auth: token expired, refreshing")
            return self.refresh(token)
        log.debug("Auth: refresh window closed, reacquiring")
        return self.authenticate(credentials)
