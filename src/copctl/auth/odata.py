import logging

import requests
from pydantic import ValidationError

from copctl.auth.base import Authenticator, Clock
from copctl.config import DEFAULT_CLIENT_ID, DEFAULT_TOKEN_URL
from copctl.errors import AuthTransportError, MissingCredentialError, ProviderRejectedError
from copctl.model import AuthToken, Credentials

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30


class ODataAuthenticator(Authenticator):
    """Handles OAuth2 authentication for Copernicus Data Space Ecosystem"""

    def __init__(
        self,
        token_url: str = DEFAULT_TOKEN_URL,
        client_id: str = DEFAULT_CLIENT_ID,
        session: requests.Session | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        clock: Clock | None = None,
    ):
        super().__init__(clock=clock)
        if not token_url or not client_id:
            raise ValueError("Token URL and client ID must be set")
        self.token_url = token_url
        self.client_id = client_id
        self.session = session or requests.Session()
        self.timeout = timeout

    def authenticate(self, credentials: Credentials) -> AuthToken:
        """Authenticate with username/password and get a new token.

        Incomplete credentials are not rejected here: an empty form is sent and
        the provider's refusal is reported as `MissingCredentialError`.
        """
        if credentials.is_complete:
            data = {
                "client_id": self.client_id,
                "grant_type": "password",
                "username": credentials.user,
                "password": credentials.password,
            }
        else:
            log.warning("No complete credentials available, the identity provider will likely refuse the request")
            data = {}
        try:
            return self._request_token(data)
        except ProviderRejectedError as e:
            if not credentials.is_complete:
                raise MissingCredentialError(e.status, e.body) from e
            raise

    def refresh(self, token: AuthToken) -> AuthToken:
        """Refresh the access token using the refresh token"""
        data = {
            "client_id": self.client_id,
            "grant_type": "refresh_token",
            "refresh_token": token.refresh_token,
        }
        return self._request_token(data)

    def _request_token(self, data: dict[str, str]) -> AuthToken:
        grant = data.get("grant_type", "none")
        log.debug("Requesting token from %s (grant: %s)", self.token_url, grant)
        try:
            response = self.session.post(
                self.token_url,
                data=data,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise AuthTransportError(f"Authentication request failed: {e}") from e

        if not response.ok:
            raise ProviderRejectedError(response.status_code, response.text)

        try:
            token = AuthToken.model_validate_json(response.text)
        except ValidationError as e:
            raise AuthTransportError(f"Unreadable token response: {e}") from e

        # the acquisition time is ours, whatever the payload says
        token = token.model_copy(update={"acquired_at": self.now()})
        log.info("Successfully obtained token (grant: %s)", grant)
        return token
