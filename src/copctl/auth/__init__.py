"""Authentication against the Copernicus Data Space identity provider.

- Authenticator: token lifecycle (reuse, refresh or reacquire a cached token)
- ODataAuthenticator: OAuth2 password and refresh_token grants
"""

from copctl.auth.base import AuthState, Authenticator, classify
from copctl.auth.odata import ODataAuthenticator

__all__ = ["AuthState", "Authenticator", "ODataAuthenticator", "classify"]
