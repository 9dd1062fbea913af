"""Exception hierarchy for copctl.

Every error raised by the library derives from `CopctlError`, so the CLI can
catch a single type at the invocation boundary. Nothing in the library retries.
"""

from pathlib import Path


class CopctlError(Exception):
    """Base class for all copctl errors."""


# ============================================================================
# Authentication
# ============================================================================


class AuthError(CopctlError):
    """Raised when a usable access token cannot be obtained."""


class ProviderRejectedError(AuthError):
    """The identity provider answered with a non-success status."""

    def __init__(self, status: int, body: str):
        super().__init__(f"Identity provider rejected the request (HTTP {status}): {body}")
        self.status = status
        self.body = body


class MissingCredentialError(ProviderRejectedError):
    """The provider rejected a request sent without user and password."""

    def __init__(self, status: int, body: str):
        super().__init__(status, body)
        self.args = (
            f"Identity provider rejected the request (HTTP {status}): no credentials were "
            "available, set COPERNICUS_USER and COPERNICUS_PASS",
        )


class AuthTransportError(AuthError):
    """Network failure, clock failure or unreadable token payload."""


# ============================================================================
# Catalogue API
# ============================================================================


class ApiError(CopctlError):
    """Raised when the catalogue cannot be queried."""


class TransportError(ApiError):
    """The request never produced a readable response."""


class MalformedResponseError(ApiError):
    """The response body is not a feature collection.

    The raw body is kept since the upstream schema is not guaranteed.
    """

    def __init__(self, message: str, body: str):
        super().__init__(message)
        self.body = body


class TemplateError(CopctlError, ValueError):
    """A collection URL template could not be expanded."""


# ============================================================================
# Downloads
# ============================================================================


class DownloadError(CopctlError):
    """Raised when a product cannot be saved to disk."""


class MissingIdError(DownloadError):
    """The feature carries no usable identifier."""


class UnsafeIdError(DownloadError):
    """The feature id cannot be used as a file name inside the output directory."""


class MissingProductHrefError(DownloadError):
    """The feature has no `assets.PRODUCT.href` member."""


class ServerRejectedError(DownloadError):
    def __init__(self, status: int, url: str):
        super().__init__(f"Download server rejected {url} (HTTP {status})")
        self.status = status
        self.url = url


class PartialDownloadError(DownloadError):
    """Base for failures that happen while the response body is transferred.

    Any partial file is left on disk; `bytes_written` tells how much of it is valid.
    """

    reason = "download interrupted"

    def __init__(self, path: Path | None, bytes_written: int, cause: str = ""):
        if path is None:
            message = f"{self.reason} before the destination file was created"
        else:
            message = f"{self.reason} after {bytes_written} bytes, partial file left at {path}"
        if cause:
            message = f"{message} ({cause})"
        super().__init__(message)
        self.path = path
        self.bytes_written = bytes_written


class DownloadTimeoutError(PartialDownloadError):
    reason = "download timed out"


class WriteFailedError(PartialDownloadError):
    reason = "download stopped"
