"""Pytest configuration and shared fixtures."""

import logging
import os

import pytest
from dotenv import load_dotenv

log = logging.getLogger(__name__)

# Integration tests read their credentials from .env
load_dotenv()

# Fixed "now" used by every test clock (2023-11-14T22:13:20Z)
NOW = 1_700_000_000


def pytest_addoption(parser):
    parser.addoption("--slow", action="store", default=False, help="Run slow tests")


def pytest_collection_modifyitems(config, items):
    if config.getoption("--slow"):
        # --slow given in cli: do not skip slow tests
        return
    skip_slow = pytest.mark.skip(reason="Marked as slow, skipping")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


@pytest.fixture(scope="session")
def copernicus_config():
    """Provide Copernicus endpoint constants."""
    return {
        "token_url": "https://identity.dataspace.copernicus.eu/auth/realms/CDSE/protocol/openid-connect/token",
        "client_id": "cdse-public",
        "search_url": "https://catalogue.dataspace.copernicus.eu/stac/search",
        "list_url": "https://catalogue.dataspace.copernicus.eu/stac/collections/{collection}/items",
    }


@pytest.fixture(scope="session")
def copernicus_credentials():
    """Provide Copernicus credentials from environment."""
    from copctl.model import Credentials

    credentials = Credentials.from_env()
    if not credentials.is_complete or credentials.is_placeholder:
        pytest.skip("COPERNICUS_USER and COPERNICUS_PASS must be set in .env")
    return credentials


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def clock(now):
    return lambda: now


@pytest.fixture
def token_payload():
    """Token response body, as sent by the identity provider."""
    return {
        "access_token": "new-access-token",
        "expires_in": 600,
        "refresh_expires_in": 3600,
        "refresh_token": "new-refresh-token",
        "token_type": "Bearer",
        "not-before-policy": 0,
        "session_state": "4f3c9a0e-session",
        "scope": "AUDIENCE_PUBLIC openid email profile",
    }


@pytest.fixture
def make_token():
    """Factory for cached tokens."""
    from copctl.model import AuthToken

    def _make(acquired_at: int = NOW, expires_in: int = 600, refresh_expires_in: int = 3600, **kwargs):
        fields = {
            "access_token": "cached-access-token",
            "refresh_token": "cached-refresh-token",
            "token_type": "Bearer",
            "session_state": "cached-session",
            "scope": "openid",
        }
        fields.update(kwargs)
        return AuthToken(
            acquired_at=acquired_at,
            expires_in=expires_in,
            refresh_expires_in=refresh_expires_in,
            **fields,
        )

    return _make


@pytest.fixture
def feature_document():
    """A catalogue feature with every member the formatter and downloader read."""
    return {
        "type": "Feature",
        "stac_version": "1.0.0",
        "id": "S2A_MSIL2A_20240101T101421_N0510_R022_T32TQM_20240101T121015",
        "bbox": [12.0, 41.5, 13.25, 42.5],
        "geometry": None,
        "properties": {
            "platformShortName": "SENTINEL-2",
            "platformSerialIdentifier": "A",
            "productType": "S2MSI2A",
            "cloudCover": 12.5,
            "datetime": "2024-01-01T10:14:21.024000Z",
        },
        "assets": {
            "PRODUCT": {
                "href": "https://catalogue.dataspace.copernicus.eu/odata/v1/Products(8a1c)/$value",
                "type": "application/octet-stream",
            },
            "QUICKLOOK": {
                "href": "https://catalogue.dataspace.copernicus.eu/odata/v1/Assets(77ef)/$value",
                "type": "image/jpeg",
            },
        },
    }


@pytest.fixture
def feature(feature_document):
    from copctl.model import Feature

    return Feature.model_validate(feature_document)


@pytest.fixture
def temp_download_dir(tmp_path):
    """Provide a temporary directory for downloads."""
    download_dir = tmp_path / "downloads"
    download_dir.mkdir()
    return download_dir


@pytest.fixture
def captured_events():
    """Collect progress events on a private bus for the duration of a test."""
    from copctl.progress.events import EventBus, use_bus

    bus = EventBus()
    events = []
    bus.subscribe(events.append)
    with use_bus(bus):
        yield events


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Keep user environment overrides out of the settings singleton."""
    from copctl.config import reset_settings

    for name in list(os.environ):
        if name.startswith("COPCTL_"):
            monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()

