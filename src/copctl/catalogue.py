import json
import logging

import requests
from pydantic import ValidationError

from copctl.config import DEFAULT_API_TIMEOUT_SECONDS, DEFAULT_LIST_URL, DEFAULT_SEARCH_URL
from copctl.errors import MalformedResponseError, TransportError
from copctl.model import AuthToken, FeatureCollection, QueryFilter
from copctl.query import attach_query, build_query, with_collection

log = logging.getLogger(__name__)


class CatalogueClient:
    """Client for the STAC catalogue of the Copernicus Data Space Ecosystem.

    Every call is a single authenticated GET, nothing is retried.
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        search_url: str = DEFAULT_SEARCH_URL,
        list_url: str = DEFAULT_LIST_URL,
        timeout: float = DEFAULT_API_TIMEOUT_SECONDS,
    ):
        self.session = session or requests.Session()
        self.search_url = search_url
        self.list_url = list_url
        self.timeout = timeout

    def search(self, params: QueryFilter, token: AuthToken) -> FeatureCollection:
        """Query the cross-collection search endpoint.

        Args:
            params (QueryFilter): filters, `collections` included
            token (AuthToken): valid token

        Raises:
            TransportError: when no response could be read
            MalformedResponseError: when the body is not a feature collection

        Returns:
            FeatureCollection: matching features
        """
        url = attach_query(self.search_url, build_query(params, include_collections=True))
        return self._get_collection(url, token)

    def list_items(self, params: QueryFilter, token: AuthToken, collection: str | None) -> FeatureCollection:
        """Query the items of a single collection.

        Raises:
            TemplateError: when the list URL cannot be expanded with `collection`
        """
        base_url = with_collection(self.list_url, collection)
        url = attach_query(base_url, build_query(params, include_collections=False))
        return self._get_collection(url, token)

    def _get_collection(self, url: str, token: AuthToken) -> FeatureCollection:
        log.info("Requesting %s", url)
        try:
            response = self.session.get(url, headers=token.auth_headers, timeout=self.timeout)
            body = response.text
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Catalogue request to {url} failed: {e}") from e
        log.debug("Response (HTTP %s): %s", response.status_code, body)
        return parse_feature_collection(body, status=response.status_code)


def parse_feature_collection(body: str, status: int | None = None) -> FeatureCollection:
    """Parse a response body into a feature collection.

    Raises:
        TransportError: when the body is not JSON at all
        MalformedResponseError: when it is JSON but not shaped like a feature collection
    """
    prefix = f"HTTP {status}: " if status is not None else ""
    try:
        document = json.loads(body)
    except json.JSONDecodeError as e:
        raise TransportError(f"{prefix}catalogue returned a non-JSON response ({e}): {body[:500]}") from e
    try:
        return FeatureCollection.model_validate(document)
    except ValidationError as e:
        raise MalformedResponseError(f"{prefix}unexpected catalogue response: {e}", body=body) from e
