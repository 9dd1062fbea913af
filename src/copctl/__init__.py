"""copctl: command-line client for the Copernicus Data Space catalogue.

copctl authenticates against the CDSE identity provider, queries the STAC
catalogue and downloads product archives:
- Cached tokens are reused, refreshed or reacquired as needed
- Search and list filters map onto STAC query strings
- Products are streamed to disk chunk by chunk

Example:
    >>> from pathlib import Path
    >>> from copctl.auth import ODataAuthenticator
    >>> from copctl.catalogue import CatalogueClient
    >>> from copctl.downloaders import HTTPDownloader
    >>> from copctl.model import Credentials, QueryFilter
    >>>
    >>> token = ODataAuthenticator().ensure_valid(None, Credentials.from_env())
    >>> results = CatalogueClient().search(QueryFilter(bbox="12,41,13,42", limit=5), token)
    >>> HTTPDownloader().fetch(results.features[0], token, Path("downloads"))
"""
