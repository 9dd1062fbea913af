import logging

import requests
from requests.adapters import HTTPAdapter

from copctl.progress import ProgressReporter

DEFAULT_POOL_CONNECTIONS = 4
DEFAULT_POOL_MAX_SIZE = 2
USER_AGENT = "copctl"


def setup_logging(
    log_level: str,
    reporter_cls: type[ProgressReporter] | None,
    suppressions: dict[str, list[str]] | None = None,
) -> None:
    """Configure logging, optionally using the reporter's configuration.

    Args:
        log_level (str): which log level (e.g., DEBUG, INFO, WARNING).
        reporter_cls (type[ProgressReporter] | None): Optional reporter class to get the config from.
        suppressions (dict[str, list[str]] | None, optional): Additional user-provided suppressions. Defaults to None.
    """
    config = reporter_cls.logging_config() if reporter_cls else ProgressReporter.logging_config()
    suppressions = suppressions or {}
    # apply config
    logging.basicConfig(
        level=log_level.upper(),
        format=config.format,
        handlers=config.handlers,
        force=True,  # reconfigure if already configured
    )
    # apply suppressions by level
    for level_name, loggers in suppressions.items():
        suppress_level = getattr(logging, level_name.upper())
        for logger_name in loggers:
            logging.getLogger(logger_name).setLevel(suppress_level)


def create_session(
    pool_connections: int = DEFAULT_POOL_CONNECTIONS,
    pool_maxsize: int = DEFAULT_POOL_MAX_SIZE,
) -> requests.Session:
    """Create the HTTP session shared by the catalogue client and the downloader.

    The adapter never retries, failed requests surface to the caller.
    """
    session = requests.Session()
    adapter = HTTPAdapter(pool_connections=pool_connections, pool_maxsize=pool_maxsize, max_retries=0)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    session.headers["User-Agent"] = USER_AGENT
    return session
