import logging
import os
from pathlib import Path

import typer
from pydantic import BaseModel, ValidationError

from copctl.config import APP_NAME
from copctl.model import AuthToken

log = logging.getLogger(__name__)

CONFIG_VERSION = 1
CONFIG_FILENAME = "config.json"


class StoredConfig(BaseModel):
    version: int = CONFIG_VERSION
    auth_token: AuthToken | None = None


class ConfigStore:
    """Persists the cached token between invocations, one JSON file per application."""

    def __init__(self, app_name: str = APP_NAME, path: Path | None = None):
        self.app_name = app_name
        self.path = path or Path(typer.get_app_dir(app_name)) / CONFIG_FILENAME

    def load(self) -> StoredConfig:
        """Load the stored configuration.

        A missing file gives the default configuration. So does an unreadable one:
        it only holds a cache, a warning is logged and a new login happens.
        """
        if not self.path.exists():
            log.debug("No stored configuration at %s", self.path)
            return StoredConfig()
        try:
            return StoredConfig.model_validate_json(self.path.read_text())
        except (OSError, ValidationError) as e:
            log.warning("Ignoring unreadable configuration %s: %s", self.path, e)
            return StoredConfig()

    def save(self, config: StoredConfig) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # holds a bearer token, owner-only before anything is written
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        self.path.chmod(0o600)
        with os.fdopen(fd, "w") as f:
            f.write(config.model_dump_json(indent=2, by_alias=True))
        log.debug("Stored configuration in %s", self.path)
