from pathlib import Path
from typing import Any

import envyaml
from pydantic import BaseModel
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict, YamlConfigSettingsSource
from pydantic_settings.sources.types import DEFAULT_PATH, PathType

APP_NAME = "copernicus-cli"

# Copernicus Data Space Ecosystem endpoints
DEFAULT_TOKEN_URL = "https://identity.dataspace.copernicus.eu/auth/realms/CDSE/protocol/openid-connect/token"
DEFAULT_CLIENT_ID = "cdse-public"
DEFAULT_SEARCH_URL = "https://catalogue.dataspace.copernicus.eu/stac/search"
DEFAULT_LIST_URL = "https://catalogue.dataspace.copernicus.eu/stac/collections/{collection}/items"
DEFAULT_COLLECTION = "SENTINEL-2"

# Product hrefs point at the catalogue host, bytes are only served by the download host
DEFAULT_HREF_PATTERN = r"^(https?://)catalogue\."
DEFAULT_HREF_REPLACEMENT = r"\1download."

DEFAULT_API_TIMEOUT_SECONDS = 60
DEFAULT_DOWNLOAD_TIMEOUT_SECONDS = 86_400
DEFAULT_CHUNK_SIZE = 1024 * 1024  # 1MB


class EnvYamlConfigSettingsSource(YamlConfigSettingsSource):
    def __init__(
        self,
        settings_cls: type[BaseSettings],
        *,
        yaml_file: PathType | None = DEFAULT_PATH,
        yaml_file_encoding: str | None = None,
        yaml_config_section: str | None = None,
        env_file: Path | str | None = None,
    ):
        self.env_file = env_file or settings_cls.model_config.get("env_file")
        super().__init__(
            settings_cls,
            yaml_file=yaml_file,
            yaml_file_encoding=yaml_file_encoding,
            yaml_config_section=yaml_config_section,
        )

    def _read_file(self, file_path: Path) -> dict[str, Any]:
        """Read a YAML file, expanding ${VAR} references from the environment and .env file.

        Args:
            file_path (Path): Path to YAML configuration file

        Returns:
            dict[str, Any]: Parsed configuration data, empty when the file is missing
        """
        if Path(file_path).exists():
            return dict(envyaml.EnvYAML(file_path, self.env_file, flatten=False))
        return {}


class AuthSettings(BaseModel):
    token_url: str = DEFAULT_TOKEN_URL
    client_id: str = DEFAULT_CLIENT_ID


class CatalogueSettings(BaseModel):
    search_url: str = DEFAULT_SEARCH_URL
    list_url: str = DEFAULT_LIST_URL
    default_collection: str = DEFAULT_COLLECTION
    timeout: float = DEFAULT_API_TIMEOUT_SECONDS


class DownloadSettings(BaseModel):
    timeout: float = DEFAULT_DOWNLOAD_TIMEOUT_SECONDS
    chunk_size: int = DEFAULT_CHUNK_SIZE
    # empty pattern disables the href rewrite
    href_pattern: str = DEFAULT_HREF_PATTERN
    href_replacement: str = DEFAULT_HREF_REPLACEMENT


class CopctlSettings(BaseSettings):
    model_config = SettingsConfigDict(
        yaml_file="config.yml",
        env_file=".env",
        env_prefix="COPCTL_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    auth: AuthSettings = AuthSettings()
    catalogue: CatalogueSettings = CatalogueSettings()
    download: DownloadSettings = DownloadSettings()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Precedence: init kwargs, COPCTL_* environment, .env, config.yml, secrets."""
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            EnvYamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )


_instance: CopctlSettings | None = None


def get_settings(**kwargs: Any) -> CopctlSettings:
    """Settings shared by the CLI commands, created on first use."""
    global _instance
    if _instance is None:
        _instance = CopctlSettings(**kwargs)
    return _instance


def reset_settings() -> None:
    global _instance
    _instance = None
