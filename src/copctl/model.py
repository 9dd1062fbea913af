import os
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field

from copctl.extract import JSONValue

# Environment variables holding the account credentials
ENV_USER_NAME = "COPERNICUS_USER"
ENV_PASS_NAME = "COPERNICUS_PASS"
# Value shipped in the .env template, never a real account
PLACEHOLDER_USER = "FAKE_USER"

# Asset members of catalogue features
PRODUCT_HREF_PATH = ("assets", "PRODUCT", "href")
QUICKLOOK_HREF_PATH = ("assets", "QUICKLOOK", "href")

UInt16 = Annotated[int, Field(ge=0, le=65535)]


class Credentials(BaseModel):
    """Account credentials, only ever used to mint a new token."""

    user: str | None = None
    password: str | None = Field(default=None, alias="pass")

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @classmethod
    def from_env(cls) -> "Credentials":
        return cls(user=os.getenv(ENV_USER_NAME), password=os.getenv(ENV_PASS_NAME))

    @property
    def is_complete(self) -> bool:
        return bool(self.user) and bool(self.password)

    @property
    def is_placeholder(self) -> bool:
        return self.user == PLACEHOLDER_USER

    def __repr__(self) -> str:
        return f"Credentials(user={self.user!r}, password={'***' if self.password else None})"

    __str__ = __repr__


class AuthToken(BaseModel):
    """Token issued by the identity provider.

    `acquired_at` is stamped from the local clock when the token is accepted and
    is never taken from the server payload.
    """

    model_config = ConfigDict(populate_by_name=True)

    acquired_at: int = 0
    access_token: str
    expires_in: int
    refresh_token: str
    refresh_expires_in: int
    token_type: str
    not_before_policy: int = Field(default=0, alias="not-before-policy")
    session_state: str = ""
    scope: str = ""

    @property
    def expires_at(self) -> int:
        return self.acquired_at + self.expires_in

    @property
    def refresh_expires_at(self) -> int:
        return self.acquired_at + self.refresh_expires_in

    @property
    def auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.access_token}"}

    def __repr__(self) -> str:
        return (
            f"AuthToken(acquired_at={self.acquired_at}, expires_in={self.expires_in}, "
            f"refresh_expires_in={self.refresh_expires_in})"
        )

    __str__ = __repr__


class QueryFilter(BaseModel):
    """User filters for the search and list endpoints. Absent fields are omitted."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    ids: str | None = None
    collections: str | None = None
    bbox: str | None = None
    start: datetime | None = Field(default=None, alias="from")
    end: datetime | None = Field(default=None, alias="to")
    sortby: str | None = None
    limit: UInt16 | None = None
    page: UInt16 | None = None


class Feature(BaseModel):
    """One GeoJSON-like record of a feature collection.

    Members other than `id`, `bbox` and `properties` (assets, links, geometry...)
    are kept as-is and exposed through `members`.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    id: str | int | float | None = None
    bbox: list[float] | None = None
    properties: dict[str, Any] | None = None

    @property
    def members(self) -> dict[str, JSONValue]:
        return dict(self.model_extra or {})

    @property
    def display_id(self) -> str | None:
        if self.id is None:
            return None
        if isinstance(self.id, float) and self.id.is_integer():
            return str(int(self.id))
        return str(self.id)


class FeatureCollection(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True)

    features: list[Feature]


class DownloadResult(BaseModel):
    destination_path: Path
    bytes_written: int

    def __str__(self) -> str:
        return f"{self.destination_path} ({self.bytes_written} bytes)"


class ProgressEventType(Enum):
    TASK_CREATED = "task_created"
    TASK_DURATION = "task_duration"
    TASK_PROGRESS = "task_progress"
    TASK_COMPLETED = "task_completed"


class ProgressEvent(BaseModel):
    type: ProgressEventType
    task_id: str
    data: dict[str, Any]
