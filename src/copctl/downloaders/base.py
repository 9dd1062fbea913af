import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from copctl.config import DEFAULT_HREF_PATTERN, DEFAULT_HREF_REPLACEMENT
from copctl.errors import MissingIdError, MissingProductHrefError, UnsafeIdError
from copctl.extract import extract_str
from copctl.model import PRODUCT_HREF_PATH, AuthToken, DownloadResult, Feature

PRODUCT_EXTENSION = ".zip"

_UNSAFE_ID_CHARS = ("/", "\\", "\x00")


@dataclass(frozen=True)
class HrefRewrite:
    """Regex substitution applied to product hrefs before downloading.

    Catalogue items point at the `catalogue` host while the bytes are served by
    the `download` host.
    """

    pattern: str
    replacement: str

    def apply(self, href: str) -> str:
        return re.sub(self.pattern, self.replacement, href)


# catalogue.dataspace... -> download.dataspace...
DEFAULT_REWRITE = HrefRewrite(pattern=DEFAULT_HREF_PATTERN, replacement=DEFAULT_HREF_REPLACEMENT)


class Downloader(ABC):
    """Abstract base class for product downloaders."""

    def __init__(self, rewrite: HrefRewrite | None = DEFAULT_REWRITE) -> None:
        """Initialize downloader.

        Args:
            rewrite (HrefRewrite | None): rule applied to product hrefs, None to use them as-is.
                Defaults to the catalogue to download host rewrite.
        """
        super().__init__()
        self.rewrite = rewrite

    def resolve(self, feature: Feature) -> tuple[str, str]:
        """Find the identifier and the download URL of a feature.

        Raises:
            MissingIdError: the feature has no string or numeric id
            UnsafeIdError: the id would escape the output directory
            MissingProductHrefError: the feature has no product asset

        Returns:
            tuple[str, str]: display id and (rewritten) product URL
        """
        item_id = feature.display_id
        if item_id is None:
            raise MissingIdError("Unable to download feature: it has no id")
        if item_id in ("", ".", "..") or any(char in item_id for char in _UNSAFE_ID_CHARS):
            raise UnsafeIdError(f"Refusing to download feature with id {item_id!r}: not a plain file name")
        href = extract_str(PRODUCT_HREF_PATH, feature.members)
        if href is None:
            raise MissingProductHrefError(f"Unable to download {item_id}: no {'.'.join(PRODUCT_HREF_PATH)} member")
        if self.rewrite is not None:
            href = self.rewrite.apply(href)
        return item_id, href

    @staticmethod
    def destination_for(item_id: str, output_dir: Path) -> Path:
        return output_dir / f"{item_id}{PRODUCT_EXTENSION}"

    @abstractmethod
    def fetch(self, feature: Feature, token: AuthToken, output_dir: Path) -> DownloadResult:
        """Download the product of `feature` into `output_dir`.

        Args:
            feature (Feature): catalogue feature with an `assets.PRODUCT.href` member
            token (AuthToken): valid token
            output_dir (Path): existing directory receiving `<id>.zip`

        Returns:
            DownloadResult: where the product was written and how many bytes
        """
        ...

    @abstractmethod
    def close(self) -> None:
        """Close downloader and release resources."""
        ...
