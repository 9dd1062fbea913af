"""Product downloaders.

- HTTPDownloader: streams product archives over authenticated HTTP
- HrefRewrite: rule turning catalogue hrefs into download hrefs
"""

from copctl.config import DownloadSettings
from copctl.downloaders.base import Downloader, HrefRewrite
from copctl.downloaders.http import HTTPDownloader

__all__ = ["Downloader", "HTTPDownloader", "HrefRewrite", "rewrite_from_settings"]


def rewrite_from_settings(settings: DownloadSettings) -> HrefRewrite | None:
    if not settings.href_pattern:
        return None
    return HrefRewrite(pattern=settings.href_pattern, replacement=settings.href_replacement)
