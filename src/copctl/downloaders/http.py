import logging
from pathlib import Path

import requests
from urllib3.exceptions import HTTPError as Urllib3HTTPError
from urllib3.exceptions import ReadTimeoutError

from copctl.config import DEFAULT_CHUNK_SIZE, DEFAULT_DOWNLOAD_TIMEOUT_SECONDS
from copctl.downloaders.base import DEFAULT_REWRITE, Downloader, HrefRewrite
from copctl.errors import DownloadError, DownloadTimeoutError, ServerRejectedError, WriteFailedError
from copctl.model import AuthToken, DownloadResult, Feature, ProgressEventType
from copctl.progress.events import emit_event

log = logging.getLogger(__name__)


def _is_timeout(error: Exception) -> bool:
    # requests re-raises read timeouts hit while streaming as ConnectionError
    if isinstance(error, (requests.exceptions.Timeout, ReadTimeoutError, TimeoutError)):
        return True
    if isinstance(error, requests.exceptions.ConnectionError):
        return any(isinstance(arg, ReadTimeoutError) for arg in error.args)
    return False


def _content_length(headers) -> int | None:
    # compressed bodies are counted after decoding, the header does not apply
    if "Content-Length" not in headers or "Content-Encoding" in headers:
        return None
    try:
        return int(headers["Content-Length"])
    except ValueError:
        log.warning("Ignoring invalid Content-Length header: %r", headers["Content-Length"])
        return None


class HTTPDownloader(Downloader):
    """Streams product archives over HTTP with bearer authentication.

    Nothing is retried. When the transfer breaks, the partial file stays on disk
    and the raised error tells how many bytes it holds.
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        rewrite: HrefRewrite | None = DEFAULT_REWRITE,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        timeout: float = DEFAULT_DOWNLOAD_TIMEOUT_SECONDS,
    ):
        super().__init__(rewrite=rewrite)
        self.session = session or requests.Session()
        self.chunk_size = chunk_size
        self.timeout = timeout

    def fetch(self, feature: Feature, token: AuthToken, output_dir: Path) -> DownloadResult:
        item_id, url = self.resolve(feature)
        destination = self.destination_for(item_id, output_dir)
        task_id = f"download_{item_id}"

        log.debug("Downloading resource %s into: %s", url, destination)
        emit_event(ProgressEventType.TASK_CREATED, task_id=task_id, description=destination.name)
        try:
            bytes_written = self._stream_to_file(url, token, destination, task_id)
        except DownloadError as e:
            emit_event(ProgressEventType.TASK_COMPLETED, task_id=task_id, success=False, description=str(e))
            raise

        log.debug("Successfully downloaded %s (%s bytes)", url, bytes_written)
        emit_event(ProgressEventType.TASK_COMPLETED, task_id=task_id, success=True)
        return DownloadResult(destination_path=destination, bytes_written=bytes_written)

    def _stream_to_file(self, url: str, token: AuthToken, destination: Path, task_id: str) -> int:
        try:
            response = self.session.get(url, headers=token.auth_headers, stream=True, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            if _is_timeout(e):
                raise DownloadTimeoutError(None, 0, str(e)) from e
            raise DownloadError(f"Download request to {url} failed: {e}") from e

        with response:
            if not response.ok:
                raise ServerRejectedError(response.status_code, url)

            total_size = _content_length(response.headers)
            if total_size is not None:
                emit_event(ProgressEventType.TASK_DURATION, task_id=task_id, duration=total_size)

            bytes_written = 0
            try:
                with open(destination, "wb") as f:
                    # read1 hands over whatever has arrived, so bytes received before a drop reach the file
                    while chunk := response.raw.read1(self.chunk_size, decode_content=True):
                        f.write(chunk)
                        bytes_written += len(chunk)
                        emit_event(ProgressEventType.TASK_PROGRESS, task_id=task_id, advance=len(chunk))
            except (requests.exceptions.RequestException, Urllib3HTTPError, OSError) as e:
                log.error("Download of %s stopped after %d bytes: %s", url, bytes_written, e)
                if _is_timeout(e):
                    raise DownloadTimeoutError(destination, bytes_written, str(e)) from e
                raise WriteFailedError(destination, bytes_written, str(e)) from e

        if total_size is not None and bytes_written < total_size:
            raise WriteFailedError(destination, bytes_written, f"expected {total_size} bytes")
        return bytes_written

    def close(self) -> None:
        if self.session:
            self.session.close()
