"""HTTP implementation of the ArchiveFetcher port."""

import asyncio
from pathlib import Path
from typing import AsyncGenerator, Optional

import httpx
from tqdm import tqdm

from ..application.domain import ArchiveFetcher
from ..application.exceptions import DownloadFailed, StorageError
from ..application.status import StatusBoard

from .base_client import BaseClient

_ARCHIVE_ACCEPT = "application/x-gzip,application/octet-stream"
_MEGABYTE = 1024 * 1024


class HttpArchiveFetcher(BaseClient, ArchiveFetcher):
    """
    A fetcher that streams a patch archive to disk.

    Progress is published to the StatusBoard as a whole percentage of the
    declared Content-Length, and only when that percentage changes.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        timeout: float,
        chunk_size: int,
        status: StatusBoard,
        show_progress: bool = False,
    ):
        """Initializes the fetcher adapter."""
        super().__init__(client, base_url, timeout)
        self.chunk_size = chunk_size
        self.status = status
        self.show_progress = show_progress

    @staticmethod
    def _declared_length(response: httpx.Response) -> Optional[int]:
        """Returns the Content-Length, or None when absent or unusable."""
        try:
            total = int(response.headers.get("content-length", ""))
        except ValueError:
            return None
        return total if total > 0 else None

    async def _stream_chunks(
        self, response: httpx.Response, target_file: Path,
    ) -> AsyncGenerator[int, None]:
        """Write response chunks to a file, yielding the bytes received so far."""
        # Content-Length counts encoded bytes, so an encoded body is measured
        # on the wire rather than by the decoded chunks.
        encoded = response.headers.get("content-encoding", "identity") != "identity"
        received = 0
        with open(target_file, "wb") as f:
            async for chunk in response.aiter_bytes(self.chunk_size):
                await asyncio.to_thread(f.write, chunk)
                received += len(chunk)
                yield response.num_bytes_downloaded if encoded else received

    def _publish_progress(self, received: int, total: Optional[int], last: int) -> int:
        """Push a new percentage to the StatusBoard if it changed."""
        if total is None:
            # Unknown size: hold the bar and report volume instead.
            megabytes = received // _MEGABYTE
            if megabytes != last:
                self.status.update(
                    message=f"Downloading patch data... {megabytes} MB"
                )
            return megabytes

        percent = min(100, received * 100 // total)
        if percent != last:
            self.status.update(
                progress_percent=percent,
                message=f"Downloading patch data... {percent}%",
            )
            self.logger.debug(f"Download progress: {percent}%")
        return percent

    async def _consume_stream_with_progress(
        self,
        stream: AsyncGenerator[int, None],
        total_size: Optional[int],
        desc: str,
    ):
        """Consume the byte stream, updating the status and a TQDM bar."""

        last = 0
        received = 0
        with tqdm(
            total=total_size,
            unit="B",
            unit_scale=True,
            desc=desc,
            disable=not self.show_progress,
        ) as progress_bar:
            async for received in stream:
                progress_bar.update(received - progress_bar.n)
                last = self._publish_progress(received, total_size, last)

        if total_size is not None and received != total_size:
            raise DownloadFailed(
                f"Size mismatch: received {received} of {total_size} bytes"
            )

    async def _stream_from_network(self, url: str, target_file: Path):
        """Manage the network request and the streaming process."""
        try:
            async with self.client.stream(
                "GET",
                url,
                headers=self.browser_headers(accept=_ARCHIVE_ACCEPT),
                timeout=self.timeout,
                follow_redirects=True,
            ) as response:
                if not response.is_success:
                    raise DownloadFailed(
                        f"Failed to download {url}: "
                        f"{response.status_code} {response.reason_phrase}",
                        status=response.status_code,
                    )
                total_size = self._declared_length(response)
                self.logger.info(
                    f"Total archive size: "
                    f"{total_size if total_size is not None else 'unknown'} bytes"
                )
                stream = self._stream_chunks(response, target_file)
                await self._consume_stream_with_progress(
                    stream, total_size, target_file.name
                )
        except httpx.HTTPError as e:
            raise DownloadFailed(
                f"Transfer of {url} failed: {type(e).__name__}: {e}"
            ) from e
        except OSError as e:
            raise StorageError(f"Cannot write {target_file}: {e}") from e

    async def download(self, url: str, destination: Path) -> None:
        """
        Stream the archive at `url` into `destination`, overwriting it.

        This is the public method that fulfills the ArchiveFetcher port
        contract. `is_downloading` is raised for the duration of the
        transfer and is always cleared before this method returns or raises.

        Args:
            url: The archive URL.
            destination: The local archive path.

        Raises:
            DownloadFailed: On a non-success status or a transport error.
            StorageError: If the archive cannot be written locally.
        """

        self.logger.info(f"Downloading {url} to {destination}...")
        self.status.update(
            is_downloading=True,
            progress_percent=0,
            message="Downloading patch data...",
        )

        completed = False
        try:
            await self._stream_from_network(url, destination)
            completed = True
        finally:
            if not completed:
                self.status.update(is_downloading=False)

        self.status.update(
            progress_percent=100,
            is_downloading=False,
            message="Download complete",
        )
        self.logger.info(f"Finished downloading {destination.name}")
