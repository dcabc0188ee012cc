"""Tests for downloader.py module."""

import asyncio

import httpx
import pytest

from patch_sync.application.exceptions import DownloadFailed, StorageError
from patch_sync.application.status import StatusBoard
from patch_sync.infrastructure.downloader import HttpArchiveFetcher

ARCHIVE_URL = "https://ddragon.test/cdn/dragontail-15.12.1.tgz"


class RecordingStatusBoard(StatusBoard):
    """Keeps every update that touched the progress percentage."""

    def __init__(self):
        super().__init__()
        self.progress_updates = []
        self.updates = []

    def update(self, **changes):
        self.updates.append(changes)
        if "progress_percent" in changes:
            self.progress_updates.append(changes["progress_percent"])
        return super().update(**changes)


def _chunked_body(chunks):
    async def _body():
        for chunk in chunks:
            yield chunk

    return _body()


def _fetcher(handler, status, chunk_size=10):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpArchiveFetcher(
        client=client,
        base_url="https://ddragon.test",
        timeout=5,
        chunk_size=chunk_size,
        status=status,
    )


class TestHttpArchiveFetcher:
    """Test HttpArchiveFetcher class."""

    def test_progress_is_monotonic_and_ends_at_100(self, tmp_path):
        chunks = [bytes([i]) * 10 for i in range(37)]
        total = sum(len(c) for c in chunks)

        def handler(request):
            return httpx.Response(
                200,
                headers={"Content-Length": str(total)},
                content=_chunked_body(chunks),
            )

        status = RecordingStatusBoard()
        destination = tmp_path / "archive.tgz"

        asyncio.run(_fetcher(handler, status).download(ARCHIVE_URL, destination))

        values = status.progress_updates
        assert values == sorted(values)
        assert values[-1] == 100
        # Streaming updates are only published when the percentage changes.
        streaming = values[1:-1]
        assert len(streaming) == len(set(streaming))
        assert destination.read_bytes() == b"".join(chunks)

        final = status.snapshot()
        assert final.progress_percent == 100
        assert final.is_downloading is False

    def test_completion_is_published_once(self, tmp_path):
        def handler(request):
            return httpx.Response(200, content=b"x" * 100)

        status = RecordingStatusBoard()
        asyncio.run(
            _fetcher(handler, status).download(ARCHIVE_URL, tmp_path / "a.tgz")
        )

        finished = [u for u in status.updates if u.get("is_downloading") is False]
        assert len(finished) == 1
        assert finished[0]["progress_percent"] == 100

    def test_in_memory_body_is_counted(self, tmp_path):
        def handler(request):
            return httpx.Response(200, content=b"x" * 100)

        status = RecordingStatusBoard()
        destination = tmp_path / "a.tgz"
        asyncio.run(
            _fetcher(handler, status, chunk_size=10).download(ARCHIVE_URL, destination)
        )

        assert destination.read_bytes() == b"x" * 100
        assert status.progress_updates[-1] == 100
        assert any(
            u.get("message") == "Downloading patch data... 50%" for u in status.updates
        )

    def test_sends_browser_like_headers(self, tmp_path):
        seen = {}

        def handler(request):
            seen.update(request.headers)
            return httpx.Response(200, content=b"data")

        asyncio.run(
            _fetcher(handler, StatusBoard()).download(ARCHIVE_URL, tmp_path / "a.tgz")
        )

        assert seen["user-agent"].startswith("Mozilla/5.0")
        assert seen["origin"] == "https://ddragon.test"
        assert seen["referer"] == "https://ddragon.test/"
        assert "application/x-gzip" in seen["accept"]

    def test_unknown_length_holds_progress(self, tmp_path):
        chunks = [b"a" * 10, b"b" * 10, b"c" * 10]

        def handler(request):
            return httpx.Response(200, content=_chunked_body(chunks))

        status = RecordingStatusBoard()
        asyncio.run(
            _fetcher(handler, status).download(ARCHIVE_URL, tmp_path / "a.tgz")
        )

        assert status.progress_updates == [0, 100]
        assert (tmp_path / "a.tgz").read_bytes() == b"".join(chunks)

    def test_error_status_raises_download_failed(self, tmp_path):
        def handler(request):
            return httpx.Response(403, content=b"Forbidden")

        status = StatusBoard()
        with pytest.raises(DownloadFailed) as exc_info:
            asyncio.run(
                _fetcher(handler, status).download(ARCHIVE_URL, tmp_path / "a.tgz")
            )

        assert exc_info.value.status == 403
        assert status.snapshot().is_downloading is False

    def test_transport_error_raises_download_failed(self, tmp_path):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        status = StatusBoard()
        with pytest.raises(DownloadFailed) as exc_info:
            asyncio.run(
                _fetcher(handler, status).download(ARCHIVE_URL, tmp_path / "a.tgz")
            )

        assert exc_info.value.status is None
        assert status.snapshot().is_downloading is False

    def test_truncated_body_raises_download_failed(self, tmp_path):
        def handler(request):
            return httpx.Response(
                200,
                headers={"Content-Length": "100"},
                content=_chunked_body([b"x" * 40]),
            )

        status = StatusBoard()
        with pytest.raises(DownloadFailed, match="Size mismatch"):
            asyncio.run(
                _fetcher(handler, status).download(ARCHIVE_URL, tmp_path / "a.tgz")
            )

        assert status.snapshot().is_downloading is False
        assert status.snapshot().progress_percent == 40

    def test_write_failure_raises_storage_error(self, tmp_path):
        def handler(request):
            return httpx.Response(200, content=b"data")

        status = StatusBoard()
        destination = tmp_path / "missing-dir" / "a.tgz"
        with pytest.raises(StorageError):
            asyncio.run(_fetcher(handler, status).download(ARCHIVE_URL, destination))

        assert status.snapshot().is_downloading is False
