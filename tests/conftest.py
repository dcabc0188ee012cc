"""Pytest configuration and shared fixtures for patch_sync tests."""

import asyncio
import io
import json
import tarfile
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from patch_sync.application.domain import ArchiveFetcher, VersionResolver
from patch_sync.application.service import SyncOrchestrator
from patch_sync.application.status import StatusBoard
from patch_sync.infrastructure.extractor import TarArchiveExtractor
from patch_sync.infrastructure.state_store import FilePatchStateStore

ARCHIVE_URL_TEMPLATE = "https://cdn.test/cdn/dragontail-{version}.tgz"

SAMPLE_CHAMPIONS = {
    "type": "champion",
    "format": "full",
    "version": "15.12.1",
    "data": {
        "Aatrox": {"id": "Aatrox", "name": "Aatrox", "tags": ["Fighter"]},
        "Ahri": {"id": "Ahri", "name": "Ahri", "tags": ["Mage"]},
    },
}


def build_archive(
    version: str,
    with_manifest: bool = True,
    extra_members: Optional[Dict[str, bytes]] = None,
) -> bytes:
    """Builds an in-memory dragontail-style .tgz for `version`."""
    members: Dict[str, bytes] = {
        f"{version}/img/champion/Aatrox.png": b"\x89PNG fake",
        f"{version}/data/en_US/championFull.json": json.dumps(
            dict(SAMPLE_CHAMPIONS, version=version)
        ).encode(),
    }
    if with_manifest:
        members[f"{version}/data/en_US/champion.json"] = json.dumps(
            {"type": "champion", "version": version, "data": {}}
        ).encode()
    members.update(extra_members or {})

    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as tar:
        for name, payload in members.items():
            info = tarfile.TarInfo(name)
            info.size = len(payload)
            tar.addfile(info, io.BytesIO(payload))
    return buffer.getvalue()


class FakeResolver(VersionResolver):
    """Returns queued versions (or raises queued exceptions) in order."""

    def __init__(self, *results):
        self.results = list(results)
        self.calls = 0

    async def get_latest_version(self) -> str:
        self.calls += 1
        result = self.results[0] if len(self.results) == 1 else self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


class FakeFetcher(ArchiveFetcher):
    """Writes a prepared archive to the destination, optionally gated."""

    def __init__(self, payload: bytes = b"", error: Exception = None, gated: bool = False):
        self.payload = payload
        self.error = error
        self.gated = gated
        self.calls: List[tuple] = []
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def download(self, url: str, destination: Path) -> None:
        self.calls.append((url, destination))
        self.started.set()
        if self.gated:
            await self.release.wait()
        if self.error is not None:
            raise self.error
        destination.write_bytes(self.payload)


class CountingExtractor(TarArchiveExtractor):
    """The real tar extractor, counting invocations."""

    def __init__(self):
        super().__init__()
        self.calls = 0

    async def extract(self, archive, destination_root, expected_version):
        self.calls += 1
        await super().extract(archive, destination_root, expected_version)


@pytest.fixture
def patch_root(tmp_path) -> Path:
    return tmp_path / "patch-data"


@pytest.fixture
def status_board() -> StatusBoard:
    return StatusBoard()


@pytest.fixture
def make_orchestrator(patch_root, status_board):
    """Factory for an orchestrator over real disk adapters and fake network."""

    def _make(resolver, fetcher, extractor=None, **kwargs) -> SyncOrchestrator:
        return SyncOrchestrator(
            resolver=resolver,
            fetcher=fetcher,
            extractor=extractor or CountingExtractor(),
            store=FilePatchStateStore(patch_root / "patch.txt"),
            status=status_board,
            patch_root=patch_root,
            archive_url_template=ARCHIVE_URL_TEMPLATE,
            **kwargs,
        )

    return _make
