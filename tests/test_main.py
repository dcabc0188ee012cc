"""Tests for the DI container and the command-line entry point."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from dependency_injector import providers
from fastapi import FastAPI

from patch_sync.__main__ import main, run_sync
from patch_sync.application.domain import SyncOutcome, SyncState
from patch_sync.application.service import SyncOrchestrator
from patch_sync.infrastructure.containers import Container
from patch_sync.infrastructure.downloader import HttpArchiveFetcher


@pytest.fixture
def container():
    container = Container()
    container.cli_args.from_dict({"progress": False, "no_sync": True})
    return container


class TestContainer:
    def test_wires_orchestrator_from_settings(self, container):
        orchestrator = container.orchestrator()

        assert isinstance(orchestrator, SyncOrchestrator)
        assert orchestrator is container.orchestrator()
        assert orchestrator.archive_url("15.12.1") == (
            "https://ddragon.leagueoflegends.com/cdn/dragontail-15.12.1.tgz"
        )
        assert orchestrator.archive_path.name == "archive.tgz"
        assert orchestrator.store.path.name == "patch.txt"
        assert orchestrator.store.path.parent == orchestrator.patch_root

    def test_fetcher_shares_status_board(self, container):
        fetcher = container.fetcher()

        assert isinstance(fetcher, HttpArchiveFetcher)
        assert fetcher.status is container.status_board()
        assert fetcher.status is container.orchestrator().status
        assert fetcher.show_progress is False

    def test_builds_web_app(self, container, tmp_path):
        container.patch_root.override(providers.Object(tmp_path / "patch-data"))

        app = container.web_app()

        assert isinstance(app, FastAPI)
        assert app.state.orchestrator is container.orchestrator()


class TestRunSync:
    def _container(self, outcome):
        orchestrator = MagicMock()
        orchestrator.run = AsyncMock(return_value=outcome)
        http_client = MagicMock()
        http_client.aclose = AsyncMock()

        container = Container()
        container.orchestrator.override(providers.Object(orchestrator))
        container.http_client.override(providers.Object(http_client))
        return container, orchestrator, http_client

    def test_success_exits_zero(self):
        container, orchestrator, http_client = self._container(
            SyncOutcome(state=SyncState.UPDATED, version="15.12.1")
        )

        assert asyncio.run(run_sync(container)) == 0
        orchestrator.run.assert_awaited_once_with(force=True)
        http_client.aclose.assert_awaited_once()

    def test_failure_exits_one(self):
        container, _, http_client = self._container(
            SyncOutcome(state=SyncState.FAILED, error="DownloadFailed: 403")
        )

        assert asyncio.run(run_sync(container)) == 1
        http_client.aclose.assert_awaited_once()


def test_cli_requires_a_command(capsys):
    with pytest.raises(SystemExit) as exc_info:
        main([])

    assert exc_info.value.code == 2
