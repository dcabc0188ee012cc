"""
Dependency Injection container for the patch_sync component.

This container uses the `dependency-injector` library to wire together all
the components of the application, such as the orchestrator, the
infrastructure adapters and the web app, based on the application's
configuration.
"""

from pathlib import Path
from typing import Optional

from dependency_injector import containers, providers
import httpx

from ..application.domain import *
from ..application.service import SyncOrchestrator
from ..application.status import StatusBoard
from ..presentation.api import create_app
from ..settings import resolve_path, settings

from .api_client import HttpVersionResolver
from .catalog import FileChampionCatalog
from .downloader import HttpArchiveFetcher
from .extractor import TarArchiveExtractor
from .state_store import FilePatchStateStore


def _join(root: Path, name: str) -> Path:
    return root / name


def _optional_path(value) -> Optional[Path]:
    return resolve_path(value) if value else None


def _any_enabled(*flags) -> bool:
    return any(bool(flag) for flag in flags)


def _enabled_unless(enabled, skip) -> bool:
    return bool(enabled) and not skip


class Container(containers.DeclarativeContainer):
    """DI container for wiring the application components."""

    cli_args = providers.Configuration()

    config = providers.Object(settings)

    patch_root = providers.Callable(resolve_path, config().paths.patch_root)

    http_client = providers.Singleton(
        httpx.AsyncClient,
        timeout=config().http.timeout,
    )

    status_board = providers.Singleton(StatusBoard)

    resolver: providers.Factory[VersionResolver] = providers.Factory(
        HttpVersionResolver,
        client=http_client,
        base_url=config().http.cdn_base_url,
        timeout=config().http.timeout,
    )

    fetcher: providers.Factory[ArchiveFetcher] = providers.Factory(
        HttpArchiveFetcher,
        client=http_client,
        base_url=config().http.cdn_base_url,
        timeout=config().http.timeout,
        chunk_size=config().downloader.chunk_size,
        status=status_board,
        show_progress=providers.Callable(
            _any_enabled,
            cli_args.progress,
            config().downloader.show_progress,
        ),
    )

    extractor: providers.Factory[ArchiveExtractor] = providers.Factory(
        TarArchiveExtractor,
        locale=config().extractor.locale,
        manifest=config().extractor.manifest,
    )

    state_store: providers.Factory[PatchStateStore] = providers.Factory(
        FilePatchStateStore,
        path=providers.Callable(_join, patch_root, config().paths.state_file),
    )

    catalog: providers.Factory[ChampionCatalog] = providers.Factory(
        FileChampionCatalog,
        patch_root=patch_root,
        locale=config().extractor.locale,
        dataset=config().catalog.dataset,
    )

    orchestrator = providers.Singleton(
        SyncOrchestrator,
        resolver=resolver,
        fetcher=fetcher,
        extractor=extractor,
        store=state_store,
        status=status_board,
        patch_root=patch_root,
        archive_url_template=config().http.archive_url_template,
        archive_name=config().paths.archive_name,
        version_check_attempts=config().sync.version_check_attempts,
        min_check_interval=config().sync.min_check_interval,
    )

    web_app = providers.Singleton(
        create_app,
        orchestrator=orchestrator,
        catalog=catalog,
        patch_root=patch_root,
        sync_on_startup=providers.Callable(
            _enabled_unless,
            config().sync.sync_on_startup,
            cli_args.no_sync,
        ),
        frontend_dir=providers.Callable(
            _optional_path, config().web.frontend_dir
        ),
        http_client=http_client,
    )
