"""
The core application service, containing the patch sync state machine.

SyncOrchestrator is the single implementation behind every trigger path
(server startup, admin request, on-demand check, CLI). It resolves the
latest upstream version, compares it with the installed one, and drives
the fetch -> extract -> record sequence while publishing progress to the
shared StatusBoard.
"""

import asyncio
import contextlib
import logging
import time
from pathlib import Path
from typing import Optional, Tuple

from .domain import *
from .exceptions import PatchSyncError, StorageError
from .retry import version_check_retrying
from .status import StatusBoard


class SyncOrchestrator:
    """Runs at most one patch sync at a time."""

    def __init__(
        self,
        resolver: VersionResolver,
        fetcher: ArchiveFetcher,
        extractor: ArchiveExtractor,
        store: PatchStateStore,
        status: StatusBoard,
        patch_root: Path,
        archive_url_template: str,
        archive_name: str = "archive.tgz",
        version_check_attempts: int = 1,
        min_check_interval: float = 60.0,
    ):
        """
        Initializes the orchestrator with its ports and file layout.

        `min_check_interval` is how many seconds a successful check stays
        valid: an unforced run within that window reports up-to-date
        without contacting upstream.
        """
        self.logger = logging.getLogger(self.__class__.__name__)
        self.resolver = resolver
        self.fetcher = fetcher
        self.extractor = extractor
        self.store = store
        self.status = status
        self.patch_root = Path(patch_root)
        self.archive_url_template = archive_url_template
        self.archive_name = archive_name
        self.version_check_attempts = version_check_attempts
        self.min_check_interval = min_check_interval
        self._lock = asyncio.Lock()
        self._task: Optional[asyncio.Task] = None
        self._verified: Optional[Tuple[float, Version]] = None

    @property
    def archive_path(self) -> Path:
        return self.patch_root / self.archive_name

    @property
    def is_running(self) -> bool:
        return self._lock.locked() or (
            self._task is not None and not self._task.done()
        )

    def archive_url(self, version: Version) -> str:
        return self.archive_url_template.format(version=version)

    def current_version(self) -> Optional[Version]:
        """Returns the installed version, or None if nothing is installed."""
        return self.store.read_current_version()

    def needs_holding_page(self) -> bool:
        """
        Whether end users should see the holding page instead of the app.

        True while data is being transferred or unpacked, and also when no
        version was ever installed (including after a failed first sync).
        """
        status = self.status.snapshot()
        if status.is_downloading or status.state.is_busy:
            return True
        try:
            return self.current_version() is None
        except StorageError as e:
            self.logger.warning(f"Cannot read installed patch version: {e}")
            return True

    # --- Triggers ---

    def start(self, force: bool = False) -> SyncStatus:
        """
        Schedules a sync run in the background unless one is active.

        Returns the status snapshot at the time of the call; callers poll
        the StatusBoard for further progress.
        """
        if self.is_running:
            self.logger.info("Sync already in progress. Ignoring trigger.")
        else:
            self._task = asyncio.create_task(self.run(force=force))
            self._task.add_done_callback(self._log_task_error)
        return self.status.snapshot()

    def _log_task_error(self, task: asyncio.Task):
        if not task.cancelled() and task.exception() is not None:
            self.logger.error(
                "Background patch sync crashed", exc_info=task.exception()
            )

    async def run(self, force: bool = False) -> SyncOutcome:
        """
        Executes one complete sync run.

        A call made while another run is active does nothing and reports
        the state of the active run with `in_progress=True`.

        Args:
            force: Contact upstream even if the installed version was
                   verified less than `min_check_interval` seconds ago.

        Returns:
            The outcome of the run. Failures are reported through the
            outcome and the StatusBoard, never raised.
        """
        if self._lock.locked():
            snapshot = self.status.snapshot()
            self.logger.info(
                f"Sync already {snapshot.state.value}. Not starting another."
            )
            return SyncOutcome(
                state=snapshot.state,
                version=snapshot.version,
                in_progress=True,
            )

        async with self._lock:
            return await self._execute_run(force)

    async def shutdown(self):
        """Cancels a background run that is still pending at exit."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task

    # --- Pipeline ---

    async def _resolve_latest_version(self) -> Version:
        async for attempt in version_check_retrying(
            self.version_check_attempts
        ):
            with attempt:
                latest = await self.resolver.get_latest_version()
        self.logger.info(f"Latest patch version: {latest}")
        return latest

    def _recently_verified(self) -> Optional[Version]:
        if self._verified is None:
            return None
        checked_at, version = self._verified
        if time.monotonic() - checked_at >= self.min_check_interval:
            return None
        return version

    def _prepare_patch_root(self):
        try:
            self.patch_root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(
                f"Cannot create patch directory {self.patch_root}: {e}"
            ) from e

    def _discard_archive(self):
        """Removes the archive once its contents are installed."""
        try:
            self.archive_path.unlink(missing_ok=True)
        except OSError as e:
            self.logger.warning(
                f"Could not remove {self.archive_path.name}: {e}"
            )

    async def _execute_run(self, force: bool) -> SyncOutcome:
        stage = SyncState.CHECKING
        latest: Optional[Version] = None
        previous: Optional[Version] = None
        url: Optional[str] = None

        self.logger.info("Checking patch data...")
        self.status.update(
            state=stage,
            message="Checking patch data...",
            is_downloading=False,
            error=None,
        )

        try:
            recent = None if force else self._recently_verified()
            if recent is not None and recent == self.store.read_current_version():
                self.logger.info(
                    f"Patch {recent} was verified less than "
                    f"{self.min_check_interval:g}s ago. Skipping version check."
                )
                return self._finish(
                    SyncState.UP_TO_DATE, recent, recent, checked=False
                )

            latest = await self._resolve_latest_version()
            previous = self.store.read_current_version()

            if previous == latest:
                return self._finish(SyncState.UP_TO_DATE, latest, previous)

            self.logger.info(
                f"Installed patch is {previous or 'missing'}; "
                f"syncing {latest}..."
            )
            self._prepare_patch_root()

            # Step 1: Download (url -> archive on disk)
            stage = SyncState.DOWNLOADING
            url = self.archive_url(latest)
            self.status.update(
                state=stage,
                version=latest,
                progress_percent=0,
                message="Downloading patch data...",
            )
            await self.fetcher.download(url, self.archive_path)

            # Step 2: Extract and validate (archive -> version tree)
            stage = SyncState.EXTRACTING
            self.status.update(
                state=stage, message="Extracting patch data..."
            )
            await self.extractor.extract(
                self.archive_path, self.patch_root, latest
            )

            # Step 3: Record, only once the tree is known to be complete
            self.store.write_current_version(latest)
            self._discard_archive()
        except PatchSyncError as e:
            return self._fail(stage, latest, previous, url, e)

        return self._finish(SyncState.UPDATED, latest, previous)

    def _finish(
        self,
        state: SyncState,
        latest: Version,
        previous: Optional[Version],
        checked: bool = True,
    ) -> SyncOutcome:
        if state is SyncState.UPDATED:
            self.logger.info(
                f"Patch data updated from {previous or 'nothing'} to {latest}."
            )
        else:
            self.logger.info(f"Patch data is up to date ({latest}).")

        if checked:
            self._verified = (time.monotonic(), latest)
        self.status.update(
            state=state,
            version=latest,
            progress_percent=100,
            is_downloading=False,
            message=f"Patch data is up to date ({latest})",
            error=None,
        )
        return SyncOutcome(
            state=state, version=latest, previous_version=previous
        )

    def _fail(
        self,
        stage: SyncState,
        latest: Optional[Version],
        previous: Optional[Version],
        url: Optional[str],
        error: PatchSyncError,
    ) -> SyncOutcome:
        detail = f"{type(error).__name__}: {error}"
        self.logger.error(
            f"Patch sync failed during {stage.value} "
            f"(version={latest}, url={url}): {detail}"
        )
        self.status.update(
            state=SyncState.FAILED,
            is_downloading=False,
            message=f"Failed to sync patch data during {stage.value}: {error}",
            error=detail,
        )
        return SyncOutcome(
            state=SyncState.FAILED,
            version=latest,
            previous_version=previous,
            error=detail,
        )
