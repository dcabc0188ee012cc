"""
This module defines the core domain models for the application.

These classes represent the pure, technology-agnostic entities and data
structures that the sync pipeline operates on, plus the ports that the
infrastructure layer implements.
"""

import dataclasses
import enum
from pathlib import Path

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

# An opaque upstream version identifier such as "15.12.1". Versions are
# only ever compared for equality.
Version = str


# --- Domain Models ---

class SyncState(str, enum.Enum):
    """The states a sync run moves through."""

    IDLE = "idle"
    CHECKING = "checking"
    DOWNLOADING = "downloading"
    EXTRACTING = "extracting"
    UPDATED = "updated"
    UP_TO_DATE = "up_to_date"
    FAILED = "failed"

    @property
    def is_busy(self) -> bool:
        """True while a run is transferring or unpacking data."""
        return self in (SyncState.DOWNLOADING, SyncState.EXTRACTING)


@dataclasses.dataclass(frozen=True)
class SyncStatus:
    """
    An immutable, process-wide snapshot of the sync progress.

    Snapshots are never mutated; a writer publishes a new one and readers
    keep whichever instance they grabbed.
    """

    progress_percent: int = 0
    is_downloading: bool = False
    message: str = "Checking patch data..."
    state: SyncState = SyncState.IDLE
    version: Optional[Version] = None
    error: Optional[str] = None


@dataclasses.dataclass(frozen=True)
class SyncOutcome:
    """The result of a single sync run, as seen by the trigger."""

    state: SyncState
    version: Optional[Version] = None
    previous_version: Optional[Version] = None
    error: Optional[str] = None
    in_progress: bool = False

    @property
    def downloaded(self) -> bool:
        return self.state is SyncState.UPDATED

    @property
    def succeeded(self) -> bool:
        return self.state in (SyncState.UPDATED, SyncState.UP_TO_DATE)


# --- Ports (Interfaces) ---

class VersionResolver(ABC):
    """A port for any source of the latest upstream version."""

    @abstractmethod
    async def get_latest_version(self) -> Version:
        """Returns the most recent version advertised upstream."""
        pass


class ArchiveFetcher(ABC):
    """A port for downloading a patch archive."""

    @abstractmethod
    async def download(self, url: str, destination: Path) -> None:
        """Streams the archive at `url` to `destination`."""
        pass


class ArchiveExtractor(ABC):
    """A port for unpacking and validating a patch archive."""

    @abstractmethod
    async def extract(
        self, archive: Path, destination_root: Path, expected_version: Version
    ) -> None:
        """
        Unpacks the archive under destination_root.
        Raises ExtractionFailed or ValidationFailed.
        """
        pass


class PatchStateStore(ABC):
    """A port for the durable record of the installed version."""

    @abstractmethod
    def read_current_version(self) -> Optional[Version]:
        """Returns the installed version, or None if never synced."""
        pass

    @abstractmethod
    def write_current_version(self, version: Version) -> None:
        """Records `version` as installed."""
        pass


class ChampionCatalog(ABC):
    """A port for reading champion data out of an installed patch."""

    @abstractmethod
    async def load(self, version: Version) -> Dict[str, Any]:
        """Returns the champion data set for `version`."""
        pass
