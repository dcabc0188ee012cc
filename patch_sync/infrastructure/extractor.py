"""
Infrastructure adapter for unpacking and validating patch archives.
"""

import asyncio
import logging
import tarfile
import zlib
from pathlib import Path

from ..application.domain import ArchiveExtractor, Version
from ..application.exceptions import ExtractionFailed, ValidationFailed


class TarArchiveExtractor(ArchiveExtractor):
    """
    An adapter that implements the ArchiveExtractor port for dragontail
    tarballs.

    The archive lays out each patch under a top-level directory named after
    its version, so extracting into the patch root yields
    `<root>/<version>/data/<locale>/...` and `<root>/<version>/img/...`.
    """

    def __init__(self, locale: str = "en_US", manifest: str = "champion.json"):
        """Initializes the extractor."""
        self.logger = logging.getLogger(self.__class__.__name__)
        self.locale = locale
        self.manifest = manifest

    def manifest_path(self, destination_root: Path, version: Version) -> Path:
        """The file whose presence proves a version tree is complete."""
        return (
            Path(destination_root) / version / "data" / self.locale / self.manifest
        )

    def _blocking_extract(self, archive: Path, destination_root: Path):
        """Unpacks the archive; runs in a worker thread."""
        try:
            self.logger.info(f"Extracting {archive.name} into {destination_root}...")
            with tarfile.open(archive, "r:*") as tar:
                tar.extractall(destination_root, filter="data")
            self.logger.info(f"Finished extracting {archive.name}")
        except (tarfile.TarError, zlib.error, EOFError, OSError) as e:
            raise ExtractionFailed(
                f"Failed to extract {archive.name}: {type(e).__name__}: {e}"
            ) from e

    def _validate(self, destination_root: Path, version: Version):
        expected = self.manifest_path(destination_root, version)
        if not expected.is_file():
            raise ValidationFailed(
                f"Archive did not contain {expected.relative_to(destination_root)}; "
                f"it may not match version {version}"
            )
        self.logger.info(f"Extraction verified: {expected.name} is present.")

    async def extract(
        self, archive: Path, destination_root: Path, expected_version: Version
    ) -> None:
        """
        Unpack the archive and confirm the expected version tree exists.

        This public method fulfills the ArchiveExtractor port contract. The
        blocking tar work is delegated to a separate thread to avoid
        blocking the event loop. Validation runs even when unpacking
        reported success, since upstream archives are not trusted to match
        the version they were requested for.

        Args:
            archive: The downloaded archive.
            destination_root: The patch root to unpack into.
            expected_version: The version the archive is supposed to hold.

        Raises:
            ExtractionFailed: If the archive cannot be unpacked.
            ValidationFailed: If the manifest file is missing afterwards.
        """

        destination_root = Path(destination_root)
        await asyncio.to_thread(self._blocking_extract, Path(archive), destination_root)
        self._validate(destination_root, expected_version)
