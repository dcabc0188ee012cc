"""File-backed implementation of the PatchStateStore port."""

import logging
import os
from pathlib import Path
from typing import Optional

from ..application.domain import PatchStateStore, Version
from ..application.exceptions import StorageError


class FilePatchStateStore(PatchStateStore):
    """Keeps the installed version as a single line of text."""

    def __init__(self, path: Path):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.path = Path(path)

    def read_current_version(self) -> Optional[Version]:
        """A missing or blank file means nothing has been synced yet."""
        try:
            version = self.path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Cannot read {self.path}: {e}") from e
        return version or None

    def write_current_version(self, version: Version) -> None:
        """Overwrites the file through a temporary sibling and a rename."""
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(version, encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise StorageError(f"Cannot write {self.path}: {e}") from e
        self.logger.info(f"Recorded installed patch version {version}.")
