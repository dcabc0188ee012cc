"""Reads champion data sets out of an installed patch tree."""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict

from pydantic import ValidationError

from ..application.domain import ChampionCatalog, Version
from ..application.exceptions import CatalogError

from .api_models import ChampionDataFile


class FileChampionCatalog(ChampionCatalog):
    """Loads `<root>/<version>/data/<locale>/<dataset>` from disk."""

    def __init__(
        self,
        patch_root: Path,
        locale: str = "en_US",
        dataset: str = "championFull.json",
    ):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.patch_root = Path(patch_root)
        self.locale = locale
        self.dataset = dataset

    def dataset_path(self, version: Version) -> Path:
        return self.patch_root / version / "data" / self.locale / self.dataset

    def _read_json(self, path: Path) -> Any:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)

    async def load(self, version: Version) -> Dict[str, Any]:
        """
        Returns the validated champion data file for `version`.

        Raises:
            CatalogError: If the file is missing, unreadable or malformed.
        """
        path = self.dataset_path(version)
        if not path.is_file():
            raise CatalogError(f"Champion data file not found: {path}")

        try:
            raw = await asyncio.to_thread(self._read_json, path)
            data_file = ChampionDataFile.model_validate(raw)
        except ValidationError as e:
            raise CatalogError(
                f"Invalid champion data structure in {path.name}: "
                f"{e.error_count()} validation error(s)"
            ) from e
        except (OSError, ValueError) as e:
            raise CatalogError(f"Cannot read {path.name}: {e}") from e

        self.logger.debug(
            f"Loaded {len(data_file.data)} champions from {path.name} "
            f"(version {data_file.version})."
        )
        return data_file.model_dump()
