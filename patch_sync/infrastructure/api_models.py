"""
Pydantic models for validating the JSON documents served by Data Dragon.

These models serve as a strict contract for the expected data, so that a
deviation is caught at the infrastructure layer before it reaches the
application core.
"""

from typing import Annotated, Any, Dict, List, Optional

from pydantic import BaseModel, Field, RootModel, StrictStr


class VersionList(RootModel[Annotated[List[StrictStr], Field(min_length=1)]]):
    """
    The body of /api/versions.json.

    Upstream orders the list newest first, so the first entry is the
    latest version. No semantic version ordering is applied on our side.
    """

    @property
    def latest(self) -> str:
        return self.root[0]


class ChampionDataFile(BaseModel):
    """The top-level structure of championFull.json / champion.json."""

    type: Optional[str] = None
    format: Optional[str] = None
    version: str
    data: Dict[str, Any]
