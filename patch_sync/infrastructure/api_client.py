"""HTTP implementation of the VersionResolver port."""

from typing import Any

import httpx
from pydantic import ValidationError

from ..application.domain import Version, VersionResolver
from ..application.exceptions import MalformedResponse, UpstreamUnavailable

from .api_models import VersionList
from .base_client import BaseClient

_VERSIONS_ENDPOINT = "/api/versions.json"


class HttpVersionResolver(BaseClient, VersionResolver):
    """Resolves the latest patch version from the Data Dragon version list."""

    def __init__(self, client: httpx.AsyncClient, base_url: str, timeout: float):
        """Initializes the resolver adapter."""
        super().__init__(client, base_url, timeout)
        self.endpoint = self.base_url + _VERSIONS_ENDPOINT

    async def _execute_fetch(self) -> Any:
        """Executes the raw HTTP GET request and decodes the JSON body."""
        try:
            response = await self.client.get(
                self.endpoint,
                headers=self.browser_headers(),
                timeout=self.timeout,
                follow_redirects=True,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise UpstreamUnavailable(
                f"{self.endpoint} answered {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamUnavailable(
                f"Could not reach {self.endpoint}: {type(e).__name__}: {e}"
            ) from e

        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponse(
                f"{self.endpoint} did not return JSON: {e}"
            ) from e

    def _validate(self, json_data: Any) -> VersionList:
        """Validates the decoded body against the version list contract."""
        try:
            return VersionList.model_validate(json_data)
        except ValidationError as e:
            raise MalformedResponse(
                f"{self.endpoint} is not a non-empty list of versions: "
                f"{e.error_count()} validation error(s)"
            ) from e

    async def get_latest_version(self) -> Version:
        """
        Fetches the version list and returns its first entry.

        Returns:
            The latest upstream version, e.g. "15.12.1".

        Raises:
            UpstreamUnavailable: If the request fails or is not successful.
            MalformedResponse: If the body is not a non-empty list of strings.
        """

        self.logger.info(f"Fetching version list from {self.endpoint}...")
        versions = self._validate(await self._execute_fetch())
        self.logger.debug(f"Upstream lists {len(versions.root)} versions.")
        return versions.latest
