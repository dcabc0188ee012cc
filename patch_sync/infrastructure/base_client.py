"""Base class for async HTTP clients talking to the Data Dragon CDN."""

import logging
from typing import Dict

import httpx

from ..application.exceptions import ConfigurationError

# The CDN rejects archive requests that do not look like they come from a
# browser on its own site.
_BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)


class BaseClient:
    """A base client that holds an async client and the CDN base URL."""

    def __init__(self, client: httpx.AsyncClient, base_url: str, timeout: float):
        """
        Initializes the base client.

        Args:
            client: An instance of httpx.AsyncClient.
            base_url: The CDN origin, e.g. https://ddragon.leagueoflegends.com
            timeout: Per-request timeout in seconds.

        Raises:
            ConfigurationError: If the base URL is missing or not HTTP(S).
        """

        if not base_url or not base_url.startswith(("http://", "https://")):
            raise ConfigurationError(
                f"CDN base URL for {self.__class__.__name__} is missing or "
                f"invalid ({base_url!r}). Please check your config files."
            )

        self.client = client
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.logger = logging.getLogger(self.__class__.__name__)

    def browser_headers(self, accept: str = "application/json") -> Dict[str, str]:
        """Headers that make a request look like it came from the CDN's site."""
        return {
            "User-Agent": _BROWSER_USER_AGENT,
            "Accept": accept,
            "Accept-Language": "en-US,en;q=0.9",
            "Origin": self.base_url,
            "Referer": self.base_url + "/",
            "Cache-Control": "no-cache",
            "Pragma": "no-cache",
        }
