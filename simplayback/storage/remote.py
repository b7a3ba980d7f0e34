"""HTTP reader for studies published on a web server.

Web servers cannot list directories, so every directory the loaders need to
list must ship a precomputed ``directory-contents.json``::

    [
      {"name": "rep_001", "path": "replications/rep_001", "isDirectory": true},
      ...
    ]
"""

import json
import logging

import httpx
from pydantic import TypeAdapter, ValidationError

from .reader import FileListItem, clean_relative_path

logger = logging.getLogger(__name__)

DIRECTORY_LISTING_NAME = "directory-contents.json"

_LISTING_ADAPTER = TypeAdapter(list[FileListItem])


class RemoteFileReader:
    """Reads study files relative to a base URL."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    def resolve_full_path(self, path: str) -> str:
        return self.base_url + clean_relative_path(path)

    async def _get(self, url: str) -> httpx.Response | None:
        try:
            response = await self._get_client().get(url)
        except httpx.HTTPError as e:
            logger.error("Error fetching %s: %s", url, e)
            return None
        if response.status_code != 200:
            logger.error(
                "HTTP %s %s - %s", response.status_code, response.reason_phrase, url
            )
            return None
        return response

    async def read_text(self, path: str) -> str | None:
        response = await self._get(self.resolve_full_path(path))
        return response.text if response is not None else None

    async def list_directory(self, path: str) -> list[FileListItem] | None:
        directory = clean_relative_path(path).rstrip("/")
        url = self.resolve_full_path(f"{directory}/{DIRECTORY_LISTING_NAME}")
        response = await self._get(url)
        if response is None:
            return None
        try:
            return _LISTING_ADAPTER.validate_python(json.loads(response.text))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.error("Invalid directory listing at %s: %s", url, e)
            return None

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this reader created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
