"""Parsed-document cache shared by all loaders.

Study documents are immutable for the life of a loaded study, so a document is
read and parsed at most once per logical path until someone clears it. There is
no expiry; eviction is always explicit.
"""

import asyncio
import json
import logging
from typing import Any

from .reader import StorageReader

logger = logging.getLogger(__name__)


class ContentCache:
    """Memoizes parsed JSON documents by study-relative path."""

    def __init__(self, reader: StorageReader):
        self.reader = reader
        self._documents: dict[str, Any] = {}
        self._inflight: dict[str, asyncio.Future] = {}
        self._generation = 0

    def get(self, path: str) -> Any | None:
        return self._documents.get(path)

    def put(self, path: str, document: Any) -> None:
        self._documents[path] = document

    def clear(self, path: str | None = None) -> None:
        """Drop one cached document, or everything when ``path`` is None.

        Reads still in flight complete for their callers but are not stored.
        """
        self._generation += 1
        if path is None:
            self._documents.clear()
        else:
            self._documents.pop(path, None)

    def size(self) -> int:
        return len(self._documents)

    def __contains__(self, path: str) -> bool:
        return path in self._documents

    async def fetch_json(self, path: str) -> Any | None:
        """Return the parsed document at ``path``, reading it on first use.

        Concurrent requests for the same uncached path share one read. Read
        misses and malformed content return None and are not cached, so a
        later call retries.
        """
        if path in self._documents:
            return self._documents[path]

        pending = self._inflight.get(path)
        if pending is not None:
            return await pending

        future = asyncio.get_running_loop().create_future()
        self._inflight[path] = future
        try:
            document = await self._read_and_parse(path)
        except BaseException as e:
            future.set_exception(e)
            # Mark retrieved so a lone failed fetch does not warn at GC time.
            future.exception()
            raise
        else:
            future.set_result(document)
            return document
        finally:
            del self._inflight[path]

    async def _read_and_parse(self, path: str) -> Any | None:
        generation = self._generation
        content = await self.reader.read_text(path)
        if content is None:
            return None
        try:
            document = json.loads(content)
        except json.JSONDecodeError as e:
            logger.error("Error parsing JSON from %s: %s", path, e)
            return None
        if generation == self._generation:
            self._documents[path] = document
        return document
