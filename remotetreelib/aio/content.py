"""Lazily fetched leaf bodies.

A leaf's body is fetched on first read and cached for the life of the node.
Tabular bodies (spreadsheet-like leaves) are normalized into a rectangular
grid so callers can index any cell of any row.
"""

import asyncio
import logging
from typing import Any, List, Optional

from ..errors import ContentNotLoaded, translate_transport_errors
from .core.client import AsyncResourceClient
from .core.metadata import Metadata

logger = logging.getLogger(__name__)


class _Unloaded:
    """Sentinel for a body that has never been fetched."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNLOADED"

    def __bool__(self) -> bool:
        return False


UNLOADED = _Unloaded()


def normalize_rows(rows: Optional[List[List[Any]]]) -> List[List[Any]]:
    """Pad every row with "" up to the width of the longest row.

    Args:
        rows: Grid as returned by the client (may be None for an empty sheet)

    Returns:
        New rectangular grid
    """
    if rows is None:
        return []
    width = max((len(row) for row in rows), default=0)
    return [list(row) + [""] * (width - len(row)) for row in rows]


class LeafContent:
    """Body of a single leaf, loaded at most once unless refreshed."""

    def __init__(self, metadata: Metadata, client: AsyncResourceClient):
        self._metadata = metadata
        self._client = client
        self.body: Any = UNLOADED
        self._loading: Optional[asyncio.Task] = None

        # Statistics
        self.load_count = 0
        self.concurrent_waits = 0

    @property
    def loaded(self) -> bool:
        return self.body is not UNLOADED

    @property
    def is_tabular(self) -> bool:
        return self._metadata.is_tabular

    async def load(self, refresh: bool = False) -> Any:
        """Return the body, fetching it if it was never loaded.

        Concurrent first reads share one remote call.

        Args:
            refresh: Fetch again even if a body is cached

        Returns:
            The body (normalized rows for tabular leaves)
        """
        if self.loaded and not refresh:
            return self.body

        if self._loading is None:
            self._loading = asyncio.ensure_future(self._fetch())
            # Awaiting callers still receive the exception
            self._loading.add_done_callback(lambda t: t.cancelled() or t.exception())
        else:
            self.concurrent_waits += 1

        return await asyncio.shield(self._loading)

    async def _fetch(self) -> Any:
        try:
            with translate_transport_errors("read_leaf_content", self._metadata.id):
                raw = await self._client.read_leaf_content(self._metadata.id)
            self.load_count += 1
            self.body = normalize_rows(raw) if self.is_tabular else raw
            logger.debug("Loaded content of %s (%s)", self._metadata.id, self._metadata.name)
            return self.body
        finally:
            self._loading = None

    async def save(self, body: Any = UNLOADED) -> Any:
        """Write the cached body (or ``body``, which replaces it) back.

        Raises:
            ContentNotLoaded: If the body was never loaded
        """
        if not self.loaded:
            raise ContentNotLoaded(
                f"Content of {self._metadata.id!r} must be loaded before it is saved"
            )
        if body is not UNLOADED:
            self.body = normalize_rows(body) if self.is_tabular else body

        with translate_transport_errors("write_leaf_content", self._metadata.id):
            ack = await self._client.write_leaf_content(self._metadata.id, self.body)
        logger.debug("Saved content of %s", self._metadata.id)
        return ack
