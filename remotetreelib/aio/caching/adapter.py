"""
Metadata caching for RemoteTreeLib.

Provides a transparent caching layer that can wrap any resource client.
Path reconstruction fetches the same ancestors over and over; caching their
metadata keeps repeated global resolutions cheap.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from cachetools import TTLCache

from ..core import AsyncResourceClient, Metadata

logger = logging.getLogger(__name__)


class CachingResourceClient(AsyncResourceClient):
    """
    Optional caching layer for any resource client.

    Caches ``get_metadata`` results for a limited time and uses Future-based
    locking so concurrent requests for the same id share one remote call.
    Every other call is delegated unchanged; child listings are cached by
    the nodes themselves.

    Example:
        client = CachingResourceClient(http_client, max_size=50000, ttl=120.0)
        navigator = Navigator(client)
    """

    def __init__(
        self,
        base_client: AsyncResourceClient,
        max_size: int = 10000,
        ttl: float = 60.0
    ):
        """
        Initialize caching client.

        Args:
            base_client: The underlying resource client to wrap
            max_size: Maximum number of metadata records in cache
            ttl: Time-to-live for cache entries in seconds
        """
        super().__init__(max_concurrent=base_client.max_concurrent)
        self._client = base_client
        self._cache = TTLCache(maxsize=max_size, ttl=ttl)
        self._fetches_in_progress: Dict[str, asyncio.Future] = {}

        # Statistics
        self.cache_hits = 0
        self.cache_misses = 0
        self.concurrent_waits = 0

    async def get_metadata(self, resource_id: str) -> Metadata:
        """
        Get metadata with caching and async coordination.

        This method:
        1. Checks if another task is already fetching this id
        2. Checks the cache for an existing record
        3. Performs the fetch if needed
        4. Shares the outcome with all waiting tasks
        """
        # 1. Check if fetch already in progress
        if resource_id in self._fetches_in_progress:
            self.concurrent_waits += 1
            return await asyncio.shield(self._fetches_in_progress[resource_id])

        # 2. Check cache
        cached = self._check_cache(resource_id)
        if cached is not None:
            self.cache_hits += 1
            logger.debug("Metadata cache hit for %s", resource_id)
            return cached

        # 3. Cache miss - need to fetch
        self.cache_misses += 1
        future = asyncio.get_running_loop().create_future()
        # Waiters still receive the exception
        future.add_done_callback(lambda f: f.cancelled() or f.exception())
        self._fetches_in_progress[resource_id] = future

        try:
            metadata = await self._client.get_metadata(resource_id)
            self._update_cache(resource_id, metadata)
            future.set_result(metadata)
            return metadata
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as e:
            future.set_exception(e)
            raise
        finally:
            self._fetches_in_progress.pop(resource_id, None)

    def _check_cache(self, resource_id: str) -> Optional[Metadata]:
        return self._cache.get(resource_id)

    def _update_cache(self, resource_id: str, metadata: Metadata) -> None:
        self._cache[resource_id] = metadata
        # Aliases such as "root" resolve to a real id; cache both
        if metadata.id != resource_id:
            self._cache[metadata.id] = metadata

    def invalidate(self, resource_id: str) -> bool:
        """
        Drop one cached record.

        Returns:
            True if a record was removed
        """
        return self._cache.pop(resource_id, None) is not None

    async def list_children(self, container_id: str, page_size: int = 1000) -> List[Metadata]:
        return await self._client.list_children(container_id, page_size=page_size)

    async def search(self, name_pattern: str, query_suffix: str = "") -> List[Metadata]:
        return await self._client.search(name_pattern, query_suffix)

    async def create_container(self, parent_id: str, name: str) -> Metadata:
        return await self._client.create_container(parent_id, name)

    async def create_leaf(self, parent_id: str, name: str, content_type: str) -> Metadata:
        return await self._client.create_leaf(parent_id, name, content_type)

    async def read_leaf_content(self, resource_id: str) -> Any:
        return await self._client.read_leaf_content(resource_id)

    async def write_leaf_content(self, resource_id: str, body: Any) -> Any:
        return await self._client.write_leaf_content(resource_id, body)

    async def list_roots(self) -> List[Metadata]:
        roots = await self._client.list_roots()
        for metadata in roots:
            self._update_cache(metadata.id, metadata)
        return roots

    def get_base_client(self) -> AsyncResourceClient:
        return self._client

    def get_cache_stats(self) -> dict:
        """
        Get cache statistics for monitoring and debugging.
        """
        total_requests = self.cache_hits + self.cache_misses
        hit_rate = self.cache_hits / total_requests if total_requests > 0 else 0

        return {
            'cache_hits': self.cache_hits,
            'cache_misses': self.cache_misses,
            'hit_rate': hit_rate,
            'concurrent_waits': self.concurrent_waits,
            'cache_size': len(self._cache),
            'max_size': self._cache.maxsize,
            'ttl': self._cache.ttl
        }

    async def get_stats(self) -> dict:
        stats = await self._client.get_stats()
        stats.update(self.get_cache_stats())
        return stats

    def clear_cache(self) -> None:
        """
        Clear all cached entries.
        """
        self._cache.clear()
        self.cache_hits = 0
        self.cache_misses = 0
        self.concurrent_waits = 0

    async def close(self):
        await self._client.close()
