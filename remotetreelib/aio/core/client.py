"""Async resource client abstraction.

Defines the remote capabilities the cache is built on. Concrete clients
(HTTP transports, SDK wrappers) live outside the library; the cache only
ever talks to this interface.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, List

from .metadata import Metadata


class AsyncResourceClient(ABC):
    """Abstract base class for async resource clients.

    A client exposes a remote container/leaf hierarchy through a handful of
    paginated, rate-limited calls. Every method is a suspension point;
    nothing here may block the event loop.
    """

    def __init__(self, max_concurrent: int = 100):
        """Initialize client with concurrency control.

        Args:
            max_concurrent: Maximum concurrent remote calls (enforced by
                            ErrorHandlingClient around every call)
        """
        self.max_concurrent = max_concurrent
        self.semaphore = asyncio.Semaphore(max_concurrent)

    @abstractmethod
    async def get_metadata(self, resource_id: str) -> Metadata:
        """Fetch the descriptor of a single resource.

        Args:
            resource_id: Remote id (clients may also accept aliases such as "root")

        Returns:
            Metadata of the resource

        Raises:
            NotFound: If no resource has this id
        """
        pass

    @abstractmethod
    async def list_children(self, container_id: str, page_size: int = 1000) -> List[Metadata]:
        """List the children of a container.

        Only one page is returned; there is no continuation token.

        Args:
            container_id: Container to list
            page_size: Maximum number of children returned

        Returns:
            Child metadata in remote order
        """
        pass

    @abstractmethod
    async def search(self, name_pattern: str, query_suffix: str = "") -> List[Metadata]:
        """Find resources whose name contains ``name_pattern``.

        Args:
            name_pattern: Substring to look for
            query_suffix: Extra client-specific query clauses

        Returns:
            Candidate metadata, possibly spanning several root trees
        """
        pass

    @abstractmethod
    async def create_container(self, parent_id: str, name: str) -> Metadata:
        """Create a container under ``parent_id`` and return its metadata."""
        pass

    @abstractmethod
    async def create_leaf(self, parent_id: str, name: str, content_type: str) -> Metadata:
        """Create a leaf of ``content_type`` under ``parent_id`` and return its metadata."""
        pass

    @abstractmethod
    async def read_leaf_content(self, resource_id: str) -> Any:
        """Read the full body of a leaf."""
        pass

    @abstractmethod
    async def write_leaf_content(self, resource_id: str, body: Any) -> Any:
        """Replace the body of a leaf. Returns the client's acknowledgement."""
        pass

    # Optional methods with default implementations

    async def list_roots(self) -> List[Metadata]:
        """List the top-level trees the caller can reach besides the default one.

        Returns:
            Root-shaped metadata (no parent). Empty by default.
        """
        return []

    async def get_stats(self) -> dict:
        """Get client statistics.

        Returns:
            Dictionary of statistics (call counts, cache hits, etc.)
        """
        return {
            'max_concurrent': self.max_concurrent,
            'available_permits': self.semaphore._value if hasattr(self.semaphore, '_value') else None,
        }

    async def close(self):
        """Clean up client resources.

        Override if client needs cleanup (close connections, etc.)
        """
        pass

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
