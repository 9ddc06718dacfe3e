"""Test fixtures for RemoteTreeLib consumers.

These fixtures provide an in-memory remote store and controlled access to
cache state for testing purposes, without exposing implementation details
as part of the public API.
"""

import asyncio
from collections import Counter
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..aio.content import UNLOADED
from ..aio.core.client import AsyncResourceClient
from ..aio.core.metadata import Metadata
from ..config import NodeKind, Readiness
from ..errors import NotFound

# Alias understood by get_metadata for the default root
DEFAULT_ROOT_ALIAS = "root"


class InMemoryResourceClient(AsyncResourceClient):
    """Fake remote store holding a forest of containers and leaves.

    Every remote method is counted, can be slowed down with ``delay`` and
    can be made to fail with ``fail_next``.

    Example:
        client = InMemoryResourceClient()
        client.add_root("root-id", "My Tree", default=True)
        client.add_container("root-id", "a", "A")
        client.add_leaf("a", "x", "Report", content_type="spreadsheet", content=[["1"]])

        navigator = Navigator(client)
        await navigator.start()
        assert client.call_count("list_children") == 0
    """

    def __init__(self, delay: float = 0.0, max_concurrent: int = 100):
        """Initialize an empty store.

        Args:
            delay: Seconds every remote call sleeps before answering
            max_concurrent: Passed to AsyncResourceClient
        """
        super().__init__(max_concurrent=max_concurrent)
        self.delay = delay
        self._records: Dict[str, Metadata] = {}
        self._content: Dict[str, Any] = {}
        self._default_root: Optional[str] = None
        self._extra_roots: List[str] = []
        self._failures: Dict[str, List[BaseException]] = {}
        self._next_id = 0

        self.calls: Counter = Counter()
        self.call_log: List[Tuple[str, Any]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    # Building the fake tree

    def add_root(self, resource_id: str, name: Optional[str] = None, default: bool = False) -> Metadata:
        """Add a top-level container.

        Args:
            default: Answer ``get_metadata("root")`` with this root; other roots
                     are reported by ``list_roots``
        """
        info = Metadata(NodeKind.CONTAINER, resource_id, name or resource_id, content_type="folder")
        self._records[resource_id] = info
        if default:
            self._default_root = resource_id
        else:
            self._extra_roots.append(resource_id)
        return info

    def add_container(self, parent_id: str, resource_id: str, name: Optional[str] = None) -> Metadata:
        info = Metadata(NodeKind.CONTAINER, resource_id, name or resource_id,
                        parent_id=parent_id, content_type="folder")
        self._records[resource_id] = info
        return info

    def add_leaf(self, parent_id: str, resource_id: str, name: Optional[str] = None,
                 content_type: str = "text/plain", content: Any = None,
                 also_in: Sequence[str] = ()) -> Metadata:
        """Add a leaf.

        Args:
            also_in: Further containers listing this leaf (multi-parent files)
        """
        extra = {"parents": (parent_id,) + tuple(also_in)} if also_in else {}
        info = Metadata(NodeKind.LEAF, resource_id, name or resource_id,
                        parent_id=parent_id, content_type=content_type, extra=extra)
        self._records[resource_id] = info
        self._content[resource_id] = content
        return info

    def move(self, resource_id: str, new_parent_id: str) -> Metadata:
        """Reparent a resource (simulates a concurrent remote mutation)."""
        old = self._records[resource_id]
        moved = Metadata(old.kind, old.id, old.name, parent_id=new_parent_id,
                         content_type=old.content_type, extra=dict(old.extra))
        self._records[resource_id] = moved
        return moved

    def content_of(self, resource_id: str) -> Any:
        return self._content.get(resource_id)

    # Instrumentation

    def fail_next(self, method: str, error: Optional[BaseException] = None, times: int = 1) -> None:
        """Make the next ``times`` calls of ``method`` raise ``error``.

        The default error is a ConnectionError, as a transport would raise.
        """
        queue = self._failures.setdefault(method, [])
        for _ in range(times):
            queue.append(error if error is not None else ConnectionError(f"simulated {method} outage"))

    def call_count(self, method: Optional[str] = None) -> int:
        """Calls made to ``method``, or to every method when None."""
        if method is None:
            return sum(self.calls.values())
        return self.calls[method]

    def reset_counts(self) -> None:
        self.calls.clear()
        self.call_log.clear()

    async def _remote(self, method: str, target: Any) -> None:
        self.calls[method] += 1
        self.call_log.append((method, target))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
        finally:
            self.in_flight -= 1
        queue = self._failures.get(method)
        if queue:
            raise queue.pop(0)

    def _resolve(self, resource_id: str) -> Metadata:
        if resource_id == DEFAULT_ROOT_ALIAS and self._default_root is not None:
            resource_id = self._default_root
        info = self._records.get(resource_id)
        if info is None:
            raise NotFound(f"No resource {resource_id!r}")
        return info

    def _new_id(self, prefix: str) -> str:
        self._next_id += 1
        return f"{prefix}-{self._next_id}"

    # AsyncResourceClient

    async def get_metadata(self, resource_id: str) -> Metadata:
        await self._remote("get_metadata", resource_id)
        return self._resolve(resource_id)

    async def list_children(self, container_id: str, page_size: int = 1000) -> List[Metadata]:
        await self._remote("list_children", container_id)
        self._resolve(container_id)
        children = [
            info for info in self._records.values()
            if info.parent_id == container_id or container_id in info.extra.get("parents", ())
        ]
        return children[:page_size]

    async def search(self, name_pattern: str, query_suffix: str = "") -> List[Metadata]:
        """Substring match on names; ``query_suffix`` is ignored by the fake."""
        await self._remote("search", name_pattern)
        return [info for info in self._records.values() if name_pattern in info.name]

    async def create_container(self, parent_id: str, name: str) -> Metadata:
        await self._remote("create_container", parent_id)
        self._resolve(parent_id)
        return self.add_container(parent_id, self._new_id("container"), name)

    async def create_leaf(self, parent_id: str, name: str, content_type: str) -> Metadata:
        await self._remote("create_leaf", parent_id)
        self._resolve(parent_id)
        return self.add_leaf(parent_id, self._new_id("leaf"), name, content_type=content_type)

    async def read_leaf_content(self, resource_id: str) -> Any:
        await self._remote("read_leaf_content", resource_id)
        self._resolve(resource_id)
        return self._content.get(resource_id)

    async def write_leaf_content(self, resource_id: str, body: Any) -> Any:
        await self._remote("write_leaf_content", resource_id)
        self._resolve(resource_id)
        self._content[resource_id] = body
        return {'id': resource_id, 'updated': True}

    async def list_roots(self) -> List[Metadata]:
        await self._remote("list_roots", None)
        return [self._records[root_id] for root_id in self._extra_roots]

    async def get_stats(self) -> dict:
        stats = await super().get_stats()
        stats['calls'] = dict(self.calls)
        return stats


class ForestTestHelper:
    """Public test fixture for verifying what a forest has materialized.

    Example:
        helper = ForestTestHelper(navigator.forest)
        assert helper.was_materialized("leaf-x")
        assert helper.get_summary()['ready_containers'] == 3
    """

    def __init__(self, forest):
        """Initialize with the forest to inspect (e.g. ``navigator.forest``)."""
        self._forest = forest

    def get_summary(self) -> Dict[str, Any]:
        """Returns high-level forest state for testing.

        Returns:
            Dictionary containing:
            - roots: Materialized roots
            - known_roots: Ids recognized as roots
            - materialized: Live materialized nodes (roots included)
            - ready_containers / unstarted_containers: Discovery states
            - loaded_leaves: Leaves whose content was fetched
        """
        nodes = [self._forest.find_materialized(i) for i in self._forest.materialized_ids()]
        nodes = [node for node in nodes if node is not None]
        containers = [node for node in nodes if node.is_container]
        return {
            'roots': len(self._forest.roots),
            'known_roots': len(self._forest.root_ids),
            'materialized': len(nodes),
            'ready_containers': sum(1 for n in containers if n.readiness is Readiness.READY),
            'unstarted_containers': sum(1 for n in containers if n.readiness is Readiness.UNSTARTED),
            'loaded_leaves': sum(1 for n in nodes if n.is_leaf and n.content is not UNLOADED),
        }

    def was_materialized(self, resource_id: str) -> bool:
        return self._forest.find_materialized(resource_id) is not None

    def materialization_order(self) -> List[str]:
        return self._forest.materialized_ids()

    def readiness_of(self, resource_id: str) -> Optional[Readiness]:
        node = self._forest.find_materialized(resource_id)
        return node.readiness if node is not None else None
