"""Multi-root forest of cached trees.

The forest owns the root nodes, remembers which ids are roots (whether or
not they have been materialized yet) and indexes every materialized node by
id so the same resource is never materialized twice.
"""

import logging
import weakref
from typing import Dict, Iterator, List, Optional, Set

from ..config import NodeKind
from ..errors import InvalidOperation
from .core.client import AsyncResourceClient
from .core.metadata import Metadata
from .core.node import Node

logger = logging.getLogger(__name__)


class Forest:
    """Ordered collection of root nodes plus the ids known to be roots."""

    def __init__(self, client: AsyncResourceClient, page_size: int = 1000):
        """Initialize an empty forest.

        Args:
            client: Client handed to every node of the forest
            page_size: Discovery page size for every node of the forest
        """
        self._client = client
        self.page_size = page_size
        self.roots: List[Node] = []
        self.root_ids: Set[str] = set()
        self.root_metadata: Dict[str, Metadata] = {}
        self._index: Dict[str, "weakref.ref[Node]"] = {}

    # Root management

    def recognize_root(self, metadata: Metadata) -> None:
        """Remember ``metadata`` as a root without materializing it."""
        if metadata.kind is not NodeKind.CONTAINER:
            raise InvalidOperation(f"Root {metadata.id!r} must be a container")
        if metadata.id not in self.root_ids:
            logger.debug("Recognized root %s (%s)", metadata.id, metadata.name)
        self.root_ids.add(metadata.id)
        self.root_metadata.setdefault(metadata.id, metadata)

    def admit_root(self, metadata: Metadata) -> Node:
        """Materialize ``metadata`` as a root node, or return the existing one.

        Raises:
            InvalidOperation: If the metadata describes a leaf
        """
        existing = self.get_root(metadata.id)
        if existing is not None:
            return existing

        self.recognize_root(metadata)
        root = Node(metadata, self._client, forest=self, page_size=self.page_size)
        self.roots.append(root)
        self.register(root)
        logger.info("Admitted root %s (%s)", metadata.id, metadata.name)
        return root

    def get_root(self, root_id: str) -> Optional[Node]:
        """Return the materialized root with this id."""
        for root in self.roots:
            if root.id == root_id:
                return root
        return None

    def is_root_id(self, resource_id: str) -> bool:
        return resource_id in self.root_ids

    # Materialized-node index

    def register(self, node: Node) -> None:
        self._index[node.id] = weakref.ref(node)

    def find_materialized(self, resource_id: str) -> Optional[Node]:
        """Return the materialized node with this id anywhere in the forest."""
        ref = self._index.get(resource_id)
        if ref is None:
            return None
        node = ref()
        if node is None:
            del self._index[resource_id]
        return node

    def materialized_ids(self) -> List[str]:
        """Ids of live materialized nodes, in materialization order."""
        return [resource_id for resource_id, ref in self._index.items() if ref() is not None]

    # Search

    def lookup(self, id_or_name: str, required_kind: Optional[NodeKind] = None) -> Optional[Node]:
        """Run ``lookup_descendant`` on every root; first hit wins."""
        for root in self.roots:
            found = root.lookup_descendant(id_or_name, required_kind)
            if found is not None:
                return found
        return None

    def __iter__(self) -> Iterator[Node]:
        return iter(self.roots)

    def __len__(self) -> int:
        return len(self.roots)

    def __contains__(self, resource_id: object) -> bool:
        return resource_id in self.root_ids

    def __repr__(self) -> str:
        return f"Forest(roots={[root.id for root in self.roots]!r})"
