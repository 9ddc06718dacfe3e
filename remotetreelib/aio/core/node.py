"""Cached tree node.

A Node is one materialized vertex of a remote tree. Containers learn about
their children through a single discovery call and only promote child
metadata into Nodes when asked to; leaves never have children and load
their body lazily.
"""

import asyncio
import logging
import weakref
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterator, List, Optional, Set, Union

from ...config import NodeKind, Readiness
from ...errors import Conflict, InvalidOperation, NotFound, translate_transport_errors
from ..content import UNLOADED, LeafContent
from .client import AsyncResourceClient
from .metadata import Metadata

if TYPE_CHECKING:
    from ..forest import Forest

logger = logging.getLogger(__name__)

# Lookup alias for the parent of the node being searched
PARENT_ALIAS = ".."


class Node:
    """A cached container or leaf of a remote tree.

    The node owns its materialized children; children only keep a weak
    reference back to their parent, so dropping a node drops its whole
    subtree.

    Example:
        await folder.discover_children()
        report = folder.materialize_one("Report")
        rows = await report.load_content()
    """

    def __init__(
        self,
        metadata: Metadata,
        client: AsyncResourceClient,
        parent: Optional["Node"] = None,
        forest: Optional["Forest"] = None,
        page_size: int = 1000,
    ):
        """Initialize a node from its metadata.

        Args:
            metadata: Descriptor of the remote resource
            client: Client used for every remote call made by this node
            parent: Owning node, None for a forest root
            forest: Forest whose id index this node belongs to
            page_size: Maximum children requested by discovery
        """
        self._metadata = metadata
        self._client = client
        self._parent_ref = weakref.ref(parent) if parent is not None else None
        self._forest_ref = weakref.ref(forest) if forest is not None else None
        self.page_size = page_size

        self.child_containers: List[Metadata] = []
        self.child_leaves: List[Metadata] = []
        self.children: Dict[str, Node] = {}
        self._known_ids: Set[str] = set()

        # Leaves have nothing to discover
        if metadata.kind is NodeKind.LEAF:
            self._readiness = Readiness.READY
            self._content: Optional[LeafContent] = LeafContent(metadata, client)
        else:
            self._readiness = Readiness.UNSTARTED
            self._content = None
        self._discovery: Optional[asyncio.Task] = None

        # Statistics
        self.discovery_count = 0
        self.concurrent_waits = 0

    # Accessors

    @property
    def metadata(self) -> Metadata:
        return self._metadata

    @property
    def id(self) -> str:
        return self._metadata.id

    @property
    def name(self) -> str:
        return self._metadata.name

    @property
    def kind(self) -> NodeKind:
        return self._metadata.kind

    @property
    def content_type(self) -> Optional[str]:
        return self._metadata.content_type

    @property
    def is_leaf(self) -> bool:
        return self._metadata.kind is NodeKind.LEAF

    @property
    def is_container(self) -> bool:
        return self._metadata.kind is NodeKind.CONTAINER

    @property
    def parent(self) -> Optional["Node"]:
        """Owning node, or None for a root (or if the owner is gone)."""
        if self._parent_ref is None:
            return None
        return self._parent_ref()

    @property
    def forest(self) -> Optional["Forest"]:
        if self._forest_ref is None:
            return None
        return self._forest_ref()

    @property
    def readiness(self) -> Readiness:
        return self._readiness

    @property
    def is_ready(self) -> bool:
        return self._readiness is Readiness.READY

    @property
    def content(self) -> Any:
        """Cached leaf body, UNLOADED until first read (always UNLOADED for containers)."""
        if self._content is None:
            return UNLOADED
        return self._content.body

    @property
    def depth(self) -> int:
        depth = 0
        node = self.parent
        while node is not None:
            depth += 1
            node = node.parent
        return depth

    def path(self) -> List["Node"]:
        """Return the materialized chain from the top root down to this node."""
        chain = []
        node: Optional[Node] = self
        while node is not None:
            chain.append(node)
            node = node.parent
        chain.reverse()
        return chain

    def top_root(self) -> "Node":
        """Walk the parent chain up to the node that has no parent."""
        node = self
        while node.parent is not None:
            node = node.parent
        return node

    def get_child(self, child_id: str) -> Optional["Node"]:
        """Return a materialized child by id."""
        return self.children.get(child_id)

    def sibling(self, id_or_name: str) -> Optional["Node"]:
        """Find a materialized sibling by id, then by name."""
        parent = self.parent
        if parent is None:
            return None
        found = parent.children.get(id_or_name)
        if found is not None and found is not self:
            return found
        for child in parent.children.values():
            if child is not self and child.name == id_or_name:
                return child
        return None

    # Discovery

    async def discover_children(self) -> None:
        """Fetch child metadata once.

        The first caller starts the listing call; callers arriving while it
        is in flight await the same task. On failure the node goes back to
        UNSTARTED and every waiter sees the same exception.

        Raises:
            RemoteUnavailable: If the listing call failed
        """
        if self._readiness is Readiness.READY:
            return

        if self._discovery is None:
            self._readiness = Readiness.DISCOVERING
            self._discovery = asyncio.ensure_future(self._run_discovery())
            # Awaiting callers still receive the exception
            self._discovery.add_done_callback(lambda t: t.cancelled() or t.exception())
        else:
            self.concurrent_waits += 1

        # Shielded: an abandoned caller must not cancel the listing for others
        await asyncio.shield(self._discovery)

    async def _run_discovery(self) -> None:
        try:
            with translate_transport_errors("list_children", self.id):
                items = await self._client.list_children(self.id, page_size=self.page_size)
        except BaseException:
            self._readiness = Readiness.UNSTARTED
            self._discovery = None
            logger.warning("Discovery of %s (%s) failed; state rolled back", self.id, self.name)
            raise

        self.discovery_count += 1
        for item in items:
            self._record_metadata(item)
        self._readiness = Readiness.READY
        self._discovery = None
        logger.debug(
            "Discovered %d containers and %d leaves under %s",
            len(self.child_containers), len(self.child_leaves), self.id,
        )

    def _record_metadata(self, info: Metadata) -> None:
        """Append child metadata unless its id is already known."""
        if info.id in self._known_ids:
            return
        self._known_ids.add(info.id)
        if info.kind is NodeKind.CONTAINER:
            self.child_containers.append(info)
        else:
            self.child_leaves.append(info)

    # Materialization

    def _require_container(self, action: str) -> None:
        if self.is_leaf:
            raise InvalidOperation(f"Cannot {action} on leaf {self.id!r}")

    def _require_ready(self, action: str) -> None:
        self._require_container(action)
        if self._readiness is not Readiness.READY:
            raise InvalidOperation(
                f"Cannot {action} on {self.id!r} before discovery completed "
                f"(state: {self._readiness.value})"
            )

    def _materialized_elsewhere(self, resource_id: str) -> Optional["Node"]:
        """Node with this id owned by another parent in the same forest."""
        forest = self.forest
        if forest is None or resource_id in self.children:
            return None
        return forest.find_materialized(resource_id)

    def _add_branch(self, info: Metadata) -> "Node":
        """Materialize ``info`` as a child, reusing an existing child with that id.

        Raises:
            Conflict: If the id is already materialized under another parent
        """
        self._require_container("add a child")
        existing = self.children.get(info.id)
        if existing is not None:
            return existing

        elsewhere = self._materialized_elsewhere(info.id)
        if elsewhere is not None:
            owner = elsewhere.parent
            raise Conflict(
                f"{info.id!r} is already materialized under "
                f"{owner.id if owner is not None else 'the forest roots'!r}"
            )

        forest = self.forest
        child = Node(info, self._client, parent=self, forest=forest, page_size=self.page_size)
        self.children[info.id] = child
        if forest is not None:
            forest.register(child)
        logger.debug("Materialized %s %s (%s) under %s", info.kind.value, info.id, info.name, self.id)
        return child

    def materialize_all(self, containers: bool = True, leaves: bool = True) -> List["Node"]:
        """Promote every known child of the selected kinds into a Node.

        Entries already materialized under another parent (a leaf listed in
        several containers) are skipped and stay with their first parent.

        Args:
            containers: Materialize child containers
            leaves: Materialize child leaves

        Returns:
            The newly created nodes (children that already existed are not included)

        Raises:
            InvalidOperation: If discovery has not completed
        """
        self._require_ready("materialize children")
        created = []
        pending = []
        if containers:
            pending.extend(self.child_containers)
        if leaves:
            pending.extend(self.child_leaves)
        for info in pending:
            if info.id in self.children:
                continue
            if self._materialized_elsewhere(info.id) is not None:
                logger.debug("Skipping %s under %s, already materialized elsewhere", info.id, self.id)
                continue
            created.append(self._add_branch(info))
        return created

    def materialize_one(self, id_or_name: str) -> "Node":
        """Promote a single known child, matched by id first, then by exact name.

        Raises:
            InvalidOperation: If discovery has not completed
            NotFound: If no known child matches
            Conflict: If the match is already materialized under another parent
        """
        self._require_ready("materialize a child")
        existing = self.children.get(id_or_name)
        if existing is not None:
            return existing

        for matches in (_by_id(id_or_name), _by_name(id_or_name)):
            for info in self.child_containers + self.child_leaves:
                if matches(info):
                    return self._add_branch(info)
        raise NotFound(f"No child {id_or_name!r} under {self.id!r}")

    async def add_verified_child(self, child_id: str) -> "Node":
        """Fetch one child's metadata, check it really belongs here, and materialize it.

        Works whether or not this node has been discovered.

        Raises:
            NotFound: If the resource does not exist
            Conflict: If the resource's parent is not this node
        """
        self._require_container("add a child")
        existing = self.children.get(child_id)
        if existing is not None:
            return existing

        with translate_transport_errors("get_metadata", child_id):
            info = await self._client.get_metadata(child_id)

        parents = info.extra.get("parents", ())
        if info.parent_id != self.id and self.id not in parents:
            raise Conflict(
                f"{child_id!r} is a child of {info.parent_id!r}, not of {self.id!r}"
            )
        self._record_metadata(info)
        return self._add_branch(info)

    # Local lookup (no remote calls)

    def _local_candidates(self, matches: Callable[[Metadata], bool]) -> Iterator[Union["Node", Metadata]]:
        if matches(self._metadata):
            yield self
        for child in self.children.values():
            if matches(child.metadata):
                yield child
        for info in self.child_containers + self.child_leaves:
            if info.id not in self.children and matches(info):
                yield info

    def _accept(self, candidate: Union["Node", Metadata]) -> "Node":
        if isinstance(candidate, Node):
            return candidate
        # One node per id: reuse the one owned by another parent
        elsewhere = self._materialized_elsewhere(candidate.id)
        if elsewhere is not None:
            return elsewhere
        return self._add_branch(candidate)

    def lookup_local(self, id_or_name: str, required_kind: Optional[NodeKind] = None) -> Optional["Node"]:
        """Match this node, its children and its known child metadata.

        Ids are tried first across all three scopes, then names. A metadata
        match is materialized on the spot, unless another parent already
        owns a node with that id, which is then returned instead.

        Args:
            id_or_name: Id, exact name, or ".." for the parent
            required_kind: Only accept nodes of this kind

        Returns:
            The matching node, or None
        """
        if id_or_name == PARENT_ALIAS:
            parent = self.parent
            if parent is not None and _kind_ok(parent.kind, required_kind):
                return parent
            return None

        # Ids are unique: a wrong-kind id match ends the search
        for candidate in self._local_candidates(_by_id(id_or_name)):
            if not _kind_ok(candidate.kind, required_kind):
                return None
            return self._accept(candidate)

        for candidate in self._local_candidates(_by_name(id_or_name)):
            if _kind_ok(candidate.kind, required_kind):
                return self._accept(candidate)
        return None

    def lookup_descendant(self, id_or_name: str, required_kind: Optional[NodeKind] = None) -> Optional["Node"]:
        """Depth-first search over materialized nodes below (and including) this one.

        Never triggers discovery, so the cost is bounded by what is
        already cached.
        """
        found = self.lookup_local(id_or_name, required_kind)
        if found is not None or id_or_name == PARENT_ALIAS:
            return found
        for child in list(self.children.values()):
            if child.is_leaf:
                continue
            found = child.lookup_descendant(id_or_name, required_kind)
            if found is not None:
                return found
        return None

    # Remote creation

    async def create_container(self, name: str) -> "Node":
        """Create a container under this node and materialize it."""
        self._require_container("create a container")
        with translate_transport_errors("create_container", self.id):
            info = await self._client.create_container(self.id, name)
        self._record_metadata(info)
        logger.info("Created container %s (%s) under %s", info.id, name, self.id)
        return self._add_branch(info)

    async def create_leaf(self, name: str, content_type: str) -> "Node":
        """Create a leaf of ``content_type`` under this node and materialize it."""
        self._require_container("create a leaf")
        with translate_transport_errors("create_leaf", self.id):
            info = await self._client.create_leaf(self.id, name, content_type)
        self._record_metadata(info)
        logger.info("Created leaf %s (%s) under %s", info.id, name, self.id)
        return self._add_branch(info)

    # Content

    async def load_content(self, refresh: bool = False) -> Any:
        """Return the leaf body, fetching it on first use.

        Raises:
            InvalidOperation: On a container
        """
        if self._content is None:
            raise InvalidOperation(f"Container {self.id!r} has no content")
        return await self._content.load(refresh=refresh)

    async def save(self, body: Any = UNLOADED) -> Any:
        """Write the leaf body back to the remote store.

        Raises:
            InvalidOperation: On a container
            ContentNotLoaded: If the body was never loaded
        """
        if self._content is None:
            raise InvalidOperation(f"Container {self.id!r} has no content")
        return await self._content.save(body)

    def __repr__(self) -> str:
        return f"Node({self.kind.value}, id={self.id!r}, name={self.name!r})"


def _by_id(value: str) -> Callable[[Metadata], bool]:
    return lambda info: info.id == value


def _by_name(value: str) -> Callable[[Metadata], bool]:
    return lambda info: info.name == value


def _kind_ok(kind: NodeKind, required_kind: Optional[NodeKind]) -> bool:
    return required_kind is None or kind is required_kind
