"""Navigation and global search over a forest of cached trees.

The Navigator owns the Forest and a cursor (current root, current node).
Local operations only look at what is already cached; ``resolve_global``
searches the remote store, rebuilds the path from the match up to a known
root and materializes exactly the nodes on that path.

Example:
    async with Navigator(client) as nav:
        report = await nav.resolve_global("Quarterly Report")
        rows = await report.load_content()
"""

import logging
from typing import AsyncIterator, List, Optional, Tuple, Union

from ..config import ChooseIndex, NavigatorConfig, NodeKind, ResolveOptions
from ..errors import InvalidOperation, NotFound
from .caching import CachingResourceClient
from .core.client import AsyncResourceClient
from .core.metadata import Metadata, extract_id
from .core.node import Node
from .error_handling import ErrorHandlingClient
from .error_policies import ErrorPolicy
from .forest import Forest
from .traversal import create_traverser

logger = logging.getLogger(__name__)


class Navigator:
    """Cursor-based access to every tree the client can reach."""

    def __init__(
        self,
        client: AsyncResourceClient,
        config: Optional[NavigatorConfig] = None,
        choose_index: Optional[ChooseIndex] = None,
        error_policy: Optional[ErrorPolicy] = None,
    ):
        """Initialize a navigator. Call ``start()`` (or use ``async with``) before navigating.

        Args:
            client: Resource client for the remote store
            config: Navigator configuration
            choose_index: Callback picking one of several search candidates
            error_policy: Policy for failed remote calls (fail fast by default)

        Raises:
            ValueError: If the configuration is invalid
        """
        self.config = config or NavigatorConfig()
        errors = self.config.validate()
        if errors:
            raise ValueError(f"Invalid configuration: {', '.join(errors)}")

        self._base_client = client
        handled = ErrorHandlingClient(client, error_policy)
        if self.config.cache_metadata:
            self.client = CachingResourceClient(
                handled,
                max_size=self.config.metadata_cache_size,
                ttl=self.config.metadata_cache_ttl,
            )
        else:
            self.client = handled

        self.forest = Forest(self.client, page_size=self.config.page_size)
        self.choose_index = choose_index
        self.current_root: Optional[Node] = None
        self.current: Optional[Node] = None

    # Lifecycle

    async def start(self, root_id: Optional[str] = None) -> Node:
        """Recognize every reachable root and open the default one.

        Args:
            root_id: Root to open instead of ``config.default_root``

        Returns:
            The opened root node
        """
        for info in await self.client.list_roots():
            if info.is_container:
                self.forest.recognize_root(info)

        default = await self.client.get_metadata(root_id or self.config.default_root)
        root = self.forest.admit_root(default)
        self._set_cursor(root, root)
        logger.info("Navigator started on %s (%s), %d roots known",
                    root.id, root.name, len(self.forest.root_ids))
        return root

    async def close(self) -> None:
        await self.client.close()

    async def __aenter__(self):
        if self.current is None:
            await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def _require_cursor(self) -> Node:
        if self.current is None:
            raise InvalidOperation("Navigator has not been started")
        return self.current

    def _set_cursor(self, root: Node, current: Node) -> None:
        self.current_root = root
        self.current = current
        logger.info("Cursor at %s (%s) in root %s", current.id, current.name, root.id)

    # Roots

    async def switch_root(self, root_id: str) -> Node:
        """Point the cursor at the root ``root_id``, admitting it if needed.

        Raises:
            NotFound: If ``root_id`` is neither a forest root nor a root-shaped resource
        """
        root = self.forest.get_root(root_id)
        if root is None:
            metadata = self.forest.root_metadata.get(root_id)
            if metadata is None:
                metadata = await self.client.get_metadata(root_id)
            if not (metadata.is_root_shaped and metadata.is_container):
                raise NotFound(f"{root_id!r} is not a root")
            self.forest.admit_root(metadata)
            root = self.forest.get_root(metadata.id)
            if root is None:
                raise NotFound(f"{root_id!r} is not a root")

        self._set_cursor(root, root)
        return root

    # Local navigation

    def find_local(self, id_or_name: str, required_kind: Optional[NodeKind] = None) -> Optional[Node]:
        """Search the cached subtree under the cursor. No remote calls."""
        return self._require_cursor().lookup_descendant(id_or_name, required_kind)

    async def _lookup_here(self, id_or_name: str, required_kind: Optional[NodeKind]) -> Node:
        cursor = self._require_cursor()
        found = cursor.lookup_local(id_or_name, required_kind)
        if found is None and not cursor.is_ready:
            await cursor.discover_children()
            found = cursor.lookup_local(id_or_name, required_kind)
        if found is None:
            raise NotFound(f"No {id_or_name!r} in {cursor.name!r}")
        return found

    async def switch_local(self, id_or_name: str, load: bool = False) -> Node:
        """Move the cursor to a container next to (or below) it.

        Args:
            id_or_name: Id, name, or ".." for the parent
            load: Also discover and materialize the new cursor's children

        Raises:
            NotFound: If no such container exists here
        """
        found = await self._lookup_here(id_or_name, NodeKind.CONTAINER)
        self._set_cursor(self.current_root, found)
        if load:
            await self.load_children(found)
        return found

    async def change_directory(self, id_or_name: str, load: bool = False) -> Node:
        """Alias of ``switch_local``."""
        return await self.switch_local(id_or_name, load=load)

    async def read_entry(self, id_or_name: str) -> Node:
        """Return a node next to the cursor without moving it.

        Raises:
            NotFound: If nothing matches here
        """
        return await self._lookup_here(id_or_name, None)

    async def load_children(self, node: Optional[Node] = None, containers: bool = True,
                            leaves: bool = True) -> List[Node]:
        """Discover ``node`` (the cursor by default) and materialize its children.

        Returns:
            The newly materialized children
        """
        node = node or self._require_cursor()
        await node.discover_children()
        return node.materialize_all(containers=containers, leaves=leaves)

    # Global resolution

    async def resolve_global(
        self,
        id_or_name: str,
        options: Optional[ResolveOptions] = None,
    ) -> Union[Node, Metadata]:
        """Find a resource anywhere and materialize the path to it.

        Already materialized nodes win without any remote call (unless
        ``options.skip_cache``). Otherwise the remote store is searched; when
        several candidates match, ``choose_index`` decides in interactive
        mode and the first candidate wins otherwise (exact name matches are
        ordered before partial ones).

        Args:
            id_or_name: Id or name of the resource
            options: Resolution options

        Returns:
            The materialized Node, or the candidate's Metadata when
            ``options.materialize_path`` is False

        Raises:
            NotFound: If nothing matches or the path cannot be rebuilt
            InvalidOperation: Interactive mode without a callback, or a bad index
            Conflict: If the candidate moved while its path was being rebuilt
            RemoteUnavailable: If a remote call failed
        """
        options = options or ResolveOptions()
        chooser = options.choose_index or self.choose_index
        if options.interactive and chooser is None:
            raise InvalidOperation("Interactive resolution needs a choose_index callback")

        if not options.skip_cache:
            found = self.forest.lookup(id_or_name)
            if found is not None:
                logger.debug("Resolved %r from the cache", id_or_name)
                return found

        candidates = await self._search(id_or_name, options.query_suffix)
        candidate = self._choose(candidates, options, chooser)
        if not options.materialize_path:
            return candidate
        return await self._materialize_path(candidate)

    async def _search(self, id_or_name: str, query_suffix: str) -> List[Metadata]:
        candidates = await self.client.search(id_or_name, query_suffix)
        if not candidates:
            # Maybe it is an id rather than a name
            try:
                candidates = [await self.client.get_metadata(id_or_name)]
            except NotFound as e:
                raise NotFound(f"Nothing matches {id_or_name!r}") from e

        exact = [c for c in candidates if c.matches(id_or_name)]
        partial = [c for c in candidates if not c.matches(id_or_name)]
        return exact + partial

    def _choose(self, candidates: List[Metadata], options: ResolveOptions,
                chooser: Optional[ChooseIndex]) -> Metadata:
        if len(candidates) > 1 and options.interactive:
            index = chooser(candidates)
            if not isinstance(index, int) or not 0 <= index < len(candidates):
                raise InvalidOperation(
                    f"choose_index returned {index!r} for {len(candidates)} candidates"
                )
            return candidates[index]
        if len(candidates) > 1:
            logger.debug("%d candidates, using the first (%s)", len(candidates), candidates[0].id)
        return candidates[0]

    async def _materialize_path(self, candidate: Metadata) -> Node:
        if candidate.is_root_shaped:
            if not candidate.is_container:
                raise NotFound(f"{candidate.id!r} is not reachable from any root")
            return self.forest.admit_root(candidate)

        top, chain = await self._ancestor_chain(candidate.parent_id)
        node = top
        for ancestor_id in chain:
            node = await self._descend(node, ancestor_id)

        if candidate.is_container:
            return await self._descend(node, candidate.id)
        existing = node.get_child(candidate.id)
        if existing is not None:
            return existing
        return await node.add_verified_child(candidate.id)

    async def _ancestor_chain(self, parent_id: str) -> Tuple[Node, List[str]]:
        """Walk up from ``parent_id`` to a root or an already materialized ancestor.

        Returns:
            (node to start descending from, ancestor ids top-down below it)
        """
        chain = []
        current_id = parent_id
        while not self.forest.is_root_id(current_id):
            materialized = self.forest.find_materialized(current_id)
            if materialized is not None:
                chain.reverse()
                return materialized, chain

            info = await self.client.get_metadata(current_id)
            logger.debug("Path step %s (%s)", info.id, info.name)
            if info.is_root_shaped:
                self.forest.recognize_root(info)
                current_id = info.id
                break
            chain.append(info.id)
            current_id = info.parent_id

        chain.reverse()
        root = self.forest.get_root(current_id)
        if root is None:
            root = self.forest.admit_root(self.forest.root_metadata[current_id])
        return root, chain

    async def _descend(self, parent: Node, child_id: str) -> Node:
        existing = parent.get_child(child_id)
        if existing is not None:
            return existing
        await parent.discover_children()
        try:
            return parent.materialize_one(child_id)
        except NotFound:
            # Beyond the listing page bound, or listed after discovery
            logger.debug("%s missing from the listing of %s, adding it directly", child_id, parent.id)
            return await parent.add_verified_child(child_id)

    # Creation

    async def create_container(self, name: str, parent: Optional[Node] = None) -> Node:
        """Create a container under ``parent`` (the cursor by default)."""
        return await (parent or self._require_cursor()).create_container(name)

    async def create_leaf(self, name: str, content_type: str, parent: Optional[Node] = None) -> Node:
        """Create a leaf under ``parent`` (the cursor by default)."""
        return await (parent or self._require_cursor()).create_leaf(name, content_type)

    # Traversal

    async def walk(
        self,
        node: Optional[Node] = None,
        strategy: str = 'bfs',
        expand: bool = False,
        max_depth: Optional[int] = None,
        containers: bool = True,
        leaves: bool = True,
    ) -> AsyncIterator[Node]:
        """Traverse from ``node`` (the cursor by default).

        Args:
            strategy: 'bfs', 'dfs' or 'dfs_post'
            expand: Discover and materialize containers along the way
            max_depth: Maximum depth below ``node``
        """
        options = {'expand': expand, 'containers': containers, 'leaves': leaves}
        if strategy == 'bfs':
            options['max_concurrent'] = self.config.max_concurrent
        traverser = create_traverser(strategy, **options)
        async for visited in traverser.traverse(node or self._require_cursor(), max_depth=max_depth):
            yield visited

    # Helpers

    @staticmethod
    def extract_id(url: str) -> str:
        """Return the resource id embedded in a share URL."""
        return extract_id(url)

    async def get_stats(self) -> dict:
        stats = await self.client.get_stats()
        stats.update({
            'roots': len(self.forest),
            'known_roots': len(self.forest.root_ids),
            'materialized': len(self.forest.materialized_ids()),
        })
        return stats
