"""Async traversal of cached trees.

Traversers walk the materialized part of a tree. With ``expand=True`` they
also discover and materialize every container they reach, growing the
cache as they go; without it they never make a remote call.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import AsyncIterator, List, Optional

from ..config import DepthConfig
from .core.node import Node


async def _expand(node: Node, containers: bool, leaves: bool) -> None:
    """Discover ``node`` and materialize the selected kinds of children."""
    if node.is_leaf:
        return
    await node.discover_children()
    node.materialize_all(containers=containers, leaves=leaves)


class AsyncTreeTraverser(ABC):
    """Abstract base class for node traversers.

    All traversers stream nodes using AsyncIterator so a caller can stop
    early without expanding the rest of the tree.
    """

    def __init__(
        self,
        depth_config: Optional[DepthConfig] = None,
        expand: bool = False,
        containers: bool = True,
        leaves: bool = True,
    ):
        """Initialize traverser.

        Args:
            depth_config: Configuration for depth-based filtering
            expand: Discover and materialize children of every visited container
            containers: When expanding, materialize child containers
            leaves: When expanding, materialize child leaves
        """
        self.depth_config = depth_config or DepthConfig()
        self.expand = expand
        self.containers = containers
        self.leaves = leaves

    @abstractmethod
    async def traverse(self, root: Node, max_depth: Optional[int] = None) -> AsyncIterator[Node]:
        """Traverse tree starting from root.

        Args:
            root: Starting node
            max_depth: Maximum depth to traverse (overrides config)

        Yields:
            Nodes in traversal order
        """
        pass

    def depth_limits(self, max_depth: Optional[int]) -> DepthConfig:
        """Depth config for one traversal; ``self.depth_config`` is never modified."""
        if max_depth is None:
            return self.depth_config
        return replace(self.depth_config, max_depth=max_depth)


class AsyncBreadthFirstTraverser(AsyncTreeTraverser):
    """Breadth-first (level-order) traversal.

    When expanding, every container of a level is discovered in parallel
    (bounded by ``max_concurrent``) before the level is yielded.
    """

    def __init__(self, *args, max_concurrent: int = 10, **kwargs):
        super().__init__(*args, **kwargs)
        self.max_concurrent = max_concurrent

    async def traverse(self, root: Node, max_depth: Optional[int] = None) -> AsyncIterator[Node]:
        limits = self.depth_limits(max_depth)

        semaphore = asyncio.Semaphore(self.max_concurrent)

        async def expand_one(node: Node) -> None:
            async with semaphore:
                await _expand(node, self.containers, self.leaves)

        current_level: List[Node] = [root]
        depth = 0
        while current_level:
            explore = limits.should_explore(depth)
            if self.expand and explore:
                await asyncio.gather(*(expand_one(node) for node in current_level))

            next_level: List[Node] = []
            for node in current_level:
                if limits.should_yield(depth):
                    yield node
                if explore:
                    next_level.extend(node.children.values())

            current_level = next_level
            depth += 1


class AsyncDepthFirstTraverser(AsyncTreeTraverser):
    """Depth-first traversal.

    Explores as far as possible along each branch before backtracking.
    """

    def __init__(self, *args, pre_order: bool = True, **kwargs):
        """Initialize depth-first traverser.

        Args:
            pre_order: If True, yield parent before children (pre-order).
                      If False, yield children before parent (post-order).
        """
        super().__init__(*args, **kwargs)
        self.pre_order = pre_order

    async def traverse(self, root: Node, max_depth: Optional[int] = None) -> AsyncIterator[Node]:
        limits = self.depth_limits(max_depth)

        async def dfs(node: Node, depth: int) -> AsyncIterator[Node]:
            if self.pre_order and limits.should_yield(depth):
                yield node

            if limits.should_explore(depth) and not node.is_leaf:
                if self.expand:
                    await _expand(node, self.containers, self.leaves)
                for child in list(node.children.values()):
                    async for descendant in dfs(child, depth + 1):
                        yield descendant

            if not self.pre_order and limits.should_yield(depth):
                yield node

        async for node in dfs(root, 0):
            yield node


def create_traverser(strategy: str = 'bfs', **kwargs) -> AsyncTreeTraverser:
    """Build a traverser by name ('bfs', 'dfs' or 'dfs_post')."""
    if strategy == 'bfs':
        return AsyncBreadthFirstTraverser(**kwargs)
    if strategy == 'dfs':
        return AsyncDepthFirstTraverser(pre_order=True, **kwargs)
    if strategy == 'dfs_post':
        return AsyncDepthFirstTraverser(pre_order=False, **kwargs)
    raise ValueError(f"Unknown strategy: {strategy}")
