"""Configuration system for RemoteTreeLib.

This module defines the node kinds and readiness states shared by the whole
library, plus the dataclasses callers use to tune navigation, search and
traversal.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional, Sequence


class NodeKind(Enum):
    """What a node is. Immutable once a node exists."""
    CONTAINER = "container"     # May own children (folder/drive analogue)
    LEAF = "leaf"               # Never has children, may hold content


class Readiness(Enum):
    """Discovery state of a node's child metadata.

    Child metadata is only trustworthy once a node is READY.
    """
    UNSTARTED = "unstarted"
    DISCOVERING = "discovering"
    READY = "ready"


# Callback picking one candidate out of several search results.
ChooseIndex = Callable[[Sequence[Any]], int]


@dataclass
class NavigatorConfig:
    """Configuration for a Navigator and the nodes it creates."""

    # Discovery: one bounded page per container. Children beyond it are
    # only reachable through targeted adds during global resolution.
    page_size: int = 1000

    # Id (or alias understood by the client) of the tree opened by start()
    default_root: str = "root"

    # Metadata caching in front of the client
    cache_metadata: bool = True
    metadata_cache_size: int = 10000
    metadata_cache_ttl: float = 60.0  # seconds

    # Upper bound on parallel remote calls
    max_concurrent: int = 100

    def validate(self) -> List[str]:
        """Validate configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if self.page_size < 1:
            errors.append("page_size must be at least 1")

        if not self.default_root:
            errors.append("default_root must not be empty")

        if self.metadata_cache_size < 1:
            errors.append("metadata_cache_size must be at least 1")

        if self.metadata_cache_ttl <= 0:
            errors.append("metadata_cache_ttl must be positive")

        if self.max_concurrent < 1:
            errors.append("max_concurrent must be at least 1")

        return errors


@dataclass
class ResolveOptions:
    """Options for Navigator.resolve_global."""

    skip_cache: bool = False          # Don't look in the materialized forest first
    interactive: bool = False         # Ask choose_index when several candidates match
    materialize_path: bool = True     # False returns raw Metadata, no tree mutation
    query_suffix: str = ""            # Appended to the client's search query
    choose_index: Optional[ChooseIndex] = None  # Overrides the navigator's callback


@dataclass
class DepthConfig:
    """Configuration for depth-based filtering during traversal."""

    min_depth: int = 0                 # Minimum depth to yield
    max_depth: Optional[int] = None    # Maximum depth to traverse

    def should_yield(self, depth: int) -> bool:
        """Check if nodes at this depth should be yielded."""
        if depth < self.min_depth:
            return False
        if self.max_depth is not None and depth > self.max_depth:
            return False
        return True

    def should_explore(self, depth: int) -> bool:
        """Check if children at this depth should be explored."""
        if self.max_depth is None:
            return True
        return depth < self.max_depth
