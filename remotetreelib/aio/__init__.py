"""Asynchronous implementation of RemoteTreeLib.

This package contains the async cache: nodes whose children are discovered
by remote calls, the forest that holds their roots, and the navigator that
searches and materializes paths across it.
"""

# Core abstractions
from .core import (
    AsyncResourceClient,
    Metadata,
    Node,
    PARENT_ALIAS,
    extract_id,
    parse_container_info,
    parse_leaf_info,
    parse_metadata,
)

# Content
from .content import UNLOADED, LeafContent, normalize_rows

# Forest and navigation
from .forest import Forest
from .navigator import Navigator

# Caching
from .caching import CachingResourceClient

# Error handling
from .error_handling import ErrorHandlingClient
from .error_policies import (
    ErrorPolicy,
    FailFastPolicy,
    RetryPolicy,
    CollectErrorsPolicy,
)

# Traversal
from .traversal import (
    AsyncTreeTraverser,
    AsyncBreadthFirstTraverser,
    AsyncDepthFirstTraverser,
    create_traverser,
)

# Configuration (re-exported)
from ..config import (
    NodeKind,
    Readiness,
    NavigatorConfig,
    ResolveOptions,
    DepthConfig,
)

__all__ = [
    # Core abstractions
    'AsyncResourceClient',
    'Metadata',
    'Node',
    'PARENT_ALIAS',
    'extract_id',
    'parse_container_info',
    'parse_leaf_info',
    'parse_metadata',
    # Content
    'UNLOADED',
    'LeafContent',
    'normalize_rows',
    # Forest and navigation
    'Forest',
    'Navigator',
    # Caching
    'CachingResourceClient',
    # Error handling
    'ErrorHandlingClient',
    'ErrorPolicy',
    'FailFastPolicy',
    'RetryPolicy',
    'CollectErrorsPolicy',
    # Traversal
    'AsyncTreeTraverser',
    'AsyncBreadthFirstTraverser',
    'AsyncDepthFirstTraverser',
    'create_traverser',
    # Configuration
    'NodeKind',
    'Readiness',
    'NavigatorConfig',
    'ResolveOptions',
    'DepthConfig',
]
