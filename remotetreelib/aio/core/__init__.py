"""Core abstractions for the async remote tree cache.

This module defines the resource client interface, the metadata records it
returns and the cached Node built from them.
"""

from .metadata import (
    Metadata,
    parse_container_info,
    parse_leaf_info,
    parse_metadata,
    extract_id,
)
from .client import AsyncResourceClient
from .node import Node, PARENT_ALIAS

__all__ = [
    # Metadata
    'Metadata',
    'parse_container_info',
    'parse_leaf_info',
    'parse_metadata',
    'extract_id',
    # Client
    'AsyncResourceClient',
    # Node
    'Node',
    'PARENT_ALIAS',
]
