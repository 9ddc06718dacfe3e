"""
Caching layer for RemoteTreeLib - Optional remote-call reduction.

This module provides opt-in metadata caching in front of a resource client,
so repeated path reconstructions do not refetch the same ancestors.
"""

from .adapter import CachingResourceClient

__all__ = [
    'CachingResourceClient',
]
