"""Testing utilities for RemoteTreeLib consumers."""

from .fixtures import DEFAULT_ROOT_ALIAS, ForestTestHelper, InMemoryResourceClient

__all__ = ['DEFAULT_ROOT_ALIAS', 'ForestTestHelper', 'InMemoryResourceClient']
