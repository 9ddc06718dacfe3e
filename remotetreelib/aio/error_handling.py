"""
Error handling client for RemoteTreeLib.

This module provides the ErrorHandlingClient that wraps a resource client,
turns transport failures into library errors and delegates the
raise-or-retry decision to pluggable policies.
"""

import functools
import inspect
import logging
from typing import Any

from ..errors import RemoteTreeError, translate_transport_errors
from .error_policies import ErrorPolicy, FailFastPolicy

logger = logging.getLogger(__name__)


class ErrorHandlingClient:
    """
    Client wrapper that handles errors through policies.

    This wrapper uses the dynamic proxy pattern to automatically wrap
    every coroutine method of the underlying client. ``OSError`` and
    timeouts raised by the transport become ``RemoteUnavailable`` (chained
    to the original), then the configured error policy either re-raises
    or asks for the call to be repeated. Each attempt holds a permit of the
    base client's ``semaphore``, which bounds parallel remote calls to its
    ``max_concurrent``.

    This design allows for flexible error handling strategies without
    modifying the client implementations.
    """

    def __init__(self, base_client: Any, policy: ErrorPolicy = None):
        """
        Initialize the error handling client.

        Args:
            base_client: The client to wrap
            policy: Error handling policy (defaults to FailFastPolicy)
        """
        self._base_client = base_client
        self._policy = policy or FailFastPolicy()

    async def __aenter__(self):
        """Enter async context manager."""
        if hasattr(self._base_client, '__aenter__'):
            await self._base_client.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Exit async context manager."""
        if hasattr(self._base_client, '__aexit__'):
            return await self._base_client.__aexit__(exc_type, exc_val, exc_tb)
        return None

    def __getattr__(self, name: str) -> Any:
        """
        Dynamic proxy that wraps coroutine methods with error handling.

        Called only for attributes that don't exist on this object, so
        everything not defined here is looked up on the base client.
        Plain attributes and synchronous methods are returned as-is.
        """
        attr = getattr(self._base_client, name)

        if not inspect.iscoroutinefunction(attr):
            return attr

        @functools.wraps(attr)
        async def wrapper(*args, **kwargs):
            return await self._call_with_policy(attr, name, *args, **kwargs)

        return wrapper

    async def _call_with_policy(self, method, method_name: str, *args, **kwargs) -> Any:
        """
        Run ``method`` until it succeeds or the policy gives up.

        Args:
            method: Bound coroutine method of the base client
            method_name: Name of the method being called
            *args: Original method arguments
            **kwargs: Original method keyword arguments

        Returns:
            The result of the first successful call
        """
        target = args[0] if args else None
        attempt = 0
        while True:
            attempt += 1
            try:
                return await self._attempt(method, method_name, target, args, kwargs)
            except RemoteTreeError as e:
                # Returns only when the call should be repeated
                await self._policy.handle(e, method_name, attempt, *args, **kwargs)
                logger.debug("Retrying %s for %r (attempt %d)", method_name, target, attempt + 1)

    async def _attempt(self, method, method_name: str, target: Any, args: tuple, kwargs: dict) -> Any:
        """One call, holding a permit of the base client's semaphore while it runs.

        The permit is released before the policy sleeps, so backoff never
        blocks other calls.
        """
        semaphore = getattr(self._base_client, 'semaphore', None)
        with translate_transport_errors(method_name, target):
            if semaphore is None:
                return await method(*args, **kwargs)
            async with semaphore:
                return await method(*args, **kwargs)

    def get_policy(self) -> ErrorPolicy:
        """
        Get the current error policy.
        """
        return self._policy

    def set_policy(self, policy: ErrorPolicy) -> None:
        """
        Change the error policy.
        """
        self._policy = policy

    def get_base_client(self) -> Any:
        """
        Get the wrapped base client.
        """
        return self._base_client

    def __repr__(self) -> str:
        """String representation."""
        return f"ErrorHandlingClient({self._base_client!r}, policy={self._policy.__class__.__name__})"
