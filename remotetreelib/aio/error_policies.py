"""
Error handling policies for RemoteTreeLib.

This module provides a flexible error handling system through the Policy
pattern, letting callers decide what happens when a remote call fails:
give up immediately, or retry transient failures with backoff.

A policy never turns a failure into a silent default. ``handle`` either
raises (give up) or returns (call again).
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..errors import RemoteTreeError, RemoteUnavailable

logger = logging.getLogger(__name__)


class ErrorPolicy(ABC):
    """
    Base class for error handling policies.

    Subclasses implement different strategies for handling errors
    raised by resource client calls.
    """

    @abstractmethod
    async def handle(self, error: RemoteTreeError, method_name: str, attempt: int, *args, **kwargs) -> None:
        """
        Handle an error raised by a client call.

        Args:
            error: The (already translated) library error
            method_name: Name of the client method that failed (e.g., 'list_children')
            attempt: 1 for the first failure of this call, 2 for the second, ...
            *args: Positional arguments of the failed call
            **kwargs: Keyword arguments of the failed call

        Returns:
            None to have the call retried.

        Raises:
            The error (or another one) to give up.
        """
        pass


class FailFastPolicy(ErrorPolicy):
    """
    Policy that immediately re-raises any error.

    This is the default behavior. Useful when the caller runs its own
    retry loop or when every failure must surface at once.
    """

    async def handle(self, error: RemoteTreeError, method_name: str, attempt: int, *args, **kwargs) -> None:
        """Re-raise the error immediately."""
        raise error


class RetryPolicy(ErrorPolicy):
    """
    Policy that retries ``RemoteUnavailable`` with exponential backoff.

    ``NotFound``, ``InvalidOperation`` and ``Conflict`` are not transient
    and are re-raised on first sight.
    """

    def __init__(self, max_retries: int = 3, backoff_factor: float = 2.0, base_delay: float = 0.1):
        """
        Initialize retry policy.

        Args:
            max_retries: Maximum number of retry attempts per call
            backoff_factor: Multiplier for exponential backoff
            base_delay: Delay before the first retry, in seconds
        """
        self.max_retries = max_retries
        self.backoff_factor = backoff_factor
        self.base_delay = base_delay
        self.retry_counts: Dict[str, int] = {}

    def delay_for(self, attempt: int) -> float:
        return self.base_delay * (self.backoff_factor ** (attempt - 1))

    async def handle(self, error: RemoteTreeError, method_name: str, attempt: int, *args, **kwargs) -> None:
        """Sleep and return (retry) while attempts remain, otherwise re-raise."""
        if not isinstance(error, RemoteUnavailable) or attempt > self.max_retries:
            raise error

        self.retry_counts[method_name] = self.retry_counts.get(method_name, 0) + 1
        delay = self.delay_for(attempt)
        logger.warning(
            "%s failed (attempt %d/%d), retrying in %.2fs: %s",
            method_name, attempt, self.max_retries, delay, error,
        )
        await asyncio.sleep(delay)


class CollectErrorsPolicy(ErrorPolicy):
    """
    Policy that records every error before delegating to another policy.

    Useful for presenting all failures of a long expansion at the end
    while keeping the delegate's raise-or-retry decision.
    """

    def __init__(self, delegate: Optional[ErrorPolicy] = None):
        """
        Initialize the policy.

        Args:
            delegate: Policy that decides after recording (defaults to FailFastPolicy)
        """
        self.delegate = delegate or FailFastPolicy()
        self.errors: List[Dict[str, Any]] = []

    async def handle(self, error: RemoteTreeError, method_name: str, attempt: int, *args, **kwargs) -> None:
        """Record the error, then let the delegate decide."""
        self.errors.append({
            'target': args[0] if args else None,
            'method': method_name,
            'attempt': attempt,
            'error': error,
            'error_type': type(error).__name__,
            'error_message': str(error),
        })
        await self.delegate.handle(error, method_name, attempt, *args, **kwargs)

    def get_statistics(self) -> dict:
        """
        Get statistics about errors encountered.

        Returns:
            Dictionary with error counts and details
        """
        return {
            'total_errors': len(self.errors),
            'remote_unavailable': sum(1 for e in self.errors if e['error_type'] == 'RemoteUnavailable'),
            'not_found': sum(1 for e in self.errors if e['error_type'] == 'NotFound'),
            'errors': self.errors,
        }
