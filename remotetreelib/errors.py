"""Exception taxonomy for RemoteTreeLib.

Every failure surfaced by the library is a ``RemoteTreeError``. The
subclasses keep "nothing matched" and "the remote call failed" apart so a
caller can decide whether to broaden a search or retry.
"""

import asyncio
from contextlib import contextmanager
from typing import Any, Iterator


class RemoteTreeError(Exception):
    """Base class for all RemoteTreeLib errors."""


class NotFound(RemoteTreeError, LookupError):
    """No matching id or name exists at the queried scope.

    Recoverable: the caller may broaden the search (for example from
    ``find_local`` to ``resolve_global``).
    """


class RemoteUnavailable(RemoteTreeError):
    """Transport, authentication or quota failure from the resource client.

    Recoverable via retry. Discovery state is rolled back before this is
    raised so a later call can try again.
    """


class InvalidOperation(RemoteTreeError):
    """The operation is not valid for this node or state.

    Programmer error (adding a child under a leaf, materializing before
    discovery finished, ...). Never retried.
    """


class Conflict(RemoteTreeError):
    """The remote tree no longer matches what the cache expected.

    Raised when a candidate's parentage changed between search and
    materialization, or when an id is already materialized elsewhere in
    the forest.
    """


class ContentNotLoaded(InvalidOperation, Conflict):
    """Leaf content was written back before it was ever loaded."""


# Transport failures that are turned into RemoteUnavailable.
TRANSPORT_ERRORS = (OSError, asyncio.TimeoutError)


@contextmanager
def translate_transport_errors(operation: str, target: Any = None) -> Iterator[None]:
    """Re-raise transport failures inside the block as ``RemoteUnavailable``.

    Library errors pass through untouched; anything else is a bug and
    propagates as-is.

    Args:
        operation: Name of the remote operation, used in the message
        target: Id or node the operation was about
    """
    try:
        yield
    except RemoteTreeError:
        raise
    except TRANSPORT_ERRORS as e:
        raise RemoteUnavailable(f"{operation} failed for {target!r}: {e}") from e
