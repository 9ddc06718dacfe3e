"""RemoteTreeLib - Lazy hierarchical cache over remote tree stores.

RemoteTreeLib keeps a local, on-demand copy of a remote container/leaf
hierarchy (drives and folders, projects and documents, ...) that is only
reachable through paginated, rate-limited calls. Nothing is fetched or
kept in memory until a caller asks for it.

Usage:
━━━━━━━━━━━━━━━━━━━━━━━━━━
    from remotetreelib.aio import Navigator

    async with Navigator(client) as nav:
        node = await nav.resolve_global("Budget 2024")
━━━━━━━━━━━━━━━━━━━━━━━━━━

``client`` is any implementation of ``remotetreelib.aio.AsyncResourceClient``.
"""

__version__ = "0.1.0"

from . import aio
from .errors import (
    RemoteTreeError,
    NotFound,
    RemoteUnavailable,
    InvalidOperation,
    Conflict,
    ContentNotLoaded,
)

__all__ = [
    "__version__",
    "aio",
    "RemoteTreeError",
    "NotFound",
    "RemoteUnavailable",
    "InvalidOperation",
    "Conflict",
    "ContentNotLoaded",
]
