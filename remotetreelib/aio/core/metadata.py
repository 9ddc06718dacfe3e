"""Minimized metadata descriptors for remote resources.

Only the fields the cache needs are kept; everything else a client returns
is dropped at parse time. A ``Metadata`` record is what a container knows
about a child before that child is materialized into a Node.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from ...config import NodeKind
from ...errors import NotFound


# Raw records whose type contains this marker describe containers
CONTAINER_TYPE_MARKER = "folder"

# Content types whose body is a grid of rows
TABULAR_TYPE_MARKERS = ("spreadsheet", "tabular")

_URL_ID_PATTERN = re.compile(r"/d/(.*?)(/|$)")


@dataclass(frozen=True)
class Metadata:
    """Lightweight descriptor of a remote container or leaf."""

    kind: NodeKind
    id: str
    name: str
    parent_id: Optional[str] = None
    content_type: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def is_container(self) -> bool:
        return self.kind is NodeKind.CONTAINER

    @property
    def is_root_shaped(self) -> bool:
        """True when the resource has no parent (a top-level tree)."""
        return self.parent_id is None

    @property
    def is_tabular(self) -> bool:
        if not self.content_type:
            return False
        return any(marker in self.content_type for marker in TABULAR_TYPE_MARKERS)

    def matches(self, id_or_name: str) -> bool:
        return self.id == id_or_name or self.name == id_or_name


def _first_parent(raw: Mapping[str, Any]) -> Optional[str]:
    parents = raw.get("parents")
    if parents:
        return parents[0]
    return raw.get("parent")


def parse_container_info(raw: Mapping[str, Any]) -> Metadata:
    """Minimize a raw container record.

    Args:
        raw: Record as returned by a remote API (needs ``id`` and ``name``)

    Returns:
        Container Metadata
    """
    return Metadata(
        kind=NodeKind.CONTAINER,
        id=raw["id"],
        name=raw.get("name", ""),
        parent_id=_first_parent(raw),
        content_type=raw.get("mimeType") or raw.get("content_type"),
    )


def parse_leaf_info(raw: Mapping[str, Any]) -> Metadata:
    """Minimize a raw leaf record.

    Args:
        raw: Record as returned by a remote API (needs ``id`` and ``name``)

    Returns:
        Leaf Metadata
    """
    extra = {}
    parents = raw.get("parents")
    if parents and len(parents) > 1:
        extra["parents"] = tuple(parents)
    return Metadata(
        kind=NodeKind.LEAF,
        id=raw["id"],
        name=raw.get("name", ""),
        parent_id=_first_parent(raw),
        content_type=raw.get("mimeType") or raw.get("content_type"),
        extra=extra,
    )


def parse_metadata(raw: Mapping[str, Any]) -> Metadata:
    """Minimize a raw record, deciding its kind from ``kind`` or its type."""
    kind = raw.get("kind")
    if isinstance(kind, NodeKind):
        is_container = kind is NodeKind.CONTAINER
    elif kind in ("container", "leaf"):
        is_container = kind == "container"
    else:
        content_type = raw.get("mimeType") or raw.get("content_type") or ""
        is_container = CONTAINER_TYPE_MARKER in content_type
    if is_container:
        return parse_container_info(raw)
    return parse_leaf_info(raw)


def extract_id(url: str) -> str:
    """Return the resource id embedded in a share URL.

    Example:
        >>> extract_id("https://host/file/d/abc123/edit")
        'abc123'

    Raises:
        NotFound: If the URL carries no ``/d/<id>`` segment
    """
    match = _URL_ID_PATTERN.search(url)
    if not match or not match.group(1):
        raise NotFound(f"No resource id in URL {url!r}")
    return match.group(1)
