"""
Tests for metadata parsing and share-URL id extraction.
"""

import pytest

from remotetreelib import NotFound
from remotetreelib.aio import (
    Metadata,
    NodeKind,
    extract_id,
    parse_container_info,
    parse_leaf_info,
    parse_metadata,
)


class TestParsing:
    """Raw records are minimized to the fields the cache needs."""

    def test_container_record(self):
        info = parse_container_info({
            "id": "f1",
            "name": "Reports",
            "parents": ["root-id"],
            "mimeType": "application/vnd.google-apps.folder",
            "owners": [{"name": "someone"}],
        })

        assert info.kind is NodeKind.CONTAINER
        assert info.parent_id == "root-id"
        assert info.extra == {}
        assert not info.is_root_shaped

    def test_leaf_with_several_parents(self):
        info = parse_leaf_info({
            "id": "s1",
            "name": "Budget",
            "parents": ["f1", "f2"],
            "mimeType": "application/vnd.google-apps.spreadsheet",
        })

        assert info.parent_id == "f1"
        assert info.extra["parents"] == ("f1", "f2")
        assert info.is_tabular

    def test_parentless_record_is_root_shaped(self):
        info = parse_container_info({"id": "shared", "name": "Shared drive"})

        assert info.is_root_shaped
        assert info.content_type is None

    def test_kind_from_type_marker(self):
        folder = parse_metadata({"id": "f", "name": "F", "mimeType": "application/vnd.google-apps.folder"})
        doc = parse_metadata({"id": "d", "name": "D", "mimeType": "text/plain"})
        explicit = parse_metadata({"id": "e", "name": "E", "kind": "container"})

        assert folder.kind is NodeKind.CONTAINER
        assert doc.kind is NodeKind.LEAF
        assert explicit.kind is NodeKind.CONTAINER

    def test_equality_ignores_extra(self):
        one = Metadata(NodeKind.LEAF, "x", "X", "p", extra={"parents": ("p", "q")})
        two = Metadata(NodeKind.LEAF, "x", "X", "p")

        assert one == two
        assert one.matches("x") and one.matches("X")
        assert not one.matches("p")


class TestExtractId:

    @pytest.mark.parametrize("url,expected", [
        ("https://docs.example.com/spreadsheets/d/abc123/edit#gid=0", "abc123"),
        ("https://drive.example.com/file/d/XYZ-_9", "XYZ-_9"),
    ])
    def test_extract(self, url, expected):
        assert extract_id(url) == expected

    def test_no_id(self):
        with pytest.raises(NotFound):
            extract_id("https://drive.example.com/open?id=abc")
