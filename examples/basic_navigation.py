#!/usr/bin/env python3
"""
Basic navigation example showing lazy loading with RemoteTreeLib.

This example demonstrates:
- Opening the default tree
- Resolving a deeply nested leaf by name
- Reading spreadsheet-like content
- Checking how few remote calls were made
"""

import asyncio
import logging
import sys
from pathlib import Path

# Add parent directory to path for development
sys.path.insert(0, str(Path(__file__).parent.parent))

from remotetreelib.aio import Navigator, ResolveOptions
from remotetreelib.testing import ForestTestHelper, InMemoryResourceClient


def build_store() -> InMemoryResourceClient:
    store = InMemoryResourceClient(delay=0.01)
    store.add_root("root-id", "My Drive", default=True)
    store.add_root("team-id", "Team Drive")
    store.add_container("root-id", "finance", "Finance")
    store.add_container("finance", "2024", "2024")
    store.add_leaf("2024", "budget", "Budget", content_type="spreadsheet",
                   content=[["Item", "Cost"], ["Rent"], ["Power", "120"]])
    store.add_leaf("team-id", "budget-team", "Budget", content_type="spreadsheet",
                   content=[["Team", "Total"]])
    for i in range(50):
        store.add_leaf("root-id", f"doc-{i}", f"Document {i}")
    return store


def pick(candidates):
    print("\nSeveral matches:")
    for i, info in enumerate(candidates):
        print(f"  [{i}] {info.name} ({info.id})")
    return 0


async def main():
    """Resolve a leaf without walking the whole tree."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    store = build_store()

    async with Navigator(store, choose_index=pick) as nav:
        budget = await nav.resolve_global("Budget", ResolveOptions(interactive=True))
        print(f"\nResolved: {' / '.join(node.name for node in budget.path())}")

        rows = await budget.load_content()
        for row in rows:
            print("  " + " | ".join(f"{cell:8}" for cell in row))

        summary = ForestTestHelper(nav.forest).get_summary()
        print(f"\nMaterialized nodes: {summary['materialized']}")
        print(f"Remote calls: {dict(store.calls)}")


if __name__ == "__main__":
    asyncio.run(main())
