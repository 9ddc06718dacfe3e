"""
Test traversal strategies over cached and expanding trees.
"""

import pytest

from remotetreelib.aio import (
    AsyncBreadthFirstTraverser,
    AsyncDepthFirstTraverser,
    DepthConfig,
    Navigator,
    create_traverser,
)
from remotetreelib.testing import InMemoryResourceClient


@pytest.fixture
def client():
    client = InMemoryResourceClient()
    client.add_root("r0", "My Tree", default=True)
    client.add_container("r0", "a", "A")
    client.add_container("a", "b", "B")
    client.add_leaf("b", "leafx", "leafX")
    client.add_container("r0", "c", "C")
    client.add_leaf("c", "rep1", "Report")
    client.add_leaf("r0", "notes", "Notes")
    return client


async def collect(iterator):
    return [node.id async for node in iterator]


class TestStrategies:

    @pytest.mark.asyncio
    async def test_bfs_expand(self, client):
        navigator = Navigator(client)
        await navigator.start()

        ids = await collect(navigator.walk(expand=True))

        assert ids == ["r0", "a", "c", "notes", "b", "rep1", "leafx"]
        assert client.call_count("list_children") == 4

    @pytest.mark.asyncio
    async def test_dfs_pre_order(self, client):
        navigator = Navigator(client)
        await navigator.start()

        ids = await collect(navigator.walk(strategy='dfs', expand=True))

        assert ids == ["r0", "a", "b", "leafx", "c", "rep1", "notes"]

    @pytest.mark.asyncio
    async def test_dfs_post_order(self, client):
        navigator = Navigator(client)
        await navigator.start()

        ids = await collect(navigator.walk(strategy='dfs_post', expand=True))

        assert ids == ["leafx", "b", "a", "rep1", "c", "notes", "r0"]

    @pytest.mark.asyncio
    async def test_max_depth_limits_discovery(self, client):
        navigator = Navigator(client)
        await navigator.start()

        ids = await collect(navigator.walk(expand=True, max_depth=1))

        assert ids == ["r0", "a", "c", "notes"]
        assert client.call_count("list_children") == 1

    @pytest.mark.asyncio
    async def test_walk_without_expand_is_local(self, client):
        navigator = Navigator(client)
        await navigator.start()
        await navigator.resolve_global("leafX")
        client.reset_counts()

        ids = await collect(navigator.walk())

        assert ids == ["r0", "a", "b", "leafx"]
        assert client.call_count() == 0

    @pytest.mark.asyncio
    async def test_containers_only(self, client):
        navigator = Navigator(client)
        await navigator.start()

        ids = await collect(navigator.walk(expand=True, leaves=False))

        assert ids == ["r0", "a", "c", "b"]

    @pytest.mark.asyncio
    async def test_min_depth(self, client):
        navigator = Navigator(client)
        root = await navigator.start()
        traverser = AsyncDepthFirstTraverser(DepthConfig(min_depth=2), expand=True)

        ids = await collect(traverser.traverse(root))

        assert ids == ["b", "leafx", "rep1"]

    @pytest.mark.asyncio
    async def test_early_stop(self, client):
        """Stopping after the first level never expands deeper containers."""
        navigator = Navigator(client)
        await navigator.start()

        seen = []
        async for node in navigator.walk(strategy='dfs', expand=True):
            seen.append(node.id)
            if node.id == "a":
                break

        assert seen == ["r0", "a"]
        assert client.call_count("list_children") == 1

    @pytest.mark.asyncio
    async def test_max_depth_override_is_per_call(self, client):
        """A max_depth argument limits only the traversal it is passed to."""
        navigator = Navigator(client)
        root = await navigator.start()
        config = DepthConfig(min_depth=1)
        traverser = create_traverser('bfs', depth_config=config, expand=True)

        shallow = await collect(traverser.traverse(root, max_depth=1))
        full = await collect(traverser.traverse(root))

        assert shallow == ["a", "c", "notes"]
        assert full == ["a", "c", "notes", "b", "rep1", "leafx"]
        assert traverser.depth_config is config
        assert config.max_depth is None


def test_create_traverser():
    assert isinstance(create_traverser('bfs'), AsyncBreadthFirstTraverser)
    assert create_traverser('dfs_post').pre_order is False
    with pytest.raises(ValueError):
        create_traverser('random')
