import pytest

from mptree.config import TreeOptions
from mptree.memory import MemoryStore
from mptree.model import Tree

CHAIN = [
    {'id': '1', 'name': 'Duri', 'ancestors': []},
    {'id': '2', 'name': 'Jozef', 'ancestors': ['1']},
    {'id': '3', 'name': 'Pista', 'ancestors': ['1', '2']},
    {'id': '4', 'name': 'Lakatos', 'ancestors': ['1', '2', '3']},
]


class CountingStore(MemoryStore):

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.writes = 0

    async def insert(self, record):
        self.writes += 1
        return await super().insert(record)

    async def update(self, query, patch):
        self.writes += 1
        return await super().update(query, patch)

    async def remove(self, query):
        self.writes += 1
        return await super().remove(query)


@pytest.fixture
def store():
    return CountingStore()


@pytest.fixture
def tree(store):
    return Tree(store)


@pytest.fixture
def tracked_tree(store):
    return Tree(store, TreeOptions(store_children=True, store_children_count=True))


@pytest.fixture
def seed():

    async def _seed(tree, *records):
        return [await tree.create(tree.new(**dict(r))) for r in records]

    return _seed


@pytest.fixture
def check_paths():
    """Asserts every stored chain resolves level by level."""

    async def _check(tree):
        nodes = await tree.queries.find().all()
        by_id = {n.id: n for n in nodes}
        for node in nodes:
            for level, ancestor_id in enumerate(node.ancestors):
                assert len(by_id[ancestor_id].ancestors) == level
            if tree.options.store_ancestors_count:
                assert node.ancestors_count == len(node.ancestors)
            if tree.options.store_children:
                children = [n.id for n in nodes if n.parent_id == node.id]
                assert sorted(node.children) == sorted(children)
                if tree.options.store_children_count:
                    assert node.children_count == len(node.children)

    return _check
