import pytest

from mptree.children import ChildRefSynchronizer
from mptree.config import TreeOptions
from mptree.errors import ExecFailError
from mptree.memory import MemoryStore


@pytest.mark.asyncio
async def test_disabled_sync_issues_no_writes(store):
    await store.insert({'id': '1', 'ancestors': []})
    sync = ChildRefSynchronizer(store, TreeOptions())
    await sync.add_ref('1', '2')
    await sync.remove_ref('1', '2')
    assert store.writes == 1
    assert await store.find_id('1').one() == {'id': '1', 'ancestors': []}


@pytest.mark.asyncio
async def test_list_and_count_follow_refs(store):
    await store.insert(
        {'id': '1', 'ancestors': [], 'children': [], 'children_count': 0}
    )
    sync = ChildRefSynchronizer(
        store, TreeOptions(store_children=True, store_children_count=True)
    )
    await sync.add_ref('1', '2')
    await sync.add_ref('1', '3')
    await sync.remove_ref('1', '2')
    parent = await store.find_id('1').one()
    assert parent['children'] == ['3']
    assert parent['children_count'] == 1


@pytest.mark.asyncio
async def test_count_only(store):
    await store.insert({'id': '1', 'ancestors': [], 'children_count': 0})
    sync = ChildRefSynchronizer(store, TreeOptions(store_children_count=True))
    await sync.add_ref('1', '2')
    parent = await store.find_id('1').one()
    assert parent == {'id': '1', 'ancestors': [], 'children_count': 1}


@pytest.mark.asyncio
async def test_failed_parent_update_is_wrapped():

    class Broken(MemoryStore):
        async def update(self, query, patch):
            raise ExecFailError('disk full')

    sync = ChildRefSynchronizer(Broken(), TreeOptions(store_children=True))
    with pytest.raises(ExecFailError) as exc:
        await sync.add_ref('1', '2')
    assert 'cannot update parent' in exc.value.message
    assert exc.value.cause.message == 'disk full'


@pytest.mark.asyncio
async def test_tree_keeps_refs_through_create_and_add_child(tracked_tree, seed):
    await seed(tracked_tree, {'id': '1'}, {'id': '2', 'ancestors': ['1']})
    parent = await tracked_tree.get('2')
    await parent.add_child({'id': '3'})
    await parent.add_child({'id': '4'})
    assert (await tracked_tree.get('1')).children == ['2']
    refreshed = await tracked_tree.get('2')
    assert refreshed.children == ['3', '4']
    assert refreshed.children_count == 2
    leaf = await tracked_tree.get('4')
    assert leaf.ancestors == ['1', '2']
    assert leaf.children == []
    assert leaf.children_count == 0
