import logging
import typing as t

from .children import ChildRefSynchronizer
from .config import ROOT_ID
from .config import TreeOptions
from .errors import InvalidError
from .errors import NotFoundError
from .errors import failing_as
from .medium import NodeId
from .medium import Patch
from .predicates import Contains
from .store import Store

logger = logging.getLogger(__name__)


class MoveRequest(t.NamedTuple):
    node_id: NodeId
    parent_id: NodeId


class MoveOperator:
    """Relocates a subtree and rewrites the ancestor chains below it.

    Nothing is rolled back: a failure part way through the cascade leaves
    the already rewritten descendants in place.
    """

    def __init__(
        self,
        store: Store,
        options: TreeOptions,
        child_refs: ChildRefSynchronizer,
    ):
        self.store = store
        self.options = options
        self.child_refs = child_refs

    def _ancestors_patch(self, ancestors: t.List[NodeId]) -> Patch:
        assign: t.Dict[str, t.Any] = {'ancestors': ancestors}
        if self.options.store_ancestors_count:
            assign['ancestors_count'] = len(ancestors)
        return Patch(assign=assign)

    async def _new_ancestors(
        self,
        node_id: NodeId,
        parent_id: NodeId
    ) -> t.List[NodeId]:
        if parent_id == ROOT_ID:
            return []
        parent = await self.store.find_id(parent_id).one()
        if parent is None:
            raise InvalidError(
                'MoveOperator: parent not found', {'ancestors': ['invalid']}
            )
        if node_id in (parent.get('ancestors') or []):
            raise InvalidError(
                'MoveOperator: parent is a descendant of the moved node',
                {'ancestors': ['invalid']}
            )
        return list(parent.get('ancestors') or []) + [parent['id']]

    async def move(self, request: MoveRequest) -> t.Dict[str, t.Any]:
        node_id, parent_id = request
        if node_id == parent_id:
            raise InvalidError(
                'MoveOperator: parent is same as child',
                {'ancestors': ['invalid']}
            )

        old = await self.store.find_id(node_id).one()
        if old is None:
            raise NotFoundError(f'MoveOperator: node {node_id!r} not found')
        old_ancestors = list(old.get('ancestors') or [])
        old_parent_id = old_ancestors[-1] if old_ancestors else ROOT_ID
        if parent_id == old_parent_id:
            return old

        ancestors = await self._new_ancestors(node_id, parent_id)
        patch = self._ancestors_patch(ancestors)
        if await self.store.find_id(node_id).update(patch) != 1:
            raise NotFoundError(
                f'MoveOperator: updating failed, node {node_id!r} not found'
            )

        with failing_as('MoveOperator: failed to get descendants'):
            descendants = await self.store.find(
                Contains('ancestors', node_id)
            ).project_fields('ancestors').all()
        logger.debug(
            'Moving %s from %s to %s, %d descendant(s) to rewrite',
            node_id, old_parent_id, parent_id, len(descendants)
        )
        prefix_len = len(old_ancestors)
        for descendant in descendants:
            suffix = descendant['ancestors'][prefix_len:]
            with failing_as('MoveOperator: failed to update descendant'):
                await self.store.find_id(descendant['id']).update(
                    self._ancestors_patch(ancestors + suffix)
                )

        if ancestors:
            await self.child_refs.add_ref(ancestors[-1], node_id)
        if old_ancestors:
            await self.child_refs.remove_ref(old_ancestors[-1], node_id)

        return patch.apply(old)
