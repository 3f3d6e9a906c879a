import logging

from .config import TreeOptions
from .errors import failing_as
from .medium import NodeId
from .medium import Patch
from .store import Store

logger = logging.getLogger(__name__)


class ChildRefSynchronizer:
    """Keeps the denormalized child list/count on parent records."""

    def __init__(self, store: Store, options: TreeOptions):
        self.store = store
        self.options = options

    @property
    def enabled(self) -> bool:
        return self.options.tracks_children

    def _patch(self, child_id: NodeId, add: bool) -> Patch:
        push, pull, inc = {}, {}, {}
        if self.options.store_children:
            if add:
                push['children'] = child_id
            else:
                pull['children'] = child_id
        if self.options.store_children_count:
            inc['children_count'] = 1 if add else -1
        return Patch(push=push, pull=pull, inc=inc)

    async def _update(self, parent_id: NodeId, patch: Patch) -> None:
        with failing_as('ChildRefSynchronizer: cannot update parent'):
            await self.store.find_id(parent_id).update(patch)

    async def add_ref(self, parent_id: NodeId, child_id: NodeId) -> None:
        if not self.enabled:
            return
        logger.debug('Linking %s under %s', child_id, parent_id)
        await self._update(parent_id, self._patch(child_id, add=True))

    async def remove_ref(self, parent_id: NodeId, child_id: NodeId) -> None:
        if not self.enabled:
            return
        logger.debug('Unlinking %s from %s', child_id, parent_id)
        await self._update(parent_id, self._patch(child_id, add=False))
