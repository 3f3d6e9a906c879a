import logging
import typing as t

from .children import ChildRefSynchronizer
from .config import TreeOptions
from .errors import InvalidError
from .errors import NotFoundError
from .errors import failing_as
from .hooks import HookChain
from .hooks import Proceed
from .hooks import TreeHooks
from .medium import NodeId
from .medium import Patch
from .move import MoveOperator
from .move import MoveRequest
from .predicates import Contains
from .queries import QueryHelpers
from .store import Record
from .store import Store
from .tree import STRUCTURAL_FIELDS
from .tree import Node
from .validation import PathValidator

logger = logging.getLogger(__name__)


class Tree:
    """A model type: nodes of one kind kept in one Store.

    Options and hook chains are fixed at construction.
    """

    def __init__(
        self,
        store: Store,
        options: TreeOptions = TreeOptions(),
        hooks: TreeHooks = TreeHooks(),
    ):
        self.store = store
        self.options = options
        self.queries = QueryHelpers(store, self._to_node)
        self.validator = PathValidator(store)
        self.child_refs = ChildRefSynchronizer(store, options)
        self.mover = MoveOperator(store, options, self.child_refs)

        self._create = HookChain(
            (self.validate_ancestors, self.add_parent_ref, *hooks.create),
            self._insert
        )
        self._update = HookChain(hooks.update, self._write)
        self._remove = HookChain(
            (self.remove_descendants, *hooks.remove),
            self._delete
        )
        self._move = HookChain(hooks.move, self.mover.move)

    def _to_node(self, record: Record) -> Node:
        return Node.from_record(record, self)

    def new(self, **fields: t.Any) -> Node:
        return self._to_node(fields)

    async def get(self, node_id: NodeId) -> t.Optional[Node]:
        return await self.queries.find_id(node_id).one()

    # engine interceptors

    async def validate_ancestors(self, node: Node, proceed: Proceed) -> Node:
        node.ancestors = list(node.ancestors or [])
        if self.options.store_ancestors_count:
            node.ancestors_count = len(node.ancestors)
        if self.options.store_children:
            node.children = []
        if self.options.store_children_count:
            node.children_count = 0
        await self.validator.validate(node.ancestors)
        return await proceed()

    async def add_parent_ref(self, node: Node, proceed: Proceed) -> Node:
        created = await proceed()
        if created.ancestors:
            await self.child_refs.add_ref(created.ancestors[-1], created.id)
        return created

    async def remove_descendants(self, node: Node, proceed: Proceed) -> None:
        with failing_as('Tree: cannot remove descendants'):
            removed = await self.store.find(
                Contains('ancestors', node.id)
            ).remove()
        logger.debug('Removed %d descendant(s) of %s', removed, node.id)
        if node.ancestors:
            await self.child_refs.remove_ref(node.ancestors[-1], node.id)
        return await proceed()

    # operations

    async def _insert(self, node: Node) -> Node:
        record = await self.store.insert(node.to_record())
        node.id = record['id']
        logger.debug('Created %s under %s', node.id, node.parent_id)
        return node

    async def _write(self, node: Node) -> Node:
        # ancestors change only through move, child refs only through sync
        assign = {
            k: v for k, v in node.to_record().items()
            if k not in STRUCTURAL_FIELDS
        }
        if assign:
            updated = await self.store.find_id(node.id).update(
                Patch(assign=assign)
            )
            if updated != 1:
                raise NotFoundError(f'Tree: node {node.id!r} not found')
        return node

    async def _delete(self, node: Node) -> None:
        if await self.store.find_id(node.id).remove() != 1:
            raise NotFoundError(f'Tree: node {node.id!r} not found')
        logger.debug('Removed %s', node.id)

    def _require_id(self, node: Node) -> None:
        if not node.id:
            raise InvalidError('Tree: node has no id', {'id': ['required']})

    async def create(self, node: Node) -> Node:
        node.tree = self
        return await self._create(node)

    async def update(self, node: Node) -> Node:
        self._require_id(node)
        return await self._update(node)

    async def remove(self, node: Node) -> None:
        self._require_id(node)
        # child refs follow the persisted parent, not the caller's copy
        persisted = await self.get(node.id)
        if persisted is None:
            raise NotFoundError(f'Tree: node {node.id!r} not found')
        await self._remove(persisted)

    async def move(self, node: t.Union[Node, NodeId], parent_id: NodeId) -> Node:
        node_id = node if isinstance(node, str) else node.id
        if not node_id:
            raise InvalidError('Tree: node has no id', {'id': ['required']})
        record = await self._move(MoveRequest(node_id, parent_id))
        return self._to_node(record)

    async def add_child(self, parent: Node, data: t.Mapping[str, t.Any]) -> Node:
        self._require_id(parent)
        child = self.new(**data)
        child.ancestors = list(parent.ancestors) + [parent.id]
        return await self.create(child)
