import typing as t
from dataclasses import dataclass
from dataclasses import field

from .config import ROOT_ID
from .medium import NodeId
from .store import Query

if t.TYPE_CHECKING:
    from .model import Tree

STRUCTURAL_FIELDS = frozenset((
    'id', 'ancestors', 'ancestors_count', 'children', 'children_count',
))


@dataclass
class Node:
    id: t.Optional[NodeId] = None  # NOQA: A003
    ancestors: t.List[NodeId] = field(default_factory=list)
    ancestors_count: t.Optional[int] = None
    children: t.Optional[t.List[NodeId]] = None
    children_count: t.Optional[int] = None
    data: t.Dict[str, t.Any] = field(default_factory=dict)
    tree: t.Optional['Tree'] = field(default=None, repr=False, compare=False)

    def __post_init__(self):
        if self.ancestors is None:
            self.ancestors = []

    @property
    def parent_id(self) -> NodeId:
        return self.ancestors[-1] if self.ancestors else ROOT_ID

    def has_parent(self) -> bool:
        return len(self.ancestors) != 0

    def to_record(self) -> t.Dict[str, t.Any]:
        record = dict(self.data)
        if self.id is not None:
            record['id'] = self.id
        record['ancestors'] = list(self.ancestors)
        for name in ('ancestors_count', 'children_count'):
            value = getattr(self, name)
            if value is not None:
                record[name] = value
        if self.children is not None:
            record['children'] = list(self.children)
        return record

    @classmethod
    def from_record(
        cls,
        record: t.Mapping[str, t.Any],
        tree: t.Optional['Tree'] = None
    ) -> 'Node':
        return cls(
            id=record.get('id'),
            ancestors=list(record.get('ancestors') or []),
            ancestors_count=record.get('ancestors_count'),
            children=record.get('children'),
            children_count=record.get('children_count'),
            data={
                k: v for k, v in record.items()
                if k not in STRUCTURAL_FIELDS
            },
            tree=tree,
        )

    def _bound(self) -> 'Tree':
        if self.tree is None:
            raise RuntimeError(f'Node {self.id!r} is not bound to a tree')
        return self.tree

    # lifecycle

    async def create(self) -> 'Node':
        return await self._bound().create(self)

    async def update(self) -> 'Node':
        return await self._bound().update(self)

    async def remove(self) -> None:
        await self._bound().remove(self)

    async def move(self, parent_id: NodeId) -> 'Node':
        moved = await self._bound().move(self, parent_id)
        self.ancestors = list(moved.ancestors)
        self.ancestors_count = moved.ancestors_count
        return self

    async def add_child(self, data: t.Mapping[str, t.Any]) -> 'Node':
        return await self._bound().add_child(self, data)

    # queries

    def parent(self) -> Query:
        return self._bound().queries.parent_of(self)

    def ancestors_query(self) -> Query:
        return self._bound().queries.ancestors_of(self)

    parents = ancestors_query

    def ancestor_at(self, level: int = 0) -> Query:
        return self._bound().queries.ancestor_at(self, level)

    def siblings(self, include_self: bool = False) -> Query:
        return self._bound().queries.siblings_of(self, include_self)

    def children_query(self) -> Query:
        return self._bound().queries.children_of(self)

    def descendants(
        self,
        levels: t.Union[None, int, t.Iterable[int]] = None
    ) -> Query:
        return self._bound().queries.descendants_of(self, levels)
