import typing as t

from .config import ROOT_ID
from .errors import InvalidError
from .predicates import Contains
from .predicates import Ne
from .predicates import Or
from .predicates import SizeEq
from .predicates import conjunction
from .store import Factory
from .store import Query
from .store import Store

if t.TYPE_CHECKING:
    from .tree import Node

Levels = t.Union[None, int, t.Iterable[int]]

ROOTS = SizeEq('ancestors', 0)


class ParentRef(t.NamedTuple):
    """Minimal node descriptor, enough to address a subtree."""
    id: str  # NOQA: A003
    ancestors: t.List[str]


class QueryHelpers:
    """Builds queries over a tree without executing them."""

    def __init__(self, store: Store, factory: Factory):
        self.store = store
        self.factory = factory

    def find(self, predicate=None) -> Query:
        return self.store.find(predicate).map(self.factory)

    def find_id(self, node_id) -> Query:
        return self.store.find_id(node_id).map(self.factory)

    def parent_of(self, node: 'Node') -> Query:
        return self.find_id(node.ancestors[-1] if node.ancestors else ROOT_ID)

    def ancestors_of(self, node: 'Node') -> Query:
        return self.find_id(list(node.ancestors))

    def ancestor_at(self, node: 'Node', level: int = 0) -> Query:
        if not 0 <= level < len(node.ancestors):
            return self.find_id([])
        return self.find_id(node.ancestors[level])

    def roots(self) -> Query:
        return self.find(ROOTS)

    def children_of(self, node: 'Node') -> Query:
        return self.descendants_of(node, 1)

    def descendants_of(
        self,
        node: t.Union['Node', ParentRef],
        levels: Levels = None
    ) -> Query:
        if not node.id:
            raise InvalidError(
                'descendants: node has no id', {'id': ['required']}
            )
        if not isinstance(node.ancestors, list):
            raise InvalidError(
                'descendants: node ancestors is not a list',
                {'ancestors': ['invalid']}
            )
        depth = len(node.ancestors)
        depths = None
        if isinstance(levels, int):
            depths = SizeEq('ancestors', depth + levels)
        elif levels is not None:
            depths = Or(*(SizeEq('ancestors', depth + lvl) for lvl in levels))
        return self.find(conjunction(depths, Contains('ancestors', node.id)))

    def siblings_of(self, node: 'Node', include_self: bool = False) -> Query:
        if not node.ancestors:
            query = self.roots()
        else:
            parent = ParentRef(node.ancestors[-1], list(node.ancestors[:-1]))
            query = self.descendants_of(parent, 1)
        if not include_self:
            query = query.find(Ne('id', node.id))
        return query
