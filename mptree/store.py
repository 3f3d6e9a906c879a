import abc
import typing as t
from dataclasses import dataclass
from dataclasses import replace

from .medium import NodeId
from .medium import Patch
from .predicates import Eq
from .predicates import In
from .predicates import Predicate
from .predicates import conjunction

Record = t.Dict[str, t.Any]
Factory = t.Callable[[Record], t.Any]


def _identity(record: Record) -> Record:
    return record


@dataclass(frozen=True)
class Query:
    """Lazy, composable query over a Store.

    Builder methods return new queries; nothing touches the store until
    one of the coroutines (`one`, `all`, `count`, `exists`, `update`,
    `remove`) is awaited.
    """
    store: 'Store'
    predicate: t.Optional[Predicate] = None
    fields: t.Optional[t.Tuple[str, ...]] = None
    order: t.Tuple[t.Tuple[str, bool], ...] = ()
    max_count: t.Optional[int] = None
    offset: int = 0
    factory: Factory = _identity

    def find(self, predicate: Predicate) -> 'Query':
        return replace(self, predicate=conjunction(self.predicate, predicate))

    def project_fields(self, *names: str) -> 'Query':
        return replace(self, fields=tuple(names))

    def sort(self, field: str, descending: bool = False) -> 'Query':
        return replace(self, order=self.order + ((field, descending),))

    def limit(self, count: int) -> 'Query':
        return replace(self, max_count=count)

    def skip(self, count: int) -> 'Query':
        return replace(self, offset=count)

    def map(self, factory: Factory) -> 'Query':
        return replace(self, factory=factory)

    def project(self, record: Record) -> Record:
        if self.fields is None:
            return record
        return {
            k: v for k, v in record.items()
            if k == 'id' or k in self.fields
        }

    async def all(self) -> t.List[t.Any]:  # NOQA: A003
        records = await self.store.fetch(self)
        return [self.factory(self.project(r)) for r in records]

    async def one(self) -> t.Optional[t.Any]:
        records = await self.store.fetch(replace(self, max_count=1))
        if not records:
            return None
        return self.factory(self.project(records[0]))

    async def count(self) -> int:
        return await self.store.count(self)

    async def exists(self) -> bool:
        return await self.project_fields().one() is not None

    async def update(self, patch: Patch) -> int:
        return await self.store.update(self, patch)

    async def remove(self) -> int:
        return await self.store.remove(self)


class Store(abc.ABC):
    """Keyed record storage consumed by the tree engine."""

    def find(self, predicate: t.Optional[Predicate] = None) -> Query:
        return Query(self, predicate)

    def find_id(
        self,
        node_id: t.Union[NodeId, t.Iterable[NodeId]]
    ) -> Query:
        if isinstance(node_id, str):
            return self.find(Eq('id', node_id))
        return self.find(In('id', node_id))

    @abc.abstractmethod
    async def insert(self, record: Record) -> Record:
        ...

    @abc.abstractmethod
    async def fetch(self, query: Query) -> t.List[Record]:
        ...

    async def count(self, query: Query) -> int:
        return len(await self.fetch(query.project_fields()))

    @abc.abstractmethod
    async def update(self, query: Query, patch: Patch) -> int:
        ...

    @abc.abstractmethod
    async def remove(self, query: Query) -> int:
        ...

    async def close(self) -> None:
        pass
