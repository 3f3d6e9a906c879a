import typing as t
from types import MappingProxyType

NodeId = str


class NodeRecord(t.TypedDict, total=False):
    id: NodeId  # NOQA: A003
    ancestors: t.List[NodeId]
    ancestors_count: int
    children: t.List[NodeId]
    children_count: int


class Patch(t.NamedTuple):
    assign: t.Mapping[str, t.Any] = MappingProxyType({})
    push: t.Mapping[str, t.Any] = MappingProxyType({})
    pull: t.Mapping[str, t.Any] = MappingProxyType({})
    inc: t.Mapping[str, int] = MappingProxyType({})

    def __bool__(self) -> bool:
        return any((self.assign, self.push, self.pull, self.inc))

    def apply(self, record: t.Dict[str, t.Any]) -> t.Dict[str, t.Any]:
        """Returns a patched copy of record; `id` is never changed."""
        updated = dict(record)
        for key, value in self.assign.items():
            if key != 'id':
                updated[key] = value
        for key, value in self.push.items():
            updated[key] = list(updated.get(key) or []) + [value]
        for key, value in self.pull.items():
            updated[key] = [v for v in updated.get(key) or [] if v != value]
        for key, step in self.inc.items():
            updated[key] = (updated.get(key) or 0) + step
        return updated
