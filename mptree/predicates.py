"""Predicate vocabulary emitted by the tree engine.

Stores either evaluate predicates directly through :meth:`Predicate.matches`
(see :mod:`mptree.memory`) or compile them to their own query language
(see :mod:`mptree.db`).
"""
import abc
import typing as t
from dataclasses import dataclass

Record = t.Mapping[str, t.Any]


class Predicate(abc.ABC):

    @abc.abstractmethod
    def matches(self, record: Record) -> bool:
        ...

    def __and__(self, other: 'Predicate') -> 'And':
        return And(self, other)

    def __or__(self, other: 'Predicate') -> 'Or':
        return Or(self, other)


@dataclass(frozen=True)
class Eq(Predicate):
    field: str
    value: t.Any

    def matches(self, record: Record) -> bool:
        return record.get(self.field) == self.value


@dataclass(frozen=True)
class Ne(Predicate):
    field: str
    value: t.Any

    def matches(self, record: Record) -> bool:
        return record.get(self.field) != self.value


@dataclass(frozen=True)
class In(Predicate):
    field: str
    values: t.Tuple[t.Any, ...]

    def __init__(self, field: str, values: t.Iterable[t.Any]):
        object.__setattr__(self, 'field', field)
        object.__setattr__(self, 'values', tuple(values))

    def matches(self, record: Record) -> bool:
        return record.get(self.field) in self.values


@dataclass(frozen=True)
class Contains(Predicate):
    """Array field contains value."""
    field: str
    value: t.Any

    def matches(self, record: Record) -> bool:
        return self.value in (record.get(self.field) or ())


@dataclass(frozen=True)
class SizeEq(Predicate):
    """Array field has exactly `size` elements."""
    field: str
    size: int

    def matches(self, record: Record) -> bool:
        return len(record.get(self.field) or ()) == self.size


@dataclass(frozen=True)
class And(Predicate):
    parts: t.Tuple[Predicate, ...]

    def __init__(self, *parts: Predicate):
        object.__setattr__(self, 'parts', parts)

    def matches(self, record: Record) -> bool:
        return all(p.matches(record) for p in self.parts)


@dataclass(frozen=True)
class Or(Predicate):
    parts: t.Tuple[Predicate, ...]

    def __init__(self, *parts: Predicate):
        object.__setattr__(self, 'parts', parts)

    def matches(self, record: Record) -> bool:
        return any(p.matches(record) for p in self.parts)


def conjunction(*parts: t.Optional[Predicate]) -> t.Optional[Predicate]:
    present = tuple(p for p in parts if p is not None)
    if not present:
        return None
    if len(present) == 1:
        return present[0]
    return And(*present)
