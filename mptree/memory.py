"""In-process Store. Keeps records in a dict keyed by id.

Meant for tests and small embedded trees; it offers no persistence.
"""
import copy
import logging
import typing as t
import uuid

from .errors import ConnFailError
from .errors import ExecFailError
from .medium import Patch
from .store import Query
from .store import Record
from .store import Store

logger = logging.getLogger(__name__)


def _sort_key(value: t.Any) -> t.Tuple[bool, t.Any]:
    return value is None, value if value is not None else 0


class MemoryStore(Store):

    def __init__(self, soft_remove: bool = False):
        self._records: t.Dict[str, Record] = {}
        self.soft_remove = soft_remove
        self.closed = False

    def _ensure_open(self) -> None:
        if self.closed:
            raise ConnFailError('MemoryStore: store is closed')

    def _visible(self) -> t.Iterator[Record]:
        for record in self._records.values():
            if self.soft_remove and record.get('deleted'):
                continue
            yield record

    def _matching(self, query: Query) -> t.List[Record]:
        records = [
            r for r in self._visible()
            if query.predicate is None or query.predicate.matches(r)
        ]
        for field, descending in reversed(query.order):
            records.sort(
                key=lambda r: _sort_key(r.get(field)),
                reverse=descending
            )
        records = records[query.offset:]
        if query.max_count is not None:
            records = records[:query.max_count]
        return records

    async def insert(self, record: Record) -> Record:
        self._ensure_open()
        record = copy.deepcopy(record)
        if not record.get('id'):
            record['id'] = uuid.uuid4().hex
        elif record['id'] in self._records:
            raise ExecFailError(
                f"MemoryStore: record with id {record['id']!r} already exists"
            )
        self._records[record['id']] = record
        return copy.deepcopy(record)

    async def fetch(self, query: Query) -> t.List[Record]:
        self._ensure_open()
        return copy.deepcopy(self._matching(query))

    async def update(self, query: Query, patch: Patch) -> int:
        self._ensure_open()
        matched = self._matching(query)
        for record in matched:
            self._records[record['id']] = copy.deepcopy(patch.apply(record))
        return len(matched)

    async def remove(self, query: Query) -> int:
        self._ensure_open()
        matched = self._matching(query)
        for record in matched:
            if self.soft_remove:
                record['deleted'] = True
            else:
                del self._records[record['id']]
        logger.debug('MemoryStore: removed %d record(s)', len(matched))
        return len(matched)

    async def close(self) -> None:
        self.closed = True
