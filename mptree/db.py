import logging
import typing as t
import uuid
from contextlib import contextmanager
from string import Template

import sqlalchemy as sa
from sqlalchemy import and_
from sqlalchemy import delete
from sqlalchemy import or_
from sqlalchemy import select
from sqlalchemy import update
from sqlalchemy.exc import DBAPIError
from sqlalchemy.exc import DisconnectionError
from sqlalchemy.exc import InterfaceError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import declarative_base

from .errors import ConnFailError
from .errors import ExecFailError
from .errors import InvalidError
from .medium import NodeRecord
from .medium import Patch
from .predicates import And
from .predicates import Contains
from .predicates import Eq
from .predicates import In
from .predicates import Ne
from .predicates import Or
from .predicates import Predicate
from .predicates import SizeEq
from .store import Query
from .store import Record
from .store import Store

logger = logging.getLogger(__name__)

TEMPLATE_DB_URL = Template(
    'postgresql+asyncpg://$user:$password@$host:$port/$db'
)
PATH_SEP = '/'
DBModelBase = declarative_base()


class DBConfig(t.NamedTuple):
    username: str
    password: str
    host: str
    port: int
    db_name: str

    @property
    def url(self) -> str:
        return TEMPLATE_DB_URL.substitute(
            user=self.username,
            password=self.password,
            host=self.host,
            port=self.port,
            db=self.db_name
        )


class DBNodeModel(DBModelBase):
    __tablename__ = 'nodes'

    id = sa.Column(sa.String, primary_key=True)  # NOQA: A003
    # ancestor ids wrapped in separators: '/' for roots, '/1/3/' below
    ancestry = sa.Column(sa.String, nullable=False, default=PATH_SEP, index=True)
    depth = sa.Column(sa.Integer, nullable=False, default=0, index=True)
    ancestors_count = sa.Column(sa.Integer, nullable=True)
    children = sa.Column(sa.JSON(none_as_null=True), nullable=True)
    children_count = sa.Column(sa.Integer, nullable=True)
    extra = sa.Column(sa.JSON(none_as_null=True), nullable=True)
    deleted = sa.Column(sa.Boolean, default=False, nullable=False)


CACHED_COLUMNS = ('ancestors_count', 'children', 'children_count')
COLUMNS = {
    'id': DBNodeModel.id,
    'ancestors_count': DBNodeModel.depth,
    'children_count': DBNodeModel.children_count,
}

DEFAULT_TREE: t.List[NodeRecord] = [
    {'id': '1', 'ancestors': [], 'value': 'Node1'},
    {'id': '2', 'ancestors': ['1'], 'value': 'Node2'},
    {'id': '3', 'ancestors': ['1'], 'value': 'Node3'},
    {'id': '4', 'ancestors': ['1', '3'], 'value': 'Node4'},
    {'id': '5', 'ancestors': ['1'], 'value': 'Node5'},
    {'id': '6', 'ancestors': ['1', '5'], 'value': 'Node6'},
    {'id': '7', 'ancestors': ['1', '3', '4'], 'value': 'Node7'},
    {'id': '8', 'ancestors': ['1', '3', '4'], 'value': 'Node8'},
    {'id': '9', 'ancestors': ['1', '3', '4', '7'], 'value': 'Node9'},
    {'id': '10', 'ancestors': ['1', '5', '6'], 'value': 'Node10'},
    {'id': '11', 'ancestors': ['1', '5', '6', '10'], 'value': 'Node11'},
]


def encode_ancestry(ancestors: t.Sequence[str]) -> str:
    for node_id in ancestors:
        if not node_id or PATH_SEP in node_id:
            raise InvalidError(
                f'SqlStore: invalid ancestor id {node_id!r}',
                {'ancestors': ['invalid']}
            )
    return PATH_SEP + ''.join(f'{node_id}{PATH_SEP}' for node_id in ancestors)


def decode_ancestry(ancestry: t.Optional[str]) -> t.List[str]:
    return [p for p in (ancestry or '').split(PATH_SEP) if p]


def to_record(row: DBNodeModel) -> Record:
    record = dict(row.extra or {})
    record['id'] = row.id
    record['ancestors'] = decode_ancestry(row.ancestry)
    for name in CACHED_COLUMNS:
        value = getattr(row, name)
        if value is not None:
            record[name] = value
    return record


def to_row_values(record: Record) -> t.Dict[str, t.Any]:
    ancestors = list(record.get('ancestors') or [])
    values = {
        'ancestry': encode_ancestry(ancestors),
        'depth': len(ancestors),
        'extra': {
            k: v for k, v in record.items()
            if k not in ('id', 'ancestors', 'deleted', *CACHED_COLUMNS)
        },
    }
    for name in CACHED_COLUMNS:
        values[name] = record.get(name)
    return values


def _column(field: str) -> sa.Column:
    try:
        return COLUMNS[field]
    except KeyError:
        raise ExecFailError(f'SqlStore: unsupported field {field!r}') from None


def compile_predicate(predicate: Predicate) -> sa.ColumnElement:
    """Translates engine predicates to SQLAlchemy clauses."""
    if isinstance(predicate, And):
        return and_(sa.true(), *map(compile_predicate, predicate.parts))
    if isinstance(predicate, Or):
        return or_(sa.false(), *map(compile_predicate, predicate.parts))
    if isinstance(predicate, Contains) and predicate.field == 'ancestors':
        return DBNodeModel.ancestry.contains(
            f'{PATH_SEP}{predicate.value}{PATH_SEP}', autoescape=True
        )
    if isinstance(predicate, SizeEq) and predicate.field == 'ancestors':
        return DBNodeModel.depth == predicate.size
    if isinstance(predicate, (Eq, Ne)) and predicate.field == 'ancestors':
        ancestry = encode_ancestry(predicate.value)
        if isinstance(predicate, Eq):
            return DBNodeModel.ancestry == ancestry
        return DBNodeModel.ancestry != ancestry
    if isinstance(predicate, Eq):
        return _column(predicate.field) == predicate.value
    if isinstance(predicate, Ne):
        return _column(predicate.field) != predicate.value
    if isinstance(predicate, In):
        return _column(predicate.field).in_(predicate.values)
    raise ExecFailError(f'SqlStore: unsupported predicate {predicate!r}')


class SqlStore(Store):
    """Store on one relational table through SQLAlchemy's asyncio engine.

    With `soft_remove` rows are flagged deleted instead of being dropped,
    and flagged rows are invisible to every query.
    """

    def __init__(self, url: str, soft_remove: bool = False, **engine_kw):
        self.url = url
        self.soft_remove = soft_remove
        self.engine = create_async_engine(url, **engine_kw)
        self.session = async_sessionmaker(self.engine, expire_on_commit=False)

    @classmethod
    def from_config(cls, conf: DBConfig, **kwargs) -> 'SqlStore':
        return cls(conf.url, **kwargs)

    @staticmethod
    @contextmanager
    def _translate_errors(action: str) -> t.Iterator[None]:
        try:
            yield
        except (InterfaceError, DisconnectionError, OSError) as err:
            raise ConnFailError(f'SqlStore: cannot {action}, database unreachable') from err
        except DBAPIError as err:
            if err.connection_invalidated or isinstance(err.orig, OSError):
                raise ConnFailError(f'SqlStore: cannot {action}, connection lost') from err
            raise ExecFailError(f'SqlStore: cannot {action}') from err
        except SQLAlchemyError as err:
            raise ExecFailError(f'SqlStore: cannot {action}') from err

    async def ensure_table(self) -> None:
        with self._translate_errors('create table'):
            async with self.engine.begin() as conn:
                await conn.run_sync(DBModelBase.metadata.create_all)

    async def reset_table(self) -> None:
        with self._translate_errors('reset table'):
            async with self.engine.begin() as conn:
                await conn.run_sync(DBModelBase.metadata.drop_all)
                await conn.run_sync(DBModelBase.metadata.create_all)

    def _where(self, query: Query) -> sa.ColumnElement:
        clauses = []
        if self.soft_remove:
            clauses.append(DBNodeModel.deleted.is_not(True))
        if query.predicate is not None:
            clauses.append(compile_predicate(query.predicate))
        return and_(sa.true(), *clauses)

    def _select(self, query: Query) -> sa.Select:
        stmt = select(DBNodeModel).where(self._where(query))
        for field, descending in query.order:
            column = _column(field)
            stmt = stmt.order_by(column.desc() if descending else column.asc())
        if query.offset:
            stmt = stmt.offset(query.offset)
        if query.max_count is not None:
            stmt = stmt.limit(query.max_count)
        return stmt

    async def insert(self, record: Record) -> Record:
        record = dict(record)
        record['id'] = record.get('id') or uuid.uuid4().hex
        if PATH_SEP in record['id']:
            raise InvalidError(
                f"SqlStore: invalid id {record['id']!r}", {'id': ['invalid']}
            )
        row = DBNodeModel(id=record['id'], **to_row_values(record))
        with self._translate_errors('insert record'):
            async with self.session() as s:
                s.add(row)
                await s.commit()
        return to_record(row)

    async def fetch(self, query: Query) -> t.List[Record]:
        with self._translate_errors('fetch records'):
            async with self.session() as s:
                rows = (await s.execute(self._select(query))).scalars().all()
        return [to_record(row) for row in rows]

    async def count(self, query: Query) -> int:
        stmt = select(sa.func.count()).select_from(DBNodeModel).where(
            self._where(query)
        )
        with self._translate_errors('count records'):
            async with self.session() as s:
                return (await s.execute(stmt)).scalar_one()

    async def update(self, query: Query, patch: Patch) -> int:
        with self._translate_errors('update records'):
            async with self.session() as s:
                rows = (await s.execute(self._select(query))).scalars().all()
                for row in rows:
                    values = to_row_values(patch.apply(to_record(row)))
                    for key, value in values.items():
                        setattr(row, key, value)
                await s.commit()
        return len(rows)

    async def remove(self, query: Query) -> int:
        if self.soft_remove:
            stmt = update(DBNodeModel).where(self._where(query)).values(
                deleted=True
            )
        else:
            stmt = delete(DBNodeModel).where(self._where(query))
        stmt = stmt.execution_options(synchronize_session=False)
        with self._translate_errors('remove records'):
            async with self.session() as s:
                result = await s.execute(stmt)
                await s.commit()
        logger.debug('SqlStore: removed %d row(s)', result.rowcount)
        return result.rowcount

    async def close(self) -> None:
        await self.engine.dispose()
