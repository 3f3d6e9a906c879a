import asyncio
import logging
import typing as t
from collections import defaultdict

import click

from .config import ROOT_ID
from .config import TreeOptions
from .db import DBConfig
from .db import DEFAULT_TREE
from .db import SqlStore
from .errors import TreeError
from .model import Tree
from .tree import Node


def render_forest(nodes: t.Iterable[Node]) -> t.List[str]:
    by_parent: t.Dict[str, t.List[Node]] = defaultdict(list)
    for node in nodes:
        by_parent[node.parent_id].append(node)

    lines = []

    def _render(parent_id: str, depth: int):
        for node in sorted(by_parent.get(parent_id, ()), key=_id_key):
            value = node.data.get('value')
            label = node.id if value is None else f'{node.id} {value}'
            lines.append('  ' * depth + label)
            _render(node.id, depth + 1)

    _render(ROOT_ID, 0)
    return lines


def _id_key(node: Node) -> t.Tuple[int, str]:
    return len(node.id), node.id


def _run(ctx: click.Context, action: t.Callable[[Tree], t.Awaitable[t.Any]]):

    async def _with_tree():
        store = SqlStore(ctx.obj['url'])
        try:
            await store.ensure_table()
            return await action(Tree(store, ctx.obj['options']))
        except TreeError as err:
            raise click.ClickException(f'{err.code.value}: {err.message}') from err
        finally:
            await store.close()

    return asyncio.run(_with_tree())


@click.group()
@click.option('--url', type=click.STRING, default=None,
              help='SQLAlchemy async database URL, overrides Postgres options')
@click.option('--host', type=click.STRING,
              default='127.0.0.1', help='Postgres server host')
@click.option('--port', type=click.INT,
              default=5432, help='Postgres server port')
@click.option('--username', type=click.STRING,
              default='postgres', help='Postgres user')
@click.option('--password', type=click.STRING,
              default='sql', help='Postgres password')
@click.option('--database', type=click.STRING,
              default='treedb', help='Postgres DB name')
@click.option('--store-children/--no-store-children', default=False,
              help='Keep child id lists on parent nodes')
@click.option('--store-children-count/--no-store-children-count',
              default=False, help='Keep child counts on parent nodes')
@click.option('-v', '--verbose', is_flag=True, help='Debug logging')
@click.pass_context
def cli(
    ctx: click.Context,
    url: t.Optional[str],
    host: str,
    port: int,
    username: str,
    password: str,
    database: str,
    store_children: bool,
    store_children_count: bool,
    verbose: bool,
):
    if verbose:
        logging.basicConfig(level=logging.DEBUG)
    conf = DBConfig(
        username=username,
        password=password,
        host=host,
        port=port,
        db_name=database
    )
    ctx.ensure_object(dict)
    ctx.obj['url'] = url or conf.url
    ctx.obj['options'] = TreeOptions(
        store_children=store_children,
        store_children_count=store_children_count,
    )


@cli.command()
@click.pass_context
def reset(ctx: click.Context):
    """Recreate the nodes table with the sample tree."""

    async def _reset(tree: Tree):
        await tree.store.reset_table()
        for record in DEFAULT_TREE:
            await tree.create(tree.new(**record))
        return len(DEFAULT_TREE)

    count = _run(ctx, _reset)
    click.echo(f'Loaded {count} nodes')


@cli.command()
@click.pass_context
def show(ctx: click.Context):
    """Print the forest, one node per line."""

    async def _show(tree: Tree):
        return await tree.queries.find().sort('ancestors_count').all()

    for line in render_forest(_run(ctx, _show)):
        click.echo(line)


@cli.command()
@click.argument('parent_id')
@click.argument('value')
@click.option('--id', 'node_id', default=None, help='Id of the new node')
@click.pass_context
def add(ctx: click.Context, parent_id: str, value: str, node_id: t.Optional[str]):
    """Create a node under PARENT_ID ('root' for a new root)."""

    async def _add(tree: Tree):
        data = {'value': value}
        if node_id:
            data['id'] = node_id
        if parent_id == ROOT_ID:
            return await tree.create(tree.new(**data))
        parent = await tree.get(parent_id)
        if parent is None:
            raise click.ClickException(f'Node {parent_id} not found')
        return await parent.add_child(data)

    node = _run(ctx, _add)
    click.echo(f'Created {node.id}')


@cli.command()
@click.argument('node_id')
@click.argument('parent_id')
@click.pass_context
def move(ctx: click.Context, node_id: str, parent_id: str):
    """Move NODE_ID with its subtree under PARENT_ID ('root' to detach)."""

    async def _move(tree: Tree):
        return await tree.move(node_id, parent_id)

    node = _run(ctx, _move)
    click.echo(f"Moved {node.id} to /{'/'.join(node.ancestors)}")


@cli.command()
@click.argument('node_id')
@click.pass_context
def remove(ctx: click.Context, node_id: str):
    """Remove NODE_ID together with its descendants."""

    async def _remove(tree: Tree):
        node = await tree.get(node_id)
        if node is None:
            raise click.ClickException(f'Node {node_id} not found')
        await node.remove()

    _run(ctx, _remove)
    click.echo(f'Removed {node_id}')
