import typing as t

from .errors import ExecFailError
from .errors import failing_as
from .medium import NodeId
from .store import Store


class PathValidator:

    def __init__(self, store: Store):
        self.store = store

    async def validate(self, ancestors: t.Sequence[NodeId]) -> None:
        """Raises ExecFailError unless `ancestors` is a resolvable chain.

        Every `ancestors[i]` has to exist and carry `ancestors[:i]` as its
        own chain, so the proposed path is exactly the path from a root.
        """
        if not ancestors:
            return
        with failing_as('PathValidator: cannot get ancestors'):
            found = await self.store.find_id(list(ancestors)).project_fields(
                'ancestors'
            ).all()
        if len(found) != len(ancestors):
            raise ExecFailError('PathValidator: cannot find all ancestors')

        chains = {r['id']: list(r.get('ancestors') or []) for r in found}
        for level, node_id in enumerate(ancestors):
            if chains[node_id] != list(ancestors[:level]):
                raise ExecFailError(
                    'PathValidator: inconsistent path',
                    {'ancestors': ['inconsistent']}
                )
