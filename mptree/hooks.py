"""Lifecycle interceptors.

Each lifecycle operation runs through an ordered chain of interceptors.
An interceptor receives the node and a `proceed` continuation; it runs
"before" logic, awaits `proceed()` to hand over to the next interceptor
(the last one hands over to the operation itself), runs "after" logic
and returns the result. Raising aborts the remaining chain.

    async def audit(node, proceed):
        logger.info('creating %s', node.id)
        created = await proceed()
        logger.info('created %s', created.id)
        return created

    tree = Tree(store, hooks=TreeHooks(create=(audit,)))
"""
import typing as t

Proceed = t.Callable[[], t.Awaitable[t.Any]]
Interceptor = t.Callable[[t.Any, Proceed], t.Awaitable[t.Any]]
Operation = t.Callable[[t.Any], t.Awaitable[t.Any]]


class TreeHooks(t.NamedTuple):
    create: t.Sequence[Interceptor] = ()
    update: t.Sequence[Interceptor] = ()
    remove: t.Sequence[Interceptor] = ()
    move: t.Sequence[Interceptor] = ()


class HookChain:

    def __init__(self, interceptors: t.Iterable[Interceptor], operation: Operation):
        self.interceptors = tuple(interceptors)
        self.operation = operation

    def __len__(self) -> int:
        return len(self.interceptors)

    async def __call__(self, node: t.Any) -> t.Any:
        return await self._call_at(0, node)

    async def _call_at(self, index: int, node: t.Any) -> t.Any:
        if index == len(self.interceptors):
            return await self.operation(node)

        async def proceed() -> t.Any:
            return await self._call_at(index + 1, node)

        return await self.interceptors[index](node, proceed)
