from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable

logger = logging.getLogger(__name__)

J = TypeVar('J')
T = TypeVar('T')


async def run_tiles(
    jobs: Iterable[J],
    *,
    process_tile: Callable[[J], Awaitable[None]],
    concurrency: int | None = None,
    progress_step: Callable[[int], Awaitable[None]] | None = None,
) -> None:
    """
    Run one task per tile job and wait for all of them.

    The first failing job aborts the batch: every other task is cancelled and
    awaited before that job's exception is re-raised unchanged.
    """
    sem = asyncio.Semaphore(concurrency) if concurrency else None

    async def worker(job: J) -> None:
        if sem is None:
            await process_tile(job)
        else:
            async with sem:
                await process_tile(job)
        if progress_step:
            await progress_step(1)

    tasks = [asyncio.create_task(worker(job)) for job in jobs]
    if not tasks:
        return

    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    except asyncio.CancelledError:
        await _cancel_and_wait(tasks)
        raise

    if pending:
        await _cancel_and_wait(pending)

    # exception() on every finished task, not only the one re-raised
    errors = [t.exception() for t in tasks if t in done and not t.cancelled()]
    first = next((e for e in errors if e is not None), None)
    if first is not None:
        logger.debug(
            'Tile batch aborted: %d failed, %d cancelled',
            sum(e is not None for e in errors),
            len(pending),
        )
        raise first


async def _cancel_and_wait(tasks: Iterable[asyncio.Future]) -> None:
    tasks = list(tasks)
    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)


class InflightRegistry(Generic[T]):
    """
    Collapse concurrent loads of the same key into one in-flight task.

    Scoped to one render. Every caller for a key awaits the same task and
    gets its result or its exception. Disabled registries run every call.
    """

    def __init__(self, *, enabled: bool = True) -> None:
        self.enabled = enabled
        self._tasks: dict[str, asyncio.Task[T]] = {}
        self.collapsed = 0

    async def run(self, key: str, factory: Callable[[], Awaitable[T]]) -> T:
        if not self.enabled:
            return await factory()
        task = self._tasks.get(key)
        if task is None:
            task = asyncio.ensure_future(factory())
            self._tasks[key] = task
        else:
            self.collapsed += 1
        # shield: a cancelled waiter must not cancel the load other waiters share
        return await asyncio.shield(task)

    async def cancel_all(self) -> None:
        """Cancel loads still running and collect the outcome of every load."""
        tasks = list(self._tasks.values())
        if tasks:
            await _cancel_and_wait(tasks)
