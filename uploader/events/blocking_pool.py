"""Bounded thread pool for blocking filesystem work."""

import asyncio
from collections.abc import AsyncGenerator, Callable
from concurrent.futures import ThreadPoolExecutor
from contextlib import asynccontextmanager
from typing import Any

from uploader.core.lifespan import BaseEvent
from uploader.core.logger import LogIcon, logger


class BlockingTaskCancelled(Exception):
    """A job submitted to the pool did not run to completion."""


class BlockingPool:
    """Runs blocking callables off the event loop with bounded queuing.

    At most ``max_pending`` jobs are submitted at any time; further callers
    wait on a semaphore instead of piling up in the executor queue.
    """

    def __init__(self, max_workers: int, max_pending: int | None = None) -> None:
        self.max_workers = max_workers
        self.max_pending = max_pending or max_workers * 2
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="uploader-io")
        self._slots = asyncio.Semaphore(self.max_pending)

    async def run[T](self, func: Callable[..., T], /, *args: Any) -> T:
        """Run ``func(*args)`` on a worker thread and await its result."""
        async with self._slots:
            loop = asyncio.get_running_loop()
            try:
                future = loop.run_in_executor(self._executor, func, *args)
            except RuntimeError as ex:
                raise BlockingTaskCancelled(f"blocking pool refused {func.__name__}: {ex}") from ex
            try:
                return await future
            except asyncio.CancelledError:
                task = asyncio.current_task()
                # Our own task is being cancelled: let it unwind
                if task is not None and task.cancelling():
                    raise
                raise BlockingTaskCancelled(f"{func.__name__} was cancelled before completion") from None

    def shutdown(self, wait: bool = True, cancel_futures: bool = False) -> None:
        self._executor.shutdown(wait=wait, cancel_futures=cancel_futures)


def create_blocking_pool(max_workers: int, max_pending: int | None = None) -> BlockingPool:
    """Create a BlockingPool backed by a ThreadPoolExecutor."""
    return BlockingPool(max_workers=max_workers, max_pending=max_pending)


@asynccontextmanager
async def blocking_pool_context(
    max_workers: int, max_pending: int | None = None
) -> AsyncGenerator[BlockingPool, None]:
    """Context manager for temporary pool usage."""
    pool = create_blocking_pool(max_workers, max_pending)
    try:
        yield pool
    finally:
        pool.shutdown(wait=True)


class BlockingPoolEvent(BaseEvent[BlockingPool]):
    """Manages the BlockingPool lifecycle."""

    name = "blocking_pool"

    async def startup(self) -> BlockingPool:
        st = self.state.settings
        logger.info("Blocking pool sized", icon=LogIcon.PROCESSOR, workers=st.MAX_WORKERS, pending=st.MAX_PENDING_JOBS)
        return create_blocking_pool(max_workers=st.MAX_WORKERS, max_pending=st.MAX_PENDING_JOBS)

    async def shutdown(self, instance: BlockingPool) -> None:
        """Wait for in-flight writes, drop queued ones."""
        instance.shutdown(wait=True, cancel_futures=True)
