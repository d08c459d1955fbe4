"""Deferred executors and the batching job queue.

An executor answers one question: "run this after the current synchronous
phase". flush="post" watchers hand their jobs to the runtime's executor.

JobQueue is a scheduler hook (pass it as ``scheduler=``) that coalesces
re-runs: however many times a computation is triggered before the flush, it
runs once.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import TYPE_CHECKING, Callable, Protocol

if TYPE_CHECKING:
    from vigil.effect import Effect

logger = logging.getLogger("vigil.scheduler")

Job = Callable[[], None]


class Executor(Protocol):
    def schedule(self, job: Job) -> None: ...


class ManualExecutor:
    """Queues jobs until flush() is called. Deterministic; good for tests."""

    def __init__(self) -> None:
        self._queue: deque[Job] = deque()

    def schedule(self, job: Job) -> None:
        self._queue.append(job)

    def flush(self) -> int:
        """Run queued jobs in order, including ones queued while flushing."""
        count = 0
        while self._queue:
            job = self._queue.popleft()
            job()
            count += 1
        if count:
            logger.debug("flushed %d deferred job(s)", count)
        return count

    @property
    def pending(self) -> int:
        """Number of jobs waiting to run."""
        return len(self._queue)


class AsyncioExecutor:
    """Runs jobs on an asyncio loop via call_soon.

    Without an explicit loop, the loop running at schedule() time is used.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def schedule(self, job: Job) -> None:
        loop = self._loop or asyncio.get_running_loop()
        loop.call_soon(job)


class DefaultExecutor(ManualExecutor):
    """call_soon on the running asyncio loop; otherwise queue for flush()."""

    def schedule(self, job: Job) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            super().schedule(job)
        else:
            loop.call_soon(job)


class JobQueue:
    """Scheduler hook that batches re-runs into one deferred flush.

    Usage:
        queue = JobQueue(ManualExecutor())
        effect(render, scheduler=queue)
        state["a"] = 1
        state["b"] = 2
        queue.executor.flush()   # render runs once
    """

    def __init__(self, executor: Executor) -> None:
        self.executor = executor
        self._pending: dict[Effect, None] = {}
        self._scheduled = False

    def __call__(self, computation: Effect) -> None:
        self._pending[computation] = None
        if not self._scheduled:
            self._scheduled = True
            self.executor.schedule(self.flush)

    def flush(self) -> None:
        """Run every pending computation. Handles ones queued during the flush.

        If a run raises, the computations it didn't reach stay queued and a
        new flush is scheduled before the exception propagates.
        """
        batch: list[Effect] = []
        try:
            while self._pending:
                # Snapshot and clear: runs may queue new computations.
                batch = list(self._pending)
                self._pending.clear()
                while batch:
                    computation = batch.pop(0)
                    if computation.active:
                        computation.run()
        finally:
            self._scheduled = False
            if batch:
                self._pending = dict.fromkeys([*batch, *self._pending])
            if self._pending:
                self._scheduled = True
                self.executor.schedule(self.flush)

    def __len__(self) -> int:
        return len(self._pending)
