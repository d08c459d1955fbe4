"""Runtime — owns the dependency store, the execution context and the
deferred executor, and implements the two hooks the interception layer calls:

- track(obj, key): the running computation read obj[key].
- trigger(obj, key): obj[key] was written; notify its subscribers.

A process-wide default runtime backs the module-level API. Tests and embedders
can create their own and make it current with use_runtime().
"""

from __future__ import annotations

import contextvars
import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Callable, Hashable, Iterator, TypeVar

from vigil import _tracking
from vigil._anchor import DependencyStore
from vigil._tracking import ExecutionContext
from vigil.effect import Effect, EffectOptions
from vigil.scheduler import DefaultExecutor, Executor

if TYPE_CHECKING:
    from vigil.computed import Computed
    from vigil.watch import Watcher

logger = logging.getLogger("vigil.runtime")

T = TypeVar("T")


class Runtime:
    """One independent dependency graph."""

    def __init__(self, executor: Executor | None = None, name: str | None = None) -> None:
        self.name = name or f"runtime-{id(self):x}"
        self.store = DependencyStore()
        self.context = ExecutionContext(self)
        self.executor: Executor = executor if executor is not None else DefaultExecutor()

    # --- Hooks for the interception layer ---

    def track(self, target: object, key: Hashable) -> None:
        """Record that the running computation depends on target[key]."""
        computation = self.context.current
        if computation is None or not computation.active:
            return
        self.store.track(target, key, computation)

    def trigger(self, target: object, key: Hashable) -> None:
        """Re-run (or schedule) every computation that depends on target[key]."""
        # Snapshot: running a computation rebuilds its subscriptions.
        subscribers = self.store.snapshot(target, key)
        if not subscribers:
            return

        running = self.context.current
        logger.debug(
            "trigger %s[%r] -> %d subscriber(s)",
            type(target).__name__, key, len(subscribers),
        )
        for computation in subscribers:
            if computation is running or not computation.active:
                continue
            scheduler = computation.options.scheduler
            if scheduler is not None:
                scheduler(computation)
            else:
                computation.run()

    # --- Factories ---

    def effect(
        self,
        fn: Callable[[], T],
        *,
        lazy: bool = False,
        scheduler: Callable[[Effect], None] | None = None,
    ) -> Effect[T]:
        e = Effect(fn, EffectOptions(lazy=lazy, scheduler=scheduler), self)
        if not lazy:
            e.run()
        return e

    def computed(self, getter: Callable[[], T]) -> Computed[T]:
        from vigil.computed import Computed

        return Computed(getter, self)

    def watch(
        self,
        source: Any,
        callback: Callable[..., Any],
        *,
        immediate: bool = False,
        flush: str = "post",
    ) -> Watcher:
        from vigil.watch import WatchOptions, Watcher

        options = WatchOptions.create(immediate=immediate, flush=flush)
        return Watcher(source, callback, options, self)

    # --- Deferred execution ---

    def set_executor(self, executor: Executor) -> None:
        """Replace the deferred executor used by flush="post" watchers."""
        self.executor = executor

    def flush(self) -> int:
        """Drain queued deferred jobs. Returns how many ran.

        Only executors that queue locally can be drained; others return 0.
        """
        drain = getattr(self.executor, "flush", None)
        return drain() if drain is not None else 0

    untracked = staticmethod(_tracking.untracked)

    def __repr__(self) -> str:
        return f"Runtime({self.name!r}, targets={len(self.store)})"


# ─── Default runtime ─────────────────────────────────────────────────────────
_default = Runtime(name="default")
_current: contextvars.ContextVar[Runtime | None] = contextvars.ContextVar(
    "vigil_runtime", default=None
)


def get_runtime() -> Runtime:
    """The runtime made current by use_runtime(), else the default one."""
    runtime = _current.get()
    return runtime if runtime is not None else _default


def set_runtime(runtime: Runtime) -> Runtime:
    """Replace the process-wide default runtime. Returns the previous one."""
    global _default
    previous, _default = _default, runtime
    return previous


@contextmanager
def use_runtime(runtime: Runtime) -> Iterator[Runtime]:
    """Make runtime current for the block (this thread / task only)."""
    token = _current.set(runtime)
    try:
        yield runtime
    finally:
        _current.reset(token)


def track(target: object, key: Hashable) -> None:
    get_runtime().track(target, key)


def trigger(target: object, key: Hashable) -> None:
    get_runtime().trigger(target, key)


def set_executor(executor: Executor) -> None:
    get_runtime().set_executor(executor)


def flush() -> int:
    return get_runtime().flush()
