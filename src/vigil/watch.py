"""Watchers — run a callback when a watched source produces a new value.

The source is either a getter (re-evaluated on every change) or an observed
object, which is watched deeply: every key reachable from it is read so any
write inside it triggers the watcher.

When a dependency changes the watcher runs its job, either right away
(flush="sync") or through the runtime's deferred executor (flush="post").
The job re-evaluates the source and, if the value changed, calls
``callback(new_value, old_value, on_invalidate)``.

on_invalidate(fn) registers fn to run before the next callback. A callback
that starts async work uses it to mark that work stale, so a slower, older
request can't overwrite the result of a newer one:

    async def fetch(new, old, on_invalidate):
        expired = False

        def expire():
            nonlocal expired
            expired = True

        on_invalidate(expire)
        result = await load(new)
        if not expired:
            state["result"] = result
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable

from vigil.computed import Computed
from vigil.effect import Effect, EffectOptions
from vigil.errors import AsyncCallbackError, InvalidOptionError
from vigil.observable import Observable, Reactive

if TYPE_CHECKING:
    from vigil.runtime import Runtime

logger = logging.getLogger("vigil.watch")

_PRIMITIVES = (str, bytes, bytearray, int, float, complex, bool)

# Sentinel for "no previous value" (immediate watchers' first callback gets None).
_ABSENT = object()


class Flush(str, Enum):
    SYNC = "sync"
    POST = "post"


@dataclass(frozen=True)
class WatchOptions:
    immediate: bool = False
    flush: Flush = Flush.POST

    @classmethod
    def create(cls, *, immediate: bool = False, flush: Flush | str = Flush.POST) -> WatchOptions:
        try:
            flush = Flush(flush)
        except ValueError:
            raise InvalidOptionError(
                f"flush must be one of {[f.value for f in Flush]}, got {flush!r}"
            ) from None
        return cls(immediate=bool(immediate), flush=flush)


def traverse(value: Any, seen: set[int] | None = None) -> Any:
    """Read everything reachable from value so it all gets tracked.

    Stops at primitives, None and objects already visited. Returns value.
    """
    if value is None or isinstance(value, _PRIMITIVES):
        return value
    if seen is None:
        seen = set()
    if id(value) in seen:
        return value
    seen.add(id(value))

    if isinstance(value, (Observable, Computed)):
        traverse(value.value, seen)
    elif isinstance(value, (Reactive, Mapping)):
        for key in list(value):
            traverse(value[key], seen)
    elif isinstance(value, (list, tuple, set, frozenset)):
        for item in list(value):
            traverse(item, seen)
    return value


class Watcher:
    """An effect over a source plus a callback fired when its value changes."""

    def __init__(
        self,
        source: Any,
        callback: Callable[..., Any],
        options: WatchOptions | None = None,
        runtime: Runtime | None = None,
    ) -> None:
        if runtime is None:
            from vigil.runtime import get_runtime

            runtime = get_runtime()
        self.runtime = runtime
        self.options = options or WatchOptions()
        self.callback = callback
        self.generation = 0
        self.old_value: Any = None
        self.new_value: Any = None
        self.pending_tasks: set[asyncio.Future] = set()
        self._cleanup: Callable[[], None] | None = None

        if callable(source):
            getter = source
            self.deep = False
        else:
            getter = lambda: traverse(source)  # noqa: E731
            self.deep = True

        self._effect: Effect = Effect(
            getter, EffectOptions(lazy=True, scheduler=self._schedule), runtime
        )

        if self.options.immediate:
            self.old_value = _ABSENT
            self.job()
        else:
            self.old_value = self._effect.run()

    @property
    def active(self) -> bool:
        return self._effect.active

    def _schedule(self, _effect: Effect) -> None:
        if self.options.flush is Flush.SYNC:
            self.job()
        else:
            self.runtime.executor.schedule(self.job)

    def on_invalidate(self, fn: Callable[[], None]) -> None:
        """Register fn to run before the next callback (or on dispose)."""
        self._cleanup = fn

    def _invalidate(self) -> None:
        cleanup, self._cleanup = self._cleanup, None
        if cleanup is not None:
            logger.debug("invalidating callback of generation %d", self.generation - 1)
            cleanup()

    def job(self) -> None:
        """Re-evaluate the source; call the callback if the value changed."""
        if not self.active:
            return
        self.generation += 1
        self.new_value = self._effect.run()
        old = self.old_value
        if self.deep or (self.new_value is not old and self.new_value != old):
            self._invalidate()
            result = self.callback(
                self.new_value,
                None if old is _ABSENT else old,
                self.on_invalidate,
            )
            if inspect.isawaitable(result):
                self._spawn(result)
            self.old_value = self.new_value

    def _spawn(self, awaitable: Any) -> None:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            raise AsyncCallbackError(
                "watch callback returned an awaitable but no event loop is running"
            ) from None
        task = asyncio.ensure_future(awaitable)
        self.pending_tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Future) -> None:
        self.pending_tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("watch callback failed", exc_info=exc)

    def dispose(self) -> None:
        """Stop watching. Invalidates any callback still in flight."""
        if not self.active:
            return
        self._effect.dispose()
        self._invalidate()

    def __repr__(self) -> str:
        state = "active" if self.active else "disposed"
        return (
            f"Watcher({self.options.flush.value}, {state}, "
            f"generation={self.generation})"
        )


def watch(
    source: Any,
    callback: Callable[..., Any],
    *,
    immediate: bool = False,
    flush: Flush | str = Flush.POST,
) -> Watcher:
    """Call callback(new, old, on_invalidate) whenever source changes.

    source is a getter or an observed object (watched deeply). With
    immediate=True the callback also fires once now, with old=None.
    flush="sync" runs the callback inside the write that caused it;
    flush="post" (default) defers it to the runtime's executor.

    Returns the Watcher (call .dispose() to stop).

    Usage:
        state = Reactive({"foo": 1})
        seen = []

        watch(lambda: state["foo"], lambda new, old, _: seen.append((old, new)),
              flush="sync")
        state["foo"] = 2
        # seen == [(1, 2)]
    """
    from vigil.runtime import get_runtime

    return get_runtime().watch(source, callback, immediate=immediate, flush=flush)
