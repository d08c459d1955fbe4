"""Effects — computations that record what they read and re-run on change.

Every run starts by leaving all SubscriberSets joined during the previous run,
so a body that switches branches only depends on what it read last time.

Two options control what happens when a dependency changes:
- lazy: don't run on creation; the caller decides when (Computed, Watcher).
- scheduler: called with the effect instead of re-running it directly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Generic, TypeVar

from vigil._anchor import SubscriberSet
from vigil._tracking import untracked

if TYPE_CHECKING:
    from vigil.runtime import Runtime

logger = logging.getLogger("vigil.effect")

T = TypeVar("T")


@dataclass(frozen=True)
class EffectOptions:
    lazy: bool = False
    scheduler: Callable[[Effect], None] | None = None


class Effect(Generic[T]):
    """A re-runnable body whose dependencies are discovered while it runs.

    Calling the effect (or .run()) forces a run and returns the body's result.
    """

    __slots__ = ("_fn", "runtime", "options", "deps", "active", "__weakref__")

    def __init__(
        self,
        fn: Callable[[], T],
        options: EffectOptions | None = None,
        runtime: Runtime | None = None,
    ) -> None:
        if runtime is None:
            from vigil.runtime import get_runtime

            runtime = get_runtime()
        self._fn = fn
        self.runtime = runtime
        self.options = options or EffectOptions()
        self.deps: list[SubscriberSet] = []
        self.active = True

    def run(self) -> T:
        if not self.active:
            with untracked():
                return self._fn()

        self._cleanup()
        with self.runtime.context.enter(self):
            return self._fn()

    __call__ = run

    def _cleanup(self) -> None:
        self.runtime.store.release(self)

    def dispose(self) -> None:
        """Stop reacting. The body can still be run by hand, untracked."""
        if not self.active:
            return
        self.active = False
        self._cleanup()
        logger.debug("disposed %r", self)

    def __repr__(self) -> str:
        state = "active" if self.active else "disposed"
        name = getattr(self._fn, "__name__", type(self._fn).__name__)
        return f"Effect({name}, {state}, deps={len(self.deps)})"


def effect(
    fn: Callable[[], T],
    *,
    lazy: bool = False,
    scheduler: Callable[[Effect], None] | None = None,
) -> Effect[T]:
    """Wrap fn in an Effect on the current runtime.

    Runs fn immediately unless lazy=True. Returns the Effect (call it to
    force a run, .dispose() to stop).

    Usage:
        state = Reactive({"count": 0})
        log = []

        effect(lambda: log.append(state["count"]))
        # log == [0]

        state["count"] = 1
        # log == [0, 1]
    """
    from vigil.runtime import get_runtime

    return get_runtime().effect(fn, lazy=lazy, scheduler=scheduler)
