"""Computed values — derived state with automatic dependency tracking.

A Computed wraps a getter in a lazy Effect. Reading .value runs the getter
only when the cached result is dirty; otherwise the cached result is returned.

When a dependency changes, the effect's scheduler marks the cache dirty. It
does not recompute. It also triggers the computed's own "value" slot, so
effects that read .value re-run and pull the fresh result.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Generic, TypeVar

from vigil.effect import Effect, EffectOptions

if TYPE_CHECKING:
    from vigil.runtime import Runtime

T = TypeVar("T")

_UNSET = object()


class Computed(Generic[T]):
    """A lazily evaluated, cached value derived from tracked state."""

    __slots__ = ("_runtime", "_effect", "_value", "_dirty", "__weakref__")

    def __init__(self, getter: Callable[[], T], runtime: Runtime | None = None) -> None:
        if runtime is None:
            from vigil.runtime import get_runtime

            runtime = get_runtime()
        self._runtime = runtime
        self._value = _UNSET
        self._dirty = True
        self._effect: Effect[T] = Effect(
            getter, EffectOptions(lazy=True, scheduler=self._invalidate), runtime
        )

    def _invalidate(self, _effect: Effect) -> None:
        if not self._dirty:
            self._dirty = True
            self._runtime.trigger(self, "value")

    @property
    def value(self) -> T:
        """Read the computed value. Recomputes if dirty."""
        if self._dirty:
            self._value = self._effect.run()
            # Disposed: recompute on every read.
            self._dirty = not self._effect.active
        self._runtime.track(self, "value")
        return self._value

    def get(self) -> T:
        return self.value

    @property
    def dirty(self) -> bool:
        return self._dirty

    @property
    def effect(self) -> Effect[T]:
        return self._effect

    def dispose(self) -> None:
        """Disconnect from all dependencies. Later reads re-run the getter untracked."""
        self._effect.dispose()
        self._dirty = True
        self._value = _UNSET

    def __repr__(self) -> str:
        state = "dirty" if self._dirty else f"cached={self._value!r}"
        name = getattr(self._effect._fn, "__name__", "getter")
        return f"Computed({name}, {state})"


def computed(getter: Callable[[], T]) -> Computed[T]:
    """Decorator/factory to create a Computed on the current runtime.

    Usage:
        state = Reactive({"a": 1, "b": 2})

        @computed
        def total():
            return state["a"] + state["b"]

        total.value  # 3
        state["a"] = 5
        total.value  # 7
    """
    from vigil.runtime import get_runtime

    return get_runtime().computed(getter)
