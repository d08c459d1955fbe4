"""Observed containers — the interception layer in front of the runtime.

Reads call track(self, key) before returning; writes take effect first and
then call trigger(self, key). The container object itself is the observed
subject, so tracking is by identity: two Reactive dicts with equal contents
are independent.

Every write triggers, even when the new value equals the old one. Watchers
compare values themselves.
"""

from __future__ import annotations

from collections.abc import MutableMapping
from typing import TYPE_CHECKING, Generic, Hashable, Iterator, Mapping, TypeVar

if TYPE_CHECKING:
    from vigil.runtime import Runtime

T = TypeVar("T")
KT = TypeVar("KT", bound=Hashable)
VT = TypeVar("VT")


def _resolve(runtime: Runtime | None) -> Runtime:
    if runtime is not None:
        return runtime
    from vigil.runtime import get_runtime

    return get_runtime()


class Reactive(MutableMapping, Generic[KT, VT]):
    """A dict whose per-key reads are tracked and per-key writes trigger.

    Iteration and len() are not tracked; only keyed reads are.
    """

    __slots__ = ("_data", "_runtime", "__weakref__")

    def __init__(
        self,
        data: Mapping[KT, VT] | None = None,
        *,
        runtime: Runtime | None = None,
    ) -> None:
        self._data: dict[KT, VT] = dict(data) if data else {}
        self._runtime = runtime

    @property
    def runtime(self) -> Runtime:
        return _resolve(self._runtime)

    # --- Read operations (track) ---

    def __getitem__(self, key: KT) -> VT:
        self.runtime.track(self, key)
        return self._data[key]

    def __contains__(self, key: object) -> bool:
        self.runtime.track(self, key)
        return key in self._data

    def __iter__(self) -> Iterator[KT]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    # --- Write operations (trigger) ---

    def __setitem__(self, key: KT, value: VT) -> None:
        self._data[key] = value
        self.runtime.trigger(self, key)

    def __delitem__(self, key: KT) -> None:
        del self._data[key]
        self.runtime.trigger(self, key)

    def raw(self) -> dict[KT, VT]:
        """Untracked shallow copy of the current contents."""
        return dict(self._data)

    # Identity semantics: equal contents are still different subjects.
    __eq__ = object.__eq__
    __hash__ = object.__hash__

    def __repr__(self) -> str:
        return f"Reactive({self._data!r})"


class Observable(Generic[T]):
    """A single observed slot, tracked under the key "value"."""

    __slots__ = ("_value", "_runtime", "__weakref__")

    def __init__(self, value: T, *, runtime: Runtime | None = None) -> None:
        self._value = value
        self._runtime = runtime

    def get(self) -> T:
        """Read the value. If inside a computation, registers the dependency."""
        _resolve(self._runtime).track(self, "value")
        return self._value

    def set(self, value: T) -> None:
        """Write a new value and notify subscribers."""
        self._value = value
        _resolve(self._runtime).trigger(self, "value")

    value = property(get, set)

    def __repr__(self) -> str:
        return f"Observable({self._value!r})"
