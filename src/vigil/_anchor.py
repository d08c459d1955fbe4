"""Dependency store — who depends on which (object, key) slot.

Maps every observed object to its per-key SubscriberSets. Objects are held
weakly and keyed by identity: two equal dicts are two subjects, and the store
never keeps an observed object alive. When the object is reclaimed its whole
key map goes with it.

Each computation also keeps the SubscriberSets it joined (``deps``) so it can
leave all of them before its next run.
"""

from __future__ import annotations

import threading
import weakref
from typing import TYPE_CHECKING, Hashable, Iterator

from vigil.errors import UntrackableError

if TYPE_CHECKING:
    from vigil.effect import Effect


class SubscriberSet:
    """Insertion-ordered set of computations subscribed to one slot."""

    __slots__ = ("_members",)

    def __init__(self) -> None:
        self._members: dict[Effect, None] = {}

    def add(self, computation: Effect) -> bool:
        """Add computation. Returns False if it was already a member."""
        if computation in self._members:
            return False
        self._members[computation] = None
        return True

    def discard(self, computation: Effect) -> None:
        self._members.pop(computation, None)

    def __contains__(self, computation: object) -> bool:
        return computation in self._members

    def __iter__(self) -> Iterator[Effect]:
        return iter(self._members)

    def __len__(self) -> int:
        return len(self._members)

    def __repr__(self) -> str:
        return f"SubscriberSet({list(self._members)!r})"


class DependencyStore:
    """ObservedObject -> (Key -> SubscriberSet), weak on the object."""

    def __init__(self) -> None:
        # id(target) -> (weakref to target, key -> SubscriberSet)
        self._targets: dict[int, tuple[weakref.ref, dict[Hashable, SubscriberSet]]] = {}
        self._lock = threading.RLock()

    def _key_map(self, target: object, create: bool) -> dict[Hashable, SubscriberSet] | None:
        oid = id(target)
        entry = self._targets.get(oid)
        if entry is not None and entry[0]() is target:
            return entry[1]
        if not create:
            return None
        try:
            ref = weakref.ref(target, self._forget(oid))
        except TypeError:
            raise UntrackableError(
                f"cannot track {type(target).__name__!r} objects: "
                "observed objects must support weak references"
            ) from None
        key_map: dict[Hashable, SubscriberSet] = {}
        self._targets[oid] = (ref, key_map)
        return key_map

    def _forget(self, oid: int):
        def _drop(ref: weakref.ref) -> None:
            with self._lock:
                entry = self._targets.get(oid)
                if entry is not None and entry[0] is ref:
                    del self._targets[oid]

        return _drop

    def track(self, target: object, key: Hashable, computation: Effect) -> None:
        """Subscribe computation to (target, key). Re-adding is a no-op."""
        with self._lock:
            key_map = self._key_map(target, create=True)
            subscribers = key_map.get(key)
            if subscribers is None:
                subscribers = key_map[key] = SubscriberSet()
            if subscribers.add(computation):
                computation.deps.append(subscribers)

    def subscribers(self, target: object, key: Hashable) -> SubscriberSet | None:
        with self._lock:
            key_map = self._key_map(target, create=False)
            return None if key_map is None else key_map.get(key)

    def snapshot(self, target: object, key: Hashable) -> list[Effect]:
        """Copy of the subscribers of (target, key), in subscription order."""
        with self._lock:
            subscribers = self.subscribers(target, key)
            return list(subscribers) if subscribers else []

    def release(self, computation: Effect) -> None:
        """Remove computation from every SubscriberSet it joined."""
        with self._lock:
            for subscribers in computation.deps:
                subscribers.discard(computation)
            computation.deps.clear()

    def __contains__(self, target: object) -> bool:
        with self._lock:
            return self._key_map(target, create=False) is not None

    def __len__(self) -> int:
        return len(self._targets)
