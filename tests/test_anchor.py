"""Tests for the dependency store."""

import gc

import pytest

from vigil import Effect, Runtime, UntrackableError
from vigil._anchor import DependencyStore, SubscriberSet


class _Target:
    pass


def _computation():
    return Effect(lambda: None, runtime=Runtime())


class TestSubscriberSet:
    def test_keeps_insertion_order(self):
        a, b, c = _computation(), _computation(), _computation()
        s = SubscriberSet()
        for e in (b, a, c):
            s.add(e)
        assert list(s) == [b, a, c]

    def test_add_is_idempotent(self):
        e = _computation()
        s = SubscriberSet()
        assert s.add(e) is True
        assert s.add(e) is False
        assert len(s) == 1

    def test_discard_missing_is_noop(self):
        s = SubscriberSet()
        s.discard(_computation())
        assert len(s) == 0


class TestDependencyStore:
    def test_track_records_both_directions(self):
        store = DependencyStore()
        target, e = _Target(), _computation()
        store.track(target, "k", e)
        subscribers = store.subscribers(target, "k")
        assert e in subscribers
        assert e.deps == [subscribers]

    def test_track_twice_records_once(self):
        store = DependencyStore()
        target, e = _Target(), _computation()
        store.track(target, "k", e)
        store.track(target, "k", e)
        assert len(e.deps) == 1
        assert len(store.subscribers(target, "k")) == 1

    def test_release_leaves_every_set(self):
        store = DependencyStore()
        target, e = _Target(), _computation()
        store.track(target, "a", e)
        store.track(target, "b", e)
        store.release(e)
        assert e.deps == []
        assert store.snapshot(target, "a") == []
        assert store.snapshot(target, "b") == []

    def test_snapshot_of_unknown_slot_is_empty(self):
        store = DependencyStore()
        assert store.snapshot(_Target(), "nope") == []

    def test_snapshot_is_a_copy(self):
        store = DependencyStore()
        target, e = _Target(), _computation()
        store.track(target, "k", e)
        snap = store.snapshot(target, "k")
        store.subscribers(target, "k").discard(e)
        assert snap == [e]

    def test_identity_not_equality(self):
        """Two equal objects are independent subjects."""

        class Equal:
            def __eq__(self, other):
                return True

            def __hash__(self):
                return 0

        store = DependencyStore()
        a, b = Equal(), Equal()
        e = _computation()
        store.track(a, "k", e)
        assert a in store
        assert b not in store
        assert store.snapshot(b, "k") == []

    def test_does_not_keep_target_alive(self):
        store = DependencyStore()
        target, e = _Target(), _computation()
        store.track(target, "k", e)
        assert len(store) == 1
        del target
        gc.collect()
        assert len(store) == 0

    def test_untrackable_target(self):
        store = DependencyStore()
        with pytest.raises(UntrackableError):
            store.track({"plain": "dict"}, "plain", _computation())

    def test_untrackable_is_type_error(self):
        store = DependencyStore()
        with pytest.raises(TypeError):
            store.track(42, "k", _computation())
