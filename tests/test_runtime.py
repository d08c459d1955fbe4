"""Tests for Runtime instances, the default runtime and the track/trigger hooks."""

import logging

import pytest

from vigil import (
    ManualExecutor,
    Reactive,
    Runtime,
    UntrackableError,
    effect,
    get_runtime,
    set_executor,
    set_runtime,
    track,
    trigger,
    use_runtime,
)


class _Point:
    """A hand-written container driving the hooks directly."""

    def __init__(self, x):
        self._x = x

    @property
    def x(self):
        track(self, "x")
        return self._x

    @x.setter
    def x(self, value):
        self._x = value
        trigger(self, "x")


class TestHooks:
    def test_custom_container(self, runtime):
        p = _Point(1)
        log = []
        effect(lambda: log.append(p.x))
        p.x = 2
        assert log == [1, 2]

    def test_trigger_untracked_key_is_noop(self, runtime):
        trigger(_Point(1), "never-tracked")

    def test_track_outside_computation_is_noop(self, runtime):
        track(42, "k")  # untrackable, but nothing is running
        assert len(runtime.store) == 0

    def test_track_untrackable_inside_computation(self, runtime):
        with pytest.raises(UntrackableError):
            effect(lambda: track(42, "k"))

    def test_subscribers_run_in_subscription_order(self, runtime):
        state = Reactive({"a": 0})
        order = []
        effect(lambda: order.append(("first", state["a"])))
        effect(lambda: order.append(("second", state["a"])))
        order.clear()
        state["a"] = 1
        assert order == [("first", 1), ("second", 1)]

    def test_trigger_logs_fan_out(self, runtime, caplog):
        state = Reactive({"a": 0})
        effect(lambda: state["a"])
        with caplog.at_level(logging.DEBUG, logger="vigil.runtime"):
            state["a"] = 1
        assert "1 subscriber(s)" in caplog.text


class TestRuntimeIsolation:
    def test_separate_graphs(self):
        rt1, rt2 = Runtime(), Runtime()
        state = Reactive({"a": 1}, runtime=rt1)
        log = []
        rt2.effect(lambda: log.append(state["a"]))
        state["a"] = 2
        assert log == [1]  # rt2's effect is not a reader in rt1
        assert len(rt2.store) == 0

    def test_use_runtime_scopes_default(self):
        rt = Runtime()
        before = get_runtime()
        with use_runtime(rt):
            assert get_runtime() is rt
            e = effect(lambda: None)
            assert e.runtime is rt
        assert get_runtime() is before

    def test_set_runtime(self):
        rt = Runtime(name="replacement")
        previous = set_runtime(rt)
        try:
            assert get_runtime() is rt
        finally:
            set_runtime(previous)
        assert get_runtime() is previous

    def test_set_executor(self, runtime):
        ex = ManualExecutor()
        set_executor(ex)
        assert runtime.executor is ex

    def test_flush_without_queue(self):
        class CallSoon:
            def schedule(self, job):
                job()

        assert Runtime(executor=CallSoon()).flush() == 0

    def test_repr(self):
        assert "'named'" in repr(Runtime(name="named"))
