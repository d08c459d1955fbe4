"""Tests for the Reactive and Observable containers."""

from vigil import Observable, Reactive, effect


class TestReactive:
    def test_mapping_operations(self, runtime):
        state = Reactive({"a": 1})
        state["b"] = 2
        assert state["a"] == 1
        assert len(state) == 2
        assert sorted(state) == ["a", "b"]
        assert "b" in state
        assert state.get("missing", 0) == 0
        del state["a"]
        assert state.raw() == {"b": 2}

    def test_every_write_triggers(self, runtime):
        state = Reactive({"a": 1})
        log = []
        effect(lambda: log.append(state["a"]))
        state["a"] = 1
        assert log == [1, 1]

    def test_delete_triggers(self, runtime):
        state = Reactive({"a": 1})
        log = []
        effect(lambda: log.append(state.get("a")))
        del state["a"]
        assert log == [1, None]

    def test_missing_key_read_is_tracked(self, runtime):
        state = Reactive()
        log = []
        effect(lambda: log.append("a" in state))
        state["a"] = 1
        assert log == [False, True]

    def test_identity_semantics(self):
        a = Reactive({"x": 1})
        b = Reactive({"x": 1})
        assert a != b
        assert a == a
        assert len({a, b}) == 2

    def test_update_triggers_per_key(self, runtime):
        state = Reactive({"a": 1, "b": 1})
        log = []
        effect(lambda: log.append(state["b"]))
        state.update({"a": 2, "b": 3})
        assert log == [1, 3]

    def test_repr(self):
        assert repr(Reactive({"a": 1})) == "Reactive({'a': 1})"


class TestObservable:
    def test_get_set(self, runtime):
        o = Observable(42)
        assert o.get() == 42
        o.set(100)
        assert o.value == 100
        o.value = 7
        assert o.get() == 7

    def test_notifies(self, runtime):
        o = Observable("hello")
        log = []
        effect(lambda: log.append(o.value))
        o.set("world")
        assert log == ["hello", "world"]

    def test_repr(self):
        assert "Observable(5)" in repr(Observable(5))
