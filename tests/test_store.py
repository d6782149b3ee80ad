"""Tests for Store."""

import logging

import pytest

from reactree import StateError, Store


class TestStore:
    def test_creation_from_schema(self):
        s = Store({"x": 10, "y": "hello"})
        assert s.get("x") == 10
        assert s.get("y") == "hello"

    def test_initial_overrides(self):
        s = Store({"x": 10, "y": "hello"}, initial={"x": 99})
        assert s.get("x") == 99
        assert s.get("y") == "hello"

    def test_get_nonexistent(self):
        s = Store({"x": 1})
        assert s.get("nope") is None

    def test_set(self):
        s = Store({"x": 0})
        s.set("x", 42)
        assert s.get("x") == 42

    def test_set_nonexistent_is_noop(self):
        s = Store({"x": 0})
        s.set("nope", 99)  # no-op, no error
        assert "nope" not in s.tree

    def test_nested_defaults_not_shared(self):
        schema = {"player": {"hp": 10}}
        a = Store(schema)
        b = Store(schema)
        a.tree.player.hp = 1
        assert b.tree.player.hp == 10
        assert schema == {"player": {"hp": 10}}

    def test_update_batches(self):
        s = Store({"x": 0, "y": 0})
        log = []
        s.subscribe(lambda: log.append((s.get("x"), s.get("y"))))
        s.update({"x": 1, "y": 2})
        assert log == [(1, 2)]  # single batch

    def test_nested_changes_reach_store_subscribers(self):
        s = Store({"player": {"hp": 10}})
        log = []
        s.subscribe(lambda: log.append(s.tree.raw["player"]["hp"]))
        s.tree.player.hp = 9
        assert log == [9]

    def test_reconcile_adds_keys(self):
        s = Store({"x": 1})
        s.reconcile({"x": 1, "z": 99}, lambda store: [])
        assert s.get("z") == 99
        assert s.get("x") == 1  # preserved

    def test_reconcile_preserves_values(self):
        s = Store({"x": 1})
        s.set("x", 42)
        s.reconcile({"x": 1}, lambda store: [])
        assert s.get("x") == 42

    def test_reconcile_disposes_old_subscriptions(self):
        s = Store({"x": 0})
        log = []

        def setup(store):
            return [store.tree.changed.subscribe(lambda: log.append(store.get("x")))]

        s.reconcile({"x": 0}, setup)
        s.set("x", 1)
        assert log == [1]

        # Reconcile again — old subscription should be disposed
        log2 = []

        def setup2(store):
            return [store.tree.changed.subscribe(lambda: log2.append(store.get("x")))]

        s.reconcile({"x": 0}, setup2)
        s.set("x", 2)
        assert log2 == [2]
        assert log == [1]  # old subscription didn't fire

    def test_reconcile_failure(self, caplog):
        """When setup_fn raises, store continues with values intact, no subscriptions."""
        s = Store({"a": 1})
        s.set("a", 42)

        def bad_setup(store):
            raise RuntimeError("boom")

        with caplog.at_level(logging.ERROR, logger="reactree.store"):
            s.reconcile({"a": 1, "c": 3}, bad_setup)

        assert s.get("a") == 42  # value preserved
        assert s.get("c") == 3  # new key added
        assert s._disposers == []  # degraded mode
        assert "Failed to register subscriptions" in caplog.text

    def test_reconcile_logs_info(self, caplog):
        s = Store({"a": 1})

        with caplog.at_level(logging.INFO, logger="reactree.store"):
            s.reconcile({"a": 1, "b": 2}, lambda store: [])

        assert "Reconciled" in caplog.text
        assert "1 new keys" in caplog.text

    def test_dispose(self):
        s = Store({"x": 0})
        log = []
        s.subscribe(lambda: log.append(s.get("x")))
        s.set("x", 1)
        assert log == [1]

        s.dispose()
        assert s.tree.destroyed
        with pytest.raises(StateError):
            s.set("x", 2)
        assert log == [1]
