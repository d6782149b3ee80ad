"""Store — a reactive tree with subscription lifecycle.

A Store builds a root ReactiveNode from a schema of defaults and manages the
disposers of subscriptions registered against it. reconcile() supports
schema evolution: add new keys and re-register subscriptions without losing
existing values. A failing setup function is logged and leaves the store
running with its values intact and no subscriptions.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping
from typing import Any, Callable

from reactree.action import action
from reactree.emitter import Disposer
from reactree.node import ReactiveNode, wrap

logger = logging.getLogger("reactree.store")

SetupFn = Callable[["Store"], "list[Disposer] | None"]


def _fresh(value: Any) -> Any:
    # Nested defaults are copied so stores never share a schema's dicts.
    if isinstance(value, Mapping):
        return copy.deepcopy(dict(value))
    return value


class Store:
    """Schema-backed reactive tree with subscription lifecycle."""

    def __init__(self, schema: dict[str, object], initial: dict | None = None) -> None:
        data = {}
        for key, default in schema.items():
            value = initial.get(key, default) if initial else default
            data[key] = _fresh(value)
        self._tree = wrap(data)
        self._disposers: list[Disposer] = []

    @property
    def tree(self) -> ReactiveNode:
        return self._tree

    def get(self, key: str, default: Any = None) -> Any:
        return self._tree.get(key, default)

    def set(self, key: str, value: object) -> None:
        """Write a schema key. Keys outside the schema are ignored."""
        if key in self._tree:
            self._tree[key] = value

    @action
    def update(self, values: dict) -> None:
        for key, value in values.items():
            self.set(key, value)

    def subscribe(self, callback: Callable[[], None]) -> Disposer:
        """Subscribe to the root and keep the disposer for dispose()/reconcile()."""
        disposer = self._tree.changed.subscribe(callback)
        self._disposers.append(disposer)
        return disposer

    def reconcile(self, schema: dict[str, object], setup_fn: SetupFn) -> None:
        """Schema evolution: add new keys, re-register subscriptions.

        Existing values are untouched. New keys get defaults. Old disposers
        are called. setup_fn(store) -> list[disposer] registers new ones;
        if it raises, the failure is logged and the store carries on with
        no subscriptions.
        """
        new_keys = [key for key in schema if key not in self._tree]
        self._tree.update({key: _fresh(schema[key]) for key in new_keys})

        old_count = len(self._disposers)
        self._dispose_subscriptions()

        try:
            self._disposers = list(setup_fn(self) or [])
        except Exception:
            logger.exception("Failed to register subscriptions during reconcile")
            self._disposers = []
            return
        logger.info(
            "Reconciled: %d new keys, %d->%d subscriptions",
            len(new_keys), old_count, len(self._disposers),
        )

    def _dispose_subscriptions(self) -> None:
        for dispose in self._disposers:
            dispose()
        self._disposers.clear()

    def dispose(self) -> None:
        """Drop every subscription and destroy the tree."""
        self._dispose_subscriptions()
        self._tree.destroy()
