"""ChangeEmitter — the payload-free publish/subscribe primitive.

Every ReactiveNode owns one. Subscribers are zero-argument callables; they
learn *that* something changed and re-read the tree to find out what.
"""

from __future__ import annotations

import logging
from typing import Callable

from reactree.errors import StateError

logger = logging.getLogger("reactree.emitter")

Callback = Callable[[], None]
Disposer = Callable[[], None]


class ChangeEmitter:
    """Ordered set of callbacks fired synchronously in subscription order."""

    __slots__ = ("_subscribers", "_destroyed")

    def __init__(self) -> None:
        # token -> callback; dict keeps subscription order
        self._subscribers: dict[object, Callback] = {}
        self._destroyed = False

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    def subscribe(self, callback: Callback) -> Disposer:
        """Register a callback. Returns a function that removes it.

        The disposer is idempotent. Subscribing twice with the same callback
        registers it twice, and each disposer removes only its own entry.
        """
        if self._destroyed:
            raise StateError("cannot subscribe to a destroyed emitter")
        token = object()
        self._subscribers[token] = callback

        def _unsubscribe() -> None:
            self._subscribers.pop(token, None)

        return _unsubscribe

    def fire(self) -> None:
        """Invoke every current subscriber.

        A subscriber that raises is logged and skipped; the rest still run.
        Subscribers removed by an earlier callback in the same fire are not
        called.
        """
        if self._destroyed:
            return
        for token, callback in list(self._subscribers.items()):
            if token not in self._subscribers:
                continue
            try:
                callback()
            except Exception:
                logger.exception("Change subscriber %r raised", callback)

    def destroy(self) -> None:
        """Drop all subscribers. Later fire() calls do nothing."""
        self._destroyed = True
        self._subscribers.clear()

    def __len__(self) -> int:
        return len(self._subscribers)

    def __repr__(self) -> str:
        state = "destroyed" if self._destroyed else f"{len(self._subscribers)} subscribers"
        return f"ChangeEmitter({state})"
