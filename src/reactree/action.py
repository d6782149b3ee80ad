"""Actions and transactions — batched tree mutations.

Writes made inside a transaction do not notify as they happen. When the
outermost transaction exits, every touched node fires exactly once, deepest
nodes first, so subscribers never observe a half-applied update and a child
always fires before its ancestors.
"""

from __future__ import annotations

import functools
from contextlib import contextmanager
from typing import Callable, Iterator, ParamSpec, TypeVar

from reactree._tracking import begin_batch, end_batch

P = ParamSpec("P")
R = TypeVar("R")


@contextmanager
def transaction() -> Iterator[None]:
    """Defer change notifications until the outermost scope exits.

    Nested scopes join the outer one. A scope left by an exception still
    flushes, since the writes before it already happened.

    Usage:
        with transaction():
            player.hp = 10
            player.pos.x = 3
        # player.pos fires, then player, once each
    """
    begin_batch()
    try:
        yield
    finally:
        end_batch()


def action(fn: Callable[P, R]) -> Callable[P, R]:
    """Decorator: run fn inside a transaction.

    Usage:
        cart = wrap({"items": {}, "total": 0})

        @action
        def add(name, price):
            cart.items[name] = price
            cart.total = sum(cart.items.values())
        # cart.items fires, then cart, after add() returns
    """

    @functools.wraps(fn)
    def batched(*args: P.args, **kwargs: P.kwargs) -> R:
        with transaction():
            return fn(*args, **kwargs)

    return batched
