"""Notification scheduling — batching and re-entrancy bookkeeping.

Batching: writes inside an @action or `with transaction()` mark emitters
pending and flush them once at the end, so every touched node fires exactly
once per batch.

Re-entrancy: a subscriber may write to the tree it observes. That nested
write runs to completion (including its own bubble) on the call stack,
before the outer fire() moves on. The nesting depth is bounded so a
subscriber that always writes cannot recurse forever.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING, Iterator

from reactree.errors import ReentrancyError

if TYPE_CHECKING:
    from reactree.emitter import ChangeEmitter

DEFAULT_REENTRANCY_LIMIT = 100

# Batch depth counter. When > 0, notifications are deferred.
_batch_depth: int = 0

# Emitters touched during a batch -> deepest tree depth they were touched at.
_pending: dict[ChangeEmitter, int] = {}

# Writes currently on the call stack.
_write_depth: int = 0
_reentrancy_limit: int = DEFAULT_REENTRANCY_LIMIT


def begin_batch() -> None:
    """Enter a batching scope. Nested batches are supported."""
    global _batch_depth
    _batch_depth += 1


def end_batch() -> None:
    """Exit a batching scope. When the outermost scope exits, flush pending emitters."""
    global _batch_depth
    _batch_depth -= 1
    if _batch_depth == 0:
        _flush_pending()


def notify(emitter: ChangeEmitter, depth: int = 0) -> None:
    """Fire an emitter now, or defer it if inside a batch.

    depth is the node's distance from its root; a flush fires deeper
    emitters first so children always precede their ancestors.
    """
    if _batch_depth > 0:
        _pending[emitter] = max(depth, _pending.get(emitter, depth))
    else:
        emitter.fire()


def _flush_pending() -> None:
    """Fire all pending emitters. Handles emitters touched during flush."""
    while _pending:
        # Snapshot and clear; subscribers may write during fire.
        # sorted() is stable, so equal depths keep first-touched order.
        batch = sorted(_pending, key=_pending.__getitem__, reverse=True)
        _pending.clear()
        for emitter in batch:
            emitter.fire()


def get_pending_count() -> int:
    """Number of emitters waiting to fire. Useful for testing."""
    return len(_pending)


def set_reentrancy_limit(limit: int) -> None:
    """Set how deeply writes may nest through subscriber callbacks.

    A write attempted at a deeper level raises ReentrancyError.
    """
    global _reentrancy_limit
    if limit < 1:
        raise ValueError(f"reentrancy limit must be >= 1, got {limit}")
    _reentrancy_limit = limit


def get_reentrancy_limit() -> int:
    return _reentrancy_limit


@contextmanager
def write_scope() -> Iterator[None]:
    """Track one write on the call stack, refusing to nest past the limit."""
    global _write_depth
    if _write_depth >= _reentrancy_limit:
        raise ReentrancyError(
            f"write nested {_write_depth} levels deep inside change subscribers "
            f"(limit {_reentrancy_limit})"
        )
    _write_depth += 1
    try:
        yield
    finally:
        _write_depth -= 1
