"""Reactive nodes — nested mappings that notify on change.

wrap(mapping) returns a ReactiveNode: a proxy that reads like the mapping
but routes every write through one path that

1. skips writes that change nothing,
2. wraps mapping values into child nodes (or adopts existing handles),
3. fires this node's emitter, then each ancestor's, child to root.

The underlying mapping always holds plain values. A child's raw mapping sits
in its parent's raw slot, so `node.raw` can be handed straight to json.dumps.
Reads through the handle return child handles for mapping-valued keys.

All state lives in _anchor — instances are thin handles holding an _id.

Attribute access (`node.hp`) and item access (`node["hp"]`) are equivalent
for data keys, except that attribute reads of names the class itself defines
(`keys`, `get`, `update`, `destroy`, ...) resolve to those methods. Item
access always reaches the data.
"""

from __future__ import annotations

import logging
import weakref
from collections.abc import Mapping, MutableMapping
from typing import Any, Iterator

from reactree import _anchor
from reactree._tracking import notify, write_scope
from reactree.action import transaction
from reactree.emitter import ChangeEmitter
from reactree.errors import ReservedKeyError, StateError

logger = logging.getLogger("reactree.node")

RESERVED = frozenset({"changed", "raw"})

_MISSING = object()


def _is_structural(value: object) -> bool:
    return isinstance(value, (ReactiveNode, MutableMapping))


def _unwrap(value: object) -> object:
    if isinstance(value, ReactiveNode):
        return _anchor.raws[value._id]
    return value


def _same(old: object, new: object) -> bool:
    """Would storing `new` over `old` change nothing?

    Mappings compare by identity, scalars by equality.
    """
    new = _unwrap(new)
    if old is new:
        return True
    if old is _MISSING or new is _MISSING:
        return False
    if isinstance(old, MutableMapping) or isinstance(new, MutableMapping):
        return False
    return old == new


def _check_incoming(value: object, parent_id: int | None) -> None:
    """Reject a value headed under parent_id before any tree is touched.

    Walks plain mappings all the way down: reserved keys, destroyed handles
    and handles that would become their own ancestor all fail here, so a
    rejected write never detaches anything from another tree.
    """
    if isinstance(value, ReactiveNode):
        if value.destroyed:
            raise StateError("cannot store a destroyed node")
        if parent_id is not None and value._is_self_or_ancestor_of(parent_id):
            raise ValueError("storing this node here would create a cycle")
        return
    if not isinstance(value, MutableMapping):
        return
    for key, item in value.items():
        if key in RESERVED:
            raise ReservedKeyError(key)
        _check_incoming(item, parent_id)


def _bubble(node_id: int) -> None:
    """Notify a node and then every ancestor, child to root."""
    chain = []
    current: int | None = node_id
    while current is not None and current in _anchor.emitters:
        chain.append(_anchor.emitters[current])
        current = _anchor.parents.get(current)
    # Depth lets a batch flush deepest first, whatever order writes came in.
    for depth, emitter in zip(range(len(chain) - 1, -1, -1), chain):
        notify(emitter, depth)


class ReactiveNode:
    """A mapping proxy that detects writes and bubbles change notifications.

    Usage:
        state = wrap({"player": {"hp": 10}})
        state.changed.subscribe(lambda: print("state changed"))
        state.player.hp = 9        # fires player.changed, then state.changed
        state.player.hp = 9        # same value, nothing fires
        json.dumps(state.raw)      # '{"player": {"hp": 9}}'
    """

    __slots__ = ("_id", "__weakref__")

    def __init__(
        self,
        mapping: MutableMapping,
        *,
        _parent: int | None = None,
        _key: object = None,
    ) -> None:
        if isinstance(mapping, ReactiveNode) or not isinstance(mapping, MutableMapping):
            raise TypeError(
                f"ReactiveNode wraps a mutable mapping, not {type(mapping).__name__}"
            )
        if _parent is None:
            # Child nodes are built by _attach, after _write checked the subtree.
            _check_incoming(mapping, None)

        node_id = _anchor.new_id()
        object.__setattr__(self, "_id", node_id)
        _anchor.raws[node_id] = mapping
        _anchor.parents[node_id] = _parent
        _anchor.keys[node_id] = _key
        _anchor.children[node_id] = {}
        _anchor.emitters[node_id] = ChangeEmitter()
        _anchor.destroyed[node_id] = False
        weakref.finalize(self, _anchor.release, node_id)

        for key, value in list(mapping.items()):
            if _is_structural(value):
                self._attach(key, value)

    # --- Capabilities ---

    @property
    def changed(self) -> ChangeEmitter:
        """Subscribe surface: `node.changed.subscribe(callback) -> disposer`."""
        return _anchor.emitters[self._id]

    @property
    def raw(self) -> MutableMapping:
        """The live underlying mapping, unwrapped. Do not mutate it directly."""
        return _anchor.raws[self._id]

    @property
    def destroyed(self) -> bool:
        return _anchor.destroyed[self._id]

    # --- Read operations ---

    def __getitem__(self, key: Any) -> Any:
        child = _anchor.children[self._id].get(key)
        if child is not None:
            return child
        return _anchor.raws[self._id][key]

    def __getattr__(self, name: str) -> Any:
        # Only reached when normal lookup fails, i.e. for data keys.
        if name.startswith("__") or name == "_id":
            raise AttributeError(name)
        try:
            return self[name]
        except KeyError:
            raise AttributeError(
                f"{type(self).__name__} has no key {name!r}"
            ) from None

    def get(self, key: Any, default: Any = None) -> Any:
        try:
            return self[key]
        except KeyError:
            return default

    def __contains__(self, key: object) -> bool:
        return key in _anchor.raws[self._id]

    def __len__(self) -> int:
        return len(_anchor.raws[self._id])

    def __iter__(self) -> Iterator:
        return iter(_anchor.raws[self._id])

    def __bool__(self) -> bool:
        return bool(_anchor.raws[self._id])

    def keys(self):
        return _anchor.raws[self._id].keys()

    def values(self) -> list:
        return [self[key] for key in _anchor.raws[self._id]]

    def items(self) -> list:
        return [(key, self[key]) for key in _anchor.raws[self._id]]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ReactiveNode):
            return _anchor.raws[self._id] == _anchor.raws[other._id]
        if isinstance(other, Mapping):
            return _anchor.raws[self._id] == other
        return NotImplemented

    __hash__ = None  # mutable, like dict

    # --- Write operations (notify) ---

    def __setitem__(self, key: Any, value: Any) -> None:
        self._write(key, value)

    def __setattr__(self, name: str, value: Any) -> None:
        self._write(name, value)

    def __delitem__(self, key: Any) -> None:
        self._write(key, _MISSING)

    def __delattr__(self, name: str) -> None:
        try:
            self._write(name, _MISSING)
        except ReservedKeyError:
            raise
        except KeyError:
            raise AttributeError(
                f"{type(self).__name__} has no key {name!r}"
            ) from None

    def pop(self, key: Any, default: Any = _MISSING) -> Any:
        """Remove key and return its plain value (a child's raw mapping, not the handle)."""
        raw = _anchor.raws[self._id]
        if key not in raw:
            if default is _MISSING:
                raise KeyError(key)
            return default
        value = raw[key]
        self._write(key, _MISSING)
        return value

    def setdefault(self, key: Any, default: Any = None) -> Any:
        if key not in _anchor.raws[self._id]:
            self._write(key, default)
        return self[key]

    def update(self, other: Any = (), **kwargs: Any) -> None:
        """dict.update() semantics. Each affected node fires once per call."""
        if isinstance(other, ReactiveNode):
            # Plain values: the source keeps its own child nodes.
            other = _anchor.raws[other._id]
        if hasattr(other, "keys"):
            pairs = [(key, other[key]) for key in other.keys()]
        else:
            pairs = other
        with transaction():
            for key, value in pairs:
                self._write(key, value)
            for key, value in kwargs.items():
                self._write(key, value)

    def clear(self) -> None:
        with transaction():
            for key in list(_anchor.raws[self._id]):
                self._write(key, _MISSING)

    def _write(self, key: Any, value: Any) -> None:
        """The single write path. `_MISSING` as value means delete."""
        node_id = self._id
        if _anchor.destroyed[node_id]:
            raise StateError(f"cannot write {key!r}: node is destroyed")
        if key in RESERVED:
            raise ReservedKeyError(key)
        if value is not _MISSING:
            _check_incoming(value, node_id)

        raw = _anchor.raws[node_id]
        old = raw.get(key, _MISSING)
        if value is _MISSING and old is _MISSING:
            raise KeyError(key)
        if _same(old, value):
            return

        with write_scope():
            if isinstance(value, ReactiveNode):
                # Moving a node fires its old parent too; batch so that a
                # shared ancestor fires only once.
                with transaction():
                    self._attach(key, value)
                    _bubble(node_id)
                return
            if isinstance(value, MutableMapping):
                self._attach(key, value)
            else:
                self._drop_child(key)
                if value is _MISSING:
                    del raw[key]
                else:
                    raw[key] = value
            _bubble(node_id)

    def _attach(self, key: Any, value: Any) -> ReactiveNode:
        """Link a child under key, wrapping a mapping or adopting a handle."""
        node_id = self._id
        if isinstance(value, ReactiveNode):
            child = value
            if child._is_self_or_ancestor_of(node_id):
                raise ValueError("storing this node here would create a cycle")
            child._detach()
        else:
            child = ReactiveNode(value, _parent=node_id, _key=key)
        # The new child is valid before the old one goes away.
        self._drop_child(key)
        _anchor.parents[child._id] = node_id
        _anchor.keys[child._id] = key
        _anchor.children[node_id][key] = child
        _anchor.raws[node_id][key] = _anchor.raws[child._id]
        return child

    def _drop_child(self, key: Any) -> None:
        stale = _anchor.children[self._id].pop(key, None)
        if stale is not None:
            stale.destroy()

    def _detach(self) -> None:
        """Remove this node from its current parent, which records a change."""
        parent_id = _anchor.parents[self._id]
        if parent_id is None:
            return
        key = _anchor.keys[self._id]
        _anchor.parents[self._id] = None
        _anchor.keys[self._id] = None
        siblings = _anchor.children.get(parent_id)
        if siblings is None or siblings.get(key) is not self:
            return
        del siblings[key]
        _anchor.raws[parent_id].pop(key, None)
        _bubble(parent_id)

    def _is_self_or_ancestor_of(self, node_id: int) -> bool:
        current: int | None = node_id
        while current is not None:
            if current == self._id:
                return True
            current = _anchor.parents.get(current)
        return False

    # --- Lifecycle ---

    def destroy(self) -> None:
        """Destroy children depth-first, then this node's emitter. Idempotent.

        Reads keep working afterwards, and nested keys still return the
        (now dead) child handles. Writes and new subscriptions raise
        StateError.
        """
        node_id = self._id
        if _anchor.destroyed[node_id]:
            return
        for child in list(_anchor.children[node_id].values()):
            child.destroy()
        _anchor.emitters[node_id].destroy()
        _anchor.destroyed[node_id] = True
        logger.debug("Destroyed node %d", node_id)

    def __repr__(self) -> str:
        raw = _anchor.raws[self._id]
        if _anchor.destroyed[self._id]:
            return f"ReactiveNode({raw!r}, destroyed)"
        return f"ReactiveNode({raw!r})"


def wrap(mapping: MutableMapping) -> ReactiveNode:
    """Wrap a mapping (and every nested mapping in it) for change tracking.

    Passing an existing ReactiveNode returns it unchanged.
    """
    if isinstance(mapping, ReactiveNode):
        return mapping
    return ReactiveNode(mapping)


def destroy(node: ReactiveNode) -> None:
    """Tear down a tree: node.destroy(), as a function."""
    node.destroy()
