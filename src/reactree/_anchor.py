"""Data anchor — plain Python structures that hold all node state.

ReactiveNode instances are thin handles holding an _id. Everything they
know lives here, keyed by that id. Parent links are stored as ids, so a
child never keeps its parent alive.
"""

import itertools

# Node state
raws: dict[int, object] = {}  # node_id -> live underlying mapping
parents: dict[int, int | None] = {}  # node_id -> parent node_id
keys: dict[int, object] = {}  # node_id -> key under which it sits in its parent
children: dict[int, dict] = {}  # node_id -> {key: child ReactiveNode}
emitters: dict[int, object] = {}  # node_id -> ChangeEmitter
destroyed: dict[int, bool] = {}

# Ids are never reused within a process
_id_counter = itertools.count(1)


def new_id() -> int:
    return next(_id_counter)


def release(node_id: int) -> None:
    """Forget everything about a node. Runs when its handle is collected."""
    for table in (raws, parents, keys, children, emitters, destroyed):
        table.pop(node_id, None)
