"""reactree: reactive nested mappings with bubbling change notification."""

from importlib.metadata import version as _version

__version__ = _version("reactree")

from reactree._tracking import get_pending_count, get_reentrancy_limit, set_reentrancy_limit
from reactree.errors import ReactreeError, StateError, ReentrancyError, ReservedKeyError
from reactree.emitter import ChangeEmitter
from reactree.node import RESERVED, ReactiveNode, wrap, destroy
from reactree.action import action, transaction
from reactree.store import Store
# textual is not auto-imported; it is opt-in

__all__ = [
    "ReactiveNode",
    "wrap",
    "destroy",
    "RESERVED",
    "ChangeEmitter",
    "action",
    "transaction",
    "Store",
    "get_pending_count",
    "get_reentrancy_limit",
    "set_reentrancy_limit",
    "ReactreeError",
    "StateError",
    "ReentrancyError",
    "ReservedKeyError",
]
