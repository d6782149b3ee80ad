"""Exceptions raised by reactree."""


class ReactreeError(Exception):
    """Base class for every error raised by this package."""


class StateError(ReactreeError, RuntimeError):
    """Operation attempted on a destroyed node or emitter."""


class ReentrancyError(StateError):
    """A subscriber kept writing from inside fire() past the configured limit."""


class ReservedKeyError(ReactreeError, KeyError):
    """A reserved capability name (``changed``, ``raw``) was used as a data key."""

    def __init__(self, key: object) -> None:
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"{self.key!r} is reserved and cannot be used as a data key"
