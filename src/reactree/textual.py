"""Textual integration for reactree. Opt-in — requires textual.

Subscriptions made here are skipped while the app is not running or is
inside pause(app), and NoMatches from widget queries is swallowed, so a
tree change during screen replacement never breaks the bubble chain.
"""

from contextlib import contextmanager

from textual.css.query import NoMatches

# Pause state lives here, keyed by id(app), never on the app itself.
_paused_apps: set[int] = set()


@contextmanager
def pause(app):
    """Suspend guarded subscriptions during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def subscribe(app, node, fn):
    """node.changed.subscribe(fn), guarded for Textual widgets.

    Returns the disposer.
    """

    def _guarded():
        if not is_safe(app):
            return
        try:
            fn()
        except NoMatches:
            pass

    return node.changed.subscribe(_guarded)
