"""Tests for reactree.textual — Textual integration layer."""

import pytest
from textual.css.query import NoMatches

from reactree import wrap
from reactree import textual as rtx


class _MockApp:
    """Minimal mock matching the Textual App interface rtx needs."""

    def __init__(self, *, is_running=True):
        self.is_running = is_running


class TestSubscribe:
    def test_skips_when_not_running(self):
        app = _MockApp(is_running=False)
        t = wrap({"x": 1})
        effects = []
        rtx.subscribe(app, t, lambda: effects.append(t.x))
        t.x = 2
        assert effects == []

    def test_skips_during_pause(self):
        app = _MockApp()
        t = wrap({"x": 1})
        effects = []
        rtx.subscribe(app, t, lambda: effects.append(t.x))
        with rtx.pause(app):
            t.x = 2
        assert effects == []

    def test_fires_when_safe(self):
        app = _MockApp()
        t = wrap({"panel": {"title": "a"}})
        effects = []
        rtx.subscribe(app, t, lambda: effects.append(t.panel.title))
        t.panel.title = "b"
        assert effects == ["b"]

    def test_catches_nomatch(self):
        """NoMatches from widget queries are swallowed without logging."""
        app = _MockApp()
        t = wrap({"x": 1})
        later = []

        def _raise_nomatch():
            raise NoMatches("StatusFooter")

        rtx.subscribe(app, t, _raise_nomatch)
        t.changed.subscribe(lambda: later.append(1))
        t.x = 2
        assert later == [1]

    def test_dispose_stops_subscription(self):
        app = _MockApp()
        t = wrap({"x": 1})
        effects = []
        dispose = rtx.subscribe(app, t, lambda: effects.append(t.x))
        t.x = 2
        dispose()
        t.x = 3
        assert effects == [2]


class TestPause:
    def test_pause_restores_on_exception(self):
        app = _MockApp()
        assert rtx.is_safe(app)

        with pytest.raises(RuntimeError):
            with rtx.pause(app):
                assert not rtx.is_safe(app)
                raise RuntimeError("oops")

        # Restored despite exception
        assert rtx.is_safe(app)

    def test_pause_does_not_mutate_app(self):
        app = _MockApp()
        attrs_before = set(vars(app))
        with rtx.pause(app):
            attrs_during = set(vars(app))
        assert attrs_before == attrs_during

    def test_multiple_apps_independent(self):
        """Pausing one app does not affect another."""
        app_a = _MockApp()
        app_b = _MockApp()
        with rtx.pause(app_a):
            assert not rtx.is_safe(app_a)
            assert rtx.is_safe(app_b)
