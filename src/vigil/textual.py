"""Textual integration for vigil. Opt-in — requires textual.

Provides an executor that defers flush="post" watcher jobs onto the app's
message loop, plus effect()/watch() wrappers that stay quiet while the widget
tree is being replaced (pause) or the app isn't running, swallow NoMatches
from widget queries, and marshal calls from other threads through
call_from_thread.
"""

import logging
import threading
from contextlib import contextmanager

from textual.css.query import NoMatches

from vigil.effect import effect as _effect
from vigil.watch import watch as _watch

logger = logging.getLogger("vigil.textual")

# Module-owned pause state, keyed by id(app).
_paused_apps: set[int] = set()


class TextualExecutor:
    """Deferred executor that runs jobs after the app's pending messages."""

    def __init__(self, app):
        self.app = app

    def schedule(self, job):
        self.app.call_later(job)


@contextmanager
def pause(app):
    """Suspend guarded effects and watchers during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def _guard(app, fn):
    main = threading.get_ident()

    def _safe(*args):
        try:
            fn(*args)
        except NoMatches as exc:
            logger.debug("ignored %s", exc)

    def _guarded(*args):
        if not is_safe(app):
            return
        if threading.get_ident() != main:
            app.call_from_thread(_safe, *args)
        else:
            _safe(*args)

    return _guarded


def effect(app, fn):
    """effect() that safely bridges to Textual widgets.

    Re-runs are skipped while the app is paused or not running (the effect
    keeps its previous dependencies) and marshaled onto the app thread when
    triggered from another thread.
    """
    main = threading.get_ident()

    def _body():
        try:
            fn()
        except NoMatches as exc:
            logger.debug("ignored %s", exc)

    def _scheduler(e):
        if not is_safe(app):
            return
        if threading.get_ident() != main:
            app.call_from_thread(e.run)
        else:
            e.run()

    return _effect(_body, scheduler=_scheduler)


def watch(app, source, callback, **options):
    """watch() whose callback safely bridges to Textual widgets."""
    return _watch(source, _guard(app, callback), **options)
