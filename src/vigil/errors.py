"""Exceptions raised by the runtime itself.

Exceptions raised inside effect bodies, computed getters and watcher
callbacks are never wrapped: they reach the caller of run()/trigger() as-is.
"""


class ReactivityError(Exception):
    """Base class for errors raised by vigil."""


class UntrackableError(ReactivityError, TypeError):
    """The object cannot be weakly referenced, so it cannot be tracked."""


class InvalidOptionError(ReactivityError, ValueError):
    """An effect or watcher option has an unsupported value."""


class AsyncCallbackError(ReactivityError, RuntimeError):
    """A watcher callback returned an awaitable outside a running event loop."""
