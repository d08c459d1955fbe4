"""vigil: dependency-tracking reactive runtime for Python."""

from importlib.metadata import version as _version

__version__ = _version("vigil")

from vigil.errors import (
    AsyncCallbackError,
    InvalidOptionError,
    ReactivityError,
    UntrackableError,
)
from vigil._tracking import untracked
from vigil.effect import Effect, EffectOptions, effect
from vigil.computed import Computed, computed
from vigil.watch import Flush, WatchOptions, Watcher, traverse, watch
from vigil.observable import Observable, Reactive
from vigil.scheduler import AsyncioExecutor, DefaultExecutor, JobQueue, ManualExecutor
from vigil.runtime import (
    Runtime,
    flush,
    get_runtime,
    set_executor,
    set_runtime,
    track,
    trigger,
    use_runtime,
)
# textual NOT auto-imported: opt-in only

__all__ = [
    "Effect",
    "EffectOptions",
    "effect",
    "Computed",
    "computed",
    "Watcher",
    "WatchOptions",
    "Flush",
    "watch",
    "traverse",
    "Reactive",
    "Observable",
    "Runtime",
    "get_runtime",
    "set_runtime",
    "use_runtime",
    "track",
    "trigger",
    "flush",
    "set_executor",
    "untracked",
    "ManualExecutor",
    "AsyncioExecutor",
    "DefaultExecutor",
    "JobQueue",
    "ReactivityError",
    "UntrackableError",
    "InvalidOptionError",
    "AsyncCallbackError",
]
