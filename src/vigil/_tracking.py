"""Execution context — the stack of computations that are currently running.

Uses contextvars so each thread and each asyncio task sees its own stack.
The stack is an immutable tuple: pushing sets a new tuple, popping resets the
variable with the token from the push, so the previous top is restored even
when the body raises.

One context variable is shared by every Runtime; each ExecutionContext only
sees the computations that belong to its own runtime.
"""

from __future__ import annotations

import contextvars
from contextlib import contextmanager
from typing import TYPE_CHECKING, Iterator

if TYPE_CHECKING:
    from vigil.effect import Effect
    from vigil.runtime import Runtime

_stack: contextvars.ContextVar[tuple[Effect | None, ...]] = contextvars.ContextVar(
    "vigil_stack", default=()
)

# Marker pushed by untracked(); hides everything below it.
_BARRIER = None


class ExecutionContext:
    """Per-runtime view of the running-computation stack."""

    __slots__ = ("_runtime",)

    def __init__(self, runtime: Runtime) -> None:
        self._runtime = runtime

    @property
    def current(self) -> Effect | None:
        """Top-of-stack computation of this runtime, or None (reads are inert)."""
        for computation in reversed(_stack.get()):
            if computation is _BARRIER:
                return None
            if computation.runtime is self._runtime:
                return computation
        return None

    @property
    def depth(self) -> int:
        return sum(
            1 for c in _stack.get() if c is not _BARRIER and c.runtime is self._runtime
        )

    @contextmanager
    def enter(self, computation: Effect) -> Iterator[Effect]:
        """Push computation for the duration of the block."""
        token = _stack.set(_stack.get() + (computation,))
        try:
            yield computation
        finally:
            _stack.reset(token)


@contextmanager
def untracked() -> Iterator[None]:
    """Run the block as if no computation were running."""
    token = _stack.set(_stack.get() + (_BARRIER,))
    try:
        yield
    finally:
        _stack.reset(token)
