"""
ContextPool - free list of reusable request Contexts.

Each Mig instance owns one pool. Contexts are taken at the start of a request
and returned when it ends, on every exit path.
"""

import threading
from collections import deque
from contextlib import contextmanager
from typing import TYPE_CHECKING, Callable, Deque, Iterator

if TYPE_CHECKING:
    from .context import Context


class ContextPool:
    """
    Thread-safe pool of Context objects.

    max_idle bounds how many idle contexts are kept; 0 keeps all of them.
    """

    def __init__(self, factory: Callable[[], "Context"], max_idle: int = 0):
        self._factory = factory
        self.max_idle = max_idle
        self._lock = threading.Lock()
        # Idle contexts, most recently released last.
        self._idle: Deque["Context"] = deque()

    def __len__(self) -> int:
        return len(self._idle)

    def get(self) -> "Context":
        """Take an idle context, or build a new one if none is idle."""
        with self._lock:
            if self._idle:
                return self._idle.pop()
        return self._factory()

    def put(self, ctx: "Context") -> None:
        """Return a context to the pool, dropping its request references."""
        ctx.clear()
        with self._lock:
            if self.max_idle and len(self._idle) >= self.max_idle:
                return
            self._idle.append(ctx)

    @contextmanager
    def acquire(self) -> Iterator["Context"]:
        ctx = self.get()
        try:
            yield ctx
        finally:
            self.put(ctx)
