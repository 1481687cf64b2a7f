"""Convergence reduction for the shared-memory solver.

The MPI all-reduce lives in :mod:`Relaxation.mpi.grid`.
"""

import threading


class AtomicFlag:
    """Boolean with OR-accumulate semantics, safe for concurrent writers.

    Workers only ever move the value from False to True during a generation;
    the coordinator resets it between barriers.
    """

    def __init__(self, value: bool = False):
        self._value = bool(value)
        self._lock = threading.Lock()

    @property
    def value(self) -> bool:
        with self._lock:
            return self._value

    def set(self):
        with self._lock:
            self._value = True

    def accumulate(self, changed: bool) -> bool:
        """OR ``changed`` into the flag. Returns the combined value."""
        if not changed:
            return self.value
        with self._lock:
            self._value = True
            return True

    def reset(self):
        with self._lock:
            self._value = False

    def __bool__(self) -> bool:
        return self.value
