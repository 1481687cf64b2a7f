"""Two-slot generation buffers.

The coordinator owns the arena and is the only one that calls ``swap``. Workers
get a read-only view of the current generation and a writable view of the next
one, valid for a single generation.
"""

from __future__ import annotations

import numpy as np


class GenerationArena:
    """CURRENT/NEXT grid buffers with an index toggled after each generation.

    Parameters
    ----------
    initial : np.ndarray
        Flat starting grid. Copied into the first slot.
    """

    def __init__(self, initial: np.ndarray):
        initial = np.asarray(initial, dtype=np.float64).ravel()
        self._slots = (initial.copy(), np.empty_like(initial))
        self._current = 0
        self.generation = 0

    @property
    def size(self) -> int:
        return self._slots[0].size

    @property
    def current(self) -> np.ndarray:
        """Read-only view of the current generation."""
        view = self._slots[self._current].view()
        view.flags.writeable = False
        return view

    @property
    def next(self) -> np.ndarray:
        """Writable view of the next generation."""
        return self._slots[1 - self._current].view()

    def swap(self):
        """Promote NEXT to CURRENT. The old CURRENT becomes the next scratch."""
        self._current = 1 - self._current
        self.generation += 1

    def snapshot(self) -> np.ndarray:
        """Independent copy of the current generation."""
        return self._slots[self._current].copy()
