"""Stencil kernels for the relaxation update.

A kernel updates a contiguous range of flat indices. ``current`` may be the
whole grid or only a halo region; ``offset`` is the global index of
``current[0]``. Boundary cells are copied, interior cells become the average
of their four neighbours.
"""

import numpy as np
from numba import njit

from .datastructures import COMPARISONS


@njit(nogil=True)
def relax_cell(i, N, current, offset, precision, inclusive):
    """Update a single cell. Returns ``(new_value, changed)``."""
    row = i // N
    col = i % N
    local = i - offset
    old = current[local]

    if row == 0 or row == N - 1 or col == 0 or col == N - 1:
        return old, False

    new = (
        current[local - N]
        + current[local + N]
        + current[local - 1]
        + current[local + 1]
    ) / 4.0

    delta = abs(new - old)
    if inclusive:
        return new, delta >= precision
    return new, delta > precision


@njit(nogil=True)
def _relax_range_numba(current, out, start, count, N, offset, precision, inclusive):
    """Numba JIT loop over an index range. Releases the GIL."""
    changed = False
    for k in range(count):
        value, cell_changed = relax_cell(
            start + k, N, current, offset, precision, inclusive
        )
        out[k] = value
        if cell_changed:
            changed = True
    return changed


class _BaseKernel:
    """Shared configuration for relaxation kernels."""

    def __init__(self, precision: float, comparison: str = "strict"):
        if comparison not in COMPARISONS:
            raise ValueError(
                f"Unknown comparison: {comparison}. Use 'strict' or 'inclusive'."
            )
        self.precision = precision
        self.comparison = comparison
        self.inclusive = comparison == "inclusive"


class NumPyKernel(_BaseKernel):
    """Vectorised NumPy kernel."""

    name = "NumPy"

    def step(
        self,
        current: np.ndarray,
        out: np.ndarray,
        start: int,
        count: int,
        N: int,
        offset: int = 0,
    ) -> bool:
        """Write cells ``start..start+count`` into ``out``. Returns changed."""
        idx = np.arange(start, start + count)
        row, col = np.divmod(idx, N)
        local = idx - offset

        out[:] = current[local]

        interior = (row > 0) & (row < N - 1) & (col > 0) & (col < N - 1)
        if not interior.any():
            return False

        li = local[interior]
        new = (current[li - N] + current[li + N] + current[li - 1] + current[li + 1]) / 4.0
        out[interior] = new

        delta = np.abs(new - current[li])
        if self.inclusive:
            return bool(np.any(delta >= self.precision))
        return bool(np.any(delta > self.precision))

    def warmup(self, warmup_size: int = 4):
        """No-op for NumPy kernel."""
        pass


class NumbaKernel(_BaseKernel):
    """Numba JIT-compiled kernel (``nogil``, so worker threads overlap)."""

    name = "Numba"

    def step(
        self,
        current: np.ndarray,
        out: np.ndarray,
        start: int,
        count: int,
        N: int,
        offset: int = 0,
    ) -> bool:
        """Write cells ``start..start+count`` into ``out``. Returns changed."""
        return bool(
            _relax_range_numba(
                current, out, start, count, N, offset, self.precision, self.inclusive
            )
        )

    def warmup(self, warmup_size: int = 4):
        """Trigger JIT compilation with a small problem."""
        u = np.ones(warmup_size * warmup_size, dtype=np.float64)
        out = np.empty_like(u)
        _relax_range_numba(u, out, 0, u.size, warmup_size, 0, self.precision, self.inclusive)
        # Workers receive read-only views of the current generation
        u.flags.writeable = False
        _relax_range_numba(u, out, 0, u.size, warmup_size, 0, self.precision, self.inclusive)


def create_kernel(precision: float, comparison: str = "strict", use_numba: bool = False):
    """Factory: Numba kernel if ``use_numba`` else NumPy kernel."""
    if use_numba:
        return NumbaKernel(precision, comparison)
    return NumPyKernel(precision, comparison)
