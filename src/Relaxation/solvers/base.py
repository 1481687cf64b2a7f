"""Base class for solvers."""

import logging
import time
from abc import ABC, abstractmethod
from typing import Callable, Optional

import numpy as np

from ..datastructures import GlobalMetrics, LocalMetrics
from ..kernels import create_kernel
from ..problems import ValueFunction, corner_ones, create_grid

log = logging.getLogger(__name__)

GenerationCallback = Callable[[int, np.ndarray], None]


class BaseSolver(ABC):
    """Abstract base for all relaxation solvers.

    Parameters
    ----------
    N : int
        Grid dimension (N x N).
    precision : float
        A generation counts as changed if any interior cell moved by more
        than this.
    comparison : str
        'strict' compares with ``>``, 'inclusive' with ``>=``.
    use_numba : bool
        Use the Numba kernel instead of the NumPy one.
    max_iter : int, optional
        Stop after this many generations even if not converged.
        None (default) iterates until converged.
    value : callable
        ``value(row, col)`` used to build the starting grid.
    initial : array, optional
        Starting grid (N x N or flat). Overrides ``value``.
    on_generation : callable, optional
        ``on_generation(generation, grid)`` called on the coordinator after
        every generation with a read-only flat view of the new grid.
    """

    def __init__(
        self,
        N: int,
        precision: float = 1e-4,
        comparison: str = "strict",
        use_numba: bool = False,
        max_iter: Optional[int] = None,
        value: ValueFunction = corner_ones,
        initial: Optional[np.ndarray] = None,
        on_generation: Optional[GenerationCallback] = None,
    ):
        if N <= 0:
            raise ValueError(f"Grid dimension must be positive, got N={N}")
        if precision <= 0:
            raise ValueError(f"Precision must be positive, got {precision}")

        self.N = N
        self.precision = precision
        self.comparison = comparison
        self.use_numba = use_numba
        self.max_iter = max_iter
        self.value = value
        self.initial = initial
        self.on_generation = on_generation

        self.kernel = create_kernel(precision, comparison, use_numba)

        # Metrics containers (match datastructures.py naming)
        self.metrics = GlobalMetrics()
        self.timeseries = LocalMetrics()

        # Final grid, set on the coordinator by solve()
        self.u: Optional[np.ndarray] = None

    @abstractmethod
    def solve(self) -> GlobalMetrics:
        """Execute the solver. Returns metrics."""
        pass

    def warmup(self, warmup_size: int = 4):
        """Warmup kernel (trigger Numba JIT if used)."""
        self.kernel.warmup(warmup_size=warmup_size)

    @property
    def grid_values(self) -> Optional[np.ndarray]:
        """Final grid as an N x N array, or None where not authoritative."""
        if self.u is None:
            return None
        return self.u.reshape(self.N, self.N)

    def _initial_grid(self) -> np.ndarray:
        """Flat starting grid from ``initial`` or the value function."""
        if self.initial is not None:
            grid = np.asarray(self.initial, dtype=np.float64).ravel()
            if grid.size != self.N * self.N:
                raise ValueError(
                    f"Initial grid has {grid.size} cells, expected {self.N * self.N}"
                )
            return grid.copy()
        return create_grid(self.N, self.value)

    def _get_time(self) -> float:
        """Get current time. Override for MPI timing."""
        return time.perf_counter()

    def _is_root(self) -> bool:
        """True if this worker holds the authoritative grid. Override for MPI."""
        return True

    def _barrier(self):
        """Synchronize all workers before the first generation. No-op for sequential."""
        pass

    def _reset(self):
        """Reset metrics and timeseries."""
        self.metrics = GlobalMetrics()
        self.timeseries.clear()

    def _should_stop(self, changed: bool, iterations: int) -> bool:
        """Stop when a generation left every cell within precision."""
        if not changed:
            self.metrics.converged = True
            return True
        if self.max_iter is not None and iterations >= self.max_iter:
            log.warning(
                f"Stopped after max_iter={self.max_iter} generations without converging"
            )
            return True
        return False

    def _notify(self, generation: int, grid: np.ndarray):
        """Forward a finished generation to the callback (coordinator only)."""
        if self.on_generation is not None and self._is_root():
            self.on_generation(generation, grid)

    def _finalize(self, wall_time: float, iterations: int):
        """Finalize metrics after solve."""
        self.metrics.iterations = iterations
        self.metrics.wall_time = wall_time
        self.metrics.total_compute_time = sum(self.timeseries.compute_times)
        if self.timeseries.exchange_times:
            self.metrics.total_exchange_time = sum(self.timeseries.exchange_times)

        if iterations > 0 and wall_time > 0:
            self.metrics.mlups = self.N * self.N * iterations / (wall_time * 1e6)
