"""Sequential relaxation solver."""

from .base import BaseSolver
from ..buffers import GenerationArena
from ..decomposition import distribute_work


class RelaxationSolver(BaseSolver):
    """Single-worker solver. Reference result for the parallel solvers.

    Runs the same partition (one chunk covering the grid) and kernel as the
    parallel realizations, so results are bit-for-bit comparable.
    """

    n_workers = 1

    def __init__(self, N: int, **kwargs):
        super().__init__(N, **kwargs)
        self.assignments = distribute_work(N, self.n_workers)

    def solve(self):
        """Iterate until no interior cell changes by more than precision."""
        self._reset()

        (assignment,) = self.assignments
        arena = GenerationArena(self._initial_grid())
        N = self.N

        self._notify(0, arena.current)

        t_start = self._get_time()
        iterations = 0

        while True:
            t0 = self._get_time()
            changed = self.kernel.step(
                arena.current, arena.next, assignment.start, assignment.count, N
            )
            self.timeseries.compute_times.append(self._get_time() - t0)

            arena.swap()
            iterations += 1
            self.timeseries.changed_history.append(changed)
            self._notify(iterations, arena.current)

            if self._should_stop(changed, iterations):
                break

        wall_time = self._get_time() - t_start
        self.u = arena.snapshot()
        self._finalize(wall_time, iterations)

        return self.metrics
