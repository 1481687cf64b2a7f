"""Shared-memory relaxation solver (thread pool with barriers)."""

import logging

from .relaxation import RelaxationSolver
from ..buffers import GenerationArena
from ..reduction import AtomicFlag
from ..threads import WorkerPool

log = logging.getLogger(__name__)


class RelaxationThreadedSolver(RelaxationSolver):
    """Parallel relaxation with a fixed pool of worker threads.

    Extends RelaxationSolver with a static partition over ``n_workers``
    threads. Use ``use_numba=True`` for real parallel speed-up; the Numba
    kernel releases the GIL.

    Parameters
    ----------
    N : int
        Grid dimension.
    n_workers : int
        Number of worker threads (1 <= n_workers <= N*N).
    """

    def __init__(self, N: int, n_workers: int = 1, **kwargs):
        self.n_workers = n_workers
        super().__init__(N, **kwargs)

    def solve(self):
        """Run generations on the pool until the shared flag stays False."""
        self._reset()

        arena = GenerationArena(self._initial_grid())
        changed_flag = AtomicFlag()
        log.info(f"Threads: N={self.N}, workers={self.n_workers}, kernel={self.kernel.name}")

        self._notify(0, arena.current)

        t_start = self._get_time()
        iterations = 0

        with WorkerPool(arena, self.assignments, self.kernel, changed_flag) as pool:
            while True:
                changed_flag.reset()

                t0 = self._get_time()
                pool.run_generation()
                self.timeseries.compute_times.append(self._get_time() - t0)

                # Workers are parked at the barrier
                arena.swap()
                iterations += 1
                changed = changed_flag.value
                self.timeseries.changed_history.append(changed)
                self._notify(iterations, arena.current)

                if self._should_stop(changed, iterations):
                    break

        wall_time = self._get_time() - t_start
        self.u = arena.snapshot()
        self._finalize(wall_time, iterations)

        return self.metrics
