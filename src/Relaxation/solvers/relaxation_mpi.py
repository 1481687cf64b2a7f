"""MPI-parallel relaxation solver (extends RelaxationSolver)."""

import logging

from .mpi_mixin import MPISolverMixin
from .relaxation import RelaxationSolver
from ..buffers import GenerationArena
from ..mpi.grid import DistributedGrid

log = logging.getLogger(__name__)


class RelaxationMPISolver(MPISolverMixin, RelaxationSolver):
    """Parallel relaxation with one MPI process per worker.

    Rank 0 is the coordinator and owns the authoritative grid. Each
    generation it scatters halo rows, every rank relaxes its own cells,
    the results are gathered back to rank 0 and the changed flags are
    OR-reduced onto every rank.

    Parameters
    ----------
    N : int
        Grid dimension.
    comm : MPI.Comm, optional
        Communicator (default: COMM_WORLD). Its size is the worker count.
    communicator : str
        'numpy' or 'custom' halo scatter.
    """

    def __init__(self, N: int, comm=None, communicator: str = "numpy", **kwargs):
        # MPI setup before parent init
        self._init_mpi(comm)
        self.communicator = communicator
        self.n_workers = self.size

        # Create distributed grid
        self.grid = DistributedGrid(N, self.comm, communicator=communicator)

        # Store config info
        self.rank_info = self.grid.get_rank_info()
        self.halo_size_kb = self.grid.get_halo_size_bytes() / 1024

        # Parent init (computes the same partition as the grid)
        super().__init__(N, **kwargs)

    def solve(self):
        """Iterate until the all-reduced changed flag is False on every rank."""
        self._reset()

        grid = self.grid
        a = grid.assignment
        N = self.N
        info = self.rank_info
        log.info(f"Worker {info.worker}: {info.start}-{info.end}")
        log.debug(
            f"Worker {info.worker}: halo rows {info.halo_first_row}-{info.halo_last_row}, "
            f"{self.halo_size_kb:.1f} KiB per generation"
        )

        # Only the coordinator builds and owns the full grid
        arena = GenerationArena(self._initial_grid()) if self._is_root() else None
        local = grid.allocate_local()
        sub = grid.allocate_subresult()

        # No rank computes before every rank has its assignment
        self._barrier()

        if arena is not None:
            self._notify(0, arena.current)

        t_start = self._get_time()
        iterations = 0

        while True:
            current = arena.current if arena is not None else None

            t0 = self._get_time()
            grid.scatter_halos(current, local)
            t1 = self._get_time()

            source, offset = grid.local_view(current, local)
            changed = self.kernel.step(source, sub, a.start, a.count, N, offset)
            t2 = self._get_time()

            grid.gather(sub, arena.next if arena is not None else None)
            changed = grid.allreduce_changed(changed)
            t3 = self._get_time()

            self.timeseries.exchange_times.append((t1 - t0) + (t3 - t2))
            self.timeseries.compute_times.append(t2 - t1)

            if arena is not None:
                arena.swap()
            iterations += 1
            self.timeseries.changed_history.append(changed)
            if arena is not None:
                self._notify(iterations, arena.current)

            if self._should_stop(changed, iterations):
                break

        wall_time = self._get_time() - t_start
        self.u = arena.snapshot() if arena is not None else None
        self._finalize(wall_time, iterations)

        return self.metrics
