"""MPI mixin providing common parallel solver functionality."""

from mpi4py import MPI


class MPISolverMixin:
    """Mixin providing common MPI functionality for parallel solvers.

    Provides shared implementations for:
    - MPI initialization (comm, rank, size)
    - Timing via MPI.Wtime()
    - Coordinator rank checking
    - Start-up barrier

    Usage:
        class MyMPISolver(MPISolverMixin, MySolver):
            def __init__(self, ...):
                self._init_mpi(comm)
                ...
    """

    def _init_mpi(self, comm=None):
        """Initialize MPI attributes. Call early in subclass __init__."""
        self.comm = comm if comm is not None else MPI.COMM_WORLD
        self.rank = self.comm.Get_rank()
        self.size = self.comm.Get_size()

    def _get_time(self) -> float:
        """Get current time using MPI.Wtime()."""
        return MPI.Wtime()

    def _is_root(self) -> bool:
        """Only the coordinator holds the full grid."""
        return self.rank == 0

    def _barrier(self):
        """Synchronize all ranks before the first generation."""
        self.comm.Barrier()
