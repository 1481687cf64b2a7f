"""Parallel 2D relaxation solver package.

Computes the fixed point of Jacobi-style averaging over an N x N grid:
interior cells become the mean of their four neighbours, boundary cells stay
fixed, and iteration stops once no interior cell moves by more than the
configured precision. The same static partition drives a shared-memory
realization (thread pool + barriers) and a message-passing one (MPI
coordinator/worker exchange).

Solvers
-------
Single process:
- RelaxationSolver: Sequential reference
- RelaxationThreadedSolver: Worker threads with a two-phase barrier

Parallel (MPI, imported on demand):
- Relaxation.solvers.relaxation_mpi.RelaxationMPISolver
- Relaxation.mpi.DistributedGrid
"""

from .datastructures import (
    GlobalParams,
    GlobalMetrics,
    LocalParams,
    LocalMetrics,
)
from .decomposition import (
    WorkAssignment,
    HaloRegion,
    distribute_work,
    halo_region,
)
from .kernels import NumPyKernel, NumbaKernel, create_kernel, relax_cell
from .buffers import GenerationArena
from .reduction import AtomicFlag
from .solvers import RelaxationSolver, RelaxationThreadedSolver
from .problems import (
    corner_ones,
    uniform_boundary,
    random_integers,
    create_grid,
    get_problem,
)
from .postprocessing import format_grid, print_grid
from .runner import create_solver, run_solver

__all__ = [
    # Data structures
    "GlobalParams",
    "GlobalMetrics",
    "LocalParams",
    "LocalMetrics",
    # Partition
    "WorkAssignment",
    "HaloRegion",
    "distribute_work",
    "halo_region",
    # Kernels
    "NumPyKernel",
    "NumbaKernel",
    "create_kernel",
    "relax_cell",
    # Buffers and reduction
    "GenerationArena",
    "AtomicFlag",
    # Solvers
    "RelaxationSolver",
    "RelaxationThreadedSolver",
    # Problem setup
    "corner_ones",
    "uniform_boundary",
    "random_integers",
    "create_grid",
    "get_problem",
    # Output
    "format_grid",
    "print_grid",
    # Utilities
    "run_solver",
    "create_solver",
]
