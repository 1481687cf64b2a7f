"""Relaxation Solvers.

Consistent naming: Relaxation{Realization}Solver.

Single process:
- RelaxationSolver: One worker, reference result
- RelaxationThreadedSolver: Shared-memory thread pool with barriers

Parallel (MPI):
- RelaxationMPISolver: Coordinator/worker message passing. Import it from
  ``Relaxation.solvers.relaxation_mpi``; it needs an MPI runtime.
"""

from .relaxation import RelaxationSolver
from .relaxation_threaded import RelaxationThreadedSolver

__all__ = [
    "RelaxationSolver",
    "RelaxationThreadedSolver",
]
