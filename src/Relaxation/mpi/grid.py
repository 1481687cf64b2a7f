"""Distributed grid abstraction for the message-passing realization.

This module provides a DistributedGrid class that encapsulates:
- The work partition and this rank's halo region
- Halo scatter from the coordinator (numpy buffers or MPI datatypes)
- Variable-size gather of computed cells back to the coordinator
- The logical-OR all-reduce of the changed flag

Solvers interact with this single interface rather than managing
MPI details directly.
"""

from __future__ import annotations

import numpy as np
from mpi4py import MPI

from ..datastructures import LocalParams
from ..decomposition import counts_and_displacements, distribute_work, halo_region
from .halo import COORDINATOR, create_halo_scatter


class DistributedGrid:
    """Flat N x N grid split across the ranks of a communicator.

    Only the coordinator (rank 0) stores the whole grid. Every other rank
    stores its halo region: its own rows plus one row above and below.

    Parameters
    ----------
    N : int
        Grid dimension.
    comm : MPI.Comm
        MPI communicator. Its size is the worker count.
    communicator : str
        'numpy' for buffer-based halo sends (default),
        'custom' for an MPI row datatype.

    Example
    -------
    >>> grid = DistributedGrid(N=64, comm=MPI.COMM_WORLD)
    >>> local = grid.allocate_local()        # None on the coordinator
    >>> grid.scatter_halos(current, local)   # rank 0 sends, others receive
    >>> grid.gather(sub_results, next_grid)  # rank 0 assembles
    >>> changed = grid.allreduce_changed(changed)
    """

    def __init__(
        self,
        N: int,
        comm: MPI.Comm = MPI.COMM_WORLD,
        communicator: str = "numpy",
    ):
        self.N = N
        self.comm = comm
        self.rank = self.comm.Get_rank()
        self.size = self.comm.Get_size()
        self.communicator_type = communicator

        # Same partition on every rank
        self.assignments = distribute_work(N, self.size)
        self.halos = [halo_region(a, N) for a in self.assignments]
        self.assignment = self.assignments[self.rank]
        self.halo = self.halos[self.rank]
        self._counts, self._displs = counts_and_displacements(self.assignments)

        self._scatter = create_halo_scatter(communicator)
        self._scatter.setup(N, self.halos)

    @property
    def is_coordinator(self) -> bool:
        return self.rank == COORDINATOR

    def allocate_local(self, dtype=np.float64) -> np.ndarray | None:
        """Halo-sized receive buffer. The coordinator reads the full grid instead."""
        if self.is_coordinator:
            return None
        return np.empty(self.halo.size, dtype=dtype)

    def allocate_subresult(self, dtype=np.float64) -> np.ndarray:
        """Buffer for this rank's computed cells."""
        return np.empty(self.assignment.count, dtype=dtype)

    def local_view(self, current: np.ndarray | None, local: np.ndarray | None):
        """Array and offset the kernel should read on this rank."""
        if self.is_coordinator:
            return current, 0
        return local, self.halo.offset

    def scatter_halos(self, current: np.ndarray | None, local: np.ndarray | None):
        """Point-to-point halo distribution from the coordinator."""
        if self.is_coordinator:
            self._scatter.send_halos(current, self.comm)
        else:
            self._scatter.recv_halo(local, self.comm)

    def gather(self, sub: np.ndarray, recv: np.ndarray | None):
        """Collect every rank's cells into ``recv`` on the coordinator."""
        if self.is_coordinator:
            self.comm.Gatherv(
                sub,
                (recv, (self._counts, self._displs), MPI.DOUBLE),
                root=COORDINATOR,
            )
        else:
            self.comm.Gatherv(sub, None, root=COORDINATOR)

    def allreduce_changed(self, changed: bool) -> bool:
        """Logical OR of every rank's changed flag, delivered to all ranks."""
        local = np.array([changed], dtype=np.bool_)
        combined = np.zeros(1, dtype=np.bool_)
        self.comm.Allreduce(local, combined, op=MPI.LOR)
        return bool(combined[0])

    def get_rank_info(self) -> LocalParams:
        """Assignment and halo geometry for this rank."""
        return LocalParams(
            worker=self.rank,
            start=self.assignment.start,
            count=self.assignment.count,
            halo_first_row=self.halo.first_row,
            halo_last_row=self.halo.last_row,
            hostname=MPI.Get_processor_name(),
        )

    def get_halo_size_bytes(self) -> int:
        """Bytes received by this rank per generation (0 on the coordinator)."""
        if self.is_coordinator:
            return 0
        return self.halo.size * 8
