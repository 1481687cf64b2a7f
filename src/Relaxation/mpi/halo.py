"""Halo scatter implementations for the coordinator/worker exchange.

The coordinator (rank 0) owns the full grid. Before each generation it sends
every other rank exactly the rows of that rank's halo region with a blocking
point-to-point send; the rank receives them into a halo-sized local buffer.
"""

from __future__ import annotations
from abc import ABC, abstractmethod

import numpy as np
from mpi4py import MPI

from ..decomposition import HaloRegion

COORDINATOR = 0
HALO_TAG = 0


class HaloScatter(ABC):
    """Abstract base for halo scatter strategies."""

    @abstractmethod
    def setup(self, N: int, halos: list[HaloRegion]):
        """Initialize exchange buffers or datatypes."""
        pass

    @abstractmethod
    def send_halos(self, grid: np.ndarray, comm: MPI.Comm):
        """Coordinator: send each rank its halo rows."""
        pass

    @abstractmethod
    def recv_halo(self, local: np.ndarray, comm: MPI.Comm):
        """Non-coordinator: receive this rank's halo rows into ``local``."""
        pass


class NumpyHaloScatter(HaloScatter):
    """Halo scatter using contiguous NumPy slices and Send/Recv."""

    def setup(self, N: int, halos: list[HaloRegion]):
        """Pre-compute flat slices for each rank's halo."""
        self.N = N
        self._slices = [slice(h.offset, h.offset + h.size) for h in halos]

    def send_halos(self, grid: np.ndarray, comm: MPI.Comm):
        """Send rows with buffer slices (row-major rows are contiguous)."""
        for rank in range(1, len(self._slices)):
            comm.Send(grid[self._slices[rank]], dest=rank, tag=HALO_TAG)

    def recv_halo(self, local: np.ndarray, comm: MPI.Comm):
        comm.Recv(local, source=COORDINATOR, tag=HALO_TAG)


class DatatypeHaloScatter(HaloScatter):
    """Halo scatter using a committed MPI row datatype."""

    def setup(self, N: int, halos: list[HaloRegion]):
        """Create the row datatype and pre-compute offsets."""
        self.N = N
        self._row = MPI.DOUBLE.Create_contiguous(N)
        self._row.Commit()
        self._halos = list(halos)

    def send_halos(self, grid: np.ndarray, comm: MPI.Comm):
        """Send ``n_rows`` rows starting at each halo's first row."""
        for rank in range(1, len(self._halos)):
            h = self._halos[rank]
            comm.Send([grid[h.offset:], h.n_rows, self._row], dest=rank, tag=HALO_TAG)

    def recv_halo(self, local: np.ndarray, comm: MPI.Comm):
        rank = comm.Get_rank()
        comm.Recv(
            [local, self._halos[rank].n_rows, self._row],
            source=COORDINATOR,
            tag=HALO_TAG,
        )

    def __del__(self):
        """Free MPI datatype."""
        if MPI.Is_finalized():
            return
        if hasattr(self, "_row") and self._row != MPI.DATATYPE_NULL:
            self._row.Free()


def create_halo_scatter(scatter_type: str) -> HaloScatter:
    """Factory: 'numpy' for buffer-based, 'custom' for MPI datatypes."""
    if scatter_type == "numpy":
        return NumpyHaloScatter()
    elif scatter_type == "custom":
        return DatatypeHaloScatter()
    else:
        raise ValueError(f"Unknown communicator type: {scatter_type}")
