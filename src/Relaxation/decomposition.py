"""Work partitioning over the flattened N x N index domain.

Every realization (sequential, threads, MPI) uses the same partition, so the
converged grid does not depend on how many workers computed it.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class WorkAssignment:
    """Contiguous range of flat indices owned by one worker."""

    worker: int
    start: int
    count: int
    N: int

    @property
    def stop(self) -> int:
        """One past the last owned index."""
        return self.start + self.count

    @property
    def first_row(self) -> int:
        return self.start // self.N

    @property
    def last_row(self) -> int:
        return (self.stop - 1) // self.N


@dataclass(frozen=True)
class HaloRegion:
    """Closed row range a worker must read to compute all of its cells.

    The owned rows plus one row of padding on each side, clamped to the grid.
    """

    first_row: int
    last_row: int
    N: int

    @property
    def n_rows(self) -> int:
        return self.last_row - self.first_row + 1

    @property
    def offset(self) -> int:
        """Flat global index of the first cell in the region."""
        return self.first_row * self.N

    @property
    def size(self) -> int:
        return self.n_rows * self.N


def distribute_work(N: int, n_workers: int) -> list[WorkAssignment]:
    """Split N*N cells into ``n_workers`` contiguous chunks.

    The first ``N*N % n_workers`` workers receive one extra cell.

    Parameters
    ----------
    N : int
        Grid dimension.
    n_workers : int
        Number of workers (threads or MPI ranks).

    Returns
    -------
    list of WorkAssignment
        One assignment per worker, ordered by worker index.
    """
    if N <= 0:
        raise ValueError(f"Grid dimension must be positive, got N={N}")
    if n_workers <= 0:
        raise ValueError(f"Worker count must be positive, got {n_workers}")

    total = N * N
    if n_workers > total:
        raise ValueError(
            f"Cannot split {total} cells across {n_workers} workers"
        )

    base = total // n_workers
    remainder = total % n_workers

    assignments = []
    start = 0
    for worker in range(n_workers):
        count = base
        if remainder > 0:
            remainder -= 1
            count += 1
        assignments.append(WorkAssignment(worker, start, count, N))
        start += count

    return assignments


def halo_region(assignment: WorkAssignment, N: int) -> HaloRegion:
    """Rows needed to update every cell of ``assignment``."""
    first_row = max(0, assignment.start // N - 1)
    last_row = min(N - 1, (assignment.start + assignment.count - 1) // N + 1)
    return HaloRegion(first_row, last_row, N)


def counts_and_displacements(
    assignments: list[WorkAssignment],
) -> tuple[np.ndarray, np.ndarray]:
    """Per-worker counts and start offsets for a variable-size gather."""
    counts = np.array([a.count for a in assignments], dtype=np.int32)
    displs = np.array([a.start for a in assignments], dtype=np.int32)
    return counts, displs
