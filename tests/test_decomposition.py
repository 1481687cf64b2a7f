"""Tests for work partitioning and halo regions."""

import numpy as np
import pytest
from Relaxation import distribute_work, halo_region
from Relaxation.decomposition import counts_and_displacements


class TestDistributeWork:
    """Tests for the flat-index partition."""

    @pytest.mark.parametrize(
        "N,size", [(1, 1), (3, 2), (4, 3), (8, 5), (10, 7), (5, 25), (16, 16)]
    )
    def test_full_coverage_no_overlaps(self, N, size):
        """Each cell owned by exactly one worker."""
        assignments = distribute_work(N, size)

        covered = np.zeros(N * N, dtype=int)
        for a in assignments:
            covered[a.start:a.stop] += 1

        assert np.all(covered == 1)
        assert sum(a.count for a in assignments) == N * N

    @pytest.mark.parametrize("N,size", [(4, 3), (8, 5), (10, 7), (9, 80)])
    def test_balanced_counts(self, N, size):
        """Counts differ by at most one."""
        counts = [a.count for a in distribute_work(N, size)]
        assert max(counts) - min(counts) <= 1

    def test_contiguous_and_monotonic(self):
        """Each chunk starts where the previous one ends."""
        assignments = distribute_work(10, 7)

        assert assignments[0].start == 0
        for prev, cur in zip(assignments, assignments[1:]):
            assert cur.start == prev.stop
            assert cur.start > prev.start

    def test_remainder_goes_to_first_workers(self):
        """16 cells over 3 workers: 6, 5, 5."""
        counts = [a.count for a in distribute_work(4, 3)]
        assert counts == [6, 5, 5]

    def test_worker_indices(self):
        assignments = distribute_work(6, 4)
        assert [a.worker for a in assignments] == [0, 1, 2, 3]

    def test_single_worker_gets_everything(self):
        (a,) = distribute_work(5, 1)
        assert (a.start, a.count) == (0, 25)

    @pytest.mark.parametrize("N,size", [(0, 1), (4, 0), (-2, 3), (3, 10)])
    def test_invalid_arguments(self, N, size):
        """Non-positive N or W, or more workers than cells, raises ValueError."""
        with pytest.raises(ValueError):
            distribute_work(N, size)

    def test_counts_and_displacements(self):
        counts, displs = counts_and_displacements(distribute_work(4, 3))

        assert counts.tolist() == [6, 5, 5]
        assert displs.tolist() == [0, 6, 11]
        assert counts.dtype == np.int32


class TestHaloRegion:
    """Tests for the rows a worker has to read."""

    def test_padding_clamped_at_top(self):
        """First worker has no row above."""
        a = distribute_work(8, 4)[0]  # cells 0..15, rows 0-1
        halo = halo_region(a, 8)

        assert (halo.first_row, halo.last_row) == (0, 2)
        assert halo.offset == 0
        assert halo.size == 3 * 8

    def test_padding_clamped_at_bottom(self):
        """Last worker has no row below."""
        a = distribute_work(8, 4)[-1]  # cells 48..63, rows 6-7
        halo = halo_region(a, 8)

        assert (halo.first_row, halo.last_row) == (5, 7)
        assert halo.n_rows == 3

    def test_partial_rows(self):
        """A chunk that starts and ends mid-row still gets whole rows."""
        a = distribute_work(4, 3)[1]  # cells 6..10, rows 1-2
        halo = halo_region(a, 4)

        assert (a.first_row, a.last_row) == (1, 2)
        assert (halo.first_row, halo.last_row) == (0, 3)

    @pytest.mark.parametrize("N,size", [(5, 2), (7, 3), (10, 9), (6, 36)])
    def test_halo_covers_all_neighbours(self, N, size):
        """Every neighbour of every owned interior cell lies inside the halo."""
        for a in distribute_work(N, size):
            halo = halo_region(a, N)
            lo, hi = halo.offset, halo.offset + halo.size
            for i in range(a.start, a.stop):
                row, col = divmod(i, N)
                if row in (0, N - 1) or col in (0, N - 1):
                    assert lo <= i < hi
                    continue
                for j in (i - N, i + N, i - 1, i + 1):
                    assert lo <= j < hi

    def test_single_row_grid(self):
        a = distribute_work(1, 1)[0]
        halo = halo_region(a, 1)
        assert (halo.first_row, halo.last_row) == (0, 0)
