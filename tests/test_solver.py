"""Tests for the sequential and threaded relaxation solvers."""

import numpy as np
import pytest
from Relaxation import (
    RelaxationSolver,
    RelaxationThreadedSolver,
    NumPyKernel,
    corner_ones,
    create_grid,
    random_integers,
    uniform_boundary,
)


def ring_of_ones():
    return np.array([[1, 1, 1], [1, 0, 1], [1, 1, 1]], dtype=np.float64)


def make_solver(n_workers, N, **kwargs):
    """Sequential solver for one worker, thread pool otherwise."""
    if n_workers is None:
        return RelaxationSolver(N, **kwargs)
    return RelaxationThreadedSolver(N, n_workers=n_workers, **kwargs)


@pytest.fixture(params=[None, 1, 2, 4], ids=["sequential", "threads1", "threads2", "threads4"])
def n_workers(request):
    return request.param


class TestScenarios:
    """End-to-end runs on small known grids."""

    def test_single_interior_cell(self, n_workers):
        """3x3 ring of ones: centre becomes 1, next generation confirms convergence."""
        solver = make_solver(n_workers, 3, precision=1e-4, initial=ring_of_ones())
        metrics = solver.solve()

        assert metrics.converged
        assert metrics.iterations == 2
        assert solver.timeseries.changed_history == [True, False]
        assert np.all(solver.grid_values == 1.0)

    def test_uniform_boundary_converges_to_one(self, n_workers):
        """Uniform boundary of 1 relaxes to an all-ones grid."""
        N = 4
        solver = make_solver(n_workers, N, precision=1e-4, value=uniform_boundary(N))
        metrics = solver.solve()

        assert metrics.converged
        assert metrics.iterations < 100
        assert np.allclose(solver.grid_values, 1.0, atol=1e-3)

    def test_huge_precision_stops_after_first_generation(self, n_workers):
        """No single step can move a cell by more than the precision."""
        N = 10
        solver = make_solver(n_workers, N, precision=1000, value=random_integers(N))
        metrics = solver.solve()

        assert metrics.converged
        assert metrics.iterations == 1


class TestInvariants:
    """Properties that hold for any input and worker count."""

    def test_boundary_invariance(self, n_workers):
        N = 9
        initial = create_grid(N, random_integers(N, seed=5)).reshape(N, N)
        seen = []
        solver = make_solver(
            n_workers, N, precision=1e-3, initial=initial,
            on_generation=lambda gen, grid: seen.append(grid.reshape(N, N).copy()),
        )
        solver.solve()

        assert len(seen) == solver.metrics.iterations + 1
        for grid in seen:
            assert np.array_equal(grid[0, :], initial[0, :])
            assert np.array_equal(grid[-1, :], initial[-1, :])
            assert np.array_equal(grid[:, 0], initial[:, 0])
            assert np.array_equal(grid[:, -1], initial[:, -1])

    def test_idempotent_at_fixed_point(self, n_workers):
        """Relaxing a converged grid again reports no change."""
        N = 8
        solver = make_solver(n_workers, N, precision=1e-4, value=corner_ones)
        solver.solve()
        final = solver.u.copy()

        kernel = NumPyKernel(precision=1e-4)
        out = np.empty_like(final)
        changed = kernel.step(final, out, 0, N * N, N)

        assert not changed
        assert np.allclose(out, final, atol=1e-4)

        again = make_solver(n_workers, N, precision=1e-4, initial=final)
        metrics = again.solve()
        assert metrics.iterations == 1
        assert metrics.converged

    @pytest.mark.parametrize("workers", [2, 3, 5, 7, 16])
    def test_decomposition_independence(self, workers):
        """Same converged grid for any thread count."""
        N = 12
        value = random_integers(N, seed=42)
        reference = RelaxationSolver(N, precision=1e-3, value=value)
        reference.solve()

        solver = RelaxationThreadedSolver(N, n_workers=workers, precision=1e-3, value=value)
        solver.solve()

        assert solver.metrics.iterations == reference.metrics.iterations
        assert np.array_equal(solver.grid_values, reference.grid_values)

    def test_one_cell_per_worker(self):
        """W = N*N: every worker owns exactly one cell."""
        N = 4
        solver = RelaxationThreadedSolver(N, n_workers=N * N, precision=1e-4, value=uniform_boundary(N))
        solver.solve()
        assert np.allclose(solver.grid_values, 1.0, atol=1e-3)

    def test_numba_kernel_matches_numpy(self):
        N = 10
        value = random_integers(N, seed=9)
        numpy_solver = RelaxationThreadedSolver(N, n_workers=3, precision=1e-4, value=value)
        numba_solver = RelaxationThreadedSolver(
            N, n_workers=3, precision=1e-4, value=value, use_numba=True
        )
        numba_solver.warmup()
        numpy_solver.solve()
        numba_solver.solve()

        assert numpy_solver.metrics.iterations == numba_solver.metrics.iterations
        assert np.allclose(numpy_solver.grid_values, numba_solver.grid_values)

    def test_inclusive_never_stops_earlier(self):
        """>= can only keep a generation 'changed' longer than >."""
        N = 8
        value = random_integers(N, seed=1)
        strict = RelaxationSolver(N, precision=0.01, value=value, comparison="strict")
        inclusive = RelaxationSolver(N, precision=0.01, value=value, comparison="inclusive")
        strict.solve()
        inclusive.solve()
        assert inclusive.metrics.iterations >= strict.metrics.iterations


class TestSolverConfiguration:
    """Tests for solver options and metrics."""

    def test_max_iter_caps_generations(self):
        solver = RelaxationThreadedSolver(
            16, n_workers=2, precision=1e-12, value=corner_ones, max_iter=5
        )
        metrics = solver.solve()

        assert metrics.iterations == 5
        assert not metrics.converged

    def test_metrics_populated(self):
        solver = RelaxationSolver(6, precision=1e-3)
        metrics = solver.solve()

        assert metrics.iterations == len(solver.timeseries.compute_times)
        assert metrics.wall_time >= 0
        assert metrics.total_compute_time >= 0
        assert isinstance(metrics.converged, bool)

    def test_solve_twice_resets(self):
        solver = RelaxationThreadedSolver(6, n_workers=2, precision=1e-3)
        first = solver.solve().iterations
        second = solver.solve().iterations

        assert first == second
        assert len(solver.timeseries.changed_history) == second

    def test_initial_shape_checked(self):
        solver = RelaxationSolver(4, initial=np.zeros(10))
        with pytest.raises(ValueError):
            solver.solve()

    @pytest.mark.parametrize("kwargs", [{"N": 0}, {"N": 4, "precision": 0}, {"N": 4, "precision": -1.0}])
    def test_invalid_arguments(self, kwargs):
        with pytest.raises(ValueError):
            RelaxationSolver(**kwargs)

    def test_too_many_workers(self):
        with pytest.raises(ValueError):
            RelaxationThreadedSolver(3, n_workers=10)
