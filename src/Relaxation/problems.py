"""Initial grids for the relaxation problem.

A problem is a pure function ``value(row, col) -> float`` evaluated once per
cell at startup. The engine never calls it again.
"""

from typing import Callable

import numpy as np

ValueFunction = Callable[[int, int], float]


def corner_ones(row: int, col: int) -> float:
    """1 on the first row and first column, 0 elsewhere."""
    return 1.0 if row * col == 0 else 0.0


def uniform_boundary(N: int, boundary_value: float = 1.0, interior_value: float = 0.0) -> ValueFunction:
    """Constant value on every boundary cell, another constant inside."""

    def value(row: int, col: int) -> float:
        if row in (0, N - 1) or col in (0, N - 1):
            return boundary_value
        return interior_value

    return value


def random_integers(N: int, seed: int = 101121, high: int = 20) -> ValueFunction:
    """Integers drawn uniformly from ``[0, high)``, reproducible by seed."""
    values = np.random.default_rng(seed).integers(0, high, size=(N, N)).astype(np.float64)

    def value(row: int, col: int) -> float:
        return float(values[row, col])

    return value


def create_grid(N: int, value: ValueFunction) -> np.ndarray:
    """Evaluate ``value`` on every cell. Returns a flat row-major float64 array."""
    grid = np.empty(N * N, dtype=np.float64)
    for row in range(N):
        for col in range(N):
            grid[row * N + col] = value(row, col)
    return grid


def get_problem(name: str, N: int, seed: int = 101121) -> ValueFunction:
    """Look up a value function by config name."""
    if name == "corner":
        return corner_ones
    elif name == "uniform_boundary":
        return uniform_boundary(N)
    elif name == "random":
        return random_integers(N, seed)
    else:
        raise ValueError(
            f"Unknown problem: {name}. Use 'corner', 'uniform_boundary' or 'random'."
        )
