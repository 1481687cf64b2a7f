"""Text rendering of grids and run summaries."""

from __future__ import annotations

import sys
from typing import TextIO

import numpy as np


def format_grid(grid: np.ndarray, N: int) -> str:
    """Row-major dump, ``%10.6f`` per cell, blank line after the last row."""
    values = np.asarray(grid).reshape(N, N)
    lines = ["".join(f"{v:10.6f} " for v in row) for row in values]
    return "\n".join(lines) + "\n\n"


def print_grid(grid: np.ndarray, N: int, stream: TextIO | None = None):
    """Write ``format_grid`` output to ``stream`` (stdout by default)."""
    stream = stream or sys.stdout
    stream.write(format_grid(grid, N))
    stream.flush()


def format_elapsed(wall_time: float) -> str:
    return f"Time taken: {wall_time:10.6f} seconds"
