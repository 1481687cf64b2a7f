"""Data structures for solver configuration and results.

Architecture: 2x2 matrix of Params vs Metrics × Global vs Local

                 Params (input/config)         Metrics (output/results)
                 ─────────────────────         ────────────────────────
Global           GlobalParams                  GlobalMetrics
(same across     N, n_workers, precision,      wall_time, mlups,
workers / agg)   backend, comparison...        converged, iterations...

Local            LocalParams                   LocalMetrics
(per-worker)     worker, start, count,         compute_times[],
                 halo rows, hostname           exchange_times[]...
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import List, Optional

BACKENDS = ("sequential", "threads", "mpi")
COMPARISONS = ("strict", "inclusive")
COMMUNICATORS = ("numpy", "custom")
PROBLEMS = ("corner", "uniform_boundary", "random")


# ============================================================================
# Global (identical across workers, or aggregated on the coordinator)
# ============================================================================


@dataclass
class GlobalParams:
    """Run configuration - loaded by Hydra, checked by ``validate``.

    Immutable configuration set before the run. Identical across all workers.
    """

    # Required
    N: int

    # Relaxation
    precision: float = 1e-4
    comparison: str = "strict"  # "strict" (>) | "inclusive" (>=)
    max_iter: Optional[int] = None  # None = iterate until converged

    # Parallelization
    backend: str = "threads"  # "sequential" | "threads" | "mpi"
    n_workers: int = 1
    communicator: str = "numpy"  # "numpy" | "custom" (MPI only)

    # Numba
    use_numba: bool = False

    # Input grid
    problem: str = "corner"  # "corner" | "uniform_boundary" | "random"
    seed: int = 101121

    # Output
    print_grid: bool = False

    @classmethod
    def from_config(cls, cfg) -> "GlobalParams":
        """Build from a mapping (e.g. an OmegaConf DictConfig), ignoring extra keys."""
        names = {f.name for f in fields(cls)}
        return cls(**{k: cfg[k] for k in cfg if k in names})

    def validate(self) -> "GlobalParams":
        """Raise ValueError describing the first invalid field."""
        if not isinstance(self.N, int) or isinstance(self.N, bool) or self.N <= 0:
            raise ValueError(f"N must be a positive integer, got {self.N!r}")
        if (
            not isinstance(self.n_workers, int)
            or isinstance(self.n_workers, bool)
            or self.n_workers <= 0
        ):
            raise ValueError(
                f"n_workers must be a positive integer, got {self.n_workers!r}"
            )
        if self.n_workers > self.N * self.N:
            raise ValueError(
                f"n_workers ({self.n_workers}) exceeds the number of cells ({self.N * self.N})"
            )
        if (
            not isinstance(self.precision, (int, float))
            or isinstance(self.precision, bool)
            or not self.precision > 0
        ):
            raise ValueError(f"precision must be a positive number, got {self.precision!r}")
        if self.max_iter is not None and (
            not isinstance(self.max_iter, int)
            or isinstance(self.max_iter, bool)
            or self.max_iter <= 0
        ):
            raise ValueError(f"max_iter must be a positive integer or null, got {self.max_iter!r}")
        if not isinstance(self.print_grid, bool):
            raise ValueError(f"print_grid must be true or false, got {self.print_grid!r}")
        for name, allowed in (
            ("backend", BACKENDS),
            ("comparison", COMPARISONS),
            ("communicator", COMMUNICATORS),
            ("problem", PROBLEMS),
        ):
            value = getattr(self, name)
            if value not in allowed:
                raise ValueError(f"Unknown {name}: {value!r}. Use one of {allowed}.")
        return self

    def to_overrides(self) -> List[str]:
        """Render as ``key=value`` overrides (bools lower-case, None as null)."""
        out = []
        for f in fields(self):
            v = getattr(self, f.name)
            if isinstance(v, bool):
                v = str(v).lower()
            elif v is None:
                v = "null"
            out.append(f"{f.name}={v}")
        return out


@dataclass
class GlobalMetrics:
    """Aggregated results, final on the coordinator."""

    converged: bool = False
    iterations: int = 0
    wall_time: Optional[float] = None

    # Timing breakdown (sum across all generations)
    total_compute_time: Optional[float] = None
    total_exchange_time: Optional[float] = None

    # Performance metrics
    mlups: Optional[float] = None  # Million Lattice Updates per Second

    def to_dict(self) -> dict:
        """Plain dict without unset values (bools as int)."""
        return {
            k: (int(v) if isinstance(v, bool) else v)
            for k, v in self.__dict__.items()
            if v is not None
        }


# ============================================================================
# Local (per-worker)
# ============================================================================


@dataclass
class LocalParams:
    """Per-worker assignment and halo geometry."""

    worker: int
    start: int
    count: int
    halo_first_row: int
    halo_last_row: int
    hostname: str = ""

    @property
    def end(self) -> int:
        """Last owned flat index (inclusive)."""
        return self.start + self.count - 1


@dataclass
class LocalMetrics:
    """Per-worker timeseries, accumulated during solve."""

    compute_times: List[float] = field(default_factory=list)
    exchange_times: List[float] = field(default_factory=list)

    # Global changed flag per generation (coordinator)
    changed_history: List[bool] = field(default_factory=list)

    def clear(self):
        """Clear all timeseries data."""
        self.compute_times.clear()
        self.exchange_times.clear()
        self.changed_history.clear()
