"""
Unified Solver Runner - runs the sequential, threaded or MPI solver.

Usage:
    python run_solver.py N=64 n_workers=4 precision=1e-4 backend=threads
    python run_solver.py N=64 n_workers=4 backend=mpi print_grid=true
    python run_solver.py -cn experiment/scaling --multirun
"""

import logging
import os
import subprocess
import sys
from pathlib import Path

import hydra
from omegaconf import DictConfig, OmegaConf

# Ensure src directory is in python path
sys.path.append(str(Path(__file__).parent / "src"))

log = logging.getLogger(__name__)

USAGE = (
    "usage: python run_solver.py N=<grid dimension> n_workers=<worker count> "
    "precision=<positive real> print_grid=<true|false> "
    "[backend=sequential|threads|mpi] [comparison=strict|inclusive] "
    "[communicator=numpy|custom] [problem=corner|uniform_boundary|random] "
    "[use_numba=<true|false>] [max_iter=<int|null>]"
)

EXIT_USAGE = 2


def _load_params(cfg: DictConfig):
    """Validate config into GlobalParams, or log usage and exit."""
    from Relaxation.datastructures import GlobalParams

    try:
        return GlobalParams.from_config(OmegaConf.to_container(cfg, resolve=True)).validate()
    except (TypeError, ValueError) as e:
        log.error(f"Invalid arguments: {e}")
        log.error(USAGE)
        sys.exit(EXIT_USAGE)


def _print_generation(N: int):
    """Per-generation grid dump for print_grid=true."""
    from Relaxation.postprocessing import print_grid

    def on_generation(generation, grid):
        print_grid(grid, N)

    return on_generation


def _run(params, comm=None):
    """Build, run and report one solver (coordinator prints)."""
    from Relaxation.postprocessing import format_elapsed
    from Relaxation.runner import create_solver

    is_root = comm is None or comm.Get_rank() == 0
    on_generation = _print_generation(params.N) if params.print_grid else None

    solver = create_solver(params, comm=comm, on_generation=on_generation)
    solver.warmup()
    metrics = solver.solve()

    if is_root:
        log.info(
            f"Done: {metrics.iterations} generations, converged={metrics.converged}, "
            f"time={metrics.wall_time:.3f}s"
            + (f", {metrics.mlups:.1f} Mlup/s" if metrics.mlups else "")
        )
        print(format_elapsed(metrics.wall_time))
    return solver


@hydra.main(config_path="conf", config_name="config", version_base=None)
def main(cfg: DictConfig) -> None:
    """Entry point - runs in-process or spawns MPI based on backend."""
    params = _load_params(cfg)
    log.info(
        f"{params.backend}, N={params.N}, workers={params.n_workers}, "
        f"precision={params.precision}, comparison={params.comparison}"
    )

    if params.backend == "mpi":
        _spawn_mpi(params)
        return

    try:
        _run(params)
    except MemoryError:
        log.error(f"Could not allocate grid buffers for N={params.N}")
        sys.exit(1)


def _spawn_mpi(params):
    """Spawn this script under mpiexec with one rank per worker."""
    import shutil

    from Relaxation.runner import mpi_environment

    mpiexec = shutil.which("mpiexec")
    if mpiexec is None:
        log.error("mpiexec not found on PATH")
        sys.exit(1)

    cmd = [mpiexec, "-n", str(params.n_workers), sys.executable, os.path.abspath(__file__)]
    cmd.extend(params.to_overrides())

    result = subprocess.run(cmd, capture_output=True, text=True, env=mpi_environment())
    for line in (result.stdout or "").rstrip("\n").split("\n"):
        print(line)
    for line in (result.stderr or "").strip().split("\n"):
        if line:
            log.warning(line) if "error" in line.lower() else log.info(line)
    if result.returncode != 0:
        sys.exit(result.returncode)


def _run_mpi_solver(cfg: DictConfig, comm):
    """Run MPI solver (called within mpiexec subprocess)."""
    # Worker count is the communicator size, not the config value
    cfg.n_workers = comm.Get_size()
    params = _load_params(cfg)

    try:
        _run(params, comm=comm)
    except Exception:
        log.exception(f"Rank {comm.Get_rank()} failed")
        comm.Abort(1)


if __name__ == "__main__":
    if os.environ.get("MPI_SUBPROCESS"):
        from mpi4py import MPI

        logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")
        base = OmegaConf.load(Path(__file__).parent / "conf" / "config.yaml")
        overrides = OmegaConf.from_dotlist([a for a in sys.argv[1:] if "=" in a and not a.startswith("-")])
        _run_mpi_solver(OmegaConf.merge(base, overrides), MPI.COMM_WORLD)
    else:
        main()
