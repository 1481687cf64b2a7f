"""Build solvers from parameters and run the MPI solver via mpiexec subprocess."""

from __future__ import annotations

import json
import os
import shutil
import subprocess
import sys
import tempfile
from pathlib import Path

import numpy as np

from .datastructures import GlobalParams
from .problems import get_problem


def create_solver(params: GlobalParams, comm=None, on_generation=None):
    """Create the solver selected by ``params.backend``.

    The MPI solver is imported here so the rest of the package works
    without an MPI runtime.
    """
    common = {
        "precision": params.precision,
        "comparison": params.comparison,
        "use_numba": params.use_numba,
        "max_iter": params.max_iter,
        "value": get_problem(params.problem, params.N, params.seed),
        "on_generation": on_generation,
    }

    if params.backend == "sequential":
        from .solvers import RelaxationSolver

        return RelaxationSolver(params.N, **common)
    elif params.backend == "threads":
        from .solvers import RelaxationThreadedSolver

        return RelaxationThreadedSolver(params.N, n_workers=params.n_workers, **common)
    elif params.backend == "mpi":
        from .solvers.relaxation_mpi import RelaxationMPISolver

        return RelaxationMPISolver(
            params.N, comm=comm, communicator=params.communicator, **common
        )
    else:
        raise ValueError(f"Unknown backend: {params.backend}")


def mpi_environment() -> dict:
    """Environment for mpiexec children (allows oversubscribed local runs)."""
    env = os.environ.copy()
    env["MPI_SUBPROCESS"] = "1"
    # Children must import this package even when it is not installed
    src = str(Path(__file__).resolve().parent.parent)
    env["PYTHONPATH"] = os.pathsep.join(p for p in (src, env.get("PYTHONPATH")) if p)
    env.setdefault("OMPI_MCA_rmaps_base_oversubscribe", "1")
    env.setdefault("OMPI_ALLOW_RUN_AS_ROOT", "1")
    env.setdefault("OMPI_ALLOW_RUN_AS_ROOT_CONFIRM", "1")
    return env


def run_solver(
    N: int, n_ranks: int = 1, output: str = None, timeout: float = 300, **kwargs
) -> dict:
    """Run the MPI relaxation solver with N x N cells on n_ranks processes.

    Parameters
    ----------
    N : int
        Grid dimension
    n_ranks : int
        Number of MPI ranks (= workers)
    output : str, optional
        Path to save the ``.npz`` result (uses temp file if not provided)
    timeout : float
        Seconds before the mpiexec run is killed
    **kwargs
        Extra GlobalParams fields: precision, comparison, communicator,
        problem, seed, use_numba, max_iter

    Returns
    -------
    dict
        ``grid`` (N x N array) and metrics, or an ``error`` key on failure
    """
    mpiexec = shutil.which("mpiexec")
    if mpiexec is None:
        return {"error": "mpiexec not found on PATH"}

    # Use temp file if no output path specified
    use_temp = output is None
    if use_temp:
        tmp = tempfile.NamedTemporaryFile(suffix=".npz", delete=False)
        output = tmp.name
        tmp.close()

    config = {"N": N, "output": output, **kwargs}
    cmd = [
        mpiexec, "-n", str(n_ranks),
        sys.executable, "-m", "Relaxation.helpers.runner_helper", json.dumps(config),
    ]

    try:
        return _run_and_load(cmd, output, timeout)
    finally:
        # Clean up temp file if we created one
        if use_temp:
            Path(output).unlink(missing_ok=True)


def _run_and_load(cmd: list, output: str, timeout: float) -> dict:
    """Run the mpiexec command and load the coordinator's ``.npz`` result."""
    try:
        proc = subprocess.run(
            cmd, capture_output=True, text=True, env=mpi_environment(), timeout=timeout
        )
    except subprocess.TimeoutExpired:
        return {"error": f"mpiexec timed out after {timeout}s"}

    if proc.returncode != 0:
        return {"error": proc.stderr, "stdout": proc.stdout}

    if not Path(output).exists() or Path(output).stat().st_size == 0:
        return {"error": "No output file created", "stderr": proc.stderr}

    with np.load(output) as data:
        result = {k: data[k] for k in data.files}
    result["iterations"] = int(result["iterations"])
    result["converged"] = bool(result["converged"])
    result["stdout"] = proc.stdout
    return result
