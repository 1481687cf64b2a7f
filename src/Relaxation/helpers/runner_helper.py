"""MPI worker - invoked via: mpiexec -n X python -m Relaxation.helpers.runner_helper '{config}'"""

import json
import logging
import sys

import numpy as np
from mpi4py import MPI

from Relaxation.datastructures import GlobalParams
from Relaxation.postprocessing import format_elapsed
from Relaxation.runner import create_solver

log = logging.getLogger(__name__)


def main(argv):
    config = json.loads(argv[1])
    output = config.pop("output", None)

    comm = MPI.COMM_WORLD
    rank = comm.Get_rank()

    # Worker count comes from the launch environment
    config.update(backend="mpi", n_workers=comm.Get_size())
    params = GlobalParams.from_config(config).validate()

    solver = create_solver(params, comm=comm)
    solver.warmup()
    solver.solve()

    if rank == 0:
        print(format_elapsed(solver.metrics.wall_time))
        if output:
            np.savez(output, grid=solver.grid_values, **solver.metrics.to_dict())
        # Just print the path - runner.py will load the npz
        print(f"RESULT:{output}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")
    try:
        main(sys.argv)
    except Exception:
        log.exception(f"Rank {MPI.COMM_WORLD.Get_rank()} failed")
        MPI.COMM_WORLD.Abort(1)
