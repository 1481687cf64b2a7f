"""Shared-memory worker pool synchronised by a two-phase barrier.

Each generation:

1. the coordinator prepares NEXT and resets the changed flag, then releases
   the workers at the barrier;
2. every worker relaxes its static slice of NEXT from the read-only CURRENT
   and ORs its local change into the shared flag;
3. the second barrier phase hands control back to the coordinator, which
   swaps the arena while the workers are blocked.

Slices are disjoint, so the grid buffers need no locks.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import List

from ..buffers import GenerationArena
from ..decomposition import WorkAssignment
from ..reduction import AtomicFlag

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkerTask:
    """Everything a worker needs, built once before the pool starts."""

    assignment: WorkAssignment
    N: int
    arena: GenerationArena
    changed: AtomicFlag
    barrier: threading.Barrier
    finished: threading.Event
    kernel: object


def run_worker(task: WorkerTask):
    """Worker loop. Aborts the barrier on failure so no peer blocks forever."""
    a = task.assignment
    try:
        while True:
            # Coordinator swaps buffers while workers wait here
            task.barrier.wait()
            if task.finished.is_set():
                return

            current = task.arena.current
            out = task.arena.next[a.start:a.stop]
            changed = task.kernel.step(current, out, a.start, a.count, task.N)
            task.changed.accumulate(changed)

            task.barrier.wait()
    except Exception:
        task.barrier.abort()
        raise


class WorkerPool:
    """Fixed pool of worker threads for the lifetime of one run.

    Parameters
    ----------
    arena : GenerationArena
        Shared generation buffers. Only the coordinator swaps them.
    assignments : list of WorkAssignment
        Static partition, one entry per worker.
    kernel : object
        Kernel with ``step(current, out, start, count, N)``.
    changed : AtomicFlag
        Shared changed flag, reset by the coordinator each generation.

    Example
    -------
    >>> with WorkerPool(arena, assignments, kernel, flag) as pool:
    ...     flag.reset()
    ...     pool.run_generation()
    ...     arena.swap()
    """

    def __init__(
        self,
        arena: GenerationArena,
        assignments: List[WorkAssignment],
        kernel,
        changed: AtomicFlag,
    ):
        self.arena = arena
        self.n_workers = len(assignments)
        self.changed = changed

        N = assignments[0].N
        self._barrier = threading.Barrier(self.n_workers + 1)
        self._finished = threading.Event()
        self.tasks = tuple(
            WorkerTask(a, N, arena, changed, self._barrier, self._finished, kernel)
            for a in assignments
        )
        self._executor = None
        self._futures = []

    def start(self):
        """Launch the worker threads."""
        self._executor = ThreadPoolExecutor(
            max_workers=self.n_workers, thread_name_prefix="relax-worker"
        )
        for task in self.tasks:
            a = task.assignment
            log.debug(f"Worker {a.worker}: {a.start}-{a.stop - 1}")
            self._futures.append(self._executor.submit(run_worker, task))

    def run_generation(self):
        """Release the workers for one generation and wait until all are done."""
        try:
            self._barrier.wait()
            self._barrier.wait()
        except threading.BrokenBarrierError:
            self._raise_worker_error()
            raise

    def stop(self):
        """Let the workers leave their last barrier and join them."""
        self._finished.set()
        self._barrier.wait()
        self._executor.shutdown(wait=True)
        for future in self._futures:
            future.result()

    def abort(self):
        """Break the barrier and join the workers after a coordinator failure."""
        self._barrier.abort()
        if self._executor is not None:
            self._executor.shutdown(wait=True)

    def _raise_worker_error(self):
        """Re-raise the first worker exception that broke the barrier."""
        wait(self._futures)
        for future in self._futures:
            exc = future.exception()
            if exc is not None and not isinstance(exc, threading.BrokenBarrierError):
                raise exc

    def __enter__(self) -> "WorkerPool":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is None:
            self.stop()
        else:
            self.abort()
        return False
