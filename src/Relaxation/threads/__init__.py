"""Shared-memory realization: worker threads and barrier synchronisation."""

from .pool import WorkerPool, WorkerTask, run_worker

__all__ = ["WorkerPool", "WorkerTask", "run_worker"]
