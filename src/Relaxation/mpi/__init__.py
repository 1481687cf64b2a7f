"""MPI partition exchange and communication.

This package provides:
- DistributedGrid: Unified interface for the coordinator/worker grid
- HaloScatter: Strategies for halo distribution (numpy/datatype)
"""

from .grid import DistributedGrid
from .halo import HaloScatter, NumpyHaloScatter, DatatypeHaloScatter

__all__ = [
    "DistributedGrid",
    "HaloScatter",
    "NumpyHaloScatter",
    "DatatypeHaloScatter",
]
