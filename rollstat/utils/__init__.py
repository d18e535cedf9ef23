"""
rollstat Utilities Module

Building blocks shared by every rolling statistic.

Key components:
- Trailing window indexing (WindowIndexer)
- Window weights (WeightVector)
- Missing-data policy and restore rules (MissingDataPolicy)
- Per-window linear algebra compiled with Numba (Cholesky solve, eigen)
- Static partitioning of output units over worker threads (ParallelExecutor)
- Conversion between caller containers and engine buffers
"""

import logging

# Set up module-level logger
logger = logging.getLogger("rollstat.utils")

from .window import WindowIndexer, window_start, weight_index
from .weights import WeightVector
from .missing import MissingDataPolicy, pair_index
from .linalg import (
    all_finite,
    cholesky_factor,
    cholesky_solve,
    cholesky_inverse_diag,
    symmetric_eigen,
    weighted_least_squares,
)
from .parallel import ParallelExecutor, partition
from .adapters import PanelMeta, to_panel

__all__ = [
    # Windows and weights
    'WindowIndexer',
    'window_start',
    'weight_index',
    'WeightVector',

    # Missing data
    'MissingDataPolicy',
    'pair_index',

    # Linear algebra
    'all_finite',
    'cholesky_factor',
    'cholesky_solve',
    'cholesky_inverse_diag',
    'symmetric_eigen',
    'weighted_least_squares',

    # Execution
    'ParallelExecutor',
    'partition',

    # Adapters
    'PanelMeta',
    'to_panel',
]

logger.debug("rollstat utilities module initialized")
