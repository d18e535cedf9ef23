# rollstat/models/decomposition/staged.py
"""
Two-stage execution for statistics derived from rolling covariance matrices.

Stage one builds the ``(n, p, p)`` covariance cube; stage two decomposes the
matrix at every time index. Partitioned by time, each worker runs both stages
for its own range of time indices. Partitioned by variable, stage one is split
over variable pairs and, once the cube is complete, stage two is split over
time indices.
"""

import logging
from typing import Callable

import numpy as np

from rollstat.core.config import ExecutionConfig
from rollstat.core.types import PartitionAxis
from rollstat.models.common import empty_output
from rollstat.models.covariance import compute_covariance
from rollstat.models.covariance._numba_core import roll_cov_block
from rollstat.utils.missing import pair_index
from rollstat.utils.parallel import ParallelExecutor

# Set up module-level logger
logger = logging.getLogger("rollstat.models.decomposition.staged")

DecomposeTask = Callable[[np.ndarray, int, int], int]


def run_staged(x: np.ndarray,
               admitted: np.ndarray,
               weights: np.ndarray,
               width: int,
               min_obs: int,
               center: bool,
               scale: bool,
               config: ExecutionConfig,
               decompose: DecomposeTask) -> int:
    """
    Build the covariance cube and apply ``decompose(cube, t_lo, t_hi)``.

    Args:
        x: Panel of shape (n, p)
        admitted: Boolean mask of shape (n, p)
        weights: Weight vector of length width
        width: Window width
        min_obs: Minimum number of jointly admitted rows
        center: Whether the matrices are centered on the weighted means
        scale: Whether the matrices are correlations
        config: Execution settings of the call
        decompose: Second-stage task writing its own outputs, returning a count
            of degenerate time indices

    Returns:
        Total of the counts returned by the second-stage tasks
    """
    n, p = x.shape
    executor = ParallelExecutor(config)

    if config.partition is PartitionAxis.BY_TIME:
        pairs = pair_index(p)
        cube = empty_output(n, p, p)

        def task(lo: int, hi: int) -> int:
            roll_cov_block(x, admitted, weights, width, min_obs, center, scale,
                           pairs, 0, pairs.shape[0], lo, hi, cube)
            return decompose(cube, lo, hi)

        return sum(executor.run(n, task))

    cube = compute_covariance(x, admitted, weights, width, min_obs, center, scale, config)
    return sum(executor.run(n, lambda lo, hi: decompose(cube, lo, hi)))
