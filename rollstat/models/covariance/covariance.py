# rollstat/models/covariance/covariance.py
"""
Rolling covariance and correlation matrices.

For every time index the weighted covariance of every pair of columns is
computed over the rows of the trailing window where both columns are
admitted, using the same denominator as ``roll_var``. The covariance of a
column with itself therefore equals its rolling variance. Correlation
matrices have a diagonal of exactly one wherever the variance is positive.

``compute_covariance`` is also the first stage of the rolling
eigen-decomposition and the rolling variance inflation factors.
"""

import logging
from typing import Optional

import numpy as np

from rollstat.core.config import ExecutionConfig, resolve_execution_config
from rollstat.core.types import PanelLike, PartitionAxis, RollingOutput, StatisticKind, WeightsLike
from rollstat.models.common import empty_output, log_dispatch, resolve_flags, resolve_window
from rollstat.models.covariance._numba_core import roll_cov_block
from rollstat.utils.adapters import to_panel, wrap_matrix_stack
from rollstat.utils.missing import MissingDataPolicy, pair_index
from rollstat.utils.parallel import ParallelExecutor

# Set up module-level logger
logger = logging.getLogger("rollstat.models.covariance.covariance")


def compute_covariance(x: np.ndarray,
                       admitted: np.ndarray,
                       weights: np.ndarray,
                       width: int,
                       min_obs: int,
                       center: bool,
                       scale: bool,
                       config: ExecutionConfig) -> np.ndarray:
    """
    Compute the rolling covariance (or correlation) cube on validated buffers.

    By-time partitioning gives each worker a range of time indices over all
    pairs; by-variable partitioning gives each worker a range of pairs over
    all time indices.

    Args:
        x: Panel of shape (n, p)
        admitted: Boolean mask of shape (n, p)
        weights: Weight vector of length width, oldest offset first
        width: Window width
        min_obs: Minimum number of jointly admitted rows
        center: Whether to center on the weighted means
        scale: Whether to return correlations
        config: Execution settings of the call

    Returns:
        np.ndarray: Stack of shape (n, p, p)
    """
    n, p = x.shape
    pairs = pair_index(p)
    n_pairs = pairs.shape[0]
    out = empty_output(n, p, p)
    executor = ParallelExecutor(config)

    if config.partition is PartitionAxis.BY_TIME:
        def task(lo: int, hi: int) -> None:
            roll_cov_block(x, admitted, weights, width, min_obs, center, scale,
                           pairs, 0, n_pairs, lo, hi, out)
        executor.run(n, task)
    else:
        def task(lo: int, hi: int) -> None:
            roll_cov_block(x, admitted, weights, width, min_obs, center, scale,
                           pairs, lo, hi, 0, n, out)
        executor.run(n_pairs, task)

    return out


def _roll_cov_matrix(kind: StatisticKind, data: PanelLike, width: int,
                     weights: Optional[WeightsLike], center: bool, scale: bool,
                     min_obs: Optional[int], complete_obs: bool, na_restore: bool,
                     parallel_for: Optional[str], num_workers: Optional[int]) -> RollingOutput:
    x, meta = to_panel(data)
    window = resolve_window(width, weights, min_obs, x.shape[0])
    flags = resolve_flags(center=center, scale=scale,
                          complete_obs=complete_obs, na_restore=na_restore)
    config = resolve_execution_config(parallel_for, num_workers)

    policy = MissingDataPolicy(x, complete_obs=flags["complete_obs"],
                               na_restore=flags["na_restore"])
    log_dispatch(kind, x.shape, window, config)

    out = compute_covariance(
        x, policy.admitted[0], window.weights.as_kernel_array(),
        window.width, window.min_obs, flags["center"], flags["scale"], config
    )
    policy.restore_pairs(out)
    return wrap_matrix_stack(out, meta)


def roll_cov(data: PanelLike,
             width: int,
             weights: Optional[WeightsLike] = None,
             center: bool = True,
             scale: bool = False,
             min_obs: Optional[int] = None,
             complete_obs: bool = True,
             na_restore: bool = False,
             parallel_for: Optional[str] = None,
             num_workers: Optional[int] = None) -> RollingOutput:
    """
    Rolling weighted covariance matrices.

    Args:
        data: Panel of shape (n, p); NaN marks missing values
        width: Window width, 1 <= width <= n
        weights: Weights of length width, oldest offset first (default ones)
        center: Whether to center on the weighted means
        scale: Whether to return correlations instead of covariances
        min_obs: Minimum number of jointly admitted rows (default width)
        complete_obs: Drop a row from every pair when any column is missing;
            with False each pair uses the rows where both of its columns are present
        na_restore: Return NaN at ``(t, a, b)`` wherever ``x[t, a]`` or ``x[t, b]`` was missing
        parallel_for: Partition axis, "rows" (by time) or "cols" (by variable pair)
        num_workers: Number of worker threads

    Returns:
        Array of shape (n, p, p), or for pandas input a DataFrame indexed by
        (time, variable) with the variables as columns

    Raises:
        ParameterError: If width, min_obs or a flag is invalid
        DimensionError: If the weights do not have length width
    """
    return _roll_cov_matrix(StatisticKind.COV, data, width, weights, center, scale,
                            min_obs, complete_obs, na_restore, parallel_for, num_workers)


def roll_cor(data: PanelLike,
             width: int,
             weights: Optional[WeightsLike] = None,
             center: bool = True,
             scale: bool = True,
             min_obs: Optional[int] = None,
             complete_obs: bool = True,
             na_restore: bool = False,
             parallel_for: Optional[str] = None,
             num_workers: Optional[int] = None) -> RollingOutput:
    """
    Rolling weighted correlation matrices.

    Same as ``roll_cov`` with ``scale=True`` by default. The diagonal is
    exactly one wherever the column's variance is positive.
    """
    return _roll_cov_matrix(StatisticKind.COR, data, width, weights, center, scale,
                            min_obs, complete_obs, na_restore, parallel_for, num_workers)
