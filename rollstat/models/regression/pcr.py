# rollstat/models/regression/pcr.py
"""
Rolling principal component regression.

Within each window the regressors are rotated onto the eigenvectors of their
weighted second-moment matrix, the response is regressed on the selected
component scores and the resulting slopes are mapped back to the original
regressors. Selecting every component reproduces ``roll_lm``.
"""

import logging
from typing import Optional, Tuple

import numpy as np

from rollstat.core.config import ExecutionConfig
from rollstat.core.results import RollingRegressionResult
from rollstat.core.types import CompsLike, PanelLike, PartitionAxis, StatisticKind, WeightsLike
from rollstat.core.validation import validate_comps
from rollstat.models.common import log_degenerate
from rollstat.models.regression._numba_core import roll_pcr_block
from rollstat.models.regression.utils import (
    RegressionFlags, prepare_regression, regression_buffers
)
from rollstat.utils.adapters import wrap_regression
from rollstat.utils.parallel import ParallelExecutor

# Set up module-level logger
logger = logging.getLogger("rollstat.models.regression.pcr")


def compute_pcr(x: np.ndarray,
                y: np.ndarray,
                admitted_x: np.ndarray,
                admitted_y: np.ndarray,
                weights: np.ndarray,
                width: int,
                min_obs: int,
                comps: np.ndarray,
                flags: RegressionFlags,
                config: ExecutionConfig) -> Tuple[np.ndarray, np.ndarray]:
    """
    Compute rolling principal component regressions on validated buffers.

    Args:
        comps: Zero-based component indices (descending eigenvalue order)

    Returns:
        Tuple of coefficients (n_y, n, k) and R² (n, n_y), laid out as in ``compute_lm``
    """
    n, p = x.shape
    n_y = y.shape[1]
    coef, r2 = regression_buffers(n, p, n_y, flags.intercept)
    executor = ParallelExecutor(config)

    def block(t_lo: int, t_hi: int, m_lo: int, m_hi: int) -> int:
        return roll_pcr_block(
            x, y, admitted_x, admitted_y, weights, width, min_obs, flags.intercept,
            flags.center_x, flags.center_y, flags.scale_x, flags.scale_y,
            config.rank_tolerance, comps, t_lo, t_hi, m_lo, m_hi, coef, r2
        )

    if config.partition is PartitionAxis.BY_TIME:
        counts = executor.run(n, lambda lo, hi: block(lo, hi, 0, n_y))
    else:
        counts = executor.run(n_y, lambda lo, hi: block(0, n, lo, hi))

    log_degenerate(StatisticKind.PCR, sum(counts))
    return coef, r2


def roll_pcr(x: PanelLike,
             y: PanelLike,
             width: int,
             comps: Optional[CompsLike] = None,
             weights: Optional[WeightsLike] = None,
             intercept: bool = True,
             center: bool = False,
             center_x: Optional[bool] = None,
             center_y: Optional[bool] = None,
             scale: bool = False,
             scale_x: Optional[bool] = None,
             scale_y: Optional[bool] = None,
             min_obs: Optional[int] = None,
             complete_obs: bool = True,
             na_restore: bool = False,
             parallel_for: Optional[str] = None,
             num_workers: Optional[int] = None) -> RollingRegressionResult:
    """
    Rolling principal component regression.

    Args:
        x: Independent variables, shape (n,) or (n, p)
        y: Dependent variables, shape (n,) or (n, n_y)
        width: Window width, 1 <= width <= n
        comps: One-based indices of the components to keep, largest
            eigenvalue first; any order, no duplicates (default all)
        weights: Weights of length width, oldest offset first (default ones)
        intercept: Whether to include an intercept
        center: Shorthand for center_x and center_y
        center_x: Center the regressors on their weighted means
        center_y: Center the responses on their weighted means
        scale: Shorthand for scale_x and scale_y
        scale_x: Divide the regressors by their weighted standard deviations
        scale_y: Divide the responses by their weighted standard deviations
        min_obs: Minimum number of complete rows (default width)
        complete_obs: Drop a row for every response when any column of x or y
            is missing there
        na_restore: Return NaN at (t, m) wherever any x[t, :] or y[t, m] was missing
        parallel_for: Partition axis, "rows" (by time) or "cols" (by response)
        num_workers: Number of worker threads

    Returns:
        RollingRegressionResult with coefficients on the original regressors

    Raises:
        ParameterError: If a component index is outside [1, p] or repeated
        DimensionError: If x and y have different numbers of rows
    """
    call = prepare_regression(
        StatisticKind.PCR, x, y, width, weights, intercept,
        center, center_x, center_y, scale, scale_x, scale_y,
        min_obs, complete_obs, na_restore, parallel_for, num_workers
    )
    selected = validate_comps(comps, call.x.shape[1])

    coef, r2 = compute_pcr(
        call.x, call.y, call.policy.admitted[0], call.policy.admitted[1],
        call.window.weights.as_kernel_array(), call.window.width, call.window.min_obs,
        selected, call.flags, call.config
    )
    call.policy.restore_regression(coef, r2)

    metadata = call.metadata(comps=[int(c) + 1 for c in selected])
    return wrap_regression(coef, r2, call.x_meta, call.y_meta, call.flags.intercept,
                           "pcr", call.window.width, metadata)
