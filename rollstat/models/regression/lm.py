# rollstat/models/regression/lm.py
"""
Rolling weighted linear regression.

At every time index each response column is regressed on all independent
variables by weighted least squares over the trailing window. Regressors and
responses can be centered and scaled within each window before the fit.
Windows whose design is rank deficient give missing coefficients and R² for
that response and time index only.
"""

import logging
from typing import Optional, Tuple

import numpy as np

from rollstat.core.config import ExecutionConfig
from rollstat.core.results import RollingRegressionResult
from rollstat.core.types import PanelLike, PartitionAxis, StatisticKind, WeightsLike
from rollstat.models.common import log_degenerate
from rollstat.models.regression._numba_core import roll_lm_block
from rollstat.models.regression.utils import (
    RegressionFlags, prepare_regression, regression_buffers
)
from rollstat.utils.adapters import wrap_regression
from rollstat.utils.parallel import ParallelExecutor

# Set up module-level logger
logger = logging.getLogger("rollstat.models.regression.lm")


def compute_lm(x: np.ndarray,
               y: np.ndarray,
               admitted_x: np.ndarray,
               admitted_y: np.ndarray,
               weights: np.ndarray,
               width: int,
               min_obs: int,
               flags: RegressionFlags,
               config: ExecutionConfig) -> Tuple[np.ndarray, np.ndarray]:
    """
    Compute rolling regression coefficients and R² on validated buffers.

    By-time partitioning gives each worker a range of time indices over all
    responses; by-variable partitioning gives each worker a range of response
    columns over all time indices.

    Returns:
        Tuple containing:
            - coefficients: Array of shape (n_y, n, k), intercept first when included
            - r_squared: Array of shape (n, n_y)
    """
    n, p = x.shape
    n_y = y.shape[1]
    coef, r2 = regression_buffers(n, p, n_y, flags.intercept)
    executor = ParallelExecutor(config)

    def block(t_lo: int, t_hi: int, m_lo: int, m_hi: int) -> int:
        return roll_lm_block(
            x, y, admitted_x, admitted_y, weights, width, min_obs, flags.intercept,
            flags.center_x, flags.center_y, flags.scale_x, flags.scale_y,
            config.rank_tolerance, t_lo, t_hi, m_lo, m_hi, coef, r2
        )

    if config.partition is PartitionAxis.BY_TIME:
        counts = executor.run(n, lambda lo, hi: block(lo, hi, 0, n_y))
    else:
        counts = executor.run(n_y, lambda lo, hi: block(0, n, lo, hi))

    log_degenerate(StatisticKind.LM, sum(counts))
    return coef, r2


def roll_lm(x: PanelLike,
            y: PanelLike,
            width: int,
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
    Rolling weighted linear regression.

    For each response column ``m`` and time index ``t`` the coefficients
    solve ``Z'WZ b = Z'Wy`` over the window rows where every regressor and
    ``y[:, m]`` are present, with ``Z`` the (optionally centered and scaled)
    regressors preceded by a column of ones when ``intercept`` is True.
    R² is ``1 - sum(w e^2) / sum(w (y - ybar_w)^2)``.

    Args:
        x: Independent variables, shape (n,) or (n, p)
        y: Dependent variables, shape (n,) or (n, n_y)
        width: Window width, 1 <= width <= n
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
        RollingRegressionResult: One coefficient path (n, k) per response and
        R² of shape (n, n_y); DataFrames when x or y was a pandas object

    Raises:
        DimensionError: If x and y have different numbers of rows
        ParameterError: If width, min_obs or a flag is invalid

    Examples:
        >>> import numpy as np
        >>> from rollstat import roll_lm
        >>> rng = np.random.default_rng(1)
        >>> x = rng.standard_normal((50, 2))
        >>> y = 1.0 + x @ np.array([0.5, -2.0])
        >>> result = roll_lm(x, y, width=10)
        >>> np.round(result.coefficients[0][-1], 6)
        array([ 1. ,  0.5, -2. ])
    """
    call = prepare_regression(
        StatisticKind.LM, x, y, width, weights, intercept,
        center, center_x, center_y, scale, scale_x, scale_y,
        min_obs, complete_obs, na_restore, parallel_for, num_workers
    )

    coef, r2 = compute_lm(
        call.x, call.y, call.policy.admitted[0], call.policy.admitted[1],
        call.window.weights.as_kernel_array(), call.window.width, call.window.min_obs,
        call.flags, call.config
    )
    call.policy.restore_regression(coef, r2)

    return wrap_regression(coef, r2, call.x_meta, call.y_meta, call.flags.intercept,
                           "lm", call.window.width, call.metadata())
