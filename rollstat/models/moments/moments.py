# rollstat/models/moments/moments.py
"""
Rolling sums, products, means, variances, standard deviations and
standardized values.

All six statistics produce one output per cell of the input panel. The
public functions validate their arguments, build the missing-data policy and
the execution settings of the call, and hand plain float64 buffers to
``compute_moment``, which fans the work out across worker threads.

Examples:
    >>> import numpy as np
    >>> from rollstat import roll_mean
    >>> roll_mean(np.array([1.0, 2.0, 3.0, 4.0, 5.0]), width=3)
    array([nan, nan,  2.,  3.,  4.])
"""

import logging
from typing import Any, Dict, Optional

import numpy as np

from rollstat.core.config import ExecutionConfig, resolve_execution_config
from rollstat.core.types import PanelLike, PartitionAxis, RollingOutput, StatisticKind, WeightsLike
from rollstat.models.common import log_dispatch, resolve_flags, resolve_window, empty_output
from rollstat.models.moments._numba_core import (
    roll_mean_block,
    roll_prod_block,
    roll_scale_block,
    roll_sd_block,
    roll_sum_block,
    roll_var_block,
)
from rollstat.utils.adapters import to_panel, wrap_elementwise
from rollstat.utils.missing import MissingDataPolicy
from rollstat.utils.parallel import ParallelExecutor

# Set up module-level logger
logger = logging.getLogger("rollstat.models.moments.moments")

MOMENT_KERNELS = {
    StatisticKind.SUM: roll_sum_block,
    StatisticKind.PROD: roll_prod_block,
    StatisticKind.MEAN: roll_mean_block,
    StatisticKind.VAR: roll_var_block,
    StatisticKind.SD: roll_sd_block,
    StatisticKind.SCALE: roll_scale_block,
}


def compute_moment(kind: StatisticKind,
                   x: np.ndarray,
                   admitted: np.ndarray,
                   weights: np.ndarray,
                   width: int,
                   min_obs: int,
                   center: bool,
                   scale: bool,
                   config: ExecutionConfig) -> np.ndarray:
    """
    Compute an elementwise rolling statistic on validated buffers.

    Args:
        kind: One of the elementwise statistic kinds
        x: Panel of shape (n, p)
        admitted: Boolean mask of shape (n, p) of the cells the kernel may use
        weights: Weight vector of length width, oldest offset first
        width: Window width
        min_obs: Minimum number of admitted rows
        center: Whether variances are taken around the weighted mean
        scale: Whether standardized values are divided by the standard deviation
        config: Execution settings of the call

    Returns:
        np.ndarray: Output of shape (n, p)
    """
    kernel = MOMENT_KERNELS[kind]
    n, p = x.shape
    out = empty_output(n, p)
    executor = ParallelExecutor(config)

    if config.partition is PartitionAxis.BY_TIME:
        def task(lo: int, hi: int) -> None:
            kernel(x, admitted, weights, width, min_obs, center, scale, lo, hi, 0, p, out)
        executor.run(n, task)
    else:
        def task(lo: int, hi: int) -> None:
            kernel(x, admitted, weights, width, min_obs, center, scale, 0, n, lo, hi, out)
        executor.run(p, task)

    return out


def _roll_moment(kind: StatisticKind,
                 data: PanelLike,
                 width: int,
                 weights: Optional[WeightsLike],
                 center: bool,
                 scale: bool,
                 min_obs: Optional[int],
                 complete_obs: bool,
                 na_restore: bool,
                 parallel_for: Optional[str],
                 num_workers: Optional[int]) -> RollingOutput:
    x, meta = to_panel(data)
    window = resolve_window(width, weights, min_obs, x.shape[0])
    flags: Dict[str, Any] = resolve_flags(center=center, scale=scale,
                                          complete_obs=complete_obs, na_restore=na_restore)
    config = resolve_execution_config(parallel_for, num_workers)

    policy = MissingDataPolicy(x, complete_obs=flags["complete_obs"],
                               na_restore=flags["na_restore"])
    log_dispatch(kind, x.shape, window, config)

    out = compute_moment(
        kind, x, policy.admitted[0], window.weights.as_kernel_array(),
        window.width, window.min_obs, flags["center"], flags["scale"], config
    )
    policy.restore_cells(out)
    return wrap_elementwise(out, meta)


def roll_sum(data: PanelLike,
             width: int,
             weights: Optional[WeightsLike] = None,
             min_obs: Optional[int] = None,
             complete_obs: bool = False,
             na_restore: bool = False,
             parallel_for: Optional[str] = None,
             num_workers: Optional[int] = None) -> RollingOutput:
    """
    Rolling weighted sum.

    At each time index the admitted values of each column in the trailing
    window are multiplied by their offset weight and summed.

    Args:
        data: Panel of shape (n,) or (n, p); NaN marks missing values
        width: Window width, 1 <= width <= n
        weights: Weights of length width, oldest offset first (default ones)
        min_obs: Minimum number of admitted rows for a defined value (default width)
        complete_obs: Drop a row from every column when any column is missing
        na_restore: Return NaN wherever the input cell was missing
        parallel_for: Partition axis, "rows" (by time) or "cols" (by column)
        num_workers: Number of worker threads (default: configured or CPU count)

    Returns:
        Rolling sums in the container type of ``data``

    Raises:
        ParameterError: If width, min_obs or a flag is invalid
        DimensionError: If the weights do not have length width
    """
    return _roll_moment(StatisticKind.SUM, data, width, weights, False, False,
                        min_obs, complete_obs, na_restore, parallel_for, num_workers)


def roll_prod(data: PanelLike,
              width: int,
              weights: Optional[WeightsLike] = None,
              min_obs: Optional[int] = None,
              complete_obs: bool = False,
              na_restore: bool = False,
              parallel_for: Optional[str] = None,
              num_workers: Optional[int] = None) -> RollingOutput:
    """
    Rolling product of the admitted values in each window.

    Weights are validated for consistency with the other statistics but do
    not enter the product. Arguments are as for ``roll_sum``.
    """
    return _roll_moment(StatisticKind.PROD, data, width, weights, False, False,
                        min_obs, complete_obs, na_restore, parallel_for, num_workers)


def roll_mean(data: PanelLike,
              width: int,
              weights: Optional[WeightsLike] = None,
              min_obs: Optional[int] = None,
              complete_obs: bool = False,
              na_restore: bool = False,
              parallel_for: Optional[str] = None,
              num_workers: Optional[int] = None) -> RollingOutput:
    """
    Rolling weighted mean, ``sum(w * x) / sum(w)`` over the admitted rows.

    Undefined when the admitted weights sum to zero. Arguments are as for
    ``roll_sum``.
    """
    return _roll_moment(StatisticKind.MEAN, data, width, weights, False, False,
                        min_obs, complete_obs, na_restore, parallel_for, num_workers)


def roll_var(data: PanelLike,
             width: int,
             weights: Optional[WeightsLike] = None,
             center: bool = True,
             min_obs: Optional[int] = None,
             complete_obs: bool = False,
             na_restore: bool = False,
             parallel_for: Optional[str] = None,
             num_workers: Optional[int] = None) -> RollingOutput:
    """
    Rolling weighted variance.

    With ``center=True`` the weighted sum of squared deviations from the
    weighted mean is divided by ``sum(w) - sum(w**2) / sum(w)``, which is
    ``n - 1`` for unit weights. With ``center=False`` the squares are taken
    around zero and divided by ``sum(w)``, giving the weighted mean of
    squares. A non-positive denominator gives NaN.

    Args:
        data: Panel of shape (n,) or (n, p)
        width: Window width
        weights: Weights of length width, oldest offset first (default ones)
        center: Whether to center on the weighted mean
        min_obs: Minimum number of admitted rows (default width)
        complete_obs: Drop a row from every column when any column is missing
        na_restore: Return NaN wherever the input cell was missing
        parallel_for: Partition axis, "rows" or "cols"
        num_workers: Number of worker threads

    Returns:
        Rolling variances in the container type of ``data``
    """
    return _roll_moment(StatisticKind.VAR, data, width, weights, center, False,
                        min_obs, complete_obs, na_restore, parallel_for, num_workers)


def roll_sd(data: PanelLike,
            width: int,
            weights: Optional[WeightsLike] = None,
            center: bool = True,
            min_obs: Optional[int] = None,
            complete_obs: bool = False,
            na_restore: bool = False,
            parallel_for: Optional[str] = None,
            num_workers: Optional[int] = None) -> RollingOutput:
    """Rolling weighted standard deviation, the square root of ``roll_var``."""
    return _roll_moment(StatisticKind.SD, data, width, weights, center, False,
                        min_obs, complete_obs, na_restore, parallel_for, num_workers)


def roll_scale(data: PanelLike,
               width: int,
               weights: Optional[WeightsLike] = None,
               center: bool = True,
               scale: bool = True,
               min_obs: Optional[int] = None,
               complete_obs: bool = False,
               na_restore: bool = False,
               parallel_for: Optional[str] = None,
               num_workers: Optional[int] = None) -> RollingOutput:
    """
    Rolling standardization of the most recent observation.

    Returns ``(x[t] - m) / s`` where ``m`` is the weighted mean of the window
    ending at ``t`` (zero when ``center=False``) and ``s`` its weighted
    standard deviation as in ``roll_sd``; with ``scale=False`` only the
    location is removed. Undefined when ``x[t]`` itself is missing or ``s``
    is not positive.

    Args:
        data: Panel of shape (n,) or (n, p)
        width: Window width
        weights: Weights of length width, oldest offset first (default ones)
        center: Whether to subtract the weighted mean
        scale: Whether to divide by the weighted standard deviation
        min_obs: Minimum number of admitted rows (default width)
        complete_obs: Drop a row from every column when any column is missing
        na_restore: Return NaN wherever the input cell was missing
        parallel_for: Partition axis, "rows" or "cols"
        num_workers: Number of worker threads

    Returns:
        Standardized values in the container type of ``data``
    """
    return _roll_moment(StatisticKind.SCALE, data, width, weights, center, scale,
                        min_obs, complete_obs, na_restore, parallel_for, num_workers)
