# rollstat/models/decomposition/vif.py
"""
Rolling variance inflation factors.

The VIF of column j is the diagonal entry of the inverse correlation matrix,
``1 / (1 - R_j^2)`` where ``R_j^2`` comes from regressing column j on the
others. It is computed as ``C[j, j] * inv(C)[j, j]`` from the window's
covariance matrix, which is the same quantity and is invariant to scaling.
"""

import logging
from typing import Optional

import numpy as np

from rollstat.core.config import ExecutionConfig, resolve_execution_config
from rollstat.core.types import PanelLike, RollingOutput, StatisticKind, WeightsLike
from rollstat.models.common import (
    empty_output, log_degenerate, log_dispatch, resolve_flags, resolve_window
)
from rollstat.models.decomposition._numba_core import vif_block
from rollstat.models.decomposition.staged import run_staged
from rollstat.utils.adapters import to_panel, wrap_elementwise
from rollstat.utils.missing import MissingDataPolicy

# Set up module-level logger
logger = logging.getLogger("rollstat.models.decomposition.vif")


def compute_vif(x: np.ndarray,
                admitted: np.ndarray,
                weights: np.ndarray,
                width: int,
                min_obs: int,
                center: bool,
                scale: bool,
                config: ExecutionConfig) -> np.ndarray:
    """
    Compute rolling variance inflation factors on validated buffers.

    A singular window matrix leaves the whole slice at that time index missing.

    Returns:
        np.ndarray: Array of shape (n, p)
    """
    n, p = x.shape
    out = empty_output(n, p)
    tol = config.rank_tolerance

    def decompose(cube: np.ndarray, lo: int, hi: int) -> int:
        return vif_block(cube, tol, lo, hi, out)

    singular = run_staged(x, admitted, weights, width, min_obs, center, scale, config, decompose)
    log_degenerate(StatisticKind.VIF, singular)
    return out


def roll_vif(data: PanelLike,
             width: int,
             weights: Optional[WeightsLike] = None,
             center: bool = False,
             scale: bool = False,
             min_obs: Optional[int] = None,
             complete_obs: bool = True,
             na_restore: bool = False,
             parallel_for: Optional[str] = None,
             num_workers: Optional[int] = None) -> RollingOutput:
    """
    Rolling variance inflation factors.

    Args:
        data: Panel of shape (n, p); NaN marks missing values
        width: Window width, 1 <= width <= n
        weights: Weights of length width, oldest offset first (default ones)
        center: Whether to center on the weighted means
        scale: Whether to work from the correlation matrix
        min_obs: Minimum number of jointly admitted rows (default width)
        complete_obs: Drop a row from every pair when any column is missing
        na_restore: Return NaN wherever the input cell was missing
        parallel_for: Partition axis, "rows" or "cols"
        num_workers: Number of worker threads

    Returns:
        VIFs of shape (n, p), at least one wherever defined, in the container
        type of ``data``
    """
    x, meta = to_panel(data)
    window = resolve_window(width, weights, min_obs, x.shape[0])
    flags = resolve_flags(center=center, scale=scale,
                          complete_obs=complete_obs, na_restore=na_restore)
    config = resolve_execution_config(parallel_for, num_workers)

    policy = MissingDataPolicy(x, complete_obs=flags["complete_obs"],
                               na_restore=flags["na_restore"])
    log_dispatch(StatisticKind.VIF, x.shape, window, config)

    out = compute_vif(
        x, policy.admitted[0], window.weights.as_kernel_array(),
        window.width, window.min_obs, flags["center"], flags["scale"], config
    )
    policy.restore_cells(out)
    return wrap_elementwise(out, meta)
