# rollstat/models/decomposition/eigen.py
"""
Rolling eigen-decomposition of covariance or correlation matrices.

Eigenvalues are sorted in descending order at every time index, and each
eigenvector is sign-normalized so that its entry of largest magnitude is
positive. Without a fixed convention the sign of an eigenvector is arbitrary
and would flip between adjacent windows.
"""

import logging
from typing import Optional, Tuple

import numpy as np

from rollstat.core.config import ExecutionConfig, resolve_execution_config
from rollstat.core.results import RollingEigenResult
from rollstat.core.types import PanelLike, StatisticKind, WeightsLike
from rollstat.models.common import empty_output, log_dispatch, resolve_flags, resolve_window
from rollstat.models.decomposition._numba_core import eigen_block
from rollstat.models.decomposition.staged import run_staged
from rollstat.utils.adapters import to_panel, wrap_eigen
from rollstat.utils.missing import MissingDataPolicy

# Set up module-level logger
logger = logging.getLogger("rollstat.models.decomposition.eigen")


def compute_eigen(x: np.ndarray,
                  admitted: np.ndarray,
                  weights: np.ndarray,
                  width: int,
                  min_obs: int,
                  center: bool,
                  scale: bool,
                  config: ExecutionConfig) -> Tuple[np.ndarray, np.ndarray]:
    """
    Compute rolling eigenvalues and eigenvectors on validated buffers.

    Returns:
        Tuple containing:
            - values: Array of shape (n, p), descending at every time index
            - vectors: Array of shape (n, p, p), ``vectors[t, :, k]`` the k-th eigenvector
    """
    n, p = x.shape
    values = empty_output(n, p)
    vectors = empty_output(n, p, p)

    def decompose(cube: np.ndarray, lo: int, hi: int) -> int:
        return eigen_block(cube, lo, hi, values, vectors)

    skipped = run_staged(x, admitted, weights, width, min_obs, center, scale, config, decompose)
    logger.debug(f"roll_eigen: {skipped} windows without a defined matrix")
    return values, vectors


def roll_eigen(data: PanelLike,
               width: int,
               weights: Optional[WeightsLike] = None,
               center: bool = True,
               scale: bool = False,
               min_obs: Optional[int] = None,
               complete_obs: bool = True,
               na_restore: bool = False,
               parallel_for: Optional[str] = None,
               num_workers: Optional[int] = None) -> RollingEigenResult:
    """
    Rolling eigen-decomposition.

    At each time index the weighted covariance matrix (correlation matrix
    when ``scale=True``) of the trailing window is decomposed. Any missing
    entry in the matrix leaves the whole slice missing.

    Args:
        data: Panel of shape (n, p); NaN marks missing values
        width: Window width, 1 <= width <= n
        weights: Weights of length width, oldest offset first (default ones)
        center: Whether to center on the weighted means
        scale: Whether to decompose the correlation matrix
        min_obs: Minimum number of jointly admitted rows (default width)
        complete_obs: Drop a row from every pair when any column is missing
        na_restore: Return a missing slice at t when any ``x[t, :]`` was missing
        parallel_for: Partition axis, "rows" or "cols"
        num_workers: Number of worker threads

    Returns:
        RollingEigenResult: Eigenvalues (n, p) and eigenvectors (n, p, p)

    Examples:
        >>> import numpy as np
        >>> from rollstat import roll_eigen
        >>> x = np.random.default_rng(0).standard_normal((100, 3))
        >>> result = roll_eigen(x, width=20)
        >>> result.values.shape, result.vectors.shape
        ((100, 3), (100, 3, 3))
    """
    x, meta = to_panel(data)
    window = resolve_window(width, weights, min_obs, x.shape[0])
    flags = resolve_flags(center=center, scale=scale,
                          complete_obs=complete_obs, na_restore=na_restore)
    config = resolve_execution_config(parallel_for, num_workers)

    policy = MissingDataPolicy(x, complete_obs=flags["complete_obs"],
                               na_restore=flags["na_restore"])
    log_dispatch(StatisticKind.EIGEN, x.shape, window, config)

    values, vectors = compute_eigen(
        x, policy.admitted[0], window.weights.as_kernel_array(),
        window.width, window.min_obs, flags["center"], flags["scale"], config
    )
    policy.restore_rows(values)
    policy.restore_rows(vectors)

    metadata = {**window.to_dict(), **flags, "parallel_for": config.partition.value}
    return wrap_eigen(values, vectors, meta, window.width, metadata)
