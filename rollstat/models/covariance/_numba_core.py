"""
Numba-accelerated kernels for rolling covariance and correlation matrices.

The unit of work is one variable pair ``(a, b)`` with ``a <= b`` at one time
index. Both triangles of the ``(n, p, p)`` output are written from the same
value, so the matrices are exactly symmetric. A block covers pairs ``k_lo`` to
``k_hi - 1`` of a pair list and time indices ``t_lo`` to ``t_hi - 1``; by-time
and by-variable partitioning differ only in which block a worker receives.
"""

import logging

import numpy as np
from numba import jit

from rollstat.utils.window import window_start

# Set up module-level logger
logger = logging.getLogger("rollstat.models.covariance._numba_core")


@jit(nopython=True, nogil=True, cache=True)
def pair_moments(x: np.ndarray, admitted: np.ndarray, weights: np.ndarray,
                 width: int, t: int, a: int, b: int, center: bool):
    """
    Weighted cross moments of columns ``a`` and ``b`` over the rows of the
    window ending at ``t`` where both are admitted.

    Returns:
        Tuple of (count, ss_ab, ss_aa, ss_bb, denom) where the ``ss`` terms
        are weighted sums of products of deviations from the weighted means
        (from zero when ``center`` is False) and ``denom`` is the variance
        denominator, NaN when the admitted weights sum to zero
    """
    start = window_start(t, width)

    count = 0
    sum_w = 0.0
    sum_w2 = 0.0
    sum_wa = 0.0
    sum_wb = 0.0
    for i in range(start, t + 1):
        if admitted[i, a] and admitted[i, b]:
            w = weights[width - 1 - (t - i)]
            count += 1
            sum_w += w
            sum_w2 += w * w
            sum_wa += w * x[i, a]
            sum_wb += w * x[i, b]

    if count == 0 or not (sum_w > 0.0):
        return count, np.nan, np.nan, np.nan, np.nan

    if center:
        mean_a = sum_wa / sum_w
        mean_b = sum_wb / sum_w
        denom = sum_w - sum_w2 / sum_w
    else:
        mean_a = 0.0
        mean_b = 0.0
        denom = sum_w

    ss_ab = 0.0
    ss_aa = 0.0
    ss_bb = 0.0
    for i in range(start, t + 1):
        if admitted[i, a] and admitted[i, b]:
            w = weights[width - 1 - (t - i)]
            da = x[i, a] - mean_a
            db = x[i, b] - mean_b
            ss_ab += w * da * db
            ss_aa += w * da * da
            ss_bb += w * db * db

    return count, ss_ab, ss_aa, ss_bb, denom


@jit(nopython=True, nogil=True, cache=True)
def pair_value(x: np.ndarray, admitted: np.ndarray, weights: np.ndarray,
               width: int, min_obs: int, t: int, a: int, b: int,
               center: bool, scale: bool) -> float:
    """Covariance (or correlation when ``scale``) of columns ``a`` and ``b`` at ``t``."""
    count, ss_ab, ss_aa, ss_bb, denom = pair_moments(x, admitted, weights, width, t, a, b, center)
    if count < min_obs or not (denom > 0.0):
        return np.nan

    if not scale:
        return ss_ab / denom

    if not (ss_aa > 0.0) or not (ss_bb > 0.0):
        return np.nan
    if a == b:
        return 1.0
    return ss_ab / np.sqrt(ss_aa * ss_bb)


@jit(nopython=True, nogil=True, cache=True)
def roll_cov_block(x, admitted, weights, width, min_obs, center, scale,
                   pairs, k_lo, k_hi, t_lo, t_hi, out):
    """Fill ``out[t, a, b]`` and ``out[t, b, a]`` for a block of pairs and times."""
    for k in range(k_lo, k_hi):
        a = pairs[k, 0]
        b = pairs[k, 1]
        for t in range(t_lo, t_hi):
            value = pair_value(x, admitted, weights, width, min_obs, t, a, b, center, scale)
            out[t, a, b] = value
            out[t, b, a] = value
