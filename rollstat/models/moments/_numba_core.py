"""
Numba-accelerated kernels for rolling moments.

Each kernel fills a rectangular block of the ``(n, p)`` output, time indices
``t_lo`` to ``t_hi - 1`` and columns ``j_lo`` to ``j_hi - 1``. The two
partition axes only choose which block a worker receives, so every output cell
is produced by the same arithmetic whichever axis is used.

All kernels share one signature so they can be dispatched from a table:

    kernel(x, admitted, weights, width, min_obs, center, scale,
           t_lo, t_hi, j_lo, j_hi, out)

Within a window, sums run from the oldest row to the most recent one.
"""

import logging

import numpy as np
from numba import jit

from rollstat.utils.window import window_start

# Set up module-level logger
logger = logging.getLogger("rollstat.models.moments._numba_core")

# ============================================================================
# Per-unit helpers
# ============================================================================

@jit(nopython=True, nogil=True, cache=True)
def _weighted_sums(x: np.ndarray, admitted: np.ndarray, weights: np.ndarray,
                   width: int, t: int, j: int):
    """
    Admitted count and weighted sums over the window ending at ``t``.

    Returns:
        Tuple of (count, sum of weights, sum of squared weights, weighted sum)
    """
    count = 0
    sum_w = 0.0
    sum_w2 = 0.0
    sum_wx = 0.0
    for i in range(window_start(t, width), t + 1):
        if admitted[i, j]:
            w = weights[width - 1 - (t - i)]
            count += 1
            sum_w += w
            sum_w2 += w * w
            sum_wx += w * x[i, j]
    return count, sum_w, sum_w2, sum_wx


@jit(nopython=True, nogil=True, cache=True)
def _window_center_and_var(x: np.ndarray, admitted: np.ndarray, weights: np.ndarray,
                           width: int, t: int, j: int, center: bool):
    """
    Location and variance of column ``j`` over the window ending at ``t``.

    The location is the weighted mean when ``center`` is True and zero
    otherwise. The variance divides the weighted sum of squares by
    ``sum_w - sum_w2 / sum_w`` when centering and by ``sum_w`` when not.

    Returns:
        Tuple of (count, location, variance); the variance is NaN when the
        denominator is not positive
    """
    count, sum_w, sum_w2, sum_wx = _weighted_sums(x, admitted, weights, width, t, j)
    if count == 0 or not (sum_w > 0.0):
        return count, np.nan, np.nan

    loc = sum_wx / sum_w if center else 0.0

    ss = 0.0
    for i in range(window_start(t, width), t + 1):
        if admitted[i, j]:
            dev = x[i, j] - loc
            ss += weights[width - 1 - (t - i)] * dev * dev

    if center:
        denom = sum_w - sum_w2 / sum_w
    else:
        denom = sum_w

    if not (denom > 0.0):
        return count, loc, np.nan
    return count, loc, ss / denom


# ============================================================================
# Block kernels
# ============================================================================

@jit(nopython=True, nogil=True, cache=True)
def roll_sum_block(x, admitted, weights, width, min_obs, center, scale,
                   t_lo, t_hi, j_lo, j_hi, out):
    """Weighted rolling sum."""
    for j in range(j_lo, j_hi):
        for t in range(t_lo, t_hi):
            count, sum_w, sum_w2, sum_wx = _weighted_sums(x, admitted, weights, width, t, j)
            out[t, j] = sum_wx if count >= min_obs else np.nan


@jit(nopython=True, nogil=True, cache=True)
def roll_prod_block(x, admitted, weights, width, min_obs, center, scale,
                    t_lo, t_hi, j_lo, j_hi, out):
    """Rolling product of the admitted values; weights are not applied."""
    for j in range(j_lo, j_hi):
        for t in range(t_lo, t_hi):
            count = 0
            prod = 1.0
            for i in range(window_start(t, width), t + 1):
                if admitted[i, j]:
                    count += 1
                    prod *= x[i, j]
            out[t, j] = prod if count >= min_obs else np.nan


@jit(nopython=True, nogil=True, cache=True)
def roll_mean_block(x, admitted, weights, width, min_obs, center, scale,
                    t_lo, t_hi, j_lo, j_hi, out):
    """Weighted rolling mean."""
    for j in range(j_lo, j_hi):
        for t in range(t_lo, t_hi):
            count, sum_w, sum_w2, sum_wx = _weighted_sums(x, admitted, weights, width, t, j)
            if count < min_obs or sum_w == 0.0:
                out[t, j] = np.nan
            else:
                out[t, j] = sum_wx / sum_w


@jit(nopython=True, nogil=True, cache=True)
def roll_var_block(x, admitted, weights, width, min_obs, center, scale,
                   t_lo, t_hi, j_lo, j_hi, out):
    """Weighted rolling variance."""
    for j in range(j_lo, j_hi):
        for t in range(t_lo, t_hi):
            count, loc, var = _window_center_and_var(x, admitted, weights, width, t, j, center)
            out[t, j] = var if count >= min_obs else np.nan


@jit(nopython=True, nogil=True, cache=True)
def roll_sd_block(x, admitted, weights, width, min_obs, center, scale,
                  t_lo, t_hi, j_lo, j_hi, out):
    """Weighted rolling standard deviation."""
    for j in range(j_lo, j_hi):
        for t in range(t_lo, t_hi):
            count, loc, var = _window_center_and_var(x, admitted, weights, width, t, j, center)
            out[t, j] = np.sqrt(var) if count >= min_obs else np.nan


@jit(nopython=True, nogil=True, cache=True)
def roll_scale_block(x, admitted, weights, width, min_obs, center, scale,
                     t_lo, t_hi, j_lo, j_hi, out):
    """
    Rolling standardization of the current observation.

    ``(x[t, j] - loc) / sd`` when ``scale`` is True, else ``x[t, j] - loc``,
    with the location and standard deviation of the window ending at ``t``.
    """
    for j in range(j_lo, j_hi):
        for t in range(t_lo, t_hi):
            if not admitted[t, j]:
                out[t, j] = np.nan
                continue

            count, loc, var = _window_center_and_var(x, admitted, weights, width, t, j, center)
            if count < min_obs or np.isnan(loc):
                out[t, j] = np.nan
                continue

            dev = x[t, j] - loc
            if scale:
                if var > 0.0:
                    out[t, j] = dev / np.sqrt(var)
                else:
                    out[t, j] = np.nan
            else:
                out[t, j] = dev
