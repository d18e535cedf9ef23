"""
Numba-accelerated kernels for rolling regressions.

The unit of work is one response column ``m`` at one time index ``t``. A
window row enters the unit when every independent variable and ``y[:, m]``
are admitted there; under casewise deletion the admitted masks already
exclude rows where any column of either panel is missing.

Block kernels cover time indices ``t_lo`` to ``t_hi - 1`` and response
columns ``m_lo`` to ``m_hi - 1``, writing ``coef[m, t, :]`` and ``r2[t, m]``,
and return the number of units whose design was degenerate.
"""

import logging

import numpy as np
from numba import jit

from rollstat.utils.linalg import all_finite, symmetric_eigen, weighted_least_squares
from rollstat.utils.window import window_start

# Set up module-level logger
logger = logging.getLogger("rollstat.models.regression._numba_core")

# ============================================================================
# Per-unit helpers
# ============================================================================

@jit(nopython=True, nogil=True, cache=True)
def _unit_rows(x, y, adm_x, adm_y, weights, width, t, m):
    """
    Gather the admitted rows of the window ending at ``t`` for response ``m``.

    Returns:
        Tuple of (count, x rows (count x p), y rows (count x 1), row weights (count,))
    """
    p = x.shape[1]
    start = window_start(t, width)
    size = t + 1 - start

    xw = np.empty((size, p))
    yw = np.empty((size, 1))
    ww = np.empty(size)

    count = 0
    for i in range(start, t + 1):
        if not adm_y[i, m]:
            continue
        complete = True
        for j in range(p):
            if not adm_x[i, j]:
                complete = False
                break
        if not complete:
            continue

        for j in range(p):
            xw[count, j] = x[i, j]
        yw[count, 0] = y[i, m]
        ww[count] = weights[width - 1 - (t - i)]
        count += 1

    return count, xw[:count], yw[:count], ww[:count]


@jit(nopython=True, nogil=True, cache=True)
def _standardize(values, w, center, scale) -> bool:
    """
    Center and/or scale the columns of ``values`` in place.

    Locations are weighted means; scales are weighted standard deviations with
    the same denominator as the rolling variance. Returns False when a scale
    is requested but not positive.
    """
    count, cols = values.shape
    if not center and not scale:
        return True

    sum_w = 0.0
    sum_w2 = 0.0
    for i in range(count):
        sum_w += w[i]
        sum_w2 += w[i] * w[i]
    if not (sum_w > 0.0):
        return False

    if center:
        denom = sum_w - sum_w2 / sum_w
    else:
        denom = sum_w

    for j in range(cols):
        loc = 0.0
        if center:
            s = 0.0
            for i in range(count):
                s += w[i] * values[i, j]
            loc = s / sum_w

        sd = 1.0
        if scale:
            ss = 0.0
            for i in range(count):
                dev = values[i, j] - loc
                ss += w[i] * dev * dev
            if not (denom > 0.0) or not (ss > 0.0):
                return False
            sd = np.sqrt(ss / denom)

        for i in range(count):
            values[i, j] = (values[i, j] - loc) / sd

    return True


@jit(nopython=True, nogil=True, cache=True)
def _design(regressors, intercept):
    """Prepend a column of ones to ``regressors`` when ``intercept`` is True."""
    count, cols = regressors.shape
    offset = 1 if intercept else 0
    z = np.empty((count, cols + offset))
    for i in range(count):
        if intercept:
            z[i, 0] = 1.0
        for j in range(cols):
            z[i, j + offset] = regressors[i, j]
    return z


# ============================================================================
# Block kernels
# ============================================================================

@jit(nopython=True, nogil=True, cache=True)
def roll_lm_block(x, y, adm_x, adm_y, weights, width, min_obs, intercept,
                  center_x, center_y, scale_x, scale_y, tol,
                  t_lo, t_hi, m_lo, m_hi, coef, r2) -> int:
    """Rolling weighted least squares of ``y[:, m]`` on ``x``."""
    p = x.shape[1]
    offset = 1 if intercept else 0
    degenerate = 0

    for m in range(m_lo, m_hi):
        for t in range(t_lo, t_hi):
            count, xw, yw, ww = _unit_rows(x, y, adm_x, adm_y, weights, width, t, m)
            if count < min_obs:
                continue

            if not _standardize(xw, ww, center_x, scale_x) or \
                    not _standardize(yw, ww, center_y, scale_y):
                degenerate += 1
                continue

            z = _design(xw, intercept)
            ok, beta, r2_value = weighted_least_squares(z, yw[:, 0], ww, tol)
            if not ok:
                degenerate += 1
                continue

            for r in range(p + offset):
                coef[m, t, r] = beta[r]
            r2[t, m] = r2_value

    return degenerate


@jit(nopython=True, nogil=True, cache=True)
def roll_pcr_block(x, y, adm_x, adm_y, weights, width, min_obs, intercept,
                   center_x, center_y, scale_x, scale_y, tol, comps,
                   t_lo, t_hi, m_lo, m_hi, coef, r2) -> int:
    """
    Rolling principal component regression of ``y[:, m]`` on ``x``.

    The weighted second-moment matrix ``X'WX / sum(w)`` of the transformed
    regressors is decomposed, the selected eigenvectors (``comps``, zero-based,
    in the caller's order) turn the regressors into scores, ``y`` is regressed
    on the scores and the slopes are mapped back to the regressors.
    """
    p = x.shape[1]
    n_comps = comps.shape[0]
    offset = 1 if intercept else 0
    degenerate = 0

    for m in range(m_lo, m_hi):
        for t in range(t_lo, t_hi):
            count, xw, yw, ww = _unit_rows(x, y, adm_x, adm_y, weights, width, t, m)
            if count < min_obs:
                continue

            if not _standardize(xw, ww, center_x, scale_x) or \
                    not _standardize(yw, ww, center_y, scale_y):
                degenerate += 1
                continue

            sum_w = 0.0
            for i in range(count):
                sum_w += ww[i]
            if not (sum_w > 0.0):
                degenerate += 1
                continue

            moments = np.zeros((p, p))
            for i in range(count):
                for a in range(p):
                    wa = ww[i] * xw[i, a]
                    for b in range(a + 1):
                        moments[a, b] += wa * xw[i, b]
            for a in range(p):
                for b in range(a + 1):
                    moments[a, b] = moments[a, b] / sum_w
                    moments[b, a] = moments[a, b]

            if not all_finite(moments):
                degenerate += 1
                continue
            values, vectors = symmetric_eigen(moments)

            selected = np.empty((p, n_comps))
            for c in range(n_comps):
                for j in range(p):
                    selected[j, c] = vectors[j, comps[c]]

            scores = np.zeros((count, n_comps))
            for i in range(count):
                for c in range(n_comps):
                    s = 0.0
                    for j in range(p):
                        s += xw[i, j] * selected[j, c]
                    scores[i, c] = s

            z = _design(scores, intercept)
            ok, gamma, r2_value = weighted_least_squares(z, yw[:, 0], ww, tol)
            if not ok:
                degenerate += 1
                continue

            if intercept:
                coef[m, t, 0] = gamma[0]
            for j in range(p):
                s = 0.0
                for c in range(n_comps):
                    s += selected[j, c] * gamma[c + offset]
                coef[m, t, j + offset] = s
            r2[t, m] = r2_value

    return degenerate
