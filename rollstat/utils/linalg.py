# rollstat/utils/linalg.py
'''
Per-window linear algebra accelerated with Numba.

These routines run once per window inside the rolling kernels, from several
worker threads at once. They are compiled with ``nogil=True``, allocate only
their own outputs and never raise on degenerate input: a failed factorization
is reported through the returned ``ok`` flag so the caller can emit a missing
value for that window and carry on.

Functions:
    cholesky_factor: Lower Cholesky factor with a relative pivot test
    cholesky_solve: Solve a symmetric positive definite system
    cholesky_inverse_diag: Diagonal of the inverse of a symmetric positive definite matrix
    symmetric_eigen: Eigen-decomposition sorted descending with a fixed sign convention
    all_finite: Whether every entry of a matrix is finite
    weighted_least_squares: Weighted least squares fit with R-squared
'''

import numpy as np
from numba import jit


@jit(nopython=True, nogil=True, cache=True)
def all_finite(a: np.ndarray) -> bool:
    """Whether every entry of the 2-D array ``a`` is finite."""
    rows, cols = a.shape
    for i in range(rows):
        for j in range(cols):
            if not np.isfinite(a[i, j]):
                return False
    return True


@jit(nopython=True, nogil=True, cache=True)
def cholesky_factor(a: np.ndarray, tol: float):
    """
    Lower-triangular Cholesky factor of a symmetric matrix.

    A pivot ``d_k`` is accepted only if ``d_k > tol * a[k, k]``. The ratio
    ``d_k / a[k, k]`` is one minus the R² of column k on the preceding
    columns, so ``tol`` bounds the tolerated collinearity independently of
    the scale of the data.

    Args:
        a: Symmetric matrix (k x k); only the lower triangle is read
        tol: Relative pivot tolerance

    Returns:
        Tuple containing:
            - ok: False if the matrix is not numerically positive definite
            - lower: Cholesky factor (k x k), undefined when ok is False
    """
    k = a.shape[0]
    lower = np.zeros((k, k))

    for j in range(k):
        diag = a[j, j]
        s = diag
        for m in range(j):
            s -= lower[j, m] * lower[j, m]

        # Negated comparisons also catch NaN
        if not (diag > 0.0) or not (s > tol * diag):
            return False, lower

        ljj = np.sqrt(s)
        lower[j, j] = ljj
        for i in range(j + 1, k):
            s2 = a[i, j]
            for m in range(j):
                s2 -= lower[i, m] * lower[j, m]
            lower[i, j] = s2 / ljj

    return True, lower


@jit(nopython=True, nogil=True, cache=True)
def cholesky_solve(a: np.ndarray, b: np.ndarray, tol: float):
    """
    Solve ``a x = b`` for symmetric positive definite ``a``.

    Args:
        a: Symmetric matrix (k x k)
        b: Right-hand side (k,)
        tol: Relative pivot tolerance passed to cholesky_factor

    Returns:
        Tuple containing:
            - ok: False if ``a`` is singular to working precision
            - x: Solution (k,), NaN when ok is False
    """
    k = a.shape[0]
    x = np.full(k, np.nan)

    ok, lower = cholesky_factor(a, tol)
    if not ok:
        return False, x

    # Forward substitution: L z = b
    z = np.empty(k)
    for i in range(k):
        s = b[i]
        for m in range(i):
            s -= lower[i, m] * z[m]
        z[i] = s / lower[i, i]

    # Back substitution: L' x = z
    for i in range(k - 1, -1, -1):
        s = z[i]
        for m in range(i + 1, k):
            s -= lower[m, i] * x[m]
        x[i] = s / lower[i, i]

    return True, x


@jit(nopython=True, nogil=True, cache=True)
def cholesky_inverse_diag(a: np.ndarray, tol: float):
    """
    Diagonal of ``inv(a)`` for symmetric positive definite ``a``.

    Uses ``inv(a) = inv(L)' inv(L)``, so ``inv(a)[j, j]`` is the squared norm
    of column j of ``inv(L)``.

    Returns:
        Tuple containing:
            - ok: False if ``a`` is singular to working precision
            - diag: Diagonal of the inverse (k,), NaN when ok is False
    """
    k = a.shape[0]
    diag = np.full(k, np.nan)

    ok, lower = cholesky_factor(a, tol)
    if not ok:
        return False, diag

    # Column j of inv(L) by forward substitution on the unit vector e_j
    col = np.empty(k)
    for j in range(k):
        for i in range(k):
            if i < j:
                col[i] = 0.0
                continue
            s = 1.0 if i == j else 0.0
            for m in range(j, i):
                s -= lower[i, m] * col[m]
            col[i] = s / lower[i, i]

        total = 0.0
        for i in range(j, k):
            total += col[i] * col[i]
        diag[j] = total

    return True, diag


@jit(nopython=True, nogil=True, cache=True)
def symmetric_eigen(a: np.ndarray):
    """
    Eigen-decomposition of a symmetric matrix for use across rolling windows.

    Eigenvalues are returned in descending order. Each eigenvector is
    sign-normalized so that its entry of largest magnitude is positive (the
    first such entry on ties), which keeps the eigenvector stream continuous
    between heavily overlapping adjacent windows.

    Args:
        a: Symmetric matrix (p x p) with finite entries

    Returns:
        Tuple containing:
            - values: Eigenvalues (p,), descending
            - vectors: Eigenvectors (p x p), column k pairs with values[k]
    """
    p = a.shape[0]
    vals, vecs = np.linalg.eigh(np.ascontiguousarray(a))

    values = np.empty(p)
    vectors = np.empty((p, p))
    for k in range(p):
        src = p - 1 - k
        values[k] = vals[src]

        best = 0
        best_abs = -1.0
        for i in range(p):
            mag = abs(vecs[i, src])
            if mag > best_abs:
                best_abs = mag
                best = i

        sign = -1.0 if vecs[best, src] < 0.0 else 1.0
        for i in range(p):
            vectors[i, k] = sign * vecs[i, src]

    return values, vectors


@jit(nopython=True, nogil=True, cache=True)
def weighted_least_squares(z: np.ndarray, y: np.ndarray, w: np.ndarray, tol: float):
    """
    Weighted least squares through the normal equations ``Z'WZ b = Z'Wy``.

    Args:
        z: Design matrix (m x k)
        y: Response (m,)
        w: Observation weights (m,)
        tol: Relative pivot tolerance passed to cholesky_factor

    Returns:
        Tuple containing:
            - ok: False if ``Z'WZ`` is singular to working precision
            - beta: Coefficients (k,), NaN when ok is False
            - r2: ``1 - sum(w e^2) / sum(w (y - ybar_w)^2)``, NaN when the
              response has no weighted variation
    """
    m, k = z.shape
    a = np.zeros((k, k))
    b = np.zeros(k)
    for i in range(m):
        wi = w[i]
        for r in range(k):
            wz = wi * z[i, r]
            b[r] += wz * y[i]
            for c in range(r + 1):
                a[r, c] += wz * z[i, c]
    for r in range(k):
        for c in range(r):
            a[c, r] = a[r, c]

    ok, beta = cholesky_solve(a, b, tol)
    if not ok:
        return False, beta, np.nan

    sum_w = 0.0
    sum_wy = 0.0
    for i in range(m):
        sum_w += w[i]
        sum_wy += w[i] * y[i]
    if not (sum_w > 0.0):
        return True, beta, np.nan
    y_bar = sum_wy / sum_w

    sse = 0.0
    sst = 0.0
    for i in range(m):
        fitted = 0.0
        for r in range(k):
            fitted += z[i, r] * beta[r]
        resid = y[i] - fitted
        dev = y[i] - y_bar
        sse += w[i] * resid * resid
        sst += w[i] * dev * dev

    if not (sst > 0.0):
        return True, beta, np.nan
    return True, beta, 1.0 - sse / sst
