"""
Numba-accelerated kernels for rolling matrix decompositions.

Both kernels read a precomputed ``(n, p, p)`` covariance (or correlation)
cube and process the time indices ``t_lo`` to ``t_hi - 1``. A matrix with any
non-finite entry leaves its output slice missing.
"""

import logging

import numpy as np
from numba import jit

from rollstat.utils.linalg import all_finite, cholesky_inverse_diag, symmetric_eigen

# Set up module-level logger
logger = logging.getLogger("rollstat.models.decomposition._numba_core")


@jit(nopython=True, nogil=True, cache=True)
def eigen_block(cube: np.ndarray, t_lo: int, t_hi: int,
                values: np.ndarray, vectors: np.ndarray) -> int:
    """
    Eigen-decompose ``cube[t]`` for every t in the block.

    Args:
        cube: Covariance stack (n, p, p)
        t_lo: First time index
        t_hi: One past the last time index
        values: Output eigenvalues (n, p), descending
        vectors: Output eigenvectors (n, p, p); ``vectors[t, :, k]`` pairs with ``values[t, k]``

    Returns:
        Number of time indices whose matrix was not finite
    """
    p = cube.shape[1]
    skipped = 0
    for t in range(t_lo, t_hi):
        mat = cube[t]
        if not all_finite(mat):
            skipped += 1
            continue
        vals, vecs = symmetric_eigen(mat)
        for k in range(p):
            values[t, k] = vals[k]
            for i in range(p):
                vectors[t, i, k] = vecs[i, k]
    return skipped


@jit(nopython=True, nogil=True, cache=True)
def vif_block(cube: np.ndarray, tol: float, t_lo: int, t_hi: int,
              out: np.ndarray) -> int:
    """
    Variance inflation factors ``C[j, j] * inv(C)[j, j]`` for every t in the block.

    Args:
        cube: Covariance stack (n, p, p)
        tol: Relative pivot tolerance of the Cholesky factorization
        t_lo: First time index
        t_hi: One past the last time index
        out: Output (n, p)

    Returns:
        Number of finite matrices found singular
    """
    p = cube.shape[1]
    singular = 0
    for t in range(t_lo, t_hi):
        mat = cube[t]
        if not all_finite(mat):
            continue
        ok, inv_diag = cholesky_inverse_diag(mat, tol)
        if not ok:
            singular += 1
            continue
        for j in range(p):
            out[t, j] = mat[j, j] * inv_diag[j]
    return singular
