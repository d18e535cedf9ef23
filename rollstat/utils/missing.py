# rollstat/utils/missing.py
"""
Missing-data policy shared by every rolling statistic.

A cell is valid when it is not NaN. Which valid cells a kernel may use
depends on the completeness mode:

* pairwise (``complete_obs=False``): each variable, or pair of variables, is
  judged on its own cells only;
* casewise (``complete_obs=True``): a row is dropped from every statistic of
  the call if any variable taking part in the call is missing in that row.

The resulting *admitted* masks are computed once per call and only read by
the kernels. After computation, ``na_restore`` forces outputs back to NaN
wherever the source cell that defines them was missing.
"""

import logging
from typing import List

import numpy as np

from rollstat.core.types import CompletenessMode
from rollstat.utils.window import window_start

# Set up module-level logger
logger = logging.getLogger("rollstat.utils.missing")


class MissingDataPolicy:
    """
    Validity masks and restore rules for one call.

    Args:
        panels: The ``(n, p_i)`` float64 panels taking part in the call; for
            regressions the independent panel first, then the dependent one
        complete_obs: True for casewise deletion, False for pairwise
        na_restore: Whether outputs are re-blanked where their source was missing

    Attributes:
        mode: The completeness mode
        valid: Per-panel ValidityMask, True where the cell is not NaN
        row_valid: True where every variable of every panel is valid
        admitted: Per-panel masks the kernels use
    """

    def __init__(self, *panels: np.ndarray, complete_obs: bool = False,
                 na_restore: bool = False) -> None:
        if not panels:
            raise ValueError("at least one panel is required")

        self.mode = CompletenessMode.from_complete_obs(complete_obs)
        self.na_restore = na_restore

        self.valid: List[np.ndarray] = [~np.isnan(panel) for panel in panels]
        self.row_valid = np.logical_and.reduce([mask.all(axis=1) for mask in self.valid])

        if self.mode is CompletenessMode.CASEWISE:
            self.admitted = [
                np.ascontiguousarray(mask & self.row_valid[:, None]) for mask in self.valid
            ]
        else:
            self.admitted = [np.ascontiguousarray(mask) for mask in self.valid]

        logger.debug(
            f"Missing-data policy: mode={self.mode.value}, "
            f"{int((~self.row_valid).sum())} incomplete rows of {self.row_valid.shape[0]}"
        )

    @property
    def casewise(self) -> bool:
        return self.mode is CompletenessMode.CASEWISE

    def is_valid(self, row: int, var: int, panel: int = 0) -> bool:
        """Whether cell ``(row, var)`` of ``panel`` is admitted under the policy."""
        return bool(self.admitted[panel][row, var])

    def effective_count(self, t: int, width: int, *variables: int, panel: int = 0) -> int:
        """Number of window rows ending at ``t`` where all ``variables`` are admitted.

        With no variables given, every variable of the panel must be admitted.
        """
        mask = self.admitted[panel]
        cols = list(variables) if variables else list(range(mask.shape[1]))
        start = window_start(t, width)
        return int(mask[start:t + 1][:, cols].all(axis=1).sum())

    # ---- restore rules ----

    def restore_cells(self, out: np.ndarray, panel: int = 0) -> np.ndarray:
        """Elementwise outputs: blank cell ``(t, j)`` where the source cell is missing."""
        if self.na_restore:
            out[~self.valid[panel]] = np.nan
        return out

    def restore_pairs(self, out: np.ndarray, panel: int = 0) -> np.ndarray:
        """Matrix stacks ``(n, p, p)``: blank ``(t, a, b)`` where column a or b is missing at t."""
        if self.na_restore:
            missing = ~self.valid[panel]
            out[missing[:, :, None] | missing[:, None, :]] = np.nan
        return out

    def restore_rows(self, out: np.ndarray, panel: int = 0) -> np.ndarray:
        """Outputs indexed by time first: blank the whole slice at t if any source cell is missing."""
        if self.na_restore:
            out[~self.valid[panel].all(axis=1)] = np.nan
        return out

    def restore_regression(self, coefficients: np.ndarray, r_squared: np.ndarray) -> None:
        """Regression outputs: blank ``(t, m)`` where any x or ``y[:, m]`` is missing at t.

        Args:
            coefficients: Array of shape ``(n_y, n, k)``
            r_squared: Array of shape ``(n, n_y)``
        """
        if not self.na_restore:
            return
        x_missing = ~self.valid[0].all(axis=1)
        y_valid = self.valid[1]
        for m in range(y_valid.shape[1]):
            rows = x_missing | ~y_valid[:, m]
            coefficients[m, rows, :] = np.nan
            r_squared[rows, m] = np.nan


def pair_index(n_vars: int) -> np.ndarray:
    """Upper-triangle variable pairs ``(a, b)`` with ``a <= b``, row-major.

    Examples:
        >>> pair_index(2)
        array([[0, 0],
               [0, 1],
               [1, 1]])
    """
    a, b = np.triu_indices(n_vars)
    return np.ascontiguousarray(np.column_stack((a, b)).astype(np.int64))

