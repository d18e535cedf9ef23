# rollstat/utils/window.py
"""
Trailing window indexing.

Every rolling statistic is evaluated over the window of rows ending at the
current index ``t``: rows ``max(0, t - width + 1)`` through ``t`` inclusive.
Windows at the start of the series are partial; whether a partial window
produces output is decided by the minimum-observations gate, not here.

The JIT helpers are called from inside every kernel; WindowIndexer is the
Python-side view of the same arithmetic.
"""

import logging
from typing import Iterator, Tuple

import numpy as np
from numba import jit

from rollstat.core.validation import validate_width

# Set up module-level logger
logger = logging.getLogger("rollstat.utils.window")


@jit(nopython=True, nogil=True, cache=True)
def window_start(t: int, width: int) -> int:
    """First row of the trailing window ending at ``t``."""
    start = t - width + 1
    if start < 0:
        start = 0
    return start


@jit(nopython=True, nogil=True, cache=True)
def weight_index(t: int, row: int, width: int) -> int:
    """Position in the weight vector for ``row`` inside the window ending at ``t``.

    The most recent row uses ``weights[width - 1]``, the row ``k`` steps back
    uses ``weights[width - 1 - k]``.
    """
    return width - 1 - (t - row)


class WindowIndexer:
    """
    Trailing window bounds for a series of ``n_obs`` observations.

    Args:
        n_obs: Number of observations in the series
        width: Window width, 1 <= width <= n_obs

    Raises:
        ParameterError: If width is outside [1, n_obs]

    Examples:
        >>> idx = WindowIndexer(5, 3)
        >>> idx.bounds(0)
        (0, 1)
        >>> idx.bounds(4)
        (2, 5)
    """

    def __init__(self, n_obs: int, width: int) -> None:
        self.n_obs = int(n_obs)
        self.width = validate_width(width, self.n_obs)

    def bounds(self, t: int) -> Tuple[int, int]:
        """Half-open row range ``[start, stop)`` of the window ending at ``t``.

        Raises:
            IndexError: If t is outside [0, n_obs)
        """
        if t < 0 or t >= self.n_obs:
            raise IndexError(f"time index {t} out of range for {self.n_obs} observations")
        return int(window_start(t, self.width)), t + 1

    def size(self, t: int) -> int:
        """Number of rows in the window ending at ``t``."""
        start, stop = self.bounds(t)
        return stop - start

    def is_partial(self, t: int) -> bool:
        """Whether the window ending at ``t`` holds fewer than ``width`` rows."""
        return self.size(t) < self.width

    def weight_positions(self, t: int) -> np.ndarray:
        """Weight vector positions aligned with the rows of window ``t``, oldest first."""
        start, stop = self.bounds(t)
        rows = np.arange(start, stop)
        return self.width - 1 - (t - rows)

    def __len__(self) -> int:
        return self.n_obs

    def __iter__(self) -> Iterator[Tuple[int, int, int]]:
        """Yield ``(t, start, stop)`` for every output position."""
        for t in range(self.n_obs):
            start, stop = self.bounds(t)
            yield t, start, stop

    def __repr__(self) -> str:
        return f"WindowIndexer(n_obs={self.n_obs}, width={self.width})"
