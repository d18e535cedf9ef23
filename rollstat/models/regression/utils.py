# rollstat/models/regression/utils.py
"""
Argument handling shared by the rolling regressions.

Both regressions accept ``center`` and ``scale`` as shorthand for setting the
independent and dependent sides at once, with ``center_x``, ``center_y``,
``scale_x`` and ``scale_y`` overriding the shorthand side by side. The
shorthand is resolved here so the compute layer only sees the four per-side
flags.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import numpy as np

from rollstat.core.config import ExecutionConfig, resolve_execution_config
from rollstat.core.types import PanelLike, StatisticKind, WeightsLike
from rollstat.core.validation import validate_matching_rows
from rollstat.models.common import (
    WindowSettings, log_dispatch, resolve_flags, resolve_window
)
from rollstat.utils.adapters import PanelMeta, to_panel
from rollstat.utils.missing import MissingDataPolicy

# Set up module-level logger
logger = logging.getLogger("rollstat.models.regression.utils")


@dataclass(frozen=True)
class RegressionFlags:
    """
    Resolved per-side transformation flags.

    Attributes:
        intercept: Whether the design includes a column of ones
        center_x: Whether regressors are centered on their weighted means
        center_y: Whether responses are centered on their weighted means
        scale_x: Whether regressors are divided by their weighted standard deviations
        scale_y: Whether responses are divided by their weighted standard deviations
    """
    intercept: bool = True
    center_x: bool = False
    center_y: bool = False
    scale_x: bool = False
    scale_y: bool = False

    def to_dict(self) -> Dict[str, bool]:
        return {
            "intercept": self.intercept,
            "center_x": self.center_x,
            "center_y": self.center_y,
            "scale_x": self.scale_x,
            "scale_y": self.scale_y,
        }


def resolve_regression_flags(intercept: Any,
                             center: Any, center_x: Optional[Any], center_y: Optional[Any],
                             scale: Any, scale_x: Optional[Any], scale_y: Optional[Any]
                             ) -> RegressionFlags:
    """
    Resolve the ``center`` / ``scale`` shorthand into per-side flags.

    Examples:
        >>> resolve_regression_flags(True, True, None, False, False, None, None)
        RegressionFlags(intercept=True, center_x=True, center_y=False, scale_x=False, scale_y=False)
    """
    base = resolve_flags(intercept=intercept, center=center, scale=scale)
    sides = {
        "center_x": base["center"] if center_x is None else center_x,
        "center_y": base["center"] if center_y is None else center_y,
        "scale_x": base["scale"] if scale_x is None else scale_x,
        "scale_y": base["scale"] if scale_y is None else scale_y,
    }
    return RegressionFlags(intercept=base["intercept"], **resolve_flags(**sides))


@dataclass
class RegressionCall:
    """Everything the compute layer needs for one regression call."""
    x: np.ndarray
    y: np.ndarray
    x_meta: PanelMeta
    y_meta: PanelMeta
    window: WindowSettings
    flags: RegressionFlags
    policy: MissingDataPolicy
    config: ExecutionConfig

    def metadata(self, **extra: Any) -> Dict[str, Any]:
        """Call settings recorded on the result."""
        return {
            **self.window.to_dict(),
            **self.flags.to_dict(),
            "complete_obs": self.policy.casewise,
            "na_restore": self.policy.na_restore,
            "parallel_for": self.config.partition.value,
            **extra,
        }


def prepare_regression(kind: StatisticKind,
                       x: PanelLike, y: PanelLike, width: Any,
                       weights: Optional[WeightsLike], intercept: Any,
                       center: Any, center_x: Optional[Any], center_y: Optional[Any],
                       scale: Any, scale_x: Optional[Any], scale_y: Optional[Any],
                       min_obs: Optional[int], complete_obs: Any, na_restore: Any,
                       parallel_for: Optional[str], num_workers: Optional[int]) -> RegressionCall:
    """
    Validate the arguments of a rolling regression.

    Raises:
        DimensionError: If x and y have different numbers of rows, or the
            weights do not have length width
        ParameterError: If width, min_obs or a flag is invalid
    """
    x_panel, x_meta = to_panel(x, "x", prefix="x")
    y_panel, y_meta = to_panel(y, "y", prefix="y")
    validate_matching_rows(x_panel, y_panel)

    window = resolve_window(width, weights, min_obs, x_panel.shape[0])
    flags = resolve_regression_flags(intercept, center, center_x, center_y,
                                     scale, scale_x, scale_y)
    missing = resolve_flags(complete_obs=complete_obs, na_restore=na_restore)
    config = resolve_execution_config(parallel_for, num_workers)

    policy = MissingDataPolicy(x_panel, y_panel, complete_obs=missing["complete_obs"],
                               na_restore=missing["na_restore"])
    log_dispatch(kind, (x_panel.shape, y_panel.shape), window, config)

    return RegressionCall(x_panel, y_panel, x_meta, y_meta, window, flags, policy, config)


def regression_buffers(n_obs: int, n_regressors: int, n_responses: int,
                       intercept: bool) -> Tuple[np.ndarray, np.ndarray]:
    """NaN-filled coefficient ``(n_y, n, k)`` and R² ``(n, n_y)`` buffers."""
    k = n_regressors + (1 if intercept else 0)
    coef = np.full((n_responses, n_obs, k), np.nan)
    r2 = np.full((n_obs, n_responses), np.nan)
    return coef, r2
