# rollstat/models/common.py
"""
Argument resolution shared by the public rolling functions.

Every public function runs the same prologue before touching the engine:
window width, weights and minimum observation count are validated against
the panel, boolean flags are checked, and the ExecutionConfig of the call is
resolved. Only the resulting plain values are handed to the compute layer.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict

import numpy as np

from rollstat.core.config import ExecutionConfig
from rollstat.core.types import StatisticKind
from rollstat.core.validation import validate_flag, validate_min_obs, validate_width
from rollstat.utils.weights import WeightVector

# Set up module-level logger
logger = logging.getLogger("rollstat.models.common")


@dataclass(frozen=True)
class WindowSettings:
    """
    Validated window arguments of one call.

    Attributes:
        width: Window width
        weights: Per-offset weights, oldest first
        min_obs: Minimum number of admitted rows for a defined output
    """
    width: int
    weights: WeightVector
    min_obs: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "width": self.width,
            "min_obs": self.min_obs,
            "uniform_weights": self.weights.is_uniform,
        }


def resolve_window(width: Any, weights: Any, min_obs: Any, n_obs: int) -> WindowSettings:
    """Validate width, weights and min_obs against a panel of ``n_obs`` rows."""
    width = validate_width(width, n_obs)
    return WindowSettings(
        width=width,
        weights=WeightVector.from_any(weights, width),
        min_obs=validate_min_obs(min_obs, width),
    )


def resolve_flags(**flags: Any) -> Dict[str, bool]:
    """Validate boolean keyword flags, returning them as plain bools."""
    return {name: validate_flag(value, name) for name, value in flags.items()}


def log_dispatch(kind: StatisticKind, shape: tuple, window: WindowSettings,
                 config: ExecutionConfig) -> None:
    """Record what is about to be computed."""
    logger.debug(
        f"roll_{kind.value}: shape={shape}, width={window.width}, "
        f"min_obs={window.min_obs}, workers={config.num_workers}, "
        f"axis={config.partition.value}"
    )


def log_degenerate(kind: StatisticKind, n_degenerate: int) -> None:
    """Record the number of windows whose matrix was singular or rank deficient."""
    if n_degenerate:
        logger.debug(f"roll_{kind.value}: {n_degenerate} degenerate windows set to NaN")


def empty_output(*shape: int) -> np.ndarray:
    """NaN-filled float64 output buffer."""
    return np.full(shape, np.nan, dtype=np.float64)
