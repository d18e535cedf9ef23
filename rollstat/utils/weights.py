# rollstat/utils/weights.py
"""
Window weights.

A WeightVector holds one coefficient per window offset, ordered from the
oldest row of the window (index 0) to the most recent (index ``width - 1``).
The same vector is applied to every window; weights are a fixed shape over
offsets and are never re-anchored to calendar time.
"""

from dataclasses import dataclass
from typing import Any, Optional

import numpy as np

from rollstat.core.exceptions import raise_parameter_error
from rollstat.core.validation import validate_weights


@dataclass(frozen=True)
class WeightVector:
    """
    Immutable per-offset window weights.

    Attributes:
        values: float64 weights, oldest offset first

    Examples:
        >>> WeightVector.exponential(4, 0.5).values
        array([0.125, 0.25 , 0.5  , 1.   ])
    """

    values: np.ndarray

    def __post_init__(self) -> None:
        values = np.ascontiguousarray(self.values, dtype=np.float64)
        values.setflags(write=False)
        object.__setattr__(self, "values", values)

    @classmethod
    def from_any(cls, weights: Optional[Any], width: int) -> "WeightVector":
        """Validate user-supplied weights (None means unit weights)."""
        return cls(validate_weights(weights, width))

    @classmethod
    def uniform(cls, width: int) -> "WeightVector":
        """Unit weights, the unweighted case."""
        return cls(np.ones(width, dtype=np.float64))

    @classmethod
    def exponential(cls, width: int, decay: float) -> "WeightVector":
        """Exponential decay weights ``decay ** (width - 1 - i)``.

        The most recent offset gets weight 1 and each step back multiplies by
        ``decay``.

        Raises:
            ParameterError: If decay is not in (0, 1]
        """
        if not (0.0 < decay <= 1.0):
            raise_parameter_error(
                f"decay must be in (0, 1], got {decay}",
                param_name="decay",
                param_value=decay,
                constraint="0 < decay <= 1"
            )
        return cls(decay ** np.arange(width - 1, -1, -1, dtype=np.float64))

    @property
    def width(self) -> int:
        return self.values.shape[0]

    @property
    def is_uniform(self) -> bool:
        return bool(np.all(self.values == self.values[0]))

    def for_offset(self, k: int) -> float:
        """Weight of the row ``k`` steps back from the most recent row."""
        return float(self.values[self.width - 1 - k])

    def as_kernel_array(self) -> np.ndarray:
        """Writable contiguous copy handed to the JIT kernels."""
        return self.values.copy()
