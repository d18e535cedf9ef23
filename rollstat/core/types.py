# rollstat/core/types.py

"""
Core type annotations and enumerations for rollstat.

This module defines the type aliases shared by the engine and the adapter
layer, together with the closed enumerations that drive dispatch: the kind of
statistic being computed, the missing-data completeness mode and the axis along
which output units are partitioned across worker threads.
"""

from enum import Enum
from typing import List, Sequence, Tuple, Union

import numpy as np
import pandas as pd

# NumPy array type aliases
Vector = np.ndarray  # 1D array
Matrix = np.ndarray  # 2D array
Tensor3D = np.ndarray  # 3D array, one matrix slice per time index

# Input data accepted by the public functions
PanelLike = Union[np.ndarray, pd.Series, pd.DataFrame, Sequence[float], Sequence[Sequence[float]]]
WeightsLike = Union[np.ndarray, pd.Series, Sequence[float]]
CompsLike = Union[int, Sequence[int], np.ndarray]

# Output containers
RollingOutput = Union[np.ndarray, pd.Series, pd.DataFrame]

# Pairs of variable indices (upper triangle, diagonal included)
PairIndex = np.ndarray  # shape (m, 2), int64
Shape2D = Tuple[int, int]


class StatisticKind(Enum):
    """Closed set of rolling statistics computed by the engine."""
    SUM = "sum"
    PROD = "prod"
    MEAN = "mean"
    VAR = "var"
    SD = "sd"
    SCALE = "scale"
    COV = "cov"
    COR = "cor"
    LM = "lm"
    PCR = "pcr"
    EIGEN = "eigen"
    VIF = "vif"

    @property
    def is_elementwise(self) -> bool:
        """Whether the output has the same shape as the input panel."""
        return self in ELEMENTWISE_KINDS

    @property
    def is_regression(self) -> bool:
        """Whether the statistic takes independent and dependent panels."""
        return self in (StatisticKind.LM, StatisticKind.PCR)


ELEMENTWISE_KINDS = frozenset({
    StatisticKind.SUM,
    StatisticKind.PROD,
    StatisticKind.MEAN,
    StatisticKind.VAR,
    StatisticKind.SD,
    StatisticKind.SCALE,
})


class CompletenessMode(Enum):
    """Missing-data inclusion policy."""
    PAIRWISE = "pairwise"
    CASEWISE = "casewise"

    @classmethod
    def from_complete_obs(cls, complete_obs: bool) -> "CompletenessMode":
        """Map the ``complete_obs`` flag to a completeness mode."""
        return cls.CASEWISE if complete_obs else cls.PAIRWISE


class PartitionAxis(Enum):
    """Axis along which output units are split across workers.

    The values match the ``parallel_for`` argument of the public functions.
    """
    BY_TIME = "rows"
    BY_VARIABLE = "cols"

    @classmethod
    def values(cls) -> List[str]:
        return [member.value for member in cls]
