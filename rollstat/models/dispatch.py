# rollstat/models/dispatch.py
"""
Dispatch from statistic kind to implementation.

The set of statistics is closed. Each StatisticKind maps to exactly one
public function; ``compute`` looks the kind up and forwards the call, which
lets callers select a statistic by name at run time.

Examples:
    >>> import numpy as np
    >>> from rollstat.models.dispatch import compute
    >>> compute("sum", np.array([1.0, 2.0, 3.0, 4.0, 5.0]), width=3)
    array([nan, nan,  6.,  9., 12.])
"""

import logging
from typing import Any, Callable, Dict, List, Union

from rollstat.core.exceptions import raise_parameter_error
from rollstat.core.types import StatisticKind
from rollstat.models.covariance import roll_cor, roll_cov
from rollstat.models.decomposition import roll_eigen, roll_vif
from rollstat.models.moments import (
    roll_mean, roll_prod, roll_scale, roll_sd, roll_sum, roll_var
)
from rollstat.models.regression import roll_lm, roll_pcr

# Set up module-level logger
logger = logging.getLogger("rollstat.models.dispatch")

ROLLING_FUNCTIONS: Dict[StatisticKind, Callable[..., Any]] = {
    StatisticKind.SUM: roll_sum,
    StatisticKind.PROD: roll_prod,
    StatisticKind.MEAN: roll_mean,
    StatisticKind.VAR: roll_var,
    StatisticKind.SD: roll_sd,
    StatisticKind.SCALE: roll_scale,
    StatisticKind.COV: roll_cov,
    StatisticKind.COR: roll_cor,
    StatisticKind.LM: roll_lm,
    StatisticKind.PCR: roll_pcr,
    StatisticKind.EIGEN: roll_eigen,
    StatisticKind.VIF: roll_vif,
}


def resolve_kind(kind: Union[str, StatisticKind]) -> StatisticKind:
    """Turn a statistic name such as ``"mean"`` or ``"roll_mean"`` into a StatisticKind.

    Raises:
        ParameterError: If the name is not a known statistic
    """
    if isinstance(kind, StatisticKind):
        return kind

    name = str(kind).lower()
    if name.startswith("roll_"):
        name = name[len("roll_"):]
    try:
        return StatisticKind(name)
    except ValueError:
        raise_parameter_error(
            f"Unknown statistic {kind!r}",
            param_name="kind",
            param_value=kind,
            constraint=f"one of {available_statistics()}"
        )


def get_function(kind: Union[str, StatisticKind]) -> Callable[..., Any]:
    """Public function computing the given statistic."""
    return ROLLING_FUNCTIONS[resolve_kind(kind)]


def compute(kind: Union[str, StatisticKind], *args: Any, **kwargs: Any) -> Any:
    """
    Compute a rolling statistic selected by kind.

    Positional and keyword arguments are passed through unchanged, so they
    follow the signature of the selected ``roll_*`` function.
    """
    resolved = resolve_kind(kind)
    logger.debug(f"Dispatching {resolved.value}")
    return ROLLING_FUNCTIONS[resolved](*args, **kwargs)


def available_statistics() -> List[str]:
    """Names of every statistic, in declaration order."""
    return [kind.value for kind in StatisticKind]
