# rollstat/models/regression/__init__.py
"""
Rolling regression module.

Weighted least squares and principal component regressions of one or more
response columns on a panel of regressors over trailing windows.
"""

import logging

# Set up module-level logger
logger = logging.getLogger("rollstat.models.regression")

from .utils import RegressionFlags, resolve_regression_flags
from .lm import compute_lm, roll_lm
from .pcr import compute_pcr, roll_pcr

__all__ = [
    'RegressionFlags',
    'resolve_regression_flags',
    'compute_lm',
    'roll_lm',
    'compute_pcr',
    'roll_pcr',
]
