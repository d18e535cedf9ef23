# rollstat/models/__init__.py
"""
rollstat Models Module

The rolling statistics, grouped by the shape of what they compute:

- moments: elementwise sums, products, means, variances, standard deviations
  and standardized values
- covariance: covariance and correlation matrices
- regression: linear and principal component regressions
- decomposition: eigen-decompositions and variance inflation factors

``dispatch`` maps every StatisticKind to its public function.
"""

import logging

# Set up module-level logger
logger = logging.getLogger("rollstat.models")

from . import moments
from . import covariance
from . import regression
from . import decomposition
from . import dispatch

from .moments import roll_sum, roll_prod, roll_mean, roll_var, roll_sd, roll_scale
from .covariance import roll_cov, roll_cor
from .regression import roll_lm, roll_pcr
from .decomposition import roll_eigen, roll_vif
from .dispatch import ROLLING_FUNCTIONS, compute, get_function, available_statistics

__all__ = [
    # Submodules
    'moments',
    'covariance',
    'regression',
    'decomposition',
    'dispatch',

    # Rolling statistics
    'roll_sum',
    'roll_prod',
    'roll_mean',
    'roll_var',
    'roll_sd',
    'roll_scale',
    'roll_cov',
    'roll_cor',
    'roll_lm',
    'roll_pcr',
    'roll_eigen',
    'roll_vif',

    # Dispatch
    'ROLLING_FUNCTIONS',
    'compute',
    'get_function',
    'available_statistics',
]
