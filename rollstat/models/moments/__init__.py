# rollstat/models/moments/__init__.py
"""
Rolling moments module.

Elementwise rolling statistics: sums, products, means, variances, standard
deviations and standardized values. Each output has the shape of its input.
"""

import logging

# Set up module-level logger
logger = logging.getLogger("rollstat.models.moments")

from .moments import (
    MOMENT_KERNELS,
    compute_moment,
    roll_sum,
    roll_prod,
    roll_mean,
    roll_var,
    roll_sd,
    roll_scale,
)

__all__ = [
    'MOMENT_KERNELS',
    'compute_moment',
    'roll_sum',
    'roll_prod',
    'roll_mean',
    'roll_var',
    'roll_sd',
    'roll_scale',
]
