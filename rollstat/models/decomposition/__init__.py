# rollstat/models/decomposition/__init__.py
"""
Rolling matrix decomposition module.

Statistics derived from the rolling covariance matrix of a panel: the
eigen-decomposition and the variance inflation factors.
"""

import logging

# Set up module-level logger
logger = logging.getLogger("rollstat.models.decomposition")

from .eigen import compute_eigen, roll_eigen
from .vif import compute_vif, roll_vif

__all__ = [
    'compute_eigen',
    'roll_eigen',
    'compute_vif',
    'roll_vif',
]
