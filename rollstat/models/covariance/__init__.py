# rollstat/models/covariance/__init__.py
"""
Rolling covariance module.

Covariance and correlation matrices over trailing windows, one ``(p, p)``
matrix per time index.
"""

import logging

# Set up module-level logger
logger = logging.getLogger("rollstat.models.covariance")

from .covariance import compute_covariance, roll_cov, roll_cor

__all__ = [
    'compute_covariance',
    'roll_cov',
    'roll_cor',
]
