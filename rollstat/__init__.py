# rollstat/__init__.py
"""
rollstat - Parallel Rolling-Window Statistics for Python

Sliding-window statistics over multivariate, time-indexed numeric panels.
Every statistic is evaluated at every time index over the trailing window of
fixed width ending there, optionally with per-offset weights and tolerance for
partial windows and missing values.

The package provides:
- Rolling sums, products, means, variances, standard deviations and
  standardized values
- Rolling covariance and correlation matrices
- Rolling linear and principal component regressions
- Rolling eigen-decompositions and variance inflation factors

The per-window kernels are compiled with Numba and the independent output
units of a call are spread over worker threads, either by time index or by
variable.
"""

import os
import logging
from typing import Union

# Set up package-wide logger
logger = logging.getLogger("rollstat")
logger.setLevel(logging.INFO)
_handler = logging.StreamHandler()
_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
logger.addHandler(_handler)

from .version import __version__, __author__, __license__

from . import core
from . import utils
from . import models

from .core.exceptions import (
    RollStatError,
    ParameterError,
    DimensionError,
    NumericError,
    DataError,
    ConfigurationError,
)
from .core.config import get_config, set_config, reset_config
from .core.results import RollingRegressionResult, RollingEigenResult
from .core.types import StatisticKind
from .models.moments import roll_sum, roll_prod, roll_mean, roll_var, roll_sd, roll_scale
from .models.covariance import roll_cov, roll_cor
from .models.regression import roll_lm, roll_pcr
from .models.decomposition import roll_eigen, roll_vif
from .models.dispatch import compute, available_statistics


def get_version() -> str:
    """
    Return the version of rollstat.

    Returns:
        str: Version string in format MAJOR.MINOR.PATCH
    """
    return __version__


def set_log_level(level: Union[str, int]) -> None:
    """
    Set the logging level for rollstat.

    Args:
        level: Logging level, either as string ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')
              or as an integer constant from the logging module
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper())
    logger.setLevel(level)
    logger.info(f"Log level set to {logging.getLevelName(level)}")


def _initialize_logging() -> None:
    """Apply the ``ROLLSTAT_LOG_LEVEL`` environment variable, if set."""
    log_level = os.environ.get("ROLLSTAT_LOG_LEVEL")
    if not log_level:
        return
    level = logging.getLevelName(log_level.upper())
    if isinstance(level, int):
        logger.setLevel(level)
    else:
        logger.warning(f"Ignoring invalid ROLLSTAT_LOG_LEVEL={log_level!r}")


_initialize_logging()

__all__ = [
    # Subpackages
    'core',
    'models',
    'utils',

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
    'compute',
    'available_statistics',

    # Results and types
    'RollingRegressionResult',
    'RollingEigenResult',
    'StatisticKind',

    # Exceptions
    'RollStatError',
    'ParameterError',
    'DimensionError',
    'NumericError',
    'DataError',
    'ConfigurationError',

    # Configuration
    'get_config',
    'set_config',
    'reset_config',

    # Public functions
    'get_version',
    'set_log_level',

    # Version info
    '__version__',
    '__author__',
    '__license__',
]

logger.debug(f"rollstat v{__version__} initialized")
