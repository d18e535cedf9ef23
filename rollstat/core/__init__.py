"""
rollstat core module

Fundamental building blocks shared by every rolling statistic: the exception
hierarchy, type definitions and enumerations, argument validation, the
configuration system and the result containers.
"""

import logging

# Set up module-level logger
logger = logging.getLogger("rollstat.core")

from .exceptions import (
    RollStatError,
    ParameterError,
    DimensionError,
    NumericError,
    DataError,
    ConfigurationError,
    RollStatWarning,
    PerformanceWarning,
)

from .types import (
    StatisticKind,
    CompletenessMode,
    PartitionAxis,
)

from .config import (
    ExecutionConfig,
    ParallelConfig,
    NumericalConfig,
    LoggingConfig,
    get_config,
    set_config,
    reset_config,
    get_config_manager,
    resolve_execution_config,
    setup_logging,
)

from .results import (
    RollingResult,
    RollingRegressionResult,
    RollingEigenResult,
)

__all__ = [
    # Exceptions
    'RollStatError',
    'ParameterError',
    'DimensionError',
    'NumericError',
    'DataError',
    'ConfigurationError',
    'RollStatWarning',
    'PerformanceWarning',

    # Types
    'StatisticKind',
    'CompletenessMode',
    'PartitionAxis',

    # Configuration
    'ExecutionConfig',
    'ParallelConfig',
    'NumericalConfig',
    'LoggingConfig',
    'get_config',
    'set_config',
    'reset_config',
    'get_config_manager',
    'resolve_execution_config',
    'setup_logging',

    # Results
    'RollingResult',
    'RollingRegressionResult',
    'RollingEigenResult',
]

logger.debug("rollstat core module initialized")
