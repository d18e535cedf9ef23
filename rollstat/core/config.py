'''
Configuration management for rollstat.

This module provides the configuration system for rollstat. Defaults are built
into the package as dataclass sections, can be overridden through environment
variables and modified at runtime through the ConfigManager.

The layered approach is:
1. Default configurations built into the package
2. Environment variables (``ROLLSTAT_<SECTION>_<OPTION>``)
3. Runtime modifications

The manager only supplies *defaults*. Every computation receives an explicit,
immutable ExecutionConfig resolved at the call boundary from the call's own
arguments layered over these defaults, so no process-wide mutable state is
consulted by the kernels or the worker threads.
'''

import os
import logging
from dataclasses import dataclass, field, asdict, fields
from enum import Enum
from typing import Any, Dict, List, Optional

from .exceptions import ConfigurationError, raise_configuration_error, warn_performance
from .types import PartitionAxis
from .validation import validate_num_workers, validate_parallel_for

# Set up module-level logger
logger = logging.getLogger("rollstat.core.config")

CONFIG_ENV_PREFIX = "ROLLSTAT_"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigSection(Enum):
    """Enumeration of configuration sections."""
    PARALLEL = "parallel"
    NUMERICAL = "numerical"
    LOGGING = "logging"


@dataclass
class ParallelConfig:
    """
    Parallel execution defaults.

    Attributes:
        num_workers: Number of worker threads (None uses the hardware concurrency)
        parallel_for: Default partition axis, "rows" (by time) or "cols" (by variable)
        parallel_threshold: Below this many output units the work runs inline
    """
    num_workers: Optional[int] = None
    parallel_for: str = "rows"
    parallel_threshold: int = 64


@dataclass
class NumericalConfig:
    """
    Numerical tolerances used by the per-window linear algebra.

    Attributes:
        matrix_rank_tolerance: Relative pivot below which a system is treated as singular
    """
    matrix_rank_tolerance: float = 1e-10


@dataclass
class LoggingConfig:
    """
    Logging configuration settings.

    Attributes:
        log_level: Default logging level
        log_format: Format string for log messages
        log_date_format: Format string for log message timestamps
        console_logging: Whether to log to console
    """
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    log_date_format: str = "%Y-%m-%d %H:%M:%S"
    console_logging: bool = True


@dataclass
class RollStatConfig:
    """Complete configuration, one attribute per section."""
    parallel: ParallelConfig = field(default_factory=ParallelConfig)
    numerical: NumericalConfig = field(default_factory=NumericalConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


@dataclass(frozen=True)
class ExecutionConfig:
    """
    Fully resolved settings for a single call.

    Instances are immutable and shared read-only by every worker of the call.

    Attributes:
        num_workers: Number of worker threads, at least 1
        partition: Axis along which output units are split
        parallel_threshold: Minimum number of units before threads are used
        rank_tolerance: Relative pivot tolerance for the Cholesky solver
    """
    num_workers: int = 1
    partition: PartitionAxis = PartitionAxis.BY_TIME
    parallel_threshold: int = 64
    rank_tolerance: float = 1e-10


class ConfigManager:
    """
    Configuration manager for rollstat.

    Holds the package defaults, applies environment overrides on
    initialization and validates every change.
    """

    def __init__(self):
        """Initialize the configuration manager with default settings."""
        self._config = RollStatConfig()
        self._initialized = False
        self._modified_keys = set()

    def initialize(self) -> None:
        """Apply environment overrides and validate the configuration."""
        if self._initialized:
            return

        self._apply_env_overrides()
        self._validate_config()

        self._initialized = True
        logger.debug("Configuration manager initialized")

    def _apply_env_overrides(self) -> None:
        """
        Apply environment variable overrides to the configuration.

        Variables look like ``ROLLSTAT_PARALLEL_NUM_WORKERS=4``. Unknown
        sections and options are ignored; values that cannot be converted
        raise ConfigurationError.
        """
        for env_var, value in os.environ.items():
            if not env_var.startswith(CONFIG_ENV_PREFIX):
                continue

            key = env_var[len(CONFIG_ENV_PREFIX):]
            parts = key.lower().split('_', 1)
            if len(parts) != 2:
                continue

            section, option = parts
            try:
                ConfigSection(section)
            except ValueError:
                continue

            section_obj = getattr(self._config, section)
            if option not in {f.name for f in fields(section_obj)}:
                continue

            typed_value = self._convert(section, option, value)
            setattr(section_obj, option, typed_value)
            self._modified_keys.add(f"{section}.{option}")
            logger.debug(f"Applied environment override: {env_var}={value}")

    def _convert(self, section: str, option: str, value: str) -> Any:
        """Convert a string value to the type of the option's default."""
        default = getattr(RollStatConfig(), section)
        current = getattr(default, option)
        try:
            if isinstance(current, bool):
                return value.strip().lower() in ('true', 'yes', '1', 'y')
            if isinstance(current, int):
                return int(value)
            if isinstance(current, float):
                return float(value)
            if current is None:
                # Optional[int] options
                return None if value.strip().lower() in ('', 'none') else int(value)
            return value
        except ValueError as e:
            raise ConfigurationError(
                f"Cannot convert value for {section}.{option}",
                setting=f"{section}.{option}",
                value=value,
                issue=str(e)
            ) from e

    def _validate_config(self) -> None:
        """Validate constraints on every section."""
        par = self._config.parallel
        if par.num_workers is not None and par.num_workers < 1:
            raise_configuration_error(
                "parallel.num_workers must be at least 1",
                setting="parallel.num_workers",
                value=par.num_workers,
                issue="must be >= 1"
            )
        if par.parallel_for not in PartitionAxis.values():
            raise_configuration_error(
                "parallel.parallel_for must be 'rows' or 'cols'",
                setting="parallel.parallel_for",
                value=par.parallel_for,
                issue=f"must be one of {PartitionAxis.values()}"
            )
        if par.parallel_threshold < 0:
            raise_configuration_error(
                "parallel.parallel_threshold must be non-negative",
                setting="parallel.parallel_threshold",
                value=par.parallel_threshold
            )

        num = self._config.numerical
        if not (0.0 <= num.matrix_rank_tolerance < 1.0):
            raise_configuration_error(
                "numerical.matrix_rank_tolerance must be in [0, 1)",
                setting="numerical.matrix_rank_tolerance",
                value=num.matrix_rank_tolerance
            )

        if self._config.logging.log_level.upper() not in _LOG_LEVELS:
            raise_configuration_error(
                "logging.log_level is not a valid logging level",
                setting="logging.log_level",
                value=self._config.logging.log_level,
                issue=f"must be one of {_LOG_LEVELS}"
            )

    def get(self, section: str, option: str, default: Any = None) -> Any:
        """Get a configuration value, or ``default`` if it does not exist."""
        self.initialize()
        section_obj = getattr(self._config, section, None)
        if section_obj is None:
            return default
        return getattr(section_obj, option, default)

    def set(self, section: str, option: str, value: Any) -> None:
        """
        Set a configuration value.

        Raises:
            ConfigurationError: If the section or option does not exist or
                the new value violates a constraint
        """
        self.initialize()
        section_obj = getattr(self._config, section, None)
        if section_obj is None or option not in {f.name for f in fields(section_obj)}:
            raise_configuration_error(
                f"Unknown configuration option {section}.{option}",
                setting=f"{section}.{option}"
            )

        old_value = getattr(section_obj, option)
        setattr(section_obj, option, value)
        try:
            self._validate_config()
        except ConfigurationError:
            setattr(section_obj, option, old_value)
            raise

        self._modified_keys.add(f"{section}.{option}")
        logger.debug(f"Set configuration {section}.{option}={value!r}")

    def reset(self, section: Optional[str] = None, option: Optional[str] = None) -> None:
        """Reset one option, one section or the whole configuration to defaults."""
        defaults = RollStatConfig()
        if section is None:
            self._config = defaults
            self._modified_keys.clear()
            return

        section_obj = getattr(self._config, section, None)
        if section_obj is None:
            raise_configuration_error(f"Unknown configuration section {section}", setting=section)

        if option is None:
            setattr(self._config, section, getattr(defaults, section))
            self._modified_keys = {k for k in self._modified_keys if not k.startswith(f"{section}.")}
        else:
            setattr(section_obj, option, getattr(getattr(defaults, section), option))
            self._modified_keys.discard(f"{section}.{option}")

    def get_modified_options(self) -> List[str]:
        """Return the ``section.option`` keys changed from their defaults."""
        return sorted(self._modified_keys)

    def to_dict(self) -> Dict[str, Any]:
        """Convert the configuration to a dictionary."""
        self.initialize()
        return asdict(self._config)


_config_manager = ConfigManager()


def get_config_manager() -> ConfigManager:
    """Return the package configuration manager."""
    return _config_manager


def get_config(section: str, option: str, default: Any = None) -> Any:
    """Get a configuration value from the package configuration manager."""
    return _config_manager.get(section, option, default)


def set_config(section: str, option: str, value: Any) -> None:
    """Set a configuration value on the package configuration manager."""
    _config_manager.set(section, option, value)


def reset_config(section: Optional[str] = None, option: Optional[str] = None) -> None:
    """Reset configuration values to their defaults."""
    _config_manager.reset(section, option)


def setup_logging(config: Optional[LoggingConfig] = None) -> None:
    """
    Configure the ``rollstat`` package logger.

    Existing handlers on the package logger are replaced so repeated calls do
    not duplicate output.
    """
    if config is None:
        _config_manager.initialize()
        config = _config_manager._config.logging

    root_logger = logging.getLogger("rollstat")
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    root_logger.setLevel(getattr(logging, config.log_level.upper()))

    if config.console_logging:
        formatter = logging.Formatter(
            fmt=config.log_format,
            datefmt=config.log_date_format
        )
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)
    else:
        root_logger.addHandler(logging.NullHandler())


def resolve_execution_config(parallel_for: Optional[str] = None,
                             num_workers: Optional[int] = None) -> ExecutionConfig:
    """
    Build the ExecutionConfig for one call.

    Explicit arguments win over configured defaults; a missing worker count
    falls back to the hardware concurrency.

    Args:
        parallel_for: "rows" or "cols"; None uses the configured default
        num_workers: Worker thread count; None uses the configured default

    Returns:
        ExecutionConfig: Immutable settings for the call

    Raises:
        ParameterError: If the axis or worker count is invalid
    """
    if parallel_for is None:
        parallel_for = get_config("parallel", "parallel_for")
    partition = validate_parallel_for(parallel_for)

    if num_workers is None:
        num_workers = get_config("parallel", "num_workers")
    if num_workers is None:
        num_workers = os.cpu_count() or 1
    num_workers = validate_num_workers(num_workers)

    cpu_count = os.cpu_count() or 1
    if num_workers > cpu_count:
        warn_performance(
            f"num_workers={num_workers} exceeds the {cpu_count} available CPUs",
            operation="resolve_execution_config",
            issue="oversubscription"
        )

    return ExecutionConfig(
        num_workers=num_workers,
        partition=partition,
        parallel_threshold=get_config("parallel", "parallel_threshold"),
        rank_tolerance=get_config("numerical", "matrix_rank_tolerance"),
    )
