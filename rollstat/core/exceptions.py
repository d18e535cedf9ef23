'''
Custom exception classes for rollstat.

This module defines the exception hierarchy used throughout rollstat. Every
error raised by the package carries a primary message, optional details and a
context dictionary describing the offending argument, so that a failed call can
be diagnosed from the traceback alone.

Configuration problems (window width, weights, minimum observations, component
indices, panel shapes) are rejected before any computation starts. Numerical
degeneracies inside individual windows are never raised; they produce missing
output for the affected unit only.
'''

from typing import Any, Dict, Optional, Tuple, Union
import inspect
import warnings
from pathlib import Path

import numpy as np


class RollStatError(Exception):
    """Base exception class for all rollstat errors.

    Attributes:
        message: The error message
        details: Additional details about the error
        context: Dictionary containing contextual information about the error
    """

    def __init__(self,
                 message: str,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        """Initialize the RollStatError.

        Args:
            message: The primary error message
            details: Additional details about the error
            context: Dictionary containing contextual information about the error
        """
        self.message = message
        self.details = details
        self.context = context or {}

        full_message = message
        if details:
            full_message += f"\n\nDetails: {details}"

        if context:
            context_str = "\n".join(f"  {k}: {v}" for k, v in context.items())
            full_message += f"\n\nContext:\n{context_str}"

        # Add caller information for better debugging
        frame = inspect.currentframe()
        if frame:
            try:
                frame = frame.f_back
                if frame:
                    caller_info = inspect.getframeinfo(frame)
                    full_message += f"\n\nLocation: {Path(caller_info.filename).name}:{caller_info.lineno}"
            finally:
                del frame  # Avoid reference cycles

        super().__init__(full_message)


class ParameterError(RollStatError):
    """Exception raised for invalid call parameters.

    Used when a scalar argument such as the window width, the minimum number
    of observations or a component index violates its constraint.

    Attributes:
        param_name: The name of the parameter that caused the error
        param_value: The invalid parameter value
        constraint: Description of the constraint that was violated
    """

    def __init__(self,
                 message: str,
                 param_name: Optional[str] = None,
                 param_value: Optional[Any] = None,
                 constraint: Optional[str] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.param_name = param_name
        self.param_value = param_value
        self.constraint = constraint

        context_dict = context or {}
        if param_name:
            context_dict["Parameter"] = param_name
        if param_value is not None:
            context_dict["Value"] = param_value
        if constraint:
            context_dict["Constraint"] = constraint

        super().__init__(message, details, context_dict)


class DimensionError(RollStatError):
    """Exception raised for incompatible array dimensions.

    Attributes:
        array_name: The name of the array that caused the error
        expected_shape: The expected shape of the array
        actual_shape: The actual shape of the array
    """

    def __init__(self,
                 message: str,
                 array_name: Optional[str] = None,
                 expected_shape: Optional[Union[Tuple[int, ...], str]] = None,
                 actual_shape: Optional[Tuple[int, ...]] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.array_name = array_name
        self.expected_shape = expected_shape
        self.actual_shape = actual_shape

        context_dict = context or {}
        if array_name:
            context_dict["Array"] = array_name
        if expected_shape is not None:
            context_dict["Expected Shape"] = expected_shape
        if actual_shape is not None:
            context_dict["Actual Shape"] = actual_shape

        super().__init__(message, details, context_dict)


class NumericError(RollStatError):
    """Exception raised for numerical failures outside per-window kernels.

    Attributes:
        operation: The operation that caused the error
        values: The values that caused the error
        error_type: The type of numerical error
    """

    def __init__(self,
                 message: str,
                 operation: Optional[str] = None,
                 values: Optional[Any] = None,
                 error_type: Optional[str] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.operation = operation
        self.values = values
        self.error_type = error_type

        context_dict = context or {}
        if operation:
            context_dict["Operation"] = operation
        if error_type:
            context_dict["Error Type"] = error_type
        if values is not None:
            if isinstance(values, np.ndarray) and values.size > 10:
                # Truncate large arrays for readability
                context_dict["Values"] = f"Array with shape {values.shape}"
            else:
                context_dict["Values"] = values

        super().__init__(message, details, context_dict)


class DataError(RollStatError):
    """Exception raised for input data that cannot be used.

    Attributes:
        data_name: The name of the data that caused the error
        issue: Description of the issue with the data
        index: Index or location of the problematic data
    """

    def __init__(self,
                 message: str,
                 data_name: Optional[str] = None,
                 issue: Optional[str] = None,
                 index: Optional[Union[int, Tuple[int, ...], str]] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.data_name = data_name
        self.issue = issue
        self.index = index

        context_dict = context or {}
        if data_name:
            context_dict["Data"] = data_name
        if issue:
            context_dict["Issue"] = issue
        if index is not None:
            context_dict["Index"] = index

        super().__init__(message, details, context_dict)


class ConfigurationError(RollStatError):
    """Exception raised for errors in configuration.

    Used when a configuration option or an environment default is invalid.

    Attributes:
        setting: The setting that caused the error
        value: The invalid setting value
        issue: Description of the issue with the configuration
    """

    def __init__(self,
                 message: str,
                 setting: Optional[str] = None,
                 value: Optional[Any] = None,
                 issue: Optional[str] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.setting = setting
        self.value = value
        self.issue = issue

        context_dict = context or {}
        if setting:
            context_dict["Setting"] = setting
        if value is not None:
            context_dict["Value"] = value
        if issue:
            context_dict["Issue"] = issue

        super().__init__(message, details, context_dict)


class RollStatWarning(Warning):
    """Base warning class for rollstat warnings."""

    def __init__(self,
                 message: str,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details
        self.context = context or {}

        full_message = message
        if details:
            full_message += f"\n\nDetails: {details}"

        if context:
            context_str = "\n".join(f"  {k}: {v}" for k, v in context.items())
            full_message += f"\n\nContext:\n{context_str}"

        super().__init__(full_message)


class PerformanceWarning(RollStatWarning):
    """Warning for configurations that will run slower than expected.

    Attributes:
        operation: The operation affected
        issue: Description of the performance issue
    """

    def __init__(self,
                 message: str,
                 operation: Optional[str] = None,
                 issue: Optional[str] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.operation = operation
        self.issue = issue

        context_dict = context or {}
        if operation:
            context_dict["Operation"] = operation
        if issue:
            context_dict["Issue"] = issue

        super().__init__(message, details, context_dict)


# Helper functions for raising exceptions with consistent formatting

def raise_parameter_error(message: str,
                          param_name: Optional[str] = None,
                          param_value: Optional[Any] = None,
                          constraint: Optional[str] = None,
                          details: Optional[str] = None,
                          context: Optional[Dict[str, Any]] = None) -> None:
    """Raise a ParameterError with consistent formatting.

    Raises:
        ParameterError: The formatted parameter error
    """
    raise ParameterError(message, param_name, param_value, constraint, details, context)


def raise_dimension_error(message: str,
                          array_name: Optional[str] = None,
                          expected_shape: Optional[Union[Tuple[int, ...], str]] = None,
                          actual_shape: Optional[Tuple[int, ...]] = None,
                          details: Optional[str] = None,
                          context: Optional[Dict[str, Any]] = None) -> None:
    """Raise a DimensionError with consistent formatting.

    Raises:
        DimensionError: The formatted dimension error
    """
    raise DimensionError(message, array_name, expected_shape, actual_shape, details, context)


def raise_data_error(message: str,
                     data_name: Optional[str] = None,
                     issue: Optional[str] = None,
                     index: Optional[Union[int, Tuple[int, ...], str]] = None,
                     details: Optional[str] = None,
                     context: Optional[Dict[str, Any]] = None) -> None:
    """Raise a DataError with consistent formatting.

    Raises:
        DataError: The formatted data error
    """
    raise DataError(message, data_name, issue, index, details, context)


def raise_configuration_error(message: str,
                              setting: Optional[str] = None,
                              value: Optional[Any] = None,
                              issue: Optional[str] = None,
                              details: Optional[str] = None,
                              context: Optional[Dict[str, Any]] = None) -> None:
    """Raise a ConfigurationError with consistent formatting.

    Raises:
        ConfigurationError: The formatted configuration error
    """
    raise ConfigurationError(message, setting, value, issue, details, context)


def warn_performance(message: str,
                     operation: Optional[str] = None,
                     issue: Optional[str] = None,
                     details: Optional[str] = None,
                     context: Optional[Dict[str, Any]] = None) -> None:
    """Issue a PerformanceWarning with consistent formatting."""
    warnings.warn(
        PerformanceWarning(message, operation, issue, details, context),
        stacklevel=2
    )
