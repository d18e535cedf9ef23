# rollstat/core/validation.py

"""
Validation utilities for rollstat.

Every public function validates its arguments here before any computation
starts. The helpers return the validated (and, where relevant, normalized)
value so callers can write ``width = validate_width(width, n)``.

Failures raise the package exceptions: ParameterError for scalar arguments
outside their domain, DimensionError for incompatible shapes and DataError for
unusable values.
"""

from typing import Any, Optional, Tuple

import numpy as np

from rollstat.core.exceptions import (
    raise_data_error, raise_dimension_error, raise_parameter_error
)
from rollstat.core.types import CompsLike, PartitionAxis


def validate_panel(array: Any, array_name: str = "data") -> np.ndarray:
    """Validate and convert a panel to a C-contiguous float64 ``(n, p)`` array.

    One-dimensional input becomes a single column. NaN marks missing cells
    and is allowed; infinite values are passed through unchanged.

    Args:
        array: Array-like panel
        array_name: Name of the array for error messages

    Returns:
        np.ndarray: The validated two-dimensional array

    Raises:
        DataError: If the input cannot be converted to floating point
        DimensionError: If the input has more than two dimensions or no columns
    """
    if array is None:
        raise TypeError(f"{array_name} cannot be None")

    try:
        values = np.asarray(array, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise_data_error(
            f"{array_name} must contain numeric values",
            data_name=array_name,
            issue="not numeric",
            details=str(e)
        )

    if values.ndim == 0:
        values = values.reshape(1, 1)
    elif values.ndim == 1:
        values = values.reshape(-1, 1)
    elif values.ndim > 2:
        raise_dimension_error(
            f"{array_name} must be one- or two-dimensional, got {values.ndim} dimensions",
            array_name=array_name,
            expected_shape="(n,) or (n, p)",
            actual_shape=values.shape
        )

    if values.shape[0] == 0 or values.shape[1] == 0:
        raise_dimension_error(
            f"{array_name} must have at least one row and one column",
            array_name=array_name,
            expected_shape="(n, p) with n, p >= 1",
            actual_shape=values.shape
        )

    return np.ascontiguousarray(values)


def validate_width(width: Any, n_obs: int) -> int:
    """Validate the window width against the number of observations.

    Raises:
        ParameterError: If width is not an integer in [1, n_obs]
    """
    if isinstance(width, bool) or not isinstance(width, (int, np.integer)):
        raise_parameter_error(
            f"width must be an integer, got {type(width).__name__}",
            param_name="width",
            param_value=width,
            constraint="integer"
        )
    width = int(width)
    if width < 1:
        raise_parameter_error(
            f"width must be >= 1, got {width}",
            param_name="width",
            param_value=width,
            constraint=">= 1"
        )
    if width > n_obs:
        raise_parameter_error(
            f"width must be <= the number of observations ({n_obs}), got {width}",
            param_name="width",
            param_value=width,
            constraint=f"<= {n_obs}"
        )
    return width


def validate_weights(weights: Any, width: int) -> np.ndarray:
    """Validate the weight vector, defaulting to ones.

    Args:
        weights: Weights ordered oldest to most recent, or None for unit weights
        width: Window width

    Returns:
        np.ndarray: float64 vector of length ``width``

    Raises:
        DimensionError: If the length differs from width
        DataError: If any weight is not finite
    """
    if weights is None:
        return np.ones(width, dtype=np.float64)

    try:
        values = np.asarray(weights, dtype=np.float64).ravel()
    except (TypeError, ValueError) as e:
        raise_data_error(
            "weights must contain numeric values",
            data_name="weights",
            issue="not numeric",
            details=str(e)
        )

    if values.shape[0] != width:
        raise_dimension_error(
            f"weights must have length equal to width ({width}), got {values.shape[0]}",
            array_name="weights",
            expected_shape=(width,),
            actual_shape=values.shape
        )

    if not np.all(np.isfinite(values)):
        raise_data_error(
            "weights must be finite",
            data_name="weights",
            issue="contains NaN or infinite values",
            index=int(np.flatnonzero(~np.isfinite(values))[0])
        )

    return np.ascontiguousarray(values)


def validate_min_obs(min_obs: Any, width: int) -> int:
    """Validate the minimum number of observations, defaulting to width.

    Raises:
        ParameterError: If min_obs is not an integer in [1, width]
    """
    if min_obs is None:
        return width

    if isinstance(min_obs, bool) or not isinstance(min_obs, (int, np.integer)):
        raise_parameter_error(
            f"min_obs must be an integer, got {type(min_obs).__name__}",
            param_name="min_obs",
            param_value=min_obs,
            constraint="integer"
        )
    min_obs = int(min_obs)
    if min_obs < 1 or min_obs > width:
        raise_parameter_error(
            f"min_obs must be in [1, {width}], got {min_obs}",
            param_name="min_obs",
            param_value=min_obs,
            constraint=f"1 <= min_obs <= width ({width})"
        )
    return min_obs


def validate_comps(comps: Optional[CompsLike], n_vars: int) -> np.ndarray:
    """Validate 1-based principal component indices.

    Args:
        comps: Component indices in [1, n_vars], or None for all components
        n_vars: Number of independent variables

    Returns:
        np.ndarray: Zero-based int64 indices in the caller's order

    Raises:
        ParameterError: If an index is out of range, not integral or repeated
    """
    if comps is None:
        return np.arange(n_vars, dtype=np.int64)

    raw = np.atleast_1d(np.asarray(comps))
    if raw.ndim != 1 or raw.size == 0:
        raise_parameter_error(
            "comps must be a non-empty sequence of component indices",
            param_name="comps",
            param_value=comps
        )

    if raw.dtype.kind == "f":
        if not np.all(np.isfinite(raw)) or not np.all(raw == np.round(raw)):
            raise_parameter_error(
                "comps must contain integer indices",
                param_name="comps",
                param_value=comps,
                constraint="integers"
            )
    elif raw.dtype.kind not in ("i", "u"):
        raise_parameter_error(
            "comps must contain integer indices",
            param_name="comps",
            param_value=comps,
            constraint="integers"
        )

    indices = raw.astype(np.int64)
    bad = (indices < 1) | (indices > n_vars)
    if np.any(bad):
        raise_parameter_error(
            f"comps must be in [1, {n_vars}], got {int(indices[bad][0])}",
            param_name="comps",
            param_value=comps,
            constraint=f"1 <= comps <= {n_vars}"
        )

    if np.unique(indices).size != indices.size:
        raise_parameter_error(
            "comps must not contain duplicate indices",
            param_name="comps",
            param_value=comps,
            constraint="unique"
        )

    return indices - 1


def validate_flag(value: Any, param_name: str) -> bool:
    """Validate a boolean flag; numpy booleans are accepted.

    Raises:
        ParameterError: If value is not a boolean
    """
    if isinstance(value, (bool, np.bool_)):
        return bool(value)
    raise_parameter_error(
        f"{param_name} must be a boolean, got {type(value).__name__}",
        param_name=param_name,
        param_value=value,
        constraint="True or False"
    )


def validate_parallel_for(parallel_for: Any) -> PartitionAxis:
    """Validate the partition axis selector ("rows" or "cols")."""
    if isinstance(parallel_for, PartitionAxis):
        return parallel_for
    try:
        return PartitionAxis(parallel_for)
    except ValueError:
        raise_parameter_error(
            f"parallel_for must be one of {PartitionAxis.values()}, got {parallel_for!r}",
            param_name="parallel_for",
            param_value=parallel_for,
            constraint=" or ".join(PartitionAxis.values())
        )


def validate_num_workers(num_workers: Any) -> int:
    """Validate the worker thread count.

    Raises:
        ParameterError: If num_workers is not an integer >= 1
    """
    if isinstance(num_workers, bool) or not isinstance(num_workers, (int, np.integer)):
        raise_parameter_error(
            f"num_workers must be an integer, got {type(num_workers).__name__}",
            param_name="num_workers",
            param_value=num_workers,
            constraint="integer"
        )
    if num_workers < 1:
        raise_parameter_error(
            f"num_workers must be >= 1, got {num_workers}",
            param_name="num_workers",
            param_value=num_workers,
            constraint=">= 1"
        )
    return int(num_workers)


def validate_matching_rows(x: np.ndarray, y: np.ndarray,
                           names: Tuple[str, str] = ("x", "y")) -> None:
    """Validate that independent and dependent panels have the same rows.

    Raises:
        DimensionError: If the row counts differ
    """
    if x.shape[0] != y.shape[0]:
        raise_dimension_error(
            f"{names[0]} and {names[1]} must have the same number of rows, "
            f"got {x.shape[0]} and {y.shape[0]}",
            array_name=names[1],
            expected_shape=(x.shape[0], -1),
            actual_shape=y.shape
        )
