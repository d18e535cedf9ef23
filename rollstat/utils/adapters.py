# rollstat/utils/adapters.py
"""
Conversion between caller containers and engine buffers.

The engine works on C-contiguous float64 ``(n, p)`` panels only. This module
turns numpy arrays, nested lists, pandas Series and DataFrames into such
panels, remembers what came in, and re-wraps engine outputs in the caller's
container type: numpy in gives numpy out, pandas in gives pandas out with the
original index and column labels.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from rollstat.core.results import RollingEigenResult, RollingRegressionResult
from rollstat.core.exceptions import raise_data_error
from rollstat.core.validation import validate_panel

# Set up module-level logger
logger = logging.getLogger("rollstat.utils.adapters")

INTERCEPT_LABEL = "(Intercept)"


@dataclass(frozen=True)
class PanelMeta:
    """
    What the caller passed in, enough to rebuild the same container.

    Attributes:
        is_pandas: Whether the input was a Series or DataFrame
        is_vector: Whether the input was one-dimensional
        index: Row labels of a pandas input
        columns: Column labels; generated names for array input
        name: Series name, if any
    """
    is_pandas: bool
    is_vector: bool
    index: Optional[pd.Index]
    columns: List[Any]
    name: Any = None


def _pandas_values(data: Any, array_name: str) -> np.ndarray:
    """float64 values of a Series or DataFrame, pandas NA markers as NaN."""
    try:
        return data.to_numpy(dtype=np.float64, na_value=np.nan)
    except (TypeError, ValueError) as e:
        raise_data_error(
            f"{array_name} must contain numeric values",
            data_name=array_name,
            issue="not numeric",
            details=str(e)
        )


def to_panel(data: Any, array_name: str = "data", prefix: str = "x") -> Tuple[np.ndarray, PanelMeta]:
    """
    Convert caller data to a float64 ``(n, p)`` panel.

    Args:
        data: numpy array, sequence, pandas Series or DataFrame
        array_name: Name used in error messages
        prefix: Prefix of generated column names for array input

    Returns:
        Tuple containing the panel and its PanelMeta

    Raises:
        DimensionError: If the input is not one- or two-dimensional
        DataError: If the input is not numeric
    """
    if isinstance(data, pd.Series):
        panel = validate_panel(_pandas_values(data, array_name), array_name)
        name = data.name if data.name is not None else f"{prefix}1"
        return panel, PanelMeta(True, True, data.index, [name], data.name)

    if isinstance(data, pd.DataFrame):
        panel = validate_panel(_pandas_values(data, array_name), array_name)
        return panel, PanelMeta(True, False, data.index, list(data.columns))

    is_vector = np.ndim(data) <= 1
    panel = validate_panel(data, array_name)
    columns = [f"{prefix}{j + 1}" for j in range(panel.shape[1])]
    return panel, PanelMeta(False, is_vector, None, columns)


def wrap_elementwise(out: np.ndarray, meta: PanelMeta) -> Any:
    """Wrap an ``(n, p)`` output in the input's container."""
    if meta.is_pandas:
        if meta.is_vector:
            return pd.Series(out[:, 0], index=meta.index, name=meta.name)
        return pd.DataFrame(out, index=meta.index, columns=meta.columns)
    if meta.is_vector:
        return out[:, 0]
    return out


def wrap_matrix_stack(out: np.ndarray, meta: PanelMeta) -> Any:
    """
    Wrap an ``(n, p, p)`` stack.

    pandas input gives a DataFrame indexed by (time, variable) with the
    variables as columns, the layout of ``DataFrame.rolling().cov()``.
    """
    if not meta.is_pandas:
        return out

    n, p, _ = out.shape
    index = pd.MultiIndex.from_product(
        [meta.index, pd.Index(meta.columns)],
        names=[meta.index.name, None]
    )
    return pd.DataFrame(out.reshape(n * p, p), index=index, columns=meta.columns)


def wrap_regression(coefficients: np.ndarray, r_squared: np.ndarray,
                    x_meta: PanelMeta, y_meta: PanelMeta, intercept: bool,
                    statistic: str, width: int,
                    metadata: Dict[str, Any]) -> RollingRegressionResult:
    """
    Build the regression result.

    Args:
        coefficients: Array of shape ``(n_y, n, k)``
        r_squared: Array of shape ``(n, n_y)``
        x_meta: Metadata of the independent panel
        y_meta: Metadata of the dependent panel
        intercept: Whether the first coefficient is the intercept
        statistic: Name of the statistic ("lm" or "pcr")
        width: Window width
        metadata: Call settings recorded on the result

    Returns:
        RollingRegressionResult with DataFrames when either input was pandas
    """
    regressors = ([INTERCEPT_LABEL] if intercept else []) + [str(c) for c in x_meta.columns]
    responses = [str(c) for c in y_meta.columns]

    index = None
    if x_meta.is_pandas:
        index = x_meta.index
    elif y_meta.is_pandas:
        index = y_meta.index

    if index is not None:
        coefs: List[Any] = [
            pd.DataFrame(coefficients[m], index=index, columns=regressors)
            for m in range(coefficients.shape[0])
        ]
        r2: Any = pd.DataFrame(r_squared, index=index, columns=responses)
    else:
        coefs = [coefficients[m] for m in range(coefficients.shape[0])]
        r2 = r_squared

    return RollingRegressionResult(
        statistic=statistic,
        width=width,
        metadata=metadata,
        coefficients=coefs,
        r_squared=r2,
        regressors=regressors,
        responses=responses,
    )


def wrap_eigen(values: np.ndarray, vectors: np.ndarray, meta: PanelMeta,
               width: int, metadata: Dict[str, Any]) -> RollingEigenResult:
    """Build the eigen-decomposition result; values become a DataFrame for pandas input."""
    if meta.is_pandas:
        labels = [f"PC{k + 1}" for k in range(values.shape[1])]
        values_out: Any = pd.DataFrame(values, index=meta.index, columns=labels)
    else:
        values_out = values

    return RollingEigenResult(
        statistic="eigen",
        width=width,
        metadata=metadata,
        values=values_out,
        vectors=vectors,
        variables=[str(c) for c in meta.columns],
    )
