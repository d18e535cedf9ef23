'''
Result containers for rollstat.

Elementwise statistics and covariance cubes are returned as plain arrays (or
pandas objects when pandas went in). Statistics with more than one output, the
rolling regressions and the rolling eigen-decomposition, are returned in the
dataclasses defined here so that the parts travel together with the settings
that produced them.
'''

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

import numpy as np
import pandas as pd


@dataclass
class RollingResult:
    """Base class for multi-part rolling results.

    Attributes:
        statistic: Name of the statistic that produced the result
        width: Window width used
        creation_time: Timestamp when the result was created
        metadata: Settings of the call (flags, min_obs, partition axis)
    """

    statistic: str
    width: int
    creation_time: datetime = field(default_factory=datetime.now)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def summary(self) -> str:
        """Generate a text summary of the result."""
        header = f"Rolling {self.statistic} (width={self.width})\n"
        header += "=" * (len(header) - 1) + "\n\n"

        timestamp = f"Created: {self.creation_time.strftime('%Y-%m-%d %H:%M:%S')}\n\n"

        metadata_str = ""
        if self.metadata:
            metadata_str = "Settings:\n"
            for key, value in self.metadata.items():
                metadata_str += f"  {key}: {value}\n"
            metadata_str += "\n"

        return header + timestamp + metadata_str

    def __str__(self) -> str:
        return self.summary()


@dataclass
class RollingRegressionResult(RollingResult):
    """Rolling regression output.

    Attributes:
        coefficients: One entry per dependent variable, each of shape
            ``(n, k)`` with ``k`` the number of regressors (intercept first
            when included). DataFrames when the inputs were pandas objects.
        r_squared: Array of shape ``(n, n_y)`` or a DataFrame with one column
            per dependent variable
        regressors: Names of the regressors, in coefficient column order
        responses: Names of the dependent variables
    """

    coefficients: List[Union[np.ndarray, pd.DataFrame]] = field(default_factory=list)
    r_squared: Optional[Union[np.ndarray, pd.DataFrame]] = None
    regressors: List[str] = field(default_factory=list)
    responses: List[str] = field(default_factory=list)

    def coefficients_for(self, response: Union[int, str]) -> Union[np.ndarray, pd.DataFrame]:
        """Return the coefficient path for one dependent variable.

        Args:
            response: Position or name of the dependent variable

        Raises:
            KeyError: If the name is not a known dependent variable
        """
        if isinstance(response, str):
            if response not in self.responses:
                raise KeyError(f"Unknown response {response!r}; expected one of {self.responses}")
            response = self.responses.index(response)
        return self.coefficients[response]

    def summary(self) -> str:
        """Generate a text summary including the last defined R² values."""
        base = super().summary()

        r2 = np.asarray(self.r_squared, dtype=float)
        lines = ["Last defined R-squared:"]
        for m, name in enumerate(self.responses):
            column = r2[:, m]
            defined = column[~np.isnan(column)]
            value = f"{defined[-1]:.4f}" if defined.size else "undefined"
            lines.append(f"  {name}: {value}")

        return base + "\n".join(lines) + "\n"


@dataclass
class RollingEigenResult(RollingResult):
    """Rolling eigen-decomposition output.

    Attributes:
        values: Eigenvalues of shape ``(n, p)``, descending at every time index
            (a DataFrame when pandas went in)
        vectors: Eigenvectors of shape ``(n, p, p)``; ``vectors[t, :, k]`` is
            the eigenvector for ``values[t, k]``
        variables: Names of the variables, the row labels of each eigenvector
    """

    values: Optional[Union[np.ndarray, pd.DataFrame]] = None
    vectors: Optional[np.ndarray] = None
    variables: List[str] = field(default_factory=list)

    def explained_variance_ratio(self) -> np.ndarray:
        """Share of total variance carried by each component, per time index."""
        values = np.asarray(self.values, dtype=float)
        total = values.sum(axis=1, keepdims=True)
        with np.errstate(invalid="ignore", divide="ignore"):
            return values / total
