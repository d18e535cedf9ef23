'''
Pytest configuration and fixtures for the rollstat test suite.

This module provides the data generators shared across the test modules and
a fixture that forces the executor to use worker threads even for small
inputs, so that the partitioned code paths are exercised.
'''

import numpy as np
import pandas as pd
import pytest

from rollstat.core.config import reset_config, set_config


# ---- Basic Data Generation Fixtures ----

@pytest.fixture
def rng() -> np.random.Generator:
    """Provide a seeded random number generator for reproducible tests."""
    return np.random.default_rng(42)


@pytest.fixture
def sample_size() -> int:
    """Default sample size for test data."""
    return 240


@pytest.fixture
def small_series() -> np.ndarray:
    """The series 1, 2, 3, 4, 5."""
    return np.array([1.0, 2.0, 3.0, 4.0, 5.0])


@pytest.fixture
def panel(rng: np.random.Generator, sample_size: int) -> np.ndarray:
    """Four correlated columns."""
    cov = np.array([
        [1.0, 0.5, 0.3, 0.1],
        [0.5, 1.0, 0.2, 0.0],
        [0.3, 0.2, 1.0, -0.4],
        [0.1, 0.0, -0.4, 1.0]
    ])
    return rng.multivariate_normal(np.zeros(4), cov, size=sample_size)


@pytest.fixture
def panel_with_nans(panel: np.ndarray, rng: np.random.Generator) -> np.ndarray:
    """The correlated panel with roughly 5% of cells missing."""
    data = panel.copy()
    mask = rng.uniform(size=data.shape) < 0.05
    data[mask] = np.nan
    return data


@pytest.fixture
def regression_data(rng: np.random.Generator, sample_size: int):
    """Regressors (n, 3) and two responses (n, 2) with known coefficients."""
    x = rng.standard_normal((sample_size, 3))
    beta = np.array([[0.5, -1.0], [2.0, 0.0], [-0.3, 1.5]])
    noise = 0.2 * rng.standard_normal((sample_size, 2))
    y = np.array([1.0, -2.0]) + x @ beta + noise
    return x, y


@pytest.fixture
def frame(panel: np.ndarray) -> pd.DataFrame:
    """The correlated panel as a DataFrame on a business-day index."""
    index = pd.date_range("2020-01-01", periods=panel.shape[0], freq="B", name="date")
    return pd.DataFrame(panel, index=index, columns=["a", "b", "c", "d"])


@pytest.fixture
def threaded():
    """Run every call on worker threads regardless of its size."""
    set_config("parallel", "parallel_threshold", 0)
    yield
    reset_config()
