# tests/test_covariance.py
"""
Tests for rolling covariance and correlation matrices.
"""

import numpy as np
import pandas as pd
import pytest
from numpy.testing import assert_allclose, assert_array_equal
from pandas.testing import assert_index_equal

from rollstat import roll_cor, roll_cov, roll_var


class TestRollCov:
    """Tests for roll_cov."""

    def test_full_window_matches_numpy(self, panel):
        """The last full-sample window equals np.cov."""
        n = panel.shape[0]
        result = roll_cov(panel, n)
        assert result.shape == (n, 4, 4)
        assert np.all(np.isnan(result[:-1]))
        assert_allclose(result[-1], np.cov(panel, rowvar=False), rtol=1e-10)

    def test_every_window_matches_numpy(self, panel):
        """Each full window equals np.cov of its rows."""
        width = 30
        result = roll_cov(panel, width)
        for t in range(width - 1, panel.shape[0], 23):
            expected = np.cov(panel[t - width + 1:t + 1], rowvar=False)
            assert_allclose(result[t], expected, rtol=1e-10, atol=1e-14)

    def test_weighted_covariance(self, panel, rng):
        """Weights give np.cov with analytic weights (reliability denominator)."""
        width = 25
        weights = rng.uniform(0.2, 1.0, size=width)
        result = roll_cov(panel, width, weights=weights)
        t = 100
        expected = np.cov(panel[t - width + 1:t + 1], rowvar=False, aweights=weights)
        assert_allclose(result[t], expected, rtol=1e-10)

    def test_diagonal_equals_variance(self, panel_with_nans):
        """Cov(a, a) equals roll_var under the same missing-data mode."""
        cov = roll_cov(panel_with_nans, 20, min_obs=12, complete_obs=False)
        var = roll_var(panel_with_nans, 20, min_obs=12, complete_obs=False)
        diag = np.diagonal(cov, axis1=1, axis2=2)
        assert_array_equal(diag, var)

    def test_symmetric(self, panel_with_nans):
        """Both triangles hold the same values."""
        cov = roll_cov(panel_with_nans, 20, min_obs=10, complete_obs=False)
        assert_array_equal(cov, np.transpose(cov, (0, 2, 1)))

    def test_uncentered(self, panel):
        """center=False divides the cross products by the weight sum."""
        width = 10
        result = roll_cov(panel, width, center=False)
        window = panel[-width:]
        assert_allclose(result[-1], window.T @ window / width, rtol=1e-10)

    def test_pairwise_uses_joint_rows(self):
        """Under pairwise deletion each pair uses the rows where both are present."""
        x = np.array([
            [1.0, 2.0, 1.0],
            [2.0, 1.0, np.nan],
            [3.0, 5.0, 2.0],
            [4.0, 3.0, 5.0],
        ])
        pairwise = roll_cov(x, 4, min_obs=3, complete_obs=False)
        casewise = roll_cov(x, 4, min_obs=3, complete_obs=True)

        assert pairwise[-1, 0, 1] == pytest.approx(np.cov(x[:, 0], x[:, 1])[0, 1])
        rows = [0, 2, 3]
        assert casewise[-1, 0, 1] == pytest.approx(np.cov(x[rows, 0], x[rows, 1])[0, 1])
        assert pairwise[-1, 0, 2] == pytest.approx(casewise[-1, 0, 2])

    def test_na_restore_pairs(self):
        """Restored cells are those whose row or column variable was missing."""
        x = np.array([
            [1.0, 2.0],
            [2.0, 1.0],
            [np.nan, 5.0],
            [4.0, 3.0],
        ])
        result = roll_cov(x, 2, min_obs=1, complete_obs=False, na_restore=True)
        assert np.isnan(result[2, 0, 0])
        assert np.isnan(result[2, 0, 1])
        assert np.isnan(result[2, 1, 0])
        assert not np.isnan(result[2, 1, 1])


class TestRollCor:
    """Tests for roll_cor."""

    def test_matches_numpy(self, panel):
        """Full windows equal np.corrcoef."""
        width = 40
        result = roll_cor(panel, width)
        expected = np.corrcoef(panel[-width:], rowvar=False)
        assert_allclose(result[-1], expected, rtol=1e-10)

    def test_diagonal_exactly_one(self, panel_with_nans):
        """The diagonal is exactly one wherever it is defined."""
        result = roll_cor(panel_with_nans, 15, min_obs=8, complete_obs=False)
        diag = np.diagonal(result, axis1=1, axis2=2)
        defined = ~np.isnan(diag)
        assert defined.any()
        assert np.all(diag[defined] == 1.0)

    def test_bounded(self, panel_with_nans):
        """Correlations lie in [-1, 1]."""
        result = roll_cor(panel_with_nans, 15, min_obs=8, complete_obs=False)
        defined = result[~np.isnan(result)]
        assert np.all(np.abs(defined) <= 1.0 + 1e-12)

    def test_constant_column(self, panel):
        """A column without variation has undefined correlations."""
        data = panel[:30].copy()
        data[:, 2] = 1.0
        result = roll_cor(data, 10)
        assert np.all(np.isnan(result[9:, 2, :]))
        assert np.all(np.isnan(result[9:, :, 2]))
        assert np.all(result[9:, 0, 0] == 1.0)

    def test_cov_with_scale_is_cor(self, panel):
        """roll_cov(scale=True) is roll_cor."""
        assert_array_equal(roll_cov(panel, 12, scale=True), roll_cor(panel, 12))


class TestCovariancePandas:
    """pandas output follows DataFrame.rolling().cov()."""

    def test_matches_pandas_rolling_cov(self, frame):
        """Same (time, variable) index and values as pandas."""
        result = roll_cov(frame, 20)
        expected = frame.rolling(20).cov()

        assert isinstance(result, pd.DataFrame)
        assert_index_equal(result.columns, expected.columns)
        assert_index_equal(result.index, expected.index)
        assert_allclose(result.to_numpy(), expected.to_numpy(), rtol=1e-8, atol=1e-12)

    def test_matches_pandas_rolling_corr(self, frame):
        """Correlations agree with pandas."""
        result = roll_cor(frame, 20)
        expected = frame.rolling(20).corr()
        assert_allclose(result.to_numpy(), expected.to_numpy(), rtol=1e-8, atol=1e-10)


class TestCovarianceParallel:
    """Results do not depend on the partition axis or the number of workers."""

    @pytest.mark.parametrize("func", [roll_cov, roll_cor])
    def test_axis_and_workers(self, func, panel_with_nans, threaded):
        reference = func(panel_with_nans, 25, min_obs=15, complete_obs=False,
                         parallel_for="rows", num_workers=1)
        for parallel_for in ("rows", "cols"):
            for num_workers in (2, 4):
                result = func(panel_with_nans, 25, min_obs=15, complete_obs=False,
                              parallel_for=parallel_for, num_workers=num_workers)
                assert_array_equal(result, reference)
