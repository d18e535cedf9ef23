# tests/test_regression.py
"""
Tests for rolling linear and principal component regressions.

statsmodels WLS is used as an independent oracle for the per-window fits.
"""

import numpy as np
import pandas as pd
import pytest
import statsmodels.api as sm
from numpy.testing import assert_allclose, assert_array_equal

from rollstat import roll_lm, roll_pcr
from rollstat.core.exceptions import DimensionError, ParameterError
from rollstat.core.results import RollingRegressionResult
from rollstat.models.regression import resolve_regression_flags


class TestRollLm:
    """Tests for roll_lm."""

    def test_matches_statsmodels_wls(self, regression_data, rng):
        """Coefficients and R² of every window match statsmodels WLS."""
        x, y = regression_data
        width = 30
        weights = rng.uniform(0.5, 1.5, size=width)
        result = roll_lm(x, y, width, weights=weights)

        assert isinstance(result, RollingRegressionResult)
        assert len(result.coefficients) == 2
        assert result.coefficients[0].shape == (x.shape[0], 4)
        assert result.r_squared.shape == (x.shape[0], 2)

        for t in range(width - 1, x.shape[0], 31):
            rows = slice(t - width + 1, t + 1)
            for m in range(2):
                fit = sm.WLS(y[rows, m], sm.add_constant(x[rows]), weights=weights).fit()
                assert_allclose(result.coefficients[m][t], fit.params, rtol=1e-8, atol=1e-10)
                assert result.r_squared[t, m] == pytest.approx(fit.rsquared, rel=1e-8)

    def test_without_intercept(self, regression_data):
        """intercept=False drops the leading coefficient."""
        x, y = regression_data
        width = 40
        result = roll_lm(x, y[:, 0], width, intercept=False)
        assert result.coefficients[0].shape == (x.shape[0], 3)

        t = 150
        rows = slice(t - width + 1, t + 1)
        fit = sm.OLS(y[rows, 0], x[rows]).fit()
        assert_allclose(result.coefficients[0][t], fit.params, rtol=1e-8)

    def test_leading_windows_undefined(self, regression_data):
        """Windows with fewer than min_obs rows are missing."""
        x, y = regression_data
        result = roll_lm(x, y, 20)
        assert np.all(np.isnan(result.coefficients[0][:19]))
        assert np.all(np.isnan(result.r_squared[:19]))
        assert not np.any(np.isnan(result.r_squared[19:]))

    def test_exact_fit(self, rng):
        """A noiseless linear response is recovered with R² of one."""
        x = rng.standard_normal((60, 2))
        y = 1.0 + x @ np.array([0.5, -2.0])
        result = roll_lm(x, y, 10)
        assert_allclose(result.coefficients[0][-1], [1.0, 0.5, -2.0], atol=1e-10)
        assert result.r_squared[-1, 0] == pytest.approx(1.0)

    def test_rank_deficient_gives_nan(self, rng):
        """A duplicated regressor makes every window singular."""
        base = rng.standard_normal(50)
        x = np.column_stack([base, base])
        y = rng.standard_normal(50)
        result = roll_lm(x, y, 10)
        assert np.all(np.isnan(result.coefficients[0]))
        assert np.all(np.isnan(result.r_squared))

    def test_standardized_fit(self, regression_data):
        """Centering and scaling remove the intercept and leave R² unchanged."""
        x, y = regression_data
        plain = roll_lm(x, y, 30)
        scaled = roll_lm(x, y, 30, center=True, scale=True)
        assert_allclose(scaled.coefficients[0][29:, 0], 0.0, atol=1e-10)
        assert_allclose(scaled.r_squared, plain.r_squared, rtol=1e-8, equal_nan=True)

    def test_standardized_slopes(self, regression_data):
        """Scaled slopes are the raw slopes times sd(x) / sd(y)."""
        x, y = regression_data
        width = 30
        plain = roll_lm(x, y[:, 0], width)
        scaled = roll_lm(x, y[:, 0], width, center=True, scale=True)
        t = 120
        rows = slice(t - width + 1, t + 1)
        ratio = x[rows].std(axis=0, ddof=1) / y[rows, 0].std(ddof=1)
        assert_allclose(scaled.coefficients[0][t, 1:], plain.coefficients[0][t, 1:] * ratio,
                        rtol=1e-8)

    def test_pairwise_and_casewise(self, regression_data):
        """A gap in one response only affects the other under casewise deletion."""
        x, y = regression_data
        y = y.copy()
        y[50, 1] = np.nan

        pairwise = roll_lm(x, y, 20, complete_obs=False)
        casewise = roll_lm(x, y, 20, complete_obs=True)

        assert not np.isnan(pairwise.r_squared[55, 0])
        assert np.isnan(pairwise.r_squared[55, 1])
        assert np.isnan(casewise.r_squared[55, 0])

    def test_na_restore(self, regression_data):
        """Restored units are those whose regressors or response were missing."""
        x, y = regression_data
        x = x.copy()
        y = y.copy()
        x[100, 0] = np.nan
        y[120, 1] = np.nan

        result = roll_lm(x, y, 20, min_obs=15, complete_obs=False, na_restore=True)
        assert np.all(np.isnan(result.coefficients[0][100]))
        assert np.all(np.isnan(result.coefficients[1][100]))
        assert np.isnan(result.r_squared[120, 1])
        assert not np.isnan(result.r_squared[120, 0])

    def test_row_mismatch(self, regression_data):
        x, y = regression_data
        with pytest.raises(DimensionError):
            roll_lm(x, y[:-1], 10)


class TestRollPcr:
    """Tests for roll_pcr."""

    @pytest.mark.parametrize("center,scale", [(False, False), (True, False), (True, True)])
    def test_all_components_equal_lm(self, regression_data, center, scale):
        """Keeping every component reproduces the linear regression."""
        x, y = regression_data
        lm = roll_lm(x, y, 25, center=center, scale=scale)
        pcr = roll_pcr(x, y, 25, center=center, scale=scale)
        for m in range(2):
            assert_allclose(pcr.coefficients[m], lm.coefficients[m],
                            rtol=1e-7, atol=1e-9, equal_nan=True)
        assert_allclose(pcr.r_squared, lm.r_squared, rtol=1e-7, atol=1e-9, equal_nan=True)

    def test_component_order_does_not_matter(self, regression_data):
        """The same set of components in any order gives the same fit."""
        x, y = regression_data
        forward = roll_pcr(x, y, 25, comps=[1, 2])
        backward = roll_pcr(x, y, 25, comps=[2, 1])
        assert_allclose(forward.coefficients[0], backward.coefficients[0],
                        rtol=1e-9, atol=1e-12, equal_nan=True)

    def test_first_component(self, regression_data, rng):
        """A single component matches a direct computation on one window."""
        x, y = regression_data
        width = 30
        weights = rng.uniform(0.5, 1.5, size=width)
        result = roll_pcr(x, y[:, 0], width, comps=1, weights=weights, center_x=True)

        t = 90
        rows = slice(t - width + 1, t + 1)
        xw = x[rows]
        xc = xw - np.average(xw, axis=0, weights=weights)
        moments = (weights[:, None] * xc).T @ xc / weights.sum()
        values, vectors = np.linalg.eigh(moments)
        v = vectors[:, np.argmax(values)]
        scores = xc @ v
        fit = sm.WLS(y[rows, 0], sm.add_constant(scores), weights=weights).fit()

        assert result.coefficients[0][t, 0] == pytest.approx(fit.params[0], rel=1e-8)
        assert_allclose(result.coefficients[0][t, 1:], v * fit.params[1], rtol=1e-7, atol=1e-10)
        assert result.r_squared[t, 0] == pytest.approx(fit.rsquared, rel=1e-8)

    def test_invalid_components(self, regression_data):
        x, y = regression_data
        with pytest.raises(ParameterError):
            roll_pcr(x, y, 20, comps=[0])
        with pytest.raises(ParameterError):
            roll_pcr(x, y, 20, comps=[4])
        with pytest.raises(ParameterError):
            roll_pcr(x, y, 20, comps=[1, 1])
        with pytest.raises(ParameterError):
            roll_pcr(x, y, 20, comps=[1.5])

    def test_records_components(self, regression_data):
        x, y = regression_data
        result = roll_pcr(x, y, 20, comps=[3, 1])
        assert result.metadata["comps"] == [3, 1]


class TestRegressionPandas:
    """pandas input gives labelled coefficient frames."""

    def test_labels(self, regression_data):
        x, y = regression_data
        index = pd.date_range("2021-01-01", periods=x.shape[0], freq="D")
        x_frame = pd.DataFrame(x, index=index, columns=["mkt", "smb", "hml"])
        y_frame = pd.DataFrame(y, index=index, columns=["fund_a", "fund_b"])

        result = roll_lm(x_frame, y_frame, 30)

        coef = result.coefficients_for("fund_b")
        assert isinstance(coef, pd.DataFrame)
        assert list(coef.columns) == ["(Intercept)", "mkt", "smb", "hml"]
        assert coef.index.equals(index)
        assert list(result.r_squared.columns) == ["fund_a", "fund_b"]
        assert result.regressors == ["(Intercept)", "mkt", "smb", "hml"]

        array_result = roll_lm(x, y, 30)
        assert_allclose(coef.to_numpy(), array_result.coefficients[1], equal_nan=True)

    def test_series_response(self, regression_data):
        x, y = regression_data
        y_series = pd.Series(y[:, 0], name="ret")
        result = roll_lm(x, y_series, 30)
        assert result.responses == ["ret"]
        assert isinstance(result.r_squared, pd.DataFrame)

    def test_summary(self, regression_data):
        x, y = regression_data
        summary = roll_lm(x, y, 30).summary()
        assert "Rolling lm (width=30)" in summary
        assert "y1" in summary and "y2" in summary

    def test_unknown_response(self, regression_data):
        x, y = regression_data
        with pytest.raises(KeyError):
            roll_lm(x, y, 30).coefficients_for("missing")


class TestRegressionFlags:
    """center / scale shorthand resolution."""

    def test_shorthand(self):
        flags = resolve_regression_flags(True, True, None, None, False, None, None)
        assert flags.center_x and flags.center_y
        assert not flags.scale_x and not flags.scale_y

    def test_side_overrides(self):
        flags = resolve_regression_flags(False, True, None, False, True, False, None)
        assert not flags.intercept
        assert flags.center_x and not flags.center_y
        assert not flags.scale_x and flags.scale_y

    def test_invalid_flag(self):
        with pytest.raises(ParameterError):
            resolve_regression_flags(True, False, "no", None, False, None, None)


class TestRegressionParallel:
    """Results do not depend on the partition axis or the number of workers."""

    @pytest.mark.parametrize("func", [roll_lm, roll_pcr])
    def test_axis_and_workers(self, func, regression_data, threaded):
        x, y = regression_data
        x = x.copy()
        x[[30, 31, 77], [0, 2, 1]] = np.nan
        reference = func(x, y, 25, min_obs=20, complete_obs=False,
                         parallel_for="rows", num_workers=1)
        for parallel_for in ("rows", "cols"):
            for num_workers in (2, 3):
                result = func(x, y, 25, min_obs=20, complete_obs=False,
                              parallel_for=parallel_for, num_workers=num_workers)
                for m in range(2):
                    assert_array_equal(result.coefficients[m], reference.coefficients[m])
                assert_array_equal(result.r_squared, reference.r_squared)
