# tests/test_moments.py
"""
Tests for the elementwise rolling statistics.

Covers rolling sums, products, means, variances, standard deviations and
standardized values: exact values on small series, the minimum-observation
gate, pairwise versus casewise missing-data handling, weighting, agreement
with pandas rolling windows and invariance to the partition axis and the
number of worker threads.
"""

import numpy as np
import pandas as pd
import pytest
from hypothesis import HealthCheck, given, settings, strategies as st
from hypothesis.extra.numpy import arrays
from numpy.testing import assert_allclose, assert_array_equal
from pandas.testing import assert_frame_equal, assert_series_equal

from rollstat import (
    roll_mean, roll_prod, roll_scale, roll_sd, roll_sum, roll_var
)
from rollstat.core.exceptions import DataError, DimensionError, ParameterError


def _manual_weighted(x: np.ndarray, width: int, weights: np.ndarray, t: int):
    """Weighted sum, mean and reliability-weighted variance of one window of a vector."""
    start = max(0, t - width + 1)
    window = x[start:t + 1]
    w = weights[width - len(window):]
    keep = ~np.isnan(window)
    window, w = window[keep], w[keep]
    mean = np.sum(w * window) / np.sum(w)
    ss = np.sum(w * (window - mean) ** 2)
    var = ss / (np.sum(w) - np.sum(w ** 2) / np.sum(w))
    return np.sum(w * window), mean, var


# ---- Exact values ----

class TestSmallSeries:
    """Exact results on the series 1..5."""

    def test_sum_mean_var_width_three(self, small_series):
        """Width 3: sums, means and variances of consecutive triples."""
        assert_array_equal(roll_sum(small_series, 3), [np.nan, np.nan, 6.0, 9.0, 12.0])
        assert_array_equal(roll_mean(small_series, 3), [np.nan, np.nan, 2.0, 3.0, 4.0])

        var = roll_var(small_series, 3)
        assert var[2] == 1.0
        assert_array_equal(var, [np.nan, np.nan, 1.0, 1.0, 1.0])
        assert_array_equal(roll_sd(small_series, 3), [np.nan, np.nan, 1.0, 1.0, 1.0])

    def test_prod(self, small_series):
        """Products of consecutive triples."""
        assert_array_equal(roll_prod(small_series, 3), [np.nan, np.nan, 6.0, 24.0, 60.0])

    def test_full_width_only_last_defined(self, small_series):
        """width = n = min_obs: only the last index is defined and equals the full-sample statistic."""
        total = roll_sum(small_series, 5, min_obs=5)
        mean = roll_mean(small_series, 5, min_obs=5)
        var = roll_var(small_series, 5, min_obs=5)

        for out in (total, mean, var):
            assert np.all(np.isnan(out[:-1]))

        assert total[-1] == 15.0
        assert mean[-1] == 3.0
        assert var[-1] == pytest.approx(np.var(small_series, ddof=1))

    def test_partial_windows_with_min_obs(self, small_series):
        """min_obs below width admits the partial windows at the start."""
        assert_array_equal(roll_sum(small_series, 3, min_obs=1), [1.0, 3.0, 6.0, 9.0, 12.0])
        assert_array_equal(roll_mean(small_series, 3, min_obs=2), [np.nan, 1.5, 2.0, 3.0, 4.0])

    def test_single_observation_variance_undefined(self, small_series):
        """A centered variance of one observation has a zero denominator."""
        var = roll_var(small_series, 3, min_obs=1)
        assert np.isnan(var[0])
        assert var[1] == pytest.approx(0.5)

    def test_one_dimensional_output(self, small_series):
        """One-dimensional input gives one-dimensional output."""
        assert roll_mean(small_series, 2).shape == (5,)
        assert roll_mean(small_series.reshape(-1, 1), 2).shape == (5, 1)

    def test_list_input(self):
        """Plain lists are accepted."""
        assert_array_equal(roll_sum([1, 2, 3], 2), [np.nan, 3.0, 5.0])


# ---- Properties ----

class TestMomentProperties:
    """Properties that hold for any input."""

    def test_width_one_mean_reproduces_input(self, panel_with_nans):
        """A width-1 mean is the input itself, missing cells included."""
        result = roll_mean(panel_with_nans, 1, na_restore=True)
        assert_array_equal(result, panel_with_nans)

    def test_uncentered_variance_is_weighted_mean_of_squares(self, panel, rng):
        """center=False gives sum(w x^2) / sum(w)."""
        width = 10
        weights = rng.uniform(0.5, 2.0, size=width)
        result = roll_var(panel, width, weights=weights, center=False)

        for t in range(width - 1, panel.shape[0], 17):
            window = panel[t - width + 1:t + 1]
            expected = (weights[:, None] * window ** 2).sum(axis=0) / weights.sum()
            assert_allclose(result[t], expected, rtol=1e-12)

    def test_sd_is_root_of_var(self, panel_with_nans):
        """roll_sd is the square root of roll_var."""
        var = roll_var(panel_with_nans, 20, min_obs=15)
        sd = roll_sd(panel_with_nans, 20, min_obs=15)
        assert_allclose(sd, np.sqrt(var), equal_nan=True)

    def test_weighted_statistics(self, rng):
        """Weighted sum, mean and variance match a direct computation."""
        x = rng.standard_normal(60)
        x[[5, 17, 18]] = np.nan
        width = 8
        weights = 0.9 ** np.arange(width - 1, -1, -1)

        total = roll_sum(x, width, weights=weights, min_obs=5)
        mean = roll_mean(x, width, weights=weights, min_obs=5)
        var = roll_var(x, width, weights=weights, min_obs=5)

        for t in range(width - 1, len(x)):
            if np.sum(~np.isnan(x[t - width + 1:t + 1])) < 5:
                assert np.isnan(mean[t])
                continue
            exp_sum, exp_mean, exp_var = _manual_weighted(x, width, weights, t)
            assert total[t] == pytest.approx(exp_sum, rel=1e-12)
            assert mean[t] == pytest.approx(exp_mean, rel=1e-12)
            assert var[t] == pytest.approx(exp_var, rel=1e-10)

    def test_min_obs_gate(self):
        """Fewer admitted rows than min_obs gives NaN for every statistic."""
        x = np.array([1.0, np.nan, np.nan, 4.0, 5.0, 6.0])
        for func in (roll_sum, roll_prod, roll_mean, roll_var, roll_sd):
            result = func(x, 3, min_obs=2)
            assert np.isnan(result[2])
            assert np.isnan(result[3])
            assert not np.isnan(result[4])

    def test_product_ignores_weights(self, small_series):
        """Weights are validated but do not enter the product."""
        result = roll_prod(small_series, 3, weights=[0.1, 0.2, 0.3])
        assert_array_equal(result, [np.nan, np.nan, 6.0, 24.0, 60.0])


# ---- Standardization ----

class TestRollScale:
    """Tests for roll_scale."""

    def test_z_score_of_current_observation(self, rng):
        """(x_t - mean) / sd over the window ending at t."""
        x = rng.standard_normal(50)
        width = 12
        result = roll_scale(x, width)
        for t in range(width - 1, len(x)):
            window = x[t - width + 1:t + 1]
            expected = (x[t] - window.mean()) / window.std(ddof=1)
            assert result[t] == pytest.approx(expected, rel=1e-10)

    def test_no_center_no_scale_is_identity(self, panel):
        """Without centering or scaling the current value passes through."""
        result = roll_scale(panel, 5, center=False, scale=False)
        assert np.all(np.isnan(result[:4]))
        assert_array_equal(result[4:], panel[4:])

    def test_center_only(self, small_series):
        """Centering without scaling subtracts the window mean."""
        result = roll_scale(small_series, 3, scale=False)
        assert_array_equal(result, [np.nan, np.nan, 1.0, 1.0, 1.0])

    def test_missing_current_value(self):
        """A missing current observation gives NaN even when min_obs is met."""
        x = np.array([1.0, 2.0, 3.0, np.nan, 5.0])
        result = roll_scale(x, 3, min_obs=2)
        assert np.isnan(result[3])
        assert not np.isnan(result[4])

    def test_constant_window(self):
        """A zero standard deviation gives NaN."""
        result = roll_scale(np.ones(6), 3)
        assert np.all(np.isnan(result))


# ---- Missing data ----

class TestMissingData:
    """Pairwise and casewise deletion, and restoring missing cells."""

    def test_pairwise_uses_each_column_alone(self):
        """A gap in one column does not affect the other under pairwise deletion."""
        x = np.array([
            [1.0, 10.0],
            [2.0, 20.0],
            [np.nan, 30.0],
            [4.0, 40.0],
        ])
        result = roll_sum(x, 2, min_obs=1)
        assert_array_equal(result[:, 1], [10.0, 30.0, 50.0, 70.0])
        assert_array_equal(result[:, 0], [1.0, 3.0, 2.0, 4.0])

    def test_casewise_drops_whole_rows(self):
        """A gap in one column removes the row from every column under casewise deletion."""
        x = np.array([
            [1.0, 10.0],
            [2.0, 20.0],
            [np.nan, 30.0],
            [4.0, 40.0],
        ])
        result = roll_sum(x, 2, min_obs=1, complete_obs=True)
        assert_array_equal(result[:, 1], [10.0, 30.0, 20.0, 40.0])

    def test_na_restore(self):
        """na_restore blanks outputs where the input cell was missing."""
        x = np.array([1.0, 2.0, np.nan, 4.0, 5.0])
        plain = roll_sum(x, 2, min_obs=1)
        restored = roll_sum(x, 2, min_obs=1, na_restore=True)
        assert plain[2] == 2.0
        assert np.isnan(restored[2])
        assert_array_equal(restored[[0, 1, 3, 4]], plain[[0, 1, 3, 4]])


# ---- pandas ----

class TestPandas:
    """pandas in gives pandas out, matching pandas rolling windows."""

    def test_series_round_trip(self, frame):
        """Series in, Series out with the same index and name."""
        series = frame["a"]
        result = roll_mean(series, 10)
        assert isinstance(result, pd.Series)
        assert_series_equal(result, series.rolling(10).mean(), rtol=1e-10)

    def test_frame_matches_pandas(self, frame):
        """Sums, means and variances agree with DataFrame.rolling."""
        rolling = frame.rolling(15)
        assert_frame_equal(roll_sum(frame, 15), rolling.sum(), rtol=1e-10)
        assert_frame_equal(roll_mean(frame, 15), rolling.mean(), rtol=1e-10)
        assert_frame_equal(roll_var(frame, 15), rolling.var(), rtol=1e-8)
        assert_frame_equal(roll_sd(frame, 15), rolling.std(), rtol=1e-8)

    def test_frame_with_gaps_matches_min_periods(self, frame, rng):
        """Pairwise deletion with min_obs matches pandas min_periods."""
        data = frame.mask(rng.uniform(size=frame.shape) < 0.1)
        assert_frame_equal(roll_mean(data, 12, min_obs=8),
                           data.rolling(12, min_periods=8).mean(), rtol=1e-10)

    def test_nullable_dtype(self):
        """pandas missing markers become NaN."""
        series = pd.Series([1, 2, None, 4], dtype="Int64", name="n")
        result = roll_sum(series, 2, min_obs=1)
        assert_array_equal(result.to_numpy(), [1.0, 3.0, 2.0, 4.0])


# ---- Parallel execution ----

class TestParallelInvariance:
    """Results do not depend on the partition axis or the number of workers."""

    @pytest.mark.parametrize("func", [roll_sum, roll_prod, roll_mean, roll_var, roll_sd, roll_scale])
    def test_axis_and_workers(self, func, panel_with_nans, threaded):
        """Both axes and several worker counts give identical results."""
        reference = func(panel_with_nans, 20, min_obs=10, parallel_for="rows", num_workers=1)
        for parallel_for in ("rows", "cols"):
            for num_workers in (2, 3):
                result = func(panel_with_nans, 20, min_obs=10,
                              parallel_for=parallel_for, num_workers=num_workers)
                assert_array_equal(result, reference)

    @given(
        data=arrays(
            np.float64,
            st.tuples(st.integers(5, 40), st.integers(1, 4)),
            elements=st.one_of(st.floats(-100, 100), st.just(np.nan))
        ),
        width=st.integers(1, 5),
        complete_obs=st.booleans()
    )
    @settings(max_examples=25, deadline=None,
              suppress_health_check=[HealthCheck.function_scoped_fixture])
    def test_axis_invariance_property(self, data, width, complete_obs, threaded):
        """Variance is identical by time and by column for arbitrary panels."""
        rows = roll_var(data, width, min_obs=1, complete_obs=complete_obs,
                        parallel_for="rows", num_workers=2)
        cols = roll_var(data, width, min_obs=1, complete_obs=complete_obs,
                        parallel_for="cols", num_workers=3)
        assert_array_equal(rows, cols)


# ---- Argument validation ----

class TestValidation:
    """Invalid arguments are rejected before computation."""

    def test_width(self, small_series):
        with pytest.raises(ParameterError):
            roll_sum(small_series, 0)
        with pytest.raises(ParameterError):
            roll_sum(small_series, 6)
        with pytest.raises(ParameterError):
            roll_sum(small_series, 2.5)

    def test_min_obs(self, small_series):
        with pytest.raises(ParameterError):
            roll_mean(small_series, 3, min_obs=0)
        with pytest.raises(ParameterError):
            roll_mean(small_series, 3, min_obs=4)

    def test_weights(self, small_series):
        with pytest.raises(DimensionError):
            roll_mean(small_series, 3, weights=[1.0, 1.0])
        with pytest.raises(DataError):
            roll_mean(small_series, 3, weights=[1.0, np.nan, 1.0])

    def test_flags(self, small_series):
        with pytest.raises(ParameterError):
            roll_var(small_series, 3, center="yes")
        with pytest.raises(ParameterError):
            roll_sum(small_series, 3, complete_obs=1)

    def test_panel_shape_and_type(self):
        with pytest.raises(DimensionError):
            roll_sum(np.ones((4, 2, 2)), 2)
        with pytest.raises(DimensionError):
            roll_sum(np.ones((4, 0)), 2)
        with pytest.raises(DataError):
            roll_sum(["a", "b", "c"], 2)

    def test_execution_arguments(self, small_series):
        with pytest.raises(ParameterError):
            roll_sum(small_series, 3, parallel_for="diagonal")
        with pytest.raises(ParameterError):
            roll_sum(small_series, 3, num_workers=0)
