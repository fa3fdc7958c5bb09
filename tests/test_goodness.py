"""Tests for the observed-versus-expected goodness-of-fit table."""

import dataclasses

import numpy as np
import pandas as pd
import pytest
from scipy import stats

from vinflated_poisson import fit_vpoisson, simulate_vpoisson
from vinflated_poisson._context import build_context
from vinflated_poisson._results import FittedModel
from vinflated_poisson.goodness import gof_distance, goodness_of_fit


def _model_for(y, params, **context_kwargs):
    ctx = build_context(y, **context_kwargs)
    params = np.asarray(params, dtype=float)
    return FittedModel(
        params=params,
        param_names=ctx.param_names,
        loglik=-1.0,
        covariance=np.full((ctx.n_params, ctx.n_params), np.nan),
        hessian=None,
        hessian_repaired=False,
        n_obs=ctx.n_obs,
        method="Nelder-Mead",
        start=np.zeros(ctx.n_params),
        converged=True,
        n_evaluations=None,
        message="",
        context=ctx,
    )


class TestGoodnessOfFit:
    def test_columns_and_range(self):
        y = np.array([0, 1, 2, 2, 5])
        table = goodness_of_fit(_model_for(y, [0.5, 0.0], V=2))
        assert list(table.columns) == ["count", "observed", "expected"]
        np.testing.assert_array_equal(table["count"], np.arange(6))

    def test_observed_frequencies(self):
        y = np.array([0, 1, 2, 2, 5])
        table = goodness_of_fit(_model_for(y, [0.5, 0.0], V=2))
        np.testing.assert_allclose(table["observed"], [0.2, 0.2, 0.4, 0.0, 0.0, 0.2])
        assert table["observed"].sum() == pytest.approx(1.0)

    def test_expected_matches_mixture(self):
        y = np.array([0, 1, 3])
        mu, phi = 2.0, 0.25
        params = [np.log(mu), np.log(phi / (1 - phi))]
        table = goodness_of_fit(_model_for(y, params, V=1))
        pois = stats.poisson.pmf(np.arange(4), mu)
        pois[-1] += stats.poisson.sf(3, mu)
        expected = (1 - phi) * pois
        expected[1] += phi
        np.testing.assert_allclose(table["expected"], expected)

    def test_expected_sums_to_one_default_range(self):
        y = np.array([0, 1, 2, 2, 3])
        table = goodness_of_fit(_model_for(y, [0.5, 0.3], V=2))
        assert table["count"].iloc[-1] == 3
        assert table["observed"].sum() == pytest.approx(1.0)
        assert table["expected"].sum() == pytest.approx(1.0)

    def test_truncated_sums_to_one_default_range(self):
        y = np.array([1, 1, 2, 4])
        table = goodness_of_fit(_model_for(y, [0.5, 0.0], V=1, truncate=True))
        np.testing.assert_array_equal(table["count"], [1, 2, 3, 4])
        assert table["observed"].sum() == pytest.approx(1.0)
        assert table["expected"].sum() == pytest.approx(1.0)

    def test_inflated_value_above_range_lands_in_last_row(self):
        y = np.array([0, 1, 2])
        mu, phi = 1.0, 0.5
        params = [np.log(mu), 0.0]
        table = goodness_of_fit(_model_for(y, params, V=5), max_count=2)
        expected_top = (1 - phi) * stats.poisson.sf(1, mu) + phi
        assert table["expected"].iloc[-1] == pytest.approx(expected_top)
        assert table["expected"].sum() == pytest.approx(1.0)

    def test_short_range_pools_observed_tail(self):
        y = np.array([0, 1, 2, 2, 5])
        table = goodness_of_fit(_model_for(y, [0.5, 0.0], V=2), max_count=2)
        np.testing.assert_allclose(table["observed"], [0.2, 0.2, 0.6])

    def test_expected_sums_near_one_with_wide_range(self):
        y = np.array([0, 1, 2, 2, 5])
        table = goodness_of_fit(_model_for(y, [0.5, 0.3], V=2), max_count=60)
        assert table["expected"].sum() == pytest.approx(1.0)

    def test_truncated_range_starts_at_one(self):
        y = np.array([1, 1, 2, 4])
        table = goodness_of_fit(_model_for(y, [0.5, 0.0], V=1, truncate=True), max_count=50)
        assert table["count"].iloc[0] == 1
        assert table["expected"].sum() == pytest.approx(1.0)

    def test_max_count_below_range(self):
        y = np.array([1, 2, 3])
        model = _model_for(y, [0.0, 0.0], V=1, truncate=True)
        with pytest.raises(ValueError, match="max_count must be >= 1"):
            goodness_of_fit(model, max_count=0)

    def test_requires_context(self):
        model = _model_for(np.array([0, 1]), [0.0, 0.0])
        detached = dataclasses.replace(model, context=None)
        with pytest.raises(ValueError, match="fit context"):
            goodness_of_fit(detached)

    def test_fitted_model_tracks_data(self):
        y = simulate_vpoisson(2.0, 0.4, 2, size=2000, random_state=8)
        model = fit_vpoisson(y, V=2, hessian=False)
        table = goodness_of_fit(model)
        # An intercept-only fit reproduces the observed share of V exactly.
        row_v = table.loc[table["count"] == 2].iloc[0]
        assert row_v["expected"] == pytest.approx(row_v["observed"], abs=0.01)
        assert gof_distance(table) < 0.1


class TestGofDistance:
    def test_zero_for_perfect_fit(self):
        table = pd.DataFrame({"count": [0, 1], "observed": [0.4, 0.6], "expected": [0.4, 0.6]})
        assert gof_distance(table) == 0.0

    def test_sum_of_absolute_deviations(self):
        table = pd.DataFrame({"count": [0, 1], "observed": [0.5, 0.5], "expected": [0.3, 0.6]})
        assert gof_distance(table) == pytest.approx(0.3)
