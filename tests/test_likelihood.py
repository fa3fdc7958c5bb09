"""Tests for the V-inflated Poisson likelihood and pmf."""

import numpy as np
import pytest
from scipy import stats
from scipy.special import expit

from vinflated_poisson._context import build_context
from vinflated_poisson.likelihood import (
    SENTINEL,
    linear_predictors,
    log_likelihood,
    negative_log_likelihood,
    observation_log_likelihood,
    vpoisson_pmf,
)


def _manual_loglik(y, mu, phi, V, truncate=False, weights=None):
    """Direct per-observation evaluation of the mixture density."""
    pois = stats.poisson.pmf(y, mu)
    if truncate:
        pois = pois / (1.0 - np.exp(-mu))
    dens = np.where(y == V, phi + (1.0 - phi) * pois, (1.0 - phi) * pois)
    w = np.ones_like(mu) if weights is None else weights
    return float(np.sum(w * np.log(dens)))


class TestLinearPredictors:
    def test_intercept_only(self):
        ctx = build_context(np.array([0, 1, 2]))
        mu, phi = linear_predictors(np.array([np.log(2.0), 0.0]), ctx)
        np.testing.assert_allclose(mu, 2.0)
        np.testing.assert_allclose(phi, 0.5)

    def test_offsets_enter_both_predictors(self):
        ctx = build_context(np.array([0, 1, 2]), offset_x=np.log(3.0), offset_z=1.0)
        mu, phi = linear_predictors(np.zeros(2), ctx)
        np.testing.assert_allclose(mu, 3.0)
        np.testing.assert_allclose(phi, expit(1.0))


class TestObservationLogLikelihood:
    def test_every_observation_assigned(self):
        """Each observation gets exactly one finite contribution."""
        y = np.array([0, 1, 2, 2, 3, 7, 2, 0])
        ctx = build_context(y, V=2)
        contrib = observation_log_likelihood(np.array([0.5, -0.3]), ctx)
        assert contrib.shape == (8,)
        assert np.all(np.isfinite(contrib))

    def test_matches_manual_density(self):
        rng = np.random.default_rng(1)
        y = rng.poisson(2.0, size=50)
        x = rng.standard_normal(50)
        ctx = build_context(y, X=x, Z=x, V=1)
        params = np.array([0.6, 0.2, -0.4, 0.5])
        mu = np.exp(0.6 + 0.2 * x)
        phi = expit(-0.4 + 0.5 * x)
        np.testing.assert_allclose(
            log_likelihood(params, ctx),
            _manual_loglik(y, mu, phi, V=1),
        )

    def test_v_observations_use_mixture(self):
        ctx = build_context(np.array([3]), V=3)
        mu, phi = 2.0, 0.25
        params = np.array([np.log(mu), np.log(phi / (1 - phi))])
        expected = np.log(phi + (1 - phi) * stats.poisson.pmf(3, mu))
        np.testing.assert_allclose(observation_log_likelihood(params, ctx), [expected])

    def test_non_v_observations_scaled(self):
        ctx = build_context(np.array([1]), V=3)
        mu, phi = 2.0, 0.25
        params = np.array([np.log(mu), np.log(phi / (1 - phi))])
        expected = np.log(1 - phi) + stats.poisson.logpmf(1, mu)
        np.testing.assert_allclose(observation_log_likelihood(params, ctx), [expected])

    def test_truncated_matches_manual_density(self):
        y = np.array([1, 1, 2, 3, 1, 5, 4])
        ctx = build_context(y, V=1, truncate=True)
        params = np.array([0.3, -0.2])
        mu = np.full(7, np.exp(0.3))
        phi = np.full(7, expit(-0.2))
        np.testing.assert_allclose(
            log_likelihood(params, ctx),
            _manual_loglik(y, mu, phi, V=1, truncate=True),
        )

    def test_truncation_stable_for_small_mu(self):
        ctx = build_context(np.array([1, 1, 2]), V=1, truncate=True)
        contrib = observation_log_likelihood(np.array([-20.0, 0.0]), ctx)
        assert np.all(np.isfinite(contrib[:2]))


class TestNegativeLogLikelihood:
    def test_is_negated_loglik(self):
        ctx = build_context(np.array([0, 1, 2, 2, 4]), V=2)
        params = np.array([0.4, 0.1])
        assert negative_log_likelihood(params, ctx) == pytest.approx(-log_likelihood(params, ctx))

    def test_weights_multiply_contributions(self):
        y = np.array([0, 1, 2, 5])
        w = np.array([1.0, 2.0, 0.5, 3.0])
        ctx = build_context(y, V=2, weights=w)
        params = np.array([0.4, 0.1])
        contrib = observation_log_likelihood(params, ctx)
        assert log_likelihood(params, ctx) == pytest.approx(np.sum(w * contrib))

    def test_integer_weights_equal_replication(self):
        y = np.array([0, 1, 2, 5])
        weighted = build_context(y, V=2, weights=[2, 1, 1, 3])
        replicated = build_context(np.repeat(y, [2, 1, 1, 3]), V=2)
        params = np.array([0.7, -0.5])
        assert negative_log_likelihood(params, weighted) == pytest.approx(
            negative_log_likelihood(params, replicated)
        )

    def test_sentinel_for_zero_total_weight(self):
        ctx = build_context(np.array([0, 1, 2]), weights=np.zeros(3))
        assert negative_log_likelihood(np.zeros(2), ctx) == SENTINEL

    def test_sentinel_for_non_finite_loglik(self):
        # mu overflows to inf, so the Poisson log-pmf is not finite.
        ctx = build_context(np.array([0, 1, 3]), V=2)
        value = negative_log_likelihood(np.array([1000.0, 0.0]), ctx)
        assert value == SENTINEL

    def test_saturated_cloglog_stays_finite(self):
        # The raw cloglog inverse is exactly 1.0 at eta = 4.
        ctx = build_context(np.array([0, 1, 3, 2, 2]), V=2, link="cloglog")
        params = np.array([0.5, 4.0])
        contrib = observation_log_likelihood(params, ctx)
        assert np.all(np.isfinite(contrib))
        value = negative_log_likelihood(params, ctx)
        assert value < SENTINEL
        assert value == pytest.approx(-np.sum(contrib))

    def test_extreme_inflation_intercept_is_finite(self):
        ctx = build_context(np.array([0, 1, 3]), V=2)
        value = negative_log_likelihood(np.array([0.0, 1000.0]), ctx)
        assert np.isfinite(value)
        assert value < SENTINEL

    def test_sentinel_is_finite(self):
        assert np.isfinite(SENTINEL)
        assert SENTINEL == np.finfo(float).max


class TestVPoissonPmf:
    def test_shape(self):
        probs = vpoisson_pmf(np.arange(5), np.array([1.0, 2.0, 3.0]), np.full(3, 0.2), V=1)
        assert probs.shape == (3, 5)

    def test_sums_to_one(self):
        mu = np.array([0.5, 2.0, 6.0])
        phi = np.array([0.0, 0.3, 0.9])
        probs = vpoisson_pmf(np.arange(80), mu, phi, V=3)
        np.testing.assert_allclose(probs.sum(axis=1), 1.0)

    def test_truncated_sums_to_one(self):
        mu = np.array([0.1, 2.0, 6.0])
        phi = np.array([0.1, 0.3, 0.5])
        probs = vpoisson_pmf(np.arange(1, 80), mu, phi, V=1, truncate=True)
        np.testing.assert_allclose(probs.sum(axis=1), 1.0)

    def test_truncated_zero_has_no_mass(self):
        probs = vpoisson_pmf(np.array([0, 1]), np.array([2.0]), np.array([0.2]), V=1, truncate=True)
        assert probs[0, 0] == 0.0

    def test_point_mass_at_v(self):
        probs = vpoisson_pmf(np.array([2]), np.array([3.0]), np.array([0.4]), V=2)
        expected = 0.4 + 0.6 * stats.poisson.pmf(2, 3.0)
        np.testing.assert_allclose(probs[0, 0], expected)

    def test_agrees_with_likelihood(self):
        y = np.array([0, 1, 2, 4])
        ctx = build_context(y, V=2)
        params = np.array([0.2, -0.1])
        mu, phi = linear_predictors(params, ctx)
        probs = vpoisson_pmf(y, mu, phi, V=2)
        np.testing.assert_allclose(
            np.log(np.diag(probs)),
            observation_log_likelihood(params, ctx),
        )
