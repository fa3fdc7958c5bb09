"""Likelihood of the V-inflated (and optionally zero-truncated) Poisson model.

Model
~~~~~
Each observation ``i`` has a Poisson mean and an inflation probability

    mu_i  = exp(X_i · beta + offset_x_i)
    phi_i = g⁻¹(Z_i · alpha + offset_z_i)

where ``g`` is the inflation link (logit by default).  The count value
``V`` receives an extra point mass of ``phi_i``:

    P(Y_i = V) = phi_i + (1 − phi_i) · Pois(V; mu_i)
    P(Y_i = y) =         (1 − phi_i) · Pois(y; mu_i)      for y ≠ V

Zero truncation
~~~~~~~~~~~~~~~
When zero counts are unobservable the Poisson component is replaced by
its distribution conditional on ``Y > 0``:

    Pois⁺(y; mu) = Pois(y; mu) / (1 − exp(−mu)),   y ≥ 1

The survival factor ``1 − exp(−mu)`` is evaluated as ``−expm1(−mu)``
so that small means keep full precision.

Objective
~~~~~~~~~
Optimisers minimise :func:`negative_log_likelihood`.  A non-finite
log-likelihood (degenerate parameter regions, or a context that
carries no weight at all) maps to :data:`SENTINEL`, the largest finite
double, so NaN and infinities never reach the optimiser.  The function
is pure and defined at module level so that it pickles cleanly for
parallel population evaluation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
from scipy import stats

from .links import inflation_probability

if TYPE_CHECKING:
    from ._context import FitContext

SENTINEL = float(np.finfo(float).max)
"""Objective value returned for non-finite log-likelihoods."""


def linear_predictors(
    params: np.ndarray,
    context: FitContext,
) -> tuple[np.ndarray, np.ndarray]:
    """Return ``(mu, phi)`` for every observation in *context*."""
    beta, alpha = context.split_params(params)
    with np.errstate(over="ignore", under="ignore", invalid="ignore"):
        mu = np.exp(context.X @ beta + context.offset_x)
        phi = inflation_probability(context.link, context.Z @ alpha + context.offset_z)
    return mu, phi


def _log_survival(mu: np.ndarray) -> np.ndarray:
    """``log(1 − exp(−mu))``, the zero-truncation normaliser."""
    return np.log(-np.expm1(-mu))


def observation_log_likelihood(
    params: np.ndarray,
    context: FitContext,
) -> np.ndarray:
    """Unweighted per-observation log-likelihood contributions ``(n,)``.

    Every observation falls in exactly one of ``S_V`` (``y == V``) or
    its complement, so each index is written exactly once.  Entries
    may be ``-inf`` or NaN in degenerate parameter regions.
    """
    mu, phi = linear_predictors(params, context)
    is_v = context.is_v
    contrib = np.empty(context.n_obs, dtype=float)

    with np.errstate(divide="ignore", over="ignore", under="ignore", invalid="ignore"):
        log_pois = stats.poisson.logpmf(context.y, mu)
        if context.truncate:
            log_pois = log_pois - _log_survival(mu)

        phi_v = phi[is_v]
        contrib[is_v] = np.log(phi_v + (1.0 - phi_v) * np.exp(log_pois[is_v]))
        contrib[~is_v] = np.log1p(-phi[~is_v]) + log_pois[~is_v]

    return contrib


def log_likelihood(params: np.ndarray, context: FitContext) -> float:
    """Weighted log-likelihood; may be non-finite."""
    contrib = observation_log_likelihood(params, context)
    with np.errstate(invalid="ignore"):
        return float(np.sum(context.weights * contrib))


def negative_log_likelihood(params: np.ndarray, context: FitContext) -> float:
    """Objective for minimisation: ``−loglik`` or :data:`SENTINEL`.

    A context whose weights sum to zero carries no information; its
    likelihood is treated as undefined and also maps to the sentinel.
    """
    if not np.sum(context.weights) > 0:
        return SENTINEL
    loglik = log_likelihood(params, context)
    if not np.isfinite(loglik):
        return SENTINEL
    return -loglik


def vpoisson_pmf(
    counts: np.ndarray | int,
    mu: np.ndarray | float,
    phi: np.ndarray | float,
    V: int,
    truncate: bool = False,
) -> np.ndarray:
    """Model probability of each count for each observation.

    Same mixture and truncation logic as the likelihood, evaluated in
    probability space.

    Args:
        counts: Count values ``(m,)`` to evaluate.
        mu: Poisson means ``(n,)``.
        phi: Inflation probabilities ``(n,)``.
        V: The inflated count value.
        truncate: Use the zero-truncated Poisson component; the
            probability of a zero count is then 0.

    Returns:
        Array of shape ``(n, m)``.
    """
    counts = np.atleast_1d(np.asarray(counts))
    mu = np.atleast_1d(np.asarray(mu, dtype=float))[:, np.newaxis]
    phi = np.atleast_1d(np.asarray(phi, dtype=float))[:, np.newaxis]

    pois = stats.poisson.pmf(counts[np.newaxis, :], mu)
    if truncate:
        with np.errstate(divide="ignore", invalid="ignore"):
            pois = pois / -np.expm1(-mu)
        pois[:, counts == 0] = 0.0

    point_mass = (counts == V).astype(float)[np.newaxis, :]
    return phi * point_mass + (1.0 - phi) * pois


__all__ = [
    "SENTINEL",
    "linear_predictors",
    "log_likelihood",
    "negative_log_likelihood",
    "observation_log_likelihood",
    "vpoisson_pmf",
]
