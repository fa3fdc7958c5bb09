"""Fitting entry point for V-inflated Poisson regression.

Count data often pile up on one particular value: zero in the classic
zero-inflated setting, but just as often a "default" answer such as
one visit, two children or a round number on a survey.  The
V-inflated Poisson model mixes a point mass at ``V`` (probability
``phi``) with a Poisson count (mean ``mu``), each driven by its own
linear predictor:

    log(mu_i)  = X_i · beta  + offset_x_i
    g(phi_i)   = Z_i · alpha + offset_z_i

When zero counts are structurally unobservable (e.g. data collected
only from units that had at least one event) the Poisson component is
zero-truncated; see :mod:`vinflated_poisson.likelihood`.

Pipeline
~~~~~~~~
1. :func:`~vinflated_poisson._context.build_context` validates every
   input and freezes it into a ``FitContext``.  All precondition
   failures happen here, before any optimisation.
2. :func:`~vinflated_poisson._optimizers.run_optimizer` minimises the
   negative log-likelihood with the requested strategy and, if asked,
   differentiates it twice at the optimum.
3. :func:`~vinflated_poisson.covariance.covariance_from_hessian`
   inverts the Hessian, repairing it when it is not positive definite.
4. Everything is packaged into an immutable ``FittedModel``.

Starting values
~~~~~~~~~~~~~~~
The default starting point is the zero vector (``mu = exp(offset)``,
``phi = g⁻¹(offset)``).  ``start="glm"`` instead seeds beta with a
Poisson GLM fitted to the non-``V`` observations and alpha with a
logistic regression of the indicator ``y == V`` on ``Z``, mapped onto
the chosen link scale.  Both ignore the mixture and are only meant to
land the optimiser in the right basin.
"""

from __future__ import annotations

import logging
import warnings
from typing import Any

import numpy as np
import statsmodels.api as sm
from sklearn.linear_model import LinearRegression, LogisticRegression
from statsmodels.genmod.families import links as sm_links
from statsmodels.tools.sm_exceptions import (
    ConvergenceWarning as SmConvergenceWarning,
)
from statsmodels.tools.sm_exceptions import (
    PerfectSeparationWarning,
)

from ._context import FitContext, build_context
from ._optimizers import run_optimizer
from ._results import FittedModel
from ._typing import RandomState
from .covariance import covariance_from_hessian

logger = logging.getLogger(__name__)

# Probabilities are clipped away from {0, 1} before mapping them onto
# the link scale for starting values.
_PROB_CLIP = 1e-4


def _glm_start_values(context: FitContext) -> np.ndarray:
    """Data-driven starting values (see module docstring)."""
    if not np.sum(context.weights) > 0:
        return np.zeros(context.n_params)

    is_v = context.is_v
    beta = np.zeros(context.kx)
    if np.sum(context.weights[~is_v]) > 0:
        with warnings.catch_warnings():
            warnings.filterwarnings("ignore", category=SmConvergenceWarning)
            warnings.filterwarnings("ignore", category=PerfectSeparationWarning)
            warnings.filterwarnings("ignore", category=RuntimeWarning)
            glm = sm.GLM(
                context.y[~is_v],
                context.X[~is_v],
                family=sm.families.Poisson(),
                offset=context.offset_x[~is_v],
                freq_weights=context.weights[~is_v],
            ).fit(disp=0)
        beta = np.where(np.isfinite(glm.params), glm.params, 0.0)

    indicator = is_v.astype(int)
    if 0 < indicator.sum() < indicator.size:
        clf = LogisticRegression(penalty=None, solver="lbfgs", max_iter=5_000, fit_intercept=False)
        clf.fit(context.Z, indicator, sample_weight=context.weights)
        p_hat = clf.predict_proba(context.Z)[:, 1]
    else:
        p_hat = np.full(context.n_obs, indicator.mean())
    p_hat = np.clip(p_hat, _PROB_CLIP, 1.0 - _PROB_CLIP)

    # Project the link-scale targets onto the columns of Z.
    eta = np.asarray(context.link(p_hat)) - context.offset_z
    ols = LinearRegression(fit_intercept=False)
    ols.fit(context.Z, eta, sample_weight=context.weights)
    alpha = np.where(np.isfinite(ols.coef_), ols.coef_, 0.0)

    return np.concatenate([beta, alpha])


def _resolve_start(start: Any, context: FitContext) -> np.ndarray:
    if start is None:
        return np.zeros(context.n_params)
    if isinstance(start, str):
        if start.strip().lower() != "glm":
            raise ValueError(f"start must be None, 'glm' or a vector, got {start!r}.")
        return _glm_start_values(context)

    x0 = np.asarray(start, dtype=float).ravel()
    if x0.shape != (context.n_params,):
        raise ValueError(
            f"start must have length {context.n_params} "
            f"(kx={context.kx} + kz={context.kz}), got {x0.size}."
        )
    if not np.all(np.isfinite(x0)):
        raise ValueError("start contains NaN or infinite values.")
    return x0


def fit_vpoisson(
    y: Any,
    X: Any = None,
    Z: Any = None,
    *,
    V: int = 0,
    offset_x: Any = 0.0,
    offset_z: Any = 0.0,
    weights: Any = None,
    link: str | sm_links.Link = "logit",
    truncate: bool = False,
    fit_intercept: bool = True,
    hessian: bool = True,
    method: str = "Nelder-Mead",
    start: Any = None,
    random_state: RandomState = None,
    optimizer_options: dict[str, Any] | None = None,
) -> FittedModel:
    """Fit a V-inflated (optionally zero-truncated) Poisson regression.

    Args:
        y: Observed counts of shape ``(n,)``.  Accepts arrays, pandas
            Series / single-column DataFrames, or Polars equivalents.
        X: Design matrix for the Poisson mean (log link).  ``None``
            fits an intercept-only mean model.
        Z: Design matrix for the inflation probability.  ``None``
            fits an intercept-only inflation model.
        V: The inflated count value (fixed, not estimated).
        offset_x: Scalar or length-n offset for the mean model.
        offset_z: Scalar or length-n offset for the inflation model.
        weights: Non-negative observation weights (default ones).
        link: Inflation link: ``"logit"`` (default), ``"probit"``,
            ``"cloglog"``, ``"loglog"``, ``"cauchit"``, or a
            statsmodels ``Link`` instance.
        truncate: Fit the zero-truncated model.  Requires every count
            and ``V`` to be at least 1.
        fit_intercept: Prepend an ``(Intercept)`` column to a supplied
            ``X`` / ``Z`` that lacks a constant column.
        hessian: Compute the Hessian and hence the covariance.  When
            ``False`` the covariance (and every standard error derived
            from it) is NaN.
        method: Optimizer name: ``"Nelder-Mead"`` (default),
            ``"BFGS"``, ``"CG"``, ``"L-BFGS-B"``, ``"Powell"``,
            ``"TNC"``, ``"SLSQP"``, ``"SANN"`` (simulated annealing)
            or ``"DE"`` (differential evolution).
        start: Initial parameter vector of length ``kx + kz``,
            ``None`` for zeros, or ``"glm"`` for data-driven values.
        random_state: Seed for the stochastic optimizers.
        optimizer_options: Method-specific options, forwarded to the
            optimizer unchanged.

    Returns:
        An immutable :class:`~vinflated_poisson._results.FittedModel`.

    Raises:
        ValueError: If any input is invalid (checked before
            optimising).
        RuntimeError: If the optimizer fails to converge.
    """
    context = build_context(
        y,
        X,
        Z,
        V=V,
        offset_x=offset_x,
        offset_z=offset_z,
        weights=weights,
        link=link,
        truncate=truncate,
        fit_intercept=fit_intercept,
    )
    x0 = _resolve_start(start, context)

    logger.debug(
        "Fitting V-inflated Poisson: n=%d, kx=%d, kz=%d, V=%d, truncate=%s, link=%s.",
        context.n_obs,
        context.kx,
        context.kz,
        context.V,
        context.truncate,
        context.link_name,
    )

    outcome = run_optimizer(
        context,
        start=x0,
        method=method,
        hessian=hessian,
        random_state=random_state,
        options=optimizer_options,
    )
    covariance, repaired = covariance_from_hessian(outcome.hessian, context.n_params)

    logger.debug("Fit finished: loglik=%.6f.", outcome.loglik)

    nfev = outcome.result.get("nfev")
    return FittedModel(
        params=outcome.params.copy(),
        param_names=context.param_names,
        loglik=float(outcome.loglik),
        covariance=covariance,
        hessian=outcome.hessian,
        hessian_repaired=repaired,
        n_obs=context.n_obs,
        method=outcome.strategy.name,
        start=x0.copy(),
        converged=bool(outcome.result.success),
        n_evaluations=int(nfev) if nfev is not None else None,
        message=str(outcome.result.get("message", "")),
        context=context,
    )


__all__ = ["fit_vpoisson"]
