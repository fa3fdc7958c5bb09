"""Wald inference and information criteria for fitted models.

Every function here is a pure derivation from a
:class:`~vinflated_poisson._results.FittedModel`; nothing is cached
and nothing is refitted.

Wald statistics
---------------
With covariance ``Σ`` (the inverse Hessian of the negative
log-likelihood) the standard error of estimate ``θ_j`` is
``√Σ_jj`` and

    z_j = θ_j / SE_j,        p_j = 2 · (1 − Φ(|z_j|))

Confidence intervals at level ``1 − a`` are ``θ_j ± Φ⁻¹(1 − a/2) · SE_j``,
computed from the model's own covariance.  When the fit skipped the
Hessian, ``Σ`` is all NaN and so is everything derived from it: the
"unknown" propagates instead of raising.

Information criteria
--------------------
With log-likelihood ``ℓ``, ``k`` parameters and ``n`` observations:

    AIC = −2ℓ + 2k
    BIC = −2ℓ + k · log(n)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import pandas as pd
from scipy import stats

if TYPE_CHECKING:
    from ._results import FittedModel


def standard_errors(model: FittedModel) -> pd.Series:
    """Square root of the covariance diagonal (NaN where unknown).

    Tiny negative diagonal entries from rounding are reported as NaN
    rather than raising.
    """
    diag = np.diag(np.asarray(model.covariance, dtype=float))
    with np.errstate(invalid="ignore"):
        se = np.sqrt(diag)
    return pd.Series(se, index=model.param_names, name="std_error")


def z_values(model: FittedModel) -> pd.Series:
    """Wald z-statistics ``estimate / standard_error``."""
    se = standard_errors(model).to_numpy()
    with np.errstate(divide="ignore", invalid="ignore"):
        z = np.asarray(model.params) / se
    return pd.Series(z, index=model.param_names, name="z_value")


def p_values(model: FittedModel) -> pd.Series:
    """Two-sided p-values from the standard normal distribution."""
    z = z_values(model).to_numpy()
    p = 2.0 * stats.norm.sf(np.abs(z))
    return pd.Series(p, index=model.param_names, name="p_value")


def confidence_intervals(model: FittedModel, level: float = 0.95) -> pd.DataFrame:
    """Normal-theory confidence intervals.

    Args:
        model: The fitted model.
        level: Confidence level in ``(0, 1)``.

    Returns:
        DataFrame indexed by parameter name with columns ``lower`` and
        ``upper``.

    Raises:
        ValueError: If *level* is outside ``(0, 1)``.
    """
    if not 0.0 < level < 1.0:
        raise ValueError(f"level must be in (0, 1), got {level}.")
    crit = stats.norm.ppf(0.5 + level / 2.0)
    se = standard_errors(model).to_numpy()
    est = np.asarray(model.params)
    return pd.DataFrame(
        {"lower": est - crit * se, "upper": est + crit * se},
        index=model.param_names,
    )


def log_likelihood(model: FittedModel) -> float:
    return float(model.loglik)


def aic(model: FittedModel) -> float:
    """Akaike information criterion, ``−2ℓ + 2k``."""
    return -2.0 * model.loglik + 2.0 * model.n_params


def bic(model: FittedModel) -> float:
    """Bayesian information criterion, ``−2ℓ + k·log(n)``."""
    return -2.0 * model.loglik + model.n_params * np.log(model.n_obs)


def coef_table(model: FittedModel) -> pd.DataFrame:
    """Estimates with standard errors, z-statistics and p-values."""
    return pd.DataFrame(
        {
            "estimate": np.asarray(model.params),
            "std_error": standard_errors(model).to_numpy(),
            "z_value": z_values(model).to_numpy(),
            "p_value": p_values(model).to_numpy(),
        },
        index=model.param_names,
    )


__all__ = [
    "aic",
    "bic",
    "coef_table",
    "confidence_intervals",
    "log_likelihood",
    "p_values",
    "standard_errors",
    "z_values",
]
