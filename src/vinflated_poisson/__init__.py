"""vinflated_poisson — V-inflated and zero-truncated Poisson regression.

Fits count models in which one particular value ``V`` is over-represented
relative to a Poisson distribution, with covariates on both the Poisson
mean (log link) and the inflation probability (logit, probit, cloglog,
loglog or cauchit link), optional zero truncation, offsets and
observation weights.  Estimation is by maximum likelihood with a choice
of local, annealing or differential-evolution optimizers; inference uses
the numerically differentiated Hessian, repaired to its nearest
positive-definite approximation when necessary.

Public API:
    .. autosummary::
        fit_vpoisson
        build_context
        FitContext
        FittedModel
        standard_errors
        z_values
        p_values
        confidence_intervals
        log_likelihood
        aic
        bic
        coef_table
        goodness_of_fit
        gof_distance
        predict
        predict_proba
        simulate_vpoisson
        print_fit_table
        print_gof_table
        negative_log_likelihood
        vpoisson_pmf
        nearest_positive_definite
        invert_or_repair
        covariance_from_hessian
        resolve_link
        register_link
        available_links
        resolve_optimizer
        register_optimizer
        available_optimizers
        get_workers
        set_workers
"""

from ._config import get_workers, set_workers
from ._context import FitContext, build_context
from ._optimizers import available_optimizers, register_optimizer, resolve_optimizer
from ._results import FittedModel
from .core import fit_vpoisson
from .covariance import covariance_from_hessian, invert_or_repair, nearest_positive_definite
from .display import print_fit_table, print_gof_table
from .goodness import gof_distance, goodness_of_fit
from .inference import (
    aic,
    bic,
    coef_table,
    confidence_intervals,
    log_likelihood,
    p_values,
    standard_errors,
    z_values,
)
from .likelihood import SENTINEL, negative_log_likelihood, vpoisson_pmf
from .links import available_links, register_link, resolve_link
from .prediction import predict, predict_proba
from .simulation import simulate_vpoisson

__all__ = [
    "FitContext",
    "FittedModel",
    "SENTINEL",
    "fit_vpoisson",
    "build_context",
    "standard_errors",
    "z_values",
    "p_values",
    "confidence_intervals",
    "log_likelihood",
    "aic",
    "bic",
    "coef_table",
    "goodness_of_fit",
    "gof_distance",
    "predict",
    "predict_proba",
    "simulate_vpoisson",
    "print_fit_table",
    "print_gof_table",
    "negative_log_likelihood",
    "vpoisson_pmf",
    "nearest_positive_definite",
    "invert_or_repair",
    "covariance_from_hessian",
    "resolve_link",
    "register_link",
    "available_links",
    "resolve_optimizer",
    "register_optimizer",
    "available_optimizers",
    "get_workers",
    "set_workers",
]

__version__ = "0.1.0"
