"""Predictions from a fitted model, in-sample or for new covariates.

Three prediction types are available:

* ``"mu"`` — the Poisson mean ``exp(X · beta + offset_x)``;
* ``"phi"`` — the inflation probability ``g⁻¹(Z · alpha + offset_z)``;
* ``"response"`` — the model mean of the count,
  ``phi · V + (1 − phi) · E[Y_pois]``, where ``E[Y_pois]`` is ``mu``
  or, for the zero-truncated model, ``mu / (1 − exp(−mu))``.

New design matrices are laid out like the ones used in the fit: when
the fit prepended an intercept, the same happens here.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import numpy as np
import pandas as pd

from ._compat import _ensure_pandas_df
from ._context import INTERCEPT_NAME, _design_matrix, _vector
from .likelihood import linear_predictors, vpoisson_pmf
from .links import inflation_probability

if TYPE_CHECKING:
    from ._context import FitContext
    from ._results import FittedModel

_PREDICTION_TYPES = ("mu", "phi", "response")


def _require_context(model: FittedModel) -> FitContext:
    if model.context is None:
        raise ValueError("Prediction requires a model that carries its fit context.")
    return model.context


def _new_design(obj: Any, names: tuple[str, ...], n: int, label: str) -> np.ndarray:
    if obj is None:
        if tuple(names) != (INTERCEPT_NAME,):
            raise ValueError(
                f"{label} is required: the fitted model uses columns {list(names)}."
            )
        return np.ones((n, 1))
    df = _design_matrix(obj, n, name=label, fit_intercept=False)
    # New rows may be constant (a single prediction point), so the
    # intercept is added by column count rather than detected.
    if INTERCEPT_NAME in names and df.shape[1] == len(names) - 1:
        df.insert(names.index(INTERCEPT_NAME), INTERCEPT_NAME, 1.0)
    if df.shape[1] != len(names):
        raise ValueError(
            f"{label} has {df.shape[1]} columns after preprocessing; "
            f"the fitted model expects {len(names)} ({list(names)})."
        )
    return df.to_numpy(dtype=float)


def _mu_phi(
    model: FittedModel,
    X: Any,
    Z: Any,
    offset_x: Any,
    offset_z: Any,
) -> tuple[np.ndarray, np.ndarray]:
    context = _require_context(model)
    if X is None and Z is None:
        if offset_x is not None or offset_z is not None:
            raise ValueError("Offsets can only be supplied together with new X or Z.")
        return linear_predictors(model.params, context)

    n = _ensure_pandas_df(X if X is not None else Z, name="X" if X is not None else "Z").shape[0]
    X_arr = _new_design(X, context.x_names, n, "X")
    Z_arr = _new_design(Z, context.z_names, n, "Z")
    beta, alpha = context.split_params(model.params)
    with np.errstate(over="ignore", under="ignore"):
        mu = np.exp(X_arr @ beta + _vector(offset_x, n, name="offset_x", default=0.0))
        phi = inflation_probability(
            context.link, Z_arr @ alpha + _vector(offset_z, n, name="offset_z", default=0.0)
        )
    return mu, phi


def predict(
    model: FittedModel,
    X: Any = None,
    Z: Any = None,
    *,
    offset_x: Any = None,
    offset_z: Any = None,
    type: str = "response",
) -> np.ndarray:
    """Predict ``mu``, ``phi`` or the count mean.

    Args:
        model: The fitted model.
        X: New mean-model covariates, or ``None`` (in-sample, or
            intercept-only models).
        Z: New inflation-model covariates, or ``None``.
        offset_x: Offset for new data (default 0).
        offset_z: Offset for new data (default 0).
        type: ``"mu"``, ``"phi"`` or ``"response"``.

    Returns:
        Array of shape ``(n,)``.

    Raises:
        ValueError: On an unknown *type* or mismatched design.
    """
    if type not in _PREDICTION_TYPES:
        raise ValueError(f"type must be one of {_PREDICTION_TYPES}, got {type!r}.")
    mu, phi = _mu_phi(model, X, Z, offset_x, offset_z)
    if type == "mu":
        return mu
    if type == "phi":
        return phi

    context = _require_context(model)
    pois_mean = mu / -np.expm1(-mu) if context.truncate else mu
    return phi * context.V + (1.0 - phi) * pois_mean


def predict_proba(
    model: FittedModel,
    counts: Any,
    X: Any = None,
    Z: Any = None,
    *,
    offset_x: Any = None,
    offset_z: Any = None,
) -> pd.DataFrame:
    """Model probability of each count for each observation.

    Returns:
        DataFrame of shape ``(n, len(counts))`` with one column per
        count.
    """
    context = _require_context(model)
    counts = np.atleast_1d(np.asarray(counts, dtype=int))
    mu, phi = _mu_phi(model, X, Z, offset_x, offset_z)
    probs = vpoisson_pmf(counts, mu, phi, context.V, context.truncate)
    return pd.DataFrame(probs, columns=counts)


__all__ = ["predict", "predict_proba"]
