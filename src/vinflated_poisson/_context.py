"""Fit context — the immutable bundle of data a likelihood needs.

A :class:`FitContext` is built once per call to
:func:`~vinflated_poisson.core.fit_vpoisson` and then handed, unchanged,
to every objective evaluation.  Nothing in it is ever mutated: the
dataclass is frozen and every array is flagged read-only, so the same
context can be evaluated from several worker processes at once
(differential evolution with ``workers > 1``) without locking.

Lifecycle::

    ┌──────────────────────────────────────────────┐
    │  fit_vpoisson()                              │
    │  ├─ ctx = build_context(y, X, Z, …)          │
    │  │   └─ validation (fails before optimising) │
    │  ├─ run_optimizer(ctx, …)                    │
    │  │   └─ negative_log_likelihood(p, ctx) × N  │
    │  ├─ covariance_from_hessian(…)               │
    │  └─ FittedModel(…, context=ctx)              │
    └──────────────────────────────────────────────┘

    # Later, with no re-validation:
    goodness_of_fit(model)      # reads model.context
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import numpy as np
import pandas as pd
import statsmodels.api as sm
from statsmodels.genmod.families import links as sm_links

from ._compat import _ensure_1d, _ensure_pandas_df
from .links import resolve_link

INTERCEPT_NAME = "(Intercept)"
"""Column name given to generated intercept columns."""


@dataclass(frozen=True)
class FitContext:
    """Observations and model configuration for one fit.

    Use :func:`build_context` rather than the constructor: it
    validates and normalises user input.  The constructor assumes its
    arguments are already consistent.

    Sections
    --------
    **Data** — counts, design matrices, offsets and weights, all
    row-aligned.

    **Model** — the inflated value ``V``, the truncation flag and the
    inflation link.

    **Labels** — design-matrix column names used to build parameter
    names.
    """

    # ---- Data ----------------------------------------------------
    y: np.ndarray
    """Observed counts ``(n,)``, int64, all ``>= 0``."""

    X: np.ndarray
    """Mean-model design matrix ``(n, kx)``."""

    Z: np.ndarray
    """Inflation-model design matrix ``(n, kz)``."""

    offset_x: np.ndarray
    """Offset added to the mean-model linear predictor ``(n,)``."""

    offset_z: np.ndarray
    """Offset added to the inflation-model linear predictor ``(n,)``."""

    weights: np.ndarray
    """Non-negative observation weights ``(n,)``."""

    # ---- Model ---------------------------------------------------
    V: int = 0
    """The inflated count value (fixed, not estimated)."""

    truncate: bool = False
    """Whether zero counts are structurally unobservable."""

    link: sm_links.Link = field(default_factory=sm_links.Logit)
    """statsmodels link for the inflation probability."""

    link_name: str = "logit"
    """Canonical name of :attr:`link`."""

    # ---- Labels --------------------------------------------------
    x_names: tuple[str, ...] = ()
    """Column names of :attr:`X`."""

    z_names: tuple[str, ...] = ()
    """Column names of :attr:`Z`."""

    def __post_init__(self) -> None:
        for name in ("y", "X", "Z", "offset_x", "offset_z", "weights"):
            getattr(self, name).setflags(write=False)

    # ---- Derived -------------------------------------------------

    @property
    def n_obs(self) -> int:
        return int(self.y.shape[0])

    @property
    def kx(self) -> int:
        return int(self.X.shape[1])

    @property
    def kz(self) -> int:
        return int(self.Z.shape[1])

    @property
    def n_params(self) -> int:
        return self.kx + self.kz

    @property
    def param_names(self) -> list[str]:
        """``P_<Xcol>`` for the mean model, then ``V_<Zcol>``."""
        return [f"P_{c}" for c in self.x_names] + [f"V_{c}" for c in self.z_names]

    @property
    def is_v(self) -> np.ndarray:
        """Boolean mask of the observations equal to ``V``."""
        return self.y == self.V

    def split_params(self, params: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        """Split a parameter vector into ``(beta, alpha)``."""
        params = np.asarray(params, dtype=float)
        return params[: self.kx], params[self.kx :]


# ------------------------------------------------------------------ #
# Construction & validation
# ------------------------------------------------------------------ #


def _validate_counts(y: np.ndarray) -> np.ndarray:
    """Check that *y* holds non-negative integer counts; return int64."""
    if y.size == 0:
        raise ValueError("y must contain at least one observation.")
    if not np.issubdtype(y.dtype, np.number) or np.issubdtype(y.dtype, np.complexfloating):
        raise ValueError("y requires numeric count values.")
    if np.any(np.isnan(y.astype(float))):
        raise ValueError("y does not accept NaN values.")
    if np.any(y < 0):
        raise ValueError("y requires non-negative counts.")
    # Allow floats that happen to be whole numbers (e.g. 3.0),
    # but reject genuinely fractional values like 3.5.
    if not np.allclose(y, np.round(y)):
        raise ValueError("y requires integer-valued counts. Got non-integer values.")
    return np.round(y).astype(np.int64)


def _design_matrix(
    obj: Any,
    n: int,
    *,
    name: str,
    fit_intercept: bool,
) -> pd.DataFrame:
    """Return a validated design frame for *obj* (``None`` → intercept only)."""
    if obj is None:
        return pd.DataFrame({INTERCEPT_NAME: np.ones(n)})

    df = _ensure_pandas_df(obj, name=name)
    if df.shape[0] != n:
        raise ValueError(
            f"{name} has {df.shape[0]} rows but y has {n} observations."
        )
    try:
        df = df.astype(float)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must contain only numeric columns.") from None
    if not np.all(np.isfinite(df.to_numpy())):
        raise ValueError(f"{name} contains NaN or infinite values.")

    if fit_intercept:
        n_cols = df.shape[1]
        df = sm.add_constant(df, prepend=True, has_constant="skip")
        if df.shape[1] > n_cols:
            df = df.rename(columns={df.columns[0]: INTERCEPT_NAME})
    if df.shape[1] == 0:
        raise ValueError(f"{name} must have at least one column.")
    df.columns = [str(c) for c in df.columns]
    return df


def _vector(obj: Any, n: int, *, name: str, default: float) -> np.ndarray:
    """Broadcast a scalar or validate a length-*n* vector."""
    if obj is None:
        return np.full(n, float(default))
    arr = _ensure_1d(obj, name=name).astype(float)
    if arr.size == 1:
        arr = np.full(n, float(arr[0]))
    if arr.shape[0] != n:
        raise ValueError(
            f"{name} has length {arr.shape[0]} but y has {n} observations."
        )
    if not np.all(np.isfinite(arr)):
        raise ValueError(f"{name} contains NaN or infinite values.")
    return arr


def build_context(
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
) -> FitContext:
    """Validate user input and return a :class:`FitContext`.

    Every precondition is checked here, so an invalid call fails
    before any optimisation is attempted.

    Args:
        y: Observed counts (array, Series, single-column frame).
        X: Mean-model design matrix, or ``None`` for intercept only.
        Z: Inflation-model design matrix, or ``None`` for intercept
            only.
        V: The inflated count value.
        offset_x: Scalar or length-n offset for the mean model.
        offset_z: Scalar or length-n offset for the inflation model.
        weights: Non-negative observation weights (default ones).
        link: Inflation link name or statsmodels ``Link``.
        truncate: Zero-truncated model; requires ``y >= 1`` and
            ``V >= 1``.
        fit_intercept: Prepend an intercept column to a supplied
            ``X`` / ``Z`` that has no constant column.

    Raises:
        ValueError: On any invalid input (see the messages).
        TypeError: On unsupported input container types.
    """
    if y is None:
        raise ValueError("y (the observed counts) is required.")
    y_arr = _validate_counts(_ensure_1d(y, name="y"))
    n = y_arr.shape[0]

    try:
        is_whole = not isinstance(V, bool) and float(V).is_integer()
    except (TypeError, ValueError):
        is_whole = False
    if not is_whole:
        raise ValueError(f"V must be an integer count, got {V!r}.")
    V = int(V)
    if V < 0:
        raise ValueError(f"V must be non-negative, got {V}.")

    if truncate:
        if V < 1:
            raise ValueError(
                f"truncate=True requires V >= 1 (zero is unobservable), got V={V}."
            )
        if np.any(y_arr < 1):
            raise ValueError(
                "truncate=True requires every count in y to be >= 1; "
                f"found {int(np.sum(y_arr < 1))} zero count(s)."
            )

    X_df = _design_matrix(X, n, name="X", fit_intercept=fit_intercept)
    Z_df = _design_matrix(Z, n, name="Z", fit_intercept=fit_intercept)

    w = _vector(weights, n, name="weights", default=1.0)
    if np.any(w < 0):
        raise ValueError("weights must be non-negative.")

    link_name, link_obj = resolve_link(link)

    return FitContext(
        y=y_arr,
        X=X_df.to_numpy(dtype=float),
        Z=Z_df.to_numpy(dtype=float),
        offset_x=_vector(offset_x, n, name="offset_x", default=0.0),
        offset_z=_vector(offset_z, n, name="offset_z", default=0.0),
        weights=w,
        V=V,
        truncate=bool(truncate),
        link=link_obj,
        link_name=link_name,
        x_names=tuple(X_df.columns),
        z_names=tuple(Z_df.columns),
    )


__all__ = ["FitContext", "INTERCEPT_NAME", "build_context"]
